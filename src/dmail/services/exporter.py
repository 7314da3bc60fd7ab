from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

import pandas as pd

from dmail.messages import MessageView

SUPPORTED_FORMATS = {"csv", "xlsx"}
EXPORT_COLUMNS = [
    "id",
    "subject",
    "sender",
    "sender_name",
    "recipients",
    "seen",
    "size",
    "sent_date",
    "received_date",
    "transfer_encoder",
]


def export_views(
    views: Iterable[MessageView],
    formats: list[str],
    out_dir: Path,
    stem: str = "dmail_export",
) -> list[Path]:
    out_dir.mkdir(parents=True, exist_ok=True)
    df = pd.DataFrame([view.to_row() for view in views], columns=EXPORT_COLUMNS)

    created_files: list[Path] = []
    if "csv" in formats:
        csv_path = (out_dir / f"{stem}.csv").resolve()
        df.to_csv(csv_path, index=False, encoding="utf-8-sig")
        created_files.append(csv_path)

    if "xlsx" in formats:
        xlsx_path = (out_dir / f"{stem}.xlsx").resolve()
        with pd.ExcelWriter(xlsx_path, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name="messages")
        created_files.append(xlsx_path)

    return created_files
