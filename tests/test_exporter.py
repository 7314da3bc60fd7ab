from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pandas as pd

from dmail.messages import EmailParticipant, MessageView, TransferEncoder
from dmail.services.exporter import EXPORT_COLUMNS, export_views


def _views() -> list[MessageView]:
    return [
        MessageView(
            id=1,
            subject="Invoice",
            sender=EmailParticipant.of("billing@example.com", "Billing"),
            recipients=frozenset({EmailParticipant.of("b@example.com"), EmailParticipant.of("a@example.com")}),
            seen=True,
            size=512,
            sent_date=datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc),
            transfer_encoder=TransferEncoder.QUOTED_PRINTABLE,
        ),
        MessageView(id=2),
    ]


def test_export_csv(tmp_path: Path) -> None:
    files = export_views(_views(), formats=["csv"], out_dir=tmp_path / "out")

    assert [f.name for f in files] == ["dmail_export.csv"]
    df = pd.read_csv(files[0], encoding="utf-8-sig")
    assert list(df.columns) == EXPORT_COLUMNS
    assert df.loc[0, "recipients"] == "a@example.com, b@example.com"
    assert df.loc[0, "sender_name"] == "Billing"
    assert df.loc[0, "sent_date"] == "2026-10-01T12:00:00+00:00"
    assert df.loc[1, "transfer_encoder"] == "unknown"


def test_export_xlsx(tmp_path: Path) -> None:
    files = export_views(_views(), formats=["csv", "xlsx"], out_dir=tmp_path, stem="inbox")

    assert [f.name for f in files] == ["inbox.csv", "inbox.xlsx"]
    df = pd.read_excel(files[1], sheet_name="messages", engine="openpyxl")
    assert len(df) == 2
    assert df.loc[0, "subject"] == "Invoice"


def test_export_empty_page_keeps_header(tmp_path: Path) -> None:
    files = export_views([], formats=["csv"], out_dir=tmp_path)

    assert files[0].read_text(encoding="utf-8-sig").strip() == ",".join(EXPORT_COLUMNS)
