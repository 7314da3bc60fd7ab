from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from pythonjsonlogger import jsonlogger

TEXT_FORMAT = "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(correlation_id)s %(message)s"


class CorrelationIdFilter(logging.Filter):
    def __init__(self, correlation_id: str):
        super().__init__()
        self._correlation_id = correlation_id

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = self._correlation_id
        return True


def configure_logging(
    log_dir: Path | None,
    correlation_id: str,
    level: int = logging.INFO,
    *,
    console: bool = True,
) -> None:
    """Route ``dmail`` records to stderr and, when ``log_dir`` is set, to daily text/JSONL files."""
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)

    correlation_filter = CorrelationIdFilter(correlation_id)
    text_formatter = logging.Formatter(fmt=TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    handlers: list[logging.Handler] = []
    if console:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(text_formatter)
        handlers.append(stream_handler)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        utc_day = datetime.now(timezone.utc).strftime("%Y-%m-%d")

        text_handler = logging.FileHandler(log_dir / f"dmail-{utc_day}.log", encoding="utf-8")
        text_handler.setFormatter(text_formatter)
        handlers.append(text_handler)

        json_handler = logging.FileHandler(log_dir / f"dmail-{utc_day}.jsonl", encoding="utf-8")
        json_handler.setFormatter(jsonlogger.JsonFormatter(fmt=JSON_FORMAT))
        handlers.append(json_handler)

    for handler in handlers:
        handler.addFilter(correlation_filter)
        root.addHandler(handler)


def get_logger(name: str, correlation_id: str) -> logging.LoggerAdapter:
    base_logger = logging.getLogger(name)
    return logging.LoggerAdapter(base_logger, extra={"correlation_id": correlation_id})
