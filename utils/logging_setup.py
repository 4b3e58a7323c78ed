from __future__ import annotations

import logging
import os
import sys

from config.settings import get_settings


_INITIALIZED: bool = False

# Structured extras the services attach, in output order
EXTRA_FIELDS: tuple[str, ...] = ("step", "status", "provider", "session_key", "duration_ms", "error", "run_id")


class RunIdFilter(logging.Filter):
    """Stamp records with the current RUN_ID so lines from one CLI run can be grepped together."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "run_id", None) is None:
            run_id = os.getenv("RUN_ID")
            if run_id:
                record.run_id = run_id
        return True


class ExtraFieldsFormatter(logging.Formatter):
    """Appends key=value for each structured extra present on the record."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        line = super().format(record)
        pairs = [
            f"{key}={getattr(record, key)}"
            for key in EXTRA_FIELDS
            if getattr(record, key, None) is not None
        ]
        return f"{line} {' '.join(pairs)}" if pairs else line


def init_logging(level: str | None = None) -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return

    settings = get_settings()
    log_level_str = (level or settings.log_level).upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(log_level)
        handler.addFilter(RunIdFilter())
        handler.setFormatter(ExtraFieldsFormatter(fmt="%(asctime)s %(levelname)s %(name)s %(message)s"))
        root_logger.addHandler(handler)

    _INITIALIZED = True
