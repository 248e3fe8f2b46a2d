"""Logging setup and database persistence of log events.

Loggers are plain stdlib loggers under the ``llama`` namespace
(``llama.routing``, ``llama.data``, ``llama.app``, ``llama.errors``).
``DatabaseLogHandler`` stores each record as one row::

    handler = DatabaseLogHandler(Database("sqlite:///logs.db"))
    logging.getLogger("llama.errors").addHandler(handler)
"""

from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass

from llama.config import AppConfig
from llama.data.database import Database, quote_identifier

_LEVEL_NAMES = {
    logging.DEBUG: "Debug",
    logging.INFO: "Info",
    logging.WARNING: "Warning",
    logging.ERROR: "Error",
    logging.CRITICAL: "Fatal",
}


@dataclass(frozen=True, slots=True)
class LogEvent:
    """One stored log event."""

    level: str
    message: str
    file: str | None = None
    line: int | None = None
    timestamp: int = 0
    code: int | None = None

    @classmethod
    def from_record(cls, record: logging.LogRecord, message: str | None = None) -> LogEvent:
        code = getattr(record, "code", None)
        return cls(
            level=_LEVEL_NAMES.get(record.levelno, record.levelname.title()),
            message=record.getMessage() if message is None else message,
            file=record.pathname,
            line=record.lineno,
            timestamp=int(record.created),
            code=int(code) if code is not None else None,
        )


class DatabaseLogHandler(logging.Handler):
    """Persist log records to a table through a ``Database``.

    The table is created on first use. Records from ``llama.data`` are not
    stored, since writing them would log another statement.
    """

    def __init__(
        self,
        db: Database,
        table: str = "log_events",
        level: int = logging.NOTSET,
    ) -> None:
        super().__init__(level)
        self.db = db
        self.table = table
        self._ready = False

    def _ensure_table(self) -> None:
        if self._ready:
            return
        self.db.execute_script(
            f"CREATE TABLE IF NOT EXISTS {quote_identifier(self.table)} ("
            "id INTEGER PRIMARY KEY AUTOINCREMENT, level TEXT NOT NULL,"
            " message TEXT NOT NULL, file TEXT, line INTEGER,"
            " timestamp INTEGER NOT NULL, code INTEGER)"
        )
        self._ready = True

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == "llama.data" or record.name.startswith("llama.data."):
            return False
        return bool(super().filter(record))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._ensure_table()
            event = LogEvent.from_record(record, self.format(record))
            self.db.insert(self.table, asdict(event))
        except Exception:
            self.handleError(record)

    def events(self) -> list[LogEvent]:
        """Every stored event, oldest first."""
        self._ensure_table()
        records = self.db.select(self.table, order_by="id")
        return [
            LogEvent(**{k: v for k, v in row.items() if k != "id"})
            for row in records
        ]


def configure_logging(config: AppConfig) -> logging.Logger:
    """Apply ``config.log_level`` to the ``llama`` logger and return it.

    Handlers are left to the host application.
    """
    logger = logging.getLogger("llama")
    level = logging.getLevelName(str(config.log_level).upper())
    logger.setLevel(level if isinstance(level, int) else logging.INFO)
    return logger
