"""Root logger setup for catalog processes.

Everything goes to one stream handler (stdout unless told otherwise). JSON
lines carry the bound log context as top-level keys; plain lines append it in
brackets.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any, TextIO

from packages.catalog_shared.config import LoggingSettings

from . import fields
from .context import bind_context, get_context


class JsonLineFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            fields.TIMESTAMP: datetime.fromtimestamp(record.created, UTC).isoformat(),
            fields.LEVEL: record.levelname,
            fields.LOGGER: record.name,
            fields.MESSAGE: record.getMessage(),
            **get_context(),
        }
        if record.exc_info and record.exc_info[0] is not None:
            payload[fields.EXCEPTION] = self.formatException(record.exc_info)
            payload[fields.EXCEPTION_TYPE] = record.exc_info[0].__name__
        return json.dumps(payload, default=str)


class PlainFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__(fmt="%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = get_context()
        if not context:
            return line
        pairs = " ".join(f"{key}={context[key]}" for key in sorted(context))
        return f"{line} [{pairs}]"


def configure_logging(
    settings: LoggingSettings | None = None, *, stream: TextIO | None = None
) -> logging.Handler:
    """Install the catalog handler on the root logger and return it.

    Handlers already on the root logger are removed first. ``service`` and
    ``environment`` are bound into the log context of the calling task.
    """
    settings = settings or LoggingSettings()
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(
        JsonLineFormatter() if settings.json_output else PlainFormatter()
    )

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(settings.level)

    bind_context(
        **{fields.SERVICE: settings.service, fields.ENVIRONMENT: settings.environment}
    )
    return handler
