"""
diddoc logging helpers

Library modules log through ``logging.getLogger(__name__)`` and never attach
handlers themselves. Applications (and the CLI) call ``configure_logging``
to route the ``diddoc`` logger hierarchy either to plain text or to one JSON
object per record via ``StructuredHandler``.

Extra fields understood by the structured handler:
    operation   short name of the operation being logged
    context     dict of structured data
"""

from __future__ import annotations

import json
import logging
import sys
import traceback
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

ROOT_LOGGER = "diddoc"


@dataclass
class LogEvent:
    """Structured log event."""
    timestamp: str
    level: str
    logger: str
    message: str
    operation: str = ""
    context: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding empty values."""
        d = asdict(self)
        return {k: v for k, v in d.items() if v is not None and v != "" and v != {}}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class StructuredHandler(logging.Handler):
    """Logging handler that outputs structured JSON."""

    def __init__(self, stream: Any = None):
        super().__init__()
        self.stream = stream or sys.stderr

    def emit(self, record: logging.LogRecord) -> None:
        try:
            event = LogEvent(
                timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
                level=record.levelname.lower(),
                logger=record.name,
                message=record.getMessage(),
                operation=getattr(record, "operation", ""),
                context=getattr(record, "context", {}),
            )

            if record.exc_info:
                event.exception = "".join(traceback.format_exception(*record.exc_info))

            self.stream.write(event.to_json() + "\n")
            self.stream.flush()
        except Exception:
            self.handleError(record)


def configure_logging(
    level: str = "warning",
    structured: bool = False,
    stream: Any = None,
) -> logging.Logger:
    """Attach a single handler to the ``diddoc`` logger.

    Calling it again replaces the handler installed by the previous call.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level.upper()))

    for existing in list(logger.handlers):
        if getattr(existing, "_diddoc_managed", False):
            logger.removeHandler(existing)

    if structured:
        handler: logging.Handler = StructuredHandler(stream)
    else:
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    handler._diddoc_managed = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return logger


def log_extra(operation: str, **context: Any) -> Dict[str, Any]:
    """Build the ``extra`` mapping consumed by StructuredHandler."""
    return {"operation": operation, "context": context}
