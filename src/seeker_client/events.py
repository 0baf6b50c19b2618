from __future__ import annotations

import logging
import traceback
from datetime import datetime
from types import TracebackType
from typing import Any, Dict, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field

ExcInfo = Tuple[Type[BaseException], BaseException, Optional[TracebackType]]

# Attributes every LogRecord carries; anything else arrived through `extra=`.
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.NOTSET, "", 0, "", None, None)).keys()
) | {"message", "asctime"}


class ExceptionInfo(BaseModel):
    """Exception details captured from a log record."""

    model_config = ConfigDict(frozen=True)

    type: str
    message: str = ""
    method: str = ""
    stack_trace: str = ""

    @classmethod
    def from_exc_info(cls, exc_info: ExcInfo) -> "ExceptionInfo":
        exc_type, exc, tb = exc_info
        method = ""
        if tb is not None:
            frames = traceback.extract_tb(tb)
            if frames:
                method = frames[-1].name
        return cls(
            type=_qualified_name(exc_type),
            message=str(exc),
            method=method,
            stack_trace="".join(traceback.format_tb(tb)).rstrip() if tb else "",
        )


class LogEvent(BaseModel):
    """LogEvent is the read-only record handed to the formatter and shipper."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=datetime.now)
    level: str
    message: str = ""
    logger_name: str = ""
    exception: Optional[ExceptionInfo] = None
    properties: Dict[str, Any] = Field(default_factory=dict)
    process_id: Optional[int] = None
    thread_id: Optional[int] = None
    thread_name: Optional[str] = None

    @classmethod
    def from_record(cls, record: logging.LogRecord) -> "LogEvent":
        """Build an event from a stdlib LogRecord."""
        exception = None
        if record.exc_info and record.exc_info[0] is not None:
            exception = ExceptionInfo.from_exc_info(record.exc_info)

        extras = {
            k: v
            for k, v in vars(record).items()
            if k not in _RECORD_ATTRS and not k.startswith("_")
        }

        return cls(
            timestamp=datetime.fromtimestamp(record.created),
            level=record.levelname,
            message=record.getMessage(),
            logger_name=record.name,
            exception=exception,
            properties=extras,
            process_id=record.process,
            thread_id=record.thread,
            thread_name=record.threadName,
        )


def _qualified_name(exc_type: Type[BaseException]) -> str:
    module = exc_type.__module__
    if module in ("builtins", "__main__"):
        return exc_type.__qualname__
    return f"{module}.{exc_type.__qualname__}"
