"""
stdlib logging handlers that ship records to a Seeker collector.

Both handlers work with ``logging.config.dictConfig``::

    "seeker": {
        "class": "seeker_client.handler.SeekerBufferingHandler",
        "server_url": "http://seeker.local:5000",
        "properties": [{"name": "app", "value": "billing"}],
        "capacity": 50,
    }
"""

from __future__ import annotations

import logging
import logging.handlers
from typing import Any, Iterable, List, Optional, Union

import httpx

from seeker_client.events import LogEvent
from seeker_client.models import TargetConfig
from seeker_client.shipper import HttpShipper

log = logging.getLogger(__name__)

# Records from these loggers would be produced by shipping itself.
_IGNORED_LOGGERS = ("seeker_client", "httpx", "httpcore")


class FeedbackFilter(logging.Filter):
    """Drops records emitted by this package or the HTTP stack."""

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        return not any(name == p or name.startswith(p + ".") for p in _IGNORED_LOGGERS)


def _build_config(
    config: Union[TargetConfig, dict, None],
    server_url: Optional[str],
    properties: Optional[Iterable[Any]],
    timeout_seconds: Optional[float],
) -> TargetConfig:
    if isinstance(config, TargetConfig):
        return config
    if config is not None:
        return TargetConfig.model_validate(config)
    return TargetConfig(
        server_url=server_url,
        properties=list(properties or []),
        timeout_seconds=timeout_seconds,
    )


def _to_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).upper())
    if not isinstance(value, int):
        raise ValueError(f"unknown level: {level!r}")
    return value


def _records_to_events(records: Iterable[logging.LogRecord]) -> List[LogEvent]:
    events = []
    for record in records:
        try:
            events.append(LogEvent.from_record(record))
        except Exception:
            # same policy as a failed send: the record is dropped
            continue
    return events


class SeekerHandler(logging.Handler):
    """Ships every record immediately as a single JSON object."""

    def __init__(
        self,
        server_url: Optional[str] = None,
        properties: Optional[Iterable[Any]] = None,
        timeout_seconds: Optional[float] = None,
        *,
        config: Union[TargetConfig, dict, None] = None,
        client: Optional[httpx.Client] = None,
        level: Union[int, str] = logging.NOTSET,
    ) -> None:
        cfg = _build_config(config, server_url, properties, timeout_seconds)
        super().__init__(_to_level(level))
        self.config = cfg
        self.shipper = HttpShipper(self.config, client=client)
        self.addFilter(FeedbackFilter())
        if not self.config.enabled:
            log.debug("seeker_handler_disabled reason=no_server_url")

    def emit(self, record: logging.LogRecord) -> None:
        if not self.config.enabled:
            return
        for event in _records_to_events([record]):
            self.shipper.send_log(event)

    def close(self) -> None:
        try:
            self.shipper.close()
        finally:
            super().close()


class SeekerBufferingHandler(logging.handlers.BufferingHandler):
    """
    Buffers records and ships them as one JSON array.

    The buffer is flushed when it reaches ``capacity``, when a record at or
    above ``flush_level`` arrives, and when the handler is closed.
    """

    def __init__(
        self,
        server_url: Optional[str] = None,
        properties: Optional[Iterable[Any]] = None,
        timeout_seconds: Optional[float] = None,
        capacity: int = 100,
        flush_level: Union[int, str] = logging.ERROR,
        *,
        config: Union[TargetConfig, dict, None] = None,
        client: Optional[httpx.Client] = None,
        level: Union[int, str] = logging.NOTSET,
    ) -> None:
        cfg = _build_config(config, server_url, properties, timeout_seconds)
        flush_at = _to_level(flush_level)
        handler_level = _to_level(level)
        super().__init__(capacity)
        self.setLevel(handler_level)
        self.flush_level = flush_at
        self.config = cfg
        self.shipper = HttpShipper(self.config, client=client)
        self.addFilter(FeedbackFilter())
        if not self.config.enabled:
            log.debug("seeker_buffering_handler_disabled reason=no_server_url")

    def shouldFlush(self, record: logging.LogRecord) -> bool:
        return len(self.buffer) >= self.capacity or record.levelno >= self.flush_level

    def flush(self) -> None:
        self.acquire()
        try:
            if not self.buffer:
                return
            records = self.buffer
            self.buffer = []
            self.shipper.send_logs(_records_to_events(records))
        finally:
            self.release()

    def close(self) -> None:
        try:
            super().close()
        finally:
            self.shipper.close()
