"""
HTTP delivery of formatted events to a Seeker collector.

Delivery is fire-and-forget: every send returns a SendResult instead of
raising, and the handlers in this package discard it. Events sent to an
unreachable or misconfigured collector are dropped.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

import httpx

from seeker_client.events import LogEvent
from seeker_client.formatter import EventFormatter
from seeker_client.models import TargetConfig

API_RESOURCE = "api/v1/logs"
JSON_CONTENT_TYPE = "application/json; charset=utf-8"

SENT = "sent"
SKIPPED = "skipped"
FAILED = "failed"


@dataclass(frozen=True)
class SendResult:
    outcome: str
    event_count: int = 0
    status_code: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome != FAILED

    @classmethod
    def sent(cls, status_code: int, event_count: int) -> "SendResult":
        return cls(SENT, event_count=event_count, status_code=status_code)

    @classmethod
    def skipped(cls, event_count: int = 0) -> "SendResult":
        return cls(SKIPPED, event_count=event_count)

    @classmethod
    def failed(cls, exc: BaseException, event_count: int = 0) -> "SendResult":
        return cls(FAILED, event_count=event_count, error=f"{type(exc).__name__}: {exc}")


def build_target_uri(server_url: str) -> str:
    """Append the logs resource to the server URL, keeping any base path."""
    base = httpx.URL(server_url)
    if base.scheme not in ("http", "https") or not base.host:
        raise ValueError(f"server_url must be an absolute http(s) URL, got: {server_url!r}")
    path = base.path if base.path.endswith("/") else base.path + "/"
    return str(base.copy_with(path=path).join(API_RESOURCE))


class HttpShipper:
    """POSTs one event or a batch of events to ``{server_url}/api/v1/logs``."""

    def __init__(
        self,
        config: TargetConfig,
        formatter: Optional[EventFormatter] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._config = config
        self._formatter = formatter or EventFormatter(config.properties)
        self._owns_client = client is None
        if client is None:
            kwargs = {}
            if config.timeout_seconds is not None:
                kwargs["timeout"] = config.timeout_seconds
            client = httpx.Client(**kwargs)
        self._client = client

    @property
    def config(self) -> TargetConfig:
        return self._config

    @property
    def formatter(self) -> EventFormatter:
        return self._formatter

    def send_log(self, event: LogEvent) -> SendResult:
        """Send a single event as one JSON object."""
        if self._config.server_url is None:
            return SendResult.skipped(1)

        try:
            body = self._formatter.render(event)
            return self._post(body, 1)
        except Exception as e:
            return SendResult.failed(e, 1)

    def send_logs(self, events: Iterable[LogEvent]) -> SendResult:
        """Send events, in order, as one JSON array."""
        if self._config.server_url is None:
            return SendResult.skipped()

        count = 0
        try:
            batch = list(events)
            count = len(batch)
            body = self._formatter.render_batch(batch)
            return self._post(body, count)
        except Exception as e:
            return SendResult.failed(e, count)

    def _post(self, body: str, count: int) -> SendResult:
        uri = build_target_uri(str(self._config.server_url))
        resp = self._client.post(
            uri,
            content=body.encode("utf-8"),
            headers={"Content-Type": JSON_CONTENT_TYPE},
        )
        resp.read()
        return SendResult.sent(resp.status_code, count)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "HttpShipper":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
