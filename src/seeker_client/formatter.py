from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from seeker_client.events import LogEvent
from seeker_client.layout import Template
from seeker_client.models import PropertyDefinition

_TIMESTAMP = Template("${longdate}")
_LEVEL = Template("${level:uppercase=true}")
_MESSAGE = Template("${message}")
_EXCEPTION_TYPE = Template("${exception:format=Type}")
_EXCEPTION_MESSAGE = Template("${exception:format=Message,Method,StackTrace}")


class EventFormatter:
    """
    Renders a LogEvent into the JSON object the collector expects.

    Attribute order is fixed: timestamp, level, message, exception, properties.
    ``exception`` is left out for events without one and ``properties`` is left
    out when no property definitions are configured.
    """

    def __init__(self, properties: Optional[Iterable[PropertyDefinition]] = None) -> None:
        props = list(properties or ())
        names = [p.name for p in props]
        if len(set(names)) != len(names):
            dupes = sorted({n for n in names if names.count(n) > 1})
            raise ValueError(f"duplicate property name(s): {', '.join(dupes)}")
        self._properties: Tuple[Tuple[str, Template], ...] = tuple(
            (p.name, Template(p.value)) for p in props
        )

    @property
    def property_names(self) -> List[str]:
        return [name for name, _ in self._properties]

    def to_dict(self, event: LogEvent) -> Dict[str, Any]:
        doc: Dict[str, Any] = {
            "timestamp": _TIMESTAMP.render(event),
            "level": _LEVEL.render(event),
            "message": _MESSAGE.render(event),
        }
        if event.exception is not None:
            doc["exception"] = {
                "type": _EXCEPTION_TYPE.render(event),
                "message": _EXCEPTION_MESSAGE.render(event),
            }
        if self._properties:
            doc["properties"] = {
                name: template.render(event) for name, template in self._properties
            }
        return doc

    def render(self, event: LogEvent) -> str:
        return json.dumps(self.to_dict(event), ensure_ascii=False, separators=(",", ":"))

    def render_batch(self, events: Sequence[LogEvent]) -> str:
        return "[" + ",".join(self.render(e) for e in events) + "]"


class SeekerJsonFormatter(logging.Formatter):
    """logging.Formatter that emits the collector's JSON layout."""

    def __init__(
        self, properties: Optional[Iterable[PropertyDefinition]] = None
    ) -> None:
        super().__init__()
        self.event_formatter = EventFormatter(properties)

    def format(self, record: logging.LogRecord) -> str:
        return self.event_formatter.render(LogEvent.from_record(record))
