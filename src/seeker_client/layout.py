"""
Minimal template language for rendering event fields.

A template is literal text with placeholders of the form ``${name}`` or
``${name:option=value:option2=value}``. Option values may contain ``\\:`` to
embed a colon. Every renderer accepts ``uppercase=true`` and
``lowercase=true``.
"""

from __future__ import annotations

import socket
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, List, Mapping, Tuple, Union

from seeker_client.events import LogEvent


class TemplateError(ValueError):
    """Raised when a template cannot be compiled."""


RenderFunc = Callable[[LogEvent, Mapping[str, str]], str]

_CASE_OPTIONS = frozenset({"uppercase", "lowercase"})

_EXCEPTION_PARTS = {
    "type": lambda e: e.type,
    "message": lambda e: e.message,
    "method": lambda e: e.method,
    "stacktrace": lambda e: e.stack_trace,
    "tostring": lambda e: f"{e.type}: {e.message}\n{e.stack_trace}".rstrip(),
}


def _longdate(event: LogEvent, opts: Mapping[str, str]) -> str:
    ts = event.timestamp
    return f"{ts:%Y-%m-%d %H:%M:%S}.{ts.microsecond // 100:04d}"


def _shortdate(event: LogEvent, opts: Mapping[str, str]) -> str:
    return f"{event.timestamp:%Y-%m-%d}"


def _date(event: LogEvent, opts: Mapping[str, str]) -> str:
    fmt = opts.get("format")
    if fmt:
        return event.timestamp.strftime(fmt)
    return event.timestamp.isoformat()


def _exception(event: LogEvent, opts: Mapping[str, str]) -> str:
    if event.exception is None:
        return ""
    sep = opts.get("separator", " ")
    parts = []
    for token in _split_format(opts.get("format", "Message")):
        text = _EXCEPTION_PARTS[token](event.exception)
        if text:
            parts.append(text)
    return sep.join(parts)


def _event_property(event: LogEvent, opts: Mapping[str, str]) -> str:
    value = event.properties.get(opts["item"])
    if value is None:
        return ""
    return str(value)


def _optional(value: object) -> str:
    return "" if value is None else str(value)


@dataclass(frozen=True)
class _Renderer:
    func: RenderFunc
    options: FrozenSet[str] = frozenset()
    required: FrozenSet[str] = frozenset()


_REGISTRY: Dict[str, _Renderer] = {
    "longdate": _Renderer(_longdate),
    "shortdate": _Renderer(_shortdate),
    "date": _Renderer(_date, frozenset({"format"})),
    "level": _Renderer(lambda e, o: e.level),
    "message": _Renderer(lambda e, o: e.message),
    "logger": _Renderer(lambda e, o: e.logger_name),
    "exception": _Renderer(_exception, frozenset({"format", "separator"})),
    "event-properties": _Renderer(
        _event_property, frozenset({"item"}), frozenset({"item"})
    ),
    "processid": _Renderer(lambda e, o: _optional(e.process_id)),
    "threadid": _Renderer(lambda e, o: _optional(e.thread_id)),
    "threadname": _Renderer(lambda e, o: _optional(e.thread_name)),
    "machinename": _Renderer(lambda e, o: socket.gethostname()),
    "literal": _Renderer(lambda e, o: o.get("text", ""), frozenset({"text"})),
}


def renderer_names() -> List[str]:
    return sorted(_REGISTRY)


def _split_format(value: str) -> List[str]:
    return [t.strip().lower() for t in value.split(",") if t.strip()]


def _parse_bool(name: str, value: str) -> bool:
    v = value.strip().lower()
    if v == "true":
        return True
    if v == "false":
        return False
    raise TemplateError(f"option {name!r} expects true or false, got {value!r}")


def _split_options(body: str) -> List[str]:
    """Split on unescaped colons."""
    out: List[str] = []
    cur: List[str] = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\\" and i + 1 < len(body) and body[i + 1] == ":":
            cur.append(":")
            i += 2
            continue
        if ch == ":":
            out.append("".join(cur))
            cur = []
        else:
            cur.append(ch)
        i += 1
    out.append("".join(cur))
    return out


@dataclass(frozen=True)
class _Placeholder:
    name: str
    renderer: _Renderer
    options: Tuple[Tuple[str, str], ...]
    uppercase: bool = False
    lowercase: bool = False

    def render(self, event: LogEvent) -> str:
        text = self.renderer.func(event, dict(self.options))
        if self.uppercase:
            return text.upper()
        if self.lowercase:
            return text.lower()
        return text


def _compile_placeholder(body: str) -> _Placeholder:
    pieces = _split_options(body)
    name = pieces[0].strip().lower()
    renderer = _REGISTRY.get(name)
    if renderer is None:
        raise TemplateError(f"unknown renderer: {name!r}")

    options: Dict[str, str] = {}
    for raw in pieces[1:]:
        if "=" not in raw:
            raise TemplateError(f"malformed option {raw!r} in ${{{body}}}")
        k, v = raw.split("=", 1)
        k = k.strip().lower()
        if k not in renderer.options and k not in _CASE_OPTIONS:
            raise TemplateError(f"renderer {name!r} does not accept option {k!r}")
        options[k] = v

    missing = renderer.required - options.keys()
    if missing:
        raise TemplateError(
            f"renderer {name!r} requires option(s): {', '.join(sorted(missing))}"
        )

    if name == "exception" and "format" in options:
        unknown = [t for t in _split_format(options["format"]) if t not in _EXCEPTION_PARTS]
        if unknown:
            raise TemplateError(f"unknown exception format(s): {', '.join(unknown)}")

    uppercase = _parse_bool("uppercase", options.pop("uppercase", "false"))
    lowercase = _parse_bool("lowercase", options.pop("lowercase", "false"))

    return _Placeholder(
        name=name,
        renderer=renderer,
        options=tuple(options.items()),
        uppercase=uppercase,
        lowercase=lowercase,
    )


Part = Union[str, _Placeholder]


def _parse(source: str) -> Tuple[Part, ...]:
    parts: List[Part] = []
    literal: List[str] = []
    i = 0
    while i < len(source):
        start = source.find("${", i)
        if start < 0:
            literal.append(source[i:])
            break
        end = source.find("}", start + 2)
        if end < 0:
            # unterminated placeholder stays literal
            literal.append(source[i:])
            break
        nested = source.find("${", start + 2, end)
        if nested >= 0:
            # a stray "${" before the real placeholder stays literal
            literal.append(source[i:nested])
            i = nested
            continue
        literal.append(source[i:start])
        text = "".join(literal)
        if text:
            parts.append(text)
        literal = []
        parts.append(_compile_placeholder(source[start + 2 : end]))
        i = end + 1
    text = "".join(literal)
    if text:
        parts.append(text)
    return tuple(parts)


class Template:
    """A compiled template. Immutable and safe to share between threads."""

    __slots__ = ("source", "_parts")

    def __init__(self, source: str) -> None:
        self.source = source
        self._parts = _parse(source)

    @property
    def is_literal(self) -> bool:
        return all(isinstance(p, str) for p in self._parts)

    def render(self, event: LogEvent) -> str:
        return "".join(
            p if isinstance(p, str) else p.render(event) for p in self._parts
        )

    def __repr__(self) -> str:
        return f"Template({self.source!r})"
