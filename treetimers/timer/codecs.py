"""String codecs for the values kept in the key-value store.

Formats
-------
text           JSON-quoted string             ``"Work"``
duration       integer milliseconds           ``3600000``
timestamp      ISO-8601, or ``"undefined"``   ``2024-05-01T09:30:00.250000``
id list        JSON array of strings          ``["5f0c...", "9a1e..."]``
flag           JSON boolean                   ``true``
child running  JSON-quoted id, ``"__NONE__"`` or ``"undefined"``

``parse`` raises :class:`ValueError` on input it cannot read; turning that
into a default is the repository's job.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Generic, TypeVar

T = TypeVar("T")

UNDEFINED = "undefined"
_UNDEFINED_FORMS = (UNDEFINED, json.dumps(UNDEFINED))
_MS = timedelta(milliseconds=1)


@dataclass(frozen=True)
class Codec(Generic[T]):
    stringify: Callable[[T], str]
    parse: Callable[[str], T]


# ── text ──────────────────────────────────────────────────────────────────


def _parse_text(value: str) -> str:
    result = json.loads(value)
    if not isinstance(result, str):
        raise ValueError(f"expected a JSON string, got {value!r}")
    return result


TEXT: Codec[str] = Codec(json.dumps, _parse_text)


# ── duration ──────────────────────────────────────────────────────────────


def duration_to_ms(value: timedelta) -> int:
    return round(value / _MS)


def _stringify_duration(value: timedelta) -> str:
    return str(duration_to_ms(value))


def _parse_duration(value: str) -> timedelta:
    return timedelta(milliseconds=int(value.strip(), 10))


DURATION: Codec[timedelta] = Codec(_stringify_duration, _parse_duration)


# ── optional timestamp ────────────────────────────────────────────────────


def _stringify_timestamp(value: datetime | None) -> str:
    if value is None:
        return json.dumps(UNDEFINED)
    return value.isoformat()


def _parse_timestamp(value: str) -> datetime | None:
    value = value.strip()
    if value in _UNDEFINED_FORMS:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    result = datetime.fromisoformat(value)
    if result.tzinfo is not None:
        # Run segments are measured against the naive local clock.
        result = result.astimezone().replace(tzinfo=None)
    return result


MAYBE_TIMESTAMP: Codec[datetime | None] = Codec(_stringify_timestamp, _parse_timestamp)


# ── id list ───────────────────────────────────────────────────────────────


def _stringify_ids(value: list[str] | tuple[str, ...]) -> str:
    return json.dumps(list(value))


def _parse_ids(value: str) -> tuple[str, ...]:
    result = json.loads(value)
    if not isinstance(result, list) or not all(isinstance(i, str) for i in result):
        raise ValueError(f"expected a JSON array of strings, got {value!r}")
    return tuple(result)


ID_LIST: Codec[tuple[str, ...]] = Codec(_stringify_ids, _parse_ids)


# ── flag ──────────────────────────────────────────────────────────────────


def _parse_flag(value: str) -> bool:
    result = json.loads(value)
    if not isinstance(result, bool):
        raise ValueError(f"expected a JSON boolean, got {value!r}")
    return result


FLAG: Codec[bool] = Codec(json.dumps, _parse_flag)


# ── child running (tri-state) ─────────────────────────────────────────────


def _stringify_child(value: str | None) -> str:
    return json.dumps(UNDEFINED if value is None else value)


def _parse_child(value: str) -> str | None:
    if value.strip() in _UNDEFINED_FORMS:
        return None
    result = _parse_text(value)
    return None if result == UNDEFINED else result


CHILD_RUNNING: Codec[str | None] = Codec(_stringify_child, _parse_child)
