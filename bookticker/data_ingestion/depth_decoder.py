"""
Depth stream message decoding.

Binance diff-depth payload:
    {"e": "depthUpdate", "E": 1700000000000, "s": "BTCUSDT",
     "b": [["100.00000000", "1.5"], ...], "a": [["101.00000000", "0.00000000"], ...]}

A missing "b" or "a" is an empty update list for that side. Prices and
quantities stay as wire strings here; the order book parses them.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Tuple, Union

from .errors import DecodeError

Entry = Tuple[str, str]


@dataclass(frozen=True)
class DepthDelta:
    """One decoded depth update"""
    event_type: str = ""
    event_time: int = 0
    symbol: str = ""
    bids: Tuple[Entry, ...] = field(default_factory=tuple)
    asks: Tuple[Entry, ...] = field(default_factory=tuple)

    def is_empty(self) -> bool:
        return not self.bids and not self.asks


def _string_field(data: dict, key: str) -> str:
    value = data.get(key, "")
    if not isinstance(value, str):
        raise DecodeError(f"Field {key!r} must be a string, got {type(value).__name__}")
    return value


def _event_time(data: dict) -> int:
    value = data.get("E", 0)
    # bool is an int subclass but never a valid timestamp
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(f"Field 'E' must be an integer, got {value!r}")
    return value


def _entries(data: dict, key: str) -> Tuple[Entry, ...]:
    raw = data.get(key)
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise DecodeError(f"Field {key!r} must be a list, got {type(raw).__name__}")

    entries = []
    for index, entry in enumerate(raw):
        if (not isinstance(entry, list) or len(entry) != 2
                or not all(isinstance(part, str) for part in entry)):
            raise DecodeError(f"Entry {key}[{index}] must be [price, quantity] strings, got {entry!r}")
        entries.append((entry[0], entry[1]))
    return tuple(entries)


def decode_depth_message(raw: Union[bytes, str]) -> DepthDelta:
    """
    Parse one raw depth message.

    Raises DecodeError on invalid JSON or a malformed envelope; callers skip
    the frame and keep the connection.
    """
    try:
        data: Any = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise DecodeError(f"Expected a JSON object, got {type(data).__name__}")

    return DepthDelta(
        event_type=_string_field(data, "e"),
        event_time=_event_time(data),
        symbol=_string_field(data, "s"),
        bids=_entries(data, "b"),
        asks=_entries(data, "a")
    )
