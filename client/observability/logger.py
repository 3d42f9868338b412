"""
Event logger.

- Write one line per event (JSONL by default, plain key=value optionally)
- Output to stdout
- No buffering, no batching
- No side effects beyond logging
"""

from __future__ import annotations

import json
import sys
import time
from typing import Any, Mapping, Callable


# ------------------------------------------------------------------
# Explicit output sink (patchable in tests)
# ------------------------------------------------------------------

def _stdout_print(line: str) -> None:
    sys.stdout.write(line + "\n")
    sys.stdout.flush()

_print: Callable[[str], None] = _stdout_print

_json_lines: bool = True


def configure(*, json_lines: bool) -> None:
    """
    Select the output format.

    Called once by the CLI after configuration is loaded.
    """
    global _json_lines  # pylint: disable=global-statement
    _json_lines = json_lines


def now_ms() -> int:
    """Wall-clock milliseconds for event timestamps."""
    return time.time_ns() // 1_000_000


def log_event(event: Mapping[str, Any]) -> None:
    """
    Write a single event line to stdout.

    The caller supplies a fully-formed event dict including
    event_type; ts_ms is filled in when missing.

    This function:
    - Serializes the event
    - Writes exactly one line
    - Flushes immediately (no buffering)
    - Never raises
    """
    if "ts_ms" not in event:
        event = {"ts_ms": now_ms(), **event}

    if _json_lines:
        line = _format_json(event)
    else:
        line = _format_plain(event)

    _print(line)


def _format_json(event: Mapping[str, Any]) -> str:
    try:
        return json.dumps(event, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        # Last-resort fallback: logging must never crash the client
        fallback: dict[str, Any] = {
            "ts_ms": event.get("ts_ms"),
            "event_type": "LOGGER_SERIALIZATION_ERROR",
            "error": str(e),
            "original_event_repr": repr(event),
        }
        return json.dumps(fallback, ensure_ascii=False, separators=(",", ":"))


def _format_plain(event: Mapping[str, Any]) -> str:
    fields = " ".join(
        f"{key}={value}"
        for key, value in event.items()
        if key not in ("event_type", "ts_ms")
    )
    event_type = str(event.get("event_type", "EVENT"))
    return f"{event_type} {fields}".rstrip()
