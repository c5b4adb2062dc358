"""Opt-in hot path profiling, enabled with the JSONBUF_PROFILE variable."""

from __future__ import annotations

import os
import time
from dataclasses import dataclass
from typing import Any

PROFILE_HOT_PATHS = __debug__ and "JSONBUF_PROFILE" in os.environ


@dataclass
class HotPathStats:
    """
    Per-function counters for the writer's hot paths.

    ``chars_in`` counts source characters handed to the function and
    ``chars_out`` the JSON text it produced. Calls that raised are counted
    in ``failed_calls`` and contribute no output.
    """

    function_name: str
    call_count: int = 0
    failed_calls: int = 0
    total_time_ns: int = 0
    chars_in: int = 0
    chars_out: int = 0

    def record_call(
        self,
        duration_ns: int,
        chars_in: int = 0,
        chars_out: int = 0,
        *,
        failed: bool = False,
    ) -> None:
        self.call_count += 1
        self.total_time_ns += duration_ns
        self.chars_in += chars_in
        if failed:
            self.failed_calls += 1
        else:
            self.chars_out += chars_out

    @property
    def expansion(self) -> float:
        """Output characters per input character, 0.0 before any input."""
        if not self.chars_in:
            return 0.0
        return self.chars_out / self.chars_in


_stats: dict[str, HotPathStats] = {}


class ProfileContext:
    """
    Times one hot path call and records what it wrote.

    The body reports its output through ``emitted``, which returns the text
    unchanged so it can wrap a return expression.
    """

    __slots__ = ("chars_in", "chars_out", "name", "started")

    def __init__(self, name: str, chars_in: int = 0) -> None:
        self.name = name
        self.chars_in = chars_in
        self.chars_out = 0
        self.started = 0

    def emitted(self, text: str) -> str:
        self.chars_out += len(text)
        return text

    def __enter__(self) -> ProfileContext:
        if PROFILE_HOT_PATHS:
            self.started = time.perf_counter_ns()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if not PROFILE_HOT_PATHS:
            return
        stats = _stats.get(self.name)
        if stats is None:
            stats = _stats[self.name] = HotPathStats(self.name)
        stats.record_call(
            time.perf_counter_ns() - self.started,
            self.chars_in,
            self.chars_out,
            failed=exc_type is not None,
        )


def get_hot_path_stats() -> dict[str, HotPathStats]:
    """Returns a copy of the collected statistics, empty when disabled."""
    return dict(_stats)


def clear_hot_path_stats() -> None:
    _stats.clear()
