"""Best consecutive-lap selection.

An athlete may ride the week's segment more times than required in one
outing. The result that counts is the fastest run of `required` laps in a
row, not the fastest individual laps picked from anywhere in the activity.

    laps      [150, 160, 140], required = 2
    windows   laps 1-2 = 310, laps 2-3 = 300
    selected  laps 2-3 (indices [1, 2]), total 300
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Union

from league.core.constants import REASON_INSUFFICIENT_REPS, REASON_SEGMENT_NOT_FOUND
from league.core.time_utils import seconds_to_mmss
from league.services.upstream import EffortAttempt


@dataclass(frozen=True)
class Rejection:
    reason: str
    detail: str = ""

    def __str__(self) -> str:
        return f"{self.reason}: {self.detail}" if self.detail else self.reason


@dataclass(frozen=True)
class EffortWindow:
    attempts: tuple[EffortAttempt, ...]
    # Positions of the selected laps among ALL matching laps (0-based);
    # shown to users as "laps 2, 3 of 3".
    lap_indices: tuple[int, ...]
    total_seconds: int
    total_available: int

    @property
    def has_personal_record(self) -> bool:
        return any(a.is_personal_record for a in self.attempts)

    def describe(self) -> str:
        laps = ", ".join(str(i + 1) for i in self.lap_indices)
        label = "lap" if len(self.lap_indices) == 1 else "laps"
        return f"{seconds_to_mmss(self.total_seconds)} ({label} {laps} of {self.total_available})"


WindowOutcome = Union[EffortWindow, Rejection]


def select_best_window(attempts: Sequence[EffortAttempt], required: int) -> WindowOutcome:
    """Fastest contiguous run of `required` attempts, or a Rejection.

    `attempts` must already be filtered to the target segment and kept in
    upstream order. Equal totals keep the earliest window.
    """
    if required < 1:
        raise ValueError("required repetitions must be >= 1")

    count = len(attempts)
    if count == 0:
        return Rejection(REASON_SEGMENT_NOT_FOUND)
    if count < required:
        return Rejection(REASON_INSUFFICIENT_REPS, f"found {count}, need {required}")

    times = [a.elapsed_seconds for a in attempts]

    # Sliding sum; the first window is the starting best, later ones replace
    # it only when strictly faster.
    window_total = sum(times[:required])
    best_start, best_total = 0, window_total
    for start in range(1, count - required + 1):
        window_total += times[start + required - 1] - times[start - 1]
        if window_total < best_total:
            best_start, best_total = start, window_total

    return EffortWindow(
        attempts=tuple(attempts[best_start:best_start + required]),
        lap_indices=tuple(range(best_start, best_start + required)),
        total_seconds=best_total,
        total_available=count,
    )
