"""Match clock arithmetic.

Elapsed time is always derived from the time source and the start instant of
the running segment; ``elapsed_seconds`` is only a checkpoint taken when the
clock stops or is re-seeded.
"""

import re
from dataclasses import dataclass
from typing import Optional

_TIMER_RE = re.compile(r"(\d+):(\d+)", re.ASCII)


@dataclass
class ClockOffset:
    elapsed_seconds: int = 0
    start_instant: Optional[float] = None  # None while stopped

    @property
    def running(self) -> bool:
        return self.start_instant is not None

    def start_at(self, now: float, elapsed: int) -> None:
        """Begin a running segment so that ``elapsed`` seconds have already passed."""
        self.elapsed_seconds = elapsed
        self.start_instant = now - elapsed

    def stop_at(self, elapsed: int) -> None:
        self.elapsed_seconds = elapsed
        self.start_instant = None


def elapsed_now(offset: ClockOffset, now: float) -> int:
    if not offset.running:
        return offset.elapsed_seconds
    return int(max(0.0, now - offset.start_instant))


def cap(half: int, half_length: int) -> int:
    """Running-time limit for the given half, cumulative across halves.

    Non-positive half lengths give a zero cap, so the clock stops at once.
    """
    minutes = half_length * 120 if half >= 2 else half_length * 60
    return max(0, minutes)


def format_timer(seconds: int) -> str:
    minutes, secs = divmod(seconds, 60)
    return f"{minutes:02d}:{secs:02d}"


def parse_timer(timer) -> int:
    """Parse ``MM:SS`` into seconds; anything malformed reads as 0."""
    if not isinstance(timer, str):
        return 0
    match = _TIMER_RE.fullmatch(timer)
    if not match:
        return 0
    minutes, secs = int(match.group(1)), int(match.group(2))
    if secs >= 60:
        return 0
    return minutes * 60 + secs
