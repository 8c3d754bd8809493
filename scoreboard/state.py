# Shared match state: the single record every viewer sees.
import threading
import time
from typing import Callable, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .clock import ClockOffset, elapsed_now, format_timer, parse_timer
from .utils import resolve_short

T = TypeVar("T")


# === Models ===
class MatchState(BaseModel):
    """Scoreboard record as sent to viewers (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    home_name: str = "HOME"
    home_logo: str = ""
    home_score: int = 0
    away_name: str = "AWAY"
    away_logo: str = ""
    away_score: int = 0
    timer: str = "00:00"
    running: bool = False
    half_length: int = 45  # minutes
    theme: str = "pill"
    home_short: str = "HOM"
    away_short: str = "AWA"
    primary_color: str = "#1e3a8a"
    secondary_color: str = "#2563eb"
    sides_flipped: bool = False
    half: int = 1

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)


class UpdateRequest(BaseModel):
    """Fields a controller may set directly. Clock fields are deliberately absent."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    home_name: Optional[str] = None
    home_logo: Optional[str] = None
    home_score: Optional[int] = None
    away_name: Optional[str] = None
    away_logo: Optional[str] = None
    away_score: Optional[int] = None
    half_length: Optional[int] = None
    theme: Optional[str] = None
    home_short: Optional[str] = None
    away_short: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None


# === Normalization ===
def normalize(state: MatchState, offset: ClockOffset, now: float) -> None:
    """Restore the record invariants after a whole-record replacement."""
    if state.half <= 0:
        state.half = 1
    state.home_short = resolve_short(state.home_short, state.home_name)
    state.away_short = resolve_short(state.away_short, state.away_name)

    elapsed = parse_timer(state.timer)
    if state.running:
        offset.start_at(now, elapsed)
    else:
        offset.stop_at(elapsed)
    state.timer = format_timer(elapsed)


# === Store ===
class StateStore:
    """Owns the live MatchState and its clock offset behind one lock.

    Callers only ever get copies; every change goes through ``mutate`` or
    ``replace``. The lock is never held while doing I/O.
    """

    def __init__(self, state: Optional[MatchState] = None, clock: Callable[[], float] = time.monotonic):
        self._lock = threading.Lock()
        self._clock = clock
        self._state = MatchState()
        self._offset = ClockOffset()
        if state is not None:
            self.replace(state)

    def now(self) -> float:
        return self._clock()

    def read(self) -> MatchState:
        with self._lock:
            return self._state.model_copy(deep=True)

    def read_json(self) -> str:
        return self.read().to_json()

    def offset(self) -> ClockOffset:
        with self._lock:
            return ClockOffset(self._offset.elapsed_seconds, self._offset.start_instant)

    def elapsed(self) -> int:
        now = self.now()
        with self._lock:
            return elapsed_now(self._offset, now)

    def mutate(self, fn: Callable[[MatchState, ClockOffset], T]) -> T:
        with self._lock:
            return fn(self._state, self._offset)

    def replace(self, new_state: MatchState) -> None:
        state = new_state.model_copy(deep=True)
        now = self.now()
        with self._lock:
            self._state = state
            normalize(self._state, self._offset, now)
