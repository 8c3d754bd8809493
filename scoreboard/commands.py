"""Controller operations on the shared match.

Each operation is one atomic store mutation followed by a publish, done
after the state lock is released.
"""
import logging

from pydantic import ValidationError

from . import clock
from .broadcaster import Broadcaster
from .clock import ClockOffset
from .state import MatchState, StateStore, UpdateRequest
from .utils import resolve_short

logger = logging.getLogger(__name__)

TEAMS = ("home", "away")


class MatchController:
    def __init__(self, store: StateStore, broadcaster: Broadcaster):
        self.store = store
        self.broadcaster = broadcaster

    def _commit(self, fn) -> MatchState:
        self.store.mutate(fn)
        self.broadcaster.publish()
        return self.store.read()

    # --- Fields ---
    def update_fields(self, request: UpdateRequest) -> MatchState:
        changes = request.model_dump(exclude_unset=True, exclude_none=True)

        def apply(state: MatchState, offset: ClockOffset):
            for side in TEAMS:
                short = changes.pop(f"{side}_short", None)
                name_changed = f"{side}_name" in changes
                for key in ("name", "logo", "score"):
                    field = f"{side}_{key}"
                    if field in changes:
                        setattr(state, field, changes.pop(field))
                if short is not None or name_changed:
                    setattr(state, f"{side}_short", resolve_short(short, getattr(state, f"{side}_name")))
            for field in ("primary_color", "secondary_color"):
                value = changes.pop(field, "")
                if value:
                    setattr(state, field, value)
            for field, value in changes.items():
                setattr(state, field, value)

        return self._commit(apply)

    def adjust_score(self, team: str, delta: int) -> MatchState:
        if team not in TEAMS:
            raise ValueError(f"unknown team: {team!r}")
        field = f"{team}_score"

        def apply(state: MatchState, offset: ClockOffset):
            setattr(state, field, max(0, getattr(state, field) + delta))

        return self._commit(apply)

    # --- Clock ---
    def start(self) -> MatchState:
        now = self.store.now()

        def apply(state: MatchState, offset: ClockOffset):
            # The displayed timer is the seed, so an edited or imported value wins.
            elapsed = clock.parse_timer(state.timer) if state.timer else offset.elapsed_seconds
            offset.start_at(now, elapsed)
            if state.half <= 0:
                state.half = 1
            state.running = True
            state.timer = clock.format_timer(elapsed)

        return self._commit(apply)

    def pause(self) -> MatchState:
        now = self.store.now()

        def apply(state: MatchState, offset: ClockOffset):
            elapsed = clock.elapsed_now(offset, now)
            offset.stop_at(elapsed)
            state.running = False
            state.timer = clock.format_timer(elapsed)

        return self._commit(apply)

    def reset(self) -> MatchState:
        def apply(state: MatchState, offset: ClockOffset):
            offset.stop_at(0)
            state.running = False
            state.timer = "00:00"
            state.half = 1

        return self._commit(apply)

    def swap_sides(self) -> MatchState:
        def apply(state: MatchState, offset: ClockOffset):
            state.sides_flipped = not state.sides_flipped

        return self._commit(apply)

    def start_second_half(self) -> MatchState:
        now = self.store.now()

        def apply(state: MatchState, offset: ClockOffset):
            state.sides_flipped = not state.sides_flipped
            state.half = 2
            elapsed = max(clock.elapsed_now(offset, now), clock.cap(1, state.half_length))
            offset.start_at(now, elapsed)
            state.running = True
            state.timer = clock.format_timer(elapsed)

        return self._commit(apply)

    # --- Whole record ---
    def replace_state(self, new_state: MatchState) -> MatchState:
        self.store.replace(new_state)
        self.broadcaster.publish()
        return self.store.read()

    # --- WebSocket commands ---
    def handle_message(self, msg) -> bool:
        """Apply a controller message such as {"type": "score_delta", "team": "home", "delta": 1}.

        Returns False, without touching the state, for anything unrecognised or malformed.
        """
        if not isinstance(msg, dict):
            logger.warning("Ignoring non-object message: %r", msg)
            return False
        mtype = msg.get("type")
        try:
            if mtype == "update":
                self.update_fields(UpdateRequest.model_validate(msg.get("data") or {}))
            elif mtype == "score_delta":
                self.adjust_score(msg.get("team"), int(msg.get("delta", 0)))
            elif mtype in self._simple_commands:
                getattr(self, self._simple_commands[mtype])()
            else:
                logger.warning("Ignoring unknown message type: %r", mtype)
                return False
        except (ValidationError, ValueError, TypeError, OverflowError) as exc:
            logger.warning("Rejected %r message: %s", mtype, exc)
            return False
        return True

    _simple_commands = {
        "start": "start",
        "pause": "pause",
        "reset": "reset",
        "swap_sides": "swap_sides",
        "second_half": "start_second_half",
    }
