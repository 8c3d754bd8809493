import asyncio
import logging
from typing import Optional

from . import clock
from .broadcaster import Broadcaster
from .clock import ClockOffset
from .state import MatchState, StateStore

logger = logging.getLogger(__name__)


class TimerDriver:
    """Advances the match clock without external commands.

    Polls at a short interval so a start shows up within one tick, but only
    commits and broadcasts when the displayed second changes.
    """

    def __init__(self, store: StateStore, broadcaster: Broadcaster, interval: float = 0.2):
        self.store = store
        self.broadcaster = broadcaster
        self.interval = interval
        self._last_second: Optional[int] = None
        self._was_running = False

    def tick(self) -> bool:
        """Run one polling step; returns True when a broadcast was issued."""
        now = self.store.now()
        changed = self.store.mutate(lambda state, offset: self._advance(state, offset, now))
        if changed:
            self.broadcaster.publish()
        return changed

    def _advance(self, state: MatchState, offset: ClockOffset, now: float) -> bool:
        if not state.running:
            self._last_second = None
            self._was_running = False
            return False

        elapsed = clock.elapsed_now(offset, now)
        limit = clock.cap(state.half, state.half_length)
        stopped = False
        if elapsed >= limit:
            elapsed = limit
            state.running = False
            offset.stop_at(elapsed)
            stopped = True
            logger.info("Half %d reached its limit at %s, clock stopped", state.half, clock.format_timer(elapsed))

        fresh = not self._was_running
        self._was_running = not stopped
        if elapsed == self._last_second and not fresh and not stopped:
            return False

        self._last_second = None if stopped else elapsed
        offset.elapsed_seconds = elapsed
        state.timer = clock.format_timer(elapsed)
        return True

    async def run(self):
        """Tick forever; a failing tick is logged and the loop carries on."""
        logger.info("Timer loop started (every %.0f ms)", self.interval * 1000)
        while True:
            await asyncio.sleep(self.interval)
            try:
                self.tick()
            except Exception:
                logger.exception("Timer tick failed")
