import logging
from dataclasses import replace
from typing import Iterable, Optional

from scoreboard.clock import Clock, system_clock
from scoreboard.engine import ScoreEngine
from scoreboard.initializer import create_match
from scoreboard.models import MatchConfig, MatchState, Side
from scoreboard.undo import UndoEngine

logger = logging.getLogger(__name__)


class MatchSession:
    """
    Match session controller.

    Responsibilities:
    - Create a fresh match from a rules configuration
    - Delegate scoring and undo to their engines
    - Pause / resume with continuous elapsed time
    - Recompute elapsed time on each tick

    The session holds no match state of its own: every call takes the
    caller's current MatchState and returns the next one.
    """

    def __init__(
        self,
        clock: Clock = system_clock,
        engine: Optional[ScoreEngine] = None,
        undo_engine: Optional[UndoEngine] = None,
    ):
        self._clock = clock
        self._engine = engine or ScoreEngine(clock)
        self._undo_engine = undo_engine or UndoEngine(clock)

    # ---------------------------------------------------------
    # Core API
    # ---------------------------------------------------------

    def create(self, config: MatchConfig, match_id: Optional[str] = None) -> MatchState:
        return create_match(config, self._clock(), match_id=match_id)

    def score_point(self, state: MatchState, side: Side) -> MatchState:
        return self._engine.add_point(state, side)

    def undo(self, state: MatchState) -> MatchState:
        return self._undo_engine.undo(state)

    def toggle_pause(self, state: MatchState) -> MatchState:
        if state.is_match_over:
            return state

        if state.is_paused:
            now = self._clock()
            logger.info("Resuming match after %ds", state.duration_seconds)
            # Shift the start so that now - start == accumulated duration.
            return replace(
                state,
                is_paused=False,
                start_time=now - state.duration_seconds * 1000,
            )

        logger.info("Pausing match at %ds", state.duration_seconds)
        return replace(state, is_paused=True)

    def tick(self, state: MatchState) -> MatchState:
        if state.is_paused or state.is_match_over:
            return state

        elapsed = (self._clock() - state.start_time) // 1000
        return replace(state, duration_seconds=max(0, elapsed))

    # ---------------------------------------------------------
    # Helpers
    # ---------------------------------------------------------

    def edit_config(self, state: MatchState, config: MatchConfig) -> MatchState:
        """Swap the rules/names mid-match; score data is kept as is."""
        return replace(state, config=config)

    def replay(self, config: MatchConfig, winners: Iterable[Side]) -> MatchState:
        state = self.create(config)
        for side in winners:
            state = self.score_point(state, side)
        return state
