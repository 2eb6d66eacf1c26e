import logging
from dataclasses import replace

from scoreboard.clock import Clock, system_clock
from scoreboard.initializer import create_match
from scoreboard.models import MatchState

logger = logging.getLogger(__name__)


class UndoEngine:
    """
    Reverts the most recent scoring event using the recorded history.

    Each HistoryEvent carries the score as it stood right after that event,
    so undoing means dropping the tail event and restoring the snapshot of
    the new tail. Server, pause state and timing are left as they are.
    Undoing the only event resets to a fresh match that keeps the
    match_id, start_time and duration_seconds of the undone state.
    """

    def __init__(self, clock: Clock = system_clock):
        self._clock = clock

    def undo(self, state: MatchState) -> MatchState:
        if not state.history:
            return state

        trimmed = state.history[:-1]

        if not trimmed:
            logger.info("Undo emptied the history, resetting score")
            fresh = create_match(state.config, self._clock(), match_id=state.match_id)
            return replace(
                fresh,
                start_time=state.start_time,
                duration_seconds=state.duration_seconds,
            )

        last = trimmed[-1]
        snapshot = last.snapshot

        return replace(
            state,
            history=trimmed,
            sets=snapshot.sets,
            games=snapshot.games,
            points=snapshot.points,
            is_tie_break=snapshot.is_tie_break,
            should_switch_sides=last.switch_sides_after,
            is_match_over=False,
            winner=None,
            current_set_index=max(0, len(snapshot.sets) - 1),
        )
