import logging
from dataclasses import replace
from typing import Tuple

from scoreboard.clock import Clock, new_event_id, system_clock
from scoreboard.config import SUPER_TIE_BREAK_POINTS, TIE_BREAK_SWITCH_INTERVAL
from scoreboard.models import (
    ADVANTAGE,
    EMPTY_SET,
    FORTY,
    POINT_LADDER,
    TIE_BREAK_START,
    ZERO_POINTS,
    EventKind,
    FinalSetType,
    HistoryEvent,
    MatchState,
    PointLabel,
    Side,
)

logger = logging.getLogger(__name__)


def next_point_label(current: PointLabel) -> PointLabel:
    """0 -> 15 -> 30 -> 40; anything else is returned unchanged."""
    if current in POINT_LADDER[:-1]:
        return POINT_LADDER[POINT_LADDER.index(current) + 1]
    return current


def tie_break_count(label: PointLabel) -> int:
    if isinstance(label, int):
        return label
    try:
        return int(label)
    except (TypeError, ValueError):
        return 0


class ScoreEngine:
    """
    Point-by-point scoring engine.

    Responsibilities:
    - Resolve one point (ladder, advantage, no-ad, tie-break)
    - Roll completed games into sets and sets into the match
    - Alternate the server once per completed game
    - Append exactly one HistoryEvent per scored point

    Every call returns a new MatchState; the input is never modified.
    """

    def __init__(self, clock: Clock = system_clock):
        self._clock = clock

    # =========================================================
    # PUBLIC API
    # =========================================================

    def add_point(self, state: MatchState, winner: Side) -> MatchState:
        if state.is_match_over or state.is_paused:
            return state

        if state.is_tie_break:
            state, game_won = self._resolve_tie_break_point(state, winner)
        else:
            state, game_won = self._resolve_standard_point(state, winner)

        if not game_won:
            return self._record(state, winner, EventKind.POINT)

        state = replace(
            state,
            games=state.games.with_value(winner, state.games.get(winner) + 1),
            points=ZERO_POINTS,
        )
        logger.debug(
            "Game to %s, games now %d-%d",
            winner.value,
            state.games.a,
            state.games.b,
        )

        state, set_won = self._check_set_end(state, winner)

        if not set_won:
            state = replace(state, server=state.server.other())
            return self._record(state, winner, EventKind.GAME_WIN)

        return self._finalize_set(state, winner)

    # =========================================================
    # POINT LOGIC
    # =========================================================

    def _resolve_tie_break_point(
        self, state: MatchState, winner: Side
    ) -> Tuple[MatchState, bool]:
        loser = winner.other()
        winner_score = tie_break_count(state.points.get(winner)) + 1
        loser_score = tie_break_count(state.points.get(loser))

        points = state.points.with_value(winner, winner_score).with_value(
            loser, loser_score
        )
        state = replace(state, points=points)

        required = self._tie_break_target(state)
        return state, winner_score >= required and winner_score - loser_score >= 2

    def _resolve_standard_point(
        self, state: MatchState, winner: Side
    ) -> Tuple[MatchState, bool]:
        loser = winner.other()
        winner_point = state.points.get(winner)
        loser_point = state.points.get(loser)

        if winner_point == ADVANTAGE:
            return state, True

        if winner_point != FORTY:
            points = state.points.with_value(winner, next_point_label(winner_point))
            return replace(state, points=points), False

        if loser_point == ADVANTAGE:
            # back to deuce
            return replace(state, points=state.points.with_value(loser, FORTY)), False

        if loser_point == FORTY and state.config.use_advantage:
            points = state.points.with_value(winner, ADVANTAGE)
            return replace(state, points=points), False

        return state, True

    def _tie_break_target(self, state: MatchState) -> int:
        if (
            state.config.final_set_type is FinalSetType.SUPER_TIE_BREAK
            and state.is_deciding_set
        ):
            return SUPER_TIE_BREAK_POINTS
        return state.config.tie_break_points

    # =========================================================
    # SET LOGIC
    # =========================================================

    def _check_set_end(self, state: MatchState, winner: Side) -> Tuple[MatchState, bool]:
        """
        Decides whether the game just won closes the set, and enters the
        tie-break when both sides reach the configured game count.
        """
        if state.is_tie_break:
            return state, True

        threshold = state.config.tie_break_at
        winner_games = state.games.get(winner)
        loser_games = state.games.get(winner.other())

        if winner_games >= threshold + 1 and winner_games - loser_games >= 2:
            return state, True

        if winner_games == threshold and loser_games <= threshold - 2:
            return state, True

        if winner_games == threshold and loser_games == threshold:
            logger.debug("Games level at %d, entering tie-break", threshold)
            return replace(state, is_tie_break=True, points=TIE_BREAK_START), False

        return state, False

    def _finalize_set(self, state: MatchState, winner: Side) -> MatchState:
        sets = list(state.sets)
        sets[state.current_set_index] = state.games
        state = replace(state, sets=tuple(sets))

        a_sets = state.sets_won(Side.A)
        b_sets = state.sets_won(Side.B)
        required = state.config.sets_to_win

        if a_sets >= required or b_sets >= required:
            match_winner = Side.A if a_sets > b_sets else Side.B
            logger.info(
                "Match won by %s, sets %d-%d", match_winner.value, a_sets, b_sets
            )
            state = replace(state, is_match_over=True, winner=match_winner)
            return self._record(state, winner, EventKind.MATCH_WIN)

        logger.info(
            "Set %d won by %s %d-%d",
            state.current_set_index + 1,
            winner.value,
            state.games.a,
            state.games.b,
        )

        state = replace(
            state,
            current_set_index=state.current_set_index + 1,
            sets=state.sets + (EMPTY_SET,),
            games=EMPTY_SET,
            server=state.server.other(),
        )

        start_super_tie_break = (
            state.config.final_set_type is FinalSetType.SUPER_TIE_BREAK
            and state.is_deciding_set
        )
        if start_super_tie_break:
            state = replace(state, is_tie_break=True, points=TIE_BREAK_START)
        else:
            state = replace(state, is_tie_break=False)

        return self._record(state, winner, EventKind.SET_WIN)

    # =========================================================
    # HISTORY & SIDE SWITCHING
    # =========================================================

    def _record(self, state: MatchState, winner: Side, kind: EventKind) -> MatchState:
        switch_sides = self._should_switch_sides(state, kind)
        now = self._clock()

        event = HistoryEvent(
            id=new_event_id(now),
            timestamp=now,
            kind=kind,
            winner=winner,
            switch_sides_after=switch_sides,
            snapshot=state.snapshot(),
        )

        return replace(
            state,
            should_switch_sides=switch_sides,
            history=state.history + (event,),
        )

    @staticmethod
    def _should_switch_sides(state: MatchState, kind: EventKind) -> bool:
        if kind is EventKind.POINT:
            if not state.is_tie_break:
                return False
            total = tie_break_count(state.points.a) + tie_break_count(state.points.b)
            return total > 0 and total % TIE_BREAK_SWITCH_INTERVAL == 0

        if kind is EventKind.SET_WIN:
            finished = state.sets[state.current_set_index - 1]
            return finished.total() % 2 != 0

        if kind is EventKind.MATCH_WIN:
            finished = state.sets[state.current_set_index]
            return finished.total() % 2 != 0

        total_games = state.games.total()
        return total_games > 0 and total_games % 2 != 0
