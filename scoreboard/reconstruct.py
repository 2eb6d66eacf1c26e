import logging
from dataclasses import replace
from typing import Optional, TypeVar

from scoreboard.clock import Clock, system_clock
from scoreboard.live_sync import LiveMatchSummary, MatchRealtimeData
from scoreboard.models import (
    EMPTY_SET,
    ZERO_POINTS,
    MatchConfig,
    MatchState,
    MatchStatus,
    Side,
    SideProfile,
)
from scoreboard.storage import config_from_dict

logger = logging.getLogger(__name__)

T = TypeVar("T")


def resolve_first(*candidates: Optional[T]) -> Optional[T]:
    """
    Ordered precedence: the first candidate that is not None wins.
    """
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None


def resolve_config(summary: LiveMatchSummary, fallback: MatchConfig) -> MatchConfig:
    """
    Field-by-field merge. Rule fields come from the embedded config where
    it carries them, else from the fallback. Names and colors resolve in
    order: summary field, then embedded config, then fallback.
    """
    # embedded keys over the fallback; absent keys keep the fallback value
    merged = config_from_dict(summary.config or {}, base=fallback)

    def profile(side: Side, name: Optional[str], color: Optional[str]) -> SideProfile:
        merged_profile = merged.profile(side)
        return replace(
            merged_profile,
            name=resolve_first(name, merged_profile.name),
            color=resolve_first(color, merged_profile.color),
        )

    return replace(
        merged,
        side_a=profile(Side.A, summary.side_a_name, summary.side_a_color),
        side_b=profile(Side.B, summary.side_b_name, summary.side_b_color),
    )


class StateReconstructor:
    """
    Rebuilds a MatchState from the published summary and, when available,
    the realtime fragment.

    Without the realtime fragment the in-game points and the history are
    lost (the state restarts at 0-0 points with nothing to undo), while
    sets, games, server, timing and pause state are kept.
    """

    def __init__(self, clock: Clock = system_clock):
        self._clock = clock

    def reconstruct(
        self,
        summary: LiveMatchSummary,
        realtime: Optional[MatchRealtimeData],
        fallback_config: MatchConfig,
    ) -> MatchState:
        sets = tuple(summary.current_sets) or (EMPTY_SET,)

        if realtime is None:
            logger.info(
                "No realtime data for match %s, points and history reset", summary.id
            )

        return MatchState(
            match_id=summary.id,
            config=resolve_config(summary, fallback_config),
            start_time=resolve_first(summary.start_time, self._clock()),
            duration_seconds=resolve_first(summary.duration_seconds, 0),
            is_paused=resolve_first(summary.is_paused, False),
            is_match_over=summary.status is MatchStatus.FINISHED,
            winner=None,
            current_set_index=max(0, len(sets) - 1),
            sets=sets,
            games=resolve_first(summary.current_games, EMPTY_SET),
            points=realtime.points if realtime else ZERO_POINTS,
            is_tie_break=realtime.is_tie_break if realtime else False,
            should_switch_sides=False,
            server=resolve_first(summary.server, Side.A),
            history=tuple(realtime.history) if realtime else (),
        )
