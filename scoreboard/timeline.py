from typing import Iterable, List, Optional, Sequence

from scoreboard.match_session import MatchSession
from scoreboard.models import (
    HistoryEvent,
    MatchConfig,
    Side,
    SidePair,
    TimelineEntry,
)


def build_match_timeline(
    config: MatchConfig,
    winner_sequence: Iterable[Side],
    session: Optional[MatchSession] = None,
) -> List[TimelineEntry]:
    """
    Replays a match from scratch using winner_sequence.
    Returns one entry per scored point, stopping once the match is over.
    Does NOT mutate external state.
    """
    session = session or MatchSession()
    state = session.create(config)

    timeline: List[TimelineEntry] = []

    for index, winner in enumerate(winner_sequence):

        state = session.score_point(state, winner)

        timeline.append(
            TimelineEntry(
                rally_index=index + 1,
                set_number=state.current_set_index + 1,
                games=state.games,
                points=state.points,
                sets_won=SidePair(state.sets_won(Side.A), state.sets_won(Side.B)),
                is_tie_break=state.is_tie_break,
                server=state.server,
                switch_sides=state.should_switch_sides,
                is_finished=state.is_match_over,
                winner=state.winner,
            )
        )

        if state.is_match_over:
            break

    return timeline


def winners_from_history(history: Sequence[HistoryEvent]) -> List[Side]:
    # one event per scored point
    return [event.winner for event in history]
