from typing import Optional

from scoreboard.models import (
    EMPTY_SET,
    ZERO_POINTS,
    MatchConfig,
    MatchState,
    Side,
)


def create_match(config: MatchConfig, now: int, match_id: Optional[str] = None) -> MatchState:
    """
    Fresh match at 0-0 with Side A serving and no history.
    """
    return MatchState(
        config=config,
        start_time=now,
        duration_seconds=0,
        is_paused=False,
        is_match_over=False,
        winner=None,
        current_set_index=0,
        sets=(EMPTY_SET,),
        games=EMPTY_SET,
        points=ZERO_POINTS,
        is_tie_break=False,
        should_switch_sides=False,
        server=Side.A,
        history=(),
        match_id=match_id,
    )
