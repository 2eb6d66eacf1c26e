from dataclasses import FrozenInstanceError, replace

import pytest

from scoreboard.initializer import create_match
from scoreboard.match_session import MatchSession
from scoreboard.models import (
    ADVANTAGE,
    EMPTY_SET,
    FORTY,
    LOVE,
    EventKind,
    FinalSetType,
    MatchConfig,
    Side,
    SidePair,
)


def create_state(**overrides):
    return MatchSession().create(MatchConfig(**overrides))


def score(state, *sides):
    session = MatchSession()
    for side in sides:
        state = session.score_point(state, side)
    return state


def win_game(state, side):
    return score(state, side, side, side, side)


def win_games(state, side, count):
    for _ in range(count):
        state = win_game(state, side)
    return state


def deuce(state):
    return score(state, Side.A, Side.A, Side.A, Side.B, Side.B, Side.B)


def deciding_tie_break(points, tie_break_points=7):
    config = MatchConfig(
        sets_to_win=2,
        final_set_type=FinalSetType.SUPER_TIE_BREAK,
        tie_break_points=tie_break_points,
    )
    state = create_match(config, now=0)
    return replace(
        state,
        sets=(SidePair(6, 4), SidePair(4, 6), EMPTY_SET),
        current_set_index=2,
        is_tie_break=True,
        points=SidePair(*points),
    )


# ---------- POINT LADDER ----------

def test_point_ladder_progression():
    state = create_state()

    labels = []
    for _ in range(3):
        state = score(state, Side.A)
        labels.append(state.points.a)

    assert labels == ["15", "30", "40"]
    assert state.points.b == LOVE
    assert state.last_event.kind is EventKind.POINT


def test_game_won_from_forty_against_thirty():
    state = score(create_state(use_advantage=True), Side.A, Side.A, Side.A, Side.B, Side.B)
    assert state.points == SidePair(FORTY, "30")

    state = score(state, Side.A)

    assert state.games == SidePair(1, 0)
    assert state.points == SidePair(LOVE, LOVE)
    assert state.last_event.kind is EventKind.GAME_WIN


# ---------- DEUCE ----------

def test_no_ad_deuce_point_wins_game():
    state = deuce(create_state(use_advantage=False))
    assert state.points == SidePair(FORTY, FORTY)

    state = score(state, Side.B)

    assert state.games == SidePair(0, 1)
    assert state.points == SidePair(LOVE, LOVE)
    assert state.last_event.kind is EventKind.GAME_WIN


def test_advantage_and_back_to_deuce():
    state = deuce(create_state(use_advantage=True))

    state = score(state, Side.A)
    assert state.points == SidePair(ADVANTAGE, FORTY)

    state = score(state, Side.B)
    assert state.points == SidePair(FORTY, FORTY)
    assert state.games == SidePair(0, 0)


def test_advantage_converted():
    state = deuce(create_state(use_advantage=True))

    state = score(state, Side.B, Side.B)

    assert state.games == SidePair(0, 1)
    assert state.points == SidePair(LOVE, LOVE)


# ---------- LOCK WHEN PAUSED / FINISHED ----------

def test_score_point_is_identity_when_paused():
    state = replace(score(create_state(), Side.A), is_paused=True)

    assert MatchSession().score_point(state, Side.B) is state


def test_score_point_is_identity_after_match_over():
    state = win_games(create_state(sets_to_win=1), Side.A, 6)
    assert state.is_match_over is True

    assert MatchSession().score_point(state, Side.B) is state


def test_score_point_does_not_touch_input():
    state = create_state()

    score(state, Side.A)

    assert state.points == SidePair(LOVE, LOVE)
    assert state.history == ()
    with pytest.raises(FrozenInstanceError):
        state.is_paused = True


# ---------- TIE-BREAK ----------

def test_tie_break_entry_at_configured_games():
    state = create_state(tie_break_at=2, use_advantage=False)

    state = win_game(state, Side.A)  # 1-0
    state = win_game(state, Side.B)  # 1-1
    state = win_game(state, Side.A)  # 2-1
    assert state.is_tie_break is False

    state = win_game(state, Side.B)  # 2-2

    assert state.is_tie_break is True
    assert state.games == SidePair(2, 2)
    assert state.points == SidePair(0, 0)


def test_tie_break_entry_at_six_all():
    state = create_state()
    for _ in range(6):
        state = win_game(state, Side.A)
        state = win_game(state, Side.B)

    assert state.games == SidePair(6, 6)
    assert state.is_tie_break is True
    assert state.points == SidePair(0, 0)


def test_tie_break_needs_two_point_margin():
    state = create_state()
    for _ in range(6):
        state = win_game(state, Side.A)
        state = win_game(state, Side.B)

    state = score(state, *([Side.A] * 6 + [Side.B] * 6))
    assert state.points == SidePair(6, 6)

    state = score(state, Side.A)
    assert state.is_tie_break is True
    assert state.points == SidePair(7, 6)

    state = score(state, Side.A)
    assert state.sets[0] == SidePair(7, 6)
    assert state.current_set_index == 1
    assert state.is_tie_break is False
    assert state.games == SidePair(0, 0)
    assert state.points == SidePair(LOVE, LOVE)
    assert state.last_event.kind is EventKind.SET_WIN


def test_tie_break_won_at_target_with_margin():
    state = create_state()
    for _ in range(6):
        state = win_game(state, Side.A)
        state = win_game(state, Side.B)

    state = score(state, *([Side.B] * 5 + [Side.A] * 6))
    assert state.points == SidePair(6, 5)

    state = score(state, Side.A)

    assert state.sets[0] == SidePair(7, 6)
    assert state.current_set_index == 1


def test_tie_break_reads_numeric_string_points():
    state = replace(
        create_state(tie_break_at=1),
        games=SidePair(1, 1),
        is_tie_break=True,
        points=SidePair("3", "2"),
    )

    state = score(state, Side.A)

    assert state.points == SidePair(4, 2)


# ---------- SUPER TIE-BREAK ----------

@pytest.mark.parametrize("tie_break_points", [3, 7, 12])
def test_super_tie_break_won_at_ten(tie_break_points):
    state = deciding_tie_break((9, 8), tie_break_points)

    state = score(state, Side.A)

    assert state.is_match_over is True
    assert state.winner is Side.A
    assert state.last_event.kind is EventKind.MATCH_WIN


def test_super_tie_break_not_won_at_seven():
    state = deciding_tie_break((6, 5))

    state = score(state, Side.A)

    assert state.is_match_over is False
    assert state.is_tie_break is True
    assert state.points == SidePair(7, 5)
    assert state.last_event.kind is EventKind.POINT


def test_super_tie_break_needs_two_point_margin():
    state = score(deciding_tie_break((9, 9)), Side.A)
    assert state.is_match_over is False
    assert state.points == SidePair(10, 9)

    state = score(state, Side.A)
    assert state.is_match_over is True
    assert state.winner is Side.A


def test_deciding_set_starts_in_super_tie_break():
    state = create_state(sets_to_win=2, final_set_type=FinalSetType.SUPER_TIE_BREAK)
    state = win_games(state, Side.A, 6)
    state = win_games(state, Side.B, 6)

    assert state.current_set_index == 2
    assert state.sets == (SidePair(6, 0), SidePair(0, 6), EMPTY_SET)
    assert state.is_tie_break is True
    assert state.points == SidePair(0, 0)
    assert state.last_event.kind is EventKind.SET_WIN

    state = score(state, *([Side.B] * 10))

    assert state.is_match_over is True
    assert state.winner is Side.B
    assert state.sets[2] == SidePair(0, 1)


def test_standard_final_set_is_played_in_games():
    state = create_state(sets_to_win=2, final_set_type=FinalSetType.STANDARD)
    state = win_games(state, Side.A, 6)
    state = win_games(state, Side.B, 6)

    assert state.current_set_index == 2
    assert state.is_tie_break is False
    assert state.points == SidePair(LOVE, LOVE)


# ---------- MATCH RESULTS ----------

@pytest.mark.parametrize("sets_to_win", [1, 2, 3])
def test_straight_sets_win(sets_to_win):
    state = create_state(sets_to_win=sets_to_win, final_set_type=FinalSetType.STANDARD)

    for _ in range(sets_to_win):
        state = win_games(state, Side.B, 6)

    assert state.is_match_over is True
    assert state.winner is Side.B
    assert len(state.sets) == sets_to_win
    assert state.current_set_index == sets_to_win - 1
    assert state.last_event.kind is EventKind.MATCH_WIN


def test_set_needs_two_game_margin_past_threshold():
    state = create_state(sets_to_win=2)
    for _ in range(5):
        state = win_game(state, Side.A)
        state = win_game(state, Side.B)
    state = win_game(state, Side.A)
    assert state.games == SidePair(6, 5)
    assert state.current_set_index == 0

    state = win_game(state, Side.A)

    assert state.sets[0] == SidePair(7, 5)
    assert state.current_set_index == 1


# ---------- SERVER ----------

def test_server_alternates_once_per_game_including_tie_break():
    state = create_state(tie_break_at=1, tie_break_points=7, sets_to_win=2)
    assert state.server is Side.A

    state = win_game(state, Side.A)
    assert state.server is Side.B

    state = win_game(state, Side.B)
    assert state.is_tie_break is True
    assert state.server is Side.A

    for _ in range(6):
        state = score(state, Side.A)
        assert state.server is Side.A

    state = score(state, Side.A)

    assert state.sets[0] == SidePair(2, 1)
    assert state.server is Side.B


def test_server_unchanged_by_points():
    state = score(create_state(), Side.A, Side.B, Side.A)

    assert state.server is Side.A


# ---------- SIDE SWITCHING ----------

def test_switch_sides_after_odd_games():
    state = win_game(create_state(), Side.A)
    assert state.should_switch_sides is True
    assert state.last_event.switch_sides_after is True

    state = score(state, Side.B)
    assert state.should_switch_sides is False

    state = score(state, Side.B, Side.B, Side.B)
    assert state.games == SidePair(1, 1)
    assert state.should_switch_sides is False


def test_switch_sides_every_six_tie_break_points():
    state = create_state(tie_break_at=1)
    state = win_game(state, Side.A)
    state = win_game(state, Side.B)
    assert state.is_tie_break is True

    flags = []
    for side in [Side.A, Side.A, Side.A, Side.B, Side.B, Side.B]:
        state = score(state, side)
        flags.append(state.should_switch_sides)

    assert flags == [False, False, False, False, False, True]


def test_switch_sides_on_set_win_follows_finished_set():
    state = win_games(create_state(sets_to_win=2), Side.A, 6)
    assert state.last_event.kind is EventKind.SET_WIN
    assert state.should_switch_sides is False  # 6-0

    state = win_game(state, Side.B)
    state = win_games(state, Side.A, 6)
    assert state.last_event.kind is EventKind.MATCH_WIN
    assert state.should_switch_sides is True  # 6-1


# ---------- HISTORY ----------

def test_one_history_event_per_point():
    state = create_state(sets_to_win=1)

    for count in range(1, 25):
        state = score(state, Side.A)
        assert len(state.history) == count

    kinds = [e.kind for e in state.history]
    assert kinds.count(EventKind.GAME_WIN) == 5
    assert kinds.count(EventKind.MATCH_WIN) == 1
    assert kinds.count(EventKind.POINT) == 18


def test_history_snapshot_is_post_point_score():
    state = win_game(create_state(), Side.A)
    state = score(state, Side.B)

    snapshot = state.last_event.snapshot
    assert snapshot.games == SidePair(1, 0)
    assert snapshot.points == SidePair(LOVE, "15")
    assert snapshot.sets == (EMPTY_SET,)
    assert snapshot.is_tie_break is False
    assert state.last_event.winner is Side.B
