from scoreboard.live_sync import LiveMatchSummary, MatchRealtimeData, normalize_summary
from scoreboard.match_session import MatchSession
from scoreboard.models import (
    EMPTY_SET,
    ZERO_POINTS,
    FinalSetType,
    MatchConfig,
    MatchStatus,
    Side,
    SidePair,
    SideProfile,
)
from scoreboard.reconstruct import StateReconstructor, resolve_config, resolve_first


def create_summary(**overrides):
    fields = dict(
        id="m-1",
        current_sets=(SidePair(6, 4), SidePair(0, 0)),
        current_games=SidePair(0, 0),
        start_time=500_000,
        duration_seconds=1_200,
    )
    fields.update(overrides)
    return LiveMatchSummary(**fields)


# ---------------------------------------------------------
# Precedence helper
# ---------------------------------------------------------

def test_resolve_first():
    assert resolve_first(None, "b", "c") == "b"
    assert resolve_first(0, 5) == 0
    assert resolve_first(None, None) is None


# ---------------------------------------------------------
# Summary only
# ---------------------------------------------------------

def test_reconstruct_without_realtime_resets_points_and_history(clock):
    state = StateReconstructor(clock).reconstruct(create_summary(), None, MatchConfig())

    assert state.match_id == "m-1"
    assert state.current_set_index == 1
    assert state.sets == (SidePair(6, 4), SidePair(0, 0))
    assert state.games == SidePair(0, 0)
    assert state.points == ZERO_POINTS
    assert state.is_tie_break is False
    assert state.history == ()
    assert state.should_switch_sides is False
    assert state.start_time == 500_000
    assert state.duration_seconds == 1_200


def test_reconstruct_with_realtime(clock):
    realtime = MatchRealtimeData(points=SidePair("30", "15"))

    state = StateReconstructor(clock).reconstruct(
        create_summary(current_games=SidePair(2, 1), server=Side.B),
        realtime,
        MatchConfig(),
    )

    assert state.points == SidePair("30", "15")
    assert state.games == SidePair(2, 1)
    assert state.server is Side.B


def test_reconstruct_defaults_for_missing_fields(clock):
    summary = LiveMatchSummary(id="m-2")

    state = StateReconstructor(clock).reconstruct(summary, None, MatchConfig())

    assert state.sets == (EMPTY_SET,)
    assert state.current_set_index == 0
    assert state.games == EMPTY_SET
    assert state.server is Side.A
    assert state.start_time == clock.now
    assert state.duration_seconds == 0
    assert state.is_paused is False


def test_finished_summary_is_over_without_winner(clock):
    summary = create_summary(status=MatchStatus.FINISHED)

    state = StateReconstructor(clock).reconstruct(summary, None, MatchConfig())

    assert state.is_match_over is True
    assert state.winner is None


def test_paused_summary_stays_paused(clock):
    state = StateReconstructor(clock).reconstruct(
        create_summary(is_paused=True), None, MatchConfig()
    )

    assert state.is_paused is True


# ---------------------------------------------------------
# Config resolution
# ---------------------------------------------------------

def test_summary_names_win_over_embedded_and_fallback():
    embedded = {"p1Name": "Embedded A", "p2Name": "Embedded B", "p2Color": "pink"}
    fallback = MatchConfig(side_a=SideProfile("Local A", "teal"), side_b=SideProfile("Local B", "amber"))
    summary = create_summary(side_a_name="Live A", config=embedded)

    config = resolve_config(summary, fallback)

    assert config.side_a.name == "Live A"
    assert config.side_b.name == "Embedded B"
    assert config.side_a.color == "teal"
    assert config.side_b.color == "pink"


def test_summary_colors_win():
    fallback = MatchConfig(side_a=SideProfile("Local A", "teal"))
    summary = create_summary(side_a_color="indigo")

    config = resolve_config(summary, fallback)

    assert config.side_a.color == "indigo"
    assert config.side_a.name == "Local A"


def test_embedded_rules_replace_fallback_rules():
    embedded = {"setsToWin": 3, "useAdvantage": True}

    config = resolve_config(create_summary(config=embedded), MatchConfig(sets_to_win=1))

    assert config.sets_to_win == 3
    assert config.use_advantage is True


def test_rules_missing_from_embedded_config_keep_fallback_values():
    fallback = MatchConfig(use_advantage=True, tie_break_at=4, final_set_type="standard")

    config = resolve_config(create_summary(config={"setsToWin": 3}), fallback)

    assert config.sets_to_win == 3
    assert config.use_advantage is True
    assert config.tie_break_at == 4
    assert config.final_set_type is FinalSetType.STANDARD


def test_fallback_rules_without_embedded_config():
    config = resolve_config(create_summary(), MatchConfig(sets_to_win=1))

    assert config.sets_to_win == 1


# ---------------------------------------------------------
# From a published document
# ---------------------------------------------------------

def test_published_document_without_names_uses_fallback_profiles(clock):
    summary = normalize_summary({"id": "m", "config": {"setsToWin": 3}}, "m")
    fallback = MatchConfig(
        side_a=SideProfile("Local A", "teal"),
        side_b=SideProfile("Local B", "amber"),
        use_advantage=True,
    )

    state = StateReconstructor(clock).reconstruct(summary, None, fallback)

    assert state.config.side_a == SideProfile("Local A", "teal")
    assert state.config.side_b == SideProfile("Local B", "amber")
    assert state.config.sets_to_win == 3
    assert state.config.use_advantage is True


def test_published_document_embedded_names_with_fallback_colors(clock):
    summary = normalize_summary({"config": {"p1Name": "X", "p2Name": "Y"}}, "m")
    fallback = MatchConfig(side_a=SideProfile("Local A", "teal"))

    state = StateReconstructor(clock).reconstruct(summary, None, fallback)

    assert state.config.side_a == SideProfile("X", "teal")
    assert state.config.side_b.name == "Y"
    assert state.config.side_b.color == "red"


def test_published_document_string_flags_are_not_true(clock):
    raw = {"isPaused": "false", "config": {"useAdvantage": "false"}}
    summary = normalize_summary(raw, "m")

    state = StateReconstructor(clock).reconstruct(summary, None, MatchConfig())

    assert state.is_paused is False
    assert state.config.use_advantage is False


# ---------------------------------------------------------
# Play continues
# ---------------------------------------------------------

def test_scoring_continues_after_reconstruct(clock):
    summary = create_summary(current_games=SidePair(5, 0))
    realtime = MatchRealtimeData(points=SidePair("40", "0"))
    state = StateReconstructor(clock).reconstruct(summary, realtime, MatchConfig())

    state = MatchSession(clock=clock).score_point(state, Side.A)

    assert state.is_match_over is True
    assert state.winner is Side.A
    assert state.sets == (SidePair(6, 4), SidePair(6, 0))
    assert len(state.history) == 1
