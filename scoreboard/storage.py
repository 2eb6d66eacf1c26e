import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from scoreboard.config import SCHEMA_VERSION
from scoreboard.models import (
    EMPTY_SET,
    LOVE,
    ZERO_POINTS,
    EventKind,
    HistoryEvent,
    MatchConfig,
    MatchState,
    PointLabel,
    ScoreSnapshot,
    Side,
    SidePair,
    SideProfile,
)

logger = logging.getLogger(__name__)

# Legacy documents key sides as "P1"/"P2".
_SIDE_KEYS = {Side.A: ("A", "P1"), Side.B: ("B", "P2")}


# ---------------------------------------------------------
# Scalars
# ---------------------------------------------------------

def to_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def to_bool(value: Any, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    return default


def to_label(value: Any) -> PointLabel:
    if isinstance(value, bool):
        return LOVE
    if isinstance(value, (int, str)):
        return value
    return LOVE


# ---------------------------------------------------------
# Pairs
# ---------------------------------------------------------

def pair_to_dict(pair: SidePair) -> Dict[str, Any]:
    return {Side.A.value: pair.a, Side.B.value: pair.b}


def pair_from_dict(
    raw: Any, default: SidePair, cast: Callable[[Any], Any] = to_int
) -> SidePair:
    if not isinstance(raw, dict):
        return default

    values = []
    for side in (Side.A, Side.B):
        value = next((raw[k] for k in _SIDE_KEYS[side] if k in raw), None)
        values.append(default.get(side) if value is None else cast(value))

    return SidePair(values[0], values[1])


# ---------------------------------------------------------
# Config
# ---------------------------------------------------------

def config_to_dict(config: MatchConfig) -> Dict[str, Any]:
    data = {
        "p1Name": config.side_a.name,
        "p2Name": config.side_b.name,
        "setsToWin": config.sets_to_win,
        "useAdvantage": config.use_advantage,
        "finalSetType": config.final_set_type.value,
        "tieBreakAt": config.tie_break_at,
        "tieBreakPoints": config.tie_break_points,
        "mode": config.mode.value,
    }

    optional = {
        "p1Color": config.side_a.color,
        "p2Color": config.side_b.color,
        "p1PartnerName": config.side_a.partner_name,
        "p2PartnerName": config.side_b.partner_name,
        "p1PartnerColor": config.side_a.partner_color,
        "p2PartnerColor": config.side_b.partner_color,
    }
    data.update({k: v for k, v in optional.items() if v is not None})

    return data


def config_from_dict(raw: Dict[str, Any], base: Optional[MatchConfig] = None) -> MatchConfig:
    """
    Fields missing from raw (absent or None) are taken from base, which
    defaults to MatchConfig().
    Raises InvalidConfigError when a rule value is out of range.
    """
    base = base or MatchConfig()

    def pick(key: str, fallback: Any) -> Any:
        value = raw.get(key)
        return fallback if value is None else value

    def profile(prefix: str, fallback: SideProfile) -> SideProfile:
        name = raw.get(f"{prefix}Name")
        return SideProfile(
            name=name if isinstance(name, str) and name.strip() else fallback.name,
            color=pick(f"{prefix}Color", fallback.color),
            partner_name=pick(f"{prefix}PartnerName", fallback.partner_name),
            partner_color=pick(f"{prefix}PartnerColor", fallback.partner_color),
        )

    return MatchConfig(
        side_a=profile("p1", base.side_a),
        side_b=profile("p2", base.side_b),
        sets_to_win=to_int(raw.get("setsToWin"), base.sets_to_win),
        use_advantage=to_bool(raw.get("useAdvantage"), base.use_advantage),
        final_set_type=pick("finalSetType", base.final_set_type),
        tie_break_at=to_int(raw.get("tieBreakAt"), base.tie_break_at),
        tie_break_points=to_int(raw.get("tieBreakPoints"), base.tie_break_points),
        mode=pick("mode", base.mode),
    )


# ---------------------------------------------------------
# History
# ---------------------------------------------------------

def snapshot_to_dict(snapshot: ScoreSnapshot) -> Dict[str, Any]:
    return {
        "sets": [pair_to_dict(s) for s in snapshot.sets],
        "games": pair_to_dict(snapshot.games),
        "points": pair_to_dict(snapshot.points),
        "isTieBreak": snapshot.is_tie_break,
    }


def snapshot_from_dict(raw: Any) -> ScoreSnapshot:
    raw = raw if isinstance(raw, dict) else {}
    sets = tuple(pair_from_dict(s, EMPTY_SET) for s in raw.get("sets") or [])
    return ScoreSnapshot(
        sets=sets or (EMPTY_SET,),
        games=pair_from_dict(raw.get("games"), EMPTY_SET),
        points=pair_from_dict(raw.get("points"), ZERO_POINTS, to_label),
        is_tie_break=to_bool(raw.get("isTieBreak")),
    )


def event_to_dict(event: HistoryEvent) -> Dict[str, Any]:
    return {
        "id": event.id,
        "timestamp": event.timestamp,
        "type": event.kind.value,
        "winnerId": event.winner.value,
        "sideSwitchAfter": event.switch_sides_after,
        "scoreSnapshot": snapshot_to_dict(event.snapshot),
    }


def event_from_dict(raw: Dict[str, Any]) -> Optional[HistoryEvent]:
    """Returns None for entries whose type or winner cannot be read."""
    try:
        kind = EventKind(raw.get("type"))
    except ValueError:
        logger.warning("Skipping history event with unknown type %r", raw.get("type"))
        return None

    winner = Side.parse(raw.get("winnerId"))
    if winner is None:
        logger.warning("Skipping history event without a winner: %r", raw.get("id"))
        return None

    return HistoryEvent(
        id=str(raw.get("id", "")),
        timestamp=to_int(raw.get("timestamp")),
        kind=kind,
        winner=winner,
        switch_sides_after=to_bool(raw.get("sideSwitchAfter")),
        snapshot=snapshot_from_dict(raw.get("scoreSnapshot")),
    )


def history_from_list(raw: Any) -> tuple:
    if not isinstance(raw, list):
        return ()
    events = (event_from_dict(e) for e in raw if isinstance(e, dict))
    return tuple(e for e in events if e is not None)


# ---------------------------------------------------------
# Match state
# ---------------------------------------------------------

def state_to_dict(state: MatchState) -> Dict[str, Any]:
    return {
        "schema_version": SCHEMA_VERSION,
        "match_id": state.match_id,
        "config": config_to_dict(state.config),
        "start_time": state.start_time,
        "duration_seconds": state.duration_seconds,
        "is_paused": state.is_paused,
        "is_match_over": state.is_match_over,
        "winner": state.winner.value if state.winner else None,
        "current_set_index": state.current_set_index,
        "sets": [pair_to_dict(s) for s in state.sets],
        "games": pair_to_dict(state.games),
        "points": pair_to_dict(state.points),
        "is_tie_break": state.is_tie_break,
        "should_switch_sides": state.should_switch_sides,
        "server": state.server.value,
        "history": [event_to_dict(e) for e in state.history],
    }


def state_from_dict(data: Dict[str, Any]) -> MatchState:
    sets = tuple(pair_from_dict(s, EMPTY_SET) for s in data.get("sets") or [])
    sets = sets or (EMPTY_SET,)
    is_match_over = to_bool(data.get("is_match_over"))

    return MatchState(
        match_id=data.get("match_id"),
        config=config_from_dict(data.get("config") or {}),
        start_time=to_int(data.get("start_time")),
        duration_seconds=to_int(data.get("duration_seconds")),
        is_paused=to_bool(data.get("is_paused")),
        is_match_over=is_match_over,
        winner=Side.parse(data.get("winner")) if is_match_over else None,
        current_set_index=len(sets) - 1,
        sets=sets,
        games=pair_from_dict(data.get("games"), EMPTY_SET),
        points=pair_from_dict(data.get("points"), ZERO_POINTS, to_label),
        is_tie_break=to_bool(data.get("is_tie_break")),
        should_switch_sides=to_bool(data.get("should_switch_sides")),
        server=Side.parse(data.get("server"), Side.A),
        history=history_from_list(data.get("history")),
    )


def load_match(path: Path) -> MatchState:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if data.get("schema_version") != SCHEMA_VERSION:
        logger.warning(
            "Loading %s with schema_version %r (expected %r)",
            path,
            data.get("schema_version"),
            SCHEMA_VERSION,
        )

    return state_from_dict(data)


def save_match(path: Path, match: MatchState):
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(state_to_dict(match), f, indent=4)
