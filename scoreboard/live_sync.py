"""
Live-sync boundary: the Summary / Realtime document shapes, their
normalisation from raw documents, and an in-memory gateway.

The scoring core never talks to a gateway. Callers publish the MatchState
they hold with ``sync_match`` and spectators rebuild a state from what they
read back (see ``scoreboard.reconstruct``).
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from scoreboard.clock import Clock, system_clock
from scoreboard.config import (
    DEFAULT_SIDE_A_COLOR,
    DEFAULT_SIDE_B_COLOR,
    OFFLINE_TOPIC,
)
from scoreboard.exceptions import InvalidConfigError, OwnershipMismatchError
from scoreboard.models import (
    EMPTY_SET,
    ZERO_POINTS,
    GameScore,
    HistoryEvent,
    MatchState,
    MatchStatus,
    PointScore,
    SetScore,
    Side,
)
from scoreboard.storage import (
    config_from_dict,
    config_to_dict,
    event_to_dict,
    history_from_list,
    pair_from_dict,
    pair_to_dict,
    to_bool,
    to_int,
    to_label,
)

logger = logging.getLogger(__name__)

Unsubscribe = Callable[[], None]


@dataclass(frozen=True)
class LiveMatchSummary:
    id: str
    side_a_name: Optional[str] = None
    side_b_name: Optional[str] = None
    side_a_color: Optional[str] = None
    side_b_color: Optional[str] = None
    score_summary: str = "0-0"
    current_games: Optional[GameScore] = None
    current_sets: Tuple[SetScore, ...] = ()
    server: Optional[Side] = None
    creator_uid: str = ""
    is_doubles: bool = False
    status: MatchStatus = MatchStatus.LIVE
    duration_seconds: Optional[int] = None
    start_time: Optional[int] = None
    is_paused: Optional[bool] = None
    # Embedded config document as published; keys it lacks stay absent.
    config: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class MatchRealtimeData:
    points: PointScore = ZERO_POINTS
    is_tie_break: bool = False
    history: Tuple[HistoryEvent, ...] = ()


@dataclass(frozen=True)
class ResumableMatchData:
    summary: LiveMatchSummary
    realtime: MatchRealtimeData


# ---------------------------------------------------------
# Formatting
# ---------------------------------------------------------

def sanitize_topic(topic: str) -> str:
    return topic.strip().lower()


def to_score_summary(state: MatchState) -> str:
    """Completed sets followed by the current games, e.g. ``"6-4, 2-1"``."""
    completed = ", ".join(
        f"{s.a}-{s.b}" for s in state.sets[: state.current_set_index]
    )
    current = f"{state.games.a}-{state.games.b}"
    return f"{completed}, {current}" if completed else current


def build_summary_document(
    state: MatchState, match_id: str, creator_uid: str, updated_at: int
) -> Dict[str, Any]:
    # camelCase plus snake_case aliases for older readers.
    config = state.config
    side_a_color = config.side_a.color or DEFAULT_SIDE_A_COLOR
    side_b_color = config.side_b.color or DEFAULT_SIDE_B_COLOR
    score_summary = to_score_summary(state)
    games = pair_to_dict(state.games)
    sets = [pair_to_dict(s) for s in state.sets]

    return {
        "id": match_id,
        "p1Name": config.side_a.name,
        "p1_name": config.side_a.name,
        "p2Name": config.side_b.name,
        "p2_name": config.side_b.name,
        "p1Color": side_a_color,
        "p1_color": side_a_color,
        "player1_color": side_a_color,
        "p2Color": side_b_color,
        "p2_color": side_b_color,
        "player2_color": side_b_color,
        "scoreSummary": score_summary,
        "score_summary": score_summary,
        "currentGames": games,
        "current_games": games,
        "currentSets": sets,
        "current_sets": sets,
        "server": state.server.value,
        "creatorUid": creator_uid,
        "creator_uid": creator_uid,
        "isDoubles": config.is_doubles,
        "is_doubles": config.is_doubles,
        "status": (MatchStatus.FINISHED if state.is_match_over else MatchStatus.LIVE).value,
        "durationSeconds": state.duration_seconds,
        "match_duration": state.duration_seconds,
        "startTime": state.start_time,
        "isPaused": state.is_paused,
        "config": config_to_dict(config),
        "lastUpdated": updated_at,
        "last_updated": updated_at,
    }


def build_realtime_document(state: MatchState, updated_at: int) -> Dict[str, Any]:
    points = pair_to_dict(state.points)
    return {
        "points": points,
        "current_points": points,
        "isTieBreak": state.is_tie_break,
        "is_tie_break": state.is_tie_break,
        "history": [event_to_dict(e) for e in state.history],
        "lastUpdated": updated_at,
        "last_updated": updated_at,
    }


# ---------------------------------------------------------
# Normalisation
# ---------------------------------------------------------

def _first_present(raw: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def _clean_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def normalize_summary(raw: Dict[str, Any], doc_id: str) -> LiveMatchSummary:
    config_raw = raw.get("config") if isinstance(raw.get("config"), dict) else None

    config = None
    if config_raw is not None:
        try:
            config_from_dict(config_raw)
            config = dict(config_raw)
        except InvalidConfigError as exc:
            logger.warning("Ignoring invalid embedded config on %s: %s", doc_id, exc)

    embedded = config or {}
    side_a_color = _clean_text(
        _first_present(raw, "p1Color", "p1_color", "player1_color")
        or _first_present(embedded, "p1Color", "p1_color")
    )
    side_b_color = _clean_text(
        _first_present(raw, "p2Color", "p2_color", "player2_color")
        or _first_present(embedded, "p2Color", "p2_color")
    )

    sets_raw = _first_present(raw, "currentSets", "current_sets")
    current_sets = tuple(
        pair_from_dict(s, EMPTY_SET) for s in sets_raw or [] if isinstance(s, dict)
    )
    games_raw = _first_present(raw, "currentGames", "current_games")

    start_time = raw.get("startTime")

    return LiveMatchSummary(
        id=str(raw.get("id") or doc_id),
        side_a_name=_clean_text(_first_present(raw, "p1Name", "p1_name")),
        side_b_name=_clean_text(_first_present(raw, "p2Name", "p2_name")),
        side_a_color=side_a_color,
        side_b_color=side_b_color,
        score_summary=str(_first_present(raw, "scoreSummary", "score_summary") or "0-0"),
        current_games=pair_from_dict(games_raw, EMPTY_SET),
        current_sets=current_sets,
        server=Side.parse(raw.get("server"), Side.A),
        creator_uid=str(_first_present(raw, "creatorUid", "creator_uid") or ""),
        is_doubles=to_bool(_first_present(raw, "isDoubles", "is_doubles")),
        status=MatchStatus.FINISHED if raw.get("status") == "FINISHED" else MatchStatus.LIVE,
        duration_seconds=to_int(_first_present(raw, "durationSeconds", "match_duration")),
        start_time=to_int(start_time) if start_time is not None else None,
        is_paused=to_bool(raw.get("isPaused")),
        config=config,
    )


def normalize_realtime(raw: Dict[str, Any]) -> MatchRealtimeData:
    return MatchRealtimeData(
        points=pair_from_dict(
            _first_present(raw, "points", "current_points"), ZERO_POINTS, to_label
        ),
        is_tie_break=to_bool(_first_present(raw, "isTieBreak", "is_tie_break")),
        history=history_from_list(raw.get("history")),
    )


# ---------------------------------------------------------
# Gateway
# ---------------------------------------------------------

class LiveMatchGateway(ABC):
    """Publishes and subscribes to live match documents."""

    @abstractmethod
    def subscribe_club_matches(
        self, topic: str, callback: Callable[[List[LiveMatchSummary]], None]
    ) -> Unsubscribe:
        pass

    @abstractmethod
    def subscribe_match_summary(
        self,
        topic: str,
        match_id: str,
        callback: Callable[[Optional[LiveMatchSummary]], None],
    ) -> Unsubscribe:
        pass

    @abstractmethod
    def subscribe_match_realtime(
        self,
        topic: str,
        match_id: str,
        callback: Callable[[Optional[MatchRealtimeData]], None],
    ) -> Unsubscribe:
        pass

    @abstractmethod
    def sync_match(
        self, topic: str, match_id: str, state: MatchState, creator_uid: str
    ) -> None:
        pass

    @abstractmethod
    def end_match(self, topic: str, match_id: str, actor_uid: str) -> None:
        pass

    @abstractmethod
    def delete_match(self, topic: str, match_id: str, actor_uid: str) -> None:
        pass

    @abstractmethod
    def fetch_match(self, topic: str, match_id: str) -> Optional[ResumableMatchData]:
        pass


class InMemoryLiveMatchGateway(LiveMatchGateway):
    """
    Document store held in a dict, keyed by path:

        clubs/<topic>/active_matches/<match_id>
        clubs/<topic>/active_matches/<match_id>/realtime/score

    Writes merge fields into the existing document (last write wins).
    The ownership check reads the current owner before writing and is not
    atomic with the write.
    """

    def __init__(self, clock: Clock = system_clock):
        self._clock = clock
        self._documents: Dict[str, Dict[str, Any]] = {}
        self._listeners: Dict[str, List[Callable[[], None]]] = {}

    # ---------------------------------------------------------
    # Paths
    # ---------------------------------------------------------

    @staticmethod
    def _collection_path(topic: str) -> str:
        return f"clubs/{sanitize_topic(topic)}/active_matches"

    def _summary_path(self, topic: str, match_id: str) -> str:
        return f"{self._collection_path(topic)}/{match_id}"

    def _realtime_path(self, topic: str, match_id: str) -> str:
        return f"{self._summary_path(topic, match_id)}/realtime/score"

    @staticmethod
    def _is_offline(topic: str, *ids: str) -> bool:
        return not topic or sanitize_topic(topic) == OFFLINE_TOPIC or not all(ids)

    def document(self, path: str) -> Optional[Dict[str, Any]]:
        doc = self._documents.get(path)
        return dict(doc) if doc is not None else None

    # ---------------------------------------------------------
    # Subscriptions
    # ---------------------------------------------------------

    def _listen(self, path: str, emit: Callable[[], None]) -> Unsubscribe:
        self._listeners.setdefault(path, []).append(emit)
        emit()

        def unsubscribe():
            listeners = self._listeners.get(path, [])
            if emit in listeners:
                listeners.remove(emit)

        return unsubscribe

    def _notify(self, *paths: str):
        for path in paths:
            for emit in list(self._listeners.get(path, [])):
                emit()

    def _club_summaries(self, topic: str) -> List[LiveMatchSummary]:
        prefix = self._collection_path(topic) + "/"
        entries = []
        for path, raw in self._documents.items():
            doc_id = path[len(prefix):]
            if not path.startswith(prefix) or "/" in doc_id:
                continue
            sort_value = max(
                to_int(raw.get("lastUpdated")), to_int(raw.get("last_updated"))
            )
            entries.append((sort_value, normalize_summary(raw, doc_id)))

        entries.sort(key=lambda entry: entry[0], reverse=True)
        return [summary for _, summary in entries]

    def subscribe_club_matches(self, topic, callback):
        if self._is_offline(topic):
            callback([])
            return lambda: None

        return self._listen(
            self._collection_path(topic),
            lambda: callback(self._club_summaries(topic)),
        )

    def subscribe_match_summary(self, topic, match_id, callback):
        if self._is_offline(topic, match_id):
            callback(None)
            return lambda: None

        path = self._summary_path(topic, match_id)

        def emit():
            raw = self._documents.get(path)
            callback(normalize_summary(raw, match_id) if raw is not None else None)

        return self._listen(path, emit)

    def subscribe_match_realtime(self, topic, match_id, callback):
        if self._is_offline(topic, match_id):
            callback(None)
            return lambda: None

        path = self._realtime_path(topic, match_id)

        def emit():
            raw = self._documents.get(path)
            callback(normalize_realtime(raw) if raw is not None else None)

        return self._listen(path, emit)

    # ---------------------------------------------------------
    # Writes
    # ---------------------------------------------------------

    def _assert_ownership(self, summary_path: str, actor_uid: str):
        raw = self._documents.get(summary_path)
        if raw is None:
            return

        owner_uid = str(raw.get("creatorUid") or raw.get("creator_uid") or "")
        if owner_uid and owner_uid != actor_uid:
            logger.warning(
                "Rejected write to %s: owner %s, actor %s",
                summary_path,
                owner_uid,
                actor_uid,
            )
            raise OwnershipMismatchError(owner_uid, actor_uid)

    def _merge(self, path: str, fields: Dict[str, Any]):
        self._documents.setdefault(path, {}).update(fields)

    def sync_match(self, topic, match_id, state, creator_uid):
        if self._is_offline(topic, match_id, creator_uid):
            return

        summary_path = self._summary_path(topic, match_id)
        realtime_path = self._realtime_path(topic, match_id)

        self._assert_ownership(summary_path, creator_uid)

        now = self._clock()
        self._merge(
            summary_path, build_summary_document(state, match_id, creator_uid, now)
        )
        self._merge(realtime_path, build_realtime_document(state, now))
        logger.debug("Synced %s (%s)", summary_path, to_score_summary(state))

        self._notify(summary_path, realtime_path, self._collection_path(topic))

    def end_match(self, topic, match_id, actor_uid):
        if self._is_offline(topic, match_id, actor_uid):
            return

        summary_path = self._summary_path(topic, match_id)
        self._assert_ownership(summary_path, actor_uid)

        now = self._clock()
        self._merge(
            summary_path,
            {
                "status": MatchStatus.FINISHED.value,
                "lastUpdated": now,
                "last_updated": now,
            },
        )
        logger.info("Ended match %s", summary_path)

        self._notify(summary_path, self._collection_path(topic))

    def delete_match(self, topic, match_id, actor_uid):
        if self._is_offline(topic, match_id, actor_uid):
            return

        summary_path = self._summary_path(topic, match_id)
        realtime_path = self._realtime_path(topic, match_id)

        self._assert_ownership(summary_path, actor_uid)

        self._documents.pop(realtime_path, None)
        self._documents.pop(summary_path, None)
        logger.info("Deleted match %s", summary_path)

        self._notify(summary_path, realtime_path, self._collection_path(topic))

    # ---------------------------------------------------------
    # Reads
    # ---------------------------------------------------------

    def fetch_match(self, topic, match_id):
        if self._is_offline(topic, match_id):
            return None

        summary_raw = self._documents.get(self._summary_path(topic, match_id))
        realtime_raw = self._documents.get(self._realtime_path(topic, match_id))

        if summary_raw is None or realtime_raw is None:
            return None

        return ResumableMatchData(
            summary=normalize_summary(summary_raw, match_id),
            realtime=normalize_realtime(realtime_raw),
        )
