from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Generic, Optional, Tuple, TypeVar, Union

from scoreboard.config import (
    DEFAULT_FINAL_SET_TYPE,
    DEFAULT_MODE,
    DEFAULT_SETS_TO_WIN,
    DEFAULT_SIDE_A_COLOR,
    DEFAULT_SIDE_A_NAME,
    DEFAULT_SIDE_B_COLOR,
    DEFAULT_SIDE_B_NAME,
    DEFAULT_TIE_BREAK_AT,
    DEFAULT_TIE_BREAK_POINTS,
    DEFAULT_USE_ADVANTAGE,
)
from scoreboard.exceptions import InvalidConfigError


T = TypeVar("T")


class Side(str, Enum):
    A = "A"
    B = "B"

    def other(self) -> "Side":
        return Side.B if self is Side.A else Side.A

    @classmethod
    def parse(cls, value, default: Optional["Side"] = None) -> Optional["Side"]:
        """
        Accepts "A"/"B" and the legacy document ids "P1"/"P2".
        """
        if isinstance(value, Side):
            return value
        if isinstance(value, str):
            key = value.strip().upper()
            if key in ("A", "P1"):
                return Side.A
            if key in ("B", "P2"):
                return Side.B
        return default


class FinalSetType(str, Enum):
    STANDARD = "standard"
    SUPER_TIE_BREAK = "superTieBreak"


class MatchMode(str, Enum):
    SINGLES = "singles"
    DOUBLES = "doubles"


class EventKind(str, Enum):
    POINT = "POINT"
    GAME_WIN = "GAME_WIN"
    SET_WIN = "SET_WIN"
    MATCH_WIN = "MATCH_WIN"


class MatchStatus(str, Enum):
    LIVE = "LIVE"
    FINISHED = "FINISHED"


# --- POINT LABELS ---

LOVE = "0"
FIFTEEN = "15"
THIRTY = "30"
FORTY = "40"
ADVANTAGE = "Ad"

POINT_LADDER = (LOVE, FIFTEEN, THIRTY, FORTY)

# Ladder label in standard play, plain counter during a tie-break.
PointLabel = Union[str, int]


@dataclass(frozen=True)
class SidePair(Generic[T]):
    a: T
    b: T

    def get(self, side: Side) -> T:
        return self.a if side is Side.A else self.b

    def with_value(self, side: Side, value: T) -> "SidePair[T]":
        if side is Side.A:
            return replace(self, a=value)
        return replace(self, b=value)

    def total(self):
        return self.a + self.b


SetScore = SidePair[int]
GameScore = SidePair[int]
PointScore = SidePair[PointLabel]

EMPTY_SET: SetScore = SidePair(0, 0)
ZERO_POINTS: PointScore = SidePair(LOVE, LOVE)
TIE_BREAK_START: PointScore = SidePair(0, 0)


# --- CONFIGURATION ---

@dataclass(frozen=True)
class SideProfile:
    name: str
    color: Optional[str] = None
    partner_name: Optional[str] = None
    partner_color: Optional[str] = None


@dataclass(frozen=True)
class MatchConfig:
    side_a: SideProfile = field(
        default_factory=lambda: SideProfile(DEFAULT_SIDE_A_NAME, DEFAULT_SIDE_A_COLOR)
    )
    side_b: SideProfile = field(
        default_factory=lambda: SideProfile(DEFAULT_SIDE_B_NAME, DEFAULT_SIDE_B_COLOR)
    )
    sets_to_win: int = DEFAULT_SETS_TO_WIN
    use_advantage: bool = DEFAULT_USE_ADVANTAGE
    final_set_type: FinalSetType = FinalSetType(DEFAULT_FINAL_SET_TYPE)
    tie_break_at: int = DEFAULT_TIE_BREAK_AT
    tie_break_points: int = DEFAULT_TIE_BREAK_POINTS
    mode: MatchMode = MatchMode(DEFAULT_MODE)

    def __post_init__(self):
        if self.sets_to_win not in (1, 2, 3):
            raise InvalidConfigError("sets_to_win must be 1, 2 or 3")

        if self.tie_break_at < 1:
            raise InvalidConfigError("tie_break_at must be at least 1")

        if self.tie_break_points < 1:
            raise InvalidConfigError("tie_break_points must be at least 1")

        try:
            object.__setattr__(self, "final_set_type", FinalSetType(self.final_set_type))
            object.__setattr__(self, "mode", MatchMode(self.mode))
        except ValueError as exc:
            raise InvalidConfigError(str(exc)) from exc

    @property
    def deciding_set_number(self) -> int:
        return self.sets_to_win * 2 - 1

    @property
    def is_doubles(self) -> bool:
        return self.mode is MatchMode.DOUBLES

    def profile(self, side: Side) -> SideProfile:
        return self.side_a if side is Side.A else self.side_b

    def with_profile(self, side: Side, profile: SideProfile) -> "MatchConfig":
        if side is Side.A:
            return replace(self, side_a=profile)
        return replace(self, side_b=profile)


def default_match_config() -> MatchConfig:
    return MatchConfig()


# --- HISTORY ---

@dataclass(frozen=True)
class ScoreSnapshot:
    sets: Tuple[SetScore, ...]
    games: GameScore
    points: PointScore
    is_tie_break: bool


@dataclass(frozen=True)
class HistoryEvent:
    id: str
    timestamp: int
    kind: EventKind
    winner: Side
    switch_sides_after: bool
    snapshot: ScoreSnapshot


# --- MATCH STATE ---

@dataclass(frozen=True)
class MatchState:
    config: MatchConfig
    start_time: int
    duration_seconds: int = 0
    is_paused: bool = False
    is_match_over: bool = False
    winner: Optional[Side] = None
    current_set_index: int = 0
    sets: Tuple[SetScore, ...] = (EMPTY_SET,)
    games: GameScore = EMPTY_SET
    points: PointScore = ZERO_POINTS
    is_tie_break: bool = False
    should_switch_sides: bool = False
    server: Side = Side.A
    history: Tuple[HistoryEvent, ...] = ()
    match_id: Optional[str] = None

    @property
    def current_set(self) -> SetScore:
        return self.sets[self.current_set_index]

    @property
    def last_event(self) -> Optional[HistoryEvent]:
        return self.history[-1] if self.history else None

    @property
    def is_deciding_set(self) -> bool:
        return self.current_set_index + 1 == self.config.deciding_set_number

    def sets_won(self, side: Side) -> int:
        """
        A set counts for the side holding strictly more games in it.
        The in-progress slot stays 0-0 until its set completes.
        """
        opponent = side.other()
        return sum(1 for s in self.sets if s.get(side) > s.get(opponent))

    def snapshot(self) -> ScoreSnapshot:
        return ScoreSnapshot(
            sets=self.sets,
            games=self.games,
            points=self.points,
            is_tie_break=self.is_tie_break,
        )


# --- REPLAY ---

@dataclass(frozen=True)
class TimelineEntry:
    rally_index: int
    set_number: int
    games: GameScore
    points: PointScore
    sets_won: SidePair[int]
    is_tie_break: bool
    server: Side
    switch_sides: bool
    is_finished: bool
    winner: Optional[Side]
