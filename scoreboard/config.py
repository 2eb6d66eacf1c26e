import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent
MATCHES_DIR = PROJECT_ROOT / "matches"

SCHEMA_VERSION = 1

# Rule defaults
DEFAULT_SETS_TO_WIN = 2
DEFAULT_USE_ADVANTAGE = False
DEFAULT_FINAL_SET_TYPE = "superTieBreak"
DEFAULT_TIE_BREAK_AT = 6
DEFAULT_TIE_BREAK_POINTS = 7
DEFAULT_MODE = "singles"

SUPER_TIE_BREAK_POINTS = 10
TIE_BREAK_SWITCH_INTERVAL = 6

# Player display defaults
DEFAULT_SIDE_A_NAME = "Player 1"
DEFAULT_SIDE_B_NAME = "Player 2"
DEFAULT_SIDE_A_COLOR = "blue"
DEFAULT_SIDE_B_COLOR = "red"

# Live sync
OFFLINE_TOPIC = "offline"


def _parse_log_level(env_var: str, default: str = "INFO") -> str:
    raw_value = os.getenv(env_var)
    if raw_value is None:
        return default

    value = raw_value.strip().upper()
    if not isinstance(logging.getLevelName(value), int):
        logger.warning(
            "%s is not a valid log level (got %r); defaulting to %s",
            env_var,
            raw_value,
            default,
        )
        return default

    return value


LOG_LEVEL = _parse_log_level("SCOREBOARD_LOG_LEVEL")
