import time
import uuid
from typing import Callable

# Epoch milliseconds.
Clock = Callable[[], int]


def system_clock() -> int:
    return int(time.time() * 1000)


def new_event_id(now: int) -> str:
    return f"{now}-{uuid.uuid4().hex[:8]}"
