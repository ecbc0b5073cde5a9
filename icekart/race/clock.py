import time
from collections.abc import Callable

# Milliseconds since the epoch
Clock = Callable[[], int]


def system_clock() -> int:
    return time.time_ns() // 1_000_000
