import math
from typing import Optional

from rules.rules import MAX_BOARD_SIZE, MIN_BOARD_SIZE


def validate_board_size(size: object, max_size: Optional[int] = MAX_BOARD_SIZE) -> int:
    # bool is an int subclass but never a valid size
    if isinstance(size, bool) or not isinstance(size, int):
        raise ValueError("size must be an integer")
    if size < MIN_BOARD_SIZE:
        raise ValueError(f"size must be at least {MIN_BOARD_SIZE}")
    if max_size is not None and size > max_size:
        raise ValueError(f"size must be at most {max_size}")
    return size


def validate_speed(speed_ms: object) -> float:
    if isinstance(speed_ms, bool) or not isinstance(speed_ms, (int, float)):
        raise ValueError("speed_ms must be a number")
    if not math.isfinite(speed_ms):
        raise ValueError("speed_ms must be a finite number")
    if speed_ms < 0:
        raise ValueError("speed_ms must be >= 0")
    return float(speed_ms)


def validate_trace_max_steps(trace_max_steps: int) -> None:
    if trace_max_steps < 1:
        raise ValueError("trace_max_steps must be >= 1")
