from enum import Enum, IntEnum
from typing import Callable, Optional


class CellState(IntEnum):
    EMPTY = 0
    QUEEN = 1
    TRYING = 2


class Outcome(str, Enum):
    SOLVED = "solved"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"


Board = list[list[CellState]]
BoardRows = list[list[int]]
TraceLog = list[str]
TraceStep = dict[str, object]
Publisher = Callable[[str, str, Optional[int], Optional[int]], None]
SnapshotCallback = Callable[[TraceStep], None]
StatusCallback = Callable[[str, str], None]
