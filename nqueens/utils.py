from typing import Optional

from .types import Board, CellState, TraceLog


CELL_SYMBOLS = {
    CellState.EMPTY: ".",
    CellState.QUEEN: "Q",
    CellState.TRYING: "?",
}


def trace(enabled: bool, trace_log: Optional[TraceLog], message: str) -> None:
    if not enabled:
        return
    if trace_log is not None:
        trace_log.append(message)
    else:
        print(message)


def indent(depth: int) -> str:
    return "  " * depth


def format_board_rows(board: Board) -> list[str]:
    return [" ".join(CELL_SYMBOLS[CellState(cell)] for cell in row) for row in board]


def milliseconds(value: float) -> float:
    return value / 1000.0
