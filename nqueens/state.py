from dataclasses import dataclass
from typing import Optional

from .types import Board, BoardRows, CellState, Outcome


@dataclass
class SearchState:
    column: int = 0
    cancelled: bool = False
    running: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass(frozen=True)
class RunResult:
    outcome: Outcome
    board: Optional[Board] = None

    @property
    def solved(self) -> bool:
        return self.outcome is Outcome.SOLVED


def create_board(size: int) -> Board:
    return [[CellState.EMPTY for _ in range(size)] for _ in range(size)]


def copy_board(board: Board) -> Board:
    return [row[:] for row in board]


def board_to_rows(board: Board) -> BoardRows:
    return [[int(cell) for cell in row] for row in board]


def count_cells(board: Board, state: CellState) -> int:
    return sum(1 for row in board for cell in row if cell == state)


def is_empty(board: Board) -> bool:
    return count_cells(board, CellState.EMPTY) == len(board) * len(board)


def queen_positions(board: Board) -> list[Optional[int]]:
    size = len(board)
    positions: list[Optional[int]] = []
    for c in range(size):
        found = None
        for r in range(size):
            if board[r][c] == CellState.QUEEN:
                found = r
                break
        positions.append(found)
    return positions
