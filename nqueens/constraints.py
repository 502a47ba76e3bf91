from .types import Board, CellState


def is_safe(board: Board, row: int, col: int) -> bool:
    size = len(board)

    # same row, left side
    for c in range(col):
        if board[row][c] == CellState.QUEEN:
            return False

    # upper-left diagonal
    r, c = row, col
    while r >= 0 and c >= 0:
        if board[r][c] == CellState.QUEEN:
            return False
        r -= 1
        c -= 1

    # lower-left diagonal
    r, c = row, col
    while r < size and c >= 0:
        if board[r][c] == CellState.QUEEN:
            return False
        r += 1
        c -= 1

    return True


def is_valid_solution(board: Board) -> bool:
    size = len(board)
    queens = [(r, c) for r in range(size) for c in range(size) if board[r][c] == CellState.QUEEN]
    if len(queens) != size:
        return False
    if any(cell == CellState.TRYING for row in board for cell in row):
        return False

    rows = {r for r, _ in queens}
    cols = {c for _, c in queens}
    down_diagonals = {r - c for r, c in queens}
    up_diagonals = {r + c for r, c in queens}
    return len(rows) == len(cols) == len(down_diagonals) == len(up_diagonals) == size
