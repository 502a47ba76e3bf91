import asyncio
from typing import Optional

from .constraints import is_safe
from .state import SearchState
from .types import Board, CellState, Publisher, TraceLog
from .utils import indent, milliseconds, trace


async def search_first_solution(
    board: Board,
    column: int,
    state: SearchState,
    publish: Publisher,
    speed_ms: float,
    trace_enabled: bool = False,
    trace_log: Optional[TraceLog] = None,
) -> bool:
    if state.cancelled:
        return False

    size = len(board)
    if column >= size:
        trace(trace_enabled, trace_log, f"{indent(column)}All {size} columns filled")
        return True

    state.column = column
    delay = milliseconds(speed_ms)

    for row in range(size):
        if state.cancelled:
            return False

        message = f"{indent(column)}Try row {row} in column {column}"
        trace(trace_enabled, trace_log, message)
        board[row][column] = CellState.TRYING
        publish("try", message, row, column)
        await asyncio.sleep(delay)
        if state.cancelled:
            return False

        if is_safe(board, row, column):
            message = f"{indent(column)}Place queen at ({row}, {column})"
            trace(trace_enabled, trace_log, message)
            board[row][column] = CellState.QUEEN
            publish("place", message, row, column)
            await asyncio.sleep(delay)

            if await search_first_solution(
                board=board,
                column=column + 1,
                state=state,
                publish=publish,
                speed_ms=speed_ms,
                trace_enabled=trace_enabled,
                trace_log=trace_log,
            ):
                return True

            if state.cancelled:
                return False

            state.column = column
            message = f"{indent(column)}Backtrack from ({row}, {column})"
            trace(trace_enabled, trace_log, message)
            board[row][column] = CellState.EMPTY
            publish("backtrack", message, row, column)
            await asyncio.sleep(delay)
        else:
            message = f"{indent(column)}Reject ({row}, {column}): under attack"
            trace(trace_enabled, trace_log, message)
            board[row][column] = CellState.EMPTY
            publish("reject", message, row, column)
            await asyncio.sleep(delay / 2)

    trace(trace_enabled, trace_log, f"{indent(column)}No safe row left in column {column}")
    return False
