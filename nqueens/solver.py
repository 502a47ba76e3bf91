import asyncio
from typing import Optional

from rules.rules import (
    DEFAULT_BOARD_SIZE,
    DEFAULT_SPEED_MS,
    DEFAULT_TRACE_MAX_STEPS,
    RESET_LABEL_IDLE,
    RESET_LABEL_RUNNING,
    SETTLE_DELAY_MS,
    STATUS_CANCELLED,
    STATUS_IDLE,
    STATUS_MESSAGES,
    STATUS_NO_SOLUTION,
    STATUS_SIZE_CHANGED,
    STATUS_SOLVED,
    STATUS_SOLVING,
)

from .constraints import is_valid_solution
from .search import search_first_solution
from .state import RunResult, SearchState, board_to_rows, copy_board, create_board, queen_positions
from .types import Board, Outcome, SnapshotCallback, StatusCallback, TraceLog, TraceStep
from .utils import format_board_rows, indent, milliseconds, trace
from .validation import validate_board_size, validate_speed, validate_trace_max_steps


class RunController:
    """Owns the displayed board and status for one visualizer, and at most one live search.

    Every method must be called from the event loop that runs the search. ``reset`` only
    requests cancellation; the search stops at its next poll point, within one delay.
    """

    def __init__(
        self,
        board_size: int = DEFAULT_BOARD_SIZE,
        speed_ms: float = DEFAULT_SPEED_MS,
        settle_ms: float = SETTLE_DELAY_MS,
        on_snapshot: Optional[SnapshotCallback] = None,
        on_status: Optional[StatusCallback] = None,
        trace_enabled: bool = False,
        trace_log: Optional[TraceLog] = None,
    ) -> None:
        self.board_size = validate_board_size(board_size, max_size=None)
        self.speed_ms = validate_speed(speed_ms)
        self.settle_ms = validate_speed(settle_ms)
        self.on_snapshot = on_snapshot
        self.on_status = on_status
        self.trace_enabled = trace_enabled
        self.trace_log = trace_log

        self.board: Board = create_board(self.board_size)
        self.status = STATUS_IDLE
        self.state: Optional[SearchState] = None
        self.result: Optional[RunResult] = None
        self.snapshot_count = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self.state is not None and self.state.running

    @property
    def status_text(self) -> str:
        return STATUS_MESSAGES[self.status]

    @property
    def reset_label(self) -> str:
        return RESET_LABEL_RUNNING if self.running else RESET_LABEL_IDLE

    async def solve(self, board_size: Optional[int] = None) -> Optional[RunResult]:
        if self.running:
            return None
        state = self._begin(board_size)
        return await self._run(state)

    def start(self, board_size: Optional[int] = None) -> Optional[asyncio.Task]:
        loop = asyncio.get_running_loop()
        if self.running:
            return None
        state = self._begin(board_size)
        self._task = loop.create_task(self._run(state))
        self._task.add_done_callback(self._retrieve_failure)
        return self._task

    def reset(self) -> None:
        state = self.state
        if state is not None and state.running:
            state.cancel()
            state.running = False
            trace(self.trace_enabled, self.trace_log, "Cancellation requested")

        self.board = create_board(self.board_size)
        self._set_status(STATUS_IDLE)
        self._emit_snapshot("reset", "Board cleared", None, None)

    def resize(self, board_size: int) -> bool:
        board_size = validate_board_size(board_size)
        if self.running:
            return False
        self.board_size = board_size
        self.board = create_board(board_size)
        self._set_status(STATUS_SIZE_CHANGED)
        self._emit_snapshot("reset", f"Board resized to {board_size}x{board_size}", None, None)
        return True

    def _begin(self, board_size: Optional[int]) -> SearchState:
        if board_size is not None:
            self.board_size = validate_board_size(board_size, max_size=None)

        state = SearchState(running=True)
        self.state = state
        self.result = None
        self.board = create_board(self.board_size)
        self._set_status(STATUS_SOLVING)
        self._emit_snapshot("reset", "Board cleared for a new run", None, None)
        trace(
            self.trace_enabled,
            self.trace_log,
            f"Initialized search: size={self.board_size}, speed_ms={self.speed_ms:g}",
        )
        return state

    async def _run(self, state: SearchState) -> RunResult:
        try:
            await asyncio.sleep(milliseconds(self.settle_ms))
            working = create_board(self.board_size)

            def publish(event: str, message: str, row: Optional[int], col: Optional[int]) -> None:
                self.board = copy_board(working)
                self._emit_snapshot(event, message, row, col)

            found = await search_first_solution(
                board=working,
                column=0,
                state=state,
                publish=publish,
                speed_ms=self.speed_ms,
                trace_enabled=self.trace_enabled,
                trace_log=self.trace_log,
            )
            current = state is self.state

            # cancellation wins over whatever the search returned
            if state.cancelled:
                result = RunResult(Outcome.CANCELLED, copy_board(self.board) if current else None)
                status = STATUS_CANCELLED
            elif found:
                result = RunResult(Outcome.SOLVED, copy_board(working))
                status = STATUS_SOLVED
            else:
                result = RunResult(Outcome.EXHAUSTED, create_board(len(working)))
                status = STATUS_NO_SOLUTION

            trace(self.trace_enabled, self.trace_log, f"Search finished: {result.outcome.value}")
            if result.solved:
                for line in format_board_rows(working):
                    trace(self.trace_enabled, self.trace_log, f"{indent(1)}{line}")
                trace(
                    self.trace_enabled,
                    self.trace_log,
                    f"Queens by column: {queen_positions(working)}, valid={is_valid_solution(working)}",
                )
            if current:
                self.result = result
                if result.outcome is Outcome.EXHAUSTED:
                    self.board = create_board(len(working))
                    self._emit_snapshot("clear", "No solution; board cleared", None, None)
                self._set_status(status)
            return result
        except Exception as exc:
            if state is self.state:
                self.status = STATUS_IDLE
            trace(self.trace_enabled, self.trace_log, f"Search failed: {exc!r}")
            raise
        finally:
            state.running = False

    def _retrieve_failure(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            trace(self.trace_enabled, self.trace_log, f"Run task ended with an error: {exc!r}")

    def _set_status(self, status: str) -> None:
        self.status = status
        if self.on_status is not None:
            self.on_status(status, STATUS_MESSAGES[status])

    def _emit_snapshot(self, event: str, message: str, row: Optional[int], col: Optional[int]) -> None:
        step: TraceStep = {
            "index": self.snapshot_count,
            "event": event,
            "message": message,
            "column": col,
            "row": row,
            "board": board_to_rows(self.board),
        }
        self.snapshot_count += 1
        if self.on_snapshot is not None:
            self.on_snapshot(step)


def solve_board(
    board_size: int,
    speed_ms: float = 0,
    settle_ms: float = 0,
    trace: bool = False,
    trace_log: Optional[TraceLog] = None,
    trace_steps: Optional[list[TraceStep]] = None,
    trace_meta: Optional[dict[str, bool]] = None,
    trace_max_steps: int = DEFAULT_TRACE_MAX_STEPS,
) -> RunResult:
    validate_trace_max_steps(trace_max_steps)

    def record_step(step: TraceStep) -> None:
        if trace_steps is None:
            return
        if len(trace_steps) >= trace_max_steps:
            if trace_meta is not None:
                trace_meta["truncated"] = True
            return
        trace_steps.append(step)

    controller = RunController(
        board_size=board_size,
        speed_ms=speed_ms,
        settle_ms=settle_ms,
        on_snapshot=record_step,
        trace_enabled=trace,
        trace_log=trace_log,
    )
    result = asyncio.run(controller.solve())
    if result is None:
        raise RuntimeError("a run is already active on this controller")
    return result
