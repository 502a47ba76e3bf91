import asyncio
import threading
from collections import deque
from typing import Callable, Optional, TypeVar

from fastapi import FastAPI, HTTPException, Query, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from nqueens.solver import RunController, solve_board
from nqueens.state import board_to_rows, is_empty
from nqueens.types import Outcome, TraceStep
from nqueens.utils import format_board_rows
from nqueens.validation import validate_speed
from rules.rules import (
    DEFAULT_BOARD_SIZE,
    DEFAULT_SPEED_MS,
    DEFAULT_TRACE_MAX_STEPS,
    MAX_BOARD_SIZE,
    MIN_BOARD_SIZE,
    STATUS_CANCELLED,
    STATUS_MESSAGES,
    STATUS_NO_SOLUTION,
    STATUS_SOLVED,
)


T = TypeVar("T")

_OUTCOME_STATUS = {
    Outcome.SOLVED: STATUS_SOLVED,
    Outcome.EXHAUSTED: STATUS_NO_SOLUTION,
    Outcome.CANCELLED: STATUS_CANCELLED,
}


class SolveRequest(BaseModel):
    size: int = Field(..., ge=MIN_BOARD_SIZE, le=MAX_BOARD_SIZE, description="Number of queens (board side length)")
    trace: bool = Field(default=False, description="Include the text search trace in the response")
    trace_steps: bool = Field(default=False, description="Include every board snapshot produced by the search.")
    trace_max_steps: int = Field(default=1000, ge=1, le=DEFAULT_TRACE_MAX_STEPS, description="Maximum number of snapshots to return.")


class SnapshotResponse(BaseModel):
    index: int
    event: str
    message: str
    column: Optional[int] = None
    row: Optional[int] = None
    board: list[list[int]]


class SolveResponse(BaseModel):
    outcome: str
    status: str
    message: str
    board: list[list[int]]
    board_rows: list[str]
    board_text: str
    trace: Optional[list[str]] = None
    trace_steps: Optional[list[SnapshotResponse]] = None
    trace_truncated: bool = False


class StartRequest(BaseModel):
    size: int = Field(default=DEFAULT_BOARD_SIZE, ge=MIN_BOARD_SIZE, le=MAX_BOARD_SIZE, description="Number of queens (board side length)")
    speed_ms: float = Field(default=DEFAULT_SPEED_MS, ge=0.0, le=5000.0, description="Delay between snapshots in milliseconds")


class StartResponse(BaseModel):
    started: bool
    status: str
    message: str


class ResizeRequest(BaseModel):
    size: int = Field(..., ge=MIN_BOARD_SIZE, le=MAX_BOARD_SIZE, description="New board side length")


class SessionResponse(BaseModel):
    running: bool
    status: str
    message: str
    reset_label: str
    board_size: int
    board: list[list[int]]
    board_rows: list[str]
    board_empty: bool
    outcome: Optional[str] = None
    snapshot_count: int
    snapshots: list[SnapshotResponse]
    truncated: bool = False


app = FastAPI(
    title="N-Queens Visualizer API",
    description="Animate the N-Queens backtracking search one placement attempt at a time.",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://127.0.0.1:5173", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_SNAPSHOTS: deque[TraceStep] = deque(maxlen=DEFAULT_TRACE_MAX_STEPS)
_SNAPSHOTS_META = {"truncated": False}
_SNAPSHOTS_LOCK = threading.Lock()

_LOOP: Optional[asyncio.AbstractEventLoop] = None
_LOOP_LOCK = threading.Lock()


def _record_snapshot(step: TraceStep) -> None:
    with _SNAPSHOTS_LOCK:
        if len(_SNAPSHOTS) == _SNAPSHOTS.maxlen:
            _SNAPSHOTS_META["truncated"] = True
        _SNAPSHOTS.append(step)


_CONTROLLER = RunController(on_snapshot=_record_snapshot)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/solve", response_model=SolveResponse)
def solve(request: SolveRequest) -> SolveResponse:
    try:
        trace_log: list[str] = []
        trace_steps: list[TraceStep] = []
        trace_meta = {"truncated": False}
        result = solve_board(
            board_size=request.size,
            trace=request.trace,
            trace_log=trace_log,
            trace_steps=trace_steps if request.trace_steps else None,
            trace_meta=trace_meta,
            trace_max_steps=request.trace_max_steps,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    run_status = _OUTCOME_STATUS[result.outcome]
    board_rows = format_board_rows(result.board)
    return SolveResponse(
        outcome=result.outcome.value,
        status=run_status,
        message=STATUS_MESSAGES[run_status],
        board=board_to_rows(result.board),
        board_rows=board_rows,
        board_text="\n".join(board_rows),
        trace=trace_log if request.trace else None,
        trace_steps=trace_steps if request.trace_steps else None,
        trace_truncated=trace_meta["truncated"],
    )


@app.post("/runs/start", response_model=StartResponse, status_code=status.HTTP_202_ACCEPTED)
def run_start(request: StartRequest) -> StartResponse:
    try:
        started = _call_in_loop(_start_run, request.size, request.speed_ms)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    run_status = _call_in_loop(lambda: _CONTROLLER.status)
    return StartResponse(started=started, status=run_status, message=STATUS_MESSAGES[run_status])


@app.get("/runs/current", response_model=SessionResponse)
def run_current(since: int = Query(default=0, ge=0, description="Only return snapshots with index >= since")) -> SessionResponse:
    return _build_session_response(since)


@app.post("/runs/current/reset", response_model=SessionResponse)
def run_reset() -> SessionResponse:
    _call_in_loop(_CONTROLLER.reset)
    return _build_session_response(_call_in_loop(lambda: _CONTROLLER.snapshot_count - 1))


@app.post("/board/size", response_model=SessionResponse)
def board_resize(request: ResizeRequest) -> SessionResponse:
    try:
        resized = _call_in_loop(_CONTROLLER.resize, request.size)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if not resized:
        raise HTTPException(status_code=409, detail="cannot resize the board while a run is active")
    return _build_session_response(_call_in_loop(lambda: _CONTROLLER.snapshot_count - 1))


def _start_run(size: int, speed_ms: float) -> bool:
    if _CONTROLLER.running:
        return False
    _CONTROLLER.speed_ms = validate_speed(speed_ms)
    with _SNAPSHOTS_LOCK:
        _SNAPSHOTS.clear()
        _SNAPSHOTS_META["truncated"] = False
    return _CONTROLLER.start(size) is not None


def _describe_controller() -> dict[str, object]:
    result = _CONTROLLER.result
    return {
        "running": _CONTROLLER.running,
        "status": _CONTROLLER.status,
        "message": _CONTROLLER.status_text,
        "reset_label": _CONTROLLER.reset_label,
        "board_size": _CONTROLLER.board_size,
        "board": board_to_rows(_CONTROLLER.board),
        "board_rows": format_board_rows(_CONTROLLER.board),
        "board_empty": is_empty(_CONTROLLER.board),
        "outcome": result.outcome.value if result is not None else None,
        "snapshot_count": _CONTROLLER.snapshot_count,
    }


def _build_session_response(since: int) -> SessionResponse:
    described = _call_in_loop(_describe_controller)
    with _SNAPSHOTS_LOCK:
        snapshots = [step for step in _SNAPSHOTS if step["index"] >= since]
        truncated = _SNAPSHOTS_META["truncated"]
    return SessionResponse(**described, snapshots=snapshots, truncated=truncated)


def _call_in_loop(fn: Callable[..., T], *args: object) -> T:
    async def invoke() -> T:
        return fn(*args)

    return asyncio.run_coroutine_threadsafe(invoke(), _get_loop()).result(timeout=10)


def _get_loop() -> asyncio.AbstractEventLoop:
    global _LOOP
    with _LOOP_LOCK:
        if _LOOP is None:
            loop = asyncio.new_event_loop()
            thread = threading.Thread(target=loop.run_forever, name="nqueens-visualizer", daemon=True)
            thread.start()
            _LOOP = loop
        return _LOOP
