import argparse
import asyncio
import json
from pathlib import Path
from typing import Any, Optional

from nqueens.solver import RunController
from nqueens.state import RunResult
from nqueens.types import TraceLog, TraceStep
from nqueens.utils import format_board_rows
from nqueens.validation import validate_board_size, validate_speed
from rules.rules import STATUS_MESSAGES


def run(
    size: int,
    speed_ms: float = 0,
    cancel_after: Optional[float] = None,
    trace_log: Optional[TraceLog] = None,
    frames: Optional[list[TraceStep]] = None,
    animate: bool = False,
) -> tuple[RunResult, str]:
    # boundary validation
    validate_board_size(size)
    validate_speed(speed_ms)
    if cancel_after is not None and cancel_after < 0:
        raise ValueError("cancel_after must be >= 0")

    def on_snapshot(step: TraceStep) -> None:
        if frames is not None:
            frames.append(step)
        if animate:
            print(step["message"])
            print("\n".join(format_board_rows(step["board"])))
            print()

    controller = RunController(
        board_size=size,
        speed_ms=speed_ms,
        on_snapshot=on_snapshot,
        trace_enabled=trace_log is not None,
        trace_log=trace_log,
    )
    result = asyncio.run(_drive(controller, cancel_after))
    return result, controller.status


async def _drive(controller: RunController, cancel_after: Optional[float]) -> RunResult:
    task = controller.start()
    if cancel_after is not None:
        asyncio.get_running_loop().call_later(cancel_after, controller.reset)
    return await task


def load_run_from_file(input_path: str) -> tuple[int, float]:
    path = Path(input_path)
    try:
        payload: Any = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ValueError(f"input file not found: {input_path}") from exc
    except json.JSONDecodeError as exc:
        raise ValueError(f"input file is not valid JSON: {input_path}") from exc

    if not isinstance(payload, dict):
        raise ValueError("JSON root must be an object")

    size = payload.get("size")
    speed_ms = payload.get("speed_ms", 0)
    if size is None:
        raise ValueError("JSON must include 'size'")

    return size, speed_ms


def build_report(
    result: RunResult,
    status: str,
    trace_log: Optional[TraceLog] = None,
    frames: Optional[list[TraceStep]] = None,
) -> dict[str, object]:
    report: dict[str, object] = {
        "status": status,
        "message": STATUS_MESSAGES[status],
        "outcome": result.outcome.value,
        "board": format_board_rows(result.board) if result.board is not None else None,
    }
    if trace_log is not None:
        report["trace"] = trace_log
    if frames is not None:
        report["frames"] = [
            {"event": step["event"], "message": step["message"], "board": format_board_rows(step["board"])}
            for step in frames
        ]
    return report


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the N-Queens backtracking visualizer in the terminal")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--size", "-n", type=int, help="Number of queens (board side length)")
    source.add_argument("--input", help="Path to a JSON file with size and optional speed_ms")
    parser.add_argument("--speed-ms", type=float, default=None, help="Delay between frames in milliseconds")
    parser.add_argument("--trace", action="store_true", help="Include the search trace in the output")
    parser.add_argument("--frames", action="store_true", help="Include every board snapshot in the output")
    parser.add_argument("--animate", action="store_true", help="Print each snapshot as it is produced")
    parser.add_argument("--cancel-after", type=float, default=None, help="Cancel the run after this many seconds")
    return parser


if __name__ == "__main__":
    args = _build_parser().parse_args()

    try:
        if args.input is not None:
            size, speed_ms = load_run_from_file(args.input)
        else:
            size, speed_ms = args.size, 0
        if args.speed_ms is not None:
            speed_ms = args.speed_ms

        trace_log: Optional[TraceLog] = [] if args.trace else None
        frames: Optional[list[TraceStep]] = [] if args.frames else None
        result, status = run(
            size=size,
            speed_ms=speed_ms,
            cancel_after=args.cancel_after,
            trace_log=trace_log,
            frames=frames,
            animate=args.animate,
        )
        print(json.dumps(build_report(result, status, trace_log=trace_log, frames=frames), indent=2))
    except ValueError as exc:
        raise SystemExit(f"Error: {exc}")
