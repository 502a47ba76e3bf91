import asyncio
import unittest

from nqueens.constraints import is_valid_solution
from nqueens.solver import RunController, solve_board
from nqueens.state import count_cells, is_empty, queen_positions
from nqueens.types import CellState, Outcome
from rules.rules import (
    RESET_LABEL_IDLE,
    RESET_LABEL_RUNNING,
    STATUS_CANCELLED,
    STATUS_IDLE,
    STATUS_MESSAGES,
    STATUS_NO_SOLUTION,
    STATUS_SIZE_CHANGED,
    STATUS_SOLVED,
    STATUS_SOLVING,
)


class TestSolveBoard(unittest.TestCase):
    def test_single_queen_is_solved_immediately(self) -> None:
        result = solve_board(1)
        self.assertEqual(result.outcome, Outcome.SOLVED)
        self.assertEqual(result.board, [[CellState.QUEEN]])

    def test_two_and_three_have_no_solution(self) -> None:
        for size in (2, 3):
            result = solve_board(size)
            self.assertEqual(result.outcome, Outcome.EXHAUSTED)
            self.assertTrue(is_empty(result.board))

    def test_four_queens_first_solution_is_reproducible(self) -> None:
        result = solve_board(4)
        self.assertTrue(result.solved)
        self.assertEqual(queen_positions(result.board), [1, 3, 0, 2])

    def test_solved_boards_are_valid_for_larger_sizes(self) -> None:
        for size in (5, 6, 8, 12):
            result = solve_board(size)
            self.assertEqual(result.outcome, Outcome.SOLVED, size)
            self.assertTrue(is_valid_solution(result.board), size)

    def test_trace_steps_form_an_ordered_snapshot_stream(self) -> None:
        trace_steps: list[dict] = []
        solve_board(4, trace_steps=trace_steps)
        self.assertEqual(trace_steps[0]["event"], "reset")
        self.assertEqual([step["index"] for step in trace_steps], list(range(len(trace_steps))))
        for step in trace_steps:
            trying = sum(1 for row in step["board"] for cell in row if cell == int(CellState.TRYING))
            self.assertLessEqual(trying, 1)
        self.assertEqual(trace_steps[-1]["event"], "place")

    def test_exhausted_run_ends_with_a_cleared_board_snapshot(self) -> None:
        trace_steps: list[dict] = []
        solve_board(2, trace_steps=trace_steps)
        self.assertEqual(trace_steps[-1]["event"], "clear")
        self.assertTrue(all(cell == 0 for row in trace_steps[-1]["board"] for cell in row))

    def test_trace_steps_are_truncated_at_the_limit(self) -> None:
        trace_steps: list[dict] = []
        trace_meta = {"truncated": False}
        solve_board(6, trace_steps=trace_steps, trace_meta=trace_meta, trace_max_steps=10)
        self.assertEqual(len(trace_steps), 10)
        self.assertTrue(trace_meta["truncated"])

    def test_trace_log_records_run_and_final_board(self) -> None:
        trace_log: list[str] = []
        solve_board(4, trace=True, trace_log=trace_log)
        self.assertTrue(trace_log[0].startswith("Initialized search: size=4"))
        self.assertIn("Search finished: solved", trace_log)
        self.assertIn("  . . Q .", trace_log)
        self.assertIn("Queens by column: [1, 3, 0, 2], valid=True", trace_log)

    def test_raises_when_size_is_not_positive(self) -> None:
        with self.assertRaises(ValueError):
            solve_board(0)

    def test_raises_when_speed_is_not_finite(self) -> None:
        for speed_ms in (float("inf"), float("nan")):
            with self.assertRaises(ValueError):
                solve_board(4, speed_ms=speed_ms)
            with self.assertRaises(ValueError):
                RunController(board_size=4, speed_ms=speed_ms)
            with self.assertRaises(ValueError):
                RunController(board_size=4, settle_ms=speed_ms)

    def test_raises_when_trace_limit_is_not_positive(self) -> None:
        with self.assertRaises(ValueError):
            solve_board(4, trace_max_steps=0)


class TestRunController(unittest.IsolatedAsyncioTestCase):
    async def test_solve_publishes_status_changes(self) -> None:
        statuses: list[tuple[str, str]] = []
        controller = RunController(board_size=4, speed_ms=0, settle_ms=0, on_status=lambda key, text: statuses.append((key, text)))

        result = await controller.solve()

        self.assertEqual(result.outcome, Outcome.SOLVED)
        self.assertEqual(
            statuses,
            [
                (STATUS_SOLVING, STATUS_MESSAGES[STATUS_SOLVING]),
                (STATUS_SOLVED, STATUS_MESSAGES[STATUS_SOLVED]),
            ],
        )
        self.assertFalse(controller.running)
        self.assertIs(controller.result, result)
        self.assertTrue(is_valid_solution(controller.board))

    async def test_exhausted_run_clears_the_displayed_board(self) -> None:
        controller = RunController(board_size=3, speed_ms=0, settle_ms=0)
        result = await controller.solve()
        self.assertEqual(result.outcome, Outcome.EXHAUSTED)
        self.assertEqual(controller.status, STATUS_NO_SOLUTION)
        self.assertTrue(is_empty(controller.board))

    async def test_solve_accepts_a_new_size(self) -> None:
        controller = RunController(board_size=4, speed_ms=0, settle_ms=0)
        result = await controller.solve(1)
        self.assertEqual(controller.board_size, 1)
        self.assertEqual(result.board, [[CellState.QUEEN]])

    async def test_reset_mid_run_cancels_and_empties_the_board(self) -> None:
        controller = RunController(board_size=8, speed_ms=5, settle_ms=0)
        task = controller.start()
        await asyncio.sleep(0.05)
        self.assertTrue(controller.running)
        self.assertEqual(controller.reset_label, RESET_LABEL_RUNNING)

        controller.reset()
        snapshots_after_reset = controller.snapshot_count

        self.assertFalse(controller.running)
        self.assertTrue(is_empty(controller.board))
        self.assertEqual(controller.status, STATUS_IDLE)
        self.assertEqual(controller.reset_label, RESET_LABEL_IDLE)

        result = await task

        self.assertEqual(result.outcome, Outcome.CANCELLED)
        self.assertEqual(controller.status, STATUS_CANCELLED)
        self.assertTrue(is_empty(controller.board))
        self.assertEqual(controller.snapshot_count, snapshots_after_reset)

    async def test_start_while_running_is_a_no_op(self) -> None:
        controller = RunController(board_size=8, speed_ms=5, settle_ms=0)
        task = controller.start()
        await asyncio.sleep(0.02)
        state = controller.state

        self.assertIsNone(controller.start(5))
        self.assertIsNone(await controller.solve(5))
        self.assertIs(controller.state, state)
        self.assertEqual(controller.board_size, 8)
        self.assertEqual(len(controller.board), 8)

        controller.reset()
        await task

    async def test_cancelled_run_does_not_overwrite_a_newer_run(self) -> None:
        controller = RunController(board_size=8, speed_ms=20, settle_ms=0)
        old_task = controller.start()
        await asyncio.sleep(0.05)
        controller.reset()

        new_task = controller.start(1)
        old_result, new_result = await asyncio.gather(old_task, new_task)

        self.assertEqual(old_result.outcome, Outcome.CANCELLED)
        self.assertEqual(new_result.outcome, Outcome.SOLVED)
        self.assertEqual(controller.status, STATUS_SOLVED)
        self.assertIs(controller.result, new_result)
        self.assertEqual(count_cells(controller.board, CellState.QUEEN), 1)

    async def test_repeated_resets_leave_state_unchanged(self) -> None:
        controller = RunController(board_size=5, speed_ms=0, settle_ms=0)
        controller.reset()
        controller.reset()
        self.assertFalse(controller.running)
        self.assertEqual(controller.status, STATUS_IDLE)
        self.assertEqual(controller.status_text, STATUS_MESSAGES[STATUS_IDLE])
        self.assertEqual(len(controller.board), 5)
        self.assertTrue(is_empty(controller.board))

    async def test_resize_changes_board_when_idle(self) -> None:
        controller = RunController(board_size=4, speed_ms=0, settle_ms=0)
        self.assertTrue(controller.resize(6))
        self.assertEqual(controller.board_size, 6)
        self.assertEqual(len(controller.board), 6)
        self.assertEqual(controller.status, STATUS_SIZE_CHANGED)

    async def test_resize_rejects_out_of_range_sizes(self) -> None:
        controller = RunController(board_size=4, speed_ms=0, settle_ms=0)
        for size in (0, 11):
            with self.assertRaises(ValueError):
                controller.resize(size)
        self.assertEqual(controller.board_size, 4)

    async def test_resize_is_refused_while_running(self) -> None:
        controller = RunController(board_size=8, speed_ms=5, settle_ms=0)
        task = controller.start()
        await asyncio.sleep(0.02)
        self.assertFalse(controller.resize(4))
        self.assertEqual(controller.board_size, 8)
        controller.reset()
        await task

    async def test_snapshots_reach_the_sink(self) -> None:
        steps: list[dict] = []
        controller = RunController(board_size=1, speed_ms=0, settle_ms=0, on_snapshot=steps.append)
        await controller.solve()
        self.assertEqual([step["event"] for step in steps], ["reset", "try", "place"])
        self.assertEqual(steps[1]["board"], [[int(CellState.TRYING)]])
        self.assertEqual(steps[2]["board"], [[int(CellState.QUEEN)]])
        self.assertEqual((steps[2]["row"], steps[2]["column"]), (0, 0))


    async def test_failing_sink_restores_idle_status(self) -> None:
        trace_log: list[str] = []

        def on_snapshot(step: dict) -> None:
            if step["event"] == "place":
                raise RuntimeError("sink unavailable")

        controller = RunController(
            board_size=4, speed_ms=0, settle_ms=0, on_snapshot=on_snapshot, trace_enabled=True, trace_log=trace_log
        )

        with self.assertRaises(RuntimeError):
            await controller.solve()

        self.assertFalse(controller.running)
        self.assertEqual(controller.status, STATUS_IDLE)
        self.assertTrue(any(line.startswith("Search failed: RuntimeError") for line in trace_log))

    async def test_failing_started_task_is_retrieved_and_traced(self) -> None:
        trace_log: list[str] = []

        def on_snapshot(step: dict) -> None:
            if step["event"] == "try":
                raise RuntimeError("sink unavailable")

        controller = RunController(
            board_size=4, speed_ms=0, settle_ms=0, on_snapshot=on_snapshot, trace_enabled=True, trace_log=trace_log
        )
        task = controller.start()
        await asyncio.wait([task])
        await asyncio.sleep(0)

        self.assertIsInstance(task.exception(), RuntimeError)
        self.assertEqual(controller.status, STATUS_IDLE)
        self.assertTrue(any(line.startswith("Run task ended with an error: RuntimeError") for line in trace_log))


if __name__ == "__main__":
    unittest.main()
