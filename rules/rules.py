MIN_BOARD_SIZE = 1
MAX_BOARD_SIZE = 10
DEFAULT_BOARD_SIZE = 4

# milliseconds
DEFAULT_SPEED_MS = 150
SETTLE_DELAY_MS = 10

DEFAULT_TRACE_MAX_STEPS = 20000

STATUS_IDLE = "idle"
STATUS_SIZE_CHANGED = "size_changed"
STATUS_SOLVING = "solving"
STATUS_SOLVED = "solved"
STATUS_NO_SOLUTION = "no_solution"
STATUS_CANCELLED = "cancelled"

STATUS_MESSAGES = {
    STATUS_IDLE: 'Press "Solve" to start.',
    STATUS_SIZE_CHANGED: "Board size changed. Ready to solve.",
    STATUS_SOLVING: "Solving...",
    STATUS_SOLVED: "Solution found!",
    STATUS_NO_SOLUTION: "No solution found.",
    STATUS_CANCELLED: "Solve cancelled.",
}

RESET_LABEL_IDLE = "Reset"
RESET_LABEL_RUNNING = "Cancel"
