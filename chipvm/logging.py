"""Console logging utilities for the virtual machine.

``ConsoleLogger`` is a small levelled logger that prints to stdout.
``CycleLogger`` adds the cycle bookkeeping a debug overlay shows: total
instructions executed and how many of them were fast-forwarded because a
single ``advance`` call covered several clock periods.
"""

import time
import sys
from typing import Optional

from tqdm import tqdm


class ConsoleLogger:
    """Levelled console logger with optional colours and timestamps."""

    def __init__(
        self,
        name: str = "chipvm",
        log_level: str = "INFO",
        use_colors: bool = True,
        show_timestamps: bool = True,
    ):
        self.name = name
        self.log_level = log_level.upper()
        self.use_colors = (
            use_colors and hasattr(sys.stdout, "isatty") and sys.stdout.isatty()
        )
        self.show_timestamps = show_timestamps
        self.start_time = time.time()

        self.colors = (
            {
                "DEBUG": "\033[36m",
                "INFO": "\033[32m",
                "WARNING": "\033[33m",
                "ERROR": "\033[31m",
                "CRITICAL": "\033[35m",
                "RESET": "\033[0m"
            }
            if self.use_colors
            else {
                k: ""
                for k in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL", "RESET"]
            }
        )

        self.level_order = {
            "DEBUG": 0,
            "INFO": 1,
            "WARNING": 2,
            "ERROR": 3,
            "CRITICAL": 4,
        }

    def _should_log(self, level: str) -> bool:
        """Check if message should be logged based on current log level."""
        return self.level_order.get(level.upper(), 1) >= self.level_order.get(
            self.log_level, 1
        )

    def _format_message(self, level: str, message: str) -> str:
        """Format log message with timestamp, level, and colors."""
        timestamp = (
            f"[{time.time() - self.start_time:8.2f}s]" if self.show_timestamps else ""
        )
        level_str = f"[{level:>8s}]"
        name_str = f"[{self.name}]"

        if self.use_colors:
            color = self.colors.get(level.upper(), "")
            reset = self.colors["RESET"]
            level_str = f"{color}{level_str}{reset}"

        return f"{timestamp}{level_str}{name_str} {message}"

    def log(self, level: str, message: str):
        """Log a message at the specified level."""
        if self._should_log(level):
            formatted = self._format_message(level, message)
            print(formatted, flush=True)

    def debug(self, message: str):
        self.log("DEBUG", message)

    def info(self, message: str):
        self.log("INFO", message)

    def warning(self, message: str):
        self.log("WARNING", message)

    def error(self, message: str):
        self.log("ERROR", message)

    def critical(self, message: str):
        self.log("CRITICAL", message)


class CycleLogger(ConsoleLogger):
    """Logger that also counts executed and fast-forwarded cycles."""

    def __init__(self, name: str = "chipvm", **kwargs):
        kwargs.setdefault("log_level", "WARNING")
        super().__init__(name, **kwargs)
        self.cycles = 0
        self.fast_forwarded_cycles = 0

    def log_advance(self, dt: float, cycles: int):
        """Record the outcome of one advance call."""
        self.cycles += cycles
        if cycles > 1:
            self.fast_forwarded_cycles += cycles - 1
            self.debug(
                f"advance({dt * 1000:.2f}ms): {cycles} cycles, "
                f"{cycles - 1} fast-forwarded"
            )

    def log_clock_change(self, hz: float):
        self.info(f"Clock frequency: {hz:.1f} Hz")

    def summary(self) -> str:
        return (
            f"Cycles: {self.cycles} | "
            f"Fast-forwarded cycles: {self.fast_forwarded_cycles}"
        )


def run_with_progress(
    machine,
    seconds: float,
    dt: float = 1.0 / 60.0,
    desc: Optional[str] = None,
    **tqdm_kwargs,
) -> int:
    """Drive ``machine.advance`` headlessly for ``seconds`` of emulated time.

    Shows a tqdm progress bar over the frames and returns the number of
    instructions executed.
    """
    if dt <= 0:
        raise ValueError(f"dt must be positive, got {dt}")
    n = int(round(seconds / dt))
    if desc is None:
        desc = f"Running ({n:,} frames)"

    for kwarg in ("total", "unit"):
        tqdm_kwargs.pop(kwarg, None)

    executed = 0
    with tqdm(total=n, desc=desc, unit="frame", **tqdm_kwargs) as bar:
        for _ in range(n):
            executed += machine.advance(dt)
            bar.update(1)
            bar.set_postfix(cycles=executed, refresh=False)
    return executed
