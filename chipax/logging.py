"""Console logging utilities for chipax sessions.

Provides a levelled, colourised console logger with elapsed-time stamps and a
specialised logger for emulation sessions, plus a tqdm progress helper for
headless runs.
"""

import time
import sys
from typing import Any, Dict, Iterable, Optional

from tqdm import tqdm


class ConsoleLogger:
    """Flexible console logger with levels, timestamps and colors."""

    def __init__(
        self,
        name: str = "chipax",
        log_level: str = "INFO",
        use_colors: bool = True,
        show_timestamps: bool = True,
        stream=None,
    ):
        self.name = name
        self.log_level = log_level.upper()
        self.stream = stream if stream is not None else sys.stdout
        self.use_colors = (
            use_colors and hasattr(self.stream, "isatty") and self.stream.isatty()
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
            print(formatted, file=self.stream, flush=True)

    def debug(self, message: str):
        """Log debug message."""
        self.log("DEBUG", message)

    def info(self, message: str):
        """Log info message."""
        self.log("INFO", message)

    def warning(self, message: str):
        """Log warning message."""
        self.log("WARNING", message)

    def error(self, message: str):
        """Log error message."""
        self.log("ERROR", message)

    def critical(self, message: str):
        """Log critical message."""
        self.log("CRITICAL", message)


class SessionLogger(ConsoleLogger):
    """Logger for emulation sessions: configuration, faults and machine dumps."""

    def __init__(self, name: str = "Session", **kwargs):
        super().__init__(name, **kwargs)

    def log_session_start(self, config: Dict[str, Any]):
        """Log session configuration."""
        self.info("=" * 60)
        self.info("Starting session with configuration:")
        for key, value in config.items():
            self.info(f"  {key}: {value}")
        self.info("=" * 60)

    def log_fault(self, error: Exception, state: Any = None):
        """Log an execution fault, with a register dump when the state is known."""
        self.error(f"Execution halted: {error}")
        if state is not None:
            self.log_registers(state, level="ERROR")

    def log_registers(self, state: Any, level: str = "DEBUG"):
        """Log PC, I, stack depth, timers and V0-VF."""
        self.log(
            level,
            f"PC=0x{int(state.pc):03X} I=0x{int(state.I):03X} "
            f"SP={int(state.stack.pointer)} DT={int(state.delay_timer)} ST={int(state.sound_timer)}"
        )
        for row in range(0, 16, 4):
            registers = " ".join(f"V{r:X}={int(state.V[r]):02X}" for r in range(row, row + 4))
            self.log(level, f"  {registers}")


def progress(iterable: Iterable, total: Optional[int] = None, desc: str = None, **kwargs):
    """Wrap a host-side loop with a tqdm progress bar."""
    if desc is None:
        desc = "Emulating"
    return tqdm(iterable, total=total, desc=desc, unit="frame", **kwargs)
