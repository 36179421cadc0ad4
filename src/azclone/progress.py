"""
Progress Display Module

Show stage-by-stage progress of a clone run on the console.
"""

import logging
import sys
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class ProgressStage(Enum):
    """Progress stage indicators."""

    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ProgressUpdate:
    """Progress update information."""

    stage: ProgressStage
    message: str
    timestamp: float
    operation: str


class ProgressDisplay:
    """
    Stage-based progress display for the clone pipeline.

    Each pipeline step is one operation: start_operation() opens it and
    complete() closes it with its elapsed time.
    """

    SYMBOLS = {
        ProgressStage.STARTED: "►",
        ProgressStage.COMPLETED: "✓",
        ProgressStage.FAILED: "✗",
    }

    def __init__(self, output_file=None):
        """
        Initialize progress display.

        Args:
            output_file: Output file object (default: sys.stdout)
        """
        self.output_file = output_file or sys.stdout
        self.current_operation: Optional[str] = None
        self.start_time: Optional[float] = None
        self.updates: list[ProgressUpdate] = []

    def start_operation(self, name: str) -> None:
        """Begin showing progress for an operation."""
        self.current_operation = name
        self.start_time = time.time()
        self.update(f"{name}...", ProgressStage.STARTED)

    def update(self, message: str, stage: ProgressStage) -> None:
        """Record and print a progress line."""
        update = ProgressUpdate(
            stage=stage,
            message=message,
            timestamp=time.time(),
            operation=self.current_operation or "unknown",
        )
        self.updates.append(update)
        self._print(self._format_update(update))

    def complete(self, success: bool = True, message: Optional[str] = None) -> None:
        """
        Mark the current operation complete.

        Args:
            success: Whether operation succeeded
            message: Optional completion message
        """
        if success:
            stage = ProgressStage.COMPLETED
            default_message = f"{self.current_operation} completed"
        else:
            stage = ProgressStage.FAILED
            default_message = f"{self.current_operation} failed"

        final_message = message or default_message

        if self.start_time:
            elapsed = time.time() - self.start_time
            final_message += f" ({format_duration(elapsed)})"

        self.update(final_message, stage)

        self.current_operation = None
        self.start_time = None

    def _format_update(self, update: ProgressUpdate) -> str:
        symbol = self.SYMBOLS[update.stage]
        return f"{symbol} {update.message}"

    def _print(self, message: str) -> None:
        print(message, file=self.output_file, flush=True)

    def get_updates(self) -> list[ProgressUpdate]:
        """Return all recorded progress updates."""
        return self.updates.copy()


def format_duration(seconds: float) -> str:
    """
    Format duration in human-readable format.

    Returns:
        str: Formatted duration (e.g., "2m 30s")
    """
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes}m {secs}s"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        return f"{hours}h {minutes}m"
