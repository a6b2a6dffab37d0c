"""
Control Loop
============

Fixed-rate scheduler that drives RovBase.tick() from a background thread.

The control core has no timing logic of its own. Anything that can call
tick() at a steady rate (a ROS timer, an asyncio task, this thread) can
take this role.
"""

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional
import logging

logger = logging.getLogger(__name__)


@dataclass
class ControlLoopConfig:
    """Control loop timing."""
    rate_hz: float = 100.0

    @property
    def interval(self) -> float:
        """Time between ticks in seconds."""
        return 1.0 / self.rate_hz


class ControlLoop:
    """
    Calls a tick function at a fixed rate.

    Deadlines advance by a fixed interval so jitter does not accumulate.
    When a tick overruns by more than one interval the schedule restarts
    from now instead of bursting to catch up.
    """

    def __init__(self, tick: Callable[[], Any], config: Optional[ControlLoopConfig] = None):
        self.config = config or ControlLoopConfig()
        if self.config.rate_hz <= 0:
            raise ValueError(f"Control loop rate must be positive, got {self.config.rate_hz}")

        self._tick = tick
        self._running = False
        self._thread: Optional[threading.Thread] = None

        # Statistics
        self._tick_count = 0
        self._overrun_count = 0
        self._error_count = 0

    def start(self) -> bool:
        """Start the loop thread."""
        if self._running:
            return True

        self._running = True
        self._thread = threading.Thread(
            target=self._loop,
            daemon=True,
            name=f"{self.__class__.__name__}-tick"
        )
        self._thread.start()
        logger.info(f"Control loop started at {self.config.rate_hz:.0f}Hz")
        return True

    def stop(self):
        """Stop the loop thread."""
        self._running = False
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=1.0)
        self._thread = None
        logger.info("Control loop stopped")

    def run_once(self):
        """Execute a single tick, logging rather than raising on failure."""
        try:
            self._tick()
            self._tick_count += 1
        except Exception as e:
            self._error_count += 1
            logger.error(f"Control loop tick error: {e}")

    def _loop(self):
        next_tick = time.monotonic()

        while self._running:
            now = time.monotonic()

            if now >= next_tick:
                self.run_once()
                next_tick += self.config.interval

                # Prevent runaway if we're behind
                if next_tick < now:
                    self._overrun_count += 1
                    next_tick = now + self.config.interval
            else:
                time.sleep(min(next_tick - now, 0.001))

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def stats(self) -> dict:
        """Get loop statistics."""
        return {
            "tick_count": self._tick_count,
            "overrun_count": self._overrun_count,
            "error_count": self._error_count
        }
