"""Clocks used by the scheduler to time notes and to wait cancellably."""

import threading
import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> float:
        """Current time in seconds."""
        ...

    def sleep(self, seconds: float, cancelled: threading.Event) -> bool:
        """
        Wait *seconds*, returning early once *cancelled* is set.

        Returns:
            True if the wait ended because of cancellation.
        """
        ...


class WallClock:
    """Real time; sleeps block the calling thread."""

    def now(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float, cancelled: threading.Event) -> bool:
        if seconds <= 0:
            return cancelled.is_set()
        return cancelled.wait(seconds)


class VirtualClock:
    """
    Simulated time that advances instantly.

    Lets a progression be "played" into a MIDI file or a test fake without
    waiting for it in real time.
    """

    def __init__(self, start: float = 0.0) -> None:
        self.elapsed_time = start

    def now(self) -> float:
        return self.elapsed_time

    def sleep(self, seconds: float, cancelled: threading.Event) -> bool:
        if cancelled.is_set():
            return True
        if seconds > 0:
            self.elapsed_time += seconds
        return cancelled.is_set()
