"""Shared fixtures: a recording SoundDriver and a scheduler on virtual time."""

from dataclasses import dataclass

import pytest

from singit.clock import Clock, VirtualClock
from singit.driver import SoundDriver
from singit.scheduler import PlaybackScheduler


@dataclass(frozen=True)
class DriverCall:
    kind: str  # "start" | "stop" | "voice"
    pitch: int
    channel: int
    time: float
    velocity: int = 0


class RecordingDriver(SoundDriver):
    """Records every call and tracks which pitches are sounding."""

    def __init__(self, clock: Clock) -> None:
        super().__init__()
        self.clock = clock
        self.calls: list[DriverCall] = []
        self.sounding: set[tuple[int, int]] = set()

    def start_pitch(self, pitch: int, velocity: int, channel: int) -> None:
        self.calls.append(DriverCall("start", pitch, channel, self.clock.now(), velocity))
        self.sounding.add((pitch, channel))

    def stop_pitch(self, pitch: int, channel: int) -> None:
        self.calls.append(DriverCall("stop", pitch, channel, self.clock.now()))
        self.sounding.discard((pitch, channel))

    def select_voice(self, program: int, wait_until_ready: bool) -> None:
        self.calls.append(DriverCall("voice", program, -1, self.clock.now()))

    def batches(self) -> list[tuple[str, float, list[int]]]:
        """Group consecutive calls of the same kind at the same time."""
        result: list[tuple[str, float, list[int]]] = []
        for call in self.calls:
            if result and result[-1][0] == call.kind and result[-1][1] == call.time:
                result[-1][2].append(call.pitch)
            else:
                result.append((call.kind, call.time, [call.pitch]))
        return result


@pytest.fixture
def clock() -> VirtualClock:
    return VirtualClock()


@pytest.fixture
def driver(clock: VirtualClock) -> RecordingDriver:
    return RecordingDriver(clock)


@pytest.fixture
def scheduler(driver: RecordingDriver, clock: VirtualClock) -> PlaybackScheduler:
    return PlaybackScheduler(driver, clock=clock)
