"""Real-thread tests: stop_playback() from another thread and session replacement."""

import logging
import threading

import pytest

from conftest import RecordingDriver
from singit.clock import WallClock
from singit.scheduler import ChordStruck, PlaybackEvent, PlaybackScheduler, PlaybackState

pytestmark = pytest.mark.integration


def _scheduler() -> tuple[PlaybackScheduler, RecordingDriver, threading.Event]:
    clock = WallClock()
    driver = RecordingDriver(clock)
    scheduler = PlaybackScheduler(driver, clock=clock)
    struck = threading.Event()

    def on_event(event: PlaybackEvent) -> None:
        if isinstance(event, ChordStruck):
            struck.set()

    scheduler.subscribe(on_event)
    return scheduler, driver, struck


def test_stop_from_another_thread_silences_and_ends_worker() -> None:
    scheduler, driver, struck = _scheduler()

    # 20 BPM: each chord would ring for three seconds.
    worker = scheduler.start_progression("C G Am F", tempo_bpm=20)
    assert struck.wait(timeout=2.0)
    assert scheduler.is_playing

    scheduler.stop_playback()
    assert driver.sounding == set()

    worker.join(timeout=2.0)
    assert not worker.is_alive()
    assert scheduler.state is PlaybackState.CANCELLED
    assert len([c for c in driver.calls if c.kind == "start"]) == 4  # one chord: bass + triad


def test_new_session_cancels_running_one(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="singit.scheduler")
    scheduler, driver, struck = _scheduler()

    first = scheduler.start_progression("C G Am F", tempo_bpm=20)
    assert struck.wait(timeout=2.0)

    # Runs on this thread; must cancel the first session before starting.
    assert scheduler.play_progression("G", tempo_bpm=240) is True

    first.join(timeout=2.0)
    assert not first.is_alive()
    assert driver.sounding == set()
    started = [c.pitch for c in driver.calls if c.kind == "start"]
    assert started == [48, 60, 64, 67, 55, 67, 71, 74]
    assert scheduler.state is PlaybackState.IDLE
    # The waiting session cancels once, then waits for the lock.
    assert [r.getMessage() for r in caplog.records].count("Playback stopped") == 1
