"""Tests for MidiFileDriver recording and export."""

import threading
from pathlib import Path

from singit.clock import VirtualClock
from singit.config import PERCUSSION_CHANNEL
from singit.midi_driver import MidiFileDriver
from singit.scheduler import PlaybackScheduler


def test_records_note_durations_from_clock() -> None:
    clock = VirtualClock()
    driver = MidiFileDriver(clock)
    driver.start_pitch(60, 80, 0)
    clock.sleep(1.5, threading.Event())
    driver.stop_pitch(60, 0)

    assert len(driver.notes) == 1
    note = driver.notes[0]
    assert (note.pitch, note.velocity, note.start_time, note.duration) == (60, 80, 0.0, 1.5)


def test_stop_of_silent_pitch_is_ignored() -> None:
    driver = MidiFileDriver(VirtualClock())
    driver.stop_pitch(60, 0)
    assert driver.notes == []


def test_restrike_closes_previous_note() -> None:
    driver = MidiFileDriver(VirtualClock())
    driver.start_pitch(60, 80, 0)
    driver.start_pitch(60, 90, 0)
    assert len(driver.notes) == 1
    assert driver.sounding == [(60, 0)]


def test_context_manager_lifecycle() -> None:
    driver = MidiFileDriver(VirtualClock())
    assert not driver.is_running
    with driver:
        assert driver.is_running
    assert not driver.is_running


def test_export_writes_standard_midi_file(tmp_path: Path) -> None:
    clock = VirtualClock()
    driver = MidiFileDriver(clock, tempo=120)
    scheduler = PlaybackScheduler(driver, clock=clock)
    scheduler.play_progression("C G Am F", tempo_bpm=120, with_count_in=True)

    out = tmp_path / "progression.mid"
    driver.export(str(out))

    data = out.read_bytes()
    assert data.startswith(b"MThd")
    assert data.count(b"MTrk") >= 3


def test_export_closes_sounding_notes(tmp_path: Path) -> None:
    clock = VirtualClock()
    driver = MidiFileDriver(clock)
    driver.start_pitch(64, 80, 0)
    clock.sleep(2.0, threading.Event())

    driver.export(str(tmp_path / "open.mid"))

    assert driver.sounding == []
    assert driver.notes[0].duration == 2.0


def test_count_in_clicks_recorded_on_percussion_channel() -> None:
    clock = VirtualClock()
    driver = MidiFileDriver(clock)
    PlaybackScheduler(driver, clock=clock).play_progression("C", with_count_in=True)

    clicks = [n for n in driver.notes if n.channel == PERCUSSION_CHANNEL]
    assert len(clicks) == 4
    assert [c.program for c in driver.program_changes] == [115, 0]
