"""MidiFileDriver: a SoundDriver that records playback into a MIDI file."""

import logging
from dataclasses import dataclass

from midiutil import MIDIFile

from singit.clock import Clock
from singit.config import CHORD_CHANNEL, DEFAULT_TEMPO, PERCUSSION_CHANNEL
from singit.driver import SoundDriver

logger = logging.getLogger(__name__)

# In midiutil Format 1 MIDI, track 0 is the conductor/tempo track.
# Note data written to track 0 is ignored by most players and notation apps.
TRACK_CONDUCTOR = 0  # Tempo only, never receives notes
TRACK_CHORDS = 1     # Chords and bass, channel 0
TRACK_COUNT_IN = 2   # Metronome clicks, channel 9


@dataclass(frozen=True)
class RecordedNote:
    """A finished note, timed in seconds from the clock's origin."""

    pitch: int
    channel: int
    velocity: int
    start_time: float
    duration: float


@dataclass(frozen=True)
class RecordedProgramChange:
    channel: int
    program: int
    time: float


class MidiFileDriver(SoundDriver):
    """
    Records note-on/note-off calls against a Clock and writes them as MIDI.

    Pair it with a VirtualClock to render a progression offline in no
    time, or with a WallClock to capture a live performance.

    Track layout (Format 1, 3 internal tracks)
    ------------------------------------------
    Track 0: conductor track (tempo only, no notes).
    Track 1: "Chords", everything played on channel 0.
    Track 2: "Count-in", the percussion channel 9 clicks.

    Timing
    ------
    Times are recorded in seconds and converted to beats on export using:
    beats = seconds × (tempo / 60).
    """

    def __init__(self, clock: Clock, tempo: float = DEFAULT_TEMPO) -> None:
        """
        Args:
            clock: Source of the current time for every recorded event.
            tempo: Tempo written to the conductor track, in BPM.
        """
        super().__init__()
        self.clock = clock
        self.tempo = tempo
        self.notes: list[RecordedNote] = []
        self.program_changes: list[RecordedProgramChange] = []
        self._sounding: dict[tuple[int, int], tuple[int, float]] = {}

    # ------------------------------------------------------------------
    # SoundDriver
    # ------------------------------------------------------------------

    def start_pitch(self, pitch: int, velocity: int, channel: int) -> None:
        key = (pitch, channel)
        if key in self._sounding:
            # A re-strike without note-off ends the previous note first.
            self.stop_pitch(pitch, channel)
        self._sounding[key] = (velocity, self.clock.now())

    def stop_pitch(self, pitch: int, channel: int) -> None:
        started = self._sounding.pop((pitch, channel), None)
        if started is None:
            return
        velocity, start_time = started
        self.notes.append(
            RecordedNote(
                pitch=pitch,
                channel=channel,
                velocity=velocity,
                start_time=start_time,
                duration=self.clock.now() - start_time,
            )
        )

    def select_voice(self, program: int, wait_until_ready: bool) -> None:
        # Percussion lives on channel 9 in General MIDI, so a voice switch
        # only needs recording for the chord channel.
        self.program_changes.append(
            RecordedProgramChange(channel=CHORD_CHANNEL, program=program, time=self.clock.now())
        )

    @property
    def sounding(self) -> list[tuple[int, int]]:
        """(pitch, channel) pairs currently sounding."""
        return list(self._sounding)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _seconds_to_beats(self, seconds: float) -> float:
        """Convert a time in seconds to beats at the export tempo."""
        return seconds * (self.tempo / 60.0)

    def _close_sounding(self) -> None:
        for pitch, channel in list(self._sounding):
            self.stop_pitch(pitch, channel)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def export(self, output_path: str) -> None:
        """
        Write everything recorded so far to a Standard MIDI File.

        Notes still sounding are closed at the clock's current time.

        Args:
            output_path: Destination file path (e.g. "progression.mid").

        Raises:
            OSError: If the output file cannot be opened for writing.
        """
        self._close_sounding()

        midi = MIDIFile(numTracks=3, removeDuplicates=False, deinterleave=False)

        # --- Track 0: conductor (tempo only, no notes) ---
        midi.addTempo(TRACK_CONDUCTOR, 0, self.tempo)

        midi.addTrackName(TRACK_CHORDS, 0, "Chords")
        midi.addTrackName(TRACK_COUNT_IN, 0, "Count-in")

        for change in self.program_changes:
            midi.addProgramChange(
                TRACK_CHORDS, change.channel, self._seconds_to_beats(change.time), change.program
            )

        for note in self.notes:
            track = TRACK_COUNT_IN if note.channel == PERCUSSION_CHANNEL else TRACK_CHORDS
            midi.addNote(
                track=track,
                channel=note.channel,
                pitch=note.pitch,
                time=self._seconds_to_beats(note.start_time),
                duration=self._seconds_to_beats(note.duration),
                volume=note.velocity,
            )

        with open(output_path, "wb") as f:
            midi.writeFile(f)

        logger.info("Wrote %d notes to %s", len(self.notes), output_path)
