"""VoicingStrategy: Strategy pattern for mapping parsed chords to MIDI note sets."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from singit.chord_model import SEMITONES_PER_OCTAVE, Chord, notes_of

# ── MIDI constants ──────────────────────────────────────────────────────────
MIDDLE_C_MIDI = 60  # C4 in Scientific Pitch Notation
MIDI_MIN = 0
MIDI_MAX = 127


def pitch_class_to_midi(pitch_class: int, octave: int) -> int:
    """
    Convert a pitch class (0-11) and an octave number to an absolute MIDI note.

    MIDI octave numbering: C-1 = 0, C0 = 12, C1 = 24, ... C4 (Middle C) = 60.
    """
    return (octave + 1) * SEMITONES_PER_OCTAVE + pitch_class


def clamp_midi(note: int) -> int:
    """Clamp a MIDI note number into [0, 127]."""
    return max(MIDI_MIN, min(MIDI_MAX, note))


@dataclass
class VoicedChord:
    """
    A chord annotated with concrete MIDI note assignments.

    Attributes:
        chord:       The parsed chord.
        chord_notes: MIDI notes of the chord tones.
        bass_notes:  MIDI notes sounding below the chord tones.
    """

    chord: Chord
    chord_notes: list[int] = field(default_factory=list)
    bass_notes: list[int] = field(default_factory=list)

    @property
    def all_notes(self) -> list[int]:
        """Bass first, then chord tones, without duplicates."""
        return list(dict.fromkeys(self.bass_notes + self.chord_notes))


class VoicingStrategy(ABC):
    """Abstract Strategy for assigning MIDI pitches to a chord."""

    @abstractmethod
    def voice(self, chord: Chord) -> VoicedChord:
        """Map a Chord to a VoicedChord with concrete MIDI note numbers."""


class PianoVoicer(VoicingStrategy):
    """
    Root-position chord tones plus a bass note one octave lower.

    The chord tones ascend from the root placed in *octave*, so a B major
    chord in octave 4 is B4(71), D#5(75), F#5(78). The bass (the slash
    bass, or the root again) sits in ``octave - 1``:

        C      → bass C3(48),  chord C4(60) E4(64) G4(67)
        D/F#   → bass F#3(54), chord D4(62) F#4(66) A4(69)
    """

    DEFAULT_OCTAVE = 4  # Middle C octave

    def __init__(self, octave: int = DEFAULT_OCTAVE) -> None:
        self.octave = octave

    def voice(self, chord: Chord) -> VoicedChord:
        *_, bass_pc = notes_of(chord)
        root_midi = pitch_class_to_midi(chord.root.pitch_class, self.octave)

        chord_notes = [clamp_midi(root_midi + iv) for iv in chord.quality.intervals]
        bass_notes = [clamp_midi(pitch_class_to_midi(bass_pc, self.octave - 1))]

        return VoicedChord(chord=chord, chord_notes=chord_notes, bass_notes=bass_notes)
