"""Chord model: pitch classes, chord qualities and chord-name parsing."""

from dataclasses import dataclass, field
from enum import Enum

SEMITONES_PER_OCTAVE = 12

# Every spelling the engine accepts for a root or bass note (index 0 = C).
NOTE_PITCH_CLASSES: dict[str, int] = {
    "C": 0,
    "C#": 1, "Db": 1,
    "D": 2,
    "D#": 3, "Eb": 3,
    "E": 4,
    "F": 5,
    "F#": 6, "Gb": 6,
    "G": 7,
    "G#": 8, "Ab": 8,
    "A": 9,
    "A#": 10, "Bb": 10,
    "B": 11,
}

NOTE_LETTERS = "ABCDEFG"
ACCIDENTALS = "#b"


# ── Errors ──────────────────────────────────────────────────────────────────

class ChordError(ValueError):
    """Base class for chord text that cannot be turned into a Chord."""


class UnknownNoteError(ChordError):
    """A note name matches none of the twelve pitch-class spellings."""

    def __init__(self, note_name: str) -> None:
        super().__init__(f"Unknown note name '{note_name}'")
        self.note_name = note_name


class MalformedChordError(ChordError):
    """Chord text has no leading note letter (or an empty bass note)."""

    def __init__(self, text: str, reason: str = "no leading note letter") -> None:
        super().__init__(f"Malformed chord '{text}': {reason}")
        self.text = text


# ── Chord qualities ─────────────────────────────────────────────────────────

class ChordQuality(Enum):
    """Interval pattern of a chord, as semitone offsets from the root."""

    MAJOR = (0, 4, 7)
    MINOR = (0, 3, 7)
    DOMINANT_SEVENTH = (0, 4, 7, 10)
    MAJOR_SEVENTH = (0, 4, 7, 11)
    MINOR_SEVENTH = (0, 3, 7, 10)
    DIMINISHED = (0, 3, 6)
    AUGMENTED = (0, 4, 8)
    SUS2 = (0, 2, 7)
    SUS4 = (0, 5, 7)

    @property
    def intervals(self) -> tuple[int, ...]:
        return self.value


#: Lower-cased suffix -> quality. Anything not listed here plays as a major triad.
QUALITY_ALIASES: dict[str, ChordQuality] = {
    "": ChordQuality.MAJOR,
    "m": ChordQuality.MINOR,
    "min": ChordQuality.MINOR,
    "minor": ChordQuality.MINOR,
    "7": ChordQuality.DOMINANT_SEVENTH,
    "maj7": ChordQuality.MAJOR_SEVENTH,
    "major7": ChordQuality.MAJOR_SEVENTH,
    "m7": ChordQuality.MINOR_SEVENTH,
    "min7": ChordQuality.MINOR_SEVENTH,
    "minor7": ChordQuality.MINOR_SEVENTH,
    "dim": ChordQuality.DIMINISHED,
    "diminished": ChordQuality.DIMINISHED,
    "aug": ChordQuality.AUGMENTED,
    "augmented": ChordQuality.AUGMENTED,
    "sus2": ChordQuality.SUS2,
    "sus4": ChordQuality.SUS4,
    "sus": ChordQuality.SUS4,
}


# ── Value objects ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Note:
    """
    A spelled pitch class.

    Two notes are equal when they sound the same: ``Note(1, "C#") ==
    Note(1, "Db")``. The spelling is kept for display only.

    Attributes:
        pitch_class: 0=C, 1=C#/Db, ..., 11=B.
        name:        Spelling as written or as chosen by the transposer.
    """

    pitch_class: int
    name: str = field(compare=False)

    def __post_init__(self) -> None:
        if not (0 <= self.pitch_class < SEMITONES_PER_OCTAVE):
            raise ValueError(f"pitch_class must be in [0, 11], got {self.pitch_class}")


@dataclass(frozen=True)
class Chord:
    """
    A parsed chord symbol such as ``Am7`` or ``D/F#``.

    Attributes:
        root:    Root note.
        quality: Interval pattern used for playback.
        suffix:  Everything between the root and the slash, kept verbatim
                 so that e.g. ``Cadd9`` survives transposition as ``Dadd9``.
        bass:    Slash bass note, or None.
    """

    root: Note
    quality: ChordQuality
    suffix: str = ""
    bass: Note | None = None

    @property
    def name(self) -> str:
        """Chord symbol as it should be displayed, e.g. 'Bbm7/F'."""
        text = f"{self.root.name}{self.suffix}"
        if self.bass is not None:
            text += f"/{self.bass.name}"
        return text

    @property
    def spelling(self) -> str:
        """'sharp', 'flat' or 'natural' according to how the root is written."""
        if self.root.name.endswith("#"):
            return "sharp"
        if self.root.name.endswith("b"):
            return "flat"
        return "natural"

    def __str__(self) -> str:
        return self.name


# ── Operations ──────────────────────────────────────────────────────────────

def pitch_class_of(note_name: str) -> int:
    """
    Look up the pitch class of a note name.

    Raises:
        UnknownNoteError: If the name is not one of the 17 accepted spellings.
    """
    try:
        return NOTE_PITCH_CLASSES[note_name]
    except KeyError:
        raise UnknownNoteError(note_name) from None


def chord_quality_of(suffix: str) -> ChordQuality:
    """Resolve a chord suffix to its quality; unknown suffixes resolve to MAJOR."""
    return QUALITY_ALIASES.get(suffix.lower(), ChordQuality.MAJOR)


def _split_root(text: str, chord_text: str) -> tuple[str, str]:
    """Split 'F#m7' into ('F#', 'm7')."""
    if not text or text[0] not in NOTE_LETTERS:
        raise MalformedChordError(chord_text)
    if len(text) > 1 and text[1] in ACCIDENTALS:
        return text[:2], text[2:]
    return text[:1], text[1:]


def _parse_note(name: str) -> Note:
    return Note(pitch_class_of(name), name)


def parse_chord_name(text: str) -> Chord:
    """
    Parse a chord symbol into a Chord.

    The text is split on the first ``/`` into chord and optional bass note.
    The chord part is a root letter A-G with an optional ``#`` or ``b``,
    followed by a free-form quality suffix.

    Args:
        text: Chord symbol, e.g. "C", "Ebmaj7", "G/B".

    Returns:
        The parsed, immutable Chord.

    Raises:
        MalformedChordError: No leading note letter, or an empty bass note.
        UnknownNoteError:    The root or bass is not a known spelling (e.g. "E#").
    """
    text = text.strip()
    head, slash, bass_text = text.partition("/")

    root_name, suffix = _split_root(head, text)
    root = _parse_note(root_name)

    bass = None
    if slash:
        if not bass_text:
            raise MalformedChordError(text, "empty bass note")
        bass_name, bass_rest = _split_root(bass_text, text)
        if bass_rest:
            raise UnknownNoteError(bass_text)
        bass = _parse_note(bass_name)

    return Chord(root=root, quality=chord_quality_of(suffix), suffix=suffix, bass=bass)


def notes_of(chord: Chord) -> tuple[int, ...]:
    """
    Return the pitch classes a chord sounds.

    The chord tones come first (root + each quality interval, mod 12). The
    last element is the bass, meant to sound one octave below the chord
    tones: the slash bass when present, otherwise the root again.
    """
    root = chord.root.pitch_class
    tones = [(root + iv) % SEMITONES_PER_OCTAVE for iv in chord.quality.intervals]
    bass = chord.bass.pitch_class if chord.bass is not None else root
    return (*tones, bass)
