"""Transposer: shifts chords and chord-chart text by a number of semitones."""

import logging
import re

from singit.chord_model import (
    SEMITONES_PER_OCTAVE,
    Chord,
    ChordError,
    Note,
    parse_chord_name,
)

logger = logging.getLogger(__name__)

SHARP_NAMES: list[str] = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]
FLAT_NAMES: list[str] = ["C", "Db", "D", "Eb", "E", "F", "Gb", "G", "Ab", "A", "Bb", "B"]

#: Pitch classes written with a flat after transposition: Db, Eb, Gb, Ab, Bb.
FLAT_PITCH_CLASSES: frozenset[int] = frozenset({1, 3, 6, 8, 10})

#: Roots whose key signature uses flats: F plus the flat roots.
FLAT_KEY_ROOTS: frozenset[int] = FLAT_PITCH_CLASSES | {5}

_F_SHARP = 6

# A chord-shaped run: root, suffix up to a separator, optional /bass.
# Separators are whitespace, dots, dashes, bar lines and group parentheses.
_CHORD_PATTERN = re.compile(
    r"[A-G][#b]?[^\s.\-/|()]*"
    r"(?:/[A-G][#b]?[^\s.\-/|()]*)?"
)


def spell(pitch_class: int) -> str:
    """Return the display name for a pitch class, ignoring how it was written."""
    pitch_class %= SEMITONES_PER_OCTAVE
    if pitch_class in FLAT_PITCH_CLASSES:
        return FLAT_NAMES[pitch_class]
    return SHARP_NAMES[pitch_class]


def _shift(pitch_class: int, semitones: int) -> int:
    return (pitch_class + semitones) % SEMITONES_PER_OCTAVE


def spell_in_key(pitch_class: int, root_pitch_class: int) -> str:
    """Spell a pitch class with flats under a flat-key root, otherwise with sharps."""
    pitch_class %= SEMITONES_PER_OCTAVE
    if root_pitch_class % SEMITONES_PER_OCTAVE in FLAT_KEY_ROOTS:
        return FLAT_NAMES[pitch_class]
    return SHARP_NAMES[pitch_class]


def spell_bass(pitch_class: int, root_pitch_class: int) -> str:
    """
    Spell a slash bass with the same fixed rule as a root.

    F#/Gb is the one exception: it reads F# under a sharp-key root (D/F#)
    and Gb under a flat-key root (Db/Gb).
    """
    pitch_class %= SEMITONES_PER_OCTAVE
    if pitch_class == _F_SHARP and root_pitch_class % SEMITONES_PER_OCTAVE not in FLAT_KEY_ROOTS:
        return SHARP_NAMES[pitch_class]
    return spell(pitch_class)


def transpose_chord(chord: Chord, semitones: int) -> Chord:
    """
    Transpose a chord by a number of semitones.

    The new root is always spelled by spell(), whatever the original
    accidental. The quality suffix is kept verbatim and a slash bass moves
    by the same amount and is spelled by spell_bass().
    A shift of zero returns the input unchanged so its spelling is kept.

    Args:
        chord:     Chord to transpose.
        semitones: Positive (up) or negative (down) shift.

    Returns:
        A new Chord; the input is never modified.
    """
    if semitones == 0:
        return chord

    root_pc = _shift(chord.root.pitch_class, semitones)

    bass = None
    if chord.bass is not None:
        bass_pc = _shift(chord.bass.pitch_class, semitones)
        bass = Note(bass_pc, spell_bass(bass_pc, root_pc))

    return Chord(
        root=Note(root_pc, spell(root_pc)),
        quality=chord.quality,
        suffix=chord.suffix,
        bass=bass,
    )


def transpose_chord_name(text: str, semitones: int) -> str:
    """Transpose a single chord symbol; text that is not a chord is returned unchanged."""
    if semitones == 0:
        return text
    try:
        chord = parse_chord_name(text)
    except ChordError as exc:
        logger.debug("Leaving '%s' untransposed: %s", text, exc)
        return text
    return transpose_chord(chord, semitones).name


def transpose_progression(text: str, semitones: int) -> str:
    """
    Transpose every chord in a chord chart, keeping its layout intact.

    Works on the raw string rather than on tokens, so spacing, bar lines,
    repeat dots, hold dashes and group parentheses come back exactly as
    written. Only chord-shaped substrings are rewritten.

    Args:
        text:      Chord chart, e.g. "| C . G/B - | (Am F) |".
        semitones: Positive (up) or negative (down) shift.

    Returns:
        The transposed chart.
    """
    if semitones == 0 or not text:
        return text

    result = text
    # Replace from the end so earlier match offsets stay valid.
    for match in reversed(list(_CHORD_PATTERN.finditer(text))):
        start, end = match.span()
        result = result[:start] + transpose_chord_name(match.group(), semitones) + result[end:]
    return result
