"""singit: chord-chart notation engine (parse, transpose, play)."""

from singit.chord_model import (
    Chord,
    ChordError,
    ChordQuality,
    MalformedChordError,
    Note,
    UnknownNoteError,
    chord_quality_of,
    notes_of,
    parse_chord_name,
    pitch_class_of,
)
from singit.scheduler import PlaybackScheduler, PlaybackState
from singit.tokenizer import resolve_tokens, tokenize
from singit.transposer import transpose_chord, transpose_chord_name, transpose_progression

__version__ = "0.1.0"

__all__ = [
    "Chord",
    "ChordError",
    "ChordQuality",
    "MalformedChordError",
    "Note",
    "PlaybackScheduler",
    "PlaybackState",
    "UnknownNoteError",
    "chord_quality_of",
    "notes_of",
    "parse_chord_name",
    "pitch_class_of",
    "resolve_tokens",
    "tokenize",
    "transpose_chord",
    "transpose_chord_name",
    "transpose_progression",
]
