"""Unit tests for pitch classes, chord qualities and chord-name parsing."""

import pytest

from singit.chord_model import (
    Chord,
    ChordQuality,
    MalformedChordError,
    Note,
    UnknownNoteError,
    chord_quality_of,
    notes_of,
    parse_chord_name,
    pitch_class_of,
)


@pytest.mark.parametrize(
    ("name", "expected"),
    [("C", 0), ("C#", 1), ("Db", 1), ("Eb", 3), ("E", 4), ("Gb", 6), ("Ab", 8), ("Bb", 10), ("B", 11)],
)
def test_pitch_class_of_known_names(name: str, expected: int) -> None:
    assert pitch_class_of(name) == expected


@pytest.mark.parametrize("name", ["H", "E#", "Cb", "c", ""])
def test_pitch_class_of_unknown_name_raises(name: str) -> None:
    with pytest.raises(UnknownNoteError):
        pitch_class_of(name)


def test_chord_quality_aliases_are_case_insensitive() -> None:
    assert chord_quality_of("m") is ChordQuality.MINOR
    assert chord_quality_of("MIN") is ChordQuality.MINOR
    assert chord_quality_of("Minor") is ChordQuality.MINOR
    assert chord_quality_of("Maj7") is ChordQuality.MAJOR_SEVENTH
    assert chord_quality_of("sus") is ChordQuality.SUS4


def test_unknown_quality_defaults_to_major() -> None:
    assert chord_quality_of("xyz") is ChordQuality.MAJOR
    assert chord_quality_of("add9") is ChordQuality.MAJOR


def test_quality_intervals() -> None:
    assert ChordQuality.MAJOR.intervals == (0, 4, 7)
    assert ChordQuality.DOMINANT_SEVENTH.intervals == (0, 4, 7, 10)
    assert ChordQuality.DIMINISHED.intervals == (0, 3, 6)


def test_parse_plain_major() -> None:
    chord = parse_chord_name("C")
    assert chord.root == Note(0, "C")
    assert chord.quality is ChordQuality.MAJOR
    assert chord.suffix == ""
    assert chord.bass is None


def test_parse_accidental_root_and_suffix() -> None:
    chord = parse_chord_name("F#m7")
    assert chord.root.pitch_class == 6
    assert chord.root.name == "F#"
    assert chord.suffix == "m7"
    assert chord.quality is ChordQuality.MINOR_SEVENTH
    assert chord.spelling == "sharp"


def test_parse_flat_root_keeps_spelling() -> None:
    chord = parse_chord_name("Ebmaj7")
    assert chord.root.name == "Eb"
    assert chord.spelling == "flat"
    assert chord.name == "Ebmaj7"


def test_parse_slash_chord() -> None:
    chord = parse_chord_name("G/B")
    assert chord.root.pitch_class == 7
    assert chord.bass == Note(11, "B")
    assert chord.name == "G/B"


def test_parse_bb_is_b_flat_not_b_with_suffix() -> None:
    assert parse_chord_name("Bb").root.pitch_class == 10


@pytest.mark.parametrize("text", ["", "xm7", "7", "#C", "/E"])
def test_parse_without_note_letter_is_malformed(text: str) -> None:
    with pytest.raises(MalformedChordError):
        parse_chord_name(text)


def test_parse_empty_bass_is_malformed() -> None:
    with pytest.raises(MalformedChordError):
        parse_chord_name("C/")


def test_parse_unknown_root_spelling() -> None:
    with pytest.raises(UnknownNoteError):
        parse_chord_name("E#m")


def test_chord_errors_are_value_errors() -> None:
    with pytest.raises(ValueError):
        parse_chord_name("hello")


def test_notes_of_major_doubles_root_as_bass() -> None:
    assert notes_of(parse_chord_name("C")) == (0, 4, 7, 0)


def test_notes_of_wraps_mod_12() -> None:
    assert notes_of(parse_chord_name("A")) == (9, 1, 4, 9)
    assert notes_of(parse_chord_name("Bm7")) == (11, 2, 6, 9, 11)


def test_notes_of_slash_chord_uses_bass() -> None:
    assert notes_of(parse_chord_name("C/E")) == (0, 4, 7, 4)


def test_unknown_quality_sounds_like_major() -> None:
    assert notes_of(parse_chord_name("Cxyz")) == notes_of(parse_chord_name("C"))


def test_chord_is_immutable() -> None:
    chord = parse_chord_name("Am")
    with pytest.raises((TypeError, AttributeError)):
        chord.suffix = "m7"  # type: ignore[misc]


def test_note_equality_ignores_spelling() -> None:
    assert Note(1, "C#") == Note(1, "Db")
    assert hash(Note(1, "C#")) == hash(Note(1, "Db"))


def test_note_rejects_out_of_range_pitch_class() -> None:
    with pytest.raises(ValueError, match="pitch_class"):
        Note(12, "C")


def test_str_is_display_name() -> None:
    chord = Chord(root=Note(10, "Bb"), quality=ChordQuality.MINOR, suffix="m", bass=Note(5, "F"))
    assert str(chord) == "Bbm/F"
