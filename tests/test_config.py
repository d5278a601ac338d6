"""Tests for playback constants and PlaybackConfig validation."""

import pytest

from singit.config import DEFAULT_CONFIG, TEMPO_MAX, TEMPO_MIN, PlaybackConfig, clamp_tempo


def test_clamp_tempo() -> None:
    assert clamp_tempo(5) == TEMPO_MIN
    assert clamp_tempo(500) == TEMPO_MAX
    assert clamp_tempo(120) == 120.0


def test_defaults() -> None:
    assert DEFAULT_CONFIG.count_in_beats == 4
    assert DEFAULT_CONFIG.velocity == 80
    assert DEFAULT_CONFIG.settle_delay == pytest.approx(0.02)


def test_config_is_frozen() -> None:
    with pytest.raises((TypeError, AttributeError)):
        DEFAULT_CONFIG.velocity = 1  # type: ignore[misc]


@pytest.mark.parametrize(
    ("field", "value"),
    [
        ("velocity", 128),
        ("accent_pitch", -1),
        ("octave", 9),
        ("settle_delay", -0.1),
        ("count_in_beats", 0),
        ("click_length", -1.0),
        ("last_tick_factor", 1.5),
        ("inter_chord_gap", 1.0),
    ],
)
def test_invalid_values_raise(field: str, value: float) -> None:
    with pytest.raises(ValueError, match=field):
        PlaybackConfig(**{field: value})
