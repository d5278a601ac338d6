"""
Playback constants and the PlaybackConfig value object.

Tempo bounds and the count-in length are fixed implementation constants.
Everything a platform may want to tune (velocities, settle delay, the
shortened last count-in tick) lives on PlaybackConfig.
"""

from dataclasses import dataclass

# ── Tempo ───────────────────────────────────────────────────────────────────
TEMPO_MIN = 20
TEMPO_MAX = 240
DEFAULT_TEMPO = 60

# ── Count-in / General MIDI ─────────────────────────────────────────────────
COUNT_IN_BEATS = 4
CHORD_CHANNEL = 0
PERCUSSION_CHANNEL = 9
PIANO_PROGRAM = 0
WOODBLOCK_PROGRAM = 115


def clamp_tempo(bpm: float) -> float:
    """Clamp a tempo to [TEMPO_MIN, TEMPO_MAX] BPM; out-of-range values are not errors."""
    return float(max(TEMPO_MIN, min(bpm, TEMPO_MAX)))


@dataclass(frozen=True)
class PlaybackConfig:
    """
    Tunable playback parameters.

    Attributes:
        velocity: Note-on velocity for chord notes (0-127).
        octave: Octave of the chord root; the bass sounds one octave lower.
        settle_delay: Seconds to wait after switching voices, covering the
            driver's instrument-load latency.
        count_in_beats: Number of metronome clicks before the first chord.
        click_length: Seconds each count-in click sounds.
        last_tick_factor: Fraction of a beat left silent after the final
            click. Below 1.0 so the voice switch back does not delay the
            first chord; device audio stacks want a larger value than
            simulators.
        inter_chord_gap: Fraction of a beat of silence between two
            consecutive struck chords, so a re-strike of the same chord is
            heard as a new attack.
        accent_velocity: Velocity of the first (accented) click.
        click_velocity: Velocity of the remaining clicks.
        accent_pitch: MIDI note of the accented click (A5).
        click_pitch: MIDI note of the remaining clicks (E5).

    Example:
        >>> config = PlaybackConfig(last_tick_factor=0.1)
        >>> scheduler = PlaybackScheduler(driver, config=config)
    """

    velocity: int = 80
    octave: int = 4
    settle_delay: float = 0.02
    count_in_beats: int = COUNT_IN_BEATS
    click_length: float = 0.05
    last_tick_factor: float = 0.8
    inter_chord_gap: float = 0.01
    accent_velocity: int = 100
    click_velocity: int = 80
    accent_pitch: int = 81
    click_pitch: int = 76

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        for name in ("velocity", "accent_velocity", "click_velocity", "accent_pitch", "click_pitch"):
            value = getattr(self, name)
            if not (0 <= value <= 127):
                raise ValueError(f"{name} must be in [0, 127], got {value}")
        if not (0 <= self.octave <= 8):
            raise ValueError(f"octave must be in [0, 8], got {self.octave}")
        if self.settle_delay < 0:
            raise ValueError(f"settle_delay must be non-negative, got {self.settle_delay}")
        if self.count_in_beats < 1:
            raise ValueError(f"count_in_beats must be positive, got {self.count_in_beats}")
        if self.click_length < 0:
            raise ValueError(f"click_length must be non-negative, got {self.click_length}")
        if not (0.0 <= self.last_tick_factor <= 1.0):
            raise ValueError(f"last_tick_factor must be in [0, 1], got {self.last_tick_factor}")
        if not (0.0 <= self.inter_chord_gap < 1.0):
            raise ValueError(f"inter_chord_gap must be in [0, 1), got {self.inter_chord_gap}")


DEFAULT_CONFIG = PlaybackConfig()
"""Default configuration: velocity 80, octave 4, 4-beat count-in."""
