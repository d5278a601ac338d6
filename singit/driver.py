"""SoundDriver: the capability the scheduler uses to make (and stop) sound."""

from abc import ABC, abstractmethod


class SoundDriver(ABC):
    """
    Abstract sound-producing device: a synthesizer, sampler or MIDI sink.

    The scheduler only ever starts and stops pitches and switches the
    voice (General MIDI program). It issues best-effort calls and never
    retries; a failing driver call propagates to the caller.

    Usage as a context manager brackets the driver's lifecycle:

        with MidiFileDriver(clock) as driver:
            PlaybackScheduler(driver).play_progression("C G Am F")
    """

    def __init__(self) -> None:
        self._running = False

    @abstractmethod
    def start_pitch(self, pitch: int, velocity: int, channel: int) -> None:
        """Begin sounding MIDI note *pitch* on *channel*."""

    @abstractmethod
    def stop_pitch(self, pitch: int, channel: int) -> None:
        """Stop MIDI note *pitch* on *channel*; stopping a silent pitch is harmless."""

    @abstractmethod
    def select_voice(self, program: int, wait_until_ready: bool) -> None:
        """
        Switch to General MIDI *program*.

        Args:
            program:          0-127, e.g. 0 = piano, 115 = woodblock.
            wait_until_ready: Block until the voice is loaded, when the
                              device can tell. The scheduler additionally
                              waits its configured settle delay.
        """

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Acquire the underlying device."""
        self._running = True

    def stop(self) -> None:
        """Release the underlying device."""
        self._running = False

    def __enter__(self) -> "SoundDriver":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()
