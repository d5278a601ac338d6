"""PlaybackScheduler: plays chord charts through a SoundDriver in tempo.

Lifecycle of one play_progression() call
----------------------------------------
    IDLE ─► COUNT_IN (optional) ─► PLAYING ─► IDLE | CANCELLED

Timing is done with Clock.sleep(), and every sleep is also a cancellation
checkpoint. stop_playback() works on two levels: it silences every
sounding note at once, on the caller's thread, and it sets the session's
cancel flag so the loop stops at the next token boundary.

Only one session runs at a time. Starting a new one cancels the running
session, waits for it to exit, then begins. PlaybackFinished is emitted
after the session ends, so a listener may chain the next session from it.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from singit.chord_model import Chord, ChordError, parse_chord_name, pitch_class_of
from singit.clock import Clock, WallClock
from singit.config import (
    CHORD_CHANNEL,
    DEFAULT_CONFIG,
    DEFAULT_TEMPO,
    PERCUSSION_CHANNEL,
    PIANO_PROGRAM,
    WOODBLOCK_PROGRAM,
    PlaybackConfig,
    clamp_tempo,
)
from singit.driver import SoundDriver
from singit.tokenizer import (
    ChordToken,
    GroupToken,
    HoldToken,
    RestToken,
    Token,
    resolve_tokens,
    tokenize,
)
from singit.voicing import PianoVoicer, VoicingStrategy, clamp_midi, pitch_class_to_midi

logger = logging.getLogger(__name__)


class PlaybackState(Enum):
    IDLE = "idle"
    COUNT_IN = "count_in"
    PLAYING = "playing"
    CANCELLED = "cancelled"


# ── Events ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PlaybackStarted:
    token_count: int
    tempo_bpm: float


@dataclass(frozen=True)
class CountInTick:
    beat: int  # 1-based
    accented: bool


@dataclass(frozen=True)
class ChordStruck:
    index: int  # position in the resolved token list
    text: str
    pitches: tuple[int, ...]


@dataclass(frozen=True)
class ChordSkipped:
    index: int
    text: str
    reason: str


@dataclass(frozen=True)
class NoteStruck:
    name: str
    pitch: int


@dataclass(frozen=True)
class PlaybackFinished:
    cancelled: bool


PlaybackEvent = (
    PlaybackStarted | CountInTick | ChordStruck | ChordSkipped | NoteStruck | PlaybackFinished
)
Listener = Callable[[PlaybackEvent], None]


# ── Session ─────────────────────────────────────────────────────────────────

@dataclass
class PlaybackSession:
    """
    State of a single play_progression() call.

    Attributes:
        tempo_bpm:         Clamped tempo for this session.
        beat_multiplier:   Beats per token (1.0 = one beat per chord).
        count_in:          Whether a count-in precedes the chords.
        cancelled:         Set by stop_playback(); never cleared.
        active_notes:      Sounding (pitch, channel) pairs, in strike order.
        last_struck_chord: Most recent chord that actually sounded.
    """

    tempo_bpm: float
    beat_multiplier: float = 1.0
    count_in: bool = False
    cancelled: threading.Event = field(default_factory=threading.Event)
    active_notes: dict[tuple[int, int], None] = field(default_factory=dict)
    last_struck_chord: Chord | None = None

    @property
    def beat_duration(self) -> float:
        """Seconds per token at this session's tempo and multiplier."""
        return 60.0 / self.tempo_bpm * self.beat_multiplier


class PlaybackScheduler:
    """
    Schedules note-on/note-off calls for a chord chart.

    The driver is owned by the caller (start/stop it yourself, or use it as
    a context manager); the scheduler only plays through it.

        with MidiFileDriver(clock) as driver:
            scheduler = PlaybackScheduler(driver, clock=clock)
            scheduler.set_tempo(90)
            scheduler.play_progression("C . G - | (Am F) C", with_count_in=True)
    """

    def __init__(
        self,
        driver: SoundDriver,
        *,
        clock: Clock | None = None,
        voicer: VoicingStrategy | None = None,
        config: PlaybackConfig | None = None,
    ) -> None:
        """
        Args:
            driver: Sound driver that receives every note and voice change.
            clock:  Time source; defaults to real time.
            voicer: Chord to MIDI pitch mapping; defaults to PianoVoicer in
                    the configured octave.
            config: Playback tuning; defaults to DEFAULT_CONFIG.
        """
        self.driver = driver
        self.clock = clock if clock is not None else WallClock()
        self.config = config if config is not None else DEFAULT_CONFIG
        self.voicer = voicer if voicer is not None else PianoVoicer(self.config.octave)

        self._tempo = float(DEFAULT_TEMPO)
        self._voice = PIANO_PROGRAM
        self._state = PlaybackState.IDLE
        self._session: PlaybackSession | None = None
        self._owner: int | None = None  # ident of the thread holding _session_lock
        # Guards _session and its active_notes; re-entrant because
        # stop_playback() may be called from a listener on the scheduler thread.
        self._notes_lock = threading.RLock()
        self._session_lock = threading.Lock()
        self._listeners: list[Listener] = []
        self._listeners_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Tempo and voice
    # ------------------------------------------------------------------

    def set_tempo(self, bpm: float) -> None:
        """Set the tempo for later sessions; clamped to [20, 240] BPM."""
        self._tempo = clamp_tempo(bpm)
        logger.info("Tempo set to %s BPM", self._tempo)

    def get_tempo(self) -> float:
        return self._tempo

    def beat_duration(self, beat_multiplier: float = 1.0, tempo_bpm: float | None = None) -> float:
        """Seconds for *beat_multiplier* beats at *tempo_bpm* (default: current tempo)."""
        tempo = clamp_tempo(tempo_bpm if tempo_bpm is not None else self._tempo)
        return 60.0 / tempo * beat_multiplier

    @property
    def voice(self) -> int:
        """Current General MIDI program of the chord channel."""
        return self._voice

    def set_voice(self, program: int) -> None:
        """Switch the chord voice and wait for it to settle."""
        self.driver.select_voice(program, wait_until_ready=True)
        self._voice = program
        self.clock.sleep(self.config.settle_delay, threading.Event())

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register *listener* for playback events.

        Listeners run synchronously on the thread that is playing.

        Returns:
            A function that unsubscribes the listener; calling it again
            does nothing.
        """
        with self._listeners_lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._listeners_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: PlaybackEvent) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(event)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def is_playing(self) -> bool:
        return self._state in (PlaybackState.COUNT_IN, PlaybackState.PLAYING)

    @property
    def active_notes(self) -> list[tuple[int, int]]:
        """(pitch, channel) pairs the running session has sounding."""
        with self._notes_lock:
            if self._session is None:
                return []
            return list(self._session.active_notes)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def play_progression(
        self,
        text: str | None,
        tempo_bpm: float | None = None,
        beat_multiplier: float = 1.0,
        with_count_in: bool = False,
    ) -> bool:
        """
        Play a chord chart, blocking until it ends or is cancelled.

        Args:
            text:            Chart text, e.g. "C . . G | Am - F -".
            tempo_bpm:       Tempo for this session only; defaults to the
                             current tempo. Clamped to [20, 240].
            beat_multiplier: Beats per chord: 0.5 plays eighth notes, 2.0
                             gives every chord two beats.
            with_count_in:   Play the metronome count-in first.

        Returns:
            True if the chart played to the end (or was empty), False if
            it was cancelled.

        Raises:
            RuntimeError: If called from a listener while this scheduler's
                          session is still running on the same thread.
        """
        tokens = resolve_tokens(tokenize(text))
        if not tokens:
            logger.debug("Nothing to play in %r", text)
            return True
        logger.debug("Resolved tokens: %s", tokens)
        return self._run(
            len(tokens),
            tempo_bpm,
            beat_multiplier,
            with_count_in,
            lambda session: self._play_tokens(session, tokens),
        )

    def play_chord(self, text: str, beats: float = 1.0, tempo_bpm: float | None = None) -> bool:
        """Strike a single chord for *beats* beats."""
        text = text.strip()
        if not text:
            return True
        tokens: list[Token] = [ChordToken(text)]
        return self._run(
            1, tempo_bpm, beats, False, lambda session: self._play_tokens(session, tokens)
        )

    def play_note(
        self,
        name: str,
        beats: float = 1.0,
        octave: int | None = None,
        velocity: int | None = None,
        tempo_bpm: float | None = None,
    ) -> bool:
        """
        Sound a single note, e.g. "F#", for *beats* beats.

        Args:
            name:      Note name, one of the 17 accepted spellings.
            beats:     Length in beats at the session tempo.
            octave:    Octave of the note (4 = middle C); defaults to the
                       configured octave. The pitch is clamped to [0, 127].
            velocity:  0-127; defaults to the configured velocity.
            tempo_bpm: Tempo for this session only.

        Returns:
            True if the note rang for its full length, False if cancelled.

        Raises:
            UnknownNoteError: If *name* is not a note name. Nothing plays.
            ValueError:       If *velocity* is outside [0, 127].
        """
        note_name = name.strip()
        pitch_class = pitch_class_of(note_name)
        note_octave = octave if octave is not None else self.config.octave
        note_velocity = velocity if velocity is not None else self.config.velocity
        if not (0 <= note_velocity <= 127):
            raise ValueError(f"velocity must be in [0, 127], got {note_velocity}")
        pitch = clamp_midi(pitch_class_to_midi(pitch_class, note_octave))

        def sound_note(session: PlaybackSession) -> None:
            if self._strike(session, [pitch], note_velocity, CHORD_CHANNEL):
                logger.debug("Playing note %s (%d)", note_name, pitch)
                self._emit(NoteStruck(name=note_name, pitch=pitch))
            self._sleep(session, session.beat_duration)

        return self._run(1, tempo_bpm, beats, False, sound_note)

    def start_progression(
        self,
        text: str | None,
        tempo_bpm: float | None = None,
        beat_multiplier: float = 1.0,
        with_count_in: bool = False,
    ) -> threading.Thread:
        """Run play_progression() on a daemon worker thread and return the thread."""
        thread = threading.Thread(
            target=self.play_progression,
            args=(text, tempo_bpm, beat_multiplier, with_count_in),
            name="singit-playback",
            daemon=True,
        )
        thread.start()
        return thread

    def stop_playback(self) -> None:
        """
        Stop the running session.

        Every sounding note is stopped before this returns; the playback
        loop notices the cancellation at its next checkpoint. Stopping an
        already cancelled session does nothing.
        """
        with self._notes_lock:
            session = self._session
            if session is None or session.cancelled.is_set():
                return
            session.cancelled.set()
            self._silence(session)
        logger.info("Playback stopped")

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _run(
        self,
        token_count: int,
        tempo_bpm: float | None,
        beat_multiplier: float,
        with_count_in: bool,
        body: Callable[[PlaybackSession], None],
    ) -> bool:
        if self._owner == threading.get_ident():
            # Waiting here would wait on ourselves.
            raise RuntimeError(
                "Cannot start playback from a listener of the running session; "
                "call start_progression() to replace it, or chain from PlaybackFinished"
            )

        # Cancel-then-replace: cancel whoever holds the session lock until we
        # get it. stop_playback() is a no-op once that session is cancelled.
        while not self._session_lock.acquire(timeout=0.05):
            self.stop_playback()
        self._owner = threading.get_ident()

        try:
            session = PlaybackSession(
                tempo_bpm=clamp_tempo(tempo_bpm if tempo_bpm is not None else self._tempo),
                beat_multiplier=beat_multiplier,
                count_in=with_count_in,
            )
            with self._notes_lock:
                self._session = session

            logger.info(
                "Playing %d tokens at %s BPM (count-in: %s)",
                token_count, session.tempo_bpm, with_count_in,
            )
            self._emit(PlaybackStarted(token_count=token_count, tempo_bpm=session.tempo_bpm))

            try:
                if with_count_in:
                    self._state = PlaybackState.COUNT_IN
                    self._count_in(session)
                if not session.cancelled.is_set():
                    self._state = PlaybackState.PLAYING
                    body(session)
            finally:
                self._silence(session)
                with self._notes_lock:
                    if self._session is session:
                        self._session = None
                cancelled = session.cancelled.is_set()
                self._state = PlaybackState.CANCELLED if cancelled else PlaybackState.IDLE
        finally:
            self._owner = None
            self._session_lock.release()

        # Emitted outside the lock so a listener may start the next session.
        self._emit(PlaybackFinished(cancelled=cancelled))
        return not cancelled

    def _sleep(self, session: PlaybackSession, seconds: float) -> bool:
        return self.clock.sleep(seconds, session.cancelled)

    def _strike(self, session: PlaybackSession, pitches: list[int], velocity: int, channel: int) -> bool:
        with self._notes_lock:
            if session.cancelled.is_set():
                return False
            for pitch in pitches:
                self.driver.start_pitch(pitch, velocity, channel)
                session.active_notes[(pitch, channel)] = None
        return True

    def _silence(self, session: PlaybackSession) -> None:
        with self._notes_lock:
            for pitch, channel in list(session.active_notes):
                self.driver.stop_pitch(pitch, channel)
            session.active_notes.clear()

    def _select_voice(self, session: PlaybackSession, program: int) -> None:
        self.driver.select_voice(program, wait_until_ready=True)
        self._voice = program
        self._sleep(session, self.config.settle_delay)

    def _count_in(self, session: PlaybackSession) -> None:
        cfg = self.config
        beat = 60.0 / session.tempo_bpm
        saved_voice = self._voice

        self._select_voice(session, WOODBLOCK_PROGRAM)
        try:
            for i in range(cfg.count_in_beats):
                if session.cancelled.is_set():
                    break
                accented = i == 0
                pitch = cfg.accent_pitch if accented else cfg.click_pitch
                velocity = cfg.accent_velocity if accented else cfg.click_velocity

                self._emit(CountInTick(beat=i + 1, accented=accented))
                self._strike(session, [pitch], velocity, PERCUSSION_CHANNEL)
                self._sleep(session, cfg.click_length)
                self._silence(session)

                if i == cfg.count_in_beats - 1:
                    # Shortened so the voice switch back lands before the downbeat.
                    self._sleep(session, beat * cfg.last_tick_factor)
                else:
                    self._sleep(session, max(0.0, beat - cfg.click_length))
        finally:
            self._select_voice(session, saved_voice)

    def _strike_chord(self, session: PlaybackSession, index: int, text: str) -> bool:
        try:
            chord = parse_chord_name(text)
        except ChordError as exc:
            logger.warning("Skipping chord '%s': %s", text, exc)
            self._emit(ChordSkipped(index=index, text=text, reason=str(exc)))
            return False

        pitches = self.voicer.voice(chord).all_notes
        if not self._strike(session, pitches, self.config.velocity, CHORD_CHANNEL):
            return False

        session.last_struck_chord = chord
        logger.debug("Playing chord %s %s", text, pitches)
        self._emit(ChordStruck(index=index, text=text, pitches=tuple(pitches)))
        return True

    def _play_tokens(self, session: PlaybackSession, tokens: list[Token]) -> None:
        beat = session.beat_duration
        gap = beat * self.config.inter_chord_gap

        for index, token in enumerate(tokens):
            if session.cancelled.is_set():
                break
            next_token = tokens[index + 1] if index + 1 < len(tokens) else None

            if isinstance(token, HoldToken):
                # Whatever is sounding keeps sounding.
                self._sleep(session, beat)

            elif isinstance(token, RestToken):
                self._silence(session)
                self._sleep(session, beat)

            elif isinstance(token, GroupToken):
                self._silence(session)
                self._strike_chord(session, index, token.text)
                self._sleep(session, beat / token.total)
                if not (isinstance(next_token, HoldToken) or _is_next_in_group(token, next_token)):
                    self._silence(session)

            elif isinstance(token, ChordToken):
                self._silence(session)
                self._strike_chord(session, index, token.text)
                if isinstance(next_token, HoldToken):
                    self._sleep(session, beat)
                elif isinstance(next_token, ChordToken):
                    self._sleep(session, beat - gap)
                    self._silence(session)
                    self._sleep(session, gap)
                else:
                    self._sleep(session, beat)
                    self._silence(session)


def _is_next_in_group(token: GroupToken, next_token: Token | None) -> bool:
    return (
        isinstance(next_token, GroupToken)
        and next_token.total == token.total
        and next_token.position == token.position + 1
    )
