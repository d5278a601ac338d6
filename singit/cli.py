"""singit CLI entry point."""

import logging
import sys

import click

from singit import __version__
from singit.chord_model import ChordError, notes_of, parse_chord_name
from singit.clock import VirtualClock
from singit.config import TEMPO_MAX, TEMPO_MIN, PlaybackConfig
from singit.midi_driver import MidiFileDriver
from singit.scheduler import ChordSkipped, PlaybackEvent, PlaybackScheduler
from singit.tokenizer import (
    ChordToken,
    GroupToken,
    HoldToken,
    RepeatToken,
    RestToken,
    Token,
    resolve_tokens,
    tokenize,
)
from singit.transposer import spell_in_key, transpose_chord, transpose_progression
from singit.voicing import PianoVoicer


def _describe(token: Token) -> str:
    """One-line label for a token, e.g. 'group 1/2  G'."""
    if isinstance(token, ChordToken):
        return f"chord      {token.text}"
    if isinstance(token, GroupToken):
        return f"group {token.position + 1}/{token.total}  {token.text}"
    if isinstance(token, RepeatToken):
        return "repeat"
    if isinstance(token, HoldToken):
        return "hold"
    if isinstance(token, RestToken):
        return "rest"
    return repr(token)


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="singit")
@click.option("--verbose", "-v", is_flag=True, help="Log tokenizer and scheduler activity.")
def main(verbose: bool) -> None:
    """singit — chord chart transposer and player."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# ── transpose subcommand ───────────────────────────────────────────────────────

@main.command()
@click.argument("progression")
@click.option(
    "--semitones",
    "-s",
    type=int,
    default=0,
    show_default=True,
    help="Semitones to shift by (negative shifts down).",
)
def transpose(progression: str, semitones: int) -> None:
    """
    Transpose a chord chart, keeping its layout.

    \b
    Examples:
      singit transpose "C . G/B - | Am F" -s 2
      singit transpose "(Bb F) Gm" -s -3
    """
    click.echo(transpose_progression(progression, semitones))


# ── tokens subcommand ──────────────────────────────────────────────────────────

@main.command()
@click.argument("progression")
@click.option("--raw", is_flag=True, help="Show tokens before repeat dots are resolved.")
def tokens(progression: str, raw: bool) -> None:
    """
    List the tokens of a chord chart, one per line.

    \b
    Examples:
      singit tokens "C . . G"
      singit tokens "(C G) - ()" --raw
    """
    token_list = tokenize(progression)
    if not raw:
        token_list = resolve_tokens(token_list)
    for i, token in enumerate(token_list, start=1):
        click.echo(f"{i:3d}  {_describe(token)}")


# ── notes subcommand ───────────────────────────────────────────────────────────

@main.command()
@click.argument("chord")
@click.option("--semitones", "-s", type=int, default=0, show_default=True, help="Transpose first.")
@click.option(
    "--octave",
    type=click.IntRange(1, 7),
    default=PianoVoicer.DEFAULT_OCTAVE,
    show_default=True,
    help="Octave of the chord root (bass sounds one octave lower).",
)
def notes(chord: str, semitones: int, octave: int) -> None:
    """
    Show the pitch classes and MIDI notes of a chord.

    \b
    Examples:
      singit notes Am7
      singit notes D/F# -s -2
    """
    try:
        parsed = transpose_chord(parse_chord_name(chord), semitones)
    except ChordError as exc:
        click.echo(f"  ERROR: {exc}", err=True)
        sys.exit(1)

    voiced = PianoVoicer(octave).voice(parsed)
    pitch_classes = notes_of(parsed)
    root = parsed.root.pitch_class

    click.echo(f"  Chord   : {parsed.name}")
    click.echo(f"  Quality : {parsed.quality.name.lower().replace('_', ' ')}")
    click.echo(f"  Tones   : {' '.join(spell_in_key(pc, root) for pc in pitch_classes[:-1])}")
    bass = parsed.bass if parsed.bass is not None else parsed.root
    click.echo(f"  Bass    : {bass.name}")
    click.echo(f"  MIDI    : {' '.join(str(n) for n in voiced.all_notes)}")


# ── render subcommand ──────────────────────────────────────────────────────────

@main.command()
@click.argument("progression")
@click.option(
    "--output",
    "-o",
    default="progression.mid",
    show_default=True,
    metavar="PATH",
    help="Destination MIDI file path.",
)
@click.option(
    "--tempo",
    type=click.FloatRange(TEMPO_MIN, TEMPO_MAX, clamp=True),
    default=60,
    show_default=True,
    help=f"Tempo in BPM ({TEMPO_MIN}–{TEMPO_MAX}; values outside are clamped).",
)
@click.option(
    "--beats",
    type=click.FloatRange(min=0.0, min_open=True),
    default=1.0,
    show_default=True,
    help="Beats per chord, e.g. 0.5 for eighth notes or 2 for half notes.",
)
@click.option("--count-in/--no-count-in", default=False, show_default=True, help="Start with four clicks.")
@click.option("--semitones", "-s", type=int, default=0, show_default=True, help="Transpose first.")
@click.option(
    "--last-tick",
    type=click.FloatRange(0.0, 1.0),
    default=PlaybackConfig.last_tick_factor,
    show_default=True,
    help="Fraction of a beat left after the last count-in click.",
)
def render(
    progression: str,
    output: str,
    tempo: float,
    beats: float,
    count_in: bool,
    semitones: int,
    last_tick: float,
) -> None:
    """
    Play a chord chart into a MIDI file.

    \b
    Examples:
      singit render "C G Am F" -o pop.mid
      singit render "C . . . | F - G -" --tempo 90 --count-in
      singit render "(C G) (Am F)" --beats 2 -s 3 -o shifted.mid
    """
    chart = transpose_progression(progression, semitones)

    click.echo(f"singit v{__version__}")
    click.echo(f"  Chart  : {chart}")
    click.echo(f"  Tempo  : {tempo:g} BPM  |  Beats/chord: {beats:g}")
    click.echo()

    skipped: list[str] = []

    def on_event(event: PlaybackEvent) -> None:
        if isinstance(event, ChordSkipped):
            skipped.append(event.text)

    clock = VirtualClock()
    with MidiFileDriver(clock, tempo=tempo) as driver:
        scheduler = PlaybackScheduler(
            driver, clock=clock, config=PlaybackConfig(last_tick_factor=last_tick)
        )
        scheduler.subscribe(on_event)
        scheduler.play_progression(chart, tempo_bpm=tempo, beat_multiplier=beats, with_count_in=count_in)

        if not driver.notes:
            click.echo("  WARNING: Nothing to play in this chart.", err=True)
            sys.exit(1)

        for text in skipped:
            click.echo(f"  WARNING: Skipped unrecognised chord '{text}'.", err=True)

        try:
            driver.export(output)
        except OSError as exc:
            click.echo(f"  ERROR: Could not write MIDI file — {exc}", err=True)
            sys.exit(1)

    click.echo(f"  Length : {clock.now():.2f} s, {len(driver.notes)} notes")
    click.echo(f"Done!  Open '{output}' in GarageBand, MuseScore, or any MIDI player.")
