"""Tokenizer: turns free-form chord-chart text into playable tokens.

Notation
--------
``C G Am F``   one chord per beat; anything that is not a chord character
               (spaces, newlines, ``|`` bar lines) only separates chords.
``C . . G``    a dot re-strikes the previous chord.
``F - -``      a dash keeps the previous chord ringing for another beat.
``(C G)``      a group shares one beat between its chords.
``()``         an empty group is a beat of silence.
"""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_CHORD_CHARS = frozenset(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789#/"
)


@dataclass(frozen=True)
class ChordToken:
    """A chord to strike, as written (not yet parsed)."""

    text: str


@dataclass(frozen=True)
class RepeatToken:
    """``.``: strike the most recent chord again."""


@dataclass(frozen=True)
class HoldToken:
    """``-``: let whatever is sounding ring for another beat."""


@dataclass(frozen=True)
class RestToken:
    """One beat of silence, written as ``()``."""


@dataclass(frozen=True)
class GroupToken:
    """
    One of several chords sharing a single beat.

    Attributes:
        position: 0-based index inside the group.
        total:    Number of chords in the group.
        text:     Chord text as written.
    """

    position: int
    total: int
    text: str


Token = ChordToken | RepeatToken | HoldToken | RestToken | GroupToken

#: Marker left in resolved output for a held beat.
HOLD = HoldToken()


class _Scanner:
    """Single-pass scanner state for tokenize()."""

    def __init__(self) -> None:
        self.tokens: list[Token] = []
        self.chord = ""
        self.group: str | None = None

    def flush(self) -> None:
        if self.chord:
            self.tokens.append(ChordToken(self.chord))
            self.chord = ""

    def close_group(self, group: str) -> None:
        chord_texts = group[1:].split()
        self.group = None
        if not chord_texts:
            self.tokens.append(RestToken())
            return
        total = len(chord_texts)
        self.tokens.extend(
            GroupToken(position=i, total=total, text=text)
            for i, text in enumerate(chord_texts)
        )

    def feed(self, char: str) -> None:
        if self.group is not None:
            if char == ")":
                self.close_group(self.group)
            else:
                self.group += char
        elif char == "(":
            self.flush()
            self.group = "("
        elif char == ".":
            self.flush()
            self.tokens.append(RepeatToken())
        elif char == "-":
            self.flush()
            self.tokens.append(HoldToken())
        elif char in _CHORD_CHARS:
            self.chord += char
        else:
            self.flush()

    def finish(self) -> list[Token]:
        if self.group is not None:
            # Unterminated group: close it at end of input.
            self.close_group(self.group)
        self.flush()
        return self.tokens


def tokenize(text: str | None) -> list[Token]:
    """
    Split chord-chart text into tokens, in source order.

    Args:
        text: Raw chart text. None and "" yield an empty list.

    Returns:
        ChordToken, RepeatToken, HoldToken, RestToken and GroupToken
        instances. Chord texts are not validated here.
    """
    if not text:
        return []

    scanner = _Scanner()
    for char in text:
        scanner.feed(char)
    tokens = scanner.finish()

    logger.debug("Tokenized %r -> %s", text, tokens)
    return tokens


def resolve_tokens(tokens: list[Token]) -> list[Token]:
    """
    Rewrite repeat dots into concrete chords.

    A RepeatToken becomes a ChordToken of the last chord seen (the last
    chord of a group counts), and is dropped if no chord precedes it.
    Holds stay as the HOLD marker because only the player knows what is
    still sounding. Everything else passes through unchanged.
    """
    resolved: list[Token] = []
    last_chord: str | None = None

    for token in tokens:
        if isinstance(token, RepeatToken):
            if last_chord is not None:
                resolved.append(ChordToken(last_chord))
        elif isinstance(token, HoldToken):
            resolved.append(HOLD)
        elif isinstance(token, (ChordToken, GroupToken)):
            resolved.append(token)
            last_chord = token.text
        else:
            resolved.append(token)

    return resolved


def chord_texts(tokens: list[Token]) -> list[str]:
    """Chord texts of the chord and group tokens, in order."""
    return [t.text for t in tokens if isinstance(t, (ChordToken, GroupToken))]
