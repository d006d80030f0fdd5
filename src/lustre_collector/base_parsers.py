# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
"""
Lexical combinators shared by every grammar.

A parser is a plain function taking an ``Input`` (plus any arguments) and
returning a value. Primitives either consume a span and return its value,
or raise ``NoMatch`` without moving the cursor. Composite grammars call
primitives in sequence, and may leave the cursor moved when they fail part
way; ``attempt`` and the combinators built on it restore the cursor before
re-raising, which gives every ``choice`` full backtracking.
"""

import re
from typing import (
    Callable,
    Dict,
    Generic,
    List,
    Mapping,
    NoReturn,
    Optional,
    Sequence,
    Set,
    Tuple,
    Type,
    TypeVar,
)

from lustre_collector.errors import NumericOverflowError, ParseError
from lustre_collector.types import (
    U64_MAX,
    Param,
    Target,
    TargetStat,
    TargetStats,
    TargetVariant,
)

T = TypeVar("T")
E = TypeVar("E", bound=ParseError)

_WORD = re.compile(r"\w+")
_WORDS = re.compile(r"\w+(?: +\w+)*")
_DIGITS = re.compile(r"[0-9]+")
_TARGET = re.compile(r"[\w-]+")
_TILL_NEWLINE = re.compile(r"[^\n]*")
_TILL_PERIOD = re.compile(r"[^.\n]+")
_SPACES = re.compile(r"\s*")
_HSPACES = re.compile(r"[ \t]*")
_HSPACES1 = re.compile(r"[ \t]+")


class NoMatch(Exception):
    """Internal lexical mismatch. Never escapes a top-level parse."""

    def __init__(self, pos: int) -> None:
        super().__init__(pos)
        self.pos = pos


class Input:
    """A cursor over the text being parsed."""

    __slots__ = ("text", "pos", "furthest", "expected")

    def __init__(self, text: str, pos: int = 0) -> None:
        self.text = text
        self.pos = pos
        self.furthest = pos
        self.expected: Set[str] = set()

    def at_eof(self) -> bool:
        return self.pos >= len(self.text)

    def startswith(self, literal: str) -> bool:
        return self.text.startswith(literal, self.pos)

    def remaining(self) -> str:
        return self.text[self.pos :]

    def line_col(self, pos: Optional[int] = None) -> Tuple[int, int]:
        if pos is None:
            pos = self.pos
        line = self.text.count("\n", 0, pos) + 1
        column = pos - (self.text.rfind("\n", 0, pos) + 1) + 1
        return line, column

    def fail(self, expected: str) -> NoReturn:
        if self.pos > self.furthest:
            self.furthest = self.pos
            self.expected = {expected}
        elif self.pos == self.furthest:
            self.expected.add(expected)
        raise NoMatch(self.pos)

    def error(self, cls: Type[E], message: str) -> E:
        """Build ``cls`` located at the furthest point any grammar reached."""
        line, column = self.line_col(self.furthest)
        return cls(message, self.furthest, line, column, self.expected)


# ==============================================================================
# PRIMITIVES
# ==============================================================================


def regex(inp: Input, pattern: "re.Pattern[str]", expected: str) -> str:
    match = pattern.match(inp.text, inp.pos)
    if match is None:
        inp.fail(expected)
    inp.pos = match.end()
    return match.group(0)


def string(inp: Input, literal: str) -> str:
    if not inp.startswith(literal):
        inp.fail(repr(literal))
    inp.pos += len(literal)
    return literal


def string_to(inp: Input, literal: str, value: T) -> T:
    string(inp, literal)
    return value


def token(inp: Input, char: str) -> str:
    return string(inp, char)


def period(inp: Input) -> str:
    return string(inp, ".")


def equals(inp: Input) -> str:
    return string(inp, "=")


def newline(inp: Input) -> str:
    return string(inp, "\n")


def eof(inp: Input) -> None:
    if not inp.at_eof():
        inp.fail("end of input")


def newline_or_eof(inp: Input) -> None:
    if inp.at_eof():
        return
    newline(inp)


def spaces(inp: Input) -> str:
    """Any run of whitespace, newlines included. Always succeeds."""
    return regex(inp, _SPACES, "whitespace")


def hspaces(inp: Input) -> str:
    """Spaces and tabs on the current line. Always succeeds."""
    return regex(inp, _HSPACES, "whitespace")


def hspaces1(inp: Input) -> str:
    return regex(inp, _HSPACES1, "whitespace")


def word(inp: Input) -> str:
    return regex(inp, _WORD, "word")


def words(inp: Input) -> str:
    return regex(inp, _WORDS, "words")


def u64(inp: Input, start: int, value: int) -> int:
    """Check a number read from ``start`` up to the cursor fits in 64 bits."""
    if value > U64_MAX:
        line, column = inp.line_col(start)
        raise NumericOverflowError(inp.text[start:inp.pos], start, line, column)
    return value


def digits(inp: Input) -> int:
    start = inp.pos
    return u64(inp, start, int(regex(inp, _DIGITS, "digits")))


def till_newline(inp: Input) -> str:
    return regex(inp, _TILL_NEWLINE, "text")


def till_eof(inp: Input) -> str:
    rest = inp.remaining()
    inp.pos = len(inp.text)
    return rest


def till_period(inp: Input) -> str:
    return regex(inp, _TILL_PERIOD, "text before '.'")


def not_word(inp: Input, reserved: Sequence[str]) -> str:
    """A word that is none of ``reserved``."""
    start = inp.pos
    value = word(inp)
    if value in reserved:
        inp.pos = start
        inp.fail(f"word other than {value!r}")
    return value


def param(inp: Input, name: str) -> Param:
    """``name=`` as a single token."""
    string(inp, f"{name}=")
    return Param(name)


def param_period(inp: Input, name: str) -> Param:
    """``name.`` for parameters that continue with a further path segment."""
    string(inp, f"{name}.")
    return Param(name)


def target(inp: Input) -> Target:
    return Target(regex(inp, _TARGET, "target"))


def line(inp: Input) -> str:
    """The rest of the current line, newline consumed."""
    text = till_newline(inp)
    newline_or_eof(inp)
    return text


def block(inp: Input, include_first: bool = False) -> str:
    """Consume lines up to the next one starting with an alphanumeric.

    Embedded documents are indented or start with ``-`` while the next
    parameter always starts at column 0 with a subsystem name. With
    ``include_first`` the current line is taken whatever it starts with.
    """
    start = inp.pos
    first = include_first
    while not inp.at_eof():
        if not first and inp.text[inp.pos].isalnum():
            break
        first = False
        end = inp.text.find("\n", inp.pos)
        inp.pos = len(inp.text) if end == -1 else end + 1
    return inp.text[start : inp.pos]


# ==============================================================================
# COMBINATORS
# ==============================================================================


def attempt(inp: Input, parser: Callable[..., T], *args: object) -> T:
    start = inp.pos
    try:
        return parser(inp, *args)
    except NoMatch:
        inp.pos = start
        raise


def optional(inp: Input, parser: Callable[..., T], *args: object) -> Optional[T]:
    try:
        return attempt(inp, parser, *args)
    except NoMatch:
        return None


def many(inp: Input, parser: Callable[..., T], *args: object) -> List[T]:
    values: List[T] = []
    while True:
        start = inp.pos
        try:
            value = attempt(inp, parser, *args)
        except NoMatch:
            return values
        values.append(value)
        if inp.pos == start:
            return values


def many1(inp: Input, parser: Callable[..., T], *args: object) -> List[T]:
    first = attempt(inp, parser, *args)
    return [first] + many(inp, parser, *args)


def choice(inp: Input, alternatives: Sequence[Callable[[Input], T]]) -> T:
    for alternative in alternatives:
        try:
            return attempt(inp, alternative)
        except NoMatch:
            continue
    raise NoMatch(inp.pos)


class Vocabulary(Generic[T]):
    """A closed set of literals, matched longest first.

    Declaration order is kept for ``keys`` so query patterns come out in
    the order the vocabulary was written.
    """

    def __init__(self, entries: Mapping[str, T]) -> None:
        self.entries: Dict[str, T] = dict(entries)
        self._ordered = sorted(self.entries, key=len, reverse=True)

    def keys(self) -> List[str]:
        return list(self.entries)

    def match(self, inp: Input, suffix: str = "") -> Tuple[str, T]:
        for key in self._ordered:
            if inp.startswith(key + suffix):
                inp.pos += len(key) + len(suffix)
                return key, self.entries[key]
        inp.fail(" or ".join(repr(k + suffix) for k in self.entries))


# ==============================================================================
# TIMESTAMPS
# ==============================================================================


def _labeled_time(inp: Input, label: str) -> str:
    string(inp, label)
    optional(inp, token, ":")
    hspaces(inp)
    secs = regex(inp, _DIGITS, "seconds")
    period(inp)
    nsecs = regex(inp, _DIGITS, "nanoseconds")
    till_newline(inp)
    return f"{secs}.{nsecs}"


def snapshot_time(inp: Input) -> str:
    """``snapshot_time[:] <secs>.<nsecs> [label]`` up to the end of line."""
    return _labeled_time(inp, "snapshot_time")


def _next_labeled_time(inp: Input, label: str) -> str:
    newline(inp)
    return _labeled_time(inp, label)


def time_triple(inp: Input) -> str:
    """A snapshot time optionally followed by start and elapsed times.

    The trailing newline of the last line is left for the caller.
    """
    snapshot = snapshot_time(inp)
    optional(inp, _next_labeled_time, "start_time")
    optional(inp, _next_labeled_time, "elapsed_time")
    return snapshot


# ==============================================================================
# PARAMETERS
# ==============================================================================


def target_name(inp: Input, prefix: str) -> Target:
    """``<prefix>.<target>.``"""
    string(inp, f"{prefix}.")
    name = target(inp)
    period(inp)
    return name


def digits_line(inp: Input) -> int:
    value = digits(inp)
    hspaces(inp)
    newline_or_eof(inp)
    return value


def kbytes_line(inp: Input) -> int:
    start = inp.pos
    value = u64(inp, start, digits(inp) * 1024)
    hspaces(inp)
    newline_or_eof(inp)
    return value


def text_line(inp: Input) -> str:
    return line(inp).strip()


ValueEntry = Tuple[TargetStats, Callable[[Input], object]]


def target_stat(
    inp: Input,
    vocabulary: "Vocabulary[ValueEntry]",
    kind: TargetVariant,
    name: Target,
) -> TargetStat:
    """One ``<param>=<value>`` from a closed vocabulary, wrapped as a record."""
    key, (stat, value_parser) = vocabulary.match(inp, "=")
    return TargetStat(stat, kind, Param(key), name, value_parser(inp))
