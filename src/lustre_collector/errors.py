# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
from typing import Iterable, List, Optional, Sequence


class LustreCollectorError(RuntimeError):
    pass


class ParseError(LustreCollectorError):
    """A failure that can be traced back to a position in the parsed text."""

    def __init__(
        self,
        message: str,
        pos: int = 0,
        line: int = 1,
        column: int = 1,
        expected: Optional[Iterable[str]] = None,
    ) -> None:
        self.pos = pos
        self.line = line
        self.column = column
        self.expected: List[str] = sorted(set(expected or []))
        detail = f"{message} at line {line}, column {column}"
        if self.expected:
            detail += f" (expected one of: {', '.join(self.expected)})"
        super().__init__(detail)


class NumericOverflowError(ParseError):
    def __init__(self, span: str, pos: int, line: int, column: int) -> None:
        self.span = span
        super().__init__(
            f"Numeric value {span} does not fit in 64 bits", pos, line, column
        )


class GrammarExhaustedError(ParseError):
    pass


class UnconsumedInputError(ParseError):
    """No grammar recognised the text that remains after the last record.

    ``queries`` lists the query patterns whose output produced the text, so
    the failing command can be re-run by hand.
    """

    def __init__(
        self,
        remaining: str,
        queries: Sequence[str],
        pos: int,
        line: int,
        column: int,
        expected: Optional[Iterable[str]] = None,
    ) -> None:
        self.remaining = remaining
        self.queries = list(queries)
        first_line = remaining.split("\n", 1)[0]
        message = f"Content left in input buffer: {first_line!r}"
        if self.queries:
            message += f"; re-run `lctl get_param {' '.join(self.queries)}` to reproduce"
        super().__init__(message, pos, line, column, expected)


class StructuredDecodeError(ParseError):
    def __init__(
        self,
        message: str,
        pos: int = 0,
        line: int = 1,
        column: int = 1,
        cause: Optional[Exception] = None,
    ) -> None:
        self.cause = cause
        super().__init__(message, pos, line, column)


class CollaboratorError(LustreCollectorError):
    def __init__(self, message: str, command: Optional[Sequence[str]] = None) -> None:
        self.command = list(command or [])
        if self.command:
            message = f"{message} (command: {' '.join(self.command)})"
        super().__init__(message)


class ConfigurationError(LustreCollectorError):
    pass
