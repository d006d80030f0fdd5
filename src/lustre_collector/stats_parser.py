# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
"""
Parser for the generic ``stats`` table printed by most Lustre services::

    snapshot_time             1566017453.009677077 secs.nsecs
    read_bytes                4 samples [bytes] 4096 1048576 1056768
    write_bytes               9 samples [bytes] 98303 4194304 33554431 3298534883328
    statfs                    42113 samples [reqs]
"""

import logging
from typing import List

from lustre_collector.base_parsers import (
    Input,
    digits,
    hspaces,
    hspaces1,
    many,
    many1,
    newline,
    newline_or_eof,
    not_word,
    string,
    time_triple,
    token,
    word,
)
from lustre_collector.types import Stat

logger = logging.getLogger("lustre-collector.stats")

# Names that start a new parameter line rather than a table row.
RESERVED_PREFIXES = [
    "obdfilter",
    "ost",
    "osd",
    "mdt",
    "mds",
    "mgs",
    "ldlm",
    "qmt",
    "memused",
    "memused_max",
    "lnet_memused",
    "health_check",
]


def _at_line_end(inp: Input) -> bool:
    hspaces(inp)
    return inp.at_eof() or inp.startswith("\n")


def stat(inp: Input) -> Stat:
    name = not_word(inp, RESERVED_PREFIXES)
    hspaces1(inp)
    samples = digits(inp)
    hspaces1(inp)
    string(inp, "samples")
    hspaces1(inp)
    token(inp, "[")
    units = word(inp)
    token(inp, "]")

    if _at_line_end(inp):
        newline_or_eof(inp)
        return Stat(name, units, samples)

    min_value = digits(inp)
    hspaces1(inp)
    max_value = digits(inp)
    hspaces1(inp)
    sum_value = digits(inp)

    if _at_line_end(inp):
        newline_or_eof(inp)
        return Stat(name, units, samples, min_value, max_value, sum_value)

    sumsquare = digits(inp)
    hspaces(inp)
    newline_or_eof(inp)
    return Stat(name, units, samples, min_value, max_value, sum_value, sumsquare)


def _header(inp: Input) -> str:
    newline(inp)
    snapshot = time_triple(inp)
    newline_or_eof(inp)
    return snapshot


def stats(inp: Input) -> List[Stat]:
    """A timestamp header followed by one or more rows."""
    _header(inp)
    rows = many1(inp, stat)
    logger.debug(f"Parsed stats table with {len(rows)} rows")
    return rows


def stats_or_empty(inp: Input) -> List[Stat]:
    """As ``stats``, for tables that an idle target prints with no rows."""
    _header(inp)
    return many(inp, stat)


def format_stat(row: Stat) -> str:
    text = f"{row.name} {row.samples} samples [{row.units}]"
    if row.min is not None:
        text += f" {row.min} {row.max} {row.sum}"
        if row.sumsquare is not None:
            text += f" {row.sumsquare}"
    return text


def format_stats(snapshot: str, rows: List[Stat]) -> str:
    """Render rows back into the text ``stats`` parses, leading newline included."""
    lines = [f"snapshot_time             {snapshot} secs.nsecs"]
    lines.extend(format_stat(row) for row in rows)
    return "\n" + "\n".join(lines) + "\n"
