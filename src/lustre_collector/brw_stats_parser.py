# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
"""
Parser for ``brw_stats`` histograms.

A document is one timestamp header followed by sections of the form::

                               read      |     write
    pages per bulk r/w     rpcs  % cum % |  rpcs        % cum %
    1:		         0   0   0   |    0   0   0
    32:		         0   0   0   |    1  11  11

Two schemas read the same text. ``brw_stats`` keeps the expanded bucket
key and the read/write counts. ``brw_stats_full`` keeps the key as
printed and all six columns as strings, for consumers that need the
percentages.
"""

import logging
import re
from enum import Enum
from typing import Callable, List, NamedTuple, Optional, Tuple

from lustre_collector.base_parsers import (
    Input,
    Vocabulary,
    digits,
    hspaces,
    hspaces1,
    many,
    many1,
    newline,
    newline_or_eof,
    regex,
    spaces,
    string,
    till_newline,
    time_triple,
    token,
    u64,
    word,
)
from lustre_collector.types import (
    BrwStats,
    BrwStatsBucket,
    BrwStatsBucketVals,
    BrwStatsFull,
    BrwStatsFullBucket,
    TargetStats,
)

logger = logging.getLogger("lustre-collector.brw_stats")

_COUNT = re.compile(r"[0-9]+")
_SUFFIX = re.compile(r"[KkMmGg]")

SECTION_NAMES = Vocabulary(
    {
        "pages per bulk r/w": "pages",
        "discontiguous pages": "discont_pages",
        "discontiguous blocks": "discont_blocks",
        "disk fragmented I/Os": "dio_frags",
        "disk I/Os in flight": "rpc_hist",
        "I/O time (1/1000s)": "io_time",
        "disk I/O size": "disk_iosize",
        "block maps msec": "block_maps_msec",
    }
)

MULTIPLIERS = {
    "K": 2**10,
    "M": 2**20,
    "G": 2**30,
}


class BrwSchema(Enum):
    COUNTS = "counts"
    FULL = "full"


def expand(value: int, suffix: Optional[str]) -> int:
    """Apply a K/M/G byte suffix (any case) to a bucket key."""
    if not suffix:
        return value
    return value * MULTIPLIERS[suffix.upper()]


class _Column(NamedTuple):
    count: str
    pct: str
    cum_pct: str


class _RawBucket(NamedTuple):
    key: str
    value: int
    suffix: Optional[str]
    read: _Column
    write: _Column


class _RawSection(NamedTuple):
    name: str
    unit: str
    buckets: List[_RawBucket]


def _count_text(inp: Input) -> str:
    start = inp.pos
    digits(inp)
    return inp.text[start : inp.pos]


def _column(inp: Input) -> _Column:
    count = _count_text(inp)
    hspaces1(inp)
    pct = regex(inp, _COUNT, "percent")
    hspaces1(inp)
    cum_pct = regex(inp, _COUNT, "cumulative percent")
    return _Column(count, pct, cum_pct)


def bucket(inp: Input) -> _RawBucket:
    start = inp.pos
    number = digits(inp)
    suffix = None
    if _SUFFIX.match(inp.text, inp.pos):
        suffix = regex(inp, _SUFFIX, "size suffix")
    key = inp.text[start : inp.pos]
    value = u64(inp, start, expand(number, suffix))
    token(inp, ":")
    hspaces(inp)
    read = _column(inp)
    hspaces(inp)
    token(inp, "|")
    hspaces(inp)
    write = _column(inp)
    till_newline(inp)
    newline_or_eof(inp)
    return _RawBucket(
        key=key,
        value=value,
        suffix=suffix,
        read=read,
        write=write,
    )


def _rw_columns(inp: Input) -> None:
    string(inp, "read")
    hspaces(inp)
    token(inp, "|")
    hspaces(inp)
    string(inp, "write")
    till_newline(inp)
    newline(inp)


def section(inp: Input) -> _RawSection:
    _rw_columns(inp)
    _, name = SECTION_NAMES.match(inp)
    hspaces1(inp)
    unit = word(inp)
    till_newline(inp)
    newline_or_eof(inp)
    buckets = many(inp, bucket)
    spaces(inp)
    return _RawSection(name, unit, buckets)


def _sections(inp: Input) -> List[_RawSection]:
    newline(inp)
    time_triple(inp)
    spaces(inp)
    sections = many1(inp, section)
    logger.debug(f"Parsed {len(sections)} brw_stats sections")
    return sections


def brw_stats(inp: Input) -> List[BrwStats]:
    return [
        BrwStats(
            name=raw.name,
            unit=raw.unit,
            buckets=[
                BrwStatsBucket(b.value, int(b.read.count), int(b.write.count))
                for b in raw.buckets
            ],
        )
        for raw in _sections(inp)
    ]


def brw_stats_full(inp: Input) -> List[BrwStatsFull]:
    return [
        BrwStatsFull(
            name=raw.name,
            unit=raw.unit,
            buckets=[
                BrwStatsFullBucket(
                    b.key,
                    BrwStatsBucketVals(*b.read),
                    BrwStatsBucketVals(*b.write),
                )
                for b in raw.buckets
            ],
        )
        for raw in _sections(inp)
    ]


def vocabulary_entry(schema: BrwSchema) -> Tuple[TargetStats, Callable[[Input], List]]:
    """The record tag and grammar for ``brw_stats`` under ``schema``."""
    if schema == BrwSchema.FULL:
        return TargetStats.BRW_STATS_FULL, brw_stats_full
    return TargetStats.BRW_STATS, brw_stats
