# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
"""Host-wide parameters that live at the root of the lctl namespace."""
from typing import List

from lustre_collector.base_parsers import (
    Input,
    Vocabulary,
    digits,
    hspaces,
    newline_or_eof,
    words,
)
from lustre_collector.types import HostStat, HostStats, Param, Record

TOP_LEVEL = Vocabulary(
    {
        "memused": (HostStats.MEMUSED, digits),
        "memused_max": (HostStats.MEMUSED_MAX, digits),
        "lnet_memused": (HostStats.LNET_MEMUSED, digits),
        "health_check": (HostStats.HEALTH_CHECK, words),
    }
)


def params() -> List[str]:
    return TOP_LEVEL.keys()


def top_level_stat(inp: Input) -> HostStat:
    key, (stat, value_parser) = TOP_LEVEL.match(inp, "=")
    value = value_parser(inp)
    hspaces(inp)
    newline_or_eof(inp)
    return HostStat(stat, Param(key), value)


def parse(inp: Input) -> List[Record]:
    return [top_level_stat(inp)]
