# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
"""
Node level memory and CPU counters from ``/proc/meminfo`` and ``/proc/stat``.

Only the memory totals and the aggregate ``cpu`` line are kept; every other
line is skipped.
"""
import logging
from typing import List

from lustre_collector.base_parsers import (
    Input,
    Vocabulary,
    choice,
    digits,
    hspaces,
    hspaces1,
    many,
    many1,
    newline_or_eof,
    optional,
    string,
    till_newline,
    u64,
)
from lustre_collector.types import NodeStat, NodeStats, Param, Record

logger = logging.getLogger("lustre-collector.node")

MEMINFO = Vocabulary(
    {
        "MemTotal": (NodeStats.MEM_TOTAL, "mem_total"),
        "MemFree": (NodeStats.MEM_FREE, "mem_free"),
        "SwapTotal": (NodeStats.SWAP_TOTAL, "swap_total"),
        "SwapFree": (NodeStats.SWAP_FREE, "swap_free"),
    }
)

# user nice system idle iowait irq softirq steal; guest time is already
# counted in user.
_CPU_FIELDS = 8


def meminfo_line(inp: Input) -> List[Record]:
    _, (stat, name) = MEMINFO.match(inp, ":")
    hspaces(inp)
    start = inp.pos
    value = u64(inp, start, digits(inp) * 1024)
    hspaces(inp)
    optional(inp, string, "kB")
    hspaces(inp)
    newline_or_eof(inp)
    return [NodeStat(stat, Param(name), value)]


def _cpu_value(inp: Input) -> int:
    hspaces1(inp)
    return digits(inp)


def cpu_line(inp: Input) -> List[Record]:
    string(inp, "cpu")
    values = many1(inp, _cpu_value)
    hspaces(inp)
    newline_or_eof(inp)

    values = (values + [0] * _CPU_FIELDS)[:_CPU_FIELDS]
    user, nice, system, _idle, iowait, irq, softirq, steal = values
    return [
        NodeStat(NodeStats.CPU_USER, Param("cpu_user"), user + nice),
        NodeStat(NodeStats.CPU_SYSTEM, Param("cpu_system"), system + irq + softirq),
        NodeStat(NodeStats.CPU_IOWAIT, Param("cpu_iowait"), iowait),
        NodeStat(NodeStats.CPU_TOTAL, Param("cpu_total"), sum(values)),
    ]


def _skip_line(inp: Input) -> List[Record]:
    if inp.at_eof():
        inp.fail("line")
    till_newline(inp)
    newline_or_eof(inp)
    return []


def parse(inp: Input) -> List[Record]:
    records: List[Record] = []
    for found in many(inp, choice, [meminfo_line, cpu_line, _skip_line]):
        records.extend(found)
    logger.debug(f"Parsed {len(records)} node records")
    return records
