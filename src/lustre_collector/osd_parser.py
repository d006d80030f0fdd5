# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
"""
Object storage device parameters, ``osd-<fstype>.<target>.*``.

The backing filesystem (ldiskfs, zfs) is part of the prefix and is
discarded. The same namespace serves metadata and object targets; each
caller passes the target kind it owns and only targets whose name carries
that kind are accepted.
"""
from typing import Dict, List

from lustre_collector.base_parsers import (
    Input,
    ValueEntry,
    Vocabulary,
    digits_line,
    kbytes_line,
    period,
    string,
    target,
    target_stat,
    text_line,
    till_period,
)
from lustre_collector.brw_stats_parser import BrwSchema, vocabulary_entry
from lustre_collector.types import Record, Target, TargetStats, TargetVariant

_FS_STATS: Dict[str, ValueEntry] = {
    "filesfree": (TargetStats.FILES_FREE, digits_line),
    "filestotal": (TargetStats.FILES_TOTAL, digits_line),
    "fstype": (TargetStats.FS_TYPE, text_line),
    "kbytesavail": (TargetStats.BYTES_AVAIL, kbytes_line),
    "kbytesfree": (TargetStats.BYTES_FREE, kbytes_line),
    "kbytestotal": (TargetStats.BYTES_TOTAL, kbytes_line),
}


def _build_vocabulary(
    kind: TargetVariant, brw_schema: BrwSchema
) -> "Vocabulary[ValueEntry]":
    entries = dict(_FS_STATS)
    if kind == TargetVariant.OST:
        entries["brw_stats"] = vocabulary_entry(brw_schema)
    return Vocabulary(entries)


_VOCABULARIES = {
    (kind, schema): _build_vocabulary(kind, schema)
    for kind in (TargetVariant.MDT, TargetVariant.OST)
    for schema in BrwSchema
}


def vocabulary(kind: TargetVariant, brw_schema: BrwSchema) -> "Vocabulary[ValueEntry]":
    return _VOCABULARIES[(kind, brw_schema)]


def params(kind: TargetVariant) -> List[str]:
    keys = vocabulary(kind, BrwSchema.COUNTS).keys()
    return [f"osd-*.*{kind.value}*.{key}" for key in keys]


def osd_target(inp: Input, kind: TargetVariant) -> Target:
    string(inp, "osd-")
    till_period(inp)
    period(inp)
    name = target(inp)
    if kind.value not in name:
        inp.fail(f"{kind.value} target")
    period(inp)
    return name


def parse(
    inp: Input, kind: TargetVariant, brw_schema: BrwSchema = BrwSchema.COUNTS
) -> List[Record]:
    name = osd_target(inp, kind)
    return [target_stat(inp, vocabulary(kind, brw_schema), kind, name)]
