# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
"""Object storage target parameters, ``obdfilter.<target>.*``."""
from typing import Dict, List

from lustre_collector.base_parsers import (
    Input,
    ValueEntry,
    Vocabulary,
    choice,
    digits_line,
    target_name,
    target_stat,
)
from lustre_collector.brw_stats_parser import BrwSchema, vocabulary_entry
from lustre_collector.exports_parser import QUERY_SUFFIX, exports
from lustre_collector.job_stats import job_stats_ost
from lustre_collector.stats_parser import stats
from lustre_collector.types import Record, TargetStats, TargetVariant


def _build_vocabulary(brw_schema: BrwSchema) -> "Vocabulary[ValueEntry]":
    entries: Dict[str, ValueEntry] = {
        "job_stats": (TargetStats.JOB_STATS_OST, job_stats_ost),
        "stats": (TargetStats.STATS, stats),
        "brw_stats": vocabulary_entry(brw_schema),
        "num_exports": (TargetStats.NUM_EXPORTS, digits_line),
        "tot_dirty": (TargetStats.TOT_DIRTY, digits_line),
        "tot_granted": (TargetStats.TOT_GRANTED, digits_line),
        "tot_pending": (TargetStats.TOT_PENDING, digits_line),
    }
    return Vocabulary(entries)


OBDFILTER_STATS = {schema: _build_vocabulary(schema) for schema in BrwSchema}


def params() -> List[str]:
    keys = OBDFILTER_STATS[BrwSchema.COUNTS].keys()
    return [f"obdfilter.*OST*.{key}" for key in keys] + [
        f"obdfilter.*OST*.{QUERY_SUFFIX}"
    ]


def parse(inp: Input, brw_schema: BrwSchema = BrwSchema.COUNTS) -> List[Record]:
    name = target_name(inp, "obdfilter")
    vocabulary = OBDFILTER_STATS[brw_schema]
    return [
        choice(
            inp,
            [
                lambda i: exports(i, TargetVariant.OST, name),
                lambda i: target_stat(i, vocabulary, TargetVariant.OST, name),
            ],
        )
    ]
