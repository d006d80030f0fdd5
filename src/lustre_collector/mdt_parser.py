# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
"""Metadata target parameters, ``mdt.<target>.*``."""
from typing import List

from lustre_collector.base_parsers import (
    Input,
    Vocabulary,
    choice,
    digits_line,
    target_name,
    target_stat,
)
from lustre_collector.exports_parser import QUERY_SUFFIX, exports
from lustre_collector.job_stats import job_stats_mdt
from lustre_collector.stats_parser import stats_or_empty
from lustre_collector.types import Record, TargetStats, TargetVariant

MDT_STATS = Vocabulary(
    {
        "md_stats": (TargetStats.STATS, stats_or_empty),
        "num_exports": (TargetStats.NUM_EXPORTS, digits_line),
        "job_stats": (TargetStats.JOB_STATS_MDT, job_stats_mdt),
    }
)


def params() -> List[str]:
    return [f"mdt.*.{key}" for key in MDT_STATS.keys()] + [f"mdt.*MDT*.{QUERY_SUFFIX}"]


def parse(inp: Input) -> List[Record]:
    name = target_name(inp, "mdt")
    return [
        choice(
            inp,
            [
                lambda i: exports(i, TargetVariant.MDT, name),
                lambda i: target_stat(i, MDT_STATS, TargetVariant.MDT, name),
            ],
        )
    ]
