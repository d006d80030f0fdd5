# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
"""Management target parameters, ``mgs.<target>.*``."""
from typing import List

from lustre_collector.base_parsers import (
    Input,
    Vocabulary,
    choice,
    digits_line,
    string,
    target_name,
    target_stat,
)
from lustre_collector.stats_parser import stats
from lustre_collector.types import Record, Target, TargetStat, TargetStats, TargetVariant

MGS_SERVICE = Vocabulary(
    {
        "stats": (TargetStats.STATS, stats),
        "threads_max": (TargetStats.THREADS_MAX, digits_line),
        "threads_min": (TargetStats.THREADS_MIN, digits_line),
        "threads_started": (TargetStats.THREADS_STARTED, digits_line),
    }
)

MGS_TARGET = Vocabulary(
    {
        "num_exports": (TargetStats.NUM_EXPORTS, digits_line),
    }
)


def params() -> List[str]:
    return [f"mgs.*.mgs.{key}" for key in MGS_SERVICE.keys()] + [
        f"mgs.*.{key}" for key in MGS_TARGET.keys()
    ]


def _service_stat(inp: Input, name: Target) -> TargetStat:
    string(inp, "mgs.")
    return target_stat(inp, MGS_SERVICE, TargetVariant.MGT, name)


def parse(inp: Input) -> List[Record]:
    name = target_name(inp, "mgs")
    return [
        choice(
            inp,
            [
                lambda i: _service_stat(i, name),
                lambda i: target_stat(i, MGS_TARGET, TargetVariant.MGT, name),
            ],
        )
    ]
