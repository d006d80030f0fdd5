# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
"""Object storage service thread statistics, ``ost.OSS.<service>.stats``."""
from typing import List

from lustre_collector.base_parsers import Input, Vocabulary, param, target_name
from lustre_collector.stats_parser import stats
from lustre_collector.types import (
    Param,
    Record,
    TargetStat,
    TargetStats,
    TargetVariant,
)

OST_SERVICES = Vocabulary(
    {name: name for name in ["ost", "ost_create", "ost_io", "ost_out", "ost_seq"]}
)


def params() -> List[str]:
    return [f"ost.OSS.{name}.stats" for name in OST_SERVICES.keys()]


def parse(inp: Input) -> List[Record]:
    name = target_name(inp, "ost")
    service, _ = OST_SERVICES.match(inp, ".")
    param(inp, "stats")
    return [
        TargetStat(TargetStats.STATS, TargetVariant.OST, Param(service), name, stats(inp))
    ]
