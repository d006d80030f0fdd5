# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
"""
Everything a metadata server reports: the ``mdt`` targets, their ``osd``
devices and the ``mds.MDS`` service threads.
"""
from typing import List

from lustre_collector import mdt_parser, osd_parser
from lustre_collector.base_parsers import (
    Input,
    Vocabulary,
    choice,
    param,
    target_name,
)
from lustre_collector.stats_parser import stats
from lustre_collector.types import (
    Param,
    Record,
    TargetStat,
    TargetStats,
    TargetVariant,
)

MDS_SERVICES = Vocabulary(
    {
        name: name
        for name in [
            "mdt",
            "mdt_fld",
            "mdt_io",
            "mdt_out",
            "mdt_readpage",
            "mdt_seqm",
            "mdt_seqs",
            "mdt_setattr",
        ]
    }
)


def params() -> List[str]:
    return (
        mdt_parser.params()
        + osd_parser.params(TargetVariant.MDT)
        + [f"mds.MDS.{name}.stats" for name in MDS_SERVICES.keys()]
    )


def service_stats(inp: Input) -> List[Record]:
    name = target_name(inp, "mds")
    service, _ = MDS_SERVICES.match(inp, ".")
    param(inp, "stats")
    return [
        TargetStat(TargetStats.STATS, TargetVariant.MDT, Param(service), name, stats(inp))
    ]


def parse(inp: Input) -> List[Record]:
    return choice(
        inp,
        [
            mdt_parser.parse,
            lambda i: osd_parser.parse(i, TargetVariant.MDT),
            service_stats,
        ],
    )
