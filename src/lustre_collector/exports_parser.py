# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
"""
Per-client export statistics, ``<prefix>.<target>.exports.<nid>.stats``.

The NID may itself contain periods (``10.0.0.1@tcp``), so it runs up to
the ``.stats=`` that closes the parameter.
"""
import re

from lustre_collector.base_parsers import Input, param, param_period, period, regex
from lustre_collector.stats_parser import stats_or_empty
from lustre_collector.types import (
    ExportStats,
    Param,
    Target,
    TargetStat,
    TargetStats,
    TargetVariant,
)

_NID = re.compile(r"[^\n=]+?(?=\.stats=)")

QUERY_SUFFIX = "exports.*.stats"


def exports(inp: Input, kind: TargetVariant, target: Target) -> TargetStat:
    name = param_period(inp, "exports")
    nid = regex(inp, _NID, "export nid")
    period(inp)
    param(inp, "stats")
    rows = stats_or_empty(inp)
    return TargetStat(
        TargetStats.EXPORT_STATS, kind, Param(name), target, [ExportStats(nid, rows)]
    )
