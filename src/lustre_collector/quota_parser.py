# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
"""
Global quota limits held by the quota master::

    qmt.fs-QMT0000.dt-0x0.glb-usr=
    global_pool0_dt_usr
    - id:      0
      limits:  { hard:                    0, soft:                    0, granted:                    0, time:               604800 }

Older releases omit the pool header line.
"""
import logging
import re
from typing import List

from lustre_collector.base_parsers import (
    Input,
    Vocabulary,
    block,
    newline,
    newline_or_eof,
    optional,
    period,
    regex,
    string,
    target,
    word,
)
from lustre_collector.errors import StructuredDecodeError
from lustre_collector.job_stats import load_document
from lustre_collector.types import (
    Param,
    QuotaStat,
    QuotaStats,
    Record,
    TargetStat,
    TargetStats,
    TargetVariant,
)

logger = logging.getLogger("lustre-collector.quota")

_POOL = re.compile(r"(?:dt|md)-[^.\n]+")

QUOTA_KINDS = Vocabulary({"glb-usr": "usr", "glb-prj": "prj", "glb-grp": "grp"})


def params() -> List[str]:
    return [f"qmt.*.*.{key}" for key in QUOTA_KINDS.keys()]


def _pool_header(inp: Input) -> str:
    header = word(inp)
    newline_or_eof(inp)
    return header


def quota(inp: Input) -> Record:
    string(inp, "qmt.")
    name = target(inp)
    period(inp)
    pool = regex(inp, _POOL, "quota pool")
    period(inp)
    key, kind = QUOTA_KINDS.match(inp, "=")
    optional(inp, newline)
    optional(inp, _pool_header)

    start = inp.pos
    document = load_document(inp, start, block(inp))
    if document is None:
        document = []
    if not isinstance(document, list):
        line, column = inp.line_col(start)
        raise StructuredDecodeError("Quota limits must be a list", start, line, column)
    try:
        entries = [QuotaStat.from_dict(entry) for entry in document]
    except ValueError as e:
        line, column = inp.line_col(start)
        raise StructuredDecodeError(str(e), start, line, column, cause=e)

    logger.debug(f"Parsed {len(entries)} {kind} quota entries for {name} {pool}")
    return TargetStat(
        TargetStats.QUOTA_STATS,
        TargetVariant.MDT,
        Param(key),
        name,
        QuotaStats(pool, kind, entries),
    )


def parse(inp: Input) -> List[Record]:
    return [quota(inp)]
