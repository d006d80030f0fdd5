# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
"""
Lock manager namespace counters::

    ldlm.namespaces.filter-fs-OST0000_UUID.lock_count=42
    ldlm.namespaces.mdt-fs-MDT0000_UUID.lock_count=1009

The ``filter-`` and ``mdt-`` prefixes select the target kind and the
``_UUID`` suffix is stripped from the target name.
"""
import re
from typing import List

from lustre_collector.base_parsers import (
    Input,
    Vocabulary,
    digits_line,
    period,
    regex,
    string,
    target_stat,
)
from lustre_collector.types import Record, Target, TargetStats, TargetVariant

_UUID_TARGET = re.compile(r"[\w-]+?(?=_UUID\.)")

NAMESPACE_KINDS = Vocabulary(
    {
        "mdt-": TargetVariant.MDT,
        "filter-": TargetVariant.OST,
    }
)

LDLM_STATS = Vocabulary(
    {
        "contended_locks": (TargetStats.CONTENDED_LOCKS, digits_line),
        "contention_seconds": (TargetStats.CONTENTION_SECONDS, digits_line),
        "ctime_age_limit": (TargetStats.CTIME_AGE_LIMIT, digits_line),
        "early_lock_cancel": (TargetStats.EARLY_LOCK_CANCEL, digits_line),
        "lock_count": (TargetStats.LOCK_COUNT, digits_line),
        "lock_timeouts": (TargetStats.LOCK_TIMEOUTS, digits_line),
        "lock_unused_count": (TargetStats.LOCK_UNUSED_COUNT, digits_line),
        "lru_max_age": (TargetStats.LRU_MAX_AGE, digits_line),
        "lru_size": (TargetStats.LRU_SIZE, digits_line),
        "max_nolock_bytes": (TargetStats.MAX_NOLOCK_BYTES, digits_line),
        "max_parallel_ast": (TargetStats.MAX_PARALLEL_AST, digits_line),
        "resource_count": (TargetStats.RESOURCE_COUNT, digits_line),
    }
)


def params() -> List[str]:
    return [
        f"ldlm.namespaces.{{{','.join(NAMESPACE_KINDS.keys())}}}*.{key}"
        for key in LDLM_STATS.keys()
    ]


def parse(inp: Input) -> List[Record]:
    string(inp, "ldlm.namespaces.")
    _, kind = NAMESPACE_KINDS.match(inp)
    name = Target(regex(inp, _UUID_TARGET, "namespace uuid"))
    string(inp, "_UUID")
    period(inp)
    return [target_stat(inp, LDLM_STATS, kind, name)]
