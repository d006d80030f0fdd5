# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
"""
Filesystems registered with a management target.

``lctl list_param mgs.*.live.*`` prints one line per filesystem. The lines
are folded into a single ``FsNames`` record per management target.
"""
import logging
from typing import Dict, List, Tuple

from lustre_collector.base_parsers import (
    Input,
    newline_or_eof,
    string,
    target_name,
    word,
)
from lustre_collector.types import (
    Param,
    Record,
    Target,
    TargetStat,
    TargetStats,
    TargetVariant,
)

logger = logging.getLogger("lustre-collector.mgs_fs")

# Not a filesystem: the directory holding per-target tunables.
RESERVED_NAMES = ["params"]


def params() -> List[str]:
    return ["mgs.*.live.*"]


def fs_line(inp: Input) -> Tuple[Target, str]:
    name = target_name(inp, "mgs")
    string(inp, "live.")
    fs_name = word(inp)
    newline_or_eof(inp)
    return name, fs_name


def group_fs_names(lines: List[Tuple[Target, str]]) -> List[Record]:
    """One record per target, targets and names in order of first appearance."""
    grouped: Dict[Target, List[str]] = {}
    for name, fs_name in lines:
        if fs_name in RESERVED_NAMES:
            continue
        names = grouped.setdefault(name, [])
        if fs_name not in names:
            names.append(fs_name)

    return [
        TargetStat(
            TargetStats.FS_NAMES, TargetVariant.MGT, Param("fsnames"), name, names
        )
        for name, names in grouped.items()
    ]
