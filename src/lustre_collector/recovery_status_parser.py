# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
"""
Recovery state of object and metadata targets::

    obdfilter.fs-OST0000.recovery_status=
    status: COMPLETE
    recovery_start: 1620920843
    recovery_duration: 75
    completed_clients: 1/1
    replayed_requests: 0

Only the status and the completed, connected and evicted client counts are
kept. Any other line of a block is discarded, and a block ends at the next
line that starts a target of either kind.
"""
import logging
import re
from typing import List, Optional

from lustre_collector.base_parsers import (
    Input,
    Vocabulary,
    choice,
    digits,
    hspaces,
    many,
    newline,
    newline_or_eof,
    optional,
    param,
    period,
    regex,
    string,
    target,
    till_newline,
    token,
)
from lustre_collector.types import (
    Param,
    Record,
    RecoveryStatus,
    Target,
    TargetStat,
    TargetStats,
    TargetVariant,
)

logger = logging.getLogger("lustre-collector.recovery_status")

_KEY = re.compile(r"[\w-]+:")

TARGET_KINDS = Vocabulary(
    {
        "obdfilter": TargetVariant.OST,
        "mdt": TargetVariant.MDT,
    }
)

CLIENT_COUNTS = Vocabulary(
    {
        "completed_clients": TargetStats.RECOVERY_COMPLETED_CLIENTS,
        "connected_clients": TargetStats.RECOVERY_CONNECTED_CLIENTS,
        "evicted_clients": TargetStats.RECOVERY_EVICTED_CLIENTS,
    }
)

BLOCK_STARTS = tuple(f"{prefix}." for prefix in TARGET_KINDS.keys())


def params() -> List[str]:
    return ["obdfilter.*OST*.recovery_status", "mdt.*MDT*.recovery_status"]


def _status_line(inp: Input, kind: TargetVariant, name: Target) -> Optional[Record]:
    string(inp, "status")
    optional(inp, token, ":")
    hspaces(inp)
    literal = till_newline(inp)
    newline_or_eof(inp)
    return TargetStat(
        TargetStats.RECOVERY_STATUS,
        kind,
        Param("recovery_status"),
        name,
        RecoveryStatus.from_literal(literal),
    )


def _clients_line(inp: Input, kind: TargetVariant, name: Target) -> Optional[Record]:
    key, stat = CLIENT_COUNTS.match(inp)
    optional(inp, token, ":")
    hspaces(inp)
    clients = digits(inp)
    if optional(inp, token, "/") is not None:
        digits(inp)
    hspaces(inp)
    newline_or_eof(inp)
    return TargetStat(stat, kind, Param(key), name, clients)


def _other_line(inp: Input) -> Optional[Record]:
    regex(inp, _KEY, "key")
    till_newline(inp)
    newline_or_eof(inp)
    return None


def _resync(inp: Input) -> None:
    """Drop lines up to the next block header or the end of input."""
    while not inp.at_eof() and not inp.text.startswith(BLOCK_STARTS, inp.pos):
        end = inp.text.find("\n", inp.pos)
        inp.pos = len(inp.text) if end == -1 else end + 1


def target_recovery_status(inp: Input) -> List[Record]:
    _, kind = TARGET_KINDS.match(inp, ".")
    name = target(inp)
    period(inp)
    param(inp, "recovery_status")
    optional(inp, newline)

    lines = many(
        inp,
        choice,
        [
            lambda i: _status_line(i, kind, name),
            lambda i: _clients_line(i, kind, name),
            _other_line,
        ],
    )
    _resync(inp)
    records = [record for record in lines if record is not None]
    logger.debug(f"Parsed {len(records)} recovery records for {name}")
    return records
