# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
"""
Decoder for ``lnetctl`` YAML documents.

Unlike the lctl grammars these documents are decoded whole. Every section
is optional: a node whose network is down answers ``lnetctl net show``
with an error descriptor instead of a ``net`` list, and older releases
omit ``peer`` and ``global`` entirely.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

from lustre_collector.errors import StructuredDecodeError
from lustre_collector.types import (
    HostStat,
    HostStats,
    LNetGlobalStats,
    LNetStat,
    LNetStats,
    Param,
    Record,
)

logger = logging.getLogger("lustre-collector.lnetctl")


@dataclass(frozen=True)
class NiStatistics:
    send_count: int
    recv_count: int
    drop_count: int


@dataclass(frozen=True)
class LocalNi:
    nid: str
    status: Optional[str] = None
    statistics: Optional[NiStatistics] = None
    tunables: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Net:
    net_type: str
    local_nis: List[LocalNi] = field(default_factory=list)


@dataclass(frozen=True)
class PeerNi:
    nid: str
    state: Optional[str] = None
    statistics: Optional[NiStatistics] = None


@dataclass(frozen=True)
class Peer:
    primary_nid: str
    multi_rail: Optional[bool] = None
    peer_nis: List[PeerNi] = field(default_factory=list)


@dataclass(frozen=True)
class LNetError:
    section: str
    errno: int
    descr: str


@dataclass(frozen=True)
class LNetExport:
    net: List[Net] = field(default_factory=list)
    peer: List[Peer] = field(default_factory=list)
    global_tunables: Dict[str, Any] = field(default_factory=dict)
    errors: List[LNetError] = field(default_factory=list)


def _mapping(value: Any, context: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{context} must be a mapping, got {type(value).__name__}")
    return value


def _sequence(value: Any, context: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{context} must be a list, got {type(value).__name__}")
    return value


def _counter(data: Dict[str, Any], key: str, context: str) -> int:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{context}: {key} must be an integer, got {value!r}")
    return value


def _statistics(value: Any, context: str) -> Optional[NiStatistics]:
    if value is None:
        return None
    data = _mapping(value, f"{context} statistics")
    return NiStatistics(
        send_count=_counter(data, "send_count", context),
        recv_count=_counter(data, "recv_count", context),
        drop_count=_counter(data, "drop_count", context),
    )


def _nid(data: Dict[str, Any], key: str, context: str) -> str:
    value = data.get(key)
    if value is None:
        raise ValueError(f"{context} has no {key}")
    return str(value)


def _local_ni(value: Any) -> LocalNi:
    data = _mapping(value, "local NI")
    nid = _nid(data, "nid", "local NI")
    return LocalNi(
        nid=nid,
        status=data.get("status"),
        statistics=_statistics(data.get("statistics"), nid),
        tunables=_mapping(data.get("tunables"), f"{nid} tunables"),
    )


def _net(value: Any) -> Net:
    data = _mapping(value, "net")
    net_type = _nid(data, "net type", "net")
    return Net(
        net_type=net_type,
        local_nis=[
            _local_ni(ni)
            for ni in _sequence(data.get("local NI(s)"), f"{net_type} local NI(s)")
        ],
    )


def _peer_ni(value: Any) -> PeerNi:
    data = _mapping(value, "peer NI")
    nid = _nid(data, "nid", "peer NI")
    return PeerNi(
        nid=nid,
        state=data.get("state"),
        statistics=_statistics(data.get("statistics"), nid),
    )


def _peer(value: Any) -> Peer:
    data = _mapping(value, "peer")
    primary_nid = _nid(data, "primary nid", "peer")
    multi_rail = data.get("Multi-Rail")
    return Peer(
        primary_nid=primary_nid,
        multi_rail=multi_rail if isinstance(multi_rail, bool) else None,
        peer_nis=[
            _peer_ni(ni) for ni in _sequence(data.get("peer ni"), f"{primary_nid} peer ni")
        ],
    )


def _errors(value: Any) -> List[LNetError]:
    errors = []
    for entry in _sequence(value, "error descriptor"):
        for section, detail in _mapping(entry, "error descriptor").items():
            detail = _mapping(detail, f"{section} error")
            errors.append(
                LNetError(
                    section=section,
                    errno=_counter(detail, "errno", f"{section} error"),
                    descr=str(detail.get("descr", "")),
                )
            )
    return errors


def decode(document: Any) -> LNetExport:
    """Build the typed model from a loaded YAML document."""
    data = _mapping(document, "lnetctl document")
    errors: List[LNetError] = []
    # Error descriptors are keyed by the command verb that failed.
    for verb in ("show", "add", "del", "import"):
        errors.extend(_errors(data.get(verb)))
    return LNetExport(
        net=[_net(net) for net in _sequence(data.get("net"), "net")],
        peer=[_peer(peer) for peer in _sequence(data.get("peer"), "peer")],
        global_tunables=_mapping(data.get("global"), "global"),
        errors=errors,
    )


def _load(text: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        line = mark.line + 1 if mark is not None else 1
        column = mark.column + 1 if mark is not None else 1
        raise StructuredDecodeError(
            f"Could not decode lnetctl output: {e}", 0, line, column, cause=e
        )


def load(text: str) -> LNetExport:
    document = _load(text)
    try:
        return decode(document)
    except ValueError as e:
        raise StructuredDecodeError(f"Invalid lnetctl output: {e}", cause=e)


def records(export: LNetExport) -> List[Record]:
    """Send, receive and drop counters for every local NI that reports them."""
    result: List[Record] = []
    for net in export.net:
        for ni in net.local_nis:
            if ni.statistics is None:
                continue
            result.extend(
                [
                    LNetStat(
                        LNetStats.SEND_COUNT,
                        ni.nid,
                        Param("send_count"),
                        ni.statistics.send_count,
                    ),
                    LNetStat(
                        LNetStats.RECV_COUNT,
                        ni.nid,
                        Param("recv_count"),
                        ni.statistics.recv_count,
                    ),
                    LNetStat(
                        LNetStats.DROP_COUNT,
                        ni.nid,
                        Param("drop_count"),
                        ni.statistics.drop_count,
                    ),
                ]
            )
    return result


def parse(text: str) -> List[Record]:
    export = load(text)
    for error in export.errors:
        logger.warning(f"lnetctl reported {error.section} error {error.errno}: {error.descr}")
    result = records(export)
    logger.debug(f"Parsed {len(result)} LNet records")
    return result


def parse_stats(text: str) -> List[Record]:
    """Global transport counters from ``lnetctl stats show``."""
    document = _load(text)
    try:
        statistics = _mapping(document, "lnetctl stats document").get("statistics")
        if statistics is None:
            return []
        value = LNetGlobalStats.from_dict(statistics)
    except ValueError as e:
        raise StructuredDecodeError(f"Invalid lnetctl stats output: {e}", cause=e)
    return [HostStat(HostStats.LNET_STATS, Param("lnet_stats"), value)]
