# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
"""
Record model for parsed Lustre statistics.

A parse produces a flat list of records. Every record is one of four
frozen dataclasses (HostStat, TargetStat, LNetStat, NodeStat). The
concrete statistic is named by an enum member carrying its serialized tag
and the shape of its value, so encoders and decoders dispatch on the shape
table rather than on the record class.
"""

import re
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, List, NewType, Optional, Union

Param = NewType("Param", str)
Target = NewType("Target", str)

U64_MAX = 2**64 - 1


class TargetVariant(Enum):
    OST = "OST"
    MDT = "MDT"
    MGT = "MGT"


class RecoveryStatus(Enum):
    COMPLETE = "Complete"
    INACTIVE = "Inactive"
    WAITING = "Waiting"
    WAITING_FOR_CLIENTS = "WaitingForClients"
    RECOVERING = "Recovering"
    UNKNOWN = "Unknown"

    @classmethod
    def from_literal(cls, literal: str) -> "RecoveryStatus":
        """Map the text after ``status:`` to a status, never failing."""
        return RECOVERY_LITERALS.get(literal.strip(), cls.UNKNOWN)


RECOVERY_LITERALS = {
    "COMPLETE": RecoveryStatus.COMPLETE,
    "INACTIVE": RecoveryStatus.INACTIVE,
    "WAITING": RecoveryStatus.WAITING,
    "WAITING_FOR_CLIENTS": RecoveryStatus.WAITING_FOR_CLIENTS,
    "RECOVERING": RecoveryStatus.RECOVERING,
}


class ValueShape(Enum):
    """The type carried in a record's ``value`` field."""

    U64 = "u64"
    STRING = "string"
    STATS = "stats"
    BRW_STATS = "brw_stats"
    BRW_STATS_FULL = "brw_stats_full"
    JOB_STATS_OST = "job_stats_ost"
    JOB_STATS_MDT = "job_stats_mdt"
    FS_NAMES = "fs_names"
    EXPORT_STATS = "export_stats"
    QUOTA_STATS = "quota_stats"
    RECOVERY_STATUS = "recovery_status"
    LNET_STATS = "lnet_stats"


def _int(data: Dict[str, Any], key: str, context: str) -> int:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{context}: field {key!r} must be an integer, got {value!r}")
    return value


def _opt_int(data: Dict[str, Any], key: str, context: str) -> Optional[int]:
    if data.get(key) is None:
        return None
    return _int(data, key, context)


def _str(data: Dict[str, Any], key: str, context: str) -> str:
    value = data.get(key)
    if value is None or isinstance(value, (dict, list)):
        raise ValueError(f"{context}: field {key!r} must be a scalar, got {value!r}")
    return str(value)


def _mapping(value: Any, context: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"{context}: expected a mapping, got {value!r}")
    return value


def _list(value: Any, context: str) -> List[Any]:
    if not isinstance(value, list):
        raise ValueError(f"{context}: expected a list, got {value!r}")
    return value


# ==============================================================================
# STATISTICS TABLES AND HISTOGRAMS
# ==============================================================================


@dataclass(frozen=True)
class Stat:
    """One row of a ``name N samples [unit] min max sum sumsq`` table."""

    name: str
    units: str
    samples: int
    min: Optional[int] = None
    max: Optional[int] = None
    sum: Optional[int] = None
    sumsquare: Optional[int] = None

    def __post_init__(self) -> None:
        moments = (self.min, self.max, self.sum)
        if any(m is None for m in moments) and any(m is not None for m in moments):
            raise ValueError(f"stat {self.name}: min, max and sum must appear together")
        if self.min is None and self.sumsquare is not None:
            raise ValueError(f"stat {self.name}: sumsquare without min/max/sum")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Stat":
        data = _mapping(data, "stat")
        return cls(
            name=_str(data, "name", "stat"),
            units=_str(data, "units", "stat"),
            samples=_int(data, "samples", "stat"),
            min=_opt_int(data, "min", "stat"),
            max=_opt_int(data, "max", "stat"),
            sum=_opt_int(data, "sum", "stat"),
            sumsquare=_opt_int(data, "sumsquare", "stat"),
        )


@dataclass(frozen=True)
class BrwStatsBucket:
    name: int
    read: int
    write: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BrwStatsBucket":
        data = _mapping(data, "brw_stats bucket")
        return cls(
            name=_int(data, "name", "brw_stats bucket"),
            read=_int(data, "read", "brw_stats bucket"),
            write=_int(data, "write", "brw_stats bucket"),
        )


@dataclass(frozen=True)
class BrwStats:
    name: str
    unit: str
    buckets: List[BrwStatsBucket] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BrwStats":
        data = _mapping(data, "brw_stats")
        return cls(
            name=_str(data, "name", "brw_stats"),
            unit=_str(data, "unit", "brw_stats"),
            buckets=[
                BrwStatsBucket.from_dict(b)
                for b in _list(data.get("buckets"), "brw_stats buckets")
            ],
        )


@dataclass(frozen=True)
class BrwStatsBucketVals:
    count: str
    pct: str
    cum_pct: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BrwStatsBucketVals":
        data = _mapping(data, "brw_stats values")
        return cls(
            count=_str(data, "count", "brw_stats values"),
            pct=_str(data, "pct", "brw_stats values"),
            cum_pct=_str(data, "cum_pct", "brw_stats values"),
        )


@dataclass(frozen=True)
class BrwStatsFullBucket:
    name: str
    read: BrwStatsBucketVals
    write: BrwStatsBucketVals

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BrwStatsFullBucket":
        data = _mapping(data, "brw_stats bucket")
        return cls(
            name=_str(data, "name", "brw_stats bucket"),
            read=BrwStatsBucketVals.from_dict(data.get("read")),
            write=BrwStatsBucketVals.from_dict(data.get("write")),
        )


@dataclass(frozen=True)
class BrwStatsFull:
    """A histogram section that keeps percentages and the printed key."""

    name: str
    unit: str
    buckets: List[BrwStatsFullBucket] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BrwStatsFull":
        data = _mapping(data, "brw_stats")
        return cls(
            name=_str(data, "name", "brw_stats"),
            unit=_str(data, "unit", "brw_stats"),
            buckets=[
                BrwStatsFullBucket.from_dict(b)
                for b in _list(data.get("buckets"), "brw_stats buckets")
            ],
        )


# ==============================================================================
# JOB ACCOUNTING
# ==============================================================================


@dataclass(frozen=True)
class BytesStat:
    samples: int
    unit: str
    min: int
    max: int
    sum: int

    @classmethod
    def from_dict(cls, data: Any, context: str = "bytes stat") -> "BytesStat":
        data = _mapping(data, context)
        return cls(
            samples=_int(data, "samples", context),
            unit=_str(data, "unit", context),
            min=_int(data, "min", context),
            max=_int(data, "max", context),
            sum=_int(data, "sum", context),
        )


@dataclass(frozen=True)
class ReqsStat:
    samples: int
    unit: str

    @classmethod
    def from_dict(cls, data: Any, context: str = "reqs stat") -> "ReqsStat":
        data = _mapping(data, context)
        return cls(samples=_int(data, "samples", context), unit=_str(data, "unit", context))


_SNAPSHOT = re.compile(r"([0-9]+)(?:\.[0-9]+)?(?:\s+\S+)?$")


def _snapshot_seconds(data: Dict[str, Any], context: str) -> int:
    # Newer releases print secs.nsecs, which YAML reads as a float, or
    # "secs.nsecs secs.nsecs", which it reads as a string.
    value = data.get("snapshot_time")
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        match = _SNAPSHOT.match(value.strip())
        if match:
            return int(match.group(1))
    return _int(data, "snapshot_time", context)


_OST_REQS = (
    "getattr",
    "setattr",
    "punch",
    "sync",
    "destroy",
    "create",
    "statfs",
    "get_info",
    "set_info",
    "quotactl",
)


@dataclass(frozen=True)
class JobStatOst:
    job_id: str
    snapshot_time: int
    read_bytes: BytesStat
    write_bytes: BytesStat
    getattr: ReqsStat
    setattr: ReqsStat
    punch: ReqsStat
    sync: ReqsStat
    destroy: ReqsStat
    create: ReqsStat
    statfs: ReqsStat
    get_info: ReqsStat
    set_info: ReqsStat
    quotactl: ReqsStat

    @classmethod
    def from_dict(cls, data: Any) -> "JobStatOst":
        data = _mapping(data, "job")
        context = f"job {data.get('job_id')!r}"
        reqs = {
            name: ReqsStat.from_dict(data.get(name), f"{context} {name}")
            for name in _OST_REQS
        }
        return cls(
            job_id=_str(data, "job_id", context),
            snapshot_time=_snapshot_seconds(data, context),
            read_bytes=BytesStat.from_dict(data.get("read_bytes"), f"{context} read_bytes"),
            write_bytes=BytesStat.from_dict(data.get("write_bytes"), f"{context} write_bytes"),
            **reqs,
        )


_MDT_REQS = (
    "open",
    "close",
    "mknod",
    "link",
    "unlink",
    "mkdir",
    "rmdir",
    "rename",
    "getattr",
    "setattr",
    "getxattr",
    "setxattr",
    "statfs",
    "sync",
    "samedir_rename",
    "crossdir_rename",
)


@dataclass(frozen=True)
class JobStatMdt:
    job_id: str
    snapshot_time: int
    open: ReqsStat
    close: ReqsStat
    mknod: ReqsStat
    link: ReqsStat
    unlink: ReqsStat
    mkdir: ReqsStat
    rmdir: ReqsStat
    rename: ReqsStat
    getattr: ReqsStat
    setattr: ReqsStat
    getxattr: ReqsStat
    setxattr: ReqsStat
    statfs: ReqsStat
    sync: ReqsStat
    samedir_rename: ReqsStat
    crossdir_rename: ReqsStat
    # Data-on-MDT releases also account bulk I/O on the metadata target.
    read_bytes: Optional[BytesStat] = None
    write_bytes: Optional[BytesStat] = None
    punch: Optional[ReqsStat] = None

    @classmethod
    def from_dict(cls, data: Any) -> "JobStatMdt":
        data = _mapping(data, "job")
        context = f"job {data.get('job_id')!r}"
        reqs = {
            name: ReqsStat.from_dict(data.get(name), f"{context} {name}")
            for name in _MDT_REQS
        }
        optional_bytes = {
            name: BytesStat.from_dict(data[name], f"{context} {name}")
            for name in ("read_bytes", "write_bytes")
            if data.get(name) is not None
        }
        punch = None
        if data.get("punch") is not None:
            punch = ReqsStat.from_dict(data["punch"], f"{context} punch")
        return cls(
            job_id=_str(data, "job_id", context),
            snapshot_time=_snapshot_seconds(data, context),
            punch=punch,
            **reqs,
            **optional_bytes,
        )


# ==============================================================================
# EXPORTS, QUOTA, LNET
# ==============================================================================


@dataclass(frozen=True)
class ExportStats:
    nid: str
    stats: List[Stat] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExportStats":
        data = _mapping(data, "export")
        return cls(
            nid=_str(data, "nid", "export"),
            stats=[Stat.from_dict(s) for s in _list(data.get("stats"), "export stats")],
        )


@dataclass(frozen=True)
class QuotaLimits:
    hard: int
    soft: int
    granted: int
    time: int

    @classmethod
    def from_dict(cls, data: Any, context: str = "quota limits") -> "QuotaLimits":
        data = _mapping(data, context)
        return cls(
            hard=_int(data, "hard", context),
            soft=_int(data, "soft", context),
            granted=_int(data, "granted", context),
            time=_int(data, "time", context),
        )


@dataclass(frozen=True)
class QuotaStat:
    id: int
    limits: QuotaLimits

    @classmethod
    def from_dict(cls, data: Any) -> "QuotaStat":
        data = _mapping(data, "quota entry")
        ident = _int(data, "id", "quota entry")
        return cls(id=ident, limits=QuotaLimits.from_dict(data.get("limits"), f"quota id {ident}"))


@dataclass(frozen=True)
class QuotaStats:
    """Global quota limits for one pool and one id kind (usr, grp, prj)."""

    pool: str
    kind: str
    stats: List[QuotaStat] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuotaStats":
        data = _mapping(data, "quota")
        return cls(
            pool=_str(data, "pool", "quota"),
            kind=_str(data, "kind", "quota"),
            stats=[QuotaStat.from_dict(s) for s in _list(data.get("stats"), "quota stats")],
        )


_LNET_COUNTERS = (
    "msgs_alloc",
    "msgs_max",
    "errors",
    "send_count",
    "recv_count",
    "route_count",
    "drop_count",
    "send_length",
    "recv_length",
    "route_length",
    "drop_length",
)


@dataclass(frozen=True)
class LNetGlobalStats:
    msgs_alloc: int
    msgs_max: int
    errors: int
    send_count: int
    recv_count: int
    route_count: int
    drop_count: int
    send_length: int
    recv_length: int
    route_length: int
    drop_length: int

    @classmethod
    def from_dict(cls, data: Any) -> "LNetGlobalStats":
        data = _mapping(data, "lnet statistics")
        return cls(**{name: _int(data, name, "lnet statistics") for name in _LNET_COUNTERS})


# ==============================================================================
# VALUE CODECS
# ==============================================================================


def _decode_u64(data: Any) -> int:
    return _int({"value": data}, "value", "record")


def _decode_str(data: Any) -> str:
    return _str({"value": data}, "value", "record")


def _decode_jobs(decoder: Callable[[Any], Any]) -> Callable[[Any], Optional[List[Any]]]:
    def decode(data: Any) -> Optional[List[Any]]:
        if data is None:
            return None
        return [decoder(job) for job in _list(data, "job_stats")]

    return decode


def _decode_list(decoder: Callable[[Any], Any]) -> Callable[[Any], List[Any]]:
    def decode(data: Any) -> List[Any]:
        return [decoder(item) for item in _list(data, "record value")]

    return decode


def _encode_dataclasses(value: Any) -> Any:
    if value is None:
        return None
    return [asdict(item) for item in value]


VALUE_DECODERS: Dict[ValueShape, Callable[[Any], Any]] = {
    ValueShape.U64: _decode_u64,
    ValueShape.STRING: _decode_str,
    ValueShape.STATS: _decode_list(Stat.from_dict),
    ValueShape.BRW_STATS: _decode_list(BrwStats.from_dict),
    ValueShape.BRW_STATS_FULL: _decode_list(BrwStatsFull.from_dict),
    ValueShape.JOB_STATS_OST: _decode_jobs(JobStatOst.from_dict),
    ValueShape.JOB_STATS_MDT: _decode_jobs(JobStatMdt.from_dict),
    ValueShape.FS_NAMES: _decode_list(_decode_str),
    ValueShape.EXPORT_STATS: _decode_list(ExportStats.from_dict),
    ValueShape.QUOTA_STATS: QuotaStats.from_dict,
    ValueShape.RECOVERY_STATUS: lambda data: RecoveryStatus(data),
    ValueShape.LNET_STATS: LNetGlobalStats.from_dict,
}

VALUE_ENCODERS: Dict[ValueShape, Callable[[Any], Any]] = {
    ValueShape.U64: lambda value: value,
    ValueShape.STRING: lambda value: value,
    ValueShape.STATS: _encode_dataclasses,
    ValueShape.BRW_STATS: _encode_dataclasses,
    ValueShape.BRW_STATS_FULL: _encode_dataclasses,
    ValueShape.JOB_STATS_OST: _encode_dataclasses,
    ValueShape.JOB_STATS_MDT: _encode_dataclasses,
    ValueShape.FS_NAMES: list,
    ValueShape.EXPORT_STATS: _encode_dataclasses,
    ValueShape.QUOTA_STATS: asdict,
    ValueShape.RECOVERY_STATUS: lambda value: value.value,
    ValueShape.LNET_STATS: asdict,
}


# ==============================================================================
# STATISTIC TAGS
# ==============================================================================


class _TaggedStat(Enum):
    """Enum members are ``(tag, shape)`` pairs."""

    def __init__(self, tag: str, shape: ValueShape) -> None:
        self.tag = tag
        self.shape = shape

    @classmethod
    def from_tag(cls, tag: str) -> Any:
        for member in cls:
            if member.tag == tag:
                return member
        raise ValueError(f"unknown {cls.__name__} tag {tag!r}")


class HostStats(_TaggedStat):
    MEMUSED = ("Memused", ValueShape.U64)
    MEMUSED_MAX = ("MemusedMax", ValueShape.U64)
    LNET_MEMUSED = ("LNetMemUsed", ValueShape.U64)
    HEALTH_CHECK = ("HealthCheck", ValueShape.STRING)
    LNET_STATS = ("LNetStats", ValueShape.LNET_STATS)


class TargetStats(_TaggedStat):
    STATS = ("Stats", ValueShape.STATS)
    BRW_STATS = ("BrwStats", ValueShape.BRW_STATS)
    BRW_STATS_FULL = ("BrwStatsFull", ValueShape.BRW_STATS_FULL)
    FILES_FREE = ("FilesFree", ValueShape.U64)
    FILES_TOTAL = ("FilesTotal", ValueShape.U64)
    FS_TYPE = ("FsType", ValueShape.STRING)
    BYTES_AVAIL = ("BytesAvail", ValueShape.U64)
    BYTES_FREE = ("BytesFree", ValueShape.U64)
    BYTES_TOTAL = ("BytesTotal", ValueShape.U64)
    NUM_EXPORTS = ("NumExports", ValueShape.U64)
    TOT_DIRTY = ("TotDirty", ValueShape.U64)
    TOT_GRANTED = ("TotGranted", ValueShape.U64)
    TOT_PENDING = ("TotPending", ValueShape.U64)
    CONTENDED_LOCKS = ("ContendedLocks", ValueShape.U64)
    CONTENTION_SECONDS = ("ContentionSeconds", ValueShape.U64)
    CTIME_AGE_LIMIT = ("CtimeAgeLimit", ValueShape.U64)
    EARLY_LOCK_CANCEL = ("EarlyLockCancel", ValueShape.U64)
    LOCK_COUNT = ("LockCount", ValueShape.U64)
    LOCK_TIMEOUTS = ("LockTimeouts", ValueShape.U64)
    LOCK_UNUSED_COUNT = ("LockUnusedCount", ValueShape.U64)
    LRU_MAX_AGE = ("LruMaxAge", ValueShape.U64)
    LRU_SIZE = ("LruSize", ValueShape.U64)
    MAX_NOLOCK_BYTES = ("MaxNolockBytes", ValueShape.U64)
    MAX_PARALLEL_AST = ("MaxParallelAst", ValueShape.U64)
    RESOURCE_COUNT = ("ResourceCount", ValueShape.U64)
    THREADS_MIN = ("ThreadsMin", ValueShape.U64)
    THREADS_MAX = ("ThreadsMax", ValueShape.U64)
    THREADS_STARTED = ("ThreadsStarted", ValueShape.U64)
    JOB_STATS_OST = ("JobStatsOst", ValueShape.JOB_STATS_OST)
    JOB_STATS_MDT = ("JobStatsMdt", ValueShape.JOB_STATS_MDT)
    FS_NAMES = ("FsNames", ValueShape.FS_NAMES)
    EXPORT_STATS = ("ExportStats", ValueShape.EXPORT_STATS)
    QUOTA_STATS = ("QuotaStats", ValueShape.QUOTA_STATS)
    RECOVERY_STATUS = ("RecoveryStatus", ValueShape.RECOVERY_STATUS)
    RECOVERY_COMPLETED_CLIENTS = ("RecoveryCompletedClients", ValueShape.U64)
    RECOVERY_CONNECTED_CLIENTS = ("RecoveryConnectedClients", ValueShape.U64)
    RECOVERY_EVICTED_CLIENTS = ("RecoveryEvictedClients", ValueShape.U64)


class LNetStats(_TaggedStat):
    SEND_COUNT = ("SendCount", ValueShape.U64)
    RECV_COUNT = ("RecvCount", ValueShape.U64)
    DROP_COUNT = ("DropCount", ValueShape.U64)


class NodeStats(_TaggedStat):
    MEM_TOTAL = ("MemTotal", ValueShape.U64)
    MEM_FREE = ("MemFree", ValueShape.U64)
    SWAP_TOTAL = ("SwapTotal", ValueShape.U64)
    SWAP_FREE = ("SwapFree", ValueShape.U64)
    CPU_USER = ("CpuUser", ValueShape.U64)
    CPU_SYSTEM = ("CpuSystem", ValueShape.U64)
    CPU_IOWAIT = ("CpuIowait", ValueShape.U64)
    CPU_TOTAL = ("CpuTotal", ValueShape.U64)


# ==============================================================================
# RECORDS
# ==============================================================================


@dataclass(frozen=True)
class HostStat:
    stat: HostStats
    param: Param
    value: Any

    TAG: ClassVar[str] = "Host"


@dataclass(frozen=True)
class TargetStat:
    stat: TargetStats
    kind: TargetVariant
    param: Param
    target: Target
    value: Any

    TAG: ClassVar[str] = "Target"


@dataclass(frozen=True)
class LNetStat:
    stat: LNetStats
    nid: str
    param: Param
    value: Any

    TAG: ClassVar[str] = "LNet"


@dataclass(frozen=True)
class NodeStat:
    stat: NodeStats
    param: Param
    value: Any

    TAG: ClassVar[str] = "Node"


Record = Union[HostStat, TargetStat, LNetStat, NodeStat]


def record_to_dict(record: Record) -> Dict[str, Any]:
    """Encode a record as ``{record tag: {stat tag: body}}``."""
    body: Dict[str, Any] = {}
    if isinstance(record, TargetStat):
        body["kind"] = record.kind.value
    if isinstance(record, LNetStat):
        body["nid"] = record.nid
    body["param"] = str(record.param)
    if isinstance(record, TargetStat):
        body["target"] = str(record.target)
    body["value"] = VALUE_ENCODERS[record.stat.shape](record.value)
    return {record.TAG: {record.stat.tag: body}}


def record_from_dict(data: Dict[str, Any]) -> Record:
    data = _mapping(data, "record")
    if len(data) != 1:
        raise ValueError(f"record must have exactly one tag, got {sorted(data)}")
    ((record_tag, inner),) = data.items()
    inner = _mapping(inner, f"{record_tag} record")
    if len(inner) != 1:
        raise ValueError(f"{record_tag} record must have exactly one stat tag")
    ((stat_tag, body),) = inner.items()
    body = _mapping(body, f"{record_tag} {stat_tag}")
    param = Param(_str(body, "param", stat_tag))

    if record_tag == HostStat.TAG:
        host = HostStats.from_tag(stat_tag)
        return HostStat(host, param, VALUE_DECODERS[host.shape](body.get("value")))
    if record_tag == TargetStat.TAG:
        target = TargetStats.from_tag(stat_tag)
        return TargetStat(
            target,
            TargetVariant(body.get("kind")),
            param,
            Target(_str(body, "target", stat_tag)),
            VALUE_DECODERS[target.shape](body.get("value")),
        )
    if record_tag == LNetStat.TAG:
        lnet = LNetStats.from_tag(stat_tag)
        return LNetStat(
            lnet,
            _str(body, "nid", stat_tag),
            param,
            VALUE_DECODERS[lnet.shape](body.get("value")),
        )
    if record_tag == NodeStat.TAG:
        node = NodeStats.from_tag(stat_tag)
        return NodeStat(node, param, VALUE_DECODERS[node.shape](body.get("value")))
    raise ValueError(f"unknown record tag {record_tag!r}")
