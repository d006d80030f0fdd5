from lustre_collector import parse_lctl_output
from lustre_collector.parser import parse_mgs_fs_output
from lustre_collector.types import (
    ExportStats,
    HostStat,
    HostStats,
    Param,
    QuotaLimits,
    QuotaStat,
    QuotaStats,
    Stat,
    Target,
    TargetStat,
    TargetStats,
    TargetVariant,
)

from lustre_collector_test.testutil import fixture


def target_stat(
    stat: TargetStats, kind: TargetVariant, param: str, target: str, value: object
) -> TargetStat:
    return TargetStat(stat, kind, Param(param), Target(target), value)


def test_oss() -> None:
    records = parse_lctl_output(fixture("oss.txt"))
    assert len(records) == 20

    assert records[:4] == [
        HostStat(HostStats.MEMUSED, Param("memused"), 343719153),
        HostStat(HostStats.MEMUSED_MAX, Param("memused_max"), 343760069),
        HostStat(HostStats.LNET_MEMUSED, Param("lnet_memused"), 17898446),
        HostStat(HostStats.HEALTH_CHECK, Param("health_check"), "healthy"),
    ]

    ost = TargetVariant.OST
    assert records[5] == target_stat(
        TargetStats.STATS,
        ost,
        "stats",
        "fs-OST0000",
        [
            Stat("write_bytes", "bytes", 9, 98303, 4194304, 33554431),
            Stat("create", "reqs", 4),
            Stat("statfs", "reqs", 42113),
        ],
    )
    assert records[6:10] == [
        target_stat(TargetStats.NUM_EXPORTS, ost, "num_exports", "fs-OST0000", 2),
        target_stat(TargetStats.TOT_DIRTY, ost, "tot_dirty", "fs-OST0000", 0),
        target_stat(TargetStats.TOT_GRANTED, ost, "tot_granted", "fs-OST0000", 8666816),
        target_stat(TargetStats.TOT_PENDING, ost, "tot_pending", "fs-OST0000", 0),
    ]
    assert records[10] == target_stat(
        TargetStats.EXPORT_STATS,
        ost,
        "exports",
        "fs-OST0000",
        [ExportStats("0@lo", [Stat("create", "reqs", 2)])],
    )


def test_osd_values() -> None:
    records = parse_lctl_output(fixture("oss.txt"))
    osd = {r.stat: r.value for r in records[11:17]}
    assert osd == {
        TargetStats.FILES_FREE: 327382,
        TargetStats.FILES_TOTAL: 327680,
        TargetStats.FS_TYPE: "ldiskfs",
        TargetStats.BYTES_AVAIL: 4486468 * 1024,
        TargetStats.BYTES_FREE: 4764996 * 1024,
        TargetStats.BYTES_TOTAL: 4831716 * 1024,
    }
    for record in records[11:17]:
        assert isinstance(record, TargetStat)
        assert record.kind == TargetVariant.OST
        assert record.target == "fs-OST0000"
    assert records[13].param == "fstype"


def test_ost_service_and_ldlm() -> None:
    records = parse_lctl_output(fixture("oss.txt"))
    assert records[17] == target_stat(
        TargetStats.STATS,
        TargetVariant.OST,
        "ost_io",
        "OSS",
        [Stat("req_waittime", "usec", 57, 19, 142, 2597, 181839)],
    )
    assert records[18:] == [
        target_stat(
            TargetStats.LOCK_COUNT, TargetVariant.OST, "lock_count", "fs-OST0000", 42
        ),
        target_stat(
            TargetStats.LRU_SIZE, TargetVariant.OST, "lru_size", "fs-OST0000", 800
        ),
    ]


def test_mds() -> None:
    records = parse_lctl_output(fixture("mds.txt"))
    assert [(r.stat, getattr(r, "target")) for r in records] == [
        (TargetStats.STATS, "MGS"),
        (TargetStats.THREADS_MAX, "MGS"),
        (TargetStats.NUM_EXPORTS, "MGS"),
        (TargetStats.STATS, "fs-MDT0000"),
        (TargetStats.NUM_EXPORTS, "fs-MDT0000"),
        (TargetStats.JOB_STATS_MDT, "fs-MDT0000"),
        (TargetStats.EXPORT_STATS, "fs-MDT0000"),
        (TargetStats.FILES_FREE, "fs-MDT0000"),
        (TargetStats.BYTES_TOTAL, "fs-MDT0000"),
        (TargetStats.STATS, "MDS"),
        (TargetStats.LOCK_COUNT, "fs-MDT0000"),
        (TargetStats.QUOTA_STATS, "fs-QMT0000"),
        (TargetStats.QUOTA_STATS, "fs-QMT0000"),
    ]

    assert records[0] == target_stat(
        TargetStats.STATS,
        TargetVariant.MGT,
        "stats",
        "MGS",
        [Stat("req_waittime", "usec", 1, 26, 26, 26, 676)],
    )
    assert records[1].value == 32
    # an idle metadata target prints md_stats without rows
    assert records[3].param == "md_stats"
    assert records[3].value == []
    assert records[5].value is None
    assert records[8].value == 2546092 * 1024
    assert records[9].param == "mdt"
    for record in records[3:11]:
        assert isinstance(record, TargetStat)
        assert record.kind == TargetVariant.MDT


def test_quota() -> None:
    records = parse_lctl_output(fixture("mds.txt"))
    usr, grp = records[-2:]
    assert usr == target_stat(
        TargetStats.QUOTA_STATS,
        TargetVariant.MDT,
        "glb-usr",
        "fs-QMT0000",
        QuotaStats(
            "dt-0x0",
            "usr",
            [
                QuotaStat(0, QuotaLimits(0, 0, 0, 604800)),
                QuotaStat(1000, QuotaLimits(1048576, 524288, 4096, 0)),
            ],
        ),
    )
    assert grp.value == QuotaStats("md-0x0", "grp", [])


def test_quota_without_pool_header() -> None:
    text = (
        "qmt.fs-QMT0000.dt-0x0.glb-prj=\n"
        "- id:      7\n"
        "  limits:  { hard: 10, soft: 5, granted: 1, time: 0 }\n"
        "memused=1\n"
    )
    records = parse_lctl_output(text)
    assert records[0].value == QuotaStats(
        "dt-0x0", "prj", [QuotaStat(7, QuotaLimits(10, 5, 1, 0))]
    )
    assert records[1].stat == HostStats.MEMUSED


def test_exports_with_dotted_nid() -> None:
    text = (
        "obdfilter.fs-OST0001.exports.10.0.0.1@tcp.stats=\n"
        "snapshot_time             1566017453.009677077 secs.nsecs\n"
        "obdfilter.fs-OST0001.num_exports=1\n"
    )
    records = parse_lctl_output(text)
    assert records[0] == target_stat(
        TargetStats.EXPORT_STATS,
        TargetVariant.OST,
        "exports",
        "fs-OST0001",
        [ExportStats("10.0.0.1@tcp", [])],
    )
    assert records[1].value == 1


def test_ldlm_namespace_kind() -> None:
    records = parse_lctl_output(
        "ldlm.namespaces.mdt-fs-MDT0000_UUID.lock_count=7\n"
        "ldlm.namespaces.filter-fs-OST0003_UUID.resource_count=9\n"
    )
    assert records == [
        target_stat(
            TargetStats.LOCK_COUNT, TargetVariant.MDT, "lock_count", "fs-MDT0000", 7
        ),
        target_stat(
            TargetStats.RESOURCE_COUNT,
            TargetVariant.OST,
            "resource_count",
            "fs-OST0003",
            9,
        ),
    ]


def test_mgs_fs_names() -> None:
    records = parse_mgs_fs_output(
        "mgs.MGS.live.fs\n"
        "mgs.MGS.live.fs2\n"
        "mgs.MGS.live.params\n"
        "mgs.MGS.live.fs\n"
    )
    assert records == [
        target_stat(TargetStats.FS_NAMES, TargetVariant.MGT, "fsnames", "MGS", ["fs", "fs2"])
    ]
    assert parse_mgs_fs_output("") == []
