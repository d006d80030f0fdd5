import pytest

from lustre_collector import parse_lctl_output
from lustre_collector.base_parsers import Input, NoMatch
from lustre_collector.brw_stats_parser import BrwSchema, bucket, expand
from lustre_collector.errors import NumericOverflowError
from lustre_collector.types import (
    BrwStats,
    BrwStatsBucket,
    BrwStatsBucketVals,
    BrwStatsFull,
    BrwStatsFullBucket,
    Param,
    TargetStat,
    TargetStats,
    TargetVariant,
)

from lustre_collector_test.testutil import fixture


def test_bucket() -> None:
    raw = bucket(Input("32:                      0   0   0   |    1  11  11\n"))
    assert raw.key == "32"
    assert raw.value == 32
    assert tuple(raw.read) == ("0", "0", "0")
    assert tuple(raw.write) == ("1", "11", "11")

    raw = bucket(Input("1K:\t\t         0   0   0   |    8  88 100"))
    assert raw.key == "1K"
    assert raw.value == 1024
    assert tuple(raw.write) == ("8", "88", "100")


def test_bucket_requires_both_columns() -> None:
    with pytest.raises(NoMatch):
        bucket(Input("32:  0   0   0\n"))


def test_expand() -> None:
    assert expand(4, None) == 4
    assert expand(4, "") == 4
    assert expand(4, "K") == 4096
    assert expand(4, "k") == 4096
    assert expand(1, "M") == 2**20
    assert expand(2, "g") == 2 * 2**30


def test_brw_stats_counts() -> None:
    records = parse_lctl_output(fixture("brw_stats.txt"))
    assert len(records) == 1
    record = records[0]
    assert isinstance(record, TargetStat)
    assert record.stat == TargetStats.BRW_STATS
    assert record.kind == TargetVariant.OST
    assert record.target == "fs-OST0000"
    assert record.param == Param("brw_stats")
    assert record.value == [
        BrwStats(
            "pages",
            "rpcs",
            [
                BrwStatsBucket(1, 0, 0),
                BrwStatsBucket(32, 0, 1),
                BrwStatsBucket(1024, 0, 8),
            ],
        ),
        BrwStats(
            "disk_iosize",
            "ios",
            [
                BrwStatsBucket(4096, 0, 1),
                BrwStatsBucket(1048576, 3, 8),
            ],
        ),
    ]


def test_brw_stats_full() -> None:
    records = parse_lctl_output(fixture("brw_stats.txt"), BrwSchema.FULL)
    assert len(records) == 1
    record = records[0]
    assert record.stat == TargetStats.BRW_STATS_FULL
    assert record.stat.tag == "BrwStatsFull"
    sections = record.value
    assert [section.name for section in sections] == ["pages", "disk_iosize"]
    assert sections[0].buckets[2] == BrwStatsFullBucket(
        "1K",
        BrwStatsBucketVals("0", "0", "0"),
        BrwStatsBucketVals("8", "88", "100"),
    )
    assert sections[1] == BrwStatsFull(
        "disk_iosize",
        "ios",
        [
            BrwStatsFullBucket(
                "4K",
                BrwStatsBucketVals("0", "0", "0"),
                BrwStatsBucketVals("1", "11", "11"),
            ),
            BrwStatsFullBucket(
                "1M",
                BrwStatsBucketVals("3", "100", "100"),
                BrwStatsBucketVals("8", "88", "100"),
            ),
        ],
    )


def test_osd_brw_stats_followed_by_parameter() -> None:
    text = fixture("brw_stats.txt").replace(
        "obdfilter.fs-OST0000.brw_stats=", "osd-ldiskfs.fs-OST0000.brw_stats="
    )
    text += "osd-ldiskfs.fs-OST0000.filesfree=327382\n"
    records = parse_lctl_output(text)
    assert [record.stat for record in records] == [
        TargetStats.BRW_STATS,
        TargetStats.FILES_FREE,
    ]
    assert len(records[0].value) == 2


def test_bucket_count_overflow() -> None:
    with pytest.raises(NumericOverflowError) as excinfo:
        bucket(Input("4K:\t\t 99999999999999999999999 0 0 | 1 100 100\n"))
    assert excinfo.value.span == "99999999999999999999999"
    assert excinfo.value.column == 7


def test_bucket_key_overflow() -> None:
    assert bucket(Input("15G: 0 0 0 | 1 100 100\n")).value == 15 * 2**30

    with pytest.raises(NumericOverflowError) as excinfo:
        bucket(Input("18446744073709551615G: 0 0 0 | 1 100 100\n"))
    assert excinfo.value.span == "18446744073709551615G"
    assert excinfo.value.column == 1
