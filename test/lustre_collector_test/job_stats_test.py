import pytest

from lustre_collector import StructuredDecodeError, parse_lctl_output
from lustre_collector.types import (
    BytesStat,
    JobStatMdt,
    JobStatOst,
    ReqsStat,
    TargetStats,
)

from lustre_collector_test.testutil import fixture

MDT_REQS = [
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
]


def test_no_jobs() -> None:
    records = parse_lctl_output("obdfilter.fs-OST0000.job_stats=job_stats:\n")
    assert len(records) == 1
    assert records[0].stat == TargetStats.JOB_STATS_OST
    assert records[0].value is None


def test_no_jobs_before_next_parameter() -> None:
    for text in [
        "obdfilter.fs-OST0000.job_stats=\njob_stats:\nobdfilter.fs-OST0000.num_exports=1\n",
        "obdfilter.fs-OST0000.job_stats=\nobdfilter.fs-OST0000.num_exports=1\n",
    ]:
        records = parse_lctl_output(text)
        assert [r.stat for r in records] == [
            TargetStats.JOB_STATS_OST,
            TargetStats.NUM_EXPORTS,
        ]
        assert records[0].value is None
        assert records[1].value == 1


def test_empty_job_list() -> None:
    records = parse_lctl_output("obdfilter.fs-OST0000.job_stats=job_stats: []\n")
    assert records[0].value == []


def test_ost_jobs() -> None:
    records = parse_lctl_output(fixture("oss.txt"))
    jobs = [r for r in records if r.stat == TargetStats.JOB_STATS_OST]
    assert len(jobs) == 1
    assert jobs[0].target == "fs-OST0000"

    (job,) = jobs[0].value
    assert isinstance(job, JobStatOst)
    assert job.job_id == "cp.0"
    assert job.snapshot_time == 1537070542
    assert job.write_bytes == BytesStat(1, "bytes", 4194304, 4194304, 4194304)
    assert job.quotactl == ReqsStat(0, "reqs")


def test_labelled_snapshot_time() -> None:
    text = fixture("oss.txt").replace(
        "  snapshot_time:   1537070542\n",
        "  snapshot_time:   1664467062.961389616 secs.nsecs\n",
    )
    records = parse_lctl_output(text)
    jobs = [r for r in records if r.stat == TargetStats.JOB_STATS_OST]
    (job,) = jobs[0].value
    assert job.snapshot_time == 1664467062
    assert len(records) == 20


def test_mdt_jobs() -> None:
    text = (
        "mdt.fs-MDT0000.job_stats=\n"
        "job_stats:\n"
        "- job_id:          touch.500\n"
        "  snapshot_time:   1537070542.123456789\n"
        + "".join(f"  {name}: {{ samples: 1, unit: reqs }}\n" for name in MDT_REQS)
        + "  read_bytes:      { samples: 2, unit: bytes, min: 1, max: 3, sum: 4 }\n"
        "mdt.fs-MDT0000.num_exports=3\n"
    )
    records = parse_lctl_output(text)
    assert [r.stat for r in records] == [
        TargetStats.JOB_STATS_MDT,
        TargetStats.NUM_EXPORTS,
    ]
    (job,) = records[0].value
    assert isinstance(job, JobStatMdt)
    assert job.job_id == "touch.500"
    assert job.snapshot_time == 1537070542
    assert job.crossdir_rename == ReqsStat(1, "reqs")
    assert job.read_bytes == BytesStat(2, "bytes", 1, 3, 4)
    assert job.write_bytes is None
    assert job.punch is None


def test_job_missing_fields() -> None:
    text = (
        "obdfilter.fs-OST0000.job_stats=\n"
        "job_stats:\n"
        "- job_id:          cp.0\n"
        "  snapshot_time:   1537070542\n"
    )
    with pytest.raises(StructuredDecodeError) as excinfo:
        parse_lctl_output(text)
    assert excinfo.value.line == 2


def test_job_invalid_yaml() -> None:
    text = (
        "obdfilter.fs-OST0000.job_stats=\n"
        "job_stats:\n"
        "- job_id: [cp.0\n"
    )
    with pytest.raises(StructuredDecodeError):
        parse_lctl_output(text)
