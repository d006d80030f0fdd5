import pytest

from lustre_collector import parse_lctl_output
from lustre_collector.base_parsers import Input, NoMatch
from lustre_collector.stats_parser import format_stats, stat, stats, stats_or_empty
from lustre_collector.types import (
    Param,
    Stat,
    Target,
    TargetStat,
    TargetStats,
    TargetVariant,
)


def test_stat_shapes() -> None:
    assert stat(Input("statfs                    42113 samples [reqs]")) == Stat(
        "statfs", "reqs", 42113
    )
    assert stat(
        Input("read_bytes                4 samples [bytes] 4096 1048576 1056768\n")
    ) == Stat("read_bytes", "bytes", 4, 4096, 1048576, 1056768)
    assert stat(
        Input("req_waittime              57 samples [usec] 19 142 2597 181839\n")
    ) == Stat("req_waittime", "usec", 57, 19, 142, 2597, 181839)


def test_stat_trailing_whitespace() -> None:
    inp = Input("create                    4 samples [reqs]   \nnext")
    assert stat(inp) == Stat("create", "reqs", 4)
    assert inp.remaining() == "next"

    inp = Input("write_bytes 9 samples [bytes] 98303 4194304 33554431 \t\nnext")
    assert stat(inp) == Stat("write_bytes", "bytes", 9, 98303, 4194304, 33554431)
    assert inp.remaining() == "next"


def test_stat_rejects_parameter_lines() -> None:
    with pytest.raises(NoMatch):
        stat(Input("obdfilter.fs-OST0000.num_exports=2"))


def test_stats_needs_rows() -> None:
    text = "\nsnapshot_time             1566017453.009677077 secs.nsecs\nmdt.x"
    with pytest.raises(NoMatch):
        stats(Input(text))

    inp = Input(text)
    assert stats_or_empty(inp) == []
    assert inp.remaining() == "mdt.x"


def test_stat_invariants() -> None:
    with pytest.raises(ValueError):
        Stat("open", "reqs", 1, min=1)
    with pytest.raises(ValueError):
        Stat("open", "reqs", 1, sumsquare=1)


def test_format_stats() -> None:
    rows = [
        Stat("create", "reqs", 4),
        Stat("read_bytes", "bytes", 4, 4096, 1048576, 1056768),
        Stat("req_waittime", "usec", 57, 19, 142, 2597, 181839),
    ]
    text = format_stats("1566017453.009677077", rows)
    assert stats(Input(text)) == rows
    assert format_stats("1566017453.009677077", stats(Input(text))) == text


def test_stats_record() -> None:
    text = (
        "obdfilter.fs-OST0000.stats=\n"
        "snapshot_time             1566017453.009677077 secs.nsecs\n"
        "start_time                1566000000.000000000 secs.nsecs\n"
        "elapsed_time              17453.009677077 secs.nsecs\n"
        "create                    4 samples [reqs]\n"
        "obdfilter.fs-OST0000.num_exports=2\n"
    )
    assert parse_lctl_output(text) == [
        TargetStat(
            TargetStats.STATS,
            TargetVariant.OST,
            Param("stats"),
            Target("fs-OST0000"),
            [Stat("create", "reqs", 4)],
        ),
        TargetStat(
            TargetStats.NUM_EXPORTS,
            TargetVariant.OST,
            Param("num_exports"),
            Target("fs-OST0000"),
            2,
        ),
    ]
