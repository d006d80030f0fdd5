import json

import pytest

from lustre_collector import StructuredDecodeError, parse_lctl_output
from lustre_collector.brw_stats_parser import BrwSchema
from lustre_collector.parser import parse_lnetctl_output, parse_lnetctl_stats
from lustre_collector.serialize import (
    OutputFormat,
    from_json,
    from_yaml,
    render,
    to_json,
    to_table,
    to_yaml,
)
from lustre_collector.types import HostStat, HostStats, Param, record_to_dict

from lustre_collector_test.testutil import fixture


def all_records() -> list:
    return (
        parse_lctl_output(fixture("oss.txt"))
        + parse_lctl_output(fixture("mds.txt"))
        + parse_lctl_output(fixture("brw_stats.txt"), BrwSchema.FULL)
        + parse_lnetctl_output(fixture("lnetctl_net_show.yaml"))
        + parse_lnetctl_stats(fixture("lnetctl_stats.yaml"))
    )


def test_externally_tagged() -> None:
    record = HostStat(HostStats.MEMUSED, Param("memused"), 5)
    assert record_to_dict(record) == {
        "Host": {"Memused": {"param": "memused", "value": 5}}
    }

    target = parse_lctl_output("obdfilter.fs-OST0000.num_exports=2\n")[0]
    assert record_to_dict(target) == {
        "Target": {
            "NumExports": {
                "kind": "OST",
                "param": "num_exports",
                "target": "fs-OST0000",
                "value": 2,
            }
        }
    }


def test_json_round_trip() -> None:
    records = all_records()
    text = to_json(records)
    assert isinstance(json.loads(text), list)
    assert from_json(text) == records


def test_yaml_round_trip() -> None:
    records = all_records()
    assert from_yaml(to_yaml(records)) == records
    assert from_yaml("") == []


def test_no_jobs_survives_round_trip() -> None:
    records = parse_lctl_output("obdfilter.fs-OST0000.job_stats=job_stats:\n")
    data = json.loads(to_json(records))
    assert data[0]["Target"]["JobStatsOst"]["value"] is None
    assert from_json(to_json(records)) == records


def test_decode_errors() -> None:
    with pytest.raises(StructuredDecodeError):
        from_json("{not json")
    with pytest.raises(StructuredDecodeError):
        from_json('{"Host": {}}')
    with pytest.raises(StructuredDecodeError):
        from_json('[{"Host": {"Nope": {"param": "x", "value": 1}}}]')
    with pytest.raises(StructuredDecodeError):
        from_yaml("- Target:\n    NumExports: {kind: OST, param: x, target: t, value: lots}\n")


def test_table() -> None:
    table = to_table(parse_lctl_output(fixture("mds.txt")))
    lines = table.splitlines()
    assert lines[0].split() == ["Record", "Kind", "Target", "Param", "Stat", "Value"]
    assert any("FsType" in line or "QuotaStats" in line for line in lines)
    assert "2 usr ids in dt-0x0" in table
    assert "no jobs" in table


def test_render() -> None:
    records = parse_lctl_output("memused=5\n")
    assert render(records, OutputFormat.JSON) == to_json(records)
    assert render(records, OutputFormat.YAML) == to_yaml(records)
    assert "Memused" in render(records, OutputFormat.TABLE)
