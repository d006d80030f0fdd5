"""
Unit tests for the collection pipeline.

Tests cover:
- Command schemas
- Required and optional command failures
- Result ordering
"""
from typing import Dict

import pytest

from lustre_collector import executor
from lustre_collector.collector import collect, join_results, run_schemas
from lustre_collector.config import CollectorConfig
from lustre_collector.errors import CollaboratorError, ParseError
from lustre_collector.schemas import collector_schemas
from lustre_collector.types import HostStat, LNetStat, NodeStat, TargetStat

from lustre_collector_test.testutil import MockCommandRunner, fixture


def outputs() -> Dict[str, str]:
    return {
        "lctl_params": fixture("oss.txt"),
        "mgs_fs": "mgs.MGS.live.fs\n",
        "lnetctl_stats": fixture("lnetctl_stats.yaml"),
        "recovery_status": fixture("recovery_status.txt"),
        "lnetctl_net": fixture("lnetctl_net_show.yaml"),
        "node_stats": fixture("node.txt"),
    }


class TestCollectorSchemas:
    """Test the command schema list."""

    def test_schema_order(self) -> None:
        schemas = collector_schemas(CollectorConfig())
        assert [s.name for s in schemas] == [
            "lctl_params",
            "mgs_fs",
            "lnetctl_stats",
            "recovery_status",
            "lnetctl_net",
            "node_stats",
        ]
        assert [s.name for s in schemas if s.required] == ["lctl_params", "lnetctl_net"]

    def test_node_stats_disabled(self) -> None:
        schemas = collector_schemas(CollectorConfig(node_stats=False))
        assert "node_stats" not in [s.name for s in schemas]

    def test_build_command(self) -> None:
        schemas = {s.name: s for s in collector_schemas(CollectorConfig())}
        assert schemas["lnetctl_net"].build_command() == ["lnetctl", "net", "show", "-v"]
        assert schemas["mgs_fs"].build_command() == ["lctl", "list_param", "mgs.*.live.*"]
        lctl = schemas["lctl_params"].build_command()
        assert lctl[:3] == ["lctl", "get_param", "memused"]


class TestCollect:
    """Test collect() end to end with mocked commands."""

    def test_collect_all(self) -> None:
        runner = MockCommandRunner(outputs())
        records = collect(CollectorConfig(), runner)
        # schema order, whatever order the commands finished in
        assert isinstance(records[0], HostStat)
        assert records[19].param == "lru_size"
        assert records[20].value == ["fs"]
        assert records[21].param == "lnet_stats"
        assert [type(r) for r in records[27:33]] == [LNetStat] * 6
        assert [type(r) for r in records[33:]] == [NodeStat] * 8
        assert len(records) == 41
        assert sorted(runner.calls) == sorted(outputs())

    def test_optional_failures_are_skipped(self) -> None:
        answers = outputs()
        del answers["mgs_fs"]
        answers["recovery_status"] = "garbage\n"
        records = collect(CollectorConfig(node_stats=False), MockCommandRunner(answers))
        assert not [r for r in records if isinstance(r, TargetStat) and r.param == "fsnames"]
        assert len(records) == 20 + 1 + 6

    @pytest.mark.parametrize("name", ["lctl_params", "lnetctl_net"])
    def test_required_failure_aborts(self, name: str) -> None:
        answers = outputs()
        del answers[name]
        with pytest.raises(CollaboratorError):
            collect(CollectorConfig(), MockCommandRunner(answers))

    def test_required_parse_failure_aborts(self) -> None:
        answers = outputs()
        answers["lctl_params"] = "memused=1\nnot a parameter\n"
        with pytest.raises(ParseError):
            collect(CollectorConfig(), MockCommandRunner(answers))

    def test_results_report_failures(self) -> None:
        answers = outputs()
        del answers["lnetctl_stats"]
        schemas = collector_schemas(CollectorConfig(node_stats=False))
        results = run_schemas(MockCommandRunner(answers), schemas)
        assert [r.failed for r in results] == [False, False, True, False, False]
        assert isinstance(results[2].error, CollaboratorError)
        assert len(join_results(results)) == 20 + 1 + 5 + 6

    def test_global_runner(self) -> None:
        executor.set_command_runner(MockCommandRunner(outputs()))
        try:
            records = collect(CollectorConfig(node_stats=False))
        finally:
            executor.set_command_runner(None)
        assert len(records) == 33
