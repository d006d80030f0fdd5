# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
"""
Lustre Prometheus Exporter

Runs a collection on every scrape and exposes the records as gauges.
"""
import logging
import re
import time
from typing import Dict, Iterator, List, Optional, Sequence, Set, Tuple

from prometheus_client import REGISTRY, start_http_server
from prometheus_client.core import GaugeMetricFamily

from lustre_collector.collector import collect
from lustre_collector.config import CollectorConfig
from lustre_collector.errors import LustreCollectorError
from lustre_collector.executor import CommandRunner
from lustre_collector.types import (
    HostStat,
    LNetStat,
    NodeStat,
    Record,
    TargetStat,
    ValueShape,
)

logger = logging.getLogger("lustre-collector.exporter")

TARGET_LABELS = ["kind", "target"]
BRW_LABELS = TARGET_LABELS + ["section", "unit", "bucket"]
JOB_LABELS = TARGET_LABELS + ["job_id", "operation"]
STATS_LABELS = TARGET_LABELS + ["param", "name", "units"]
EXPORT_LABELS = TARGET_LABELS + ["nid", "name"]
QUOTA_LABELS = TARGET_LABELS + ["pool", "id_kind", "id"]


def metric_name(tag: str, prefix: str = "lustre") -> str:
    """``BytesAvail`` -> ``lustre_bytes_avail``."""
    snake = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", tag).lower()
    return f"{prefix}_{snake}"


class MetricFamilies:
    """GaugeMetricFamily instances created on first use, kept in order.

    A series is published once. obdfilter and osd both print brw_stats for
    the same OST, so a repeated (name, label values) pair keeps the first
    sample.
    """

    def __init__(self) -> None:
        self.families: Dict[str, GaugeMetricFamily] = {}
        self.series: Set[Tuple[str, Tuple[str, ...]]] = set()

    def add(
        self,
        name: str,
        documentation: str,
        labels: Sequence[str],
        values: Sequence[object],
        value: float,
    ) -> None:
        label_values = tuple(str(v) for v in values)
        if (name, label_values) in self.series:
            logger.debug(f"Skipping repeated series {name}{label_values}")
            return
        self.series.add((name, label_values))
        family = self.families.get(name)
        if family is None:
            family = GaugeMetricFamily(name, documentation, labels=list(labels))
            self.families[name] = family
        family.add_metric(list(label_values), value)


def _add_host(families: MetricFamilies, record: HostStat) -> None:
    name = metric_name(record.stat.tag)
    doc = f"Lustre {record.param}"
    shape = record.stat.shape
    if shape == ValueShape.U64:
        families.add(name, doc, [], [], record.value)
    elif shape == ValueShape.STRING:
        healthy = 1 if record.value == "healthy" else 0
        families.add(name, doc, ["status"], [record.value], healthy)
    elif shape == ValueShape.LNET_STATS:
        for counter, value in vars(record.value).items():
            name = f"lustre_lnet_global_{counter}"
            families.add(name, f"LNet {counter}", [], [], value)


def _add_brw(families: MetricFamilies, record: TargetStat, base: List[str]) -> None:
    full = record.stat.shape == ValueShape.BRW_STATS_FULL
    for section in record.value:
        for bucket in section.buckets:
            values = base + [section.name, section.unit, bucket.name]
            read = int(bucket.read.count) if full else bucket.read
            write = int(bucket.write.count) if full else bucket.write
            families.add("lustre_brw_read", "brw_stats reads", BRW_LABELS, values, read)
            families.add(
                "lustre_brw_write", "brw_stats writes", BRW_LABELS, values, write
            )


def _add_jobs(families: MetricFamilies, record: TargetStat, base: List[str]) -> None:
    for job in record.value or []:
        for operation, stat in vars(job).items():
            if operation in ("job_id", "snapshot_time") or stat is None:
                continue
            values = base + [job.job_id, operation]
            families.add(
                "lustre_job_samples", "Job operations", JOB_LABELS, values, stat.samples
            )
            if hasattr(stat, "sum"):
                families.add(
                    "lustre_job_bytes", "Job bytes", JOB_LABELS, values, stat.sum
                )


def _add_quota(families: MetricFamilies, record: TargetStat, base: List[str]) -> None:
    quota = record.value
    for entry in quota.stats:
        values = base + [quota.pool, quota.kind, entry.id]
        for limit in ("hard", "soft", "granted"):
            families.add(
                f"lustre_quota_{limit}",
                f"Quota {limit} limit",
                QUOTA_LABELS,
                values,
                getattr(entry.limits, limit),
            )


def _add_target(families: MetricFamilies, record: TargetStat) -> None:
    shape = record.stat.shape
    base = [record.kind.value, record.target]
    name = metric_name(record.stat.tag)
    doc = f"Lustre target {record.param}"
    if shape == ValueShape.U64:
        labels = TARGET_LABELS + ["param"]
        families.add(name, doc, labels, base + [record.param], record.value)
    elif shape == ValueShape.STRING:
        labels = TARGET_LABELS + ["value"]
        families.add(name, doc, labels, base + [record.value], 1)
    elif shape == ValueShape.STATS:
        for stat in record.value:
            values = base + [record.param, stat.name, stat.units]
            families.add(
                "lustre_stats_samples", "Samples", STATS_LABELS, values, stat.samples
            )
            if stat.sum is not None:
                families.add("lustre_stats_sum", "Sum", STATS_LABELS, values, stat.sum)
    elif shape in (ValueShape.BRW_STATS, ValueShape.BRW_STATS_FULL):
        _add_brw(families, record, base)
    elif shape in (ValueShape.JOB_STATS_OST, ValueShape.JOB_STATS_MDT):
        _add_jobs(families, record, base)
    elif shape == ValueShape.FS_NAMES:
        for fs_name in record.value:
            families.add(name, doc, TARGET_LABELS + ["fs"], base + [fs_name], 1)
    elif shape == ValueShape.EXPORT_STATS:
        for export in record.value:
            for stat in export.stats:
                values = base + [export.nid, stat.name]
                families.add(
                    "lustre_export_samples", doc, EXPORT_LABELS, values, stat.samples
                )
    elif shape == ValueShape.QUOTA_STATS:
        _add_quota(families, record, base)
    elif shape == ValueShape.RECOVERY_STATUS:
        labels = TARGET_LABELS + ["status"]
        families.add(name, doc, labels, base + [record.value.value], 1)


def metric_families(records: List[Record]) -> Iterator[GaugeMetricFamily]:
    families = MetricFamilies()
    for record in records:
        if isinstance(record, HostStat):
            _add_host(families, record)
        elif isinstance(record, TargetStat):
            _add_target(families, record)
        elif isinstance(record, LNetStat):
            name = metric_name(record.stat.tag, "lustre_lnet")
            doc = f"LNet {record.param}"
            families.add(name, doc, ["nid"], [record.nid], record.value)
        elif isinstance(record, NodeStat):
            name = metric_name(record.stat.tag, "lustre_node")
            families.add(name, f"Node {record.param}", [], [], record.value)
    yield from families.families.values()


class LustreMetricsCollector:
    """Collects Lustre metrics on every scrape."""

    def __init__(
        self, config: CollectorConfig, runner: Optional[CommandRunner] = None
    ) -> None:
        self.config = config
        self.runner = runner

    def collect(self) -> Iterator[GaugeMetricFamily]:
        """Called by prometheus_client on every scrape."""
        start = time.time()
        up = GaugeMetricFamily(
            "lustre_collector_up", "Whether the last collection succeeded"
        )
        try:
            records = collect(self.config, self.runner)
        except LustreCollectorError as e:
            logger.error(f"Failed to collect Lustre metrics: {e}")
            up.add_metric([], 0)
        else:
            yield from metric_families(records)
            up.add_metric([], 1)
        yield up
        duration = GaugeMetricFamily(
            "lustre_collector_duration_seconds",
            "Time spent collecting Lustre metrics",
        )
        duration.add_metric([], time.time() - start)
        yield duration


def serve(config: CollectorConfig, port: int) -> None:
    REGISTRY.register(LustreMetricsCollector(config))
    start_http_server(port)
    logger.info(
        f"Exporter started. Metrics available at http://localhost:{port}/metrics"
    )
    while True:
        time.sleep(1)
