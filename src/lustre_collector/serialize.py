# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
"""
JSON, YAML and table renderings of a record list.

The JSON and YAML forms are interchangeable: both encode each record as
``{record tag: {stat tag: body}}`` and decode back to equal records.
"""
import json
from enum import Enum
from typing import Any, Dict, List

import yaml
from tabulate import tabulate

from lustre_collector.errors import StructuredDecodeError
from lustre_collector.types import (
    LNetStat,
    Record,
    TargetStat,
    ValueShape,
    record_from_dict,
    record_to_dict,
)


class OutputFormat(Enum):
    JSON = "json"
    YAML = "yaml"
    TABLE = "table"


def to_dicts(records: List[Record]) -> List[Dict[str, Any]]:
    return [record_to_dict(record) for record in records]


def from_dicts(data: Any) -> List[Record]:
    if not isinstance(data, list):
        raise StructuredDecodeError(f"Expected a list of records, got {type(data).__name__}")
    try:
        return [record_from_dict(item) for item in data]
    except ValueError as e:
        raise StructuredDecodeError(f"Invalid record: {e}", cause=e)


def to_json(records: List[Record]) -> str:
    return json.dumps(to_dicts(records), indent=2)


def from_json(text: str) -> List[Record]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise StructuredDecodeError(
            f"Invalid JSON: {e.msg}", e.pos, e.lineno, e.colno, cause=e
        )
    return from_dicts(data)


def to_yaml(records: List[Record]) -> str:
    return yaml.safe_dump(to_dicts(records), default_flow_style=False, sort_keys=False)


def from_yaml(text: str) -> List[Record]:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise StructuredDecodeError(f"Invalid YAML: {e}", cause=e)
    return from_dicts(data if data is not None else [])


def _summary(record: Record) -> str:
    shape = record.stat.shape
    value = record.value
    if shape in (ValueShape.U64, ValueShape.STRING):
        return str(value)
    if shape == ValueShape.RECOVERY_STATUS:
        return value.value
    if shape == ValueShape.FS_NAMES:
        return ",".join(value)
    if shape in (ValueShape.JOB_STATS_OST, ValueShape.JOB_STATS_MDT):
        return "no jobs" if value is None else f"{len(value)} jobs"
    if shape == ValueShape.QUOTA_STATS:
        return f"{len(value.stats)} {value.kind} ids in {value.pool}"
    if shape == ValueShape.LNET_STATS:
        return f"send={value.send_count} recv={value.recv_count} drop={value.drop_count}"
    return f"{len(value)} entries"


def to_table(records: List[Record]) -> str:
    rows = []
    for record in records:
        subject = ""
        kind = ""
        if isinstance(record, TargetStat):
            subject = record.target
            kind = record.kind.value
        elif isinstance(record, LNetStat):
            subject = record.nid
        rows.append(
            [record.TAG, kind, subject, record.param, record.stat.tag, _summary(record)]
        )
    return tabulate(rows, headers=["Record", "Kind", "Target", "Param", "Stat", "Value"])


def render(records: List[Record], fmt: OutputFormat) -> str:
    if fmt == OutputFormat.YAML:
        return to_yaml(records)
    if fmt == OutputFormat.TABLE:
        return to_table(records)
    return to_json(records)
