# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
"""
Per-job accounting embedded in ``lctl get_param`` output.

``job_stats`` is a YAML document inside the line stream::

    obdfilter.fs-OST0000.job_stats=
    job_stats:
    - job_id:          cp.0
      snapshot_time:   1537070542
      read_bytes:      { samples: 256, unit: bytes, min: 4194304, max: 4194304, sum: 1073741824 }
      ...
    obdfilter.fs-OST0001.job_stats=job_stats:

The document runs until the next line that starts with an alphanumeric
character, which is where the next parameter begins. It is then decoded
whole. A bare ``job_stats:`` means the target reports no jobs.
"""

import logging
from typing import Any, Callable, List, Optional, TypeVar

import yaml

from lustre_collector.base_parsers import Input, block, newline, optional
from lustre_collector.errors import StructuredDecodeError
from lustre_collector.types import JobStatMdt, JobStatOst

logger = logging.getLogger("lustre-collector.job_stats")

J = TypeVar("J")


def load_document(inp: Input, start: int, text: str) -> Any:
    """YAML-decode ``text`` that began at ``start``, as a positioned error on failure."""
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        line, column = inp.line_col(start)
        mark = getattr(e, "problem_mark", None)
        if mark is not None:
            line += mark.line
            column = mark.column + 1
        raise StructuredDecodeError(
            f"Could not decode embedded document: {e}", start, line, column, cause=e
        )


def _decode_jobs(
    inp: Input, decoder: Callable[[Any], J]
) -> Optional[List[J]]:
    optional(inp, newline)
    start = inp.pos
    text = block(inp, include_first=inp.startswith("job_stats:"))
    document = load_document(inp, start, text)

    if document is None:
        return None
    if not isinstance(document, dict) or "job_stats" not in document:
        line, column = inp.line_col(start)
        raise StructuredDecodeError(
            "Embedded document has no job_stats root", start, line, column
        )

    jobs = document["job_stats"]
    if jobs is None:
        return None
    if not isinstance(jobs, list):
        line, column = inp.line_col(start)
        raise StructuredDecodeError(
            f"job_stats must be a list, got {type(jobs).__name__}", start, line, column
        )
    try:
        decoded = [decoder(job) for job in jobs]
    except ValueError as e:
        line, column = inp.line_col(start)
        raise StructuredDecodeError(str(e), start, line, column, cause=e)
    logger.debug(f"Decoded {len(decoded)} job_stats entries")
    return decoded


def job_stats_ost(inp: Input) -> Optional[List[JobStatOst]]:
    return _decode_jobs(inp, JobStatOst.from_dict)


def job_stats_mdt(inp: Input) -> Optional[List[JobStatMdt]]:
    return _decode_jobs(inp, JobStatMdt.from_dict)
