# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
"""
Runs every collector command concurrently and joins the results.

Results come back in schema order whatever order the commands finish in.
A failed optional command contributes no records; a failed required
command aborts the collection.
"""
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional

from lustre_collector import executor
from lustre_collector.config import CollectorConfig
from lustre_collector.errors import LustreCollectorError
from lustre_collector.executor import CommandRunner, create_runner
from lustre_collector.schemas import CommandSchema, collector_schemas
from lustre_collector.types import Record

logger = logging.getLogger("lustre-collector.collector")


@dataclass
class CollectorResult:
    schema: CommandSchema
    records: List[Record] = field(default_factory=list)
    error: Optional[LustreCollectorError] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


def execute_schema(runner: CommandRunner, schema: CommandSchema) -> List[Record]:
    output = runner.run(schema.name, schema.command, list(schema.command_args or []))
    records = schema.parse(output.stdout)
    logger.debug(f"{schema.name} produced {len(records)} records")
    return records


def _result(schema: CommandSchema, future: "Future[List[Record]]") -> CollectorResult:
    try:
        return CollectorResult(schema, future.result())
    except LustreCollectorError as e:
        return CollectorResult(schema, error=e)


def run_schemas(runner: CommandRunner, schemas: List[CommandSchema]) -> List[CollectorResult]:
    with ThreadPoolExecutor(max_workers=max(1, len(schemas))) as pool:
        futures = [pool.submit(execute_schema, runner, schema) for schema in schemas]
        return [_result(schema, future) for schema, future in zip(schemas, futures)]


def join_results(results: List[CollectorResult]) -> List[Record]:
    records: List[Record] = []
    for result in results:
        if result.error is not None:
            if result.schema.required:
                logger.error(f"{result.schema.name} failed: {result.error}")
                raise result.error
            logger.warning(f"{result.schema.name} failed, skipping: {result.error}")
            continue
        records.extend(result.records)
    return records


def collect(
    config: Optional[CollectorConfig] = None, runner: Optional[CommandRunner] = None
) -> List[Record]:
    config = config or CollectorConfig.from_env()
    runner = runner or executor.COMMAND_RUNNER or create_runner(
        config.mode, config.cassettes, config.timeout
    )
    records = join_results(run_schemas(runner, collector_schemas(config)))
    logger.info(f"Collected {len(records)} records")
    return records
