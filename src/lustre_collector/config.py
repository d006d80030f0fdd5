# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
import os
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, TypeVar

from lustre_collector.brw_stats_parser import BrwSchema
from lustre_collector.errors import ConfigurationError
from lustre_collector.executor import CommandMode

T = TypeVar("T")


def _flag(value: str) -> bool:
    return value.strip().lower() not in ["0", "false", "no", "off", ""]


def _setting(env: Mapping[str, str], key: str, convert: Callable[[str], T]) -> T:
    try:
        return convert(env[key].strip().lower())
    except ValueError:
        raise ConfigurationError(f"Invalid value for {key}: {env[key]!r}")


@dataclass
class CollectorConfig:
    """
    Settings for one collection.

    Attributes:
        timeout: Per-command timeout in seconds
        mode: Run commands live, record them, or replay recordings
        cassettes: Directory holding recordings
        brw_schema: Which brw_stats schema the lctl grammars produce
        node_stats: Whether to read /proc memory and CPU counters
    """

    timeout: int = 30
    mode: CommandMode = CommandMode.NONE
    cassettes: str = "."
    brw_schema: BrwSchema = BrwSchema.COUNTS
    node_stats: bool = True

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CollectorConfig":
        env = os.environ if environ is None else environ
        config = cls()
        if env.get("LUSTRE_COLLECTOR_TIMEOUT"):
            config.timeout = _setting(env, "LUSTRE_COLLECTOR_TIMEOUT", int)
        if env.get("LUSTRE_COLLECTOR_MODE"):
            config.mode = _setting(env, "LUSTRE_COLLECTOR_MODE", CommandMode)
        if env.get("LUSTRE_COLLECTOR_CASSETTES"):
            config.cassettes = env["LUSTRE_COLLECTOR_CASSETTES"]
        if env.get("LUSTRE_COLLECTOR_BRW_SCHEMA"):
            config.brw_schema = _setting(env, "LUSTRE_COLLECTOR_BRW_SCHEMA", BrwSchema)
        if "LUSTRE_COLLECTOR_NODE_STATS" in env:
            config.node_stats = _flag(env["LUSTRE_COLLECTOR_NODE_STATS"])
        return config
