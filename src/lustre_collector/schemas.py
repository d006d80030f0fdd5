# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
"""
Schema definitions for the commands a collection runs.

Each CommandSchema names one external command, the parser for its output
and whether the collection can go on without it. Collections concatenate
results in the order of ``collector_schemas``.
"""
from dataclasses import dataclass
from functools import partial
from typing import Callable, List, Optional

from lustre_collector import mgs_fs_parser, recovery_status_parser
from lustre_collector.config import CollectorConfig
from lustre_collector.parser import (
    params,
    parse_lctl_output,
    parse_lnetctl_output,
    parse_lnetctl_stats,
    parse_mgs_fs_output,
    parse_node_output,
    parse_recovery_status_output,
)
from lustre_collector.types import Record


@dataclass
class CommandSchema:
    """
    Schema definition for a collector command.

    Attributes:
        name: Name of the command, also the recording file name
        command: Executable to run
        parse: Parser for the command's standard output
        description: Human-readable description
        command_args: Arguments passed to the command
        required: Whether a failure aborts the whole collection
    """

    name: str
    command: str
    parse: Callable[[str], List[Record]]
    description: str
    command_args: Optional[List[str]] = None
    required: bool = False

    def build_command(self) -> List[str]:
        return [self.command] + list(self.command_args or [])


# ==============================================================================
# COLLECTOR COMMANDS
# ==============================================================================


def collector_schemas(config: CollectorConfig) -> List[CommandSchema]:
    schemas = [
        CommandSchema(
            name="lctl_params",
            command="lctl",
            command_args=["get_param"] + params(),
            parse=partial(parse_lctl_output, brw_schema=config.brw_schema),
            description="Target, service and host parameters",
            required=True,
        ),
        CommandSchema(
            name="mgs_fs",
            command="lctl",
            command_args=["list_param"] + mgs_fs_parser.params(),
            parse=parse_mgs_fs_output,
            description="Filesystems registered with the management target",
        ),
        CommandSchema(
            name="lnetctl_stats",
            command="lnetctl",
            command_args=["stats", "show"],
            parse=parse_lnetctl_stats,
            description="Global LNet counters",
        ),
        CommandSchema(
            name="recovery_status",
            command="lctl",
            command_args=["get_param"] + recovery_status_parser.params(),
            parse=parse_recovery_status_output,
            description="Target recovery state",
        ),
        CommandSchema(
            name="lnetctl_net",
            command="lnetctl",
            command_args=["net", "show", "-v"],
            parse=parse_lnetctl_output,
            description="Per-NI LNet counters",
            required=True,
        ),
    ]
    if config.node_stats:
        schemas.append(
            CommandSchema(
                name="node_stats",
                command="cat",
                command_args=["/proc/meminfo", "/proc/stat"],
                parse=parse_node_output,
                description="Node memory and CPU counters",
            )
        )
    return schemas
