# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
"""
Command execution for the collector.

Commands are run through a ``CommandRunner``. The live runner launches the
process, the recording runner also saves what the process printed, and the
replay runner answers from those recordings without launching anything.
Recordings are JSON files named after the command schema::

    {"command": "lctl", "args": ["get_param", ...], "stdout": "...", "stderr": ""}
"""
import json
import logging
import os
import subprocess
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from enum import Enum
from typing import List, Optional

from lustre_collector.errors import CollaboratorError

logger = logging.getLogger("lustre-collector.executor")


class CommandMode(Enum):
    NONE = "none"
    RECORD = "record"
    PLAY = "play"


@dataclass
class CommandOutput:
    command: str
    args: List[str]
    stdout: str
    stderr: str


class CommandRunner(ABC):
    @abstractmethod
    def run(self, name: str, command: str, args: List[str]) -> CommandOutput:
        ...


def _decode(data: bytes, stream: str, full_command: List[str]) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise CollaboratorError(f"{stream} is not valid UTF-8: {e}", full_command)


class LiveCommandRunner(CommandRunner):
    """Runs commands with ``subprocess``.

    A non-zero exit is logged but not raised: ``lctl get_param`` exits
    non-zero whenever one of its patterns matches nothing, and still prints
    every pattern that did match.
    """

    def __init__(self, timeout: int = 30) -> None:
        self.timeout = timeout

    def run(self, name: str, command: str, args: List[str]) -> CommandOutput:
        full_command = [command] + list(args)
        logger.debug(f"Running {name}: {' '.join(full_command)}")
        try:
            result = subprocess.run(
                full_command,
                capture_output=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            logger.error(f"Command timed out after {self.timeout}s: {' '.join(full_command)}")
            raise CollaboratorError(f"Timed out after {self.timeout}s", full_command)
        except OSError as e:
            logger.error(f"Could not launch {command}: {e}")
            raise CollaboratorError(f"Could not launch {command}: {e}", full_command)

        stdout = _decode(result.stdout, "stdout", full_command)
        stderr = _decode(result.stderr, "stderr", full_command)
        if result.returncode != 0:
            logger.warning(
                f"{command} exited with {result.returncode}: {stderr.strip()}"
            )
        return CommandOutput(command, list(args), stdout, stderr)


def cassette_path(directory: str, name: str) -> str:
    return os.path.join(directory, f"{name}.json")


class RecordingCommandRunner(CommandRunner):
    """Runs commands through ``runner`` and saves each result to ``directory``."""

    def __init__(self, directory: str, runner: Optional[CommandRunner] = None) -> None:
        self.directory = directory
        self.runner = runner or LiveCommandRunner()

    def run(self, name: str, command: str, args: List[str]) -> CommandOutput:
        output = self.runner.run(name, command, args)
        path = cassette_path(self.directory, name)
        try:
            os.makedirs(self.directory, exist_ok=True)
            with open(path, "w") as fw:
                json.dump(asdict(output), fw, indent=2)
        except OSError as e:
            raise CollaboratorError(f"Could not write recording {path}: {e}", [command] + list(args))
        logger.info(f"Recorded {name} to {path}")
        return output


class ReplayCommandRunner(CommandRunner):
    """Answers every command from the recordings in ``directory``."""

    def __init__(self, directory: str) -> None:
        self.directory = directory

    def run(self, name: str, command: str, args: List[str]) -> CommandOutput:
        path = cassette_path(self.directory, name)
        try:
            with open(path) as fr:
                data = json.load(fr)
        except OSError as e:
            raise CollaboratorError(f"No recording for {name} at {path}: {e}", [command] + list(args))
        except json.JSONDecodeError as e:
            raise CollaboratorError(f"Recording {path} is not valid JSON: {e}", [command] + list(args))
        logger.debug(f"Replaying {name} from {path}")
        return CommandOutput(
            command=data.get("command", command),
            args=data.get("args", list(args)),
            stdout=data.get("stdout", ""),
            stderr=data.get("stderr", ""),
        )


def create_runner(mode: CommandMode, directory: str, timeout: int = 30) -> CommandRunner:
    if mode == CommandMode.RECORD:
        return RecordingCommandRunner(directory, LiveCommandRunner(timeout))
    if mode == CommandMode.PLAY:
        return ReplayCommandRunner(directory)
    return LiveCommandRunner(timeout)


COMMAND_RUNNER: Optional[CommandRunner] = None


def set_command_runner(runner: Optional[CommandRunner]) -> None:
    """Override the runner ``collect`` uses when none is passed explicitly."""
    global COMMAND_RUNNER
    COMMAND_RUNNER = runner
