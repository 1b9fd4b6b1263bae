"""Runs external tools as subprocesses.

A thin wrapper over subprocess.run that logs the tool output line by line and hands
back the exit status. It does not interpret the exit status, callers decide what a
non-zero code means for them.
"""
import logging
import subprocess
from dataclasses import dataclass
from typing import List, Optional


@dataclass
class CommandResult:
    """Outcome of a finished command."""

    command: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """Runs a command line in a working directory and captures its output."""

    def __init__(self, tool_name: str = "TOOL", logger: Optional[logging.Logger] = None):
        self.tool_name = tool_name
        self.runner_logger = logger or logging.getLogger("CommandRunner")

    def run(self, command: List[str], cwd: str, timeout: Optional[float] = None) -> CommandResult:
        """
        Run a command to completion.

        Args:
            command: Command and arguments.
            cwd: Working directory of the process.
            timeout: Optional timeout in seconds, None waits indefinitely.

        Returns:
            CommandResult: Exit status and captured output.

        Raises:
            FileNotFoundError: If the executable cannot be found.
            subprocess.TimeoutExpired: If timeout is set and exceeded.
        """
        self.runner_logger.info(f"Running {self.tool_name} in {cwd}")
        self.runner_logger.debug(f"Command: {' '.join(command)}")

        result = subprocess.run(command, cwd=cwd, capture_output=True, text=True, timeout=timeout)

        if result.stdout:
            self.runner_logger.info(f"=== {self.tool_name} OUTPUT ===")
            for line in result.stdout.strip().split('\n'):
                if line.strip():
                    self.runner_logger.info(f"{self.tool_name}: {line}")
            self.runner_logger.info(f"=== END {self.tool_name} OUTPUT ===")

        if result.stderr:
            self.runner_logger.warning(f"=== {self.tool_name} STDERR ===")
            for line in result.stderr.strip().split('\n'):
                if line.strip():
                    self.runner_logger.warning(f"{self.tool_name} STDERR: {line}")
            self.runner_logger.warning(f"=== END {self.tool_name} STDERR ===")

        if result.returncode != 0:
            self.runner_logger.warning(f"{self.tool_name} exited with code {result.returncode}")

        return CommandResult(command=list(command), returncode=result.returncode,
                             stdout=result.stdout or "", stderr=result.stderr or "")
