"""
Runs OS commands and captures their output.
"""

import logging
import shutil
import subprocess
import time
from dataclasses import dataclass
from typing import List, Optional, Union

logger = logging.getLogger(__name__)

Command = Union[str, List[str]]


@dataclass
class OsCommandResult:
    """Output and exit status of one OS command."""
    stdout: str
    stderr: str
    exitstatus: int
    command: str
    duration: Optional[float] = None

    @property
    def success(self) -> bool:
        return self.exitstatus == 0

    @property
    def combined_output(self) -> str:
        return self.stdout + self.stderr

    def __str__(self) -> str:
        return self.combined_output


class OsCommandError(RuntimeError):
    """Raised when an OS command exits with a non-zero status."""

    def __init__(self, result: OsCommandResult):
        self.result = result
        self.exitstatus = result.exitstatus
        self.command = result.command
        self.text = result.combined_output
        super().__init__(
            f"Error code {self.exitstatus}, command = {self.command}, text = {self.text.strip()}")


class CommandExecutor:
    """Thin wrapper over subprocess.run that logs and optionally raises on failure."""

    def __init__(self, timeout_seconds: Optional[float] = 60):
        self.timeout_seconds = timeout_seconds

    def run_os_command(self, command: Command, raise_on_error: bool = True) -> OsCommandResult:
        """
        Run a command.

        Args:
            command: Shell string (run via sh -c) or argument list (run without a shell)
            raise_on_error: Raise OsCommandError on a non-zero exit status

        Returns:
            OsCommandResult with captured stdout and stderr
        """
        if isinstance(command, str):
            args = ['sh', '-c', command]
            display = command
        else:
            args = ['' if arg is None else str(arg) for arg in command]
            display = ' '.join(args)

        logger.debug(f"Attempting to run: {display}")
        start = time.monotonic()
        completed = subprocess.run(
            args,
            capture_output=True,
            text=True,
            timeout=self.timeout_seconds
        )
        duration = time.monotonic() - start

        result = OsCommandResult(
            stdout=completed.stdout or '',
            stderr=completed.stderr or '',
            exitstatus=completed.returncode,
            command=display,
            duration=duration,
        )
        logger.debug(
            f"Exit code: {result.exitstatus} ({'success' if result.success else 'error'}), "
            f"duration: {duration:.4f}s")

        if not result.success and raise_on_error:
            raise OsCommandError(result)
        return result

    @staticmethod
    def command_available(command: str) -> bool:
        """Check whether a command exists on the PATH."""
        return shutil.which(command) is not None
