"""
igotifier Command Dispatcher.

Runs the configured command through a shell and reports the outcome.
Requires Python 3.11+.
"""

import subprocess
from dataclasses import dataclass

from utils.logger import LoggerMixin

SHELL = "sh"


@dataclass
class CommandResult:
    """Outcome of one shell command execution."""

    command: str
    exit_code: int | None
    output: str = ""
    error: str | None = None  # spawn failure reason

    @property
    def succeeded(self) -> bool:
        """Check if the command ran and exited with status 0."""
        return self.error is None and self.exit_code == 0

    @property
    def failure_reason(self) -> str:
        """Describe why the command failed."""
        if self.error is not None:
            return self.error
        return f"exit status {self.exit_code}"


def run_shell(command: str) -> CommandResult:
    """
    Run command with `sh -c`, capturing stdout and stderr together.

    No timeout is applied; the call returns when the shell exits.

    Args:
        command: Shell command line; pipes and redirects work as written

    Returns:
        CommandResult with the exit code and combined output
    """
    try:
        completed = subprocess.run(
            [SHELL, "-c", command],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            check=False,
        )
    except OSError as e:
        return CommandResult(command=command, exit_code=None, error=str(e))

    return CommandResult(
        command=command,
        exit_code=completed.returncode,
        output=completed.stdout.decode("utf-8", errors="replace"),
    )


class CommandDispatcher(LoggerMixin):
    """
    Executes the command after a settled debounce window.

    Called on the debounce timer thread; the event loop never waits on it.
    Failures are logged, never raised.
    """

    def __init__(self, verbose: bool = False) -> None:
        self._verbose = verbose

    def dispatch(self, command: str) -> CommandResult:
        """
        Run command and log the result.

        Success output is logged only when verbose; failure output is
        always logged.

        Args:
            command: Shell command line

        Returns:
            The command result
        """
        self.log.info("Executing", command=command)

        result = run_shell(command)

        if self._verbose and result.output:
            self.log.info("Command output", output=result.output)

        if result.succeeded:
            self.log.info("Command executed successfully")
        else:
            self.log.error("Command failed", reason=result.failure_reason)
            if not self._verbose and result.output:
                self.log.error("Output", output=result.output)

        return result
