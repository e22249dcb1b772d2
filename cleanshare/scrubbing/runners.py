"""Command backends used to invoke external scrubbing tools.

Strategies build a plain argv and hand it to a runner; the runner decides
whether it executes on this host or through a remote shell prefix such as
``ssh scrubber-host`` or ``wsl``. Remote backends must see the job scratch
directory at the same path (shared mount).
"""

import shlex
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass

from cleanshare.scrubbing.exceptions import ScrubExecutionError, ToolUnavailableError


@dataclass(frozen=True)
class CommandResult:
    returncode: int
    stdout: str = ""
    stderr: str = ""


class BaseCommandRunner(ABC):
    """Contract for executing an external tool with a bounded timeout."""

    @abstractmethod
    def run(self, argv: list[str], timeout_seconds: float) -> CommandResult:
        """Execute *argv* and capture its output.

        Raises:
            ToolUnavailableError: if the executable cannot be found.
            ScrubExecutionError: if the command exceeds *timeout_seconds*.
        """

    @staticmethod
    def _execute(argv: list[str], timeout_seconds: float) -> CommandResult:
        try:
            completed = subprocess.run(
                argv,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout_seconds,
                check=False,
            )
        except FileNotFoundError as exc:
            raise ToolUnavailableError(f"{argv[0]} is not installed") from exc
        except subprocess.TimeoutExpired as exc:
            raise ScrubExecutionError(
                f"{argv[0]} timed out after {timeout_seconds}s"
            ) from exc
        except OSError as exc:
            raise ToolUnavailableError(f"{argv[0]} cannot be executed: {exc}") from exc
        return CommandResult(
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )


class LocalCommandRunner(BaseCommandRunner):
    """Runs tools as local subprocesses."""

    def run(self, argv: list[str], timeout_seconds: float) -> CommandResult:
        return self._execute(argv, timeout_seconds)


class RemoteShellRunner(BaseCommandRunner):
    """Runs tools through a shell prefix, e.g. ``["ssh", "scrubber-host"]``."""

    COMMAND_NOT_FOUND = 127

    def __init__(self, prefix: list[str]) -> None:
        if not prefix:
            raise ValueError("RemoteShellRunner requires a non-empty command prefix")
        self._prefix = list(prefix)

    def run(self, argv: list[str], timeout_seconds: float) -> CommandResult:
        result = self._execute([*self._prefix, shlex.join(argv)], timeout_seconds)
        if result.returncode == self.COMMAND_NOT_FOUND:
            raise ToolUnavailableError(
                f"{argv[0]} is not available through {' '.join(self._prefix)}"
            )
        return result
