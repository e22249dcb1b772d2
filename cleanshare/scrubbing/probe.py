import threading

from cleanshare.logging.logger import Log
from cleanshare.scrubbing.exceptions import ScrubError
from cleanshare.scrubbing.runners import BaseCommandRunner


class CapabilityProbe:
    """Detects whether external tools are present and functional.

    Results are cached for the lifetime of the probe (one per process), so a
    tool is version-checked at most once no matter how many jobs ask.
    """

    def __init__(self, runner: BaseCommandRunner, timeout_seconds: float) -> None:
        self._runner = runner
        self._timeout_seconds = timeout_seconds
        self._cache: dict[str, bool] = {}
        self._lock = threading.Lock()

    def is_available(self, tool: str, version_argv: list[str]) -> bool:
        with self._lock:
            cached = self._cache.get(tool)
        if cached is not None:
            return cached

        available = self._check(tool, version_argv)
        with self._lock:
            self._cache.setdefault(tool, available)
            return self._cache[tool]

    def report(self) -> dict[str, bool]:
        """Snapshot of every tool probed so far."""
        with self._lock:
            return dict(self._cache)

    def reset(self) -> None:
        with self._lock:
            self._cache.clear()

    def _check(self, tool: str, version_argv: list[str]) -> bool:
        try:
            result = self._runner.run(version_argv, self._timeout_seconds)
        except (ScrubError, OSError) as exc:
            Log.warning(f"Tool {tool} unavailable: {exc}")
            return False
        if result.returncode != 0:
            Log.warning(
                f"Tool {tool} unavailable: version check exited with {result.returncode}"
            )
            return False
        Log.info(f"Tool {tool} available ({result.stdout.strip() or 'unknown version'})")
        return True
