from typing import ClassVar

from cleanshare.config.settings import Settings
from cleanshare.scrubbing.base import BaseScrubStrategy
from cleanshare.scrubbing.exiftool_strategy import ExifToolStrategy
from cleanshare.scrubbing.mat2_strategy import Mat2Strategy
from cleanshare.scrubbing.metadata_reader import (
    ChainedMetadataReader,
    ExifToolMetadataReader,
    PdfPlumberMetadataReader,
)
from cleanshare.scrubbing.probe import CapabilityProbe
from cleanshare.scrubbing.pymupdf_strategy import PyMuPdfStrategy
from cleanshare.scrubbing.runners import BaseCommandRunner, LocalCommandRunner, RemoteShellRunner
from cleanshare.scrubbing.scrubber import MetadataScrubber


class ScrubberFactory:
    """Creates the configured strategy chain, command backend and probe."""

    STRATEGIES: ClassVar[tuple[str, ...]] = ("mat2", "exiftool", "pymupdf")
    BACKENDS: ClassVar[tuple[str, ...]] = ("local", "remote_shell")

    @classmethod
    def create(
        cls,
        settings: Settings,
        probe: CapabilityProbe | None = None,
    ) -> MetadataScrubber:
        runner = cls.create_runner(settings)
        if probe is None:
            probe = CapabilityProbe(runner, settings.probe_timeout_seconds)
        strategies = [
            cls._create_strategy(name, runner, probe, settings)
            for name in cls.enabled_strategies(settings)
        ]
        reader = ChainedMetadataReader(
            [
                ExifToolMetadataReader(
                    runner=runner,
                    probe=probe,
                    timeout_seconds=settings.probe_timeout_seconds,
                ),
                PdfPlumberMetadataReader(),
            ]
        )
        return MetadataScrubber(strategies, reader)

    @classmethod
    def create_runner(cls, settings: Settings) -> BaseCommandRunner:
        backend = settings.scrub_backend.lower()
        if backend == "local":
            return LocalCommandRunner()
        if backend == "remote_shell":
            if not settings.scrub_remote_shell_prefix:
                raise ValueError(
                    "scrub_remote_shell_prefix is required for scrub_backend=remote_shell"
                )
            return RemoteShellRunner(settings.scrub_remote_shell_prefix)
        raise ValueError(
            f"Unknown scrub backend '{backend}'. Choose from: {list(cls.BACKENDS)}"
        )

    @classmethod
    def enabled_strategies(cls, settings: Settings) -> list[str]:
        """Configured strategy names in priority order, minus disabled ones."""
        flags = {
            "mat2": settings.scrub_mat2_enabled,
            "exiftool": settings.scrub_exiftool_enabled,
            "pymupdf": settings.scrub_pymupdf_enabled,
        }
        names: list[str] = []
        for raw in settings.scrub_strategies:
            name = raw.lower()
            if name not in flags:
                raise ValueError(
                    f"Unknown scrub strategy '{name}'. Choose from: {list(cls.STRATEGIES)}"
                )
            if flags[name] and name not in names:
                names.append(name)
        return names

    @classmethod
    def _create_strategy(
        cls,
        name: str,
        runner: BaseCommandRunner,
        probe: CapabilityProbe,
        settings: Settings,
    ) -> BaseScrubStrategy:
        timeout = settings.scrub_timeout_seconds
        if name == "mat2":
            return Mat2Strategy(runner=runner, probe=probe, timeout_seconds=timeout)
        if name == "exiftool":
            return ExifToolStrategy(runner=runner, probe=probe, timeout_seconds=timeout)
        return PyMuPdfStrategy()
