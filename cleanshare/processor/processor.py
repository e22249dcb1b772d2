from pathlib import Path

from cleanshare.config.settings import Settings
from cleanshare.content_store.factory import ContentStoreFactory
from cleanshare.database.repositories.provenance_repository import ProvenanceRepository
from cleanshare.hashing.hasher import ContentHasher
from cleanshare.ledger.factory import LedgerFactory
from cleanshare.logging.logger import Log
from cleanshare.processor.exceptions import ProcessorError, UploadValidationError
from cleanshare.processor.file_store import FileStore
from cleanshare.processor.models import UploadJob, UploadResult
from cleanshare.processor.pipeline import PipelineContext, PipelineStep
from cleanshare.processor.steps import (
    AnchorLedgerStep,
    HashContentStep,
    MarkFailedStep,
    PersistRecordStep,
    PublishContentStep,
    ScrubMetadataStep,
    StageUploadStep,
    ValidateUploadStep,
)
from cleanshare.scrubbing.factory import ScrubberFactory
from cleanshare.scrubbing.scrubber import MetadataScrubber
from cleanshare.tempfiles.registry import TempResourceRegistry


class Processor:
    """Orchestrates one upload through the pipeline.

    Pipeline: validate -> stage -> scrub -> hash -> publish -> anchor -> persist.
    Scratch files of the job are released when ``process`` returns or raises.
    """

    def __init__(
        self,
        steps: list[PipelineStep],
        registry: TempResourceRegistry,
        failed_step: PipelineStep | None = None,
    ) -> None:
        self._steps = steps
        self._registry = registry
        self._failed_step = failed_step if failed_step is not None else MarkFailedStep()

    def process(self, job: UploadJob) -> UploadResult:
        """Run the full pipeline for one upload.

        Raises:
            UploadValidationError: if the upload is rejected. Nothing is stored.
            PersistenceError: if the final record cannot be stored.
        """
        Log.info(
            f"Processing upload {job.job_id} ({job.original_name}, "
            f"{job.mime_type}, {job.actual_size} bytes)"
        )
        context = PipelineContext(job=job)
        with self._registry.job_scope(job.job_id) as scratch:
            context.scratch = scratch
            try:
                for step in self._steps:
                    context = step.run(context)
            except UploadValidationError as exc:
                Log.warning(f"Upload {job.job_id} rejected [{exc.constraint}]: {exc}")
                raise
            except Exception as exc:
                context.error_message = str(exc)
                self._failed_step.run(context)
                raise

        if context.result is None:
            raise ProcessorError(f"Pipeline finished without a result for upload {job.job_id}")
        Log.info(f"Upload {job.job_id} processed as {context.result.record.file_id}")
        return context.result


def build_steps(
    settings: Settings,
    scrubber: MetadataScrubber,
    file_store: FileStore,
    repository: ProvenanceRepository,
) -> list[PipelineStep]:
    return [
        ValidateUploadStep(settings.allowed_mime_types, settings.max_upload_bytes),
        StageUploadStep(),
        ScrubMetadataStep(scrubber),
        HashContentStep(ContentHasher()),
        PublishContentStep(ContentStoreFactory.create(settings)),
        AnchorLedgerStep(LedgerFactory.create(settings)),
        PersistRecordStep(file_store, repository, settings.download_url_prefix),
    ]


def build_processor(
    settings: Settings,
    files_root: Path | None = None,
    registry: TempResourceRegistry | None = None,
    repository: ProvenanceRepository | None = None,
    scrubber: MetadataScrubber | None = None,
) -> Processor:
    """Build a Processor with all required adapters."""
    if files_root is None:
        files_root = Path(settings.files_root)
    if registry is None:
        registry = TempResourceRegistry(
            Path(settings.scratch_root) if settings.scratch_root else None
        )
    steps = build_steps(
        settings,
        scrubber if scrubber is not None else ScrubberFactory.create(settings),
        FileStore(files_root=files_root),
        repository if repository is not None else ProvenanceRepository(),
    )
    return Processor(steps=steps, registry=registry)
