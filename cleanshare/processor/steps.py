import uuid
from datetime import UTC, datetime

from cleanshare.content_store.base import BaseContentStore
from cleanshare.database.models import ProvenanceRecord
from cleanshare.database.repositories.provenance_repository import ProvenanceRepository
from cleanshare.hashing.hasher import ContentHasher
from cleanshare.ledger.base import BaseLedger
from cleanshare.ledger.exceptions import LedgerError
from cleanshare.ledger.models import LedgerDescriptor
from cleanshare.logging.logger import Log
from cleanshare.processor.exceptions import PersistenceError, UploadValidationError
from cleanshare.processor.file_store import FileStore
from cleanshare.processor.models import UploadResult
from cleanshare.processor.pipeline import PipelineContext, PipelineStep
from cleanshare.scrubbing.models import ScrubOutcome
from cleanshare.scrubbing.scrubber import MetadataScrubber


class ValidateUploadStep(PipelineStep):
    def __init__(self, allowed_mime_types: list[str], max_upload_bytes: int) -> None:
        self._allowed_mime_types = frozenset(t.lower() for t in allowed_mime_types)
        self._max_upload_bytes = max_upload_bytes

    def run(self, context: PipelineContext) -> PipelineContext:
        job = context.job
        if job.mime_type.lower() not in self._allowed_mime_types:
            raise UploadValidationError(
                UploadValidationError.DISALLOWED_TYPE,
                f"File type '{job.mime_type}' is not allowed",
            )
        size = max(job.declared_size, job.actual_size)
        if size > self._max_upload_bytes:
            raise UploadValidationError(
                UploadValidationError.SIZE_EXCEEDED,
                f"File size {size} exceeds the limit of {self._max_upload_bytes} bytes",
            )
        if job.declared_size != job.actual_size:
            raise UploadValidationError(
                UploadValidationError.SIZE_MISMATCH,
                f"Declared size {job.declared_size} does not match "
                f"received size {job.actual_size}",
            )
        return context


class StageUploadStep(PipelineStep):
    """Writes the upload to a job-private scratch file for the scrubbing tools."""

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.scratch is None:
            raise ValueError("PipelineContext.scratch must be set before staging")
        handle = context.scratch.acquire(suffix=context.job.extension)
        handle.path.write_bytes(context.job.data)
        context.source_path = handle.path
        return context


class ScrubMetadataStep(PipelineStep):
    def __init__(self, scrubber: MetadataScrubber) -> None:
        self._scrubber = scrubber

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.source_path is None or context.scratch is None:
            raise ValueError("PipelineContext.source_path must be set before scrubbing")
        try:
            outcome = self._scrubber.scrub(
                context.source_path,
                context.job.mime_type.lower(),
                context.scratch,
            )
        except Exception as exc:
            Log.degraded("scrub", "scrub_failed", str(exc))
            outcome = ScrubOutcome()

        context.scrub_outcome = outcome
        context.final_bytes = outcome.final_bytes(context.job.data)
        if not outcome.cleaned:
            context.degraded["scrub"] = "not_cleaned"
        Log.info(
            f"Scrub for job {context.job.job_id}: cleaned={outcome.cleaned} "
            f"strategy={outcome.strategy}"
        )
        return context


class HashContentStep(PipelineStep):
    def __init__(self, hasher: ContentHasher) -> None:
        self._hasher = hasher

    def run(self, context: PipelineContext) -> PipelineContext:
        context.fingerprint = self._hasher.digest(context.final_bytes)
        Log.info(f"Fingerprint for job {context.job.job_id}: {context.fingerprint}")
        return context


class PublishContentStep(PipelineStep):
    def __init__(self, content_store: BaseContentStore) -> None:
        self._content_store = content_store

    def run(self, context: PipelineContext) -> PipelineContext:
        # The original filename is not published.
        name = f"upload{context.job.extension}"
        try:
            context.content_identifier = self._content_store.publish(context.final_bytes, name)
        except Exception as exc:
            Log.degraded("content_store", "store_unreachable", str(exc))
            context.content_identifier = None

        if context.content_identifier is None and self._content_store.enabled:
            context.degraded["content_store"] = "store_unreachable"
        return context


class AnchorLedgerStep(PipelineStep):
    def __init__(self, ledger: BaseLedger) -> None:
        self._ledger = ledger

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.fingerprint is None:
            raise ValueError("PipelineContext.fingerprint must be set before anchoring")
        outcome = context.scrub_outcome or ScrubOutcome()
        descriptor = LedgerDescriptor(
            mime_type=context.job.mime_type,
            size=context.job.actual_size,
            cleaned_metadata=outcome.cleaned_metadata,
            sensitive_fields=outcome.sensitive_fields,
        )
        try:
            context.ledger_receipt = self._ledger.anchor(
                context.fingerprint,
                context.content_identifier,
                descriptor,
            )
        except LedgerError as exc:
            Log.degraded("ledger", exc.code, str(exc))
            context.degraded["ledger"] = exc.code
            context.ledger_receipt = None
        except Exception as exc:
            Log.degraded("ledger", LedgerError.code, str(exc))
            context.degraded["ledger"] = LedgerError.code
            context.ledger_receipt = None
        return context


class PersistRecordStep(PipelineStep):
    """Stores the final artifact and inserts the provenance record exactly once."""

    def __init__(
        self,
        file_store: FileStore,
        repository: ProvenanceRepository,
        download_url_prefix: str,
    ) -> None:
        self._file_store = file_store
        self._repository = repository
        self._download_url_prefix = download_url_prefix.rstrip("/")

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.fingerprint is None:
            raise ValueError("PipelineContext.fingerprint must be set before persist")
        job = context.job
        outcome = context.scrub_outcome or ScrubOutcome()
        file_id = str(uuid.uuid4())

        try:
            path = self._file_store.save(job.owner, file_id, job.extension, context.final_bytes)
        except OSError as exc:
            raise PersistenceError(f"Could not write artifact for job {job.job_id}: {exc}") from exc

        record = ProvenanceRecord(
            file_id=file_id,
            original_name=job.original_name,
            mime_type=job.mime_type,
            size=job.actual_size,
            storage_path=str(path),
            fingerprint=context.fingerprint.hexdigest,
            owner=job.owner,
            status="processed",
            cleaned=outcome.cleaned,
            created_at=datetime.now(UTC),
            content_identifier=context.content_identifier,
            ledger_tx_id=(
                context.ledger_receipt.transaction_id
                if context.ledger_receipt is not None
                else None
            ),
            original_metadata=outcome.original_metadata,
            cleaned_metadata=outcome.cleaned_metadata,
        )
        try:
            self._repository.insert(record)
        except Exception as exc:
            self._file_store.delete(path)
            if isinstance(exc, PersistenceError):
                raise
            raise PersistenceError(f"Could not store record {file_id}: {exc}") from exc

        context.record = record
        context.status = "processed"
        context.result = UploadResult(
            record=record,
            download_url=f"{self._download_url_prefix}/{file_id}",
            ledger_receipt=context.ledger_receipt,
            sensitive_fields=outcome.sensitive_fields,
            degraded=dict(context.degraded),
        )
        Log.info(f"Stored upload {job.job_id} as {file_id} at {path}")
        return context


class MarkFailedStep(PipelineStep):
    """Runs after a fatal error. Nothing is persisted for failed jobs."""

    def run(self, context: PipelineContext) -> PipelineContext:
        context.status = "failed"
        Log.error(f"Upload {context.job.job_id} failed: {context.error_message}")
        return context
