import argparse
import json
import mimetypes
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from cleanshare.config.settings import Settings
from cleanshare.database.connection import close_pool, init_pool
from cleanshare.database.repositories.provenance_repository import ProvenanceRepository
from cleanshare.hashing.hasher import ContentHasher
from cleanshare.logging.logger import Log
from cleanshare.processor.exceptions import RecordNotFoundError, UploadValidationError
from cleanshare.processor.file_store import FileStore
from cleanshare.processor.models import UploadJob
from cleanshare.processor.processor import Processor, build_processor
from cleanshare.scrubbing.factory import ScrubberFactory

DEFAULT_MIME_TYPE = "application/octet-stream"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cleanshare")
    sub = parser.add_subparsers(dest="command", required=True)

    process = sub.add_parser("process", help="scrub, fingerprint and record files")
    process.add_argument("files", nargs="+", type=Path)
    process.add_argument("--mime-type", default=None)
    process.add_argument("--owner", default="anonymous")
    process.add_argument("--workers", type=int, default=1)

    sub.add_parser("capabilities", help="report which scrub strategies are usable")

    info = sub.add_parser("info", help="print a stored provenance record")
    info.add_argument("file_id")
    return parser


def guess_mime_type(path: Path) -> str:
    mime_type, _ = mimetypes.guess_type(path.name)
    return mime_type or DEFAULT_MIME_TYPE


def load_job(path: Path, mime_type: str | None, owner: str) -> UploadJob:
    data = path.read_bytes()
    return UploadJob(
        original_name=path.name,
        mime_type=mime_type or guess_mime_type(path),
        declared_size=len(data),
        data=data,
        owner=owner,
    )


def process_one(
    processor: Processor,
    path: Path,
    mime_type: str | None,
    owner: str,
) -> tuple[bool, dict[str, object]]:
    """Process a single file; failures become structured error payloads."""
    try:
        job = load_job(path, mime_type, owner)
        return True, processor.process(job).to_dict()
    except UploadValidationError as exc:
        return False, {**exc.to_dict(), "file": str(path)}
    except Exception as exc:
        Log.error(f"Processing {path} failed: {exc}")
        return False, {"error": "processing_error", "message": str(exc), "file": str(path)}


def run_process(settings: Settings, args: argparse.Namespace) -> int:
    processor = build_processor(settings)
    workers = max(1, args.workers)
    with ThreadPoolExecutor(max_workers=workers) as pool:
        outcomes = list(
            pool.map(
                lambda path: process_one(processor, path, args.mime_type, args.owner),
                args.files,
            )
        )
    for _, payload in outcomes:
        print(json.dumps(payload, sort_keys=True))
    return 0 if all(ok for ok, _ in outcomes) else 1


def run_capabilities(settings: Settings) -> int:
    scrubber = ScrubberFactory.create(settings)
    report = {strategy.name: strategy.is_available() for strategy in scrubber.strategies}
    print(json.dumps(report, indent=2, sort_keys=True))
    return 0


def run_info(settings: Settings, args: argparse.Namespace) -> int:
    """Print a stored record and whether its artifact still matches the fingerprint."""
    try:
        record = ProvenanceRepository().find_by_file_id(args.file_id)
    except RecordNotFoundError as exc:
        print(json.dumps({"error": "not_found", "message": str(exc)}))
        return 1

    file_store = FileStore(files_root=Path(settings.files_root))
    try:
        data = file_store.load(Path(record.storage_path))
    except FileNotFoundError as exc:
        Log.warning(f"Artifact of record {record.file_id} is missing: {exc}")
        integrity_ok = False
    else:
        integrity_ok = ContentHasher().digest(data).hexdigest == record.fingerprint

    payload = {**record.to_dict(), "integrityOk": integrity_ok}
    print(json.dumps(payload, indent=2, sort_keys=True))
    return 0 if integrity_ok else 1


def main(argv: list[str] | None = None) -> int:
    """Entry point: parse args -> load settings -> run the selected command."""
    args = build_parser().parse_args(argv)
    settings = Settings()
    Log.configure(settings.log_level)

    if args.command == "capabilities":
        return run_capabilities(settings)

    init_pool(settings)
    try:
        if args.command == "info":
            return run_info(settings, args)
        return run_process(settings, args)
    finally:
        close_pool()


if __name__ == "__main__":
    sys.exit(main())
