import os
import re
from pathlib import Path

_UNSAFE_OWNER_RE = re.compile(r"[^A-Za-z0-9_.-]")


def artifact_file_path(files_root: Path, owner: str, file_id: str, extension: str) -> Path:
    """Build path to a stored artifact: {files_root}/{owner}/{file_id}{extension}"""
    safe_owner = _UNSAFE_OWNER_RE.sub("_", owner).strip(".") or "anonymous"
    return files_root / safe_owner / f"{file_id}{extension}"


class FileStore:
    """Writes final artifacts to local disk and removes them on rollback."""

    FILES_ROOT = Path("/app/files")

    def __init__(self, files_root: Path | None = None) -> None:
        self._files_root = files_root if files_root is not None else self.FILES_ROOT

    @property
    def files_root(self) -> Path:
        return self._files_root

    def save(self, owner: str, file_id: str, extension: str, data: bytes) -> Path:
        """Atomically write *data* and return its final path.

        Raises:
            OSError: if the file cannot be written.
        """
        path = artifact_file_path(self._files_root, owner, file_id, extension)
        path.parent.mkdir(parents=True, exist_ok=True)
        partial = path.with_name(f"{path.name}.part")
        try:
            partial.write_bytes(data)
            os.replace(partial, path)
        finally:
            partial.unlink(missing_ok=True)
        return path

    def delete(self, path: Path) -> None:
        path.unlink(missing_ok=True)

    def load(self, path: Path) -> bytes:
        """Read a stored artifact.

        Raises:
            FileNotFoundError: if the artifact is missing.
        """
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        return path.read_bytes()
