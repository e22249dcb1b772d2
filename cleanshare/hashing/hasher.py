import hashlib
from dataclasses import dataclass


@dataclass(frozen=True)
class ContentFingerprint:
    """Fixed-length digest identifying file content irrespective of name or location."""

    algorithm: str
    hexdigest: str

    def __str__(self) -> str:
        return self.hexdigest


class ContentHasher:
    """Deterministic, unsalted SHA-256 over the final byte stream."""

    ALGORITHM = "sha256"

    def digest(self, data: bytes) -> ContentFingerprint:
        return ContentFingerprint(
            algorithm=self.ALGORITHM,
            hexdigest=hashlib.sha256(data).hexdigest(),
        )
