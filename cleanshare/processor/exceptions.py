class ProcessorError(Exception):
    """Base exception for all upload-processing errors."""


class UploadValidationError(ProcessorError):
    """Raised when an upload violates an acceptance constraint. Fatal, nothing is processed."""

    DISALLOWED_TYPE = "disallowed_type"
    SIZE_EXCEEDED = "size_exceeded"
    SIZE_MISMATCH = "size_mismatch"

    def __init__(self, constraint: str, message: str) -> None:
        super().__init__(message)
        self.constraint = constraint

    def to_dict(self) -> dict[str, str]:
        return {
            "error": "validation_error",
            "constraint": self.constraint,
            "message": str(self),
        }


class PersistenceError(ProcessorError):
    """Raised when the final record cannot be durably stored. Fatal."""


class RecordNotFoundError(ProcessorError):
    """Raised when a provenance record cannot be found in the database."""
