class ScrubError(Exception):
    """Base exception for all metadata-scrubbing errors."""


class ToolUnavailableError(ScrubError):
    """Raised when an external scrubbing tool is missing or not functional."""


class ScrubExecutionError(ScrubError):
    """Raised when a scrubbing tool ran but did not produce a usable file."""


class MetadataReadError(ScrubError):
    """Raised when embedded metadata cannot be extracted from a file."""
