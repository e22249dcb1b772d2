import base64
import json
from dataclasses import dataclass, field

MetadataValue = str | int | float | bool | bytes
MetadataSnapshot = dict[str, MetadataValue]

# Fields whose presence in an upload means it carried identifying data.
SENSITIVE_FIELDS = frozenset(
    {
        "gpslatitude",
        "gpslongitude",
        "gpsposition",
        "gpsaltitude",
        "creator",
        "author",
        "artist",
        "lastmodifiedby",
        "ownername",
        "make",
        "model",
        "serialnumber",
        "createdate",
        "creationdate",
        "modifydate",
        "moddate",
        "datetimeoriginal",
        "software",
        "producer",
        "history",
        "xmptoolkit",
    }
)


def to_metadata_value(value: object) -> MetadataValue:
    """Coerce a tool-reported value into the open metadata vocabulary."""
    if isinstance(value, (str, int, float, bool, bytes)):
        return value
    if value is None:
        return ""
    try:
        return json.dumps(value, default=str, sort_keys=True)
    except (TypeError, ValueError):
        return str(value)


def find_sensitive_fields(snapshot: MetadataSnapshot) -> list[str]:
    """Return the snapshot keys that are known to identify a person, place or device."""
    return sorted(
        key for key in snapshot if key.lstrip("/").lower() in SENSITIVE_FIELDS
    )


@dataclass
class ScrubAttempt:
    """Result of running one scrubbing strategy on one file."""

    strategy: str
    succeeded: bool
    data: bytes | None = None
    metadata: MetadataSnapshot = field(default_factory=dict)
    error: str = ""


@dataclass
class ScrubOutcome:
    """Job-level scrubbing decision.

    ``accepted`` is the first succeeded attempt, or None when every strategy
    was unavailable or failed. The original snapshot is always kept for audit.
    """

    original_metadata: MetadataSnapshot = field(default_factory=dict)
    attempts: list[ScrubAttempt] = field(default_factory=list)
    accepted: ScrubAttempt | None = None

    def __post_init__(self) -> None:
        if self.accepted is not None and (
            not self.accepted.succeeded or self.accepted.data is None
        ):
            raise ValueError("Only a succeeded attempt with output can be accepted")

    @property
    def cleaned(self) -> bool:
        return self.accepted is not None

    @property
    def strategy(self) -> str | None:
        return self.accepted.strategy if self.accepted is not None else None

    @property
    def cleaned_metadata(self) -> MetadataSnapshot:
        return dict(self.accepted.metadata) if self.accepted is not None else {}

    @property
    def sensitive_fields(self) -> list[str]:
        return find_sensitive_fields(self.original_metadata)

    def final_bytes(self, original: bytes) -> bytes:
        """Cleaned output when a strategy succeeded, otherwise *original* unchanged."""
        if self.accepted is not None and self.accepted.data is not None:
            return self.accepted.data
        return original


def snapshot_to_json(snapshot: MetadataSnapshot) -> dict[str, str | int | float | bool]:
    """JSON-safe copy of a snapshot; binary values become ``base64:``-prefixed text."""
    return {
        key: "base64:" + base64.b64encode(value).decode("ascii")
        if isinstance(value, bytes)
        else value
        for key, value in snapshot.items()
    }
