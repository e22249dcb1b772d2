class ContentStoreError(Exception):
    """Base exception for content-addressable store errors."""


class StoreUnreachableError(ContentStoreError):
    """Raised when the store cannot be reached or rejects the upload."""


class StoreMisconfiguredError(ContentStoreError):
    """Raised at configuration time when store settings are malformed."""
