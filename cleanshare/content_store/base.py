from abc import ABC, abstractmethod


class BaseContentStore(ABC):
    """Contract for content-addressable store adapters."""

    enabled: bool = True

    @abstractmethod
    def publish(self, data: bytes, name: str = "upload") -> str | None:
        """Push *data* to the store.

        Returns:
            The store's content identifier, or None when the store is
            disabled or could not be reached. Never raises for network
            failures.
        """


class DisabledContentStore(BaseContentStore):
    """Used when no store is configured. Makes no network calls."""

    enabled = False

    def publish(self, data: bytes, name: str = "upload") -> str | None:
        _ = data, name
        return None
