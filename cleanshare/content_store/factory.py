from urllib.parse import urlparse

from cleanshare.config.settings import Settings
from cleanshare.content_store.base import BaseContentStore, DisabledContentStore
from cleanshare.content_store.exceptions import StoreMisconfiguredError
from cleanshare.content_store.ipfs_adapter import IpfsContentStore
from cleanshare.logging.logger import Log


class ContentStoreFactory:
    """Creates the content store adapter; an empty URL disables the stage."""

    @classmethod
    def create(cls, settings: Settings) -> BaseContentStore:
        url = settings.content_store_url.strip()
        if not url:
            Log.info("Content store not configured, publishing disabled")
            return DisabledContentStore()

        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise StoreMisconfiguredError(
                f"content_store_url must be an http(s) URL, got '{url}'"
            )
        if settings.content_store_project_secret and not settings.content_store_project_id:
            raise StoreMisconfiguredError(
                "content_store_project_secret is set without content_store_project_id"
            )
        return IpfsContentStore(
            api_url=url,
            timeout_seconds=settings.content_store_timeout_seconds,
            project_id=settings.content_store_project_id,
            project_secret=settings.content_store_project_secret,
        )
