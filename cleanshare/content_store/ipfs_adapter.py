import httpx

from cleanshare.content_store.base import BaseContentStore
from cleanshare.content_store.exceptions import StoreUnreachableError
from cleanshare.logging.logger import Log


class IpfsContentStore(BaseContentStore):
    """Publishes bytes through the IPFS HTTP API (``/api/v0/add``)."""

    ADD_PATH = "/api/v0/add"

    def __init__(
        self,
        *,
        api_url: str,
        timeout_seconds: float,
        project_id: str = "",
        project_secret: str = "",
        client: httpx.Client | None = None,
    ) -> None:
        auth = httpx.BasicAuth(project_id, project_secret) if project_id else None
        self._client = client or httpx.Client(
            base_url=api_url.rstrip("/"),
            timeout=timeout_seconds,
            auth=auth,
        )

    def publish(self, data: bytes, name: str = "upload") -> str | None:
        try:
            return self._add(data, name)
        except StoreUnreachableError as exc:
            Log.degraded("content_store", "store_unreachable", str(exc))
            return None

    def close(self) -> None:
        self._client.close()

    def _add(self, data: bytes, name: str) -> str:
        try:
            response = self._client.post(
                self.ADD_PATH,
                params={"pin": "true", "cid-version": "1"},
                files={"file": (name, data, "application/octet-stream")},
            )
            response.raise_for_status()
        except (httpx.ConnectError, httpx.TimeoutException) as exc:
            raise StoreUnreachableError(f"IPFS network error: {exc}") from exc
        except httpx.HTTPError as exc:
            raise StoreUnreachableError(f"IPFS API error: {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise StoreUnreachableError(f"IPFS returned invalid JSON: {exc}") from exc
        cid = payload.get("Hash") if isinstance(payload, dict) else None
        if not cid or not isinstance(cid, str):
            raise StoreUnreachableError("IPFS response has no 'Hash' field")
        Log.info(f"Stored {len(data)} bytes in IPFS as {cid}")
        return cid
