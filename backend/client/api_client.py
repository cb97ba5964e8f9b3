"""
HTTP client for the Memories REST API.

RemoteMemoryStore is the client's view of the server-side MemoryStore. It
exposes the same operation set and translates HTTP outcomes back into the
domain error taxonomy:

    400 -> ValidationError          401 -> AuthenticationError
    403 -> PermissionDeniedError    404 -> NotFoundError
    502/503/504, timeouts and transport errors -> UnavailableError

It tracks its own connection state so the controller can skip it while it
waits out the retry interval after a failure.
"""

import logging
from typing import Any, List, Optional
from urllib.parse import quote

import httpx
from domain.entities.memory import Actor, Comment, Memory
from domain.exceptions import (
    AuthenticationError,
    MemoriesError,
    NotFoundError,
    PermissionDeniedError,
    UnavailableError,
    ValidationError,
)
from domain.value_objects.enums import ConnectionState
from infrastructure.auth import TOKEN_HEADER
from infrastructure.connection_state import ConnectionMonitor

from client.normalization import normalize_memories, normalize_memory

logger = logging.getLogger("RemoteMemoryStore")

DEFAULT_TIMEOUT = 5.0

STATUS_ERRORS = {
    400: ValidationError,
    401: AuthenticationError,
    403: PermissionDeniedError,
    404: NotFoundError,
}

UNAVAILABLE_STATUSES = {502, 503, 504}


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict) and body.get("detail"):
        return str(body["detail"])
    return f"HTTP {response.status_code}"


class RemoteMemoryStore:
    """Memory store backed by the REST API."""

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
        retry_interval: float = 5.0,
    ):
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)
        self.monitor = ConnectionMonitor("RemoteMemoryStore", retry_interval=retry_interval)

    @classmethod
    def from_settings(cls, settings) -> "RemoteMemoryStore":
        return cls(
            base_url=settings.api_base_url,
            timeout=settings.request_timeout,
            retry_interval=settings.store_reconnect_interval,
        )

    @property
    def state(self) -> ConnectionState:
        return self.monitor.state

    def is_available(self) -> bool:
        return self.monitor.is_available()

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
        self.monitor.reset()

    async def __aenter__(self) -> "RemoteMemoryStore":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        """
        Send one request and return the decoded JSON body.

        Raises:
            UnavailableError: API unreachable or reporting itself unavailable, or a
                non-JSON body came back
            MemoriesError: any other non-2xx outcome, mapped by status code
        """
        if not self.monitor.should_attempt():
            raise UnavailableError()
        if self.monitor.state != ConnectionState.CONNECTED:
            self.monitor.mark_connecting()

        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            self.monitor.mark_disconnected(e)
            raise UnavailableError() from e

        if response.status_code in UNAVAILABLE_STATUSES:
            detail = _error_detail(response)
            self.monitor.mark_disconnected(UnavailableError(detail))
            raise UnavailableError(detail)

        self.monitor.mark_connected()

        if response.is_error:
            detail = _error_detail(response)
            error_cls = STATUS_ERRORS.get(response.status_code)
            if error_cls is None:
                logger.error(f"{method} {path} -> unexpected HTTP {response.status_code}: {detail}")
                error = MemoriesError(detail)
                error.status_code = response.status_code
                raise error
            raise error_cls(detail)

        try:
            return response.json()
        except ValueError as e:
            # A proxy or captive portal answered instead of the API
            self.monitor.mark_disconnected(e)
            raise UnavailableError("Memory API returned an unreadable response") from e

    @staticmethod
    def _path(memory_id: str, suffix: str = "") -> str:
        return f"/memories/{quote(str(memory_id), safe='')}{suffix}"

    # =========================================================================
    # Operations
    # =========================================================================

    async def create(
        self,
        title: Optional[str],
        image_ref: Optional[str],
        author_id: Optional[int],
        author_name: Optional[str],
        description: Optional[str] = None,
    ) -> Memory:
        payload = {
            "title": title,
            "description": description,
            "imageRef": image_ref,
            "authorId": author_id,
            "authorName": author_name,
        }
        return normalize_memory(await self._request("POST", "/memories", json=payload))

    async def list(self, limit: Optional[int] = None) -> List[Memory]:
        params = {"limit": limit} if limit is not None else None
        return normalize_memories(await self._request("GET", "/memories", params=params))

    async def get_by_id(self, memory_id: str) -> Memory:
        return normalize_memory(await self._request("GET", self._path(memory_id)))

    async def delete(self, memory_id: str, actor: Optional[Actor]) -> None:
        if actor is None:
            raise PermissionDeniedError("Please sign in to delete posts")
        headers = {TOKEN_HEADER: actor.token} if actor.token else {}
        await self._request("DELETE", self._path(memory_id), headers=headers)

    async def toggle_like(self, memory_id: str, user_id: Optional[int]) -> Memory:
        body = await self._request("POST", self._path(memory_id, "/like"), json={"userId": user_id})
        return normalize_memory(body)

    async def add_comment(
        self,
        memory_id: str,
        author_id: Optional[int],
        author_name: Optional[str],
        text: Optional[str],
    ) -> Comment:
        payload = {"text": text, "authorId": author_id, "authorName": author_name}
        body = await self._request("POST", self._path(memory_id, "/comments"), json=payload)
        return Comment.from_document(body)
