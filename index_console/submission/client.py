from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Optional, Protocol
from urllib.parse import quote

import httpx

from ..exceptions import BackendError
from .models import ParsedDocument
from .selectable_list import ListValues, list_values

logger = logging.getLogger(__name__)


class IndexingClient(Protocol):
    async def index_json(self, schema_name: str, index_name: str, document: ParsedDocument) -> int:
        ...

    async def list_schemas(self) -> ListValues:
        ...

    async def list_indexes(self, schema_name: str) -> ListValues:
        ...


@dataclass
class ClientConfig:
    base_url: str = "http://localhost:9090"
    timeout: Optional[float] = None

    @classmethod
    def from_env(cls) -> "ClientConfig":
        timeout = os.getenv("INDEX_CONSOLE_TIMEOUT")
        return cls(
            base_url=os.getenv("INDEX_CONSOLE_BASE_URL", cls.base_url),
            timeout=float(timeout) if timeout else None,
        )


def _segment(name: str) -> str:
    return quote(name, safe="")


def error_detail(response: httpx.Response) -> str:
    """
    Pick the text a user should see for a failed response: the JSON
    `detail`/`message` field, else the raw body, else the status line.
    """
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        for key in ("detail", "message"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
    text = response.text.strip()
    if text:
        return text
    return f"{response.status_code} {response.reason_phrase}".strip()


class HttpIndexingClient:
    """
    httpx-based client for the `/ws/indexes` endpoints. No timeout is
    applied unless one is configured; a pending request stays pending.
    """

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    @classmethod
    def from_config(cls, config: ClientConfig, transport: Optional[httpx.AsyncBaseTransport] = None) -> "HttpIndexingClient":
        return cls(config.base_url, timeout=config.timeout, transport=transport)

    async def __aenter__(self) -> "HttpIndexingClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def index_json(self, schema_name: str, index_name: str, document: ParsedDocument) -> int:
        path = f"/ws/indexes/{_segment(schema_name)}/{_segment(index_name)}/json"
        logger.info("Posting document to %s", path)
        payload = await self._request(
            "POST",
            path,
            content=document.wire_body(),
            headers={"Content-Type": "application/json"},
        )
        if isinstance(payload, bool) or not isinstance(payload, int) or payload < 0:
            raise BackendError(f"Unexpected indexing response: {payload!r}")
        return payload

    async def list_schemas(self) -> ListValues:
        payload = await self._request("GET", "/ws/indexes")
        return self._as_list(payload)

    async def list_indexes(self, schema_name: str) -> ListValues:
        payload = await self._request("GET", f"/ws/indexes/{_segment(schema_name)}")
        return self._as_list(payload)

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise BackendError(str(exc) or exc.__class__.__name__) from exc

        if response.is_error:
            detail = error_detail(response)
            logger.warning("%s %s returned %s: %s", method, path, response.status_code, detail)
            raise BackendError(detail, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as exc:
            raise BackendError(f"Malformed response from {path}: {response.text[:200]}") from exc

    def _as_list(self, payload: Any) -> ListValues:
        try:
            values = list_values(payload)
        except TypeError as exc:
            raise BackendError(f"Unexpected listing response: {payload!r}") from exc
        if values is None:
            raise BackendError("Empty listing response")
        return values
