"""CouchDB UUID client.

This module fetches batches of server-generated UUIDs from the
``/_uuids`` endpoint at the root of a CouchDB instance.
"""

from __future__ import annotations

from typing import Any

import httpx

from core.constants import COUCHDB_UUIDS_PATH, DEFAULT_REQUEST_TIMEOUT_SECONDS
from core.errors import DocshiftFetchError
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)


class CouchUuidClient:
    """Async HTTP client for CouchDB ``/_uuids``."""

    def __init__(
        self,
        root_url: str,
        *,
        timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._root_url = root_url
        self._client = httpx.AsyncClient(
            base_url=root_url,
            timeout=timeout,
            transport=transport,
        )

    @property
    def root_url(self) -> str:
        """CouchDB instance root the client talks to."""
        return self._root_url

    async def __aenter__(self) -> "CouchUuidClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release pooled connections."""
        await self._client.aclose()

    async def fetch_identifiers(self, count: int) -> list[str]:
        """Fetch a batch of unique identifiers.

        Args:
            count: Number of identifiers to request.

        Returns:
            Identifiers in server order.

        Raises:
            DocshiftFetchError: If the request fails or the response is malformed.
        """
        _LOGGER.debug("uuid_fetch_started", couchdb_root_url=self._root_url, count=count)
        try:
            response = await self._client.get(COUCHDB_UUIDS_PATH, params={"count": count})
            response.raise_for_status()
        except httpx.HTTPStatusError as error:
            raise DocshiftFetchError(
                f"CouchDB at {self._root_url} answered {error.response.status_code} "
                f"for {COUCHDB_UUIDS_PATH}?count={count}. Check --url and the server "
                "uuids/max_count setting."
            ) from error
        except httpx.HTTPError as error:
            raise DocshiftFetchError(
                f"Failed to fetch UUIDs from {self._root_url}: {error}. "
                "Check that CouchDB is reachable and retry."
            ) from error
        identifiers = _parse_uuids_payload(self._root_url, response)
        _LOGGER.debug(
            "uuid_fetch_completed",
            couchdb_root_url=self._root_url,
            count=len(identifiers),
        )
        return identifiers


def _parse_uuids_payload(root_url: str, response: httpx.Response) -> list[str]:
    """Validate a ``/_uuids`` response body.

    Args:
        root_url: CouchDB root for error context.
        response: Successful HTTP response.

    Returns:
        Identifier strings.

    Raises:
        DocshiftFetchError: If the body is not ``{"uuids": [str, ...]}``.
    """
    try:
        payload: Any = response.json()
    except ValueError as error:
        raise DocshiftFetchError(
            f"Invalid {COUCHDB_UUIDS_PATH} response from {root_url}: body is not JSON."
        ) from error
    uuids = payload.get("uuids") if isinstance(payload, dict) else None
    if not isinstance(uuids, list) or not uuids:
        raise DocshiftFetchError(
            f"Invalid {COUCHDB_UUIDS_PATH} response from {root_url}: "
            "expected a non-empty 'uuids' list."
        )
    if not all(isinstance(identifier, str) for identifier in uuids):
        raise DocshiftFetchError(
            f"Invalid {COUCHDB_UUIDS_PATH} response from {root_url}: "
            "every uuid must be a string."
        )
    return uuids
