"""Single-flight identifier batch coordinator.

This module hands out unique identifiers from a locally cached batch.
When the batch runs dry, one fetch is started and every caller arriving
meanwhile waits in a FIFO queue for that fetch to land or fail.
"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Awaitable, Callable

from core.errors import DocshiftFetchError
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)

FetchIdentifiers = Callable[[int], Awaitable[list[str]]]


class IdentifierCoordinator:
    """Serve identifier requests from shared, single-flight batch fetches.

    All state is touched from the event loop thread only, so no locking is
    needed. A fetch always asks for the batch size of the request that
    started it; waiters that joined later share that batch and trigger a
    second fetch if it runs out before their turn.
    """

    def __init__(self, fetch_identifiers: FetchIdentifiers) -> None:
        self._fetch_identifiers = fetch_identifiers
        self._batch: deque[str] = deque()
        self._fetch_task: asyncio.Task[None] | None = None
        self._waiters: deque[asyncio.Future[None]] = deque()
        self._issued_count = 0
        self._fetch_count = 0

    @property
    def fetch_in_flight(self) -> bool:
        """Whether a batch fetch is currently outstanding."""
        return self._fetch_task is not None

    @property
    def issued_count(self) -> int:
        """Number of identifiers handed out so far."""
        return self._issued_count

    @property
    def fetch_count(self) -> int:
        """Number of batch fetches started so far."""
        return self._fetch_count

    @property
    def cached_count(self) -> int:
        """Number of identifiers left in the cached batch."""
        return len(self._batch)

    async def request_identifier(self, batch_size: int) -> str:
        """Return the next unused identifier.

        Args:
            batch_size: Identifiers to fetch if this call has to start a fetch.

        Returns:
            An identifier not issued before by this coordinator.

        Raises:
            DocshiftFetchError: If the fetch this call waited on failed.
        """
        while True:
            if self._batch:
                self._issued_count += 1
                return self._batch.popleft()
            if self._fetch_task is None:
                self._start_fetch(batch_size)
            waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
            self._waiters.append(waiter)
            await waiter

    def _start_fetch(self, batch_size: int) -> None:
        self._fetch_count += 1
        _LOGGER.debug("identifier_fetch_started", batch_size=batch_size, fetch=self._fetch_count)
        self._fetch_task = asyncio.get_running_loop().create_task(self._run_fetch(batch_size))

    async def _run_fetch(self, batch_size: int) -> None:
        try:
            identifiers = await self._fetch_identifiers(max(batch_size, 1))
        except asyncio.CancelledError:
            self._fetch_task = None
            self._fail_waiters(DocshiftFetchError("Identifier fetch was cancelled."))
            raise
        except Exception as error:
            self._fetch_task = None
            self._fail_waiters(_as_fetch_error(error))
            return
        self._batch.extend(identifiers)
        self._fetch_task = None
        self._wake_waiters()

    def _wake_waiters(self) -> None:
        waiters = self._take_waiters()
        _LOGGER.debug(
            "identifier_batch_arrived",
            cached=len(self._batch),
            waiters=len(waiters),
        )
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)

    def _fail_waiters(self, error: DocshiftFetchError) -> None:
        waiters = self._take_waiters()
        _LOGGER.error("identifier_fetch_failed", error=str(error), waiters=len(waiters))
        for waiter in waiters:
            if not waiter.done():
                waiter.set_exception(error)

    def _take_waiters(self) -> list[asyncio.Future[None]]:
        waiters = list(self._waiters)
        self._waiters.clear()
        return waiters


def _as_fetch_error(error: Exception) -> DocshiftFetchError:
    """Wrap unexpected fetch failures so every waiter sees one error type."""
    if isinstance(error, DocshiftFetchError):
        return error
    wrapped = DocshiftFetchError(f"Identifier fetch failed: {error}")
    wrapped.__cause__ = error
    return wrapped
