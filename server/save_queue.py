"""Single-flight writer for the record file."""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Awaitable, Callable, List, Optional

from .errors import PersistenceError

logger = logging.getLogger(__name__)


class SaveSerializer:
    """Serialise flushes of the record store to durable storage.

    Any number of callers may ask for a save at the same time, but only one
    flush ever runs. Callers that arrive while a flush is in flight wait for
    the next one, and all of them share that next flush. The busy flag is
    held across the write itself.

    A failed flush raises :class:`PersistenceError` in the callers that were
    waiting on it. Later requests are still served.
    """

    def __init__(self, flush: Callable[[], Awaitable[None]]) -> None:
        self._flush = flush
        self._pending: List[asyncio.Future] = []
        self._busy = False
        self._task: Optional[asyncio.Task] = None
        self._flush_ids = itertools.count(1)

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def queued(self) -> int:
        return len(self._pending)

    async def request_save(self) -> None:
        """Return once a flush that started after this call has finished."""
        loop = asyncio.get_running_loop()
        waiter = loop.create_future()
        self._pending.append(waiter)
        logger.debug("Save requested, queue length %d", len(self._pending))
        if not self._busy:
            self._busy = True
            self._task = loop.create_task(self._drain())
        await waiter

    async def drain(self) -> None:
        """Wait until no flush is running and nothing is queued."""
        while self._task is not None and not self._task.done():
            await asyncio.shield(self._task)

    async def _drain(self) -> None:
        try:
            while self._pending:
                batch, self._pending = self._pending, []
                flush_id = next(self._flush_ids)
                logger.info(
                    "[%d] Flush started for %d request(s), %d queued",
                    flush_id, len(batch), len(self._pending),
                )
                try:
                    await self._flush()
                except Exception as exc:
                    logger.error("[%d] Flush failed: %s", flush_id, exc)
                    error = (
                        exc
                        if isinstance(exc, PersistenceError)
                        else PersistenceError(str(exc))
                    )
                    for waiter in batch:
                        if not waiter.done():
                            waiter.set_exception(error)
                else:
                    logger.info("[%d] Flush finished", flush_id)
                    for waiter in batch:
                        if not waiter.done():
                            waiter.set_result(None)
        finally:
            self._busy = False
