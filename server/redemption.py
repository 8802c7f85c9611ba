"""Verification and redemption of passes."""

from __future__ import annotations

import logging

from .errors import AlreadyUsedError, NotFoundError
from .records import Record, RecordStore
from .save_queue import SaveSerializer

logger = logging.getLogger(__name__)


class RedemptionService:
    """Look up passes and redeem them exactly once."""

    def __init__(self, store: RecordStore, saver: SaveSerializer) -> None:
        self._store = store
        self._saver = saver

    def _lookup(self, order_id: str) -> Record:
        record = self._store.get(order_id)
        if record is None:
            logger.info("QR code #%s not found", order_id)
            raise NotFoundError(order_id)
        return record

    def verify(self, order_id: str) -> Record:
        """Return the record for ``order_id`` if it can still be redeemed.

        Nothing is modified; redeeming is a separate call to :meth:`confirm`.
        """
        record = self._lookup(order_id)
        if not record.is_active:
            logger.info("QR code already used for order #%s", order_id)
            raise AlreadyUsedError(order_id)
        logger.info("QR code validated for order #%s", order_id)
        return record

    async def confirm(self, order_id: str) -> Record:
        """Mark the pass as used and wait for the change to be saved."""
        record = self._lookup(order_id)
        try:
            record.redeem()
        except AlreadyUsedError:
            logger.warning("Second redemption attempt for order #%s", order_id)
            raise
        await self._saver.request_save()
        logger.info("QR code confirmed for order #%s", order_id)
        return record
