"""Turn incoming orders into pickup passes."""

from __future__ import annotations

import logging
import re
from typing import Optional, Protocol

from services.mailer import pass_email

from .config import Settings
from .errors import GenerationError, PersistenceError
from .models import LineItem, OrderWebhook
from .qr import QRCodeGenerator
from .records import Record, RecordStatus, RecordStore
from .save_queue import SaveSerializer

logger = logging.getLogger(__name__)

SAFE_ORDER_ID = re.compile(r"^[A-Za-z0-9_-]+$")


class MailSender(Protocol):
    async def send(self, to_address: str, subject: str, html_body: str) -> bool:
        ...


def find_marked_item(order: OrderWebhook, marker: str) -> Optional[LineItem]:
    """Return the first line item whose title contains ``marker``."""
    needle = marker.casefold()
    return next(
        (item for item in order.line_items if needle in (item.title or "").casefold()),
        None,
    )


class OrderIngestion:
    """Create a pass for each order that contains a marked product.

    The record is saved before the customer is emailed. An order id that
    already has a pass is skipped so redelivered webhooks cannot reactivate
    a redeemed pass.
    """

    def __init__(
        self,
        settings: Settings,
        store: RecordStore,
        saver: SaveSerializer,
        generator: QRCodeGenerator,
        mailer: Optional[MailSender] = None,
    ) -> None:
        self._settings = settings
        self._store = store
        self._saver = saver
        self._generator = generator
        self._mailer = mailer

    async def handle(self, order: OrderWebhook) -> Optional[Record]:
        order_id = order.order_id
        logger.info(
            "Webhook received for order #%s, products: %s",
            order_id, [item.title for item in order.line_items],
        )

        item = find_marked_item(order, self._settings.product_marker)
        if item is None:
            logger.info("No marked product in order #%s, no QR code generated", order_id)
            return None
        if not item.has_valid_quantity:
            logger.warning(
                "Order #%s skipped: invalid quantity %r on %r", order_id, item.quantity, item.title
            )
            return None
        if not SAFE_ORDER_ID.match(order_id):
            logger.warning("Rejected order id %r: not usable as a file name", order_id)
            return None
        if order_id in self._store:
            logger.info("Order #%s already has a QR code, skipping", order_id)
            return None

        try:
            await self._generator.generate(
                self._generator.path_for(order_id),
                self._settings.scan_url(order_id),
            )
        except GenerationError as exc:
            logger.error("Order #%s skipped: %s", order_id, exc)
            return None

        # re-check after the suspension, a concurrent delivery may have won
        if order_id in self._store:
            logger.info("Order #%s already has a QR code, skipping", order_id)
            return None

        record = Record(
            order_id=order_id,
            customer_name=order.customer.full_name if order.customer else None,
            product_name=item.title or "",
            quantity=item.quantity,
            status=RecordStatus.ACTIVE,
            code_url=self._settings.code_url(order_id),
        )
        self._store.put(record)
        try:
            await self._saver.request_save()
        except PersistenceError as exc:
            # kept in memory, the next successful flush writes it
            logger.error("Pass for order #%s not saved yet: %s", order_id, exc)
        logger.info("QR code generated and hosted for order #%s", order_id)

        await self._notify(order, record)
        return record

    async def _notify(self, order: OrderWebhook, record: Record) -> None:
        if not order.email:
            logger.warning("No email address on order #%s", record.order_id)
            return
        if self._mailer is None:
            logger.info("Mail disabled, not emailing order #%s", record.order_id)
            return
        subject, html_body = pass_email(record.order_id, record.code_url)
        await self._mailer.send(order.email, subject, html_body)
