"""Application-wide objects shared by the HTTP handlers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from services.mailer import Mailer

from .config import Settings
from .errors import PersistenceError
from .ingestion import MailSender, OrderIngestion
from .qr import QRCodeGenerator
from .records import RecordStore
from .redemption import RedemptionService
from .save_queue import SaveSerializer
from .scanner import load_labels, render_scan_page
from .storage import RecordFile

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Owns the record store and every component that touches it."""

    settings: Settings
    store: RecordStore
    record_file: RecordFile
    saver: SaveSerializer
    generator: QRCodeGenerator
    redemption: RedemptionService
    ingestion: OrderIngestion
    labels: Dict[str, str] = field(default_factory=dict)
    _scan_page: Optional[str] = None

    @classmethod
    def build(
        cls,
        settings: Settings,
        *,
        generator: Optional[QRCodeGenerator] = None,
        mailer: Optional[MailSender] = None,
    ) -> "AppContext":
        store = RecordStore()
        record_file = RecordFile(settings.qr_file)

        async def _flush() -> None:
            await record_file.write_all(store.all())

        saver = SaveSerializer(_flush)
        generator = generator or QRCodeGenerator(settings.qr_folder)
        if mailer is None and settings.mail_enabled:
            mailer = Mailer(
                settings.smtp_host,
                settings.smtp_port,
                user=settings.smtp_user,
                password=settings.smtp_password,
                sender=settings.smtp_from,
                timeout=settings.smtp_timeout,
            )
        return cls(
            settings=settings,
            store=store,
            record_file=record_file,
            saver=saver,
            generator=generator,
            redemption=RedemptionService(store, saver),
            ingestion=OrderIngestion(settings, store, saver, generator, mailer),
            labels=load_labels(settings.labels_file),
        )

    @property
    def scan_page(self) -> str:
        if self._scan_page is None:
            self._scan_page = render_scan_page(self.labels)
        return self._scan_page

    async def startup(self) -> None:
        """Load the record file, or start empty and write a fresh one."""
        self.generator.ensure_folder()
        if not self.record_file.exists():
            logger.info("No record file at %s, creating one", self.record_file.path)
            await self._reset()
            return
        try:
            records = await self.record_file.read_all()
        except PersistenceError as exc:
            logger.error("Cannot load %s (%s), starting with an empty store", self.record_file.path, exc)
            self.record_file.quarantine()
            await self._reset()
            return
        self.store.load(records)
        logger.info("Cache loaded with %d QR codes", len(self.store))

    async def _reset(self) -> None:
        self.store.load(())
        try:
            await self.saver.request_save()
        except PersistenceError as exc:
            logger.error("Cannot create %s: %s", self.record_file.path, exc)

    async def shutdown(self) -> None:
        await self.saver.drain()
        logger.info("Record file flushed, %d QR codes", len(self.store))
