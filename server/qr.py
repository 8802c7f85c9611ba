"""QR code image generation."""

from __future__ import annotations

import asyncio
import logging
import os

import qrcode

from .errors import GenerationError

logger = logging.getLogger(__name__)


class QRCodeGenerator:
    """Render payload text as a PNG QR code inside ``folder``."""

    def __init__(self, folder: str) -> None:
        self._folder = folder

    @property
    def folder(self) -> str:
        return self._folder

    def ensure_folder(self) -> None:
        os.makedirs(self._folder, exist_ok=True)

    def path_for(self, order_id: str) -> str:
        return os.path.join(self._folder, f"{order_id}.png")

    def _render(self, target_path: str, payload: str) -> None:
        img = qrcode.make(payload)
        img.save(target_path)

    async def generate(self, target_path: str, payload: str) -> str:
        """Write the QR code for ``payload`` to ``target_path``."""
        try:
            await asyncio.to_thread(self._render, target_path, payload)
        except Exception as exc:
            raise GenerationError(f"QR code generation failed for {target_path}: {exc}") from exc
        logger.debug("QR code written to %s", target_path)
        return target_path
