"""Runtime configuration read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    """Service settings. ``from_env`` is the normal way to build one."""

    qr_file: str = "./qrcodes.json"
    qr_folder: str = "./public/qrcodes"
    public_base_url: str = "http://localhost:3000"
    product_marker: str = "QR Test"
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_from: Optional[str] = None
    smtp_timeout: float = 30.0
    labels_file: Optional[str] = None
    port: int = 3000
    log_level: str = "INFO"

    @property
    def mail_enabled(self) -> bool:
        return bool(self.smtp_host)

    def scan_url(self, order_id: str) -> str:
        return f"{self.public_base_url}/scan?order_id={order_id}"

    def code_url(self, order_id: str) -> str:
        return f"{self.public_base_url}/qrcodes/{order_id}.png"

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None, *, dotenv: bool = True
    ) -> "Settings":
        """Build settings from ``environ`` (``os.environ`` by default).

        A ``.env`` file in the working directory is loaded first unless
        ``dotenv`` is false. Variables already set are not overridden.
        """
        if environ is None:
            if dotenv:
                load_dotenv()
            environ = os.environ

        def _get(name: str, default: Optional[str] = None) -> Optional[str]:
            value = environ.get(name)
            return value if value not in (None, "") else default

        base_url = _get("PUBLIC_BASE_URL") or _get("SERVER_URL") or cls.public_base_url
        return cls(
            qr_file=_get("QR_FILE", cls.qr_file),
            qr_folder=_get("QR_FOLDER", cls.qr_folder),
            public_base_url=base_url.rstrip("/"),
            product_marker=_get("PRODUCT_MARKER", cls.product_marker),
            smtp_host=_get("SMTP_HOST"),
            smtp_port=int(_get("SMTP_PORT", str(cls.smtp_port))),
            smtp_user=_get("SMTP_USER"),
            smtp_password=_get("SMTP_PASS"),
            smtp_from=_get("SMTP_FROM"),
            smtp_timeout=float(_get("SMTP_TIMEOUT", str(cls.smtp_timeout))),
            labels_file=_get("LABELS_FILE"),
            port=int(_get("PORT", str(cls.port))),
            log_level=_get("LOG_LEVEL", cls.log_level).upper(),
        )
