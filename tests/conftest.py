import json
import sys
from pathlib import Path
import pytest

# Ensure repository root is on sys.path for imports
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from server.config import Settings  # noqa: E402
from server.errors import GenerationError  # noqa: E402
from server.qr import QRCodeGenerator  # noqa: E402


class FakeGenerator(QRCodeGenerator):
    """Writes a placeholder file instead of rendering a real QR code."""

    def __init__(self, folder, fail=False):
        super().__init__(folder)
        self.fail = fail
        self.calls = []

    async def generate(self, target_path, payload):
        self.calls.append((target_path, payload))
        if self.fail:
            raise GenerationError("boom")
        Path(target_path).write_bytes(b"\x89PNG fake")
        return target_path


class FakeMailer:
    """Records every email and, optionally, what was on disk at send time."""

    def __init__(self, ok=True, record_file=None):
        self.ok = ok
        self.record_file = record_file
        self.sent = []
        self.saved_at_send = []

    async def send(self, to_address, subject, html_body):
        self.sent.append((to_address, subject, html_body))
        if self.record_file is not None:
            data = json.loads(Path(self.record_file).read_text(encoding="utf-8"))
            self.saved_at_send.append([r["order_id"] for r in data])
        return self.ok


@pytest.fixture
def settings(tmp_path):
    return Settings(
        qr_file=str(tmp_path / "qrcodes.json"),
        qr_folder=str(tmp_path / "public" / "qrcodes"),
        public_base_url="https://pickup.example.com",
        product_marker="QR Test",
    )


@pytest.fixture
def generator(settings):
    gen = FakeGenerator(settings.qr_folder)
    gen.ensure_folder()
    return gen


@pytest.fixture
def mailer(settings):
    return FakeMailer(record_file=settings.qr_file)


def order_payload(order_id, *items, email="jane@example.com", customer=True):
    payload = {
        "id": order_id,
        "email": email,
        "line_items": [{"title": t, "quantity": q} for t, q in items],
    }
    if customer:
        payload["customer"] = {"first_name": "Jane", "last_name": "Doe"}
    return payload
