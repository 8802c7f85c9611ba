"""Error types raised by the pass service."""

from __future__ import annotations


class PassError(Exception):
    """Base class for all service errors."""

    code = "error"


class NotFoundError(PassError):
    """No record exists for the requested order id."""

    code = "not_found"

    def __init__(self, order_id: str) -> None:
        super().__init__(f"QR code for order #{order_id} not found")
        self.order_id = order_id


class AlreadyUsedError(PassError):
    """The pass was already redeemed."""

    code = "already_used"

    def __init__(self, order_id: str) -> None:
        super().__init__(f"QR code for order #{order_id} already used")
        self.order_id = order_id


class PersistenceError(PassError):
    """Reading or writing the record file failed."""

    code = "persistence_error"


class GenerationError(PassError):
    """A QR image or an email could not be produced."""

    code = "generation_error"
