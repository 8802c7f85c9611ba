"""Pass records and the in-memory record store."""

from __future__ import annotations

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from .errors import AlreadyUsedError


class RecordStatus(str, Enum):
    """Lifecycle states of a pass. ``USED`` is terminal."""

    ACTIVE = "active"
    USED = "used"


@dataclass
class Record:
    """One redeemable order."""

    order_id: str
    product_name: str
    quantity: int
    code_url: str
    customer_name: Optional[str] = None
    status: RecordStatus = RecordStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status is RecordStatus.ACTIVE

    def redeem(self) -> None:
        """Move the pass from active to used."""
        if self.status is RecordStatus.USED:
            raise AlreadyUsedError(self.order_id)
        self.status = RecordStatus.USED

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Record":
        copied = dict(data)
        # files written before the rename use ``qr_code_url``
        if "code_url" not in copied and "qr_code_url" in copied:
            copied["code_url"] = copied.pop("qr_code_url")
        copied.pop("qr_code_url", None)
        copied["order_id"] = str(copied["order_id"])
        copied["quantity"] = int(copied.get("quantity", 1))
        copied["status"] = RecordStatus(copied.get("status", "active"))
        return cls(**copied)


class RecordStore:
    """Records keyed by order id. No I/O happens here."""

    def __init__(self, records: Iterable[Record] = ()) -> None:
        self._records: Dict[str, Record] = {}
        self.load(records)

    def load(self, records: Iterable[Record]) -> None:
        """Replace the whole content of the store."""
        self._records = {r.order_id: r for r in records}

    def get(self, order_id: str) -> Optional[Record]:
        return self._records.get(order_id)

    def put(self, record: Record) -> None:
        self._records[record.order_id] = record

    def all(self) -> List[Record]:
        return list(self._records.values())

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, order_id: object) -> bool:
        return order_id in self._records
