"""Pydantic models used across the application."""

from __future__ import annotations

from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LineItem(BaseModel):
    """A product line of an incoming order.

    Lines are parsed leniently: a bad value on one line becomes ``None``
    instead of rejecting the whole order. Only the line that carries the
    marker is checked, by the ingestion handler.
    """

    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    quantity: Optional[int] = 1

    @field_validator("title", mode="before")
    @classmethod
    def title_or_none(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None

    @field_validator("quantity", mode="before")
    @classmethod
    def quantity_or_none(cls, value: Any) -> Optional[int]:
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, str) and value.strip().isdigit():
            return int(value)
        return None

    @property
    def has_valid_quantity(self) -> bool:
        return self.quantity is not None and self.quantity >= 1


class Customer(BaseModel):
    model_config = ConfigDict(extra="ignore")

    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @property
    def full_name(self) -> Optional[str]:
        parts = [p.strip() for p in (self.first_name, self.last_name) if p and p.strip()]
        return " ".join(parts) or None


class OrderWebhook(BaseModel):
    """Order payload posted by the shop's ``orders/create`` webhook."""

    model_config = ConfigDict(extra="ignore")

    id: Union[int, str]
    email: Optional[str] = None
    customer: Optional[Customer] = None
    line_items: List[LineItem] = Field(default_factory=list)

    @field_validator("line_items", mode="before")
    @classmethod
    def only_object_lines(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [line for line in value if isinstance(line, dict)]
        return value

    @field_validator("id")
    @classmethod
    def id_as_text(cls, value: Union[int, str]) -> str:
        return str(value).strip()

    @property
    def order_id(self) -> str:
        return str(self.id)


class ConfirmRequest(BaseModel):
    """Body of ``POST /confirm-qr``."""

    order_id: Optional[Union[int, str]] = None


class VerifySuccess(BaseModel):
    status: str = "success"
    customer_name: Optional[str] = None
    product_name: str
    quantity: int


class StatusResponse(BaseModel):
    """Response model for the ``/health`` endpoint."""

    status: str
    records: int
