"""API routes for the pass service."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse
from pydantic import ValidationError

from .context import AppContext
from .errors import AlreadyUsedError, NotFoundError, PersistenceError
from .models import ConfirmRequest, OrderWebhook, StatusResponse, VerifySuccess

logger = logging.getLogger(__name__)

router = APIRouter()


def get_context(request: Request) -> AppContext:
    """Return the :class:`AppContext` owned by the running app."""
    return request.app.state.context


def _missing_order_id() -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "order_id required"})


def _clean_order_id(value: Any) -> str:
    """Normalise an id from a query or body the same way the webhook does."""
    return "" if value is None else str(value).strip()


# ---------------------------------------------------------------------------
# Shop webhook
# ---------------------------------------------------------------------------

@router.post("/webhook-order", response_class=PlainTextResponse)
async def webhook_order(
    request: Request, ctx: AppContext = Depends(get_context)
) -> str:
    """Create a pass for a new order. Always answers ``OK``."""
    try:
        order = OrderWebhook.model_validate(await request.json())
    except (ValueError, ValidationError) as exc:
        logger.warning("Ignoring malformed order webhook: %s", exc)
        return "OK"
    await ctx.ingestion.handle(order)
    return "OK"


# ---------------------------------------------------------------------------
# Scanner
# ---------------------------------------------------------------------------

@router.get("/scan", response_class=HTMLResponse)
async def scan_page(ctx: AppContext = Depends(get_context)) -> str:
    return ctx.scan_page


@router.get("/verify-qr", response_model=None)
async def verify_qr(
    order_id: Optional[str] = None, ctx: AppContext = Depends(get_context)
) -> Any:
    """Check a scanned pass without redeeming it."""
    order_id = _clean_order_id(order_id)
    if not order_id:
        return _missing_order_id()
    try:
        record = ctx.redemption.verify(order_id)
    except (NotFoundError, AlreadyUsedError) as exc:
        return {"status": "error", "code": exc.code, "message": str(exc)}
    return VerifySuccess(
        customer_name=record.customer_name,
        product_name=record.product_name,
        quantity=record.quantity,
    ).model_dump()


@router.post("/confirm-qr", response_model=None)
async def confirm_qr(
    payload: Optional[ConfirmRequest] = None,
    ctx: AppContext = Depends(get_context),
) -> Any:
    """Redeem a pass. Only the first confirmation succeeds."""
    order_id = _clean_order_id(payload.order_id if payload else None)
    if not order_id:
        return _missing_order_id()
    try:
        await ctx.redemption.confirm(order_id)
    except NotFoundError as exc:
        return _failure(404, exc.code, str(exc))
    except AlreadyUsedError as exc:
        return _failure(409, exc.code, str(exc))
    except PersistenceError as exc:
        logger.error("Order #%s redeemed but not saved: %s", order_id, exc)
        return _failure(500, exc.code, "QR code redeemed but could not be saved")
    return {"success": True}


def _failure(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "code": code, "error": message},
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

@router.get("/health", response_model=StatusResponse)
async def health(ctx: AppContext = Depends(get_context)) -> Dict[str, Any]:
    return {"status": "ok", "records": len(ctx.store)}
