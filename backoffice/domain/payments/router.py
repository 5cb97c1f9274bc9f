"""Payment router - FastAPI endpoints for Cardcom and manual payments"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ...auth import get_current_business
from ...database import get_db
from ...models import Business
from ...rate_limiter import cardcom_webhook_limiter, payment_callback_limiter
from .schemas import (
    ManualPaymentRequest,
    OrderPaymentRequest,
    OrderPaymentStatus,
    PaymentCallbackRequest,
    PaymentPageResponse,
    PaymentResult,
    QuotePaymentRequest,
)
from .service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db)


@router.post("/cardcom/orders", response_model=PaymentPageResponse)
async def start_order_payment(
    data: OrderPaymentRequest,
    business: Business = Depends(get_current_business),
    service: PaymentService = Depends(get_payment_service),
):
    """Create a Cardcom payment page for pending orders"""
    return await service.start_order_payment(data.order_ids, data.payments, business)


@router.post("/cardcom/quotes/{quote_id}", response_model=PaymentPageResponse)
async def start_quote_payment(
    quote_id: str,
    data: QuotePaymentRequest,
    business: Business = Depends(get_current_business),
    service: PaymentService = Depends(get_payment_service),
):
    """Create a Cardcom payment page for a quote"""
    return await service.start_quote_payment(quote_id, data.payments, business)


@router.post("/cardcom/callback", response_model=PaymentResult)
async def cardcom_redirect_callback(
    data: PaymentCallbackRequest,
    business: Business = Depends(get_current_business),
    service: PaymentService = Depends(get_payment_service),
    _: None = Depends(payment_callback_limiter),
):
    """Reconcile orders after the payment page redirected back to the app"""
    return await service.handle_redirect(data.payment, data.orders, data.quote, business)


@router.post("/cardcom/webhook")
async def cardcom_webhook(
    request: Request,
    service: PaymentService = Depends(get_payment_service),
    _: None = Depends(cardcom_webhook_limiter),
):
    """
    Cardcom server-to-server notification (form encoded).
    Not authenticated; the terminal number is checked instead.
    """
    form = await request.form()
    payload = {key.lower(): value for key, value in form.items()}
    logger.info(
        f"📨 Cardcom webhook: operation={payload.get('operation')} "
        f"lowprofilecode={payload.get('lowprofilecode')} returnvalue={payload.get('returnvalue')}"
    )
    return await service.handle_cardcom_webhook(payload)


@router.post("/manual", response_model=PaymentResult)
async def record_manual_payment(
    data: ManualPaymentRequest,
    business: Business = Depends(get_current_business),
    service: PaymentService = Depends(get_payment_service),
):
    """Record a cash / transfer / check payment"""
    return await service.record_manual_payment(
        data.order_ids, data.payment_method, data.payment_reference, business
    )


@router.get("/orders/{order_id}/status", response_model=OrderPaymentStatus)
async def get_order_payment_status(
    order_id: str,
    business: Business = Depends(get_current_business),
    service: PaymentService = Depends(get_payment_service),
):
    """Poll an order's payment state"""
    return service.get_order_status(order_id, business)
