"""Payment service - Cardcom payment pages and order payment reconciliation"""

import logging
from datetime import datetime
from typing import Optional

import httpx
from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import CARDCOM_TERMINAL_NUMBER, FRONTEND_URL
from ...models import Business, CustomerOrder, Quote
from ...services.crm_service import CRMError, CRMNotConfigured, build_payment_note, get_crm_client
from ...shared.validators import parse_id_list
from ...webhook_security import terminal_matches
from ..automations.service import trigger_order_paid
from ..inventory.service import apply_order_to_stock
from .cardcom_service import CardcomClient, CardcomError, build_low_profile_request
from .repository import PaymentRepository

logger = logging.getLogger(__name__)

CARDCOM_METHOD = "credit_card"
CARDCOM_REFERENCE = "Cardcom"


class PaymentService:
    """Service layer for payments"""

    def __init__(
        self,
        db: Session,
        cardcom: Optional[CardcomClient] = None,
        crm_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.db = db
        self.repo = PaymentRepository()
        self.cardcom = cardcom or CardcomClient()
        self.crm_transport = crm_transport

    # ------------------------------------------------------------------
    # Payment pages
    # ------------------------------------------------------------------

    def _get_cardcom_settings(self, business_id: str) -> tuple[str, str]:
        settings = self.repo.get_settings(self.db, business_id)
        if not settings or not settings.cardcom_terminal or not settings.cardcom_api_name:
            raise HTTPException(status_code=400, detail="Cardcom settings are not configured")
        return settings.cardcom_terminal, settings.cardcom_api_name

    async def _create_page(self, request_body: dict) -> dict:
        try:
            return await self.cardcom.create_payment_page(request_body)
        except CardcomError as e:
            logger.error(f"❌ Cardcom payment page failed: {str(e)}")
            raise HTTPException(status_code=502, detail=str(e)) from e

    async def start_order_payment(self, order_ids: list[str], payments: int, business: Business) -> dict:
        """Open a Cardcom page covering all items of the given pending orders"""
        terminal, api_name = self._get_cardcom_settings(business.id)

        orders = self.repo.get_orders_by_ids(self.db, order_ids, business.id)
        if len(orders) != len(order_ids):
            raise HTTPException(status_code=404, detail="Order not found")
        if any(order.status != "pending" for order in orders):
            raise HTTPException(status_code=400, detail="Only pending orders can be paid")
        if len({order.customer_id for order in orders}) > 1:
            raise HTTPException(status_code=400, detail="All orders must belong to the same customer")

        customer = orders[0].customer
        items = [
            {
                "description": item.product.name if item.product else "Product",
                "price": item.price_at_time,
                "quantity": item.quantity,
            }
            for order in orders
            for item in order.items
        ]
        amount = sum(order.total_amount for order in orders)
        ids = ",".join(order.id for order in orders)

        try:
            request_body = build_low_profile_request(
                terminal_number=terminal,
                api_name=api_name,
                amount=amount,
                success_url=f"{FRONTEND_URL}/customers?payment=success&orders={ids}",
                failure_url=f"{FRONTEND_URL}/customers?payment=failure",
                customer_name=customer.name,
                customer_email=customer.email,
                items=items,
                return_value=ids,
                payments=payments,
            )
        except CardcomError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        return await self._create_page(request_body)

    async def start_quote_payment(self, quote_id: str, payments: int, business: Business) -> dict:
        """Open a Cardcom page for a quote and mark its payment pending"""
        terminal, api_name = self._get_cardcom_settings(business.id)

        quote = self.repo.get_quote(self.db, quote_id, business.id)
        if not quote:
            raise HTTPException(status_code=404, detail="Quote not found")
        if quote.payment_status == "paid":
            raise HTTPException(status_code=400, detail="Quote is already paid")

        customer = quote.customer
        try:
            request_body = build_low_profile_request(
                terminal_number=terminal,
                api_name=api_name,
                amount=quote.total_amount,
                success_url=f"{FRONTEND_URL}/quotes?payment=success&quote={quote.id}",
                failure_url=f"{FRONTEND_URL}/quotes?payment=failure&quote={quote.id}",
                customer_name=customer.name if customer else "",
                customer_email=customer.email if customer else None,
                items=[
                    {"description": i.product_name, "price": i.price_at_time, "quantity": i.quantity}
                    for i in quote.items
                ],
                return_value=quote.id,
                payments=payments,
            )
        except CardcomError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        page = await self._create_page(request_body)
        quote.payment_id = page["low_profile_id"]
        quote.payment_status = "pending"
        self.repo.save(self.db, quote)
        return page

    # ------------------------------------------------------------------
    # Post-payment sequence
    # ------------------------------------------------------------------

    async def _add_crm_note(self, order: CustomerOrder) -> None:
        customer = order.customer
        if not customer or not customer.contact_id:
            logger.info(f"ℹ️ Order {order.id}: customer has no CRM contact, skipping note")
            return

        note = build_payment_note(
            order_id=order.id,
            total_amount=order.total_amount,
            currency=order.currency,
            items=[
                (item.product.name if item.product else "Unknown product", item.quantity)
                for item in order.items
            ],
            payment_method=order.payment_method,
            payment_reference=order.payment_reference,
        )
        try:
            client = get_crm_client(self.db, order.business_id, transport=self.crm_transport)
            await client.add_contact_note(customer.contact_id, note)
        except CRMNotConfigured:
            logger.info(f"ℹ️ CRM not configured for business {order.business_id}, skipping note")
        except CRMError as e:
            logger.error(f"❌ CRM note failed for order {order.id}: {str(e)}")

    async def complete_order_payment(
        self,
        order: CustomerOrder,
        payment_method: str,
        payment_reference: str,
        transaction_id: Optional[str] = None,
        payment_details: Optional[dict] = None,
    ) -> bool:
        """
        Mark an order paid and run the follow-ups: CRM note, stock, webhooks.

        Each step commits on its own. Returns False when the order was
        already paid and nothing was done.
        """
        if order.paid_at is not None:
            logger.info(f"⏭️ Order {order.id} already paid, skipping")
            return False

        order.status = "completed"
        order.payment_method = payment_method
        order.payment_reference = payment_reference
        order.paid_at = datetime.utcnow()
        if transaction_id:
            order.transaction_id = transaction_id
        if payment_details:
            order.payment_details = payment_details
        self.repo.save(self.db, order)
        logger.info(f"💰 Order {order.id} paid via {payment_method} ({payment_reference})")

        await self._add_crm_note(order)
        apply_order_to_stock(self.db, order)
        await trigger_order_paid(self.db, order)
        return True

    async def _complete_orders(self, orders: list[CustomerOrder], **payment) -> dict:
        processed, skipped = [], []
        for order in orders:
            if await self.complete_order_payment(order, **payment):
                processed.append(order.id)
            else:
                skipped.append(order.id)
        return {"processed": processed, "skipped": skipped}

    def _mark_quote_paid(self, quote: Quote) -> None:
        quote.payment_status = "paid"
        quote.status = "accepted"
        self.repo.save(self.db, quote)
        logger.info(f"💰 Quote {quote.id} paid")

    # ------------------------------------------------------------------
    # Reconciliation entry points
    # ------------------------------------------------------------------

    async def handle_redirect(
        self, payment: Optional[str], orders: Optional[str], quote_id: Optional[str], business: Business
    ) -> dict:
        """Payment page redirected back to the app with ?payment=..."""
        if payment != "success":
            return {"success": False, "message": f"Payment not completed ({payment or 'unknown'})"}

        if quote_id:
            quote = self.repo.get_quote(self.db, quote_id, business.id)
            if not quote:
                raise HTTPException(status_code=404, detail="Quote not found")
            if quote.payment_status != "paid":
                self._mark_quote_paid(quote)
            return {"success": True, "message": "Quote payment recorded", "processed": [quote.id]}

        order_ids = parse_id_list(orders)
        if not order_ids:
            return {"success": False, "message": "No orders to reconcile"}

        found = self.repo.get_orders_by_ids(self.db, order_ids, business.id)
        result = await self._complete_orders(
            found, payment_method=CARDCOM_METHOD, payment_reference=CARDCOM_REFERENCE
        )
        return {"success": True, "message": "Payment recorded", **result}

    async def handle_cardcom_webhook(self, payload: dict) -> dict:
        """
        Cardcom server notification. Keys are already lower-cased.

        Target orders come from order_id, else returnvalue. A returnvalue
        naming a quote settles that quote instead.
        """
        if payload.get("operation") != "Success":
            logger.warning(f"⚠️ Cardcom notification for unsuccessful operation: {payload.get('operation')}")
            return {"success": False, "message": "Payment operation was not successful"}

        ids = parse_id_list(payload.get("order_id")) or parse_id_list(payload.get("returnvalue"))
        if not ids:
            raise HTTPException(status_code=400, detail="Missing order reference")

        received_terminal = payload.get("terminalnumber")

        if len(ids) == 1:
            quote = self.repo.get_quote(self.db, ids[0])
            if quote:
                self._check_terminal(received_terminal, quote.business_id)
                if quote.payment_status != "paid":
                    self._mark_quote_paid(quote)
                return {"success": True, "message": "Quote payment processed", "processed": [quote.id]}

        orders = self.repo.get_orders_by_ids(self.db, ids)
        if not orders:
            raise HTTPException(status_code=404, detail="Order not found")
        for business_id in {order.business_id for order in orders}:
            self._check_terminal(received_terminal, business_id)

        result = await self._complete_orders(
            orders,
            payment_method=CARDCOM_METHOD,
            payment_reference=CARDCOM_REFERENCE,
            transaction_id=payload.get("dealid"),
            payment_details={
                "card_type": payload.get("cardtype"),
                "card_issuer": payload.get("cardissuer"),
                "auth_number": payload.get("authnum"),
                "card_mask": payload.get("cardmask"),
                "payments": payload.get("paymentsnum"),
                "terminal_number": received_terminal,
            },
        )
        return {"success": True, "message": "Payment processed successfully", **result}

    def _check_terminal(self, received: Optional[str], business_id: str) -> None:
        settings = self.repo.get_settings(self.db, business_id)
        business_terminal = settings.cardcom_terminal if settings else None
        if not terminal_matches(received, CARDCOM_TERMINAL_NUMBER, business_terminal):
            logger.warning(f"🚫 Cardcom terminal mismatch for business {business_id}: {received}")
            raise HTTPException(status_code=400, detail="Terminal number mismatch")

    async def record_manual_payment(
        self, order_ids: list[str], payment_method: str, payment_reference: str, business: Business
    ) -> dict:
        orders = self.repo.get_orders_by_ids(self.db, order_ids, business.id)
        if len(orders) != len(order_ids):
            raise HTTPException(status_code=404, detail="Order not found")
        result = await self._complete_orders(
            orders, payment_method=payment_method, payment_reference=payment_reference
        )
        return {"success": True, "message": "Payment recorded", **result}

    def get_order_status(self, order_id: str, business: Business) -> dict:
        order = self.repo.get_order(self.db, order_id, business.id)
        if not order:
            raise HTTPException(status_code=404, detail="Order not found")
        return {
            "id": order.id,
            "status": order.status,
            "paid": order.paid_at is not None,
            "paid_at": order.paid_at,
            "payment_method": order.payment_method,
            "payment_details": order.payment_details,
        }
