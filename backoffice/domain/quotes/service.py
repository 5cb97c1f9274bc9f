"""Quote service - Business logic for price quotes"""

import logging
from datetime import date, timedelta

from fastapi import HTTPException
from fastapi.responses import Response
from sqlalchemy.orm import Session

from ...config import QUOTE_VALIDITY_DAYS
from ...models import Business, Customer, Quote, QuoteItem
from ...services.quote_pdf_generator import QuotePDFGenerator
from ...shared.validators import round_money
from .repository import QuoteRepository
from .schemas import QuoteCreate

logger = logging.getLogger(__name__)


def serialize_quote(quote: Quote) -> dict:
    customer = quote.customer
    return {
        "id": quote.id,
        "customer_id": quote.customer_id,
        "customer_name": customer.name if customer else None,
        "customer_email": customer.email if customer else None,
        "total_amount": quote.total_amount,
        "currency": quote.currency,
        "status": quote.status,
        "valid_until": quote.valid_until,
        "payment_id": quote.payment_id,
        "payment_status": quote.payment_status,
        "created_at": quote.created_at,
        "items": [
            {
                "id": item.id,
                "product_name": item.product_name,
                "quantity": item.quantity,
                "price_at_time": item.price_at_time,
                "currency": item.currency,
            }
            for item in quote.items
        ],
    }


class QuoteService:
    """Service layer for quote business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = QuoteRepository()

    def get_quotes(self, business: Business) -> list[dict]:
        return [serialize_quote(q) for q in self.repo.get_quotes(self.db, business.id)]

    def get_quote_model(self, quote_id: str, business: Business) -> Quote:
        quote = self.repo.get_quote_by_id(self.db, quote_id, business.id)
        if not quote:
            raise HTTPException(status_code=404, detail="Quote not found")
        return quote

    def get_quote(self, quote_id: str, business: Business) -> dict:
        return serialize_quote(self.get_quote_model(quote_id, business))

    def create_quote(self, data: QuoteCreate, business: Business) -> dict:
        customer = (
            self.db.query(Customer)
            .filter(Customer.id == data.customer_id, Customer.business_id == business.id)
            .first()
        )
        if not customer:
            raise HTTPException(status_code=404, detail="Customer not found")

        total = round_money(sum(item.price_at_time * item.quantity for item in data.items))
        quote = Quote(
            business_id=business.id,
            customer_id=customer.id,
            total_amount=total,
            currency=data.currency,
            status="draft",
            valid_until=data.valid_until or (date.today() + timedelta(days=QUOTE_VALIDITY_DAYS)),
        )
        items = [
            QuoteItem(
                product_name=item.product_name,
                quantity=item.quantity,
                price_at_time=item.price_at_time,
                currency=item.currency,
            )
            for item in data.items
        ]
        quote = self.repo.create_quote(self.db, quote, items)
        logger.info(f"📝 Quote {quote.id} created for customer {customer.id}: {total} {quote.currency}")
        return serialize_quote(quote)

    def update_status(self, quote_id: str, status: str, business: Business) -> dict:
        quote = self.get_quote_model(quote_id, business)
        quote.status = status
        return serialize_quote(self.repo.save(self.db, quote))

    def render_pdf(self, quote_id: str, business: Business) -> Response:
        quote = self.get_quote_model(quote_id, business)
        try:
            pdf_bytes = QuotePDFGenerator(quote, quote.customer, business).generate()
        except Exception as e:
            logger.error(f"❌ Quote PDF generation failed for {quote.id}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to generate quote PDF") from e

        filename = f"quote_{quote.id.split('-')[0]}.pdf"
        return Response(
            content=pdf_bytes,
            media_type="application/pdf",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )
