"""Quote router - FastAPI endpoints for price quotes"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_business
from ...database import get_db
from ...models import Business
from .schemas import QuoteCreate, QuoteResponse, QuoteStatusUpdate
from .service import QuoteService

router = APIRouter(prefix="/quotes", tags=["Quotes"])


def get_quote_service(db: Session = Depends(get_db)) -> QuoteService:
    """Dependency injection for QuoteService"""
    return QuoteService(db)


@router.get("", response_model=list[QuoteResponse])
async def get_quotes(
    business: Business = Depends(get_current_business),
    service: QuoteService = Depends(get_quote_service),
):
    """Get all quotes with customer names, newest first"""
    return service.get_quotes(business)


@router.post("", response_model=QuoteResponse)
async def create_quote(
    data: QuoteCreate,
    business: Business = Depends(get_current_business),
    service: QuoteService = Depends(get_quote_service),
):
    return service.create_quote(data, business)


@router.get("/{quote_id}", response_model=QuoteResponse)
async def get_quote(
    quote_id: str,
    business: Business = Depends(get_current_business),
    service: QuoteService = Depends(get_quote_service),
):
    return service.get_quote(quote_id, business)


@router.patch("/{quote_id}/status", response_model=QuoteResponse)
async def update_quote_status(
    quote_id: str,
    data: QuoteStatusUpdate,
    business: Business = Depends(get_current_business),
    service: QuoteService = Depends(get_quote_service),
):
    return service.update_status(quote_id, data.status, business)


@router.get("/{quote_id}/pdf")
async def download_quote_pdf(
    quote_id: str,
    business: Business = Depends(get_current_business),
    service: QuoteService = Depends(get_quote_service),
):
    return service.render_pdf(quote_id, business)
