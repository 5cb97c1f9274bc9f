"""Quote repository - Database operations for quotes"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Quote, QuoteItem


class QuoteRepository:
    """Repository for quote database operations"""

    @staticmethod
    def get_quotes(db: Session, business_id: str) -> list[Quote]:
        return (
            db.query(Quote)
            .options(joinedload(Quote.customer), joinedload(Quote.items))
            .filter(Quote.business_id == business_id)
            .order_by(Quote.created_at.desc())
            .all()
        )

    @staticmethod
    def get_quote_by_id(db: Session, quote_id: str, business_id: Optional[str] = None) -> Optional[Quote]:
        query = db.query(Quote).filter(Quote.id == quote_id)
        if business_id:
            query = query.filter(Quote.business_id == business_id)
        return query.first()

    @staticmethod
    def create_quote(db: Session, quote: Quote, items: list[QuoteItem]) -> Quote:
        """Quote and items in one transaction"""
        try:
            quote.items = items
            db.add(quote)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(quote)
        return quote

    @staticmethod
    def save(db: Session, quote: Quote) -> Quote:
        db.commit()
        db.refresh(quote)
        return quote
