"""Dashboard service - Staff statistics and the monthly sales target"""

import calendar
import logging
from datetime import date, datetime, time
from typing import Optional

from sqlalchemy.orm import Session

from ...config import LOW_STOCK_THRESHOLD
from ...models import Business
from ...shared.validators import round_money
from .repository import DashboardRepository

logger = logging.getLogger(__name__)

UNKNOWN_STAFF_ID = "unknown"
UNKNOWN_NAME = "Unknown"


def _percentage(part: float, whole: float) -> float:
    return round(part / whole * 100, 2) if whole > 0 else 0


def default_range(today: Optional[date] = None) -> tuple[date, date]:
    """First day of the current month through today"""
    today = today or date.today()
    return today.replace(day=1), today


class DashboardService:
    """Service layer for dashboard statistics"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = DashboardRepository()

    def _completed_orders(self, business: Business, start: date, end: date):
        return self.repo.get_completed_orders(
            self.db,
            business.id,
            datetime.combine(start, time.min),
            datetime.combine(end, time.max),
        )

    def sales_by_staff(self, business: Business, start: date, end: date) -> list[dict]:
        """
        Completed sales per team member: order count, total, average order
        value and share of the overall total.
        Orders without a staff member count toward the total only.
        """
        orders = self._completed_orders(business, start, end)
        total_sales = sum(order.total_amount or 0 for order in orders)

        by_staff: dict[str, dict] = {}
        for order in orders:
            if not order.staff_id:
                continue
            entry = by_staff.setdefault(
                order.staff_id,
                {
                    "staff_id": order.staff_id,
                    "staff_name": order.staff.name if order.staff else UNKNOWN_NAME,
                    "total_orders": 0,
                    "total_sales": 0.0,
                    "avg_order_value": 0.0,
                    "percentage": 0,
                },
            )
            entry["total_orders"] += 1
            entry["total_sales"] += order.total_amount or 0

        result = list(by_staff.values())
        for entry in result:
            entry["total_sales"] = round_money(entry["total_sales"])
            entry["avg_order_value"] = round_money(entry["total_sales"] / entry["total_orders"])
            entry["percentage"] = _percentage(entry["total_sales"], total_sales)
        return sorted(result, key=lambda e: e["total_sales"], reverse=True)

    def products_by_staff(self, business: Business, start: date, end: date) -> list[dict]:
        """Quantity and amount sold per (product, team member)"""
        orders = self._completed_orders(business, start, end)

        by_pair: dict[tuple, dict] = {}
        for order in orders:
            staff_id = order.staff_id or UNKNOWN_STAFF_ID
            staff_name = order.staff.name if order.staff else UNKNOWN_NAME
            for item in order.items:
                if not item.product_id:
                    continue
                entry = by_pair.setdefault(
                    (item.product_id, staff_id),
                    {
                        "product_id": item.product_id,
                        "product_name": item.product.name if item.product else UNKNOWN_NAME,
                        "staff_id": staff_id,
                        "staff_name": staff_name,
                        "quantity": 0,
                        "total_amount": 0.0,
                    },
                )
                entry["quantity"] += item.quantity or 0
                entry["total_amount"] += (item.quantity or 0) * (item.price_at_time or 0)

        result = list(by_pair.values())
        for entry in result:
            entry["total_amount"] = round_money(entry["total_amount"])
        return sorted(result, key=lambda e: e["total_amount"], reverse=True)

    def monthly_sales_progress(self, business: Business, today: Optional[date] = None) -> dict:
        today = today or date.today()
        month_start = today.replace(day=1)
        days_in_month = calendar.monthrange(today.year, today.month)[1]
        month_end = today.replace(day=days_in_month)

        target = business.monthly_sales_target or 0
        current = self.repo.sum_completed(
            self.db,
            business.id,
            datetime.combine(month_start, time.min),
            datetime.combine(month_end, time.max),
        )
        remaining = max(0, target - current)
        days_remaining = days_in_month - today.day + 1
        daily_target = remaining / days_remaining if days_remaining > 0 and remaining > 0 else 0

        return {
            "current_month": today.strftime("%B %Y"),
            "target_amount": target,
            "current_amount": round_money(current),
            "percentage": _percentage(current, target),
            "remaining_amount": round_money(remaining),
            "days_remaining": days_remaining,
            "daily_target": round_money(daily_target),
        }

    def update_monthly_target(self, business: Business, target_amount: float) -> dict:
        business.monthly_sales_target = target_amount
        self.db.commit()
        self.db.refresh(business)
        logger.info(f"🎯 Monthly sales target for business {business.id} set to {target_amount}")
        return self.monthly_sales_progress(business)

    def get_summary(self, business: Business) -> dict:
        low_stock = self.repo.get_low_stock_products(self.db, business.id, LOW_STOCK_THRESHOLD)
        return {
            "customers": self.repo.count_customers(self.db, business.id),
            "products": self.repo.count_products(self.db, business.id),
            "orders": self.repo.count_orders(self.db, business.id),
            "pending_orders": self.repo.count_orders(self.db, business.id, "pending"),
            "revenue": round_money(self.repo.sum_completed(self.db, business.id)),
            "low_stock_threshold": LOW_STOCK_THRESHOLD,
            "low_stock_products": low_stock,
        }
