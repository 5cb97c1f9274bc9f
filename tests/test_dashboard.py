"""Tests for dashboard statistics and the monthly target."""

from datetime import date, datetime

import pytest

from backoffice.domain.dashboard.service import DashboardService
from backoffice.models import TeamMember

MARCH = "start_date=2026-03-01&end_date=2026-03-31"


@pytest.fixture
def march_sales(db, business, products, staff_member, make_order):
    """Three completed March orders (one without staff) and one pending"""
    beans, mug = products
    maya = TeamMember(business_id=business.id, name="Maya")
    db.add(maya)
    db.commit()

    orders = [
        make_order(staff_id=staff_member.id, status="completed"),
        make_order([(mug, 1)], status="completed"),
        make_order([(beans, 1)], staff_id=maya.id, status="completed"),
        make_order(staff_id=staff_member.id),
    ]
    for order in orders:
        order.created_at = datetime(2026, 3, 10, 12, 0)
    db.commit()
    return {"yossi": staff_member, "maya": maya}


class TestSalesByStaff:
    def test_totals_and_percentages(self, client, auth_headers, march_sales):
        response = client.get(f"/dashboard/sales-by-staff?{MARCH}", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert [(e["staff_name"], e["total_sales"]) for e in data] == [("Yossi", 121.0), ("Maya", 45.5)]
        # The unassigned order counts toward the 196.5 total
        assert data[0]["percentage"] == 61.58
        assert data[1]["percentage"] == 23.16

    def test_order_counts_and_average_order_value(self, db, business, products, make_order, march_sales):
        _, mug = products
        extra = make_order([(mug, 1)], staff_id=march_sales["yossi"].id, status="completed")
        extra.created_at = datetime(2026, 3, 12, 9, 0)
        db.commit()

        stats = DashboardService(db).sales_by_staff(business, date(2026, 3, 1), date(2026, 3, 31))

        assert [(e["staff_name"], e["total_orders"], e["total_sales"], e["avg_order_value"]) for e in stats] == [
            ("Yossi", 2, 151.0, 75.5),
            ("Maya", 1, 45.5, 45.5),
        ]

    def test_range_outside_sales_is_empty(self, client, auth_headers, march_sales):
        response = client.get(
            "/dashboard/sales-by-staff?start_date=2026-04-01&end_date=2026-04-30", headers=auth_headers
        )
        assert response.json() == []

    def test_reversed_range_is_rejected(self, client, auth_headers):
        response = client.get(
            "/dashboard/sales-by-staff?start_date=2026-03-31&end_date=2026-03-01", headers=auth_headers
        )
        assert response.status_code == 400


class TestProductsByStaff:
    def test_groups_by_product_and_staff(self, client, auth_headers, products, march_sales):
        beans, mug = products

        response = client.get(f"/dashboard/products-by-staff?{MARCH}", headers=auth_headers)

        rows = {(r["product_name"], r["staff_name"]): (r["quantity"], r["total_amount"]) for r in response.json()}
        assert rows == {
            ("Espresso beans", "Yossi"): (2, 91.0),
            ("Mug", "Yossi"): (1, 30.0),
            ("Mug", "Unknown"): (1, 30.0),
            ("Espresso beans", "Maya"): (1, 45.5),
        }
        unassigned = next(r for r in response.json() if r["staff_name"] == "Unknown")
        assert unassigned["staff_id"] == "unknown"


class TestMonthlyProgress:
    def test_progress_against_target(self, db, business, march_sales):
        business.monthly_sales_target = 1000
        db.commit()

        progress = DashboardService(db).monthly_sales_progress(business, today=date(2026, 3, 10))

        assert progress == {
            "current_month": "March 2026",
            "target_amount": 1000,
            "current_amount": 196.5,
            "percentage": 19.65,
            "remaining_amount": 803.5,
            "days_remaining": 22,
            "daily_target": 36.52,
        }

    def test_target_met_needs_nothing_per_day(self, db, business, march_sales):
        business.monthly_sales_target = 100
        db.commit()

        progress = DashboardService(db).monthly_sales_progress(business, today=date(2026, 3, 31))

        assert progress["remaining_amount"] == 0
        assert progress["daily_target"] == 0
        assert progress["days_remaining"] == 1

    def test_no_target_means_zero_percent(self, db, business):
        progress = DashboardService(db).monthly_sales_progress(business, today=date(2026, 3, 10))
        assert progress["percentage"] == 0

    def test_update_target(self, client, db, auth_headers, business):
        response = client.put("/dashboard/monthly-target", json={"target_amount": 5000.456}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["target_amount"] == 5000.46
        db.refresh(business)
        assert business.monthly_sales_target == 5000.46

    def test_negative_target_is_rejected(self, client, auth_headers):
        response = client.put("/dashboard/monthly-target", json={"target_amount": -5}, headers=auth_headers)
        assert response.status_code == 422


class TestSummary:
    def test_counts_and_low_stock(self, client, auth_headers, customer, march_sales):
        response = client.get("/dashboard/summary", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["customers"] == 1
        assert data["products"] == 2
        assert data["orders"] == 4
        assert data["pending_orders"] == 1
        assert data["revenue"] == 196.5
        assert data["low_stock_threshold"] == 5
        assert [p["name"] for p in data["low_stock_products"]] == ["Mug"]
