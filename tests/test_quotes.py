"""Tests for quotes and the quote PDF."""

from datetime import date, timedelta

import pytest

from backoffice.models import Quote, QuoteItem
from backoffice.services.quote_pdf_generator import QuotePDFGenerator


@pytest.fixture
def quote_payload(customer):
    return {
        "customer_id": customer.id,
        "items": [
            {"product_name": "Barista course", "quantity": 2, "price_at_time": 350.005},
            {"product_name": "Espresso beans", "quantity": 3, "price_at_time": 45.5},
        ],
    }


class TestQuotes:
    """Quote lifecycle through the API."""

    def test_create_quote_defaults(self, client, db, auth_headers, quote_payload):
        response = client.post("/quotes", json=quote_payload, headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "draft"
        assert data["total_amount"] == 836.52
        assert data["valid_until"] == (date.today() + timedelta(days=30)).isoformat()
        assert data["customer_name"] == "Noa Levi"
        assert len(data["items"]) == 2
        assert db.query(QuoteItem).count() == 2

    def test_create_quote_for_unknown_customer(self, client, auth_headers, quote_payload):
        quote_payload["customer_id"] = "missing"
        response = client.post("/quotes", json=quote_payload, headers=auth_headers)
        assert response.status_code == 404

    def test_quote_needs_items(self, client, auth_headers, customer):
        response = client.post("/quotes", json={"customer_id": customer.id, "items": []}, headers=auth_headers)
        assert response.status_code == 422

    def test_list_and_get(self, client, auth_headers, quote_payload):
        created = client.post("/quotes", json=quote_payload, headers=auth_headers).json()

        listed = client.get("/quotes", headers=auth_headers).json()
        assert [q["id"] for q in listed] == [created["id"]]
        assert listed[0]["customer_name"] == "Noa Levi"

        detail = client.get(f"/quotes/{created['id']}", headers=auth_headers).json()
        assert {i["product_name"] for i in detail["items"]} == {"Barista course", "Espresso beans"}

    def test_update_status(self, client, auth_headers, quote_payload):
        created = client.post("/quotes", json=quote_payload, headers=auth_headers).json()

        response = client.patch(
            f"/quotes/{created['id']}/status", json={"status": "sent"}, headers=auth_headers
        )
        assert response.json()["status"] == "sent"

        invalid = client.patch(
            f"/quotes/{created['id']}/status", json={"status": "paid"}, headers=auth_headers
        )
        assert invalid.status_code == 422

    def test_pdf_download(self, client, auth_headers, quote_payload):
        created = client.post("/quotes", json=quote_payload, headers=auth_headers).json()

        response = client.get(f"/quotes/{created['id']}/pdf", headers=auth_headers)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")
        assert "attachment" in response.headers["content-disposition"]


class TestQuotePDFGenerator:
    def test_generates_pdf_bytes(self, db, business, customer):
        quote = Quote(
            business_id=business.id,
            customer_id=customer.id,
            total_amount=91.0,
            currency="ILS",
            valid_until=date(2026, 12, 31),
            items=[QuoteItem(product_name="Espresso beans", quantity=2, price_at_time=45.5, currency="ILS")],
        )
        db.add(quote)
        db.commit()

        pdf = QuotePDFGenerator(quote, customer, business).generate()

        assert pdf.startswith(b"%PDF")
        assert len(pdf) > 1000
