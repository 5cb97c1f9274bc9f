"""Tests for Cardcom payment pages and payment reconciliation."""

import asyncio
import json
from datetime import date

import httpx
import pytest

from backoffice.domain.payments.cardcom_service import (
    CardcomClient,
    CardcomError,
    build_low_profile_request,
)
from backoffice.domain.payments.router import get_payment_service
from backoffice.domain.payments.service import PaymentService
from backoffice.main import app
from backoffice.models import BusinessWebhook, Product, Quote, QuoteItem, WebhookQueue
from backoffice.security_utils import encrypt_secret


def build_request(**overrides):
    params = {
        "terminal_number": "1000",
        "api_name": "coffee-api",
        "amount": 121.0,
        "success_url": "https://app.example.com/ok",
        "failure_url": "https://app.example.com/fail",
        "customer_name": "Noa Levi",
        "customer_email": "noa@example.com",
        "items": [
            {"description": "Espresso beans", "price": 45.5, "quantity": 1},
            {"description": "Espresso beans", "price": 45.499, "quantity": 1},
            {"description": "Mug", "price": 30, "quantity": 1},
        ],
        "return_value": "order-1",
    }
    params.update(overrides)
    return build_low_profile_request(**params)


@pytest.fixture
def provider_calls():
    """Requests that reached Cardcom or the CRM"""
    return []


@pytest.fixture
def cardcom_response():
    return {"ResponseCode": 0, "Description": "OK", "Url": "https://pay.example.com/lp/1", "LowProfileId": "lp-1"}


@pytest.fixture
def payment_client(client, db, provider_calls, cardcom_response):
    """API client whose payment service talks to mocked providers"""

    def handler(request: httpx.Request) -> httpx.Response:
        provider_calls.append(request)
        if request.url.path.endswith("/LowProfile/Create"):
            return httpx.Response(200, json=cardcom_response)
        return httpx.Response(201, json={"note": {"id": "note-1"}})

    transport = httpx.MockTransport(handler)
    app.dependency_overrides[get_payment_service] = lambda: PaymentService(
        db, CardcomClient(transport), crm_transport=transport
    )
    return client


@pytest.fixture
def paid_hooks(db, business):
    hook = BusinessWebhook(
        business_id=business.id,
        url="https://hooks.example.com/paid",
        on_order_paid=True,
        on_product_purchased=True,
    )
    db.add(hook)
    db.commit()
    return hook


class TestBuildLowProfileRequest:
    """Payment page request assembly and amount reconciliation."""

    def test_merges_identical_items(self):
        body = build_request()

        assert body["Document"]["Products"] == [
            {"Description": "Espresso beans", "UnitCost": 45.5, "Quantity": 2},
            {"Description": "Mug", "UnitCost": 30.0, "Quantity": 1},
        ]
        assert body["Amount"] == 121.0
        assert body["TerminalNumber"] == 1000
        assert body["ReturnValue"] == "order-1"
        assert body["WebHookUrl"] == "https://api.example.com/payments/cardcom/webhook"

    def test_amount_within_tolerance_is_accepted(self):
        body = build_request(amount=121.01)
        assert body["Amount"] == 121.01

    def test_amount_mismatch_reports_both_figures(self):
        with pytest.raises(CardcomError) as exc:
            build_request(amount=125)
        assert "121.0" in str(exc.value)
        assert "125.0" in str(exc.value)

    def test_customer_email_is_required(self):
        with pytest.raises(CardcomError):
            build_request(customer_email="")

    def test_items_are_required(self):
        with pytest.raises(CardcomError):
            build_request(items=[], amount=0)

    def test_invalid_item_values(self):
        with pytest.raises(CardcomError):
            build_request(items=[{"description": "Bad", "price": 0, "quantity": 1}], amount=0)
        with pytest.raises(CardcomError):
            build_request(items=[{"description": "Bad", "price": 10, "quantity": 0}], amount=0)

    def test_max_payments_is_clamped(self):
        assert build_request(payments=40)["MaxPayments"] == 12
        assert build_request(payments=0)["MaxPayments"] == 1


class TestCardcomClient:
    """LowProfile/Create responses and failures."""

    def _create(self, handler):
        client = CardcomClient(transport=httpx.MockTransport(handler))
        return asyncio.run(client.create_payment_page(build_request()))

    def test_success(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"ResponseCode": 0, "Url": "https://pay/1", "LowProfileId": "lp"})

        result = self._create(handler)

        assert result == {"url": "https://pay/1", "low_profile_id": "lp"}
        assert seen["body"]["ApiName"] == "coffee-api"

    def test_non_zero_response_code(self):
        def handler(request):
            return httpx.Response(200, json={"ResponseCode": 5, "Url": "https://pay/1", "Description": "Bad terminal"})

        with pytest.raises(CardcomError, match="Bad terminal"):
            self._create(handler)

    def test_missing_url(self):
        with pytest.raises(CardcomError, match="No payment page URL"):
            self._create(lambda request: httpx.Response(200, json={"ResponseCode": 0}))

    def test_http_error(self):
        def handler(request):
            return httpx.Response(500, json={"Description": "Server down"})

        with pytest.raises(CardcomError, match="Server down"):
            self._create(handler)

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(CardcomError, match="timed out"):
            self._create(handler)


class TestStartPayment:
    """Opening payment pages for orders and quotes."""

    def test_requires_cardcom_settings(self, payment_client, auth_headers, make_order):
        order = make_order()
        response = payment_client.post(
            "/payments/cardcom/orders", json={"order_ids": [order.id]}, headers=auth_headers
        )
        assert response.status_code == 400

    def test_order_payment_page(self, payment_client, auth_headers, cardcom_settings, make_order, provider_calls):
        first = make_order()
        second = make_order()

        response = payment_client.post(
            "/payments/cardcom/orders",
            json={"order_ids": [first.id, second.id], "payments": 3},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json() == {"url": "https://pay.example.com/lp/1", "low_profile_id": "lp-1"}

        body = json.loads(provider_calls[0].content)
        assert body["Amount"] == 242.0
        assert body["MaxPayments"] == 3
        assert body["ReturnValue"] == f"{first.id},{second.id}"
        assert body["SuccessRedirectUrl"] == (
            f"https://app.example.com/customers?payment=success&orders={first.id},{second.id}"
        )
        assert body["FailedRedirectUrl"] == "https://app.example.com/customers?payment=failure"
        assert {p["Description"]: p["Quantity"] for p in body["Document"]["Products"]} == {
            "Espresso beans": 4,
            "Mug": 2,
        }

    def test_only_pending_orders(self, payment_client, auth_headers, cardcom_settings, make_order):
        order = make_order(status="completed")
        response = payment_client.post(
            "/payments/cardcom/orders", json={"order_ids": [order.id]}, headers=auth_headers
        )
        assert response.status_code == 400

    def test_provider_failure_is_502(self, payment_client, auth_headers, cardcom_settings, make_order, cardcom_response):
        cardcom_response.update({"ResponseCode": 1, "Description": "Terminal blocked"})
        order = make_order()

        response = payment_client.post(
            "/payments/cardcom/orders", json={"order_ids": [order.id]}, headers=auth_headers
        )
        assert response.status_code == 502

    def test_quote_payment_marks_pending(
        self, payment_client, db, auth_headers, business, customer, cardcom_settings, provider_calls
    ):
        quote = Quote(
            business_id=business.id,
            customer_id=customer.id,
            total_amount=91.0,
            currency="ILS",
            status="sent",
            valid_until=date(2026, 12, 31),
            items=[QuoteItem(product_name="Espresso beans", quantity=2, price_at_time=45.5)],
        )
        db.add(quote)
        db.commit()

        response = payment_client.post(f"/payments/cardcom/quotes/{quote.id}", json={}, headers=auth_headers)

        assert response.status_code == 200
        db.refresh(quote)
        assert quote.payment_id == "lp-1"
        assert quote.payment_status == "pending"
        body = json.loads(provider_calls[0].content)
        assert body["ReturnValue"] == quote.id
        assert body["SuccessRedirectUrl"].endswith(f"/quotes?payment=success&quote={quote.id}")


class TestCardcomWebhook:
    """Server-to-server notifications."""

    def _notify(self, client, **fields):
        data = {
            "Operation": "Success",
            "TerminalNumber": "1000",
            "DealId": "deal-77",
            "CardType": "Visa",
            "CardIssuer": "Isracard",
            "AuthNum": "0012345",
            "CardMask": "458000******1234",
            "PaymentsNum": "1",
        }
        data.update(fields)
        return client.post("/payments/cardcom/webhook", data=data)

    def test_unsuccessful_operation_is_acknowledged(self, payment_client, make_order):
        order = make_order()
        response = self._notify(payment_client, Operation="Failed", ReturnValue=order.id)

        assert response.status_code == 200
        assert response.json()["success"] is False

    def test_marks_orders_paid_and_runs_follow_ups(
        self, payment_client, db, business, cardcom_settings, make_order, products, paid_hooks, enqueued, provider_calls
    ):
        cardcom_settings.api_token = encrypt_secret("crm-token")
        cardcom_settings.location_id = "loc-1"
        db.commit()
        order = make_order()

        response = self._notify(payment_client, ReturnValue=order.id)

        assert response.status_code == 200
        assert response.json()["processed"] == [order.id]

        db.refresh(order)
        assert order.status == "completed"
        assert order.paid_at is not None
        assert order.payment_method == "credit_card"
        assert order.payment_reference == "Cardcom"
        assert order.transaction_id == "deal-77"
        assert order.payment_details["card_mask"] == "458000******1234"
        assert order.payment_details["terminal_number"] == "1000"

        beans, mug = products
        assert db.query(Product).filter(Product.id == beans.id).first().stock == 8
        assert db.query(Product).filter(Product.id == mug.id).first().stock == 1

        events = sorted(row.event_type for row in db.query(WebhookQueue).all())
        assert events == ["order_paid", "product_purchased", "product_purchased"]
        assert sum(len(batch) for batch in enqueued) == 3

        note_requests = [r for r in provider_calls if r.url.path == "/contacts/crm-contact-1/notes"]
        assert len(note_requests) == 1
        assert note_requests[0].headers["Authorization"] == "Bearer crm-token"
        note = json.loads(note_requests[0].content)["body"]
        assert "Payment received" in note
        assert "Espresso beans (2)" in note

    def test_order_id_field_takes_precedence(self, payment_client, cardcom_settings, make_order):
        order = make_order()
        response = self._notify(payment_client, order_id=order.id, ReturnValue="something-else")
        assert response.json()["processed"] == [order.id]

    def test_already_paid_order_is_skipped(self, payment_client, db, cardcom_settings, make_order, products):
        order = make_order()
        self._notify(payment_client, ReturnValue=order.id)
        response = self._notify(payment_client, ReturnValue=order.id)

        assert response.json()["skipped"] == [order.id]
        assert db.query(Product).filter(Product.id == products[0].id).first().stock == 8

    def test_terminal_mismatch_is_rejected(self, payment_client, db, cardcom_settings, make_order):
        order = make_order()
        response = self._notify(payment_client, ReturnValue=order.id, TerminalNumber="9999")

        assert response.status_code == 400
        db.refresh(order)
        assert order.paid_at is None

    def test_missing_reference_is_400(self, payment_client):
        assert self._notify(payment_client).status_code == 400

    def test_crm_failure_does_not_block_payment(self, client, db, cardcom_settings, make_order):
        cardcom_settings.api_token = encrypt_secret("crm-token")
        db.commit()
        transport = httpx.MockTransport(lambda request: httpx.Response(500, json={"message": "down"}))
        app.dependency_overrides[get_payment_service] = lambda: PaymentService(db, crm_transport=transport)
        order = make_order()

        response = self._notify(client, ReturnValue=order.id)

        assert response.status_code == 200
        db.refresh(order)
        assert order.status == "completed"

    def test_quote_payment(self, payment_client, db, business, customer, cardcom_settings):
        quote = Quote(
            business_id=business.id,
            customer_id=customer.id,
            total_amount=91.0,
            valid_until=date(2026, 12, 31),
            payment_status="pending",
        )
        db.add(quote)
        db.commit()

        response = self._notify(payment_client, ReturnValue=quote.id)

        assert response.status_code == 200
        db.refresh(quote)
        assert quote.payment_status == "paid"
        assert quote.status == "accepted"


class TestReconciliation:
    """Redirect callback, manual payments and status polling."""

    def test_redirect_success_marks_orders_paid(self, payment_client, db, auth_headers, make_order):
        first, second = make_order(), make_order()

        response = payment_client.post(
            "/payments/cardcom/callback",
            json={"payment": "success", "orders": f"{first.id},{second.id}"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["processed"] == [first.id, second.id]
        for order in (first, second):
            db.refresh(order)
            assert order.payment_reference == "Cardcom"

    def test_redirect_failure_is_a_no_op(self, payment_client, db, auth_headers, make_order):
        order = make_order()
        response = payment_client.post(
            "/payments/cardcom/callback",
            json={"payment": "failure", "orders": order.id},
            headers=auth_headers,
        )

        assert response.json()["success"] is False
        db.refresh(order)
        assert order.status == "pending"

    def test_manual_payment(self, payment_client, db, auth_headers, make_order):
        order = make_order()
        response = payment_client.post(
            "/payments/manual",
            json={"order_ids": [order.id], "payment_method": "bank_transfer", "payment_reference": "TRX-9"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        db.refresh(order)
        assert order.status == "completed"
        assert order.payment_method == "bank_transfer"
        assert order.payment_reference == "TRX-9"

    def test_manual_payment_requires_reference(self, payment_client, auth_headers, make_order):
        order = make_order()
        response = payment_client.post(
            "/payments/manual",
            json={"order_ids": [order.id], "payment_method": "cash", "payment_reference": " "},
            headers=auth_headers,
        )
        assert response.status_code == 422

    def test_status_polling(self, payment_client, db, auth_headers, make_order):
        order = make_order()

        pending = payment_client.get(f"/payments/orders/{order.id}/status", headers=auth_headers).json()
        assert pending["paid"] is False

        payment_client.post(
            "/payments/manual",
            json={"order_ids": [order.id], "payment_method": "cash", "payment_reference": "R1"},
            headers=auth_headers,
        )
        paid = payment_client.get(f"/payments/orders/{order.id}/status", headers=auth_headers).json()
        assert paid["paid"] is True
        assert paid["status"] == "completed"
        assert paid["paid_at"] is not None

    def test_status_of_foreign_order_is_404(self, payment_client, auth_headers):
        response = payment_client.get("/payments/orders/missing/status", headers=auth_headers)
        assert response.status_code == 404
