"""
Cardcom Low Profile integration
Builds the hosted payment page request and creates the page
"""

import logging
from typing import Optional

import httpx

from ...config import CARDCOM_API_URL, CARDCOM_TIMEOUT_SECONDS, PUBLIC_API_URL
from ...shared.validators import round_money

logger = logging.getLogger(__name__)

AMOUNT_TOLERANCE = 0.01
MAX_PAYMENTS_LIMIT = 12


class CardcomError(Exception):
    """Raised when a payment page cannot be built or created"""


def merge_items(items: list[dict]) -> list[dict]:
    """
    Normalize items into Cardcom products.

    Prices are rounded to 2 decimals; identical (description, price)
    pairs are merged by summing quantities. Order of first appearance is kept.
    """
    merged: dict[tuple, dict] = {}
    for item in items:
        description = item.get("description") or ""
        try:
            price = round_money(item.get("price"))
        except (TypeError, ValueError) as e:
            raise CardcomError(f"Invalid price for product: {description}") from e
        if price <= 0:
            raise CardcomError(f"Invalid price for product: {description}")

        try:
            quantity = int(item.get("quantity"))
        except (TypeError, ValueError) as e:
            raise CardcomError(f"Invalid quantity for product: {description}") from e
        if quantity <= 0:
            raise CardcomError(f"Invalid quantity for product: {description}")

        key = (description, price)
        if key in merged:
            merged[key]["Quantity"] += quantity
        else:
            merged[key] = {"Description": description, "UnitCost": price, "Quantity": quantity}

    return list(merged.values())


def build_low_profile_request(
    terminal_number: str,
    api_name: str,
    amount: float,
    success_url: str,
    failure_url: str,
    customer_name: str,
    customer_email: Optional[str],
    items: list[dict],
    return_value: str,
    payments: int = 1,
) -> dict:
    """
    Build the LowProfile/Create request body.

    Raises CardcomError when the customer has no email, there are no items,
    an item is invalid, or the items total does not match the amount within 0.01.
    """
    if not customer_email:
        raise CardcomError("Customer email is required")
    if not items:
        raise CardcomError("No products selected for payment")

    products = merge_items(items)
    calculated_total = round_money(sum(p["UnitCost"] * p["Quantity"] for p in products))
    formatted_amount = round_money(amount)

    if abs(calculated_total - formatted_amount) > AMOUNT_TOLERANCE:
        logger.error(f"❌ Amount mismatch: items total {calculated_total}, amount {formatted_amount}")
        raise CardcomError(
            f"Products total ({calculated_total}) does not match the amount to charge ({formatted_amount})"
        )

    max_payments = max(1, min(int(payments or 1), MAX_PAYMENTS_LIMIT))

    return {
        "TerminalNumber": int(terminal_number) if str(terminal_number).isdigit() else terminal_number,
        "ApiName": api_name,
        "ReturnValue": return_value,
        "Amount": formatted_amount,
        "MaxPayments": max_payments,
        "SuccessRedirectUrl": success_url,
        "FailedRedirectUrl": failure_url,
        "WebHookUrl": f"{PUBLIC_API_URL}/payments/cardcom/webhook",
        "Document": {
            "To": customer_name,
            "Email": customer_email,
            "Products": products,
        },
    }


class CardcomClient:
    """Async client for the Cardcom Low Profile API"""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.transport = transport

    async def create_payment_page(self, request_body: dict) -> dict:
        """Create a hosted payment page. Returns {url, low_profile_id}."""
        logger.info(
            f"💳 Creating Cardcom payment page: amount={request_body.get('Amount')} "
            f"return_value={request_body.get('ReturnValue')}"
        )
        try:
            async with httpx.AsyncClient(timeout=CARDCOM_TIMEOUT_SECONDS, transport=self.transport) as client:
                response = await client.post(
                    f"{CARDCOM_API_URL}/LowProfile/Create",
                    json=request_body,
                    headers={"Content-Type": "application/json", "Accept": "application/json"},
                )
        except httpx.TimeoutException as e:
            raise CardcomError("Connection to the Cardcom server timed out") from e
        except httpx.HTTPError as e:
            raise CardcomError("Communication error with the Cardcom server") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.status_code >= 400:
            description = data.get("Description") if isinstance(data, dict) else None
            logger.error(f"❌ Cardcom HTTP {response.status_code}: {response.text[:500]}")
            raise CardcomError(f"Cardcom error: {description or response.reason_phrase}")

        if not data.get("Url"):
            raise CardcomError("No payment page URL received from Cardcom")

        if data.get("ResponseCode") != 0:
            raise CardcomError(f"Cardcom error: {data.get('Description')}")

        logger.info(f"✅ Cardcom payment page created: {data.get('LowProfileId')}")
        return {"url": data["Url"], "low_profile_id": data.get("LowProfileId")}
