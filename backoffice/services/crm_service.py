"""
GoHighLevel CRM integration
Contact search for linking customers, and notes on payment events
"""

import logging
from typing import Optional

import httpx
from sqlalchemy.orm import Session

from ..config import CRM_API_URL, CRM_API_VERSION, GO_HIGH_LEVEL_API_KEY
from ..models import BusinessSettings
from ..security_utils import decrypt_secret

logger = logging.getLogger(__name__)

CRM_TIMEOUT_SECONDS = 15.0
PAYMENT_METHOD_LABELS = {
    "credit_card": "Credit card",
    "bank_transfer": "Bank transfer",
    "cash": "Cash",
    "check": "Check",
}


class CRMError(Exception):
    """Raised when the CRM API call fails"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CRMNotConfigured(CRMError):
    """Raised when no CRM token is available for a business"""


class CRMClient:
    """Thin async client for the GoHighLevel contacts API"""

    def __init__(
        self,
        api_token: str,
        location_id: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_token = api_token
        self.location_id = location_id
        self.transport = transport

    @property
    def headers(self) -> dict:
        return {
            "Accept": "application/json",
            "Authorization": f"Bearer {self.api_token}",
            "Content-Type": "application/json",
            "Version": CRM_API_VERSION,
        }

    async def _post(self, path: str, body: dict) -> dict:
        try:
            async with httpx.AsyncClient(
                base_url=CRM_API_URL, timeout=CRM_TIMEOUT_SECONDS, transport=self.transport
            ) as client:
                response = await client.post(path, json=body, headers=self.headers)
        except httpx.TimeoutException as e:
            raise CRMError("CRM request timed out") from e
        except httpx.HTTPError as e:
            raise CRMError(f"CRM connection error: {str(e)}") from e

        if response.status_code >= 400:
            logger.error(f"❌ CRM API error {response.status_code}: {response.text[:500]}")
            raise CRMError(f"CRM API error: HTTP {response.status_code}", response.status_code)

        try:
            return response.json()
        except ValueError:
            return {}

    async def search_contacts(self, term: str) -> list[dict]:
        """Search contacts by first name, last name or exact email"""
        value = (term or "").strip().lower()
        body = {
            "locationId": self.location_id,
            "page": 1,
            "pageLimit": 10,
            "filters": [
                {
                    "group": "OR",
                    "filters": [
                        {"field": "firstNameLowerCase", "operator": "contains", "value": value},
                        {"field": "lastNameLowerCase", "operator": "contains", "value": value},
                        {"field": "email", "operator": "eq", "value": value},
                    ],
                }
            ],
        }
        data = await self._post("/contacts/search", body)
        return data.get("contacts", [])

    async def add_contact_note(self, contact_id: str, body: str) -> dict:
        """Attach a note to a CRM contact"""
        logger.info(f"📝 Adding CRM note to contact {contact_id}")
        return await self._post(f"/contacts/{contact_id}/notes", {"body": body})


def get_crm_client(
    db: Session, business_id: str, transport: Optional[httpx.AsyncBaseTransport] = None
) -> CRMClient:
    """
    Build a CRM client for a business.
    Token from the business settings, else the platform GO_HIGH_LEVEL_API_KEY.
    """
    settings = db.query(BusinessSettings).filter(BusinessSettings.business_id == business_id).first()

    token = decrypt_secret(settings.api_token) if settings and settings.api_token else None
    token = token or GO_HIGH_LEVEL_API_KEY
    if not token:
        raise CRMNotConfigured("CRM API token is not configured")

    return CRMClient(token, settings.location_id if settings else None, transport=transport)


def build_payment_note(
    order_id: str,
    total_amount: float,
    currency: str,
    items: list[tuple[str, int]],
    payment_method: str,
    payment_reference: str,
) -> str:
    """Text of the CRM note recorded when an order is paid"""
    items_list = ", ".join(f"{name} ({quantity})" for name, quantity in items)
    method = PAYMENT_METHOD_LABELS.get(payment_method, payment_method)
    return (
        "✅ Payment received\n"
        f"Amount: {total_amount:.2f} {currency}\n"
        f"Items: {items_list}\n"
        f"Order number: {order_id}\n"
        f"Payment method: {method}\n"
        f"Reference: {payment_reference}"
    )
