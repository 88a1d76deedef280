"""PayPal adapter: Orders v2 REST API plus legacy IPN verification.

Every outbound call carries a timeout. Access tokens are cached until
shortly before they expire.
"""

import time

import requests
import structlog

from storefront.payments.gateway.port import (
    CapturedLine,
    CaptureResult,
    GatewayError,
    PaymentGateway,
    ProviderOrder,
    PurchaseLine,
)

logger = structlog.get_logger(__name__)

API_BASE = {
    "sandbox": "https://api-m.sandbox.paypal.com",
    "live": "https://api-m.paypal.com",
}
IPN_VERIFY_URL = {
    "sandbox": "https://ipnpb.sandbox.paypal.com/cgi-bin/webscr",
    "live": "https://ipnpb.paypal.com/cgi-bin/webscr",
}

_TOKEN_EXPIRY_MARGIN = 60


def _money(value: float) -> str:
    return f"{value:.2f}"


class PayPalGateway(PaymentGateway):
    def __init__(
        self,
        client_id: str,
        client_secret: str,
        mode: str = "sandbox",
        timeout: float = 15.0,
        session: requests.Session | None = None,
    ) -> None:
        if mode not in API_BASE:
            raise ValueError(f"Unknown PayPal mode: {mode!r}")
        self.client_id = client_id
        self.client_secret = client_secret
        self.mode = mode
        self.timeout = timeout
        self.session = session or requests.Session()
        self._token: str | None = None
        self._token_expires_at = 0.0

    @property
    def api_base(self) -> str:
        return API_BASE[self.mode]

    # -------------------------------------------------------------------
    # HTTP plumbing
    # -------------------------------------------------------------------
    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.RequestException as exc:
            body = getattr(getattr(exc, "response", None), "text", None)
            logger.error("paypal_request_failed", method=method, url=url, error=str(exc), body=body)
            raise GatewayError(f"PayPal request failed: {exc}") from exc
        return response

    def access_token(self) -> str:
        """Return a bearer token, fetching a new one when the cached token is stale."""
        if self._token and time.monotonic() < self._token_expires_at:
            return self._token

        response = self._request(
            "POST",
            f"{self.api_base}/v1/oauth2/token",
            auth=(self.client_id, self.client_secret),
            data={"grant_type": "client_credentials"},
            headers={"Accept": "application/json"},
        )
        payload = response.json()
        self._token = payload["access_token"]
        self._token_expires_at = time.monotonic() + max(int(payload.get("expires_in", 0)) - _TOKEN_EXPIRY_MARGIN, 0)
        return self._token

    def _authorized_headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.access_token()}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    # -------------------------------------------------------------------
    # Orders
    # -------------------------------------------------------------------
    def create_order(self, lines: list[PurchaseLine], shipping_total: float, currency: str) -> ProviderOrder:
        items_total = sum(line.unit_amount * line.quantity for line in lines)
        body = {
            "intent": "CAPTURE",
            "purchase_units": [
                {
                    "amount": {
                        "currency_code": currency,
                        "value": _money(items_total + shipping_total),
                        "breakdown": {
                            "item_total": {"currency_code": currency, "value": _money(items_total)},
                            "shipping": {"currency_code": currency, "value": _money(shipping_total)},
                        },
                    },
                    "items": [
                        {
                            "name": line.name[:127],
                            "sku": line.reference,
                            "quantity": str(line.quantity),
                            "unit_amount": {"currency_code": currency, "value": _money(line.unit_amount)},
                        }
                        for line in lines
                    ],
                }
            ],
        }
        payload = self._request(
            "POST",
            f"{self.api_base}/v2/checkout/orders",
            json=body,
            headers=self._authorized_headers(),
        ).json()

        approve_url = next((link["href"] for link in payload.get("links", []) if link.get("rel") == "approve"), None)
        logger.info("paypal_order_created", order_id=payload["id"], status=payload.get("status"))
        return ProviderOrder(order_id=payload["id"], status=payload.get("status", ""), approve_url=approve_url)

    def capture_order(self, order_id: str) -> CaptureResult:
        payload = self._request(
            "POST",
            f"{self.api_base}/v2/checkout/orders/{order_id}/capture",
            headers=self._authorized_headers(),
        ).json()
        result = parse_capture(payload)
        logger.info("paypal_order_captured", order_id=order_id, capture_id=result.capture_id, status=result.status)
        return result

    # -------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------
    def verify_notification(self, raw_body: bytes) -> bool:
        response = self._request(
            "POST",
            IPN_VERIFY_URL[self.mode],
            data=b"cmd=_notify-validate&" + raw_body,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        return response.text.strip() == "VERIFIED"


def parse_capture(payload: dict) -> CaptureResult:
    """Flatten an Orders v2 capture response."""
    units = payload.get("purchase_units") or [{}]
    unit = units[0]
    captures = (unit.get("payments") or {}).get("captures") or []
    capture = captures[0] if captures else {}
    amount = capture.get("amount") or {}

    payer = payload.get("payer") or {}
    payer_name = " ".join(
        part for part in ((payer.get("name") or {}).get("given_name"), (payer.get("name") or {}).get("surname")) if part
    )

    shipping = unit.get("shipping") or {}
    address = shipping.get("address") or {}
    shipping_address = {}
    if address:
        shipping_address = {
            "name": (shipping.get("name") or {}).get("full_name"),
            "address_line1": address.get("address_line_1"),
            "address_line2": address.get("address_line_2"),
            "city": address.get("admin_area_2"),
            "state": address.get("admin_area_1"),
            "postal_code": address.get("postal_code"),
            "country": address.get("country_code"),
        }

    lines = tuple(
        CapturedLine(
            reference=item.get("sku"),
            name=item.get("name"),
            unit_amount=float((item.get("unit_amount") or {}).get("value") or 0.0),
            quantity=int(item.get("quantity") or 1),
        )
        for unit_ in units
        for item in unit_.get("items") or []
    )

    return CaptureResult(
        order_id=payload.get("id", ""),
        capture_id=capture.get("id") or payload.get("id", ""),
        status=capture.get("status") or payload.get("status", ""),
        amount=float(amount["value"]) if amount.get("value") else None,
        currency=amount.get("currency_code"),
        payer_email=payer.get("email_address"),
        payer_name=payer_name or None,
        shipping_address=shipping_address,
        lines=lines,
        raw=payload,
    )
