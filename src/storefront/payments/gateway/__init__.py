"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeGateway for development and testing (``PAYMENT_GATEWAY=fake``, default)
- PayPalGateway for real checkouts (``PAYMENT_GATEWAY=paypal``)
"""

import os

from storefront.payments.gateway.fake_adapter import FakeGateway
from storefront.payments.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def _build_gateway() -> PaymentGateway:
    if os.environ.get("PAYMENT_GATEWAY", "fake") == "paypal":
        from storefront.payments.gateway.paypal_adapter import PayPalGateway

        return PayPalGateway(
            client_id=os.environ["PAYPAL_CLIENT_ID"],
            client_secret=os.environ["PAYPAL_CLIENT_SECRET"],
            mode=os.environ.get("PAYPAL_MODE", "sandbox"),
            timeout=float(os.environ.get("PAYPAL_TIMEOUT", "15")),
        )
    return FakeGateway()


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway, building it from the environment on first use."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = _build_gateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    global _current_gateway
    _current_gateway = None


def checkout_currency() -> str:
    return os.environ.get("PAYPAL_CURRENCY", "USD")
