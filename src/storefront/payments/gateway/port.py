"""Payment gateway port (abstract interface).

Checkout uses a redirect-and-capture flow: the storefront creates a provider
order for the cart, the buyer approves it at the provider, and the
storefront captures it. The provider also posts asynchronous notifications
whose authenticity is confirmed by echoing the raw body back to it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


class GatewayError(Exception):
    """The provider rejected a call or could not be reached."""


@dataclass(frozen=True)
class PurchaseLine:
    """One cart line sent to the provider when creating an order."""

    reference: str  # see storefront.payments.reference
    name: str
    unit_amount: float
    quantity: int


@dataclass(frozen=True)
class ProviderOrder:
    order_id: str
    status: str
    approve_url: str | None = None


@dataclass(frozen=True)
class CapturedLine:
    reference: str | None
    name: str | None
    unit_amount: float
    quantity: int


@dataclass(frozen=True)
class CaptureResult:
    """What the provider reports after capturing an order."""

    order_id: str
    capture_id: str
    status: str
    amount: float | None = None
    currency: str | None = None
    payer_email: str | None = None
    payer_name: str | None = None
    shipping_address: dict = field(default_factory=dict)
    lines: tuple[CapturedLine, ...] = ()
    raw: dict = field(default_factory=dict)

    @property
    def completed(self) -> bool:
        return self.status.upper() == "COMPLETED"


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_order(self, lines: list[PurchaseLine], shipping_total: float, currency: str) -> ProviderOrder:
        """Create a provider-side order for the given lines."""
        ...

    @abstractmethod
    def capture_order(self, order_id: str) -> CaptureResult:
        """Capture funds for an approved order."""
        ...

    @abstractmethod
    def verify_notification(self, raw_body: bytes) -> bool:
        """Ask the provider whether a notification body is authentic."""
        ...
