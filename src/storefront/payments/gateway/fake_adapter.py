"""Configurable fake payment gateway for development and testing.

Simulates create/capture and notification verification without any
network calls. Capturing the same provider order twice yields the same
capture id, the way a real provider reports an already-captured order.
"""

from uuid import uuid4

from storefront.payments.gateway.port import (
    CapturedLine,
    CaptureResult,
    GatewayError,
    PaymentGateway,
    ProviderOrder,
    PurchaseLine,
)


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Payment declined"
        self.notifications_verified: bool = True
        self.capture_status: str = "COMPLETED"
        self.payer_email: str = "buyer@example.com"
        self.payer_name: str = "Test Buyer"
        self.orders: dict[str, dict] = {}
        self.calls: list[dict] = []

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Payment declined",
        notifications_verified: bool = True,
        capture_status: str = "COMPLETED",
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.notifications_verified = notifications_verified
        self.capture_status = capture_status

    def create_order(self, lines: list[PurchaseLine], shipping_total: float, currency: str) -> ProviderOrder:
        self.calls.append(
            {
                "method": "create_order",
                "lines": list(lines),
                "shipping_total": shipping_total,
                "currency": currency,
            }
        )
        if not self.should_succeed:
            raise GatewayError(self.failure_reason)

        order_id = f"FAKE-{uuid4().hex[:12].upper()}"
        items_total = sum(line.unit_amount * line.quantity for line in lines)
        self.orders[order_id] = {
            "lines": list(lines),
            "amount": round(items_total + shipping_total, 2),
            "currency": currency,
        }
        return ProviderOrder(
            order_id=order_id,
            status="CREATED",
            approve_url=f"https://fake-gateway.local/checkout?token={order_id}",
        )

    def capture_order(self, order_id: str) -> CaptureResult:
        self.calls.append({"method": "capture_order", "order_id": order_id})
        if not self.should_succeed:
            raise GatewayError(self.failure_reason)

        order = self.orders.get(order_id, {})
        lines = tuple(
            CapturedLine(
                reference=line.reference,
                name=line.name,
                unit_amount=line.unit_amount,
                quantity=line.quantity,
            )
            for line in order.get("lines", [])
        )
        return CaptureResult(
            order_id=order_id,
            capture_id=f"FAKE-CAPTURE-{order_id}",
            status=self.capture_status,
            amount=order.get("amount"),
            currency=order.get("currency", "USD"),
            payer_email=self.payer_email,
            payer_name=self.payer_name,
            shipping_address={
                "name": self.payer_name,
                "address_line1": "1 Test Street",
                "city": "Springfield",
                "state": "IL",
                "postal_code": "62701",
                "country": "US",
            },
            lines=lines,
            raw={"id": order_id, "status": self.capture_status},
        )

    def verify_notification(self, raw_body: bytes) -> bool:
        self.calls.append({"method": "verify_notification", "raw_body": raw_body})
        if not self.should_succeed:
            raise GatewayError(self.failure_reason)
        return self.notifications_verified
