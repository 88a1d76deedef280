"""Checkout capture reconciliation.

A PaymentCapture row is keyed by the provider transaction id, so it can
exist at most once. It is written in the same unit of work as the stock
decrements, Order rows and cart clean-up it stands for. Reconciling a
transaction that already has a PaymentCapture is a no-op that reports the
orders created the first time.
"""

import json
from dataclasses import asdict
from datetime import UTC, datetime
from enum import Enum

import structlog
from protean.fields import DateTime, Float, Identifier, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from storefront.catalogue.product import Product
from storefront.domain import storefront
from storefront.ordering.cart import CartItem
from storefront.ordering.order import Order, OrderSource
from storefront.payments.reference import decode_line_reference, encode_line_reference
from storefront.shared.address import Address
from storefront.utils.query import find_all, find_one

logger = structlog.get_logger(__name__)

AMOUNT_TOLERANCE = 0.01


class CaptureSource(Enum):
    CHECKOUT = "checkout"
    NOTIFICATION = "notification"


@storefront.aggregate
class PaymentCapture:
    transaction_id = Identifier(identifier=True)
    source = String(choices=CaptureSource, required=True)
    provider_order_id = String(max_length=255)
    user_id = Identifier()
    order_ids = Text()  # JSON array of Order ids
    captured_amount = Float()
    computed_amount = Float()
    currency = String(max_length=3)
    recorded_at = DateTime()

    @property
    def order_id_list(self) -> list[str]:
        return json.loads(self.order_ids) if self.order_ids else []

    @property
    def amount_mismatch(self) -> bool:
        if self.captured_amount is None or self.computed_amount is None:
            return False
        return abs(self.captured_amount - self.computed_amount) > AMOUNT_TOLERANCE


def find_capture(transaction_id):
    return find_one(PaymentCapture, transaction_id=str(transaction_id))


def address_from(data: dict | None):
    values = {key: value for key, value in (data or {}).items() if value}
    return Address(**values) if values else None


def record_capture(transaction_id, source, orders, captured_amount=None, currency=None, **extra):
    """Persist the reservation row for a reconciled transaction."""
    capture = PaymentCapture(
        transaction_id=transaction_id,
        source=source.value,
        order_ids=json.dumps([str(order.id) for order in orders]),
        captured_amount=captured_amount,
        computed_amount=round(sum(order.total for order in orders), 2),
        currency=currency,
        recorded_at=datetime.now(UTC),
        **extra,
    )
    if capture.amount_mismatch:
        logger.warning(
            "captured_amount_mismatch",
            transaction_id=transaction_id,
            captured=capture.captured_amount,
            computed=capture.computed_amount,
        )
    current_domain.repository_for(PaymentCapture).add(capture)
    return capture


@storefront.command(part_of="PaymentCapture")
class ReconcileCapture:
    user_id = Identifier(required=True)
    provider_order_id = String(required=True, max_length=255)
    capture_id = String(required=True, max_length=255)
    amount = Float()
    currency = String(max_length=3)
    payer_email = String(max_length=254)
    payer_name = String(max_length=255)
    shipping_address = Text()  # JSON object
    lines = Text()  # JSON array of {reference, name, unit_amount, quantity}
    provider_payload = Text()  # JSON provider response


@storefront.command_handler(part_of=PaymentCapture)
class ReconcileCaptureHandler:
    @handle(ReconcileCapture)
    def reconcile(self, command):
        existing = find_capture(command.capture_id)
        if existing is not None:
            logger.info("capture_already_reconciled", capture_id=command.capture_id)
            return {"order_ids": existing.order_id_list, "duplicate": True}

        user_id = str(command.user_id)
        cart_rows = find_all(CartItem, user_id=user_id)
        purchases = self._purchases(command, cart_rows)

        product_repo = current_domain.repository_for(Product)
        order_repo = current_domain.repository_for(Order)
        cart_dao = current_domain.repository_for(CartItem)._dao
        shipping_address = address_from(json.loads(command.shipping_address) if command.shipping_address else None)
        payload = json.loads(command.provider_payload) if command.provider_payload else {}

        products: dict[str, Product] = {}
        orders = []
        for reference, quantity, unit_amount in purchases:
            product = products.get(reference.product_id) or find_one(Product, id=reference.product_id)
            if product is None:
                logger.warning("captured_line_without_product", capture_id=command.capture_id, **asdict(reference))
                continue
            products[reference.product_id] = product

            product.decrement_stock(reference.size, reference.color, quantity)
            order = Order.place(
                product=product,
                quantity=quantity,
                transaction_id=command.capture_id,
                source=OrderSource.CAPTURE,
                user_id=user_id,
                size=reference.size,
                color=reference.color,
                price=unit_amount,
                provider_order_id=command.provider_order_id,
                payer_email=command.payer_email,
                payer_name=command.payer_name,
                shipping_address=shipping_address,
                payment_details=payload,
            )
            order_repo.add(order)
            orders.append(order)

            purchased = [
                row
                for row in cart_rows
                if str(row.product_id) == reference.product_id and row.same_stock_line(reference.size, reference.color)
            ]
            for row in purchased:
                cart_dao.delete(row)
            cart_rows = [row for row in cart_rows if row not in purchased]

        for product in products.values():
            product_repo.add(product)

        record_capture(
            transaction_id=command.capture_id,
            source=CaptureSource.CHECKOUT,
            orders=orders,
            captured_amount=command.amount,
            currency=command.currency,
            provider_order_id=command.provider_order_id,
            user_id=user_id,
        )
        logger.info("capture_reconciled", capture_id=command.capture_id, orders=len(orders))
        return {"order_ids": [str(order.id) for order in orders], "duplicate": False}

    @staticmethod
    def _purchases(command, cart_rows):
        """(reference, quantity, unit price) per purchased line; the cart stands in when the provider lists none."""
        lines = json.loads(command.lines) if command.lines else []
        if lines:
            return [
                (decode_line_reference(line["reference"]), int(line["quantity"]), line.get("unit_amount"))
                for line in lines
            ]

        return [
            (
                decode_line_reference(encode_line_reference(row.product_id, row.size, row.color)),
                row.quantity,
                row.price,
            )
            for row in cart_rows
        ]
