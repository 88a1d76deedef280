"""Order aggregate: the immutable record of one purchased line.

Orders are written only by payment reconciliation (checkout capture or a
verified payment notification) and are not edited afterwards.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Float, Identifier, Integer, String, Text, ValueObject

from storefront.domain import storefront
from storefront.ordering.events import OrderPlaced
from storefront.shared.address import Address
from storefront.utils.query import find_all


class OrderStatus(Enum):
    COMPLETED = "completed"


class OrderSource(Enum):
    CAPTURE = "capture"
    NOTIFICATION = "notification"


@storefront.aggregate
class Order:
    user_id = Identifier()
    product_id = Identifier(required=True)
    title = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    image_id = Identifier()
    size = String(max_length=50)
    color = String(max_length=50)
    quantity = Integer(required=True, min_value=1)
    shipping_cost = Float(default=0.0)
    shipping_method = String(max_length=100)
    transaction_id = String(required=True, max_length=255)
    provider_order_id = String(max_length=255)
    payer_email = String(max_length=254)
    payer_name = String(max_length=255)
    shipping_address = ValueObject(Address)
    payment_details = Text()  # JSON payload from the payment provider
    status = String(choices=OrderStatus, default=OrderStatus.COMPLETED.value)
    source = String(choices=OrderSource, required=True)
    created_at = DateTime()

    @classmethod
    def place(
        cls,
        product,
        quantity,
        transaction_id,
        source,
        user_id=None,
        size=None,
        color=None,
        price=None,
        provider_order_id=None,
        payer_email=None,
        payer_name=None,
        shipping_address=None,
        payment_details=None,
    ):
        order = cls(
            user_id=user_id,
            product_id=str(product.id),
            title=product.title,
            price=price if price is not None else product.unit_price(size, color),
            image_id=product.image_id,
            size=size,
            color=color,
            quantity=quantity,
            shipping_cost=product.shipping_cost,
            shipping_method=product.shipping_method,
            transaction_id=transaction_id,
            provider_order_id=provider_order_id,
            payer_email=payer_email,
            payer_name=payer_name,
            shipping_address=shipping_address,
            payment_details=json.dumps(payment_details or {}),
            status=OrderStatus.COMPLETED.value,
            source=source.value,
            created_at=datetime.now(UTC),
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                user_id=str(user_id) if user_id else None,
                product_id=str(product.id),
                quantity=quantity,
                price=order.price,
                transaction_id=transaction_id,
                source=order.source,
            )
        )
        return order

    @property
    def total(self) -> float:
        return round(self.price * self.quantity + (self.shipping_cost or 0.0), 2)


def orders_for_user(user_id) -> list:
    orders = find_all(Order, user_id=str(user_id))
    return sorted(orders, key=lambda order: order.created_at, reverse=True)


def has_purchased(user_id, product_id) -> bool:
    return bool(find_all(Order, user_id=str(user_id), product_id=str(product_id)))
