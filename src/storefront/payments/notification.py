"""Payment notification (IPN) log and order creation from notifications.

State Machine:
    RECEIVED → VERIFIED → ORDER_CREATED | SKIPPED | ERRORED
    RECEIVED → UNVERIFIED → SKIPPED
    RECEIVED → ERRORED (verification call itself failed)

Every inbound notification gets exactly one row, whatever the outcome.
"""

import json
from datetime import UTC, datetime
from enum import Enum

import structlog
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from storefront.catalogue.product import Product
from storefront.domain import storefront
from storefront.identity.user import User
from storefront.ordering.order import Order, OrderSource
from storefront.payments.capture import CaptureSource, address_from, find_capture, record_capture
from storefront.payments.reference import parse_custom_field

logger = structlog.get_logger(__name__)

COMPLETED_PAYMENT_STATUS = "Completed"


class NotificationStatus(Enum):
    RECEIVED = "received"
    VERIFIED = "verified"
    UNVERIFIED = "unverified"
    ORDER_CREATED = "order_created"
    SKIPPED = "skipped"
    ERRORED = "errored"


_VALID_TRANSITIONS = {
    NotificationStatus.RECEIVED: {NotificationStatus.VERIFIED, NotificationStatus.UNVERIFIED, NotificationStatus.ERRORED},
    NotificationStatus.VERIFIED: {NotificationStatus.ORDER_CREATED, NotificationStatus.SKIPPED, NotificationStatus.ERRORED},
    NotificationStatus.UNVERIFIED: {NotificationStatus.SKIPPED},
    NotificationStatus.ORDER_CREATED: set(),
    NotificationStatus.SKIPPED: set(),
    NotificationStatus.ERRORED: set(),
}


@storefront.aggregate
class PaymentNotification:
    raw_body = Text()
    payload = Text()  # JSON object of the decoded form fields
    transaction_id = String(max_length=255)
    status = String(choices=NotificationStatus, default=NotificationStatus.RECEIVED.value)
    verified = Boolean(default=False)
    processed = Boolean(default=False)
    skip_reason = String(max_length=255)
    error = Text()
    order_id = Identifier()
    received_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def receive(cls, raw_body, fields):
        now = datetime.now(UTC)
        return cls(
            raw_body=raw_body,
            payload=json.dumps(fields),
            transaction_id=fields.get("txn_id"),
            status=NotificationStatus.RECEIVED.value,
            received_at=now,
            updated_at=now,
        )

    @property
    def fields(self) -> dict:
        return json.loads(self.payload) if self.payload else {}

    def _assert_can_transition(self, target):
        current = NotificationStatus(self.status)
        if target not in _VALID_TRANSITIONS[current]:
            raise ValidationError({"status": [f"Cannot move notification from {current.value} to {target.value}"]})

    def _move(self, target):
        self._assert_can_transition(target)
        self.status = target.value
        self.updated_at = datetime.now(UTC)

    def record_verification(self, verified):
        self.verified = bool(verified)
        if self.verified:
            self._move(NotificationStatus.VERIFIED)
        else:
            self._move(NotificationStatus.UNVERIFIED)
            self.skip("not verified by provider")

    def skip(self, reason, processed=False):
        self._move(NotificationStatus.SKIPPED)
        self.skip_reason = reason
        self.processed = processed

    def record_order(self, order_id):
        self._move(NotificationStatus.ORDER_CREATED)
        self.order_id = order_id
        self.processed = True

    def record_failure(self, error):
        self._move(NotificationStatus.ERRORED)
        self.error = error


@storefront.command(part_of="PaymentNotification")
class RecordPaymentNotification:
    raw_body = Text()
    provider_payload = Text(required=True)  # JSON object of the decoded form fields


@storefront.command(part_of="PaymentNotification")
class RecordNotificationVerification:
    notification_id = Identifier(required=True)
    verified = Boolean(required=True)


@storefront.command(part_of="PaymentNotification")
class CreateOrderFromNotification:
    notification_id = Identifier(required=True)


@storefront.command(part_of="PaymentNotification")
class RecordNotificationFailure:
    notification_id = Identifier(required=True)
    error = Text(required=True)


@storefront.command_handler(part_of=PaymentNotification)
class PaymentNotificationHandler:
    @handle(RecordPaymentNotification)
    def record(self, command):
        notification = PaymentNotification.receive(command.raw_body, json.loads(command.provider_payload))
        current_domain.repository_for(PaymentNotification).add(notification)
        return str(notification.id)

    @handle(RecordNotificationVerification)
    def record_verification(self, command):
        repo = current_domain.repository_for(PaymentNotification)
        notification = repo.get(command.notification_id)
        notification.record_verification(command.verified)
        repo.add(notification)
        return notification.status

    @handle(RecordNotificationFailure)
    def record_failure(self, command):
        repo = current_domain.repository_for(PaymentNotification)
        notification = repo.get(command.notification_id)
        notification.record_failure(command.error)
        repo.add(notification)

    @handle(CreateOrderFromNotification)
    def create_order(self, command):
        repo = current_domain.repository_for(PaymentNotification)
        notification = repo.get(command.notification_id)
        fields = notification.fields

        payment_status = fields.get("payment_status")
        custom = (fields.get("custom") or "").strip()
        transaction_id = notification.transaction_id

        if payment_status != COMPLETED_PAYMENT_STATUS:
            notification.skip(f"payment status is {payment_status or 'missing'}")
        elif not custom:
            # Multi-item cart checkouts carry no custom field; capture handles those
            notification.skip("no custom field")
        elif not transaction_id:
            raise ValidationError({"txn_id": ["Notification has no transaction id"]})
        elif find_capture(transaction_id) is not None:
            notification.skip("duplicate transaction", processed=True)
        else:
            order = self._place_order(fields, custom, transaction_id)
            notification.record_order(str(order.id))

        repo.add(notification)
        logger.info(
            "payment_notification_processed",
            notification_id=str(notification.id),
            transaction_id=transaction_id,
            status=notification.status,
            skip_reason=notification.skip_reason,
        )
        return notification.status

    @staticmethod
    def _place_order(fields, custom, transaction_id):
        parsed = parse_custom_field(custom, fallback_quantity=fields.get("quantity"))
        user = current_domain.repository_for(User).get(parsed.user_id)

        product_id = fields.get("item_number")
        if not product_id:
            raise ValidationError({"item_number": ["Notification has no item number"]})
        product_repo = current_domain.repository_for(Product)
        product = product_repo.get(product_id)

        product.decrement_stock(parsed.size, parsed.color, parsed.quantity)
        product_repo.add(product)

        payer_name = " ".join(part for part in (fields.get("first_name"), fields.get("last_name")) if part)
        order = Order.place(
            product=product,
            quantity=parsed.quantity,
            transaction_id=transaction_id,
            source=OrderSource.NOTIFICATION,
            user_id=str(user.id),
            size=parsed.size,
            color=parsed.color,
            payer_email=fields.get("payer_email"),
            payer_name=payer_name or None,
            shipping_address=address_from(
                {
                    "name": fields.get("address_name"),
                    "address_line1": fields.get("address_street"),
                    "city": fields.get("address_city"),
                    "state": fields.get("address_state"),
                    "postal_code": fields.get("address_zip"),
                    "country": fields.get("address_country_code"),
                }
            ),
            payment_details=fields,
        )
        current_domain.repository_for(Order).add(order)

        gross = fields.get("mc_gross")
        record_capture(
            transaction_id=transaction_id,
            source=CaptureSource.NOTIFICATION,
            orders=[order],
            captured_amount=float(gross) if gross else None,
            currency=fields.get("mc_currency"),
            user_id=str(user.id),
        )
        return order
