"""Inbound payment notification processing.

The provider always gets a success response. Once a notification is
logged, later failures are written to its row rather than raised. Each
step is its own command, so a failed order attempt rolls back without
losing the log row.
"""

import json
from urllib.parse import parse_qsl

import structlog
from protean.utils.globals import current_domain

from storefront.payments.gateway import get_gateway
from storefront.payments.notification import (
    CreateOrderFromNotification,
    RecordNotificationFailure,
    RecordNotificationVerification,
    RecordPaymentNotification,
)

logger = structlog.get_logger(__name__)


def decode_notification(raw_body: bytes) -> dict:
    """Decode a form-encoded notification; the last value wins for repeated keys."""
    text = raw_body.decode("utf-8", errors="replace")
    return dict(parse_qsl(text, keep_blank_values=True))


def process_notification(raw_body: bytes) -> str:
    """Log, verify and reconcile one notification. Returns the log row id."""
    fields = decode_notification(raw_body)
    notification_id = current_domain.process(
        RecordPaymentNotification(
            raw_body=raw_body.decode("utf-8", errors="replace"),
            provider_payload=json.dumps(fields),
        ),
        asynchronous=False,
    )

    try:
        verified = get_gateway().verify_notification(raw_body)
        current_domain.process(
            RecordNotificationVerification(notification_id=notification_id, verified=verified),
            asynchronous=False,
        )
        if verified:
            current_domain.process(
                CreateOrderFromNotification(notification_id=notification_id),
                asynchronous=False,
            )
        else:
            logger.warning("payment_notification_unverified", notification_id=notification_id)
    except Exception as exc:
        logger.exception(
            "payment_notification_failed",
            notification_id=notification_id,
            transaction_id=fields.get("txn_id"),
        )
        current_domain.process(
            RecordNotificationFailure(notification_id=notification_id, error=f"{type(exc).__name__}: {exc}"),
            asynchronous=False,
        )

    return notification_id