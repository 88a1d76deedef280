"""FastAPI endpoints for PayPal checkout and payment notifications."""

import json
import os

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.identity.api.auth import current_user, require_admin
from storefront.identity.user import User
from storefront.ordering.cart import CartItem
from storefront.payments.api.schemas import (
    CaptureOrderRequest,
    CaptureResponse,
    ConfigureGatewayRequest,
    GatewayConfigResponse,
    NotificationResponse,
    ProviderOrderResponse,
)
from storefront.payments.capture import ReconcileCapture
from storefront.payments.gateway import checkout_currency, get_gateway
from storefront.payments.gateway.fake_adapter import FakeGateway
from storefront.payments.gateway.port import GatewayError, PurchaseLine
from storefront.payments.ipn import process_notification
from storefront.payments.notification import PaymentNotification
from storefront.payments.reference import encode_line_reference
from storefront.utils.query import find_all, find_one

logger = structlog.get_logger(__name__)

paypal_router = APIRouter(prefix="/api/paypal", tags=["payments"])


def _gateway_failure(exc: GatewayError) -> HTTPException:
    return HTTPException(status_code=502, detail=f"Payment provider error: {exc}")


@paypal_router.post("/create-order", status_code=201, response_model=ProviderOrderResponse)
def create_order(user: User = Depends(current_user)) -> ProviderOrderResponse:
    """Create a provider order for the user's cart; shipping uses each product's first option."""
    rows = find_all(CartItem, user_id=str(user.id))
    if not rows:
        raise HTTPException(status_code=400, detail="Cart is empty")

    lines, shipping_total = [], 0.0
    for row in rows:
        product = find_one(Product, id=str(row.product_id))
        if product is None:
            raise HTTPException(status_code=400, detail=f"Product no longer available: {row.title}")
        lines.append(
            PurchaseLine(
                reference=encode_line_reference(row.product_id, row.size, row.color),
                name=row.title,
                unit_amount=row.price,
                quantity=row.quantity,
            )
        )
        shipping_total += product.shipping_cost

    currency = checkout_currency()
    try:
        order = get_gateway().create_order(lines, round(shipping_total, 2), currency)
    except GatewayError as exc:
        logger.error("provider_order_failed", user_id=str(user.id), error=str(exc))
        raise _gateway_failure(exc) from None

    amount = round(sum(line.unit_amount * line.quantity for line in lines) + shipping_total, 2)
    return ProviderOrderResponse(
        id=order.order_id,
        status=order.status,
        approve_url=order.approve_url,
        amount=amount,
        currency=currency,
    )


@paypal_router.post("/capture-order", response_model=CaptureResponse)
def capture_order(body: CaptureOrderRequest, user: User = Depends(current_user)) -> CaptureResponse:
    """Capture an approved provider order and turn its lines into orders."""
    try:
        result = get_gateway().capture_order(body.order_id)
    except GatewayError as exc:
        logger.error("provider_capture_failed", order_id=body.order_id, error=str(exc))
        raise _gateway_failure(exc) from None

    if not result.completed:
        raise HTTPException(
            status_code=400,
            detail={"message": "Payment was not completed", "status": result.status},
        )

    lines = [
        {
            "reference": line.reference,
            "name": line.name,
            "unit_amount": line.unit_amount,
            "quantity": line.quantity,
        }
        for line in result.lines
        if line.reference
    ]
    command = ReconcileCapture(
        user_id=str(user.id),
        provider_order_id=result.order_id,
        capture_id=result.capture_id,
        amount=result.amount,
        currency=result.currency,
        payer_email=result.payer_email,
        payer_name=result.payer_name,
        shipping_address=json.dumps(result.shipping_address or {}),
        lines=json.dumps(lines),
        provider_payload=json.dumps(result.raw),
    )
    outcome = current_domain.process(command, asynchronous=False)
    return CaptureResponse(
        capture_id=result.capture_id,
        status=result.status,
        order_ids=outcome["order_ids"],
        duplicate=outcome["duplicate"],
    )


@paypal_router.post("/ipn", response_class=PlainTextResponse)
async def instant_payment_notification(request: Request) -> PlainTextResponse:
    """Receive a provider notification. The provider always gets 200 OK."""
    raw_body = await request.body()
    try:
        notification_id = await run_in_threadpool(process_notification, raw_body)
        logger.info("payment_notification_received", notification_id=notification_id)
    except Exception:
        logger.exception("payment_notification_not_recorded", size=len(raw_body))
    return PlainTextResponse("OK", status_code=200)


@paypal_router.get(
    "/notifications", response_model=list[NotificationResponse], dependencies=[Depends(require_admin)]
)
async def list_notifications() -> list[NotificationResponse]:
    notifications = sorted(find_all(PaymentNotification), key=lambda n: n.received_at, reverse=True)
    return [
        NotificationResponse(
            id=str(n.id),
            transaction_id=n.transaction_id,
            status=n.status,
            verified=bool(n.verified),
            processed=bool(n.processed),
            skip_reason=n.skip_reason,
            error=n.error,
            order_id=str(n.order_id) if n.order_id else None,
            payload=n.fields,
            received_at=n.received_at,
        )
        for n in notifications
    ]


@paypal_router.post("/gateway/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Configure the FakeGateway behavior (non-production only)."""
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    gateway = get_gateway()
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeGateway")

    gateway.configure(
        should_succeed=body.should_succeed,
        failure_reason=body.failure_reason,
        notifications_verified=body.notifications_verified,
        capture_status=body.capture_status,
    )
    return GatewayConfigResponse(
        gateway=type(gateway).__name__,
        should_succeed=gateway.should_succeed,
        failure_reason=gateway.failure_reason,
        notifications_verified=gateway.notifications_verified,
        capture_status=gateway.capture_status,
    )
