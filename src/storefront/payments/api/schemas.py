"""Pydantic request/response schemas for the Payments API."""

from datetime import datetime

from pydantic import BaseModel


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class CaptureOrderRequest(BaseModel):
    order_id: str

    model_config = {"json_schema_extra": {"examples": [{"order_id": "5O190127TN364715T"}]}}


class ConfigureGatewayRequest(BaseModel):
    should_succeed: bool = True
    failure_reason: str = "Payment declined"
    notifications_verified: bool = True
    capture_status: str = "COMPLETED"


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class ProviderOrderResponse(BaseModel):
    id: str
    status: str
    approve_url: str | None = None
    amount: float
    currency: str


class CaptureResponse(BaseModel):
    capture_id: str
    status: str
    order_ids: list[str]
    duplicate: bool = False


class NotificationResponse(BaseModel):
    id: str
    transaction_id: str | None = None
    status: str
    verified: bool
    processed: bool
    skip_reason: str | None = None
    error: str | None = None
    order_id: str | None = None
    payload: dict
    received_at: datetime | None = None


class GatewayConfigResponse(BaseModel):
    gateway: str
    should_succeed: bool
    failure_reason: str
    notifications_verified: bool
    capture_status: str
