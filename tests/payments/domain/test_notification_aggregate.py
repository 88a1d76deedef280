"""Tests for the PaymentNotification log row and its status transitions."""

import pytest
from protean.exceptions import ValidationError

from storefront.payments.notification import NotificationStatus, PaymentNotification


def _notification(**fields):
    defaults = {"txn_id": "TXN-1", "payment_status": "Completed"}
    defaults.update(fields)
    return PaymentNotification.receive("txn_id=TXN-1&payment_status=Completed", defaults)


class TestReceive:
    def test_starts_received(self):
        notification = _notification()

        assert notification.status == NotificationStatus.RECEIVED.value
        assert notification.transaction_id == "TXN-1"
        assert notification.processed is False

    def test_fields_round_trip(self):
        assert _notification(custom="u|M|Black|2").fields["custom"] == "u|M|Black|2"


class TestTransitions:
    def test_verified_then_order_created(self):
        notification = _notification()

        notification.record_verification(True)
        notification.record_order("order-1")

        assert notification.status == NotificationStatus.ORDER_CREATED.value
        assert notification.processed is True
        assert notification.order_id == "order-1"

    def test_unverified_is_skipped(self):
        notification = _notification()

        notification.record_verification(False)

        assert notification.status == NotificationStatus.SKIPPED.value
        assert notification.skip_reason == "not verified by provider"
        assert notification.verified is False

    def test_duplicate_skip_marks_processed(self):
        notification = _notification()
        notification.record_verification(True)

        notification.skip("duplicate transaction", processed=True)

        assert notification.processed is True

    def test_failure_records_error(self):
        notification = _notification()

        notification.record_failure("GatewayError: timeout")

        assert notification.status == NotificationStatus.ERRORED.value
        assert notification.error == "GatewayError: timeout"

    def test_cannot_create_order_before_verification(self):
        notification = _notification()

        with pytest.raises(ValidationError):
            notification.record_order("order-1")

    def test_terminal_states_are_final(self):
        notification = _notification()
        notification.record_verification(True)
        notification.record_order("order-1")

        with pytest.raises(ValidationError):
            notification.record_failure("late failure")
