"""Shared BDD fixtures and step definitions for payment notifications."""

from urllib.parse import urlencode

import pytest
from protean.utils.globals import current_domain
from pytest_bdd import given, parsers, then, when

from storefront.catalogue.product import Product
from storefront.ordering.order import Order
from storefront.payments.gateway import get_gateway
from storefront.payments.ipn import process_notification
from storefront.payments.notification import PaymentNotification
from storefront.utils.query import find_all


@pytest.fixture()
def outcome():
    """Container for the most recent notification id."""
    return {"notification_id": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a registered shopper", target_fixture="shopper")
def registered_shopper(make_user):
    return make_user()


@given(
    parsers.cfparse('a "{title}" priced at {price:f} with {quantity:d} in size "{size}" and color "{color}"'),
    target_fixture="product_id",
)
def product_in_stock(make_product, title, price, quantity, size, color):
    return make_product(title=title, price=price, sizes=[{"size": size, "color": color, "quantity": quantity}])


@given("the provider does not verify notifications")
def provider_rejects_notifications():
    get_gateway().configure(notifications_verified=False)


# ---------------------------------------------------------------------------
# When steps (also usable as Given)
# ---------------------------------------------------------------------------
def _post_notification(user_id, product_id, transaction_id, quantity, size, color):
    body = urlencode(
        {
            "txn_id": transaction_id,
            "payment_status": "Completed",
            "custom": f"{user_id}|{size}|{color}|{quantity}",
            "item_number": product_id,
            "mc_currency": "USD",
        }
    ).encode()
    return process_notification(body)


_NOTIFICATION_STEP = 'a completed notification for transaction "{transaction_id}" buys {quantity:d} in size "{size}" and color "{color}"'


@given(parsers.cfparse(_NOTIFICATION_STEP))
@when(parsers.cfparse(_NOTIFICATION_STEP))
def completed_notification(shopper, product_id, outcome, transaction_id, quantity, size, color):
    outcome["notification_id"] = _post_notification(shopper, product_id, transaction_id, quantity, size, color)


@when(parsers.cfparse('a completed notification for transaction "{transaction_id}" names an unknown shopper'))
def notification_for_unknown_shopper(product_id, outcome, transaction_id):
    outcome["notification_id"] = _post_notification("no-such-user", product_id, transaction_id, 1, "M", "Black")


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
def _notification(outcome):
    return current_domain.repository_for(PaymentNotification).get(outcome["notification_id"])


@then(parsers.cfparse('the notification is marked "{status}"'))
def notification_status_is(outcome, status):
    assert _notification(outcome).status == status


@then(parsers.cfparse('the notification is skipped as "{reason}"'))
def notification_skipped(outcome, reason):
    notification = _notification(outcome)
    assert notification.status == "skipped"
    assert notification.skip_reason == reason


@then(parsers.cfparse("the shopper has {count:d} order for {quantity:d} items"))
def shopper_orders(shopper, count, quantity):
    orders = find_all(Order, user_id=shopper)
    assert len(orders) == count
    assert sum(order.quantity for order in orders) == quantity


@then("the shopper has no orders")
def shopper_has_no_orders(shopper):
    assert find_all(Order, user_id=shopper) == []


@then(parsers.cfparse('{remaining:d} "{title}" remains in size "{size}" and color "{color}"'))
def stock_remaining(product_id, remaining, title, size, color):
    product = current_domain.repository_for(Product).get(product_id)
    assert product.title == title
    assert product.available_for(size, color) == remaining
