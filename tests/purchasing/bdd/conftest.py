"""Shared BDD fixtures and step definitions for the Purchasing domain."""

import pytest
from purchasing.cart.cart import Cart
from purchasing.cart.events import CartClosed, PointsBurned, UplAdded
from purchasing.shared.customer import Customer
from purchasing.shared.errors import Conflict
from purchasing.shared.upl import UplInfo
from pytest_bdd import given, parsers, then

_CART_EVENT_CLASSES = {
    "CartClosed": CartClosed,
    "PointsBurned": PointsBurned,
    "UplAdded": UplAdded,
}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for captured domain errors."""
    return {"exc": None}


@pytest.fixture()
def outcome():
    """Container for the purchase produced by a close."""
    return {"purchase": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("an empty open cart", target_fixture="cart")
def empty_cart():
    cart = Cart.create(owner_uid=7, store_id=1)
    return cart


@given(
    parsers.cfparse(
        "an open cart with {count:d} tagged units of SKU {sku:d} at net {net:d} and gross {gross:d}"
    ),
    target_fixture="cart",
)
def tagged_cart(count, sku, net, gross):
    cart = Cart.create(owner_uid=7, store_id=1)
    for index in range(1, count + 1):
        cart.add_upl(
            UplInfo(
                upl_id=f"UPL-{index}",
                kind="Sku",
                sku=sku,
                piece=1,
                name=f"SKU {sku}",
                retail_net_price=net,
                vat="27",
                retail_gross_price=gross,
            )
        )
    return cart


@given(parsers.cfparse("a {percentage:d} percent commitment"))
def commitment(cart, percentage):
    cart.add_commitment("C-BDD", percentage)


@given(parsers.cfparse("the document kind is {document_kind}"))
def document_kind(cart, document_kind):
    cart.set_document(document_kind)


@given(parsers.cfparse("the payment kind is {payment_kind}"))
def payment_kind(cart, payment_kind):
    cart.set_payment(payment_kind)


@given(parsers.cfparse('the customer is "{name}"'))
def customer(cart, name):
    cart.add_customer(Customer(name=name))


@given(parsers.cfparse("a loyalty card for account {account_id}"))
def loyalty_card(cart, account_id):
    cart.add_loyalty_card(account_id=account_id, card_id=f"CARD-{account_id}")


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then("the action fails with a conflict")
def action_fails_with_conflict(error):
    assert isinstance(error["exc"], Conflict)


@then(parsers.cfparse("a {event_type} cart event is raised"))
def cart_event_raised(cart, event_type):
    event_cls = _CART_EVENT_CLASSES[event_type]
    assert any(isinstance(event, event_cls) for event in cart._events)
