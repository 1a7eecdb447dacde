"""BDD tests for closing carts."""

from purchasing.shared.errors import Rejected
from pytest_bdd import parsers, scenarios, then, when

scenarios("features/close_cart.feature")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse("a cash payment of {amount:d} is added"))
def add_cash_payment(cart, amount):
    cart.add_payment(f"P-{len(cart.payments) + 1}", amount)


@when(parsers.cfparse("the tag {upl_id} is removed"))
def remove_tag(cart, upl_id):
    cart.remove_upl(upl_id)


@when("the cart is closed")
def close(cart, error, outcome):
    try:
        outcome["purchase"] = cart.close_cart()
    except Rejected as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then("the cart is closed into a purchase")
def closed_into_purchase(cart, outcome, error):
    assert error["exc"] is None
    assert cart.status == "Closed"
    assert outcome["purchase"].id == cart.id


@then(parsers.cfparse("the purchase payable is {amount:d}"))
def purchase_payable_is(outcome, amount):
    assert outcome["purchase"].payable == amount


@then(parsers.cfparse("the purchase balance is {amount:d}"))
def purchase_balance_is(outcome, amount):
    assert outcome["purchase"].balance == amount


@then(parsers.cfparse('the close is rejected with "{reason}"'))
def close_rejected(error, reason):
    assert isinstance(error["exc"], Rejected)
    assert error["exc"].reason == reason


@then("the cart is still open")
def still_open(cart):
    assert cart.status == "Open"
