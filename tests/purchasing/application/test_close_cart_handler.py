"""Application tests for closing carts into purchases."""

import pytest
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain
from purchasing.cart.cart import Cart
from purchasing.cart.closing import CloseCart
from purchasing.cart.items import AddSku, AddUpl
from purchasing.cart.management import CreateCart, SetDocumentKind
from purchasing.cart.payment import AddPayment
from purchasing.purchase.purchase import Purchase
from purchasing.shared.errors import Rejected
from purchasing.shared.upl import UplInfo


def _process(command):
    return current_domain.process(command, asynchronous=False)


def _ready_cart():
    cart_id = _process(CreateCart(owner_uid=7, store_id=1))
    for upl_id in ("UPL-1", "UPL-2"):
        _process(
            AddUpl(
                cart_id=cart_id,
                upl=UplInfo(
                    upl_id=upl_id,
                    kind="Sku",
                    sku=100,
                    piece=1,
                    name="Dog food 2kg",
                    retail_net_price=1000,
                    vat="27",
                    retail_gross_price=1270,
                ),
            )
        )
    _process(AddPayment(cart_id=cart_id, payment_id="P-1", amount=2540))
    return cart_id


class TestCloseCartHandler:
    def test_close_moves_cart_into_purchase_store(self):
        cart_id = _ready_cart()
        purchase_id = _process(CloseCart(cart_id=cart_id))

        assert purchase_id == cart_id
        purchase = current_domain.repository_for(Purchase).get(purchase_id)
        assert purchase.total_gross == 2540
        assert len(purchase.items) == 1
        assert len(purchase.upl_info_objects) == 2

        with pytest.raises(ObjectNotFoundError):
            current_domain.repository_for(Cart).get(cart_id)
        assert cart_id not in current_domain.repository_for(Cart).all_ids()

    def test_rejected_close_keeps_cart(self):
        cart_id = _ready_cart()
        _process(SetDocumentKind(cart_id=cart_id, document_kind="Invoice"))

        with pytest.raises(Rejected) as exc:
            _process(CloseCart(cart_id=cart_id))
        assert exc.value.reason == "invoice requires customer"

        cart = current_domain.repository_for(Cart).get(cart_id)
        assert cart.status == "Open"
        assert current_domain.repository_for(Purchase).exists(cart_id) is False

    def test_quantity_mismatch_rejected(self):
        cart_id = _ready_cart()
        _process(AddSku(cart_id=cart_id, sku=100, piece=3, name="Dog food", vat="27", unit_price_net=1000))

        with pytest.raises(Rejected) as exc:
            _process(CloseCart(cart_id=cart_id))
        assert exc.value.reason == "sku/tag quantity mismatch"

    def test_closing_twice_not_found(self):
        cart_id = _ready_cart()
        _process(CloseCart(cart_id=cart_id))
        with pytest.raises(ObjectNotFoundError):
            _process(CloseCart(cart_id=cart_id))
