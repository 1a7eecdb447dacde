"""Application tests for removing carts and listing whole stores."""

import pytest
from protean import UnitOfWork
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain
from purchasing.cart.cart import Cart
from purchasing.cart.closing import CloseCart
from purchasing.cart.items import AddSku
from purchasing.cart.management import CreateCart, RemoveCart
from purchasing.purchase.purchase import Purchase
from purchasing.shared.errors import Conflict
from purchasing.utils.db import PAGE_SIZE
from purchasing.utils.locking import CART_STORE, PURCHASE_STORE, store_lock


def _process(command):
    return current_domain.process(command, asynchronous=False)


def _store_purchase_without_dropping_cart(cart_id):
    """Leave the cart behind after its purchase was stored, as an interrupted close would."""
    cart = current_domain.repository_for(Cart).get(cart_id)
    purchase = cart.close_cart()
    current_domain.repository_for(Purchase).add(purchase)
    return purchase


class TestRemoveCart:
    def test_abandoned_cart_is_removed(self):
        cart_id = _process(CreateCart(owner_uid=7))
        _process(AddSku(cart_id=cart_id, sku=100, piece=1, name="Dog food", vat="27", unit_price_net=1000))

        _process(RemoveCart(cart_id=cart_id))

        with pytest.raises(ObjectNotFoundError):
            current_domain.repository_for(Cart).get(cart_id)
        assert cart_id not in current_domain.repository_for(Cart).all_ids()

    def test_unknown_cart(self):
        with pytest.raises(ObjectNotFoundError):
            _process(RemoveCart(cart_id="00000000-0000-4000-8000-000000000000"))

    def test_orphaned_cart_cannot_close_but_can_be_removed(self):
        cart_id = _process(CreateCart(owner_uid=7))
        _store_purchase_without_dropping_cart(cart_id)

        with pytest.raises(Conflict):
            _process(CloseCart(cart_id=cart_id))

        _process(RemoveCart(cart_id=cart_id))

        assert cart_id not in current_domain.repository_for(Cart).all_ids()
        assert current_domain.repository_for(Purchase).exists(cart_id)


class TestCommitUnderLock:
    @pytest.fixture()
    def held_at_commit(self, monkeypatch):
        held = []
        original_commit = UnitOfWork.commit

        def recording_commit(uow, *args, **kwargs):
            held.append((store_lock(CART_STORE)._is_owned(), store_lock(PURCHASE_STORE)._is_owned()))
            return original_commit(uow, *args, **kwargs)

        monkeypatch.setattr(UnitOfWork, "commit", recording_commit)
        return held

    def test_cart_change_commits_while_cart_lock_is_held(self, held_at_commit):
        cart_id = _process(CreateCart(owner_uid=7))
        held_at_commit.clear()

        _process(AddSku(cart_id=cart_id, sku=100, piece=1, name="Dog food", vat="27", unit_price_net=1000))

        assert held_at_commit[0] == (True, False)
        assert current_domain.repository_for(Cart).get(cart_id).shopping_list[0].sku == 100

    def test_close_commits_while_both_locks_are_held(self, held_at_commit):
        cart_id = _process(CreateCart(owner_uid=7))
        held_at_commit.clear()

        _process(CloseCart(cart_id=cart_id))

        assert held_at_commit[0] == (True, True)
        assert current_domain.repository_for(Purchase).exists(cart_id)

    def test_locks_are_released_after_the_handler(self):
        cart_id = _process(CreateCart(owner_uid=7))
        _process(AddSku(cart_id=cart_id, sku=100, piece=1, name="Dog food", vat="27", unit_price_net=1000))

        assert store_lock(CART_STORE)._is_owned() is False


class TestListingWholeStores:
    def test_cart_ids_are_not_capped_at_one_page(self):
        created = {_process(CreateCart(owner_uid=7)) for _ in range(PAGE_SIZE + 5)}

        listed = current_domain.repository_for(Cart).all_ids()

        assert len(listed) == PAGE_SIZE + 5
        assert set(listed) == created

    def test_purchase_ids_are_not_capped_at_one_page(self):
        closed = set()
        for _ in range(PAGE_SIZE + 5):
            closed.add(_process(CloseCart(cart_id=_process(CreateCart(owner_uid=7)))))

        listed = current_domain.repository_for(Purchase).all_ids()

        assert len(listed) == PAGE_SIZE + 5
        assert set(listed) == closed
