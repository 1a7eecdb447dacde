"""Tests for Cart mutations and the totals they keep cached."""

from datetime import UTC, datetime, timedelta

import pytest
from protean.exceptions import ValidationError
from purchasing.cart.cart import Cart, CartStatus, DocumentKind, TRANSFER_DUE_DAYS
from purchasing.cart.events import (
    CartCreated,
    CustomerAttached,
    CustomerDetached,
    SkuAdded,
    UplAdded,
    UplRemoved,
)
from purchasing.shared.customer import Customer
from purchasing.shared.errors import Conflict, NotFound
from purchasing.shared.upl import UplInfo


def _make_cart(**overrides):
    defaults = {"owner_uid": 7, "store_id": 1}
    defaults.update(overrides)
    return Cart.create(**defaults)


def _sku_tag(upl_id, sku=100, piece=1, net=1000, gross=1270, **overrides):
    fields = {
        "upl_id": upl_id,
        "kind": "Sku",
        "sku": sku,
        "piece": piece,
        "name": "Dog food 2kg",
        "unit": "pcs",
        "retail_net_price": net,
        "vat": "27",
        "retail_gross_price": gross,
        "procurement_net_price": 700,
    }
    fields.update(overrides)
    return UplInfo(**fields)


def _derived_tag(upl_id, product_id=9, net=400, gross=508):
    return UplInfo(
        upl_id=upl_id,
        kind="DerivedProduct",
        product_id=product_id,
        amount=250,
        name="Bulk seeds 250g",
        unit="g",
        retail_net_price=net,
        vat="27",
        retail_gross_price=gross,
        procurement_net_price=150,
    )


def _assert_gross_identity(cart):
    assert cart.total_gross == cart.items_total_gross - cart.commitment_discount_value - cart.burned_points_balance


class TestCartCreation:
    def test_new_cart_is_open_and_empty(self):
        cart = _make_cart()
        assert cart.status == CartStatus.OPEN.value
        assert cart.document_kind == DocumentKind.RECEIPT.value
        assert cart.payment_kind == "Cash"
        assert cart.total_gross == 0
        assert cart.payable == 0
        assert len(cart.shopping_list) == 0

    def test_created_by_defaults_to_owner(self):
        cart = _make_cart(owner_uid=12)
        assert cart.created_by == 12

    def test_dates_default_to_today(self):
        cart = _make_cart()
        today = datetime.now(UTC).date()
        assert cart.date_completion.date() == today
        assert cart.payment_duedate.date() == today

    def test_raises_cart_created(self):
        cart = _make_cart(ancestor="1f0c1c4e-3f5e-4b8e-9b7e-2f1e8f1d2a3b")
        event = cart._events[-1]
        assert isinstance(event, CartCreated)
        assert event.cart_id == cart.id
        assert event.ancestor == "1f0c1c4e-3f5e-4b8e-9b7e-2f1e8f1d2a3b"


class TestAddSku:
    def test_adds_line_and_recalculates(self):
        cart = _make_cart()
        cart.add_sku(sku=100, piece=2, name="Dog food", vat="27", unit_price_net=1000, unit_price_gross=1270)

        assert len(cart.shopping_list) == 1
        line = cart.shopping_list[0]
        assert line.total_price_net == 2000
        assert line.total_price_gross == 2540
        assert cart.total_net == 2000
        assert cart.total_gross == 2540
        assert cart.total_vat == 540

    def test_existing_line_is_replaced(self):
        cart = _make_cart()
        cart.add_sku(sku=100, piece=2, name="Dog food", vat="27", unit_price_net=1000, unit_price_gross=1270)
        cart.add_sku(sku=100, piece=1, name="Dog food XL", vat="27", unit_price_net=2000, unit_price_gross=2540)

        assert len(cart.shopping_list) == 1
        assert cart.shopping_list[0].name == "Dog food XL"
        assert cart.shopping_list[0].piece == 1
        assert cart.total_gross == 2540

    def test_gross_derived_from_vat_when_omitted(self):
        cart = _make_cart()
        cart.add_sku(sku=100, piece=1, name="Dog food", vat="27", unit_price_net=1000)
        assert cart.shopping_list[0].unit_price_gross == 1270

    def test_vat_code_is_normalised(self):
        cart = _make_cart()
        cart.add_sku(sku=100, piece=1, name="Seeds", vat="aam", unit_price_net=500)
        assert cart.shopping_list[0].vat == "AAM"
        assert cart.shopping_list[0].unit_price_gross == 500

    def test_unknown_vat_rejected(self):
        cart = _make_cart()
        with pytest.raises(ValidationError):
            cart.add_sku(sku=100, piece=1, name="Dog food", vat="25", unit_price_net=1000)
        assert len(cart.shopping_list) == 0

    def test_raises_sku_added(self):
        cart = _make_cart()
        cart.add_sku(sku=100, piece=2, name="Dog food", vat="27", unit_price_net=1000)
        event = cart._events[-1]
        assert isinstance(event, SkuAdded)
        assert event.unit_price_gross == 1270


class TestRemoveSku:
    def test_removes_line(self):
        cart = _make_cart()
        cart.add_sku(sku=100, piece=2, name="Dog food", vat="27", unit_price_net=1000)
        cart.remove_sku(100)
        assert len(cart.shopping_list) == 0
        assert cart.total_gross == 0

    def test_missing_line_not_found(self):
        cart = _make_cart()
        with pytest.raises(NotFound):
            cart.remove_sku(100)

    def test_line_backed_by_tags_conflicts(self):
        cart = _make_cart()
        cart.add_upl(_sku_tag("UPL-1"))
        with pytest.raises(Conflict):
            cart.remove_sku(100)
        assert len(cart.shopping_list) == 1


class TestSetSkuPiece:
    def test_updates_piece_and_totals(self):
        cart = _make_cart()
        cart.add_sku(sku=100, piece=2, name="Dog food", vat="27", unit_price_net=1000)
        cart.set_sku_piece(100, 5)
        assert cart.shopping_list[0].piece == 5
        assert cart.shopping_list[0].total_price_gross == 6350
        assert cart.total_gross == 6350

    def test_missing_line_not_found(self):
        cart = _make_cart()
        with pytest.raises(NotFound):
            cart.set_sku_piece(100, 1)


class TestAddUpl:
    def test_healthy_tag_creates_line(self):
        cart = _make_cart()
        cart.add_upl(_sku_tag("UPL-1", piece=2))

        assert [upl.upl_id for upl in cart.upls_sku] == ["UPL-1"]
        assert cart.upls_unique == []
        assert cart.shopping_list[0].sku == 100
        assert cart.shopping_list[0].piece == 2
        assert cart.total_gross == 2540

    def test_healthy_tag_adds_to_existing_line(self):
        cart = _make_cart()
        cart.add_sku(sku=100, piece=1, name="Dog food", vat="27", unit_price_net=1000)
        cart.add_upl(_sku_tag("UPL-1"))
        assert cart.shopping_list[0].piece == 2
        assert cart.total_gross == 2540

    def test_healthy_tags_add_no_money_of_their_own(self):
        cart = _make_cart()
        cart.add_upl(_sku_tag("UPL-1"))
        cart.add_upl(_sku_tag("UPL-2"))
        assert cart.items_total_gross == 2540

    def test_depreciated_tag_is_unique(self):
        cart = _make_cart()
        cart.add_upl(_sku_tag("UPL-D", net=500, gross=635, depreciated=True))

        assert [upl.upl_id for upl in cart.upls_unique] == ["UPL-D"]
        assert len(cart.shopping_list) == 0
        assert cart.items_total_gross == 635

    def test_derived_product_priced_flat(self):
        cart = _make_cart()
        cart.add_upl(_derived_tag("UPL-P"))
        assert cart.items_total_net == 400
        assert cart.items_total_gross == 508
        assert cart.upls_unique[0].get_piece() == 1

    def test_duplicate_tag_conflicts(self):
        cart = _make_cart()
        cart.add_upl(_sku_tag("UPL-1"))
        with pytest.raises(Conflict):
            cart.add_upl(_derived_tag("UPL-1"))
        assert len(cart.upls) == 1

    def test_raises_upl_added(self):
        cart = _make_cart()
        cart.add_upl(_derived_tag("UPL-P"))
        event = cart._events[-1]
        assert isinstance(event, UplAdded)
        assert event.unique is True


class TestRemoveUpl:
    def test_removes_unique_tag_and_its_value(self):
        cart = _make_cart()
        cart.add_upl(_derived_tag("UPL-P"))
        cart.remove_upl("UPL-P")
        assert len(cart.upls) == 0
        assert cart.total_gross == 0
        assert isinstance(cart._events[-1], UplRemoved)

    def test_healthy_tag_leaves_line_piece_alone(self):
        cart = _make_cart()
        cart.add_upl(_sku_tag("UPL-1"))
        cart.add_upl(_sku_tag("UPL-2"))
        cart.remove_upl("UPL-2")

        assert cart.shopping_list[0].piece == 2
        assert len(cart.upls_sku) == 1

    def test_unknown_tag_is_noop(self):
        cart = _make_cart()
        cart.add_upl(_sku_tag("UPL-1"))
        cart.remove_upl("UPL-404")
        assert len(cart.upls) == 1


class TestGrossIdentity:
    def test_holds_after_every_mutation(self):
        cart = _make_cart()
        cart.add_commitment("C-1", 7)
        steps = [
            lambda: cart.add_sku(sku=200, piece=3, name="Leash", vat="18", unit_price_net=333),
            lambda: cart.add_upl(_sku_tag("UPL-1")),
            lambda: cart.add_upl(_derived_tag("UPL-P")),
            lambda: cart.set_sku_piece(200, 1),
            lambda: cart.remove_upl("UPL-1"),
            lambda: cart.add_upl(_sku_tag("UPL-D", sku=300, depreciated=True)),
            lambda: cart.remove_upl("UPL-P"),
        ]
        for step in steps:
            step()
            _assert_gross_identity(cart)
            assert cart.compute_totals().cached_view()["total_gross"] == cart.total_gross


class TestCustomerAndDocument:
    def test_attach_customer(self):
        cart = _make_cart()
        cart.add_customer(Customer(customer_id=3, name="Kovacs Kft", tax_number="12345678-2-42"))
        assert cart.customer.name == "Kovacs Kft"
        assert isinstance(cart._events[-1], CustomerAttached)

    def test_none_detaches_customer(self):
        cart = _make_cart()
        cart.add_customer(Customer(name="Kovacs Kft"))
        cart.add_customer(None)
        assert cart.customer is None
        assert isinstance(cart._events[-1], CustomerDetached)

    def test_remove_customer(self):
        cart = _make_cart()
        cart.add_customer(Customer(name="Kovacs Kft"))
        cart.remove_customer()
        assert cart.customer is None

    def test_set_document(self):
        cart = _make_cart()
        cart.set_document("Invoice")
        assert cart.document_kind == "Invoice"

    def test_unknown_document_kind_rejected(self):
        cart = _make_cart()
        with pytest.raises(ValidationError):
            cart.set_document("Ticket")


class TestPaymentKind:
    def test_transfer_moves_due_date(self):
        cart = _make_cart()
        cart.set_payment("Transfer")
        expected = datetime.now(UTC).date() + timedelta(days=TRANSFER_DUE_DAYS)
        assert cart.payment_duedate.date() == expected

    def test_back_to_card_resets_due_date(self):
        cart = _make_cart()
        cart.set_payment("Transfer")
        cart.set_payment("Card")
        assert cart.payment_duedate.date() == datetime.now(UTC).date()

    def test_cash_rounding_follows_payment_kind(self):
        cart = _make_cart()
        cart.add_sku(sku=100, piece=1, name="Chew toy", vat="27", unit_price_net=1800, unit_price_gross=2286)
        assert cart.payable == 2285

        cart.set_payment("Card")
        assert cart.payable == 2286

    def test_unknown_payment_kind_rejected(self):
        cart = _make_cart()
        with pytest.raises(ValidationError):
            cart.set_payment("Cheque")

    def test_payments_update_balance(self):
        cart = _make_cart()
        cart.add_sku(sku=100, piece=1, name="Chew toy", vat="27", unit_price_net=1000)
        cart.add_payment("P-1", 1000)
        assert cart.get_balance() == 270
        cart.add_payment("P-2", 300)
        assert cart.get_balance() == -30
        cart.add_payment("P-3", -30)
        assert cart.get_balance() == 0


class TestOwnership:
    def test_set_owner(self):
        cart = _make_cart()
        cart.set_owner(99)
        assert cart.owner_uid == 99

    def test_set_and_clear_store(self):
        cart = _make_cart()
        cart.set_store_id(4)
        assert cart.store_id == 4
        cart.set_store_id(None)
        assert cart.store_id is None


class TestCommitment:
    def test_add_commitment(self):
        cart = _make_cart()
        cart.add_sku(sku=100, piece=2, name="Dog food", vat="27", unit_price_net=1000)
        cart.add_commitment("C-1", 10)
        assert cart.commitment_discount_value == 254
        assert cart.total_gross == 2286

    def test_commitment_is_replaced(self):
        cart = _make_cart()
        cart.add_sku(sku=100, piece=2, name="Dog food", vat="27", unit_price_net=1000)
        cart.add_commitment("C-1", 10)
        cart.add_commitment("C-2", 20)
        assert cart.commitment.commitment_id == "C-2"
        assert cart.commitment_discount_value == 508

    def test_remove_commitment_restores_totals(self):
        cart = _make_cart()
        cart.add_sku(sku=100, piece=2, name="Dog food", vat="27", unit_price_net=1000)
        cart.add_commitment("C-1", 10)
        cart.remove_commitment()
        assert cart.commitment is None
        assert cart.total_gross == 2540

    def test_remove_missing_commitment_not_found(self):
        cart = _make_cart()
        with pytest.raises(NotFound):
            cart.remove_commitment()

    def test_percentage_out_of_range_rejected(self):
        cart = _make_cart()
        with pytest.raises(ValidationError):
            cart.add_commitment("C-1", 101)


class TestProfit:
    def test_profit_subtracts_procurement_of_all_tags(self):
        cart = _make_cart()
        cart.add_upl(_sku_tag("UPL-1"))
        cart.add_upl(_derived_tag("UPL-P"))
        # total_net 1000 + 400, procurement 700 + 150
        assert cart.get_profit_net() == 550
