"""Tests for the completion-date interval summary of purchases."""

from datetime import UTC, datetime, timedelta

import pytest
from purchasing.cart.cart import Cart
from purchasing.purchase.statistics import PurchaseStats, summarize
from purchasing.shared.customer import Customer
from purchasing.shared.errors import BadRequest


def _purchase(net=1000, paid=True, payment_kind="Cash", completed_days_ago=0):
    cart = Cart.create(owner_uid=7)
    cart.add_sku(sku=100, piece=1, name="Dog food", vat="27", unit_price_net=net)
    if payment_kind != "Cash":
        cart.set_payment(payment_kind)
    if paid:
        cart.add_payment("P-1", cart.payable)
    if payment_kind == "Transfer":
        cart.set_document("Invoice")
        cart.add_customer(Customer(name="Kovacs Kft"))
    cart.date_completion = cart.date_completion - timedelta(days=completed_days_ago)
    return cart.close_cart()


def _today():
    return datetime.now(UTC).date()


class TestSummarize:
    def test_empty_interval(self):
        stats = summarize([], _today(), _today())
        assert stats == PurchaseStats(date_from=_today(), date_to=_today())

    def test_totals_of_purchases_in_interval(self):
        purchases = [_purchase(net=1000), _purchase(net=2000)]

        stats = summarize(purchases, _today(), _today())

        assert stats.purchase_count == 2
        assert stats.total_net == 3000
        assert stats.total_gross == 1270 + 2540
        assert stats.total_vat == stats.total_gross - stats.total_net
        assert stats.outstanding_balance == 0

    def test_both_ends_are_inclusive(self):
        purchases = [
            _purchase(completed_days_ago=0),
            _purchase(completed_days_ago=3),
            _purchase(completed_days_ago=4),
        ]

        stats = summarize(purchases, _today() - timedelta(days=3), _today())

        assert stats.purchase_count == 2

    def test_unpaid_transfers_count_as_outstanding(self):
        purchases = [_purchase(), _purchase(paid=False, payment_kind="Transfer")]

        stats = summarize(purchases, _today(), _today())

        assert stats.outstanding_balance == 1270

    def test_invoice_and_storno_counts(self):
        invoiced = _purchase()
        invoiced.set_invoice_id("INV-1")
        cancelled = _purchase()
        cancelled.set_invoice_id("INV-2")
        cancelled.set_storno_id("STR-1")

        stats = summarize([invoiced, cancelled, _purchase()], _today(), _today())

        assert stats.invoice_count == 2
        assert stats.storno_count == 1

    def test_reversed_interval_is_rejected(self):
        with pytest.raises(BadRequest):
            summarize([], _today(), _today() - timedelta(days=1))
