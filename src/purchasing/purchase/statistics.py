"""Sales figures over a completion-date interval.

Purchases are bucketed by ``date_completion``, the day the sale was
fulfilled. Both ends of the interval are inclusive whole days.
"""

from dataclasses import dataclass
from datetime import date

from purchasing.shared.errors import BadRequest


@dataclass(frozen=True)
class PurchaseStats:
    date_from: date
    date_to: date
    purchase_count: int = 0
    invoice_count: int = 0
    storno_count: int = 0
    total_net: int = 0
    total_vat: int = 0
    total_gross: int = 0
    profit_net: int = 0
    outstanding_balance: int = 0  # Still owed across the interval's purchases


def completed_on(purchase, date_from: date, date_to: date) -> bool:
    if purchase.date_completion is None:
        return False
    return date_from <= purchase.date_completion.date() <= date_to


def summarize(purchases, date_from: date, date_to: date) -> PurchaseStats:
    if date_to < date_from:
        raise BadRequest("date_to", "The interval ends before it starts")

    selected = [purchase for purchase in purchases if completed_on(purchase, date_from, date_to)]
    return PurchaseStats(
        date_from=date_from,
        date_to=date_to,
        purchase_count=len(selected),
        invoice_count=sum(1 for purchase in selected if purchase.invoice_id),
        storno_count=sum(1 for purchase in selected if purchase.storno_id),
        total_net=sum(purchase.total_net for purchase in selected),
        total_vat=sum(purchase.total_vat for purchase in selected),
        total_gross=sum(purchase.total_gross for purchase in selected),
        profit_net=sum(purchase.profit_net for purchase in selected),
        outstanding_balance=sum(max(purchase.balance, 0) for purchase in selected),
    )
