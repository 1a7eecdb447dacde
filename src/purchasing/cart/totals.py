"""Cart totals calculation.

A single pure function derives every cached money figure of a cart from its
lines, unique tags, discounts, burned points and payments. The Cart calls it
at the end of each mutator and again at close to verify its cached values.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from purchasing.shared.rounding import cash_round, round_half_away

# Discounts are split into net and VAT on a fixed 27% basis, whatever the
# actual rates of the discounted lines are.
DISCOUNT_VAT_DIVISOR = Decimal("1.27")


class PaymentKind(Enum):
    CASH = "Cash"
    CARD = "Card"
    TRANSFER = "Transfer"


@dataclass(frozen=True)
class Totals:
    items_total_net: int
    items_total_gross: int
    commitment_discount_value: int
    burned_points_balance: int
    total_net: int
    total_vat: int
    total_gross: int
    payable: int

    def cached_view(self) -> dict:
        """Fields the Cart stores and re-verifies at close."""
        return {
            "items_total_net": self.items_total_net,
            "items_total_gross": self.items_total_gross,
            "commitment_discount_value": self.commitment_discount_value,
            "burned_points_balance": self.burned_points_balance,
            "total_net": self.total_net,
            "total_vat": self.total_vat,
            "total_gross": self.total_gross,
            "payable": self.payable,
        }


def commitment_discount(items_total_gross: int, percentage) -> int:
    if not percentage:
        return 0
    return round_half_away(Decimal(items_total_gross) * Decimal(str(percentage)) / 100)


def burned_points_balance(deltas) -> int:
    """Net burned points; a negative running sum is reported as zero."""
    return max(0, sum(deltas))


def calculate_totals(
    shopping_list,
    upls_unique,
    commitment_percentage=None,
    burn_deltas=(),
    payment_kind=PaymentKind.CASH.value,
) -> Totals:
    items_total_net = sum(line.total_price_net for line in shopping_list) + sum(
        upl.get_price_net() for upl in upls_unique
    )
    items_total_gross = sum(line.total_price_gross for line in shopping_list) + sum(
        upl.get_price_gross() for upl in upls_unique
    )

    discount = commitment_discount(items_total_gross, commitment_percentage)
    burned = burned_points_balance(burn_deltas)

    total_gross = items_total_gross - discount - burned
    total_net = items_total_net - round_half_away(Decimal(discount + burned) / DISCOUNT_VAT_DIVISOR)

    if PaymentKind(payment_kind) == PaymentKind.CASH:
        payable = cash_round(total_gross)
    else:
        payable = total_gross

    return Totals(
        items_total_net=items_total_net,
        items_total_gross=items_total_gross,
        commitment_discount_value=discount,
        burned_points_balance=burned,
        total_net=total_net,
        total_vat=total_gross - total_net,
        total_gross=total_gross,
        payable=payable,
    )


def payment_balance(payable: int, payment_amounts) -> int:
    """What is still owed; zero means settled, negative means overpaid."""
    return payable - sum(payment_amounts)


def profit_net(total_net: int, procurement_net_prices) -> int:
    return total_net - sum(procurement_net_prices)
