"""Domain events for the Purchase aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from purchasing.domain import purchasing


@purchasing.event(part_of="Purchase")
class PurchaseCreated:
    """A closed cart was recorded as a purchase."""

    __version__ = 1

    purchase_id = Identifier(required=True)
    restored = Identifier()
    document_kind = String(required=True)
    payment_kind = String(required=True)
    total_gross = Integer(required=True)
    payable = Integer(required=True)
    balance = Integer(required=True)
    item_count = Integer(required=True)
    created_at = DateTime(required=True)


@purchasing.event(part_of="Purchase")
class InvoiceAttached:
    __version__ = 1

    purchase_id = Identifier(required=True)
    invoice_id = String(required=True)


@purchasing.event(part_of="Purchase")
class StornoAttached:
    """The purchase's invoice was cancelled by a storno document."""

    __version__ = 1

    purchase_id = Identifier(required=True)
    invoice_id = String(required=True)
    storno_id = String(required=True)


@purchasing.event(part_of="Purchase")
class LoyaltyReconciled:
    __version__ = 1

    purchase_id = Identifier(required=True)
    account_id = String(required=True)
    transaction_id = String(required=True)
    points_earned = Integer(required=True)
