"""Domain events for the Cart aggregate."""

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from purchasing.domain import purchasing


@purchasing.event(part_of="Cart")
class CartCreated:
    """A new cart was opened at a store."""

    __version__ = 1

    cart_id = Identifier(required=True)
    ancestor = Identifier()
    owner_uid = Integer(required=True)
    store_id = Integer()
    created_by = Integer(required=True)
    created_at = DateTime(required=True)


@purchasing.event(part_of="Cart")
class CustomerAttached:
    __version__ = 1

    cart_id = Identifier(required=True)
    customer_id = Integer()
    name = String(required=True)


@purchasing.event(part_of="Cart")
class CustomerDetached:
    __version__ = 1

    cart_id = Identifier(required=True)


@purchasing.event(part_of="Cart")
class SkuAdded:
    """A shopping-list line was added or replaced."""

    __version__ = 1

    cart_id = Identifier(required=True)
    sku = Integer(required=True)
    piece = Integer(required=True)
    unit_price_net = Integer(required=True)
    unit_price_gross = Integer(required=True)


@purchasing.event(part_of="Cart")
class SkuRemoved:
    __version__ = 1

    cart_id = Identifier(required=True)
    sku = Integer(required=True)


@purchasing.event(part_of="Cart")
class SkuPieceSet:
    __version__ = 1

    cart_id = Identifier(required=True)
    sku = Integer(required=True)
    previous_piece = Integer(required=True)
    piece = Integer(required=True)


@purchasing.event(part_of="Cart")
class UplAdded:
    """A tag was scanned into the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    upl_id = String(required=True)
    kind = String(required=True)
    unique = Boolean(default=False)  # priced on its own, not backing a line


@purchasing.event(part_of="Cart")
class UplRemoved:
    __version__ = 1

    cart_id = Identifier(required=True)
    upl_id = String(required=True)


@purchasing.event(part_of="Cart")
class DocumentKindSet:
    __version__ = 1

    cart_id = Identifier(required=True)
    document_kind = String(required=True)


@purchasing.event(part_of="Cart")
class PaymentKindSet:
    __version__ = 1

    cart_id = Identifier(required=True)
    payment_kind = String(required=True)
    payment_duedate = DateTime(required=True)


@purchasing.event(part_of="Cart")
class PaymentAdded:
    __version__ = 1

    cart_id = Identifier(required=True)
    payment_id = String(required=True)
    amount = Integer(required=True)
    balance = Integer(required=True)


@purchasing.event(part_of="Cart")
class CartOwnerChanged:
    __version__ = 1

    cart_id = Identifier(required=True)
    owner_uid = Integer(required=True)


@purchasing.event(part_of="Cart")
class CartStoreChanged:
    __version__ = 1

    cart_id = Identifier(required=True)
    store_id = Integer()


@purchasing.event(part_of="Cart")
class LoyaltyCardAdded:
    __version__ = 1

    cart_id = Identifier(required=True)
    account_id = String(required=True)
    card_id = String(required=True)
    level = String()


@purchasing.event(part_of="Cart")
class LoyaltyCardRemoved:
    __version__ = 1

    cart_id = Identifier(required=True)
    account_id = String(required=True)


@purchasing.event(part_of="Cart")
class PointsBurned:
    """Loyalty points were spent against the cart (or returned, if negative)."""

    __version__ = 1

    cart_id = Identifier(required=True)
    account_id = String(required=True)
    transaction_id = String(required=True)
    delta = Integer(required=True)
    burned_points_balance = Integer(required=True)


@purchasing.event(part_of="Cart")
class CommitmentAdded:
    __version__ = 1

    cart_id = Identifier(required=True)
    commitment_id = String(required=True)
    percentage = Integer(required=True)


@purchasing.event(part_of="Cart")
class CommitmentRemoved:
    __version__ = 1

    cart_id = Identifier(required=True)
    commitment_id = String(required=True)


@purchasing.event(part_of="Cart")
class CartClosed:
    """The cart passed close validation and was turned into a Purchase."""

    __version__ = 1

    cart_id = Identifier(required=True)
    purchase_id = Identifier(required=True)
    total_gross = Integer(required=True)
    payable = Integer(required=True)
    closed_at = DateTime(required=True)
