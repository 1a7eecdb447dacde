"""Cart aggregate: an in-store transaction that is still being assembled.

A cart owns its shopping list (quantities sold by SKU), the UPL tags scanned
into it, payments, an optional commitment discount and loyalty point burns.
Every mutator ends by recalculating the cached totals; ``close_cart`` does
not trust that cache and recomputes before handing out a Purchase.

State Machine:
    OPEN → CLOSED (terminal, the cart is then dropped from the store)

Tags come in two placements. Healthy SKU tags (``upls_sku``) back the piece
count of a shopping-list line and add no money of their own. Depreciated SKU
tags and derived products (``upls_unique``) are priced lines in themselves.
"""

from datetime import UTC, datetime, timedelta
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, HasMany, Identifier, Integer, String, ValueObject

from purchasing.cart.events import (
    CartClosed,
    CartCreated,
    CartOwnerChanged,
    CartStoreChanged,
    CommitmentAdded,
    CommitmentRemoved,
    CustomerAttached,
    CustomerDetached,
    DocumentKindSet,
    LoyaltyCardAdded,
    LoyaltyCardRemoved,
    PaymentAdded,
    PaymentKindSet,
    PointsBurned,
    SkuAdded,
    SkuPieceSet,
    SkuRemoved,
    UplAdded,
    UplRemoved,
)
from purchasing.cart.totals import PaymentKind, calculate_totals, payment_balance, profit_net
from purchasing.domain import purchasing
from purchasing.shared.customer import Customer
from purchasing.shared.errors import Conflict, NotFound, Rejected
from purchasing.shared.upl import (
    UplKind,
    upl_is_unique,
    upl_piece,
    upl_price_gross,
    upl_price_net,
)
from purchasing.shared.vat import validate_vat, vat_multiply

TRANSFER_DUE_DAYS = 30


class CartStatus(Enum):
    OPEN = "Open"
    CLOSED = "Closed"


class DocumentKind(Enum):
    RECEIPT = "Receipt"
    INVOICE = "Invoice"


def parse_choice(enum_cls, value, field):
    try:
        return enum_cls(value)
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise ValidationError({field: [f"Invalid value {value!r}; expected one of {choices}"]})


def today() -> datetime:
    return datetime.now(UTC).replace(hour=0, minute=0, second=0, microsecond=0)


def payment_duedate_for(payment_kind) -> datetime:
    if PaymentKind(payment_kind) == PaymentKind.TRANSFER:
        return today() + timedelta(days=TRANSFER_DUE_DAYS)
    return today()


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@purchasing.value_object(part_of="Cart")
class Commitment:
    """A percentage discount agreement applied to the whole cart."""

    commitment_id = String(required=True, max_length=100)
    percentage = Integer(required=True, min_value=0, max_value=100)


@purchasing.value_object(part_of="Cart")
class LoyaltyCard:
    account_id = String(required=True, max_length=100)
    card_id = String(required=True, max_length=100)
    level = String(max_length=50)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@purchasing.entity(part_of="Cart")
class ShoppingListItem:
    """Quantity of a catalogue SKU being sold."""

    sku = Integer(required=True)
    name = String(required=True, max_length=255)
    piece = Integer(required=True, min_value=0)
    vat = String(required=True, max_length=3)
    unit_price_net = Integer(required=True, min_value=0)
    unit_price_gross = Integer(required=True, min_value=0)
    total_price_net = Integer(required=True)
    total_price_gross = Integer(required=True)

    def reprice(self, piece):
        self.piece = piece
        self.total_price_net = self.unit_price_net * piece
        self.total_price_gross = self.unit_price_gross * piece


@purchasing.entity(part_of="Cart")
class CartUpl:
    """A physically labelled unit scanned into the cart."""

    upl_id = String(required=True, max_length=100)
    kind = String(required=True, choices=UplKind)
    sku = Integer()
    piece = Integer()
    product_id = Integer()
    amount = Integer()
    name = String(required=True, max_length=255)
    unit = String(max_length=20)
    retail_net_price = Integer(required=True)
    vat = String(required=True, max_length=3)
    retail_gross_price = Integer(required=True)
    procurement_net_price = Integer(default=0)
    best_before = DateTime()
    depreciated = Boolean(default=False)

    @property
    def is_unique(self):
        return upl_is_unique(self)

    def get_piece(self):
        return upl_piece(self)

    def get_price_net(self):
        return upl_price_net(self)

    def get_price_gross(self):
        return upl_price_gross(self)


@purchasing.entity(part_of="Cart")
class CartPayment:
    payment_id = String(required=True, max_length=100)
    amount = Integer(required=True)


@purchasing.entity(part_of="Cart")
class PointBurn:
    """One loyalty transaction; positive deltas spend points, negative ones give them back."""

    transaction_id = String(required=True, max_length=100)
    account_id = String(required=True, max_length=100)
    delta = Integer(required=True)
    burned_at = DateTime()


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@purchasing.aggregate
class Cart:
    ancestor = Identifier()  # Cart this one restores, if any
    customer = ValueObject(Customer)
    commitment = ValueObject(Commitment)
    loyalty_card = ValueObject(LoyaltyCard)
    burned_points = HasMany(PointBurn)
    shopping_list = HasMany(ShoppingListItem)
    upls = HasMany(CartUpl)
    payments = HasMany(CartPayment)

    # Cached totals, rewritten by _recalculate() after every mutation
    items_total_net = Integer(default=0)
    items_total_gross = Integer(default=0)
    commitment_discount_value = Integer(default=0)
    burned_points_balance = Integer(default=0)
    total_net = Integer(default=0)
    total_vat = Integer(default=0)
    total_gross = Integer(default=0)
    payable = Integer(default=0)

    document_kind = String(choices=DocumentKind, default=DocumentKind.RECEIPT.value)
    payment_kind = String(choices=PaymentKind, default=PaymentKind.CASH.value)
    status = String(choices=CartStatus, default=CartStatus.OPEN.value)
    owner_uid = Integer(required=True)
    store_id = Integer()  # None when the cart is not bound to a store
    created_by = Integer(required=True)
    created_at = DateTime()
    date_completion = DateTime()
    payment_duedate = DateTime()

    @invariant.post
    def upl_ids_must_be_unique(self):
        upl_ids = [upl.upl_id for upl in self.upls]
        if len(upl_ids) != len(set(upl_ids)):
            raise ValidationError({"upls": ["A UPL can be in the cart only once"]})

    @invariant.post
    def burn_transactions_must_be_unique(self):
        transaction_ids = [burn.transaction_id for burn in self.burned_points]
        if len(transaction_ids) != len(set(transaction_ids)):
            raise ValidationError({"burned_points": ["Loyalty transaction recorded twice"]})

    @invariant.post
    def shopping_list_skus_must_be_unique(self):
        skus = [line.sku for line in self.shopping_list]
        if len(skus) != len(set(skus)):
            raise ValidationError({"shopping_list": ["A SKU can have only one shopping-list line"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, owner_uid, store_id=None, created_by=None, ancestor=None):
        now = datetime.now(UTC)
        cart = cls(
            ancestor=ancestor,
            owner_uid=owner_uid,
            store_id=store_id,
            created_by=created_by if created_by is not None else owner_uid,
            status=CartStatus.OPEN.value,
            created_at=now,
            date_completion=today(),
            payment_duedate=payment_duedate_for(PaymentKind.CASH.value),
        )
        cart.raise_(
            CartCreated(
                cart_id=cart.id,
                ancestor=ancestor,
                owner_uid=cart.owner_uid,
                store_id=store_id,
                created_by=cart.created_by,
                created_at=now,
            )
        )
        return cart

    # -------------------------------------------------------------------
    # Views over the tag collection
    # -------------------------------------------------------------------
    @property
    def upls_sku(self):
        """Healthy SKU tags backing shopping-list quantities."""
        return [upl for upl in self.upls if not upl.is_unique]

    @property
    def upls_unique(self):
        """Depreciated SKU tags and derived products, each priced on its own."""
        return [upl for upl in self.upls if upl.is_unique]

    def _find_line(self, sku):
        return next((line for line in self.shopping_list if line.sku == sku), None)

    def _find_upl(self, upl_id):
        return next((upl for upl in self.upls if upl.upl_id == upl_id), None)

    def _ensure_open(self):
        if CartStatus(self.status) != CartStatus.OPEN:
            raise Conflict("status", "Cart is already closed")

    # -------------------------------------------------------------------
    # Totals
    # -------------------------------------------------------------------
    def compute_totals(self):
        commitment_percentage = self.commitment.percentage if self.commitment else None
        return calculate_totals(
            self.shopping_list,
            self.upls_unique,
            commitment_percentage=commitment_percentage,
            burn_deltas=[burn.delta for burn in self.burned_points],
            payment_kind=self.payment_kind,
        )

    def _recalculate(self):
        totals = self.compute_totals()
        with atomic_change(self):
            for field_name, value in totals.cached_view().items():
                setattr(self, field_name, value)

    def get_balance(self):
        return payment_balance(self.payable, [payment.amount for payment in self.payments])

    def get_profit_net(self):
        return profit_net(self.total_net, [upl.procurement_net_price or 0 for upl in self.upls])

    def _burned_total(self):
        return sum(burn.delta for burn in self.burned_points)

    # -------------------------------------------------------------------
    # Shopping list
    # -------------------------------------------------------------------
    def add_sku(self, sku, piece, name, vat, unit_price_net, unit_price_gross=None):
        """Insert a shopping-list line, or replace the existing line of the SKU."""
        self._ensure_open()
        vat = validate_vat(vat)
        if unit_price_gross is None:
            unit_price_gross = vat_multiply(unit_price_net, vat)

        line = self._find_line(sku)
        if line is None:
            self.add_shopping_list(
                ShoppingListItem(
                    sku=sku,
                    name=name,
                    piece=piece,
                    vat=vat,
                    unit_price_net=unit_price_net,
                    unit_price_gross=unit_price_gross,
                    total_price_net=unit_price_net * piece,
                    total_price_gross=unit_price_gross * piece,
                )
            )
        else:
            line.name = name
            line.vat = vat
            line.unit_price_net = unit_price_net
            line.unit_price_gross = unit_price_gross
            line.reprice(piece)

        self._recalculate()
        self.raise_(
            SkuAdded(
                cart_id=self.id,
                sku=sku,
                piece=piece,
                unit_price_net=unit_price_net,
                unit_price_gross=unit_price_gross,
            )
        )

    def remove_sku(self, sku):
        self._ensure_open()
        line = self._find_line(sku)
        if line is None:
            raise NotFound("sku", f"SKU {sku} is not on the shopping list")
        if any(upl.sku == sku for upl in self.upls_sku):
            raise Conflict("sku", f"SKU {sku} still has UPLs attached; remove them first")

        self.remove_shopping_list(line)
        self._recalculate()
        self.raise_(SkuRemoved(cart_id=self.id, sku=sku))

    def set_sku_piece(self, sku, piece):
        self._ensure_open()
        line = self._find_line(sku)
        if line is None:
            raise NotFound("sku", f"SKU {sku} is not on the shopping list")

        previous_piece = line.piece
        line.reprice(piece)
        self._recalculate()
        self.raise_(
            SkuPieceSet(
                cart_id=self.id,
                sku=sku,
                previous_piece=previous_piece,
                piece=piece,
            )
        )

    # -------------------------------------------------------------------
    # UPL tags
    # -------------------------------------------------------------------
    def add_upl(self, upl_info):
        """Scan a tag into the cart.

        Unique tags (depreciated SKUs, derived products) become priced lines
        of their own. A healthy SKU tag is folded into its shopping-list line:
        its piece is added to the line, which is created from the tag's data
        when the SKU is not on the list yet.
        """
        self._ensure_open()
        if self._find_upl(upl_info.upl_id) is not None:
            raise Conflict("upl_id", f"UPL {upl_info.upl_id} is already in the cart")

        tag = upl_info.tag_fields()
        tag["vat"] = validate_vat(tag["vat"])
        upl = CartUpl(**tag)

        if upl.is_unique:
            self.add_upls(upl)
        else:
            line = self._find_line(upl.sku)
            self.add_upls(upl)
            if line is None:
                self.add_shopping_list(
                    ShoppingListItem(
                        sku=upl.sku,
                        name=upl.name,
                        piece=upl.piece,
                        vat=upl.vat,
                        unit_price_net=upl.retail_net_price,
                        unit_price_gross=upl.retail_gross_price,
                        total_price_net=upl.retail_net_price * upl.piece,
                        total_price_gross=upl.retail_gross_price * upl.piece,
                    )
                )
            else:
                line.reprice(line.piece + upl.piece)

        self._recalculate()
        self.raise_(
            UplAdded(
                cart_id=self.id,
                upl_id=upl.upl_id,
                kind=upl.kind,
                unique=upl.is_unique,
            )
        )

    def remove_upl(self, upl_id):
        """Detach a tag. Shopping-list pieces are left as they are.

        A healthy tag removed here leaves its line short of backing; the
        caller adjusts the piece with ``set_sku_piece`` and ``close_cart``
        refuses the cart until it does.
        """
        self._ensure_open()
        upl = self._find_upl(upl_id)
        if upl is None:
            return

        self.remove_upls(upl)
        self._recalculate()
        self.raise_(UplRemoved(cart_id=self.id, upl_id=upl_id))

    # -------------------------------------------------------------------
    # Customer, document, ownership
    # -------------------------------------------------------------------
    def add_customer(self, customer):
        """Attach a billing party; ``None`` detaches the current one."""
        self._ensure_open()
        self.customer = customer
        if customer is None:
            self.raise_(CustomerDetached(cart_id=self.id))
        else:
            self.raise_(
                CustomerAttached(
                    cart_id=self.id,
                    customer_id=customer.customer_id,
                    name=customer.name,
                )
            )

    def remove_customer(self):
        self.add_customer(None)

    def set_document(self, document_kind):
        self._ensure_open()
        self.document_kind = parse_choice(DocumentKind, document_kind, "document_kind").value
        self.raise_(DocumentKindSet(cart_id=self.id, document_kind=self.document_kind))

    def set_owner(self, owner_uid):
        self._ensure_open()
        self.owner_uid = owner_uid
        self.raise_(CartOwnerChanged(cart_id=self.id, owner_uid=owner_uid))

    def set_store_id(self, store_id):
        self._ensure_open()
        self.store_id = store_id
        self.raise_(CartStoreChanged(cart_id=self.id, store_id=store_id))

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def set_payment(self, payment_kind):
        """Change the payment kind; cash rounding and the due date follow it."""
        self._ensure_open()
        self.payment_kind = parse_choice(PaymentKind, payment_kind, "payment_kind").value
        self.payment_duedate = payment_duedate_for(self.payment_kind)
        self._recalculate()
        self.raise_(
            PaymentKindSet(
                cart_id=self.id,
                payment_kind=self.payment_kind,
                payment_duedate=self.payment_duedate,
            )
        )

    def add_payment(self, payment_id, amount):
        self._ensure_open()
        self.add_payments(CartPayment(payment_id=payment_id, amount=amount))
        self.raise_(
            PaymentAdded(
                cart_id=self.id,
                payment_id=payment_id,
                amount=amount,
                balance=self.get_balance(),
            )
        )

    # -------------------------------------------------------------------
    # Loyalty
    # -------------------------------------------------------------------
    def add_loyalty_card(self, account_id, card_id, level=None):
        self._ensure_open()
        if self.loyalty_card is not None:
            raise Conflict("loyalty_card", "A loyalty card is already attached to the cart")

        self.loyalty_card = LoyaltyCard(account_id=account_id, card_id=card_id, level=level)
        self.raise_(
            LoyaltyCardAdded(
                cart_id=self.id,
                account_id=account_id,
                card_id=card_id,
                level=level,
            )
        )

    def remove_loyalty_card(self):
        self._ensure_open()
        if self.loyalty_card is None:
            raise NotFound("loyalty_card", "No loyalty card is attached to the cart")
        if self._burned_total() != 0:
            raise Conflict("loyalty_card", "Burned points must be returned before removing the card")

        account_id = self.loyalty_card.account_id
        self.loyalty_card = None
        self.raise_(LoyaltyCardRemoved(cart_id=self.id, account_id=account_id))

    def burn_points(self, account_id, transaction_id, delta):
        """Record a loyalty transaction, once per transaction id."""
        self._ensure_open()
        if self.loyalty_card is None:
            raise Conflict("loyalty_card", "Attach a loyalty card before burning points")
        if self.loyalty_card.account_id != account_id:
            raise Conflict("account_id", "Points can only be burned from the attached card's account")
        if any(burn.transaction_id == transaction_id for burn in self.burned_points):
            raise Conflict("transaction_id", f"Loyalty transaction {transaction_id} is already recorded")
        if delta < 0 and self._burned_total() + delta < 0:
            raise Conflict("delta", "Cannot return more points than were burned")

        self.add_burned_points(
            PointBurn(
                transaction_id=transaction_id,
                account_id=account_id,
                delta=delta,
                burned_at=datetime.now(UTC),
            )
        )
        self._recalculate()
        self.raise_(
            PointsBurned(
                cart_id=self.id,
                account_id=account_id,
                transaction_id=transaction_id,
                delta=delta,
                burned_points_balance=self.burned_points_balance,
            )
        )

    # -------------------------------------------------------------------
    # Commitment discount
    # -------------------------------------------------------------------
    def add_commitment(self, commitment_id, percentage):
        self._ensure_open()
        self.commitment = Commitment(commitment_id=commitment_id, percentage=percentage)
        self._recalculate()
        self.raise_(
            CommitmentAdded(
                cart_id=self.id,
                commitment_id=commitment_id,
                percentage=percentage,
            )
        )

    def remove_commitment(self):
        self._ensure_open()
        if self.commitment is None:
            raise NotFound("commitment", "No commitment is applied to the cart")

        commitment_id = self.commitment.commitment_id
        self.commitment = None
        self._recalculate()
        self.raise_(CommitmentRemoved(cart_id=self.id, commitment_id=commitment_id))

    # -------------------------------------------------------------------
    # Closing
    # -------------------------------------------------------------------
    def validate_for_close(self):
        """Raise Rejected with the first close rule the cart breaks."""
        if DocumentKind(self.document_kind) == DocumentKind.INVOICE and self.customer is None:
            raise Rejected("invoice requires customer")

        for line in self.shopping_list:
            backed = sum(upl.piece for upl in self.upls_sku if upl.sku == line.sku)
            if backed != line.piece:
                raise Rejected("sku/tag quantity mismatch")

        fresh = self.compute_totals().cached_view()
        cached = {field_name: getattr(self, field_name) for field_name in fresh}
        if cached != fresh:
            raise Rejected("totals inconsistent")

        if PaymentKind(self.payment_kind) == PaymentKind.TRANSFER:
            if DocumentKind(self.document_kind) != DocumentKind.INVOICE:
                raise Rejected("transfer requires invoice")
        elif self.get_balance() != 0:
            raise Rejected("payment balance is not settled")

    def can_close(self):
        if CartStatus(self.status) != CartStatus.OPEN:
            return False
        try:
            self.validate_for_close()
        except Rejected:
            return False
        return True

    def close_cart(self):
        """Validate the cart and return the Purchase it turns into.

        Nothing on the cart changes when validation fails. Storing the
        Purchase and dropping the cart is up to the caller.
        """
        from purchasing.purchase.purchase import Purchase

        self._ensure_open()
        self.validate_for_close()

        purchase = Purchase.from_cart(self)

        now = datetime.now(UTC)
        self.status = CartStatus.CLOSED.value
        self.raise_(
            CartClosed(
                cart_id=self.id,
                purchase_id=purchase.id,
                total_gross=self.total_gross,
                payable=self.payable,
                closed_at=now,
            )
        )
        return purchase
