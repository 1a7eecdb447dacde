"""Purchase aggregate: the frozen record of a closed cart.

A Purchase is only ever produced by ``Cart.close_cart``. It flattens the
cart's shopping list and unique tags into a single item ledger, keeps every
tag that took part in the sale and freezes the money figures. After creation
it only accepts append-once references from the invoicing and loyalty
services: an invoice id, a storno id and a loyalty reconciliation.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import Boolean, DateTime, HasMany, Identifier, Integer, String, ValueObject

from purchasing.domain import purchasing
from purchasing.purchase.events import (
    InvoiceAttached,
    LoyaltyReconciled,
    PurchaseCreated,
    StornoAttached,
)
from purchasing.shared.customer import Customer
from purchasing.shared.errors import Conflict
from purchasing.shared.upl import UplKind


class ItemKind(Enum):
    SKU = "Sku"
    SKU_DEPRECIATED = "SkuDepreciated"
    DERIVED_PRODUCT = "DerivedProduct"


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@purchasing.entity(part_of="Purchase")
class PurchaseItem:
    """One priced line of the purchase ledger."""

    kind = String(required=True, choices=ItemKind)
    sku = Integer()  # Sku and SkuDepreciated lines
    product_id = Integer()  # DerivedProduct lines
    upl_id = String(max_length=100)  # Set for lines that came from a unique tag
    name = String(required=True, max_length=255)
    piece = Integer(required=True, min_value=0)
    unit_price_net = Integer(required=True)
    vat = String(required=True, max_length=3)
    unit_price_gross = Integer(required=True)
    total_price_net = Integer(required=True)
    total_price_gross = Integer(required=True)


@purchasing.entity(part_of="Purchase")
class PurchaseUpl:
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


@purchasing.entity(part_of="Purchase")
class PurchasePayment:
    payment_id = String(required=True, max_length=100)
    amount = Integer(required=True)


def _item_from_line(line):
    return PurchaseItem(
        kind=ItemKind.SKU.value,
        sku=line.sku,
        name=line.name,
        piece=line.piece,
        unit_price_net=line.unit_price_net,
        vat=line.vat,
        unit_price_gross=line.unit_price_gross,
        total_price_net=line.total_price_net,
        total_price_gross=line.total_price_gross,
    )


def _item_from_unique_upl(upl):
    if UplKind(upl.kind) == UplKind.DERIVED_PRODUCT:
        kind = ItemKind.DERIVED_PRODUCT
    else:
        kind = ItemKind.SKU_DEPRECIATED

    return PurchaseItem(
        kind=kind.value,
        sku=upl.sku if kind == ItemKind.SKU_DEPRECIATED else None,
        product_id=upl.product_id if kind == ItemKind.DERIVED_PRODUCT else None,
        upl_id=upl.upl_id,
        name=upl.name,
        piece=upl.get_piece(),
        unit_price_net=upl.retail_net_price,
        vat=upl.vat,
        unit_price_gross=upl.retail_gross_price,
        total_price_net=upl.get_price_net(),
        total_price_gross=upl.get_price_gross(),
    )


def _upl_record(upl):
    return PurchaseUpl(
        upl_id=upl.upl_id,
        kind=upl.kind,
        sku=upl.sku,
        piece=upl.piece,
        product_id=upl.product_id,
        amount=upl.amount,
        name=upl.name,
        unit=upl.unit,
        retail_net_price=upl.retail_net_price,
        vat=upl.vat,
        retail_gross_price=upl.retail_gross_price,
        procurement_net_price=upl.procurement_net_price,
        best_before=upl.best_before,
        depreciated=upl.depreciated,
    )


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@purchasing.aggregate
class Purchase:
    customer = ValueObject(Customer)
    commitment_id = String(max_length=100)
    discount_percentage = Integer(min_value=0, max_value=100)
    loyalty_account_id = String(max_length=100)
    items = HasMany(PurchaseItem)
    upl_info_objects = HasMany(PurchaseUpl)
    payments = HasMany(PurchasePayment)

    items_total_net = Integer(default=0)
    items_total_gross = Integer(default=0)
    commitment_discount_value = Integer(default=0)
    burned_points_balance = Integer(default=0)
    total_net = Integer(default=0)
    total_vat = Integer(default=0)
    total_gross = Integer(default=0)
    payable = Integer(default=0)
    balance = Integer(default=0)
    profit_net = Integer(default=0)

    document_kind = String(required=True, max_length=20)
    payment_kind = String(required=True, max_length=20)
    owner_uid = Integer(required=True)
    store_id = Integer()
    date_completion = DateTime()
    payment_duedate = DateTime()
    restored = Identifier()  # Ancestor of the closed cart, if it was restored
    created_by = Integer(required=True)
    created_at = DateTime()

    # Append-once references from downstream services
    invoice_id = String(max_length=100)
    storno_id = String(max_length=100)
    loyalty_transaction_id = String(max_length=100)
    loyalty_points_earned = Integer()

    @classmethod
    def from_cart(cls, cart):
        """Freeze a validated cart. The purchase keeps the cart's id."""
        purchase = cls(
            id=cart.id,
            customer=cart.customer,
            commitment_id=cart.commitment.commitment_id if cart.commitment else None,
            discount_percentage=cart.commitment.percentage if cart.commitment else None,
            loyalty_account_id=cart.loyalty_card.account_id if cart.loyalty_card else None,
            items_total_net=cart.items_total_net,
            items_total_gross=cart.items_total_gross,
            commitment_discount_value=cart.commitment_discount_value,
            burned_points_balance=cart.burned_points_balance,
            total_net=cart.total_net,
            total_vat=cart.total_vat,
            total_gross=cart.total_gross,
            payable=cart.payable,
            balance=cart.get_balance(),
            profit_net=cart.get_profit_net(),
            document_kind=cart.document_kind,
            payment_kind=cart.payment_kind,
            owner_uid=cart.owner_uid,
            store_id=cart.store_id,
            date_completion=cart.date_completion,
            payment_duedate=cart.payment_duedate,
            restored=cart.ancestor,
            created_by=cart.created_by,
            created_at=cart.created_at,
        )

        for line in cart.shopping_list:
            purchase.add_items(_item_from_line(line))
        for upl in cart.upls_unique:
            purchase.add_items(_item_from_unique_upl(upl))
        for upl in cart.upls:
            purchase.add_upl_info_objects(_upl_record(upl))
        for payment in cart.payments:
            purchase.add_payments(PurchasePayment(payment_id=payment.payment_id, amount=payment.amount))

        purchase.raise_(
            PurchaseCreated(
                purchase_id=purchase.id,
                restored=purchase.restored,
                document_kind=purchase.document_kind,
                payment_kind=purchase.payment_kind,
                total_gross=purchase.total_gross,
                payable=purchase.payable,
                balance=purchase.balance,
                item_count=len(purchase.items),
                created_at=datetime.now(UTC),
            )
        )
        return purchase

    @property
    def payment_expired(self):
        """True once the due date has passed while money is still owed."""
        if self.payment_duedate is None or self.balance <= 0:
            return False
        return self.payment_duedate.date() < datetime.now(UTC).date()

    # -------------------------------------------------------------------
    # Downstream references
    # -------------------------------------------------------------------
    def set_invoice_id(self, invoice_id):
        if self.invoice_id:
            raise Conflict("invoice_id", f"Purchase already has invoice {self.invoice_id}")

        self.invoice_id = invoice_id
        self.raise_(InvoiceAttached(purchase_id=self.id, invoice_id=invoice_id))

    def set_storno_id(self, storno_id):
        if not self.invoice_id:
            raise Conflict("storno_id", "Only an invoiced purchase can be cancelled")
        if self.storno_id:
            raise Conflict("storno_id", f"Purchase already has storno {self.storno_id}")

        self.storno_id = storno_id
        self.raise_(
            StornoAttached(
                purchase_id=self.id,
                invoice_id=self.invoice_id,
                storno_id=storno_id,
            )
        )

    def reconcile_loyalty(self, transaction_id, points_earned):
        if not self.loyalty_account_id:
            raise Conflict("loyalty", "Purchase was made without a loyalty card")
        if self.loyalty_transaction_id:
            raise Conflict("loyalty", f"Loyalty already reconciled by {self.loyalty_transaction_id}")

        self.loyalty_transaction_id = transaction_id
        self.loyalty_points_earned = points_earned
        self.raise_(
            LoyaltyReconciled(
                purchase_id=self.id,
                account_id=self.loyalty_account_id,
                transaction_id=transaction_id,
                points_earned=points_earned,
            )
        )
