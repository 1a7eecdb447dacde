"""UPL (unique product label) tags and their kind-dependent arithmetic.

A tag is either a plain SKU unit (``sku`` + ``piece``) or a derived/opened
product (``product_id`` + ``amount``). Both carts and purchases store tags, so
the kind dispatch lives here as plain functions over any tag-shaped object.
"""

from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Integer, String

from purchasing.domain import purchasing
from purchasing.shared.vat import VAT


class UplKind(Enum):
    SKU = "Sku"
    DERIVED_PRODUCT = "DerivedProduct"


def upl_piece(upl) -> int:
    if UplKind(upl.kind) == UplKind.SKU:
        return upl.piece
    if UplKind(upl.kind) == UplKind.DERIVED_PRODUCT:
        return 1
    raise ValueError(f"Unhandled UPL kind {upl.kind}")


def upl_price_net(upl) -> int:
    """Net line value of a tag: flat for derived products, unit x piece for SKUs."""
    if UplKind(upl.kind) == UplKind.DERIVED_PRODUCT:
        return upl.retail_net_price
    return upl.retail_net_price * upl.piece


def upl_price_gross(upl) -> int:
    if UplKind(upl.kind) == UplKind.DERIVED_PRODUCT:
        return upl.retail_gross_price
    return upl.retail_gross_price * upl.piece


def upl_is_unique(upl) -> bool:
    """Unique tags are priced on their own; healthy SKU tags back a shopping-list line."""
    return UplKind(upl.kind) == UplKind.DERIVED_PRODUCT or bool(upl.depreciated)


@purchasing.value_object
class UplInfo:
    """A scanned tag as reported by the stock service."""

    upl_id = String(required=True, max_length=100)
    kind = String(required=True, choices=UplKind)
    sku = Integer()
    piece = Integer(min_value=1)
    product_id = Integer()
    amount = Integer(min_value=0)
    name = String(required=True, max_length=255)
    unit = String(max_length=20)
    retail_net_price = Integer(required=True, min_value=0)
    vat = String(required=True, max_length=3)
    retail_gross_price = Integer(required=True, min_value=0)
    procurement_net_price = Integer(default=0, min_value=0)
    best_before = DateTime()
    depreciated = Boolean(default=False)

    @invariant.post
    def kind_fields_must_be_present(self):
        if UplKind(self.kind) == UplKind.SKU:
            if self.sku is None or self.piece is None:
                raise ValidationError({"upl": ["SKU tags must carry sku and piece"]})
        elif self.product_id is None or self.amount is None:
            raise ValidationError({"upl": ["Derived product tags must carry product_id and amount"]})

    @invariant.post
    def vat_must_be_known(self):
        VAT.parse(self.vat)

    def tag_fields(self) -> dict:
        return {
            "upl_id": self.upl_id,
            "kind": self.kind,
            "sku": self.sku,
            "piece": self.piece,
            "product_id": self.product_id,
            "amount": self.amount,
            "name": self.name,
            "unit": self.unit,
            "retail_net_price": self.retail_net_price,
            "vat": self.vat,
            "retail_gross_price": self.retail_gross_price,
            "procurement_net_price": self.procurement_net_price,
            "best_before": self.best_before,
            "depreciated": self.depreciated,
        }
