"""Pydantic request/response schemas for the Purchasing API.

These are external contracts, kept separate from the internal Protean
commands. Response models are filled from ``to_dict()`` snapshots of the
aggregates, so field names follow the domain model.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class CustomerSchema(BaseModel):
    customer_id: int | None = None
    name: str
    zip: str | None = None
    location: str | None = None
    street: str | None = None
    tax_number: str | None = None


class UplSchema(BaseModel):
    upl_id: str
    kind: str  # Sku | DerivedProduct
    sku: int | None = None
    piece: int | None = None
    product_id: int | None = None
    amount: int | None = None
    name: str
    unit: str | None = None
    retail_net_price: int = Field(ge=0)
    vat: str
    retail_gross_price: int = Field(ge=0)
    procurement_net_price: int = Field(ge=0, default=0)
    best_before: datetime | None = None
    depreciated: bool = False

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "upl_id": "UPL-0001",
                    "kind": "Sku",
                    "sku": 100,
                    "piece": 1,
                    "name": "Dog food 2kg",
                    "unit": "pcs",
                    "retail_net_price": 1000,
                    "vat": "27",
                    "retail_gross_price": 1270,
                    "procurement_net_price": 700,
                }
            ]
        }
    }


class PaymentSchema(BaseModel):
    payment_id: str
    amount: int


class CommitmentSchema(BaseModel):
    commitment_id: str
    percentage: int = Field(ge=0, le=100)


class LoyaltyCardSchema(BaseModel):
    account_id: str
    card_id: str
    level: str | None = None


class PointBurnSchema(BaseModel):
    transaction_id: str
    account_id: str
    delta: int
    burned_at: datetime | None = None


class ShoppingListItemSchema(BaseModel):
    sku: int
    name: str
    piece: int
    vat: str
    unit_price_net: int
    unit_price_gross: int
    total_price_net: int
    total_price_gross: int


class PurchaseItemSchema(BaseModel):
    kind: str
    sku: int | None = None
    product_id: int | None = None
    upl_id: str | None = None
    name: str
    piece: int
    unit_price_net: int
    vat: str
    unit_price_gross: int
    total_price_net: int
    total_price_gross: int


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class CreateCartRequest(BaseModel):
    owner_uid: int
    store_id: int | None = None
    created_by: int | None = None
    ancestor: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "owner_uid": 12,
                    "store_id": 3,
                }
            ]
        }
    }


class AddSkuRequest(BaseModel):
    sku: int
    piece: int = Field(ge=0)
    name: str
    vat: str
    unit_price_net: int = Field(ge=0)
    unit_price_gross: int | None = Field(ge=0, default=None)


class SetSkuPieceRequest(BaseModel):
    piece: int = Field(ge=0)


class SetDocumentKindRequest(BaseModel):
    document_kind: str  # Receipt | Invoice


class SetPaymentKindRequest(BaseModel):
    payment_kind: str  # Cash | Card | Transfer


class SetOwnerRequest(BaseModel):
    owner_uid: int


class SetStoreRequest(BaseModel):
    store_id: int | None = None


class BurnPointsRequest(BaseModel):
    account_id: str
    transaction_id: str
    delta: int


class BulkRequest(BaseModel):
    ids: list[str]


# ---------------------------------------------------------------------------
# Purchase Request Schemas
# ---------------------------------------------------------------------------
class AttachInvoiceRequest(BaseModel):
    invoice_id: str


class AttachStornoRequest(BaseModel):
    storno_id: str


class ReconcileLoyaltyRequest(BaseModel):
    transaction_id: str
    points_earned: int = Field(ge=0)


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class CartIdResponse(BaseModel):
    cart_id: str


class PurchaseIdResponse(BaseModel):
    purchase_id: str


class IdsResponse(BaseModel):
    ids: list[str]


class BalanceResponse(BaseModel):
    status: str = "ok"
    balance: int


class StatusResponse(BaseModel):
    status: str = "ok"


class CartResponse(BaseModel):
    """Full cart snapshot."""

    id: str
    ancestor: str | None = None
    status: str
    customer: CustomerSchema | None = None
    commitment: CommitmentSchema | None = None
    loyalty_card: LoyaltyCardSchema | None = None
    burned_points: list[PointBurnSchema] = []
    shopping_list: list[ShoppingListItemSchema] = []
    upls_sku: list[UplSchema] = []
    upls_unique: list[UplSchema] = []
    payments: list[PaymentSchema] = []
    items_total_net: int
    items_total_gross: int
    commitment_discount_value: int
    burned_points_balance: int
    total_net: int
    total_vat: int
    total_gross: int
    payable: int
    balance: int
    profit_net: int
    document_kind: str
    payment_kind: str
    owner_uid: int
    store_id: int | None = None
    created_by: int
    created_at: datetime | None = None
    date_completion: datetime | None = None
    payment_duedate: datetime | None = None
    can_close: bool


class CartInfo(BaseModel):
    """One line of the cart bulk stream."""

    cart_id: str
    customer_name: str | None = None
    item_count: int
    upl_count: int
    total_net: int
    total_vat: int
    total_gross: int
    payable: int
    balance: int
    document_kind: str
    payment_kind: str
    owner_uid: int
    store_id: int | None = None
    created_by: int
    created_at: datetime | None = None


class PurchaseResponse(BaseModel):
    """Full purchase record."""

    id: str
    customer: CustomerSchema | None = None
    commitment_id: str | None = None
    discount_percentage: int | None = None
    loyalty_account_id: str | None = None
    items: list[PurchaseItemSchema] = []
    upl_info_objects: list[UplSchema] = []
    payments: list[PaymentSchema] = []
    items_total_net: int
    items_total_gross: int
    commitment_discount_value: int
    burned_points_balance: int
    total_net: int
    total_vat: int
    total_gross: int
    payable: int
    balance: int
    profit_net: int
    document_kind: str
    payment_kind: str
    owner_uid: int
    store_id: int | None = None
    date_completion: datetime | None = None
    payment_duedate: datetime | None = None
    payment_expired: bool
    restored: str | None = None
    created_by: int
    created_at: datetime | None = None
    invoice_id: str | None = None
    storno_id: str | None = None
    loyalty_transaction_id: str | None = None
    loyalty_points_earned: int | None = None


class PurchaseInfo(BaseModel):
    """One line of the purchase bulk stream."""

    purchase_id: str
    customer: CustomerSchema | None = None
    upl_count: int
    total_net: int
    total_vat: int
    total_gross: int
    balance: int
    profit_net: int
    document_invoice: bool
    date_completion: datetime | None = None
    payment_duedate: datetime | None = None
    payment_expired: bool
    restored: bool
    invoice_id: str | None = None
    storno_id: str | None = None
    created_by: int
    created_at: datetime | None = None


class PurchaseStatsResponse(BaseModel):
    """Sales figures of the purchases completed in an interval."""

    date_from: date
    date_to: date
    purchase_count: int
    invoice_count: int
    storno_count: int
    total_net: int
    total_vat: int
    total_gross: int
    profit_net: int
    outstanding_balance: int
