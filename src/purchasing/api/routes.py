"""FastAPI routes for the Purchasing domain: carts and purchases."""

from dataclasses import asdict
from datetime import date
from uuid import UUID

from fastapi import APIRouter
from fastapi.responses import StreamingResponse
from protean.utils.globals import current_domain

from purchasing.api.schemas import (
    AddSkuRequest,
    AttachInvoiceRequest,
    AttachStornoRequest,
    BalanceResponse,
    BulkRequest,
    BurnPointsRequest,
    CartIdResponse,
    CartInfo,
    CartResponse,
    CommitmentSchema,
    CreateCartRequest,
    CustomerSchema,
    IdsResponse,
    LoyaltyCardSchema,
    PaymentSchema,
    PurchaseInfo,
    PurchaseResponse,
    PurchaseStatsResponse,
    ReconcileLoyaltyRequest,
    SetDocumentKindRequest,
    SetOwnerRequest,
    SetPaymentKindRequest,
    SetSkuPieceRequest,
    SetStoreRequest,
    StatusResponse,
    UplSchema,
)
from purchasing.cart.cart import Cart
from purchasing.cart.closing import CloseCart
from purchasing.cart.commitment import AddCommitment, RemoveCommitment
from purchasing.cart.items import AddSku, AddUpl, RemoveSku, RemoveUpl, SetSkuPiece
from purchasing.cart.loyalty import AddLoyaltyCard, BurnPoints, RemoveLoyaltyCard
from purchasing.cart.management import (
    AttachCustomer,
    CreateCart,
    DetachCustomer,
    RemoveCart,
    SetDocumentKind,
    SetOwner,
    SetStore,
)
from purchasing.cart.payment import AddPayment, SetPaymentKind
from purchasing.purchase.enrichment import AttachInvoice, AttachStorno, ReconcileLoyalty
from purchasing.purchase.purchase import Purchase
from purchasing.shared.customer import Customer
from purchasing.shared.errors import BadRequest
from purchasing.shared.upl import UplInfo
from purchasing.utils.locking import CART_STORE, PURCHASE_STORE, locked

NDJSON = "application/x-ndjson"


def parse_id(value: str, field: str) -> str:
    """Reject identifiers that are not UUIDs before touching a store."""
    try:
        return str(UUID(str(value)))
    except ValueError:
        raise BadRequest(field, f"Malformed identifier {value!r}")


def _ndjson(records):
    for record in records:
        yield record.model_dump_json() + "\n"


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------
def _vo(value):
    return value.to_dict() if value is not None else None


def cart_response(cart: Cart) -> CartResponse:
    data = cart.to_dict()
    data.update(
        customer=_vo(cart.customer),
        commitment=_vo(cart.commitment),
        loyalty_card=_vo(cart.loyalty_card),
        burned_points=[burn.to_dict() for burn in cart.burned_points],
        shopping_list=[line.to_dict() for line in cart.shopping_list],
        upls_sku=[upl.to_dict() for upl in cart.upls_sku],
        upls_unique=[upl.to_dict() for upl in cart.upls_unique],
        payments=[payment.to_dict() for payment in cart.payments],
        balance=cart.get_balance(),
        profit_net=cart.get_profit_net(),
        can_close=cart.can_close(),
    )
    return CartResponse.model_validate(data)


def cart_info(cart: Cart) -> CartInfo:
    return CartInfo(
        cart_id=str(cart.id),
        customer_name=cart.customer.name if cart.customer else None,
        item_count=len(cart.shopping_list),
        upl_count=len(cart.upls),
        total_net=cart.total_net,
        total_vat=cart.total_vat,
        total_gross=cart.total_gross,
        payable=cart.payable,
        balance=cart.get_balance(),
        document_kind=cart.document_kind,
        payment_kind=cart.payment_kind,
        owner_uid=cart.owner_uid,
        store_id=cart.store_id,
        created_by=cart.created_by,
        created_at=cart.created_at,
    )


def purchase_response(purchase: Purchase) -> PurchaseResponse:
    data = purchase.to_dict()
    data.update(
        customer=_vo(purchase.customer),
        items=[item.to_dict() for item in purchase.items],
        upl_info_objects=[upl.to_dict() for upl in purchase.upl_info_objects],
        payments=[payment.to_dict() for payment in purchase.payments],
        payment_expired=purchase.payment_expired,
    )
    return PurchaseResponse.model_validate(data)


def purchase_info(purchase: Purchase) -> PurchaseInfo:
    return PurchaseInfo(
        purchase_id=str(purchase.id),
        customer=_vo(purchase.customer),
        upl_count=len(purchase.upl_info_objects),
        total_net=purchase.total_net,
        total_vat=purchase.total_vat,
        total_gross=purchase.total_gross,
        balance=purchase.balance,
        profit_net=purchase.profit_net,
        document_invoice=purchase.document_kind == "Invoice",
        date_completion=purchase.date_completion,
        payment_duedate=purchase.payment_duedate,
        payment_expired=purchase.payment_expired,
        restored=purchase.restored is not None,
        invoice_id=purchase.invoice_id,
        storno_id=purchase.storno_id,
        created_by=purchase.created_by,
        created_at=purchase.created_at,
    )


def _get_cart(cart_id: str) -> Cart:
    with locked(CART_STORE):
        return current_domain.repository_for(Cart).get(parse_id(cart_id, "cart_id"))


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


@cart_router.post("", status_code=201, response_model=CartIdResponse)
async def create_cart(body: CreateCartRequest) -> CartIdResponse:
    command = CreateCart(
        owner_uid=body.owner_uid,
        store_id=body.store_id,
        created_by=body.created_by,
        ancestor=parse_id(body.ancestor, "ancestor") if body.ancestor else None,
    )
    result = current_domain.process(command, asynchronous=False)
    return CartIdResponse(cart_id=result)


@cart_router.get("", response_model=IdsResponse)
async def list_cart_ids() -> IdsResponse:
    with locked(CART_STORE):
        ids = current_domain.repository_for(Cart).all_ids()
    return IdsResponse(ids=ids)


@cart_router.post("/bulk")
async def get_carts_bulk(body: BulkRequest) -> StreamingResponse:
    """Stream ``CartInfo`` lines for the given ids, in request order.

    Unknown ids are skipped. The carts are read before the first line is
    sent, so the stream reflects the store at request time.
    """
    ids = [parse_id(cart_id, "ids") for cart_id in body.ids]
    with locked(CART_STORE):
        snapshot = [cart_info(cart) for cart in current_domain.repository_for(Cart).find_many(ids)]
    return StreamingResponse(_ndjson(snapshot), media_type=NDJSON)


@cart_router.get("/{cart_id}", response_model=CartResponse)
async def get_cart(cart_id: str) -> CartResponse:
    return cart_response(_get_cart(cart_id))


@cart_router.delete("/{cart_id}", response_model=StatusResponse)
async def remove_cart(cart_id: str) -> StatusResponse:
    current_domain.process(RemoveCart(cart_id=parse_id(cart_id, "cart_id")), asynchronous=False)
    return StatusResponse()


@cart_router.put("/{cart_id}/customer", response_model=StatusResponse)
async def attach_customer(cart_id: str, body: CustomerSchema) -> StatusResponse:
    command = AttachCustomer(
        cart_id=parse_id(cart_id, "cart_id"),
        customer=Customer(**body.model_dump()),
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.delete("/{cart_id}/customer", response_model=StatusResponse)
async def detach_customer(cart_id: str) -> StatusResponse:
    current_domain.process(DetachCustomer(cart_id=parse_id(cart_id, "cart_id")), asynchronous=False)
    return StatusResponse()


@cart_router.post("/{cart_id}/skus", response_model=StatusResponse)
async def add_sku(cart_id: str, body: AddSkuRequest) -> StatusResponse:
    command = AddSku(
        cart_id=parse_id(cart_id, "cart_id"),
        sku=body.sku,
        piece=body.piece,
        name=body.name,
        vat=body.vat,
        unit_price_net=body.unit_price_net,
        unit_price_gross=body.unit_price_gross,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.put("/{cart_id}/skus/{sku}", response_model=StatusResponse)
async def set_sku_piece(cart_id: str, sku: int, body: SetSkuPieceRequest) -> StatusResponse:
    command = SetSkuPiece(
        cart_id=parse_id(cart_id, "cart_id"),
        sku=sku,
        piece=body.piece,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.delete("/{cart_id}/skus/{sku}", response_model=StatusResponse)
async def remove_sku(cart_id: str, sku: int) -> StatusResponse:
    current_domain.process(RemoveSku(cart_id=parse_id(cart_id, "cart_id"), sku=sku), asynchronous=False)
    return StatusResponse()


@cart_router.post("/{cart_id}/upls", response_model=StatusResponse)
async def add_upl(cart_id: str, body: UplSchema) -> StatusResponse:
    command = AddUpl(
        cart_id=parse_id(cart_id, "cart_id"),
        upl=UplInfo(**body.model_dump()),
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.delete("/{cart_id}/upls/{upl_id}", response_model=StatusResponse)
async def remove_upl(cart_id: str, upl_id: str) -> StatusResponse:
    current_domain.process(RemoveUpl(cart_id=parse_id(cart_id, "cart_id"), upl_id=upl_id), asynchronous=False)
    return StatusResponse()


@cart_router.put("/{cart_id}/document", response_model=StatusResponse)
async def set_document_kind(cart_id: str, body: SetDocumentKindRequest) -> StatusResponse:
    command = SetDocumentKind(
        cart_id=parse_id(cart_id, "cart_id"),
        document_kind=body.document_kind,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.put("/{cart_id}/payment-kind", response_model=StatusResponse)
async def set_payment_kind(cart_id: str, body: SetPaymentKindRequest) -> StatusResponse:
    command = SetPaymentKind(
        cart_id=parse_id(cart_id, "cart_id"),
        payment_kind=body.payment_kind,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.post("/{cart_id}/payments", response_model=BalanceResponse)
async def add_payment(cart_id: str, body: PaymentSchema) -> BalanceResponse:
    command = AddPayment(
        cart_id=parse_id(cart_id, "cart_id"),
        payment_id=body.payment_id,
        amount=body.amount,
    )
    balance = current_domain.process(command, asynchronous=False)
    return BalanceResponse(balance=balance)


@cart_router.put("/{cart_id}/owner", response_model=StatusResponse)
async def set_owner(cart_id: str, body: SetOwnerRequest) -> StatusResponse:
    current_domain.process(
        SetOwner(cart_id=parse_id(cart_id, "cart_id"), owner_uid=body.owner_uid),
        asynchronous=False,
    )
    return StatusResponse()


@cart_router.put("/{cart_id}/store", response_model=StatusResponse)
async def set_store(cart_id: str, body: SetStoreRequest) -> StatusResponse:
    current_domain.process(
        SetStore(cart_id=parse_id(cart_id, "cart_id"), store_id=body.store_id),
        asynchronous=False,
    )
    return StatusResponse()


@cart_router.post("/{cart_id}/loyalty-card", response_model=StatusResponse)
async def add_loyalty_card(cart_id: str, body: LoyaltyCardSchema) -> StatusResponse:
    command = AddLoyaltyCard(
        cart_id=parse_id(cart_id, "cart_id"),
        account_id=body.account_id,
        card_id=body.card_id,
        level=body.level,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.delete("/{cart_id}/loyalty-card", response_model=StatusResponse)
async def remove_loyalty_card(cart_id: str) -> StatusResponse:
    current_domain.process(RemoveLoyaltyCard(cart_id=parse_id(cart_id, "cart_id")), asynchronous=False)
    return StatusResponse()


@cart_router.post("/{cart_id}/burned-points", response_model=StatusResponse)
async def burn_points(cart_id: str, body: BurnPointsRequest) -> StatusResponse:
    command = BurnPoints(
        cart_id=parse_id(cart_id, "cart_id"),
        account_id=body.account_id,
        transaction_id=body.transaction_id,
        delta=body.delta,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.post("/{cart_id}/commitment", response_model=StatusResponse)
async def add_commitment(cart_id: str, body: CommitmentSchema) -> StatusResponse:
    command = AddCommitment(
        cart_id=parse_id(cart_id, "cart_id"),
        commitment_id=body.commitment_id,
        percentage=body.percentage,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.delete("/{cart_id}/commitment", response_model=StatusResponse)
async def remove_commitment(cart_id: str) -> StatusResponse:
    current_domain.process(RemoveCommitment(cart_id=parse_id(cart_id, "cart_id")), asynchronous=False)
    return StatusResponse()


@cart_router.post("/{cart_id}/close", status_code=201, response_model=PurchaseResponse)
async def close_cart(cart_id: str) -> PurchaseResponse:
    """Close the cart and return the purchase it became.

    A rejected close leaves the cart as it was and answers 422 with the
    reason.
    """
    purchase_id = current_domain.process(CloseCart(cart_id=parse_id(cart_id, "cart_id")), asynchronous=False)
    with locked(PURCHASE_STORE):
        purchase = current_domain.repository_for(Purchase).get(purchase_id)
    return purchase_response(purchase)


# ---------------------------------------------------------------------------
# Purchase Router
# ---------------------------------------------------------------------------
purchase_router = APIRouter(prefix="/purchases", tags=["purchases"])


@purchase_router.get("", response_model=IdsResponse)
async def list_purchase_ids() -> IdsResponse:
    with locked(PURCHASE_STORE):
        ids = current_domain.repository_for(Purchase).all_ids()
    return IdsResponse(ids=ids)


@purchase_router.post("/bulk")
async def get_purchases_bulk(body: BulkRequest) -> StreamingResponse:
    ids = [parse_id(purchase_id, "ids") for purchase_id in body.ids]
    with locked(PURCHASE_STORE):
        snapshot = [purchase_info(purchase) for purchase in current_domain.repository_for(Purchase).find_many(ids)]
    return StreamingResponse(_ndjson(snapshot), media_type=NDJSON)


@purchase_router.get("/stats", response_model=PurchaseStatsResponse)
async def get_purchase_stats(date_from: date, date_to: date) -> PurchaseStatsResponse:
    """Totals of the purchases completed between two days, both inclusive."""
    with locked(PURCHASE_STORE):
        stats = current_domain.repository_for(Purchase).completed_between(date_from, date_to)
    return PurchaseStatsResponse(**asdict(stats))


@purchase_router.get("/{purchase_id}", response_model=PurchaseResponse)
async def get_purchase(purchase_id: str) -> PurchaseResponse:
    with locked(PURCHASE_STORE):
        purchase = current_domain.repository_for(Purchase).get(parse_id(purchase_id, "purchase_id"))
    return purchase_response(purchase)


@purchase_router.put("/{purchase_id}/invoice", response_model=StatusResponse)
async def attach_invoice(purchase_id: str, body: AttachInvoiceRequest) -> StatusResponse:
    command = AttachInvoice(
        purchase_id=parse_id(purchase_id, "purchase_id"),
        invoice_id=body.invoice_id,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@purchase_router.put("/{purchase_id}/storno", response_model=StatusResponse)
async def attach_storno(purchase_id: str, body: AttachStornoRequest) -> StatusResponse:
    command = AttachStorno(
        purchase_id=parse_id(purchase_id, "purchase_id"),
        storno_id=body.storno_id,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@purchase_router.put("/{purchase_id}/loyalty", response_model=StatusResponse)
async def reconcile_loyalty(purchase_id: str, body: ReconcileLoyaltyRequest) -> StatusResponse:
    command = ReconcileLoyalty(
        purchase_id=parse_id(purchase_id, "purchase_id"),
        transaction_id=body.transaction_id,
        points_earned=body.points_earned,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()
