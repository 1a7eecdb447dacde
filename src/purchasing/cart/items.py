"""Shopping list and tag management: commands and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String, ValueObject
from protean.utils.globals import current_domain

from purchasing.cart.cart import Cart
from purchasing.domain import purchasing
from purchasing.shared.upl import UplInfo
from purchasing.utils.locking import CART_STORE, store_transaction

logger = structlog.get_logger(__name__)


@purchasing.command(part_of="Cart")
class AddSku:
    cart_id = Identifier(required=True)
    sku = Integer(required=True)
    piece = Integer(required=True, min_value=0)
    name = String(required=True, max_length=255)
    vat = String(required=True, max_length=3)
    unit_price_net = Integer(required=True, min_value=0)
    unit_price_gross = Integer(min_value=0)  # Derived from net and VAT when omitted


@purchasing.command(part_of="Cart")
class RemoveSku:
    cart_id = Identifier(required=True)
    sku = Integer(required=True)


@purchasing.command(part_of="Cart")
class SetSkuPiece:
    cart_id = Identifier(required=True)
    sku = Integer(required=True)
    piece = Integer(required=True, min_value=0)


@purchasing.command(part_of="Cart")
class AddUpl:
    cart_id = Identifier(required=True)
    upl = ValueObject(UplInfo, required=True)


@purchasing.command(part_of="Cart")
class RemoveUpl:
    cart_id = Identifier(required=True)
    upl_id = String(required=True, max_length=100)


@purchasing.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddSku)
    def add_sku(self, command):
        with store_transaction(CART_STORE):
            repo = current_domain.repository_for(Cart)
            cart = repo.get(command.cart_id)
            cart.add_sku(
                sku=command.sku,
                piece=command.piece,
                name=command.name,
                vat=command.vat,
                unit_price_net=command.unit_price_net,
                unit_price_gross=command.unit_price_gross,
            )
            repo.add(cart)

        logger.info("SKU added to cart", cart_id=str(command.cart_id), sku=command.sku, piece=command.piece)

    @handle(RemoveSku)
    def remove_sku(self, command):
        with store_transaction(CART_STORE):
            repo = current_domain.repository_for(Cart)
            cart = repo.get(command.cart_id)
            cart.remove_sku(command.sku)
            repo.add(cart)

        logger.info("SKU removed from cart", cart_id=str(command.cart_id), sku=command.sku)

    @handle(SetSkuPiece)
    def set_sku_piece(self, command):
        with store_transaction(CART_STORE):
            repo = current_domain.repository_for(Cart)
            cart = repo.get(command.cart_id)
            cart.set_sku_piece(sku=command.sku, piece=command.piece)
            repo.add(cart)

        logger.info("SKU piece changed", cart_id=str(command.cart_id), sku=command.sku, piece=command.piece)

    @handle(AddUpl)
    def add_upl(self, command):
        with store_transaction(CART_STORE):
            repo = current_domain.repository_for(Cart)
            cart = repo.get(command.cart_id)
            cart.add_upl(command.upl)
            repo.add(cart)

        logger.info(
            "UPL added to cart",
            cart_id=str(command.cart_id),
            upl_id=command.upl.upl_id,
            kind=command.upl.kind,
        )

    @handle(RemoveUpl)
    def remove_upl(self, command):
        with store_transaction(CART_STORE):
            repo = current_domain.repository_for(Cart)
            cart = repo.get(command.cart_id)
            cart.remove_upl(command.upl_id)
            repo.add(cart)

        logger.info("UPL removed from cart", cart_id=str(command.cart_id), upl_id=command.upl_id)
