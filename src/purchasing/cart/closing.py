"""Cart closing: command and handler.

Closing validates the cart, records the resulting Purchase and drops the
cart from the active store. Both stores are store_transaction for the duration, cart
store first.
"""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from purchasing.cart.cart import Cart
from purchasing.domain import purchasing
from purchasing.purchase.purchase import Purchase
from purchasing.shared.errors import Conflict, Rejected
from purchasing.utils.locking import CART_STORE, PURCHASE_STORE, store_transaction

logger = structlog.get_logger(__name__)


@purchasing.command(part_of="Cart")
class CloseCart:
    cart_id = Identifier(required=True)


@purchasing.command_handler(part_of=Cart)
class CloseCartHandler:
    @handle(CloseCart)
    def close_cart(self, command):
        with store_transaction(CART_STORE, PURCHASE_STORE):
            cart_repo = current_domain.repository_for(Cart)
            purchase_repo = current_domain.repository_for(Purchase)

            cart = cart_repo.get(command.cart_id)
            if purchase_repo.exists(cart.id):
                raise Conflict("cart_id", f"Cart {cart.id} was already closed into a purchase; remove the cart instead")

            try:
                purchase = cart.close_cart()
            except Rejected as exc:
                logger.warning("Cart close rejected", cart_id=str(cart.id), reason=exc.reason)
                raise

            purchase_repo.add(purchase)
            cart_repo.remove(cart)

        logger.info(
            "Cart closed",
            cart_id=str(command.cart_id),
            purchase_id=str(purchase.id),
            total_gross=purchase.total_gross,
            payable=purchase.payable,
        )
        return str(purchase.id)
