"""Cart payment: commands and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from purchasing.cart.cart import Cart
from purchasing.domain import purchasing
from purchasing.utils.locking import CART_STORE, store_transaction

logger = structlog.get_logger(__name__)


@purchasing.command(part_of="Cart")
class SetPaymentKind:
    cart_id = Identifier(required=True)
    payment_kind = String(required=True, max_length=20)


@purchasing.command(part_of="Cart")
class AddPayment:
    """Record money taken (positive) or handed back (negative)."""

    cart_id = Identifier(required=True)
    payment_id = String(required=True, max_length=100)
    amount = Integer(required=True)


@purchasing.command_handler(part_of=Cart)
class CartPaymentHandler:
    @handle(SetPaymentKind)
    def set_payment_kind(self, command):
        with store_transaction(CART_STORE):
            repo = current_domain.repository_for(Cart)
            cart = repo.get(command.cart_id)
            cart.set_payment(command.payment_kind)
            repo.add(cart)

        logger.info("Payment kind set", cart_id=str(command.cart_id), payment_kind=command.payment_kind)

    @handle(AddPayment)
    def add_payment(self, command):
        with store_transaction(CART_STORE):
            repo = current_domain.repository_for(Cart)
            cart = repo.get(command.cart_id)
            cart.add_payment(payment_id=command.payment_id, amount=command.amount)
            repo.add(cart)
            balance = cart.get_balance()

        logger.info(
            "Payment added to cart",
            cart_id=str(command.cart_id),
            payment_id=command.payment_id,
            amount=command.amount,
            balance=balance,
        )
        return balance
