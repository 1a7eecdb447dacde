"""Loyalty card and point burns: commands and handler.

Point balances are owned by the loyalty service; the cart only records the
transactions the caller reports.
"""

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from purchasing.cart.cart import Cart
from purchasing.domain import purchasing
from purchasing.utils.locking import CART_STORE, store_transaction

logger = structlog.get_logger(__name__)


@purchasing.command(part_of="Cart")
class AddLoyaltyCard:
    cart_id = Identifier(required=True)
    account_id = String(required=True, max_length=100)
    card_id = String(required=True, max_length=100)
    level = String(max_length=50)


@purchasing.command(part_of="Cart")
class RemoveLoyaltyCard:
    cart_id = Identifier(required=True)


@purchasing.command(part_of="Cart")
class BurnPoints:
    cart_id = Identifier(required=True)
    account_id = String(required=True, max_length=100)
    transaction_id = String(required=True, max_length=100)
    delta = Integer(required=True)


@purchasing.command_handler(part_of=Cart)
class CartLoyaltyHandler:
    @handle(AddLoyaltyCard)
    def add_loyalty_card(self, command):
        with store_transaction(CART_STORE):
            repo = current_domain.repository_for(Cart)
            cart = repo.get(command.cart_id)
            cart.add_loyalty_card(
                account_id=command.account_id,
                card_id=command.card_id,
                level=command.level,
            )
            repo.add(cart)

        logger.info("Loyalty card added", cart_id=str(command.cart_id), account_id=command.account_id)

    @handle(RemoveLoyaltyCard)
    def remove_loyalty_card(self, command):
        with store_transaction(CART_STORE):
            repo = current_domain.repository_for(Cart)
            cart = repo.get(command.cart_id)
            cart.remove_loyalty_card()
            repo.add(cart)

        logger.info("Loyalty card removed", cart_id=str(command.cart_id))

    @handle(BurnPoints)
    def burn_points(self, command):
        with store_transaction(CART_STORE):
            repo = current_domain.repository_for(Cart)
            cart = repo.get(command.cart_id)
            cart.burn_points(
                account_id=command.account_id,
                transaction_id=command.transaction_id,
                delta=command.delta,
            )
            repo.add(cart)

        logger.info(
            "Loyalty points burned",
            cart_id=str(command.cart_id),
            transaction_id=command.transaction_id,
            delta=command.delta,
            burned_points_balance=cart.burned_points_balance,
        )
