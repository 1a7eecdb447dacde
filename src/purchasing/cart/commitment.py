"""Commitment discount: commands and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from purchasing.cart.cart import Cart
from purchasing.domain import purchasing
from purchasing.utils.locking import CART_STORE, store_transaction

logger = structlog.get_logger(__name__)


@purchasing.command(part_of="Cart")
class AddCommitment:
    cart_id = Identifier(required=True)
    commitment_id = String(required=True, max_length=100)
    percentage = Integer(required=True, min_value=0, max_value=100)


@purchasing.command(part_of="Cart")
class RemoveCommitment:
    cart_id = Identifier(required=True)


@purchasing.command_handler(part_of=Cart)
class CartCommitmentHandler:
    @handle(AddCommitment)
    def add_commitment(self, command):
        with store_transaction(CART_STORE):
            repo = current_domain.repository_for(Cart)
            cart = repo.get(command.cart_id)
            cart.add_commitment(commitment_id=command.commitment_id, percentage=command.percentage)
            repo.add(cart)

        logger.info(
            "Commitment applied",
            cart_id=str(command.cart_id),
            commitment_id=command.commitment_id,
            percentage=command.percentage,
        )

    @handle(RemoveCommitment)
    def remove_commitment(self, command):
        with store_transaction(CART_STORE):
            repo = current_domain.repository_for(Cart)
            cart = repo.get(command.cart_id)
            cart.remove_commitment()
            repo.add(cart)

        logger.info("Commitment removed", cart_id=str(command.cart_id))
