"""Cart management: commands and handler.

Handles cart creation, removal and the bookkeeping fields: customer,
document kind, owner and store.
"""

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String, ValueObject
from protean.utils.globals import current_domain

from purchasing.cart.cart import Cart
from purchasing.domain import purchasing
from purchasing.purchase.purchase import Purchase
from purchasing.shared.customer import Customer
from purchasing.utils.locking import CART_STORE, PURCHASE_STORE, store_transaction

logger = structlog.get_logger(__name__)


@purchasing.command(part_of="Cart")
class CreateCart:
    owner_uid = Integer(required=True)
    store_id = Integer()
    created_by = Integer()  # Defaults to owner_uid
    ancestor = Identifier()


@purchasing.command(part_of="Cart")
class RemoveCart:
    cart_id = Identifier(required=True)


@purchasing.command(part_of="Cart")
class AttachCustomer:
    cart_id = Identifier(required=True)
    customer = ValueObject(Customer, required=True)


@purchasing.command(part_of="Cart")
class DetachCustomer:
    cart_id = Identifier(required=True)


@purchasing.command(part_of="Cart")
class SetDocumentKind:
    cart_id = Identifier(required=True)
    document_kind = String(required=True, max_length=20)


@purchasing.command(part_of="Cart")
class SetOwner:
    cart_id = Identifier(required=True)
    owner_uid = Integer(required=True)


@purchasing.command(part_of="Cart")
class SetStore:
    cart_id = Identifier(required=True)
    store_id = Integer()  # None unbinds the cart


@purchasing.command_handler(part_of=Cart)
class ManageCartHandler:
    @handle(CreateCart)
    def create_cart(self, command):
        cart = Cart.create(
            owner_uid=command.owner_uid,
            store_id=command.store_id,
            created_by=command.created_by,
            ancestor=command.ancestor,
        )
        with store_transaction(CART_STORE):
            current_domain.repository_for(Cart).add(cart)

        logger.info("Cart created", cart_id=str(cart.id), owner_uid=cart.owner_uid, store_id=cart.store_id)
        return str(cart.id)

    @handle(AttachCustomer)
    def attach_customer(self, command):
        with store_transaction(CART_STORE):
            repo = current_domain.repository_for(Cart)
            cart = repo.get(command.cart_id)
            cart.add_customer(command.customer)
            repo.add(cart)

        logger.info("Customer attached", cart_id=str(command.cart_id), customer_name=command.customer.name)

    @handle(DetachCustomer)
    def detach_customer(self, command):
        with store_transaction(CART_STORE):
            repo = current_domain.repository_for(Cart)
            cart = repo.get(command.cart_id)
            cart.remove_customer()
            repo.add(cart)

        logger.info("Customer detached", cart_id=str(command.cart_id))

    @handle(SetDocumentKind)
    def set_document_kind(self, command):
        with store_transaction(CART_STORE):
            repo = current_domain.repository_for(Cart)
            cart = repo.get(command.cart_id)
            cart.set_document(command.document_kind)
            repo.add(cart)

        logger.info("Document kind set", cart_id=str(command.cart_id), document_kind=command.document_kind)

    @handle(SetOwner)
    def set_owner(self, command):
        with store_transaction(CART_STORE):
            repo = current_domain.repository_for(Cart)
            cart = repo.get(command.cart_id)
            cart.set_owner(command.owner_uid)
            repo.add(cart)

        logger.info("Cart owner changed", cart_id=str(command.cart_id), owner_uid=command.owner_uid)

    @handle(SetStore)
    def set_store(self, command):
        with store_transaction(CART_STORE):
            repo = current_domain.repository_for(Cart)
            cart = repo.get(command.cart_id)
            cart.set_store_id(command.store_id)
            repo.add(cart)

        logger.info("Cart store changed", cart_id=str(command.cart_id), store_id=command.store_id)

    @handle(RemoveCart)
    def remove_cart(self, command):
        """Drop an abandoned cart, or one left behind after its purchase was stored."""
        with store_transaction(CART_STORE, PURCHASE_STORE):
            cart_repo = current_domain.repository_for(Cart)
            cart = cart_repo.get(command.cart_id)
            orphaned = current_domain.repository_for(Purchase).exists(cart.id)
            cart_repo.remove(cart)

        logger.info("Cart removed", cart_id=str(command.cart_id), orphaned=orphaned)
