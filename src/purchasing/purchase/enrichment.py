"""Purchase enrichment: commands and handler.

Invoicing and the loyalty service report back references to documents and
transactions they created for a purchase. Each reference can be attached
once.
"""

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from purchasing.domain import purchasing
from purchasing.purchase.purchase import Purchase
from purchasing.utils.locking import PURCHASE_STORE, store_transaction

logger = structlog.get_logger(__name__)


@purchasing.command(part_of="Purchase")
class AttachInvoice:
    purchase_id = Identifier(required=True)
    invoice_id = String(required=True, max_length=100)


@purchasing.command(part_of="Purchase")
class AttachStorno:
    purchase_id = Identifier(required=True)
    storno_id = String(required=True, max_length=100)


@purchasing.command(part_of="Purchase")
class ReconcileLoyalty:
    purchase_id = Identifier(required=True)
    transaction_id = String(required=True, max_length=100)
    points_earned = Integer(required=True, min_value=0)


@purchasing.command_handler(part_of=Purchase)
class PurchaseEnrichmentHandler:
    @handle(AttachInvoice)
    def attach_invoice(self, command):
        with store_transaction(PURCHASE_STORE):
            repo = current_domain.repository_for(Purchase)
            purchase = repo.get(command.purchase_id)
            purchase.set_invoice_id(command.invoice_id)
            repo.add(purchase)

        logger.info("Invoice attached", purchase_id=str(command.purchase_id), invoice_id=command.invoice_id)

    @handle(AttachStorno)
    def attach_storno(self, command):
        with store_transaction(PURCHASE_STORE):
            repo = current_domain.repository_for(Purchase)
            purchase = repo.get(command.purchase_id)
            purchase.set_storno_id(command.storno_id)
            repo.add(purchase)

        logger.info("Storno attached", purchase_id=str(command.purchase_id), storno_id=command.storno_id)

    @handle(ReconcileLoyalty)
    def reconcile_loyalty(self, command):
        with store_transaction(PURCHASE_STORE):
            repo = current_domain.repository_for(Purchase)
            purchase = repo.get(command.purchase_id)
            purchase.reconcile_loyalty(
                transaction_id=command.transaction_id,
                points_earned=command.points_earned,
            )
            repo.add(purchase)

        logger.info(
            "Loyalty reconciled",
            purchase_id=str(command.purchase_id),
            transaction_id=command.transaction_id,
            points_earned=command.points_earned,
        )
