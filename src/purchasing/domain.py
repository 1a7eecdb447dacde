"""Purchasing bounded context: shopping carts and Purchase records.

Handles the in-store cart lifecycle (SKU lines, UPL tags, discounts, loyalty
burns, payments) and the conversion of a closed cart into an immutable
Purchase ready for invoicing.
"""

from protean.domain import Domain

from purchasing.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

purchasing = Domain(name="purchasing")
