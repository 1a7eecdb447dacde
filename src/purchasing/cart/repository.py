"""Repository for the Cart aggregate."""

from protean.exceptions import ObjectNotFoundError

from purchasing.cart.cart import Cart
from purchasing.domain import purchasing
from purchasing.utils.db import query_all


@purchasing.repository(part_of=Cart)
class CartRepository:
    """Active carts keyed by id.

    The base repository provides ``add`` and ``get``; closed and abandoned
    carts are removed through ``remove``.
    """

    def all_ids(self) -> list[str]:
        return [str(cart.id) for cart in query_all(self._dao)]

    def find_many(self, ids) -> list[Cart]:
        """Carts for ``ids`` in the order given; unknown ids are skipped."""
        carts = []
        for cart_id in ids:
            try:
                carts.append(self.get(cart_id))
            except ObjectNotFoundError:
                continue
        return carts

    def remove(self, cart: Cart) -> None:
        self._dao.delete(cart)
