"""Repository for the Purchase aggregate."""

from protean.exceptions import ObjectNotFoundError

from purchasing.domain import purchasing
from purchasing.purchase.purchase import Purchase
from purchasing.purchase.statistics import PurchaseStats, summarize
from purchasing.utils.db import query_all


@purchasing.repository(part_of=Purchase)
class PurchaseRepository:
    def all_ids(self) -> list[str]:
        return [str(purchase.id) for purchase in query_all(self._dao)]

    def find_many(self, ids) -> list[Purchase]:
        purchases = []
        for purchase_id in ids:
            try:
                purchases.append(self.get(purchase_id))
            except ObjectNotFoundError:
                continue
        return purchases

    def exists(self, purchase_id) -> bool:
        return self._dao.query.filter(id=purchase_id).all().total > 0

    def completed_between(self, date_from, date_to) -> PurchaseStats:
        """Sales figures of the purchases completed in ``[date_from, date_to]``."""
        return summarize(query_all(self._dao), date_from, date_to)
