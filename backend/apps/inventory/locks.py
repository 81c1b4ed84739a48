from django.db import DEFAULT_DB_ALIAS, transaction
from django.db.transaction import TransactionManagementError


class LockSet:
    """Row locks held by one ledger operation.

    Rows are locked with `SELECT ... FOR UPDATE` in ascending primary key order
    within each table. Inventory items are locked before the rows that feed
    them. Operations spanning several products visit them in `lock_order`.
    Locks last until the enclosing atomic block ends.
    """

    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        self.using = using
        self._locked: dict[str, set] = {}

    def _ensure_atomic(self) -> None:
        if not transaction.get_connection(self.using).in_atomic_block:
            raise TransactionManagementError("LockSet must be used inside transaction.atomic().")

    def lock(self, queryset) -> list:
        """Lock every row of `queryset` and return them in ascending id order."""
        self._ensure_atomic()
        rows = list(queryset.using(self.using).select_for_update().order_by("pk"))
        self._locked.setdefault(queryset.model._meta.label, set()).update(row.pk for row in rows)
        return rows

    def lock_one(self, model, pk):
        rows = self.lock(model.objects.filter(pk=pk))
        if not rows:
            raise model.DoesNotExist(f"{model.__name__} {pk} does not exist.")
        return rows[0]

    def holds(self, obj) -> bool:
        return obj.pk in self._locked.get(obj._meta.label, set())

    def __len__(self) -> int:
        return sum(len(ids) for ids in self._locked.values())


def lock_order(pk) -> str:
    """Key every multi-product operation walks its products in."""
    return str(pk)


def in_lock_order(entries, key=lambda entry: entry["product"].pk) -> list:
    """Return `entries` sorted by product so rows of different products are locked in one global order.

    The sort is stable, so entries for the same product keep their relative order.
    """
    return sorted(entries, key=lambda entry: lock_order(key(entry)))
