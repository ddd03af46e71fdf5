"""
Ordering helpers shared by folders, bookmarks and user comic pages.

`move_item` and `assign_positions` are pure list operations. `persist_positions`
writes an ordering back to the database inside one transaction.
"""
import logging
from typing import Dict, Iterable, List, Sequence

from django.db import transaction

logger = logging.getLogger(__name__)


class OrderingError(ValueError):
    code = "invalid_order"

    def __init__(self, message, code=None):
        super().__init__(message)
        if code:
            self.code = code


class StaleOrder(OrderingError):
    code = "stale_order"


def move_item(items: Sequence, source: int, destination: int) -> List:
    """
    Return a new list with the element at `source` moved to `destination`.
    Every other element keeps its relative order.
    """
    size = len(items)
    for name, index in (("source", source), ("destination", destination)):
        if not isinstance(index, int) or isinstance(index, bool):
            raise OrderingError(f"{name} index must be an integer", code="invalid_index")
        if index < 0 or index >= size:
            raise OrderingError(f"{name} index {index} out of range [0, {size})", code="invalid_index")

    result = list(items)
    moved = result.pop(source)
    result.insert(destination, moved)
    return result


def assign_positions(ids: Iterable, start: int = 0) -> Dict[str, int]:
    """Map each id (as a string) to its position. Use start=1 for page numbers."""
    return {str(item_id): position for position, item_id in enumerate(ids, start=start)}


def persist_positions(queryset, ordered_ids, field="display_order", start=0,
                      expected_order=None, unique=False) -> int:
    """
    Write `ordered_ids` back as consecutive positions on `field`.

    `queryset` must select exactly the rows being ordered (one folder's
    bookmarks, one user's folders, one comic's pages). The rows are locked for
    the duration of the transaction and only rows whose position changes are
    written. When `expected_order` is given and differs from the stored order
    the call raises StaleOrder without writing anything.

    With `unique=True` changed rows are first parked above the current maximum
    so the unique constraint never observes two rows on one position.

    Returns the number of rows whose position changed.
    """
    wanted = [str(i) for i in ordered_ids]
    if len(set(wanted)) != len(wanted):
        raise OrderingError("Order contains duplicate ids")

    with transaction.atomic():
        rows = list(queryset.select_for_update().order_by(field, "pk"))
        current = [str(row.pk) for row in rows]

        if expected_order is not None and [str(i) for i in expected_order] != current:
            raise StaleOrder("Stored order changed since it was read")

        if set(wanted) != set(current):
            raise OrderingError("Order must contain every item exactly once")

        targets = assign_positions(wanted, start=start)
        changed = [row for row in rows if getattr(row, field) != targets[str(row.pk)]]
        if not changed:
            return 0

        model = queryset.model
        if unique:
            ceiling = max([getattr(row, field) for row in rows] + list(targets.values()))
            for offset, row in enumerate(changed, start=1):
                model.objects.filter(pk=row.pk).update(**{field: ceiling + offset})

        for row in changed:
            model.objects.filter(pk=row.pk).update(**{field: targets[str(row.pk)]})

    logger.info(f"Reordered {model.__name__}: {len(changed)} of {len(rows)} rows moved")
    return len(changed)


def next_position(queryset, field="display_order", start=0) -> int:
    """Position just past the current last row, for appending."""
    last = queryset.order_by(f"-{field}").values_list(field, flat=True).first()
    return start if last is None else last + 1


def compact(queryset, field="display_order", start=0, unique=False) -> int:
    """Renumber rows in their current order so positions have no gaps."""
    ids = list(queryset.order_by(field, "pk").values_list("pk", flat=True))
    return persist_positions(queryset, ids, field=field, start=start, unique=unique)
