from __future__ import annotations

from typing import List, Optional, Sequence, TypeVar

from apphub.exceptions import ValidationError

T = TypeVar("T")


def array_move(items: Sequence[T], from_index: int, to_index: int) -> List[T]:
    """
    Remove the item at `from_index` and reinsert it at `to_index`.

    Returns a new list. A negative `to_index` counts from the end of the
    original list, so -1 always means "last".
    """
    moved = list(items)
    if not moved:
        return moved
    if not -len(moved) <= from_index < len(moved):
        raise ValidationError(f"Index out of range: {from_index}", field="from_index")
    target = len(moved) + to_index if to_index < 0 else to_index
    item = moved.pop(from_index)
    moved.insert(target, item)
    return moved


def reorder(current_order: Sequence[str], moved_id: str, target_index: int) -> List[str]:
    try:
        from_index = list(current_order).index(moved_id)
    except ValueError:
        raise ValidationError(f"App {moved_id!r} is not in the current order", field="moved_id")
    return array_move(current_order, from_index, target_index)


def resolve_target_index(
    current_order: Sequence[str],
    *,
    target_index: Optional[int] = None,
    target_id: Optional[str] = None,
) -> int:
    # A drop onto another app moves the dragged app into that app's slot.
    if target_id is not None:
        try:
            return list(current_order).index(target_id)
        except ValueError:
            raise ValidationError(
                f"App {target_id!r} is not in the current order", field="target_id"
            )
    if target_index is None:
        raise ValidationError("Either target_index or target_id is required", field="target_index")
    return target_index
