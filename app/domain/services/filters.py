from typing import Dict, Iterable, List, TypeVar

T = TypeVar("T")

def ensure_vendor_diversity(items: Iterable[T], max_per_vendor: int) -> List[T]:
    """
    Keep at most `max_per_vendor` items per vendor from an already ranked list.
    Single pass: relative order is preserved and items past a vendor's cap are
    dropped, never deferred or backfilled.
    """
    counts: Dict[str, int] = {}
    kept: List[T] = []
    for item in items:
        vendor_id = item.store_id
        counts[vendor_id] = counts.get(vendor_id, 0) + 1
        if counts[vendor_id] <= max_per_vendor:
            kept.append(item)
    return kept
