"""
Content similarity and vendor reliability scoring.

All functions are pure. Similarity components are normalized to [0, 1]
before weighting; the vendor multiplier is a step function of the
vendor's average rating.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Tuple

from app.domain.services.constants import (
    CATEGORY_WEIGHT,
    TAG_WEIGHT,
    VENDOR_DEFAULT_MULTIPLIER,
    VENDOR_RELIABILITY_STEPS,
)


@dataclass(frozen=True)
class TagSet:
    """
    Ordered set of tag strings (category, color, sizes) used as the unit of
    content similarity. Falsy values are dropped, duplicates keep their first position.
    """
    tags: Tuple[str, ...] = ()

    @classmethod
    def of(cls, values: Iterable[Optional[str]]) -> "TagSet":
        return cls(tuple(dict.fromkeys(v for v in values if v)))

    @classmethod
    def from_product(cls, product) -> "TagSet":
        return cls.of([product.category, product.color, *(product.sizes or [])])

    def __iter__(self) -> Iterator[str]:
        return iter(self.tags)

    def __len__(self) -> int:
        return len(self.tags)

    def __contains__(self, tag: object) -> bool:
        return tag in self.tags


def tag_similarity(a: TagSet, b: TagSet) -> float:
    """Jaccard index; 0 when either side is empty (no evidence, not identity)."""
    if not a or not b:
        return 0.0
    sa, sb = set(a), set(b)
    return len(sa & sb) / len(sa | sb)


def category_similarity(a: Optional[str], b: Optional[str]) -> float:
    if not a or not b:
        return 0.0
    return 1.0 if a.lower() == b.lower() else 0.0


def content_score(
    src_tags: TagSet,
    src_category: Optional[str],
    tags: TagSet,
    category: Optional[str],
) -> float:
    return TAG_WEIGHT * tag_similarity(src_tags, tags) + CATEGORY_WEIGHT * category_similarity(src_category, category)


def vendor_reliability(avg_rating: Optional[float]) -> float:
    """Multiplier in [0.5, 1.5] rewarding well-rated vendors."""
    if not avg_rating or avg_rating < 0:
        return VENDOR_DEFAULT_MULTIPLIER
    for threshold, multiplier in VENDOR_RELIABILITY_STEPS:
        if avg_rating >= threshold:
            return multiplier
    return VENDOR_DEFAULT_MULTIPLIER
