"""
Fallback tiers used when the scoring pass finds nothing.

Tiers, tried in order until one returns records:
    1. direct_phrase   -- comma queries only; every segment must match (AND)
    2. brand_thickness -- known brand alias, narrowed by thickness if given
    3. thickness       -- any "<N>mm" token in the query
    4. sample          -- first N records, so a non-empty catalog always answers
"""

import logging
from typing import Callable, Dict, List, Sequence, Tuple

from plyfinder.models import NormalizedQuery, ProductRecord
from plyfinder.normalizer import (
    BRAND_ALIASES,
    compact,
    is_domain_code,
    is_thickness,
)

logger = logging.getLogger(__name__)

SAMPLE_SIZE = 5
FALLBACK_LIMIT = 10

TIER_DIRECT_PHRASE = 'direct_phrase'
TIER_BRAND_THICKNESS = 'brand_thickness'
TIER_THICKNESS = 'thickness'
TIER_SAMPLE = 'sample'

DEFAULT_TIERS = (TIER_DIRECT_PHRASE, TIER_BRAND_THICKNESS, TIER_THICKNESS, TIER_SAMPLE)

Tier = Callable[[Sequence[ProductRecord], NormalizedQuery], List[ProductRecord]]


# ---------------------------------------------------------------------------
# Segment rules (tier 1)
# ---------------------------------------------------------------------------

def segment_matches(record: ProductRecord, segment: str) -> bool:
    """
    Check one comma segment against a record.

        domain code ("MR")  -> type equals the code, case-sensitive
        thickness ("12mm")  -> thickness equals it, case-insensitive
        brand alias         -> brand contains the canonical brand
        anything else       -> substring of the record text
    """
    part = segment.strip()
    lowered = part.lower()
    if len(lowered) < 2:
        return True

    if is_domain_code(lowered):
        return record.type in (lowered.upper(), lowered.title())

    if is_thickness(lowered):
        return compact(record.thickness) == lowered

    alias = BRAND_ALIASES.get(lowered)
    if alias:
        return alias in compact(record.brand)

    haystack = f'{record.full_text} {record.category.lower()}'
    return lowered in haystack


def _thickness_contains(record: ProductRecord, thickness: Sequence[str]) -> bool:
    value = compact(record.thickness)
    return bool(value) and any(t in value for t in thickness)


# ---------------------------------------------------------------------------
# Chain
# ---------------------------------------------------------------------------

class FallbackChain:
    """Ordered, progressively looser retrieval strategies."""

    def __init__(
        self,
        tiers: Sequence[str] = DEFAULT_TIERS,
        sample_size: int = SAMPLE_SIZE,
        fallback_limit: int = FALLBACK_LIMIT,
    ):
        self.sample_size = sample_size
        self.fallback_limit = fallback_limit
        registry: Dict[str, Tier] = {
            TIER_DIRECT_PHRASE: self.direct_phrase,
            TIER_BRAND_THICKNESS: self.brand_thickness,
            TIER_THICKNESS: self.thickness,
            TIER_SAMPLE: self.sample,
        }
        unknown = [t for t in tiers if t not in registry]
        if unknown:
            raise ValueError(f"Unknown fallback tiers: {unknown}")
        self.tiers: Tuple[Tuple[str, Tier], ...] = tuple((t, registry[t]) for t in tiers)

    def run(
        self,
        records: Sequence[ProductRecord],
        query: NormalizedQuery,
    ) -> Tuple[str, List[ProductRecord]]:
        """Return (tier name, records) of the first tier with output, or ('none', [])."""
        for name, tier in self.tiers:
            found = tier(records, query)
            if found:
                logger.info("Fallback tier '%s' returned %d records", name, len(found))
                return name, found
            logger.debug("Fallback tier '%s' returned nothing", name)
        return 'none', []

    # --- Tier 1 ---
    def direct_phrase(self, records: Sequence[ProductRecord], query: NormalizedQuery) -> List[ProductRecord]:
        if not query.has_segments:
            return []
        return [r for r in records if all(segment_matches(r, s) for s in query.segments)]

    # --- Tier 2 ---
    def brand_thickness(self, records: Sequence[ProductRecord], query: NormalizedQuery) -> List[ProductRecord]:
        if not query.brands:
            return []
        matches = [r for r in records if any(b in compact(r.brand) for b in query.brands)]
        if query.thickness:
            matches = [r for r in matches if _thickness_contains(r, query.thickness)]
        return matches[:self.fallback_limit]

    # --- Tier 3 ---
    def thickness(self, records: Sequence[ProductRecord], query: NormalizedQuery) -> List[ProductRecord]:
        if not query.thickness:
            return []
        matches = [r for r in records if _thickness_contains(r, query.thickness)]
        return matches[:self.fallback_limit]

    # --- Tier 4 ---
    def sample(self, records: Sequence[ProductRecord], query: NormalizedQuery) -> List[ProductRecord]:
        return list(records[:self.sample_size])
