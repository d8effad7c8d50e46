"""
Weighted relevance scoring of catalog records against a normalized query.

Scoring Approach:
    - Every query token is compared with every record field; each kind of
      hit adds the points given by a ``FieldWeights`` table
    - Exact case-sensitive match of the record's domain code ("MR" == "MR")
      outranks everything: it is counted once per query and, in ``rank``,
      records carrying it sort ahead of records that do not
    - brand / thickness / type: exact (case-insensitive) > substring either way
    - sub_brand / size: medium weight; name and full-text substring: low
    - Meta keywords (synonyms such as "grinply", "centuriply") give a fixed
      bonus on exact match, a smaller one on substring, and the smallest one
      when the Levenshtein distance is within ``fuzzy_max_distance``

Weight presets:
    - PRODUCT_WEIGHTS: plywood-tuned, the default
    - GENERIC_WEIGHTS: catalog-agnostic, only full text and meta keywords count

The numbers are empirically tuned starting points; only their ordering
(domain code > exact brand/thickness > partial matches > generic substring)
is relied upon.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence

from rapidfuzz.distance import Levenshtein

from plyfinder.models import NormalizedQuery, ProductRecord, ScoredCandidate
from plyfinder.normalizer import BRAND_ALIASES, compact

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Weight table
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FieldWeights:
    domain_code: int = 25        # case-sensitive type == token
    brand_exact: int = 20
    brand_partial: int = 15
    brand_alias: int = 18        # "green" -> GreenPly
    thickness_exact: int = 20
    thickness_partial: int = 15
    type_exact: int = 18
    type_partial: int = 12
    sub_brand_exact: int = 15
    sub_brand_partial: int = 10
    size_exact: int = 12
    size_partial: int = 8
    name_substring: int = 7
    full_text: int = 5
    meta_exact: int = 8
    meta_partial: int = 4
    meta_fuzzy: int = 3
    fuzzy_max_distance: int = 2


PRODUCT_WEIGHTS = FieldWeights()

GENERIC_WEIGHTS = FieldWeights(
    domain_code=0,
    brand_exact=0, brand_partial=0, brand_alias=0,
    thickness_exact=0, thickness_partial=0,
    type_exact=0, type_partial=0,
    sub_brand_exact=0, sub_brand_partial=0,
    size_exact=0, size_partial=0,
    name_substring=0,
    full_text=5,
    meta_exact=8, meta_partial=4, meta_fuzzy=0,
)

WEIGHT_PRESETS: Dict[str, FieldWeights] = {
    'product': PRODUCT_WEIGHTS,
    'generic': GENERIC_WEIGHTS,
}

# (record field, exact weight attribute, partial weight attribute)
_FIELD_RULES = (
    ('brand', 'brand_exact', 'brand_partial'),
    ('thickness', 'thickness_exact', 'thickness_partial'),
    ('type', 'type_exact', 'type_partial'),
    ('sub_brand', 'sub_brand_exact', 'sub_brand_partial'),
    ('size', 'size_exact', 'size_partial'),
)


def weights_for(name: str) -> FieldWeights:
    """Look up a weight preset by name; unknown names get PRODUCT_WEIGHTS."""
    key = str(name or '').strip().lower()
    if key not in WEIGHT_PRESETS:
        logger.warning("Unknown weight preset %r, using 'product'", name)
    return WEIGHT_PRESETS.get(key, PRODUCT_WEIGHTS)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class ScoringEngine:
    """Pure scorer: the result depends only on (query, record) and the weights."""

    def __init__(self, weights: FieldWeights = PRODUCT_WEIGHTS):
        self.weights = weights

    def score(self, record: ProductRecord, query: NormalizedQuery) -> int:
        return self.explain(record, query).score

    def explain(self, record: ProductRecord, query: NormalizedQuery) -> ScoredCandidate:
        """Score a record and report which fields contributed."""
        w = self.weights
        score = 0
        matched: List[str] = []

        def hit(points: int, field_name: str) -> None:
            nonlocal score
            if points:
                score += points
                if field_name not in matched:
                    matched.append(field_name)

        # Domain code: case-sensitive, counted once
        if _carries_domain_code(record, query):
            hit(w.domain_code, 'type_code')

        fields = {name: getattr(record, name).strip().lower() for name, _, _ in _FIELD_RULES}
        brand_compact = compact(record.brand)
        name = record.name.lower()
        full_text = record.full_text

        for token in query.tokens:
            for field_name, exact_attr, partial_attr in _FIELD_RULES:
                value = fields[field_name]
                if not value:
                    continue
                if value == token:
                    hit(getattr(w, exact_attr), field_name)
                elif token in value or value in token:
                    hit(getattr(w, partial_attr), field_name)

            alias = BRAND_ALIASES.get(token)
            if alias and alias != token and brand_compact == alias:
                hit(w.brand_alias, 'brand')

            if name and token in name:
                hit(w.name_substring, 'name')
            if full_text and token in full_text:
                hit(w.full_text, 'full_text')

        if record.meta_keywords:
            points = self._meta_keyword_points(record.meta_keywords, query.tokens)
            hit(points, 'meta_keywords')

        return ScoredCandidate(record=record, score=score, matched_fields=tuple(matched))

    def _meta_keyword_points(self, keywords: Sequence[str], tokens: Sequence[str]) -> int:
        w = self.weights
        points = 0
        lowered = [k.lower() for k in keywords if k]
        for token in tokens:
            for keyword in lowered:
                if keyword == token:
                    points += w.meta_exact
                elif keyword in token or token in keyword:
                    points += w.meta_partial
                elif w.meta_fuzzy and Levenshtein.distance(
                    keyword, token, score_cutoff=w.fuzzy_max_distance
                ) <= w.fuzzy_max_distance:
                    points += w.meta_fuzzy
        return points

    def rank(
        self,
        records: Sequence[ProductRecord],
        query: NormalizedQuery,
    ) -> List[ScoredCandidate]:
        """
        Score every record, keep score > 0, order best first.

        Records whose type carries the query's domain code come first, then
        descending score. The sort is stable, so ties keep catalog order.
        """
        if query.is_empty:
            return []
        candidates = [self.explain(r, query) for r in records]
        candidates = [c for c in candidates if c.score > 0]
        candidates.sort(key=lambda c: (0 if _carries_domain_code(c.record, query) else 1, -c.score))
        logger.debug("Scored %d records, %d positive", len(records), len(candidates))
        return candidates


def _carries_domain_code(record: ProductRecord, query: NormalizedQuery) -> bool:
    # Holds for every weight table, including domain_code == 0
    return bool(record.type) and record.type in query.exact_tokens
