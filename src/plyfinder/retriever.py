"""
Search orchestration: the one operation the UI and voice pipeline call.

Search strategy:
    1. NORMALIZE: transliterated terms, digits, thickness, tokens, segments
    2. PARTITION FILTER: keep sheets whose name overlaps the query
       (e.g. "plywood" -> the Plywood sheet only); all sheets if none do
    3. SCORE: weighted field scoring, keep score > 0, best first
    4. FALLBACK: only when scoring found nothing -- direct phrase match,
       brand + thickness, thickness, then a small sample of the catalog

``search`` never raises: an unavailable catalog or an internal error
degrades to an empty list.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from plyfinder.catalog import CatalogStore
from plyfinder.config import Settings
from plyfinder.fallback import FallbackChain
from plyfinder.models import ProductRecord, ScoredCandidate
from plyfinder.normalizer import QueryNormalizer
from plyfinder.scoring import ScoringEngine, weights_for
from plyfinder.selector import PartitionSelector

logger = logging.getLogger(__name__)

STRATEGY_SCORED = 'scored'
STRATEGY_EMPTY_CATALOG = 'empty_catalog'
STRATEGY_ERROR = 'error'


@dataclass(frozen=True)
class SearchOutcome:
    records: Tuple[ProductRecord, ...] = ()
    strategy: str = STRATEGY_EMPTY_CATALOG   # 'scored', a fallback tier name, ...
    candidates: Tuple[ScoredCandidate, ...] = ()


class Retriever:
    def __init__(
        self,
        store: CatalogStore,
        normalizer: Optional[QueryNormalizer] = None,
        selector: Optional[PartitionSelector] = None,
        engine: Optional[ScoringEngine] = None,
        fallback: Optional[FallbackChain] = None,
        max_results: Optional[int] = None,
    ):
        self.store = store
        self.normalizer = normalizer or QueryNormalizer()
        self.selector = selector or PartitionSelector()
        self.engine = engine or ScoringEngine()
        self.fallback = fallback or FallbackChain()
        self.max_results = max_results if max_results and max_results > 0 else None

    @classmethod
    def from_settings(cls, settings: Settings) -> 'Retriever':
        """Wire the full pipeline; the catalog loads lazily on first search."""
        return cls(
            store=CatalogStore(settings.catalog_xlsx, settings.catalog_csv),
            engine=ScoringEngine(weights_for(settings.weights)),
            fallback=FallbackChain(
                sample_size=settings.sample_size,
                fallback_limit=settings.fallback_limit,
            ),
            max_results=settings.max_results,
        )

    def reload(self) -> int:
        """Re-read the configured sources; returns the new record count."""
        self.store.load()
        return self.store.total_records

    def search(self, query: Any) -> List[ProductRecord]:
        return list(self.search_detailed(query).records)

    def search_detailed(self, query: Any) -> SearchOutcome:
        try:
            return self._search_inner(query)
        except Exception:
            logger.exception("Search failed for query %r", query)
            return SearchOutcome(strategy=STRATEGY_ERROR)

    def _search_inner(self, raw_query: Any) -> SearchOutcome:
        """Inner implementation of search_detailed (wrapped by try/except)."""
        self.store.ensure_loaded()
        partitions = self.store.snapshot()
        if not any(len(p) for p in partitions):
            return SearchOutcome(strategy=STRATEGY_EMPTY_CATALOG)

        query = self.normalizer.normalize(raw_query if isinstance(raw_query, str) else '')
        selected = self.selector.select(partitions, query)
        records = [r for p in selected for r in p]

        candidates = self.engine.rank(records, query)
        if candidates:
            found = [c.record for c in candidates]
            strategy = STRATEGY_SCORED
        else:
            strategy, found = self.fallback.run(records, query)

        if self.max_results:
            found = found[:self.max_results]
            candidates = candidates[:self.max_results]

        logger.debug("Query %r answered by '%s' with %d records", raw_query, strategy, len(found))
        return SearchOutcome(records=tuple(found), strategy=strategy, candidates=tuple(candidates))
