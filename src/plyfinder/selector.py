"""Partition (sheet) narrowing ahead of scoring."""

import logging
from typing import List, Sequence

from plyfinder.models import CatalogPartition, NormalizedQuery

logger = logging.getLogger(__name__)


class PartitionSelector:
    """
    Keep the partitions whose name overlaps a query token.

    A partition is kept when its lowercased name contains a token or a token
    contains the name ("plywood" query -> "Plywood" and "Ply" sheets). When
    nothing overlaps, every partition is returned: the selector prunes, it
    never gates the catalog.
    """

    def select(
        self,
        partitions: Sequence[CatalogPartition],
        query: NormalizedQuery,
    ) -> List[CatalogPartition]:
        partitions = list(partitions)
        tokens = [t.lower() for t in query.tokens]
        if not partitions or not tokens:
            return partitions

        selected = []
        for partition in partitions:
            name = partition.name.strip().lower()
            if not name:
                continue
            if any(token in name or name in token for token in tokens):
                selected.append(partition)

        if not selected:
            return partitions

        logger.debug("Selected partitions: %s", [p.name for p in selected])
        return selected
