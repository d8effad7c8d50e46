from plyfinder.catalog import CatalogStore
from plyfinder.fallback import FallbackChain
from plyfinder.models import CatalogPartition, NormalizedQuery, ProductRecord, ScoredCandidate
from plyfinder.normalizer import QueryNormalizer
from plyfinder.retriever import Retriever, SearchOutcome
from plyfinder.scoring import GENERIC_WEIGHTS, PRODUCT_WEIGHTS, FieldWeights, ScoringEngine
from plyfinder.selector import PartitionSelector

__all__ = [
    'CatalogPartition', 'CatalogStore', 'FallbackChain', 'FieldWeights',
    'GENERIC_WEIGHTS', 'NormalizedQuery', 'PRODUCT_WEIGHTS', 'PartitionSelector',
    'ProductRecord', 'QueryNormalizer', 'Retriever', 'ScoredCandidate',
    'ScoringEngine', 'SearchOutcome',
]
