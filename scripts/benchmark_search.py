"""
Micro-benchmark for the catalog search.

Tests:
1. QueryNormalizer.normalize() on mixed-script queries
2. ScoringEngine.rank() on a synthetic 10k catalog
3. Retriever.search() end-to-end, scored and fallback paths

Usage:
    python scripts/benchmark_search.py
"""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))
import time
import numpy as np
import pandas as pd
from plyfinder.catalog import CatalogStore
from plyfinder.normalizer import QueryNormalizer
from plyfinder.retriever import Retriever
from plyfinder.scoring import ScoringEngine


def generate_synthetic_catalog(n_rows: int = 10000, seed: int = 7) -> pd.DataFrame:
    """Generate a synthetic plywood catalog for benchmarking."""
    rng = np.random.default_rng(seed)
    brands = ['GreenPly', 'CenturyPly', 'Kitply', 'Archidply', 'Austin']
    sub_brands = ['Gold', 'Club', 'Sainik', 'Ecotec', 'Prime', '']
    thickness = ['6mm', '9mm', '12mm', '16mm', '19mm', '25mm']
    types = ['MR', 'BWP', 'BWR', 'Commercial', 'Marine']
    sizes = ['8x4', '7x4', '8x3', '6x3']

    data = []
    for i in range(n_rows):
        brand = rng.choice(brands)
        sub = rng.choice(sub_brands)
        thick = rng.choice(thickness)
        grade = rng.choice(types)
        data.append({
            'Name': f"{brand} {sub} {grade} {thick}".replace('  ', ' '),
            'Brand': brand,
            'SubBrand': sub,
            'Size': rng.choice(sizes),
            'Thickness': thick,
            'Type': grade,
            'SellingPrice': str(int(rng.integers(30, 150))),
            'SPUnit': 'per sqft',
            'Metakeywords': '["' + brand.lower() + '", "' + brand.lower().replace('ply', 'plai') + '"]',
        })

    return pd.DataFrame(data)


def benchmark_normalize(n_iterations: int = 10000):
    """Benchmark normalize() on hot path."""
    queries = [
        "green ply, 12mm, MR",
        "प्लाइवुड १२ एमएम बीडब्ल्यूपी",
        "centuryply sainik nineteen mm marine",
        "I need some plywood please",
    ]
    normalizer = QueryNormalizer()

    print("\n" + "="*70)
    print("BENCHMARK: QueryNormalizer.normalize()")
    print("="*70)

    for query in queries:
        start = time.perf_counter()
        for _ in range(n_iterations):
            _ = normalizer.normalize(query)
        elapsed_ms = (time.perf_counter() - start) * 1000
        print(f"\nInput: {query}")
        print(f"  Total: {elapsed_ms:.2f}ms ({n_iterations} calls)")
        print(f"  Per call: {elapsed_ms * 1000 / n_iterations:.2f}μs")


def benchmark_rank(store: CatalogStore):
    """Benchmark rank() over every record."""
    print("\n" + "="*70)
    print(f"BENCHMARK: ScoringEngine.rank() - {store.total_records:,} records")
    print("="*70)

    records = [r for p in store.snapshot() for r in p]
    query = QueryNormalizer().normalize("greenply gold 12mm MR")
    engine = ScoringEngine()

    start = time.perf_counter()
    ranked = engine.rank(records, query)
    elapsed_ms = (time.perf_counter() - start) * 1000

    print(f"\n  Ranked: {len(ranked):,} positive of {len(records):,}")
    print(f"  Elapsed: {elapsed_ms:.2f}ms")
    print(f"  Rate: {len(records) / (elapsed_ms / 1000):.0f} records/sec")
    if ranked:
        top = ranked[0]
        print(f"  Top: {top.record.name} (score {top.score}, fields {', '.join(top.matched_fields)})")


def benchmark_search(store: CatalogStore):
    """Benchmark search() end-to-end."""
    print("\n" + "="*70)
    print("BENCHMARK: Retriever.search() - end to end")
    print("="*70)

    retriever = Retriever(store)
    queries = [
        "green ply, 12mm, MR",
        "century sainik 19mm",
        "zzz qqq",            # nothing scores -> sample fallback
        "",
    ]
    for query in queries:
        start = time.perf_counter()
        outcome = retriever.search_detailed(query)
        elapsed_ms = (time.perf_counter() - start) * 1000
        print(f"\n  {query!r}: {len(outcome.records):,} results via '{outcome.strategy}' in {elapsed_ms:.2f}ms")


if __name__ == '__main__':
    print("Generating 10k synthetic catalog...")
    df = generate_synthetic_catalog(10000)
    store = CatalogStore.from_frames({'Plywood': df})

    benchmark_normalize()
    benchmark_rank(store)
    benchmark_search(store)

    print("\n" + "="*70)
    print("DONE")
    print("="*70)
