"""End-to-end search: normalize -> partitions -> score -> fallback."""
from dataclasses import replace

import pandas as pd
import pytest

from plyfinder.catalog import CatalogStore
from plyfinder.config import Settings
from plyfinder.models import CatalogPartition, ProductRecord
from plyfinder.normalizer import QueryNormalizer
from plyfinder.retriever import (
    STRATEGY_EMPTY_CATALOG,
    STRATEGY_ERROR,
    STRATEGY_SCORED,
    Retriever,
)
from plyfinder.scoring import ScoringEngine


@pytest.fixture
def retriever(gold, veneer):
    return Retriever(CatalogStore.from_records([gold, veneer], partition='Plywood'))


class TestEmptyCatalog:

    @pytest.mark.parametrize('query', ['', '   ', 'green ply', None, 42])
    def test_returns_nothing(self, query):
        retriever = Retriever(CatalogStore.from_records([]))
        assert retriever.search(query) == []
        assert retriever.search_detailed(query).strategy == STRATEGY_EMPTY_CATALOG

    def test_unconfigured_store(self):
        assert Retriever(CatalogStore()).search('green ply') == []


class TestScoredSearch:

    def test_comma_query_finds_product(self, retriever, gold):
        outcome = retriever.search_detailed('green ply, 12mm, MR')
        assert outcome.strategy == STRATEGY_SCORED
        assert list(outcome.records) == [gold]
        assert outcome.candidates[0].record == gold
        assert outcome.candidates[0].score > 0

    def test_comma_query_keeps_partial_matches_below_exact(self, gold):
        club = replace(gold, name='GreenPly Club', sub_brand='Club', thickness='19mm', type='BWP')
        retriever = Retriever(CatalogStore.from_records([club, gold]))
        outcome = retriever.search_detailed('green ply, 12mm, MR')
        assert outcome.strategy == STRATEGY_SCORED
        assert list(outcome.records) == [gold, club]

    def test_deterministic(self, retriever):
        first = retriever.search('greenply gold 12mm')
        assert retriever.search('greenply gold 12mm') == first

    def test_domain_code_records_lead(self, gold):
        strong = replace(gold, name='GreenPly Club', sub_brand='Club', type='BWP', meta_keywords=())
        weak = ProductRecord(name='Austin Board', brand='Austin', type='MR')
        retriever = Retriever(CatalogStore.from_records([strong, weak]))

        results = retriever.search('greenply 12mm MR')
        assert results[0] == weak
        seen_without_code = False
        for record in results:
            if record.type != 'MR':
                seen_without_code = True
            else:
                assert not seen_without_code

    def test_max_results(self, gold):
        records = [replace(gold, name=f'GreenPly {i}') for i in range(6)]
        retriever = Retriever(CatalogStore.from_records(records), max_results=2)
        outcome = retriever.search_detailed('greenply')
        assert len(outcome.records) == 2
        assert len(outcome.candidates) == 2


class TestFallbackSearch:

    @pytest.mark.parametrize('query', ['zzzz', '', '!!!', 'प्लाइवुड', None])
    def test_never_empty_for_non_empty_catalog(self, retriever, query):
        assert retriever.search(query)

    def test_unknown_words_get_sample(self, retriever, gold, veneer):
        outcome = retriever.search_detailed('zzzz')
        assert outcome.strategy == 'sample'
        assert list(outcome.records) == [gold, veneer]
        assert outcome.candidates == ()

    def test_thickness_tier_through_search(self, gold, veneer):
        # "9 MM" in the sheet escapes field scoring but not the thickness tier
        nine = replace(veneer, name='Austin Board', thickness='9 MM')
        retriever = Retriever(CatalogStore.from_records([gold, nine]))
        outcome = retriever.search_detailed('xyzq 9mm')
        assert outcome.strategy == 'thickness'
        assert list(outcome.records) == [nine]


class TestPartitions:

    def test_no_overlap_searches_everything(self, gold, veneer):
        laminate = ProductRecord(name='GreenPly Laminate', brand='GreenPly', category='Laminates')
        store = CatalogStore()
        store._swap((
            CatalogPartition('Plywood', (gold, veneer)),
            CatalogPartition('Laminates', (laminate,)),
        ))
        query = QueryNormalizer().normalize('greenply')
        expected = [c.record for c in ScoringEngine().rank([gold, veneer, laminate], query)]

        assert Retriever(store).search('greenply') == expected
        assert laminate in expected

    def test_overlap_narrows(self, gold):
        laminate = ProductRecord(name='GreenPly Laminate', brand='GreenPly', category='Laminates')
        store = CatalogStore()
        store._swap((
            CatalogPartition('Plywood', (gold,)),
            CatalogPartition('Laminates', (laminate,)),
        ))
        assert Retriever(store).search('greenply laminates') == [laminate]


class TestRobustness:

    def test_internal_error_becomes_empty(self, retriever, monkeypatch):
        def broken(records, query):
            raise RuntimeError('boom')

        monkeypatch.setattr(retriever.engine, 'rank', broken)
        assert retriever.search('green ply') == []
        assert retriever.search_detailed('green ply').strategy == STRATEGY_ERROR


class TestLoading:

    def test_loads_lazily_from_settings(self, tmp_path, gold):
        csv_path = tmp_path / 'plywood.csv'
        pd.DataFrame([{
            'Name': gold.name, 'Brand': gold.brand, 'SubBrand': gold.sub_brand,
            'Size': gold.size, 'Thickness': gold.thickness, 'Type': gold.type,
        }]).to_csv(csv_path, index=False)
        settings = Settings(catalog_xlsx=str(tmp_path / 'missing.xlsx'), catalog_csv=str(csv_path))

        retriever = Retriever.from_settings(settings)
        assert retriever.store.is_empty

        results = retriever.search('green ply, 12mm, MR')
        assert [r.name for r in results] == ['GreenPly Gold']
        assert results[0].category == 'plywood'

    def test_reload_picks_up_changes(self, tmp_path):
        csv_path = tmp_path / 'plywood.csv'
        pd.DataFrame([{'Name': 'GreenPly Gold', 'Brand': 'GreenPly'}]).to_csv(csv_path, index=False)
        retriever = Retriever(CatalogStore(str(csv_path)))
        assert len(retriever.search('greenply')) == 1

        pd.DataFrame([
            {'Name': 'GreenPly Gold', 'Brand': 'GreenPly'},
            {'Name': 'GreenPly Club', 'Brand': 'GreenPly'},
        ]).to_csv(csv_path, index=False)
        assert retriever.reload() == 2
        assert len(retriever.search('greenply')) == 2
