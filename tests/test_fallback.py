"""
Tests for the fallback chain:
tier order, comma-segment conjunction, brand/thickness relaxations, sample.
"""
from dataclasses import replace

import pytest

from plyfinder.fallback import (
    FallbackChain,
    TIER_BRAND_THICKNESS,
    TIER_DIRECT_PHRASE,
    TIER_SAMPLE,
    TIER_THICKNESS,
    segment_matches,
)
from plyfinder.models import ProductRecord
from plyfinder.normalizer import QueryNormalizer


@pytest.fixture
def chain():
    return FallbackChain()


def q(text):
    return QueryNormalizer().normalize(text)


class TestSegmentRules:

    def test_domain_code_is_case_sensitive_on_catalog_side(self, gold):
        assert segment_matches(gold, 'mr')
        assert not segment_matches(replace(gold, type='mr'), 'MR')

    def test_thickness_must_be_exact(self, gold):
        assert segment_matches(gold, '12mm')
        assert segment_matches(gold, '12MM')
        assert not segment_matches(gold, '2mm')

    def test_brand_alias_checks_brand(self, gold, veneer):
        assert segment_matches(gold, 'green ply')
        assert not segment_matches(veneer, 'green ply')

    def test_other_text_anywhere(self, gold):
        assert segment_matches(gold, 'gold')
        assert segment_matches(gold, '8x4')
        assert not segment_matches(gold, 'teak')

    def test_very_short_segment_skipped(self, veneer):
        assert segment_matches(veneer, 'x')


class TestDirectPhrase:

    @pytest.mark.parametrize('text', ['green ply, 12mm, MR', 'GREEN PLY, 12MM, mr', 'Green Ply, 12 mm, Mr'])
    def test_all_segments_match(self, chain, gold, veneer, text):
        assert chain.direct_phrase([gold, veneer], q(text)) == [gold]

    def test_one_failing_segment_rejects_record(self, chain, gold, veneer):
        gold_19 = replace(gold, thickness='19mm')
        assert chain.direct_phrase([gold_19, veneer], q('green ply, 12mm, MR')) == []

    def test_only_for_comma_queries(self, chain, gold):
        assert chain.direct_phrase([gold], q('green ply 12mm MR')) == []

    def test_chain_moves_past_tier_one(self, chain, gold, veneer):
        gold_19 = replace(gold, thickness='19mm')
        tier, found = chain.run([gold_19, veneer], q('green ply, 12mm, MR'))
        assert tier != TIER_DIRECT_PHRASE
        # brand+thickness and thickness tiers find no 12mm record either
        assert tier == TIER_SAMPLE
        assert found == [gold_19, veneer]


class TestRelaxedTiers:

    def test_brand_thickness_tier(self, chain, gold, veneer):
        gold_19 = replace(gold, thickness='19mm')
        tier, found = chain.run([veneer, gold_19], q('green ply, 19mm, BWP'))
        assert tier == TIER_BRAND_THICKNESS
        assert found == [gold_19]

    def test_brand_only_when_no_thickness(self, chain, gold, veneer):
        assert chain.brand_thickness([veneer, gold], q('greenply sheets')) == [gold]

    def test_thickness_tier(self, chain, gold, veneer):
        tier, found = chain.run([veneer, gold], q('12mm, teak'))
        assert tier == TIER_THICKNESS
        assert found == [gold]

    def test_decimal_thickness_is_not_a_substring_hit(self, chain, veneer):
        fifteen = replace(veneer, name='Austin Fifteen', thickness='15mm')
        thin = replace(veneer, name='Austin Thin', thickness='1.5mm')
        assert chain.thickness([fifteen, thin], q('1.5mm sheet')) == [thin]
        assert chain.thickness([fifteen], q('1.5mm sheet')) == []

    def test_fallback_limit(self, gold):
        records = [replace(gold, name=f'GreenPly {i}') for i in range(15)]
        chain = FallbackChain(fallback_limit=10)
        assert len(chain.brand_thickness(records, q('greenply 12mm'))) == 10
        assert len(chain.thickness(records, q('12mm'))) == 10


class TestSample:

    def test_sample_first_n(self, veneer):
        records = [replace(veneer, name=f'Veneer {i}') for i in range(7)]
        tier, found = FallbackChain(sample_size=5).run(records, q('zzzz'))
        assert tier == TIER_SAMPLE
        assert found == records[:5]

    def test_empty_query_still_samples(self, chain, gold):
        assert chain.run([gold], q('')) == (TIER_SAMPLE, [gold])

    def test_empty_records(self, chain):
        assert chain.run([], q('green ply, 12mm, MR')) == ('none', [])


class TestConfiguration:

    def test_chain_without_sample_can_be_empty(self, veneer):
        chain = FallbackChain(tiers=(TIER_DIRECT_PHRASE, TIER_BRAND_THICKNESS, TIER_THICKNESS))
        assert chain.run([veneer], q('zzzz')) == ('none', [])

    def test_unknown_tier_rejected(self):
        with pytest.raises(ValueError):
            FallbackChain(tiers=('direct_phrase', 'telepathy'))

    def test_stops_at_first_success(self, gold):
        chain = FallbackChain()
        tier, found = chain.run([gold], q('green ply, 12mm, MR'))
        assert tier == TIER_DIRECT_PHRASE
        assert found == [gold]
