"""
Unit tests for the recommendation engine.

Covers:
- Budget, premium and alternative-size rules
- Deduplication, brand filters, ordering and the alternatives cap
- Confidence score components
- Primary container validation
"""

import uuid

import pytest

from casefit.errors import InvalidInputError, NotFoundError
from casefit.matching.engine import ScoredContainer
from casefit.matching.recommendations import (
    RecommendationEngine,
    RecommendationOptions,
    RecommendationType,
    axis_closeness_score,
    calculate_confidence_score,
    is_explicitly_designed,
    same_brand,
)
from casefit.models.container_item import ProtectionLevel
from tests.factories import build_container, build_payload


@pytest.fixture
def engine(matcher):
    return RecommendationEngine(matcher)


@pytest.fixture
def catalog(make_payload, make_container):
    """A payload, its primary container and one candidate per rule (plus decoys)."""
    medium = ProtectionLevel.MEDIUM
    high = ProtectionLevel.HIGH
    return {
        "payload": make_payload(),
        "primary": make_container(name="Primary", brand="Gator", price=100, protection_level=medium),
        "budget": make_container(name="Budget", brand="Gator Cases", price=80, protection_level=medium),
        "too_cheap": make_container(name="Too Cheap", brand="Gator", price=50, protection_level=medium),
        "not_cheap_enough": make_container(name="Not Cheap Enough", brand="Gator", price=95, protection_level=medium),
        "premium": make_container(name="Premium", brand="SKB", price=130, protection_level=high),
        "too_dear": make_container(name="Too Dear", brand="SKB", price=200, protection_level=high),
        "larger": make_container(
            name="Larger", brand="Pelican", price=140, protection_level=medium,
            internal_length=25, internal_width=12, internal_height=6,
        ),
    }


def _by_name(recommendations):
    return {r.container.name: r for r in recommendations}


@pytest.mark.unit
class TestGenerateAlternatives:

    def test_one_alternative_per_rule(self, engine, catalog):
        recs = engine.generate_alternatives(catalog["payload"].id, catalog["primary"].id)
        found = _by_name(recs)

        assert set(found) == {"Budget", "Premium", "Larger"}
        assert found["Budget"].recommendation_type == RecommendationType.BUDGET
        assert found["Premium"].recommendation_type == RecommendationType.PREMIUM
        assert found["Larger"].recommendation_type == RecommendationType.ALTERNATIVE_SIZE

    def test_sorted_by_compatibility(self, engine, catalog):
        recs = engine.generate_alternatives(catalog["payload"], catalog["primary"])

        scores = [r.compatibility_score for r in recs]
        assert scores == sorted(scores, reverse=True)
        assert recs[0].container.name == "Premium"

    def test_budget_is_cheaper_and_premium_dearer(self, engine, catalog):
        primary = catalog["primary"]
        recs = engine.generate_alternatives(catalog["payload"], primary)

        for rec in recs:
            if rec.recommendation_type == RecommendationType.BUDGET:
                assert rec.container.price < primary.price
            if rec.recommendation_type == RecommendationType.PREMIUM:
                assert rec.container.price > primary.price

    def test_price_difference_limit_widens_premium_range(self, engine, catalog):
        options = RecommendationOptions(max_price_difference_percent=100, include_alternative_sizes=False)
        recs = engine.generate_alternatives(catalog["payload"], catalog["primary"], options)

        assert {"Premium", "Too Dear"} <= set(_by_name(recs))

    def test_rule_toggles(self, engine, catalog):
        options = RecommendationOptions(include_premium=False, include_alternative_sizes=False)
        recs = engine.generate_alternatives(catalog["payload"], catalog["primary"], options)

        assert [r.container.name for r in recs] == ["Budget"]

    def test_cap(self, engine, catalog):
        recs = engine.generate_alternatives(
            catalog["payload"], catalog["primary"], RecommendationOptions(max_alternatives=1)
        )

        assert len(recs) == 1

    def test_preferred_brands_match_word_order_insensitively(self, engine, catalog):
        options = RecommendationOptions(preferred_brands=["cases gator"])
        recs = engine.generate_alternatives(catalog["payload"], catalog["primary"], options)

        assert [r.container.name for r in recs] == ["Budget"]

    def test_excluded_brands(self, engine, catalog):
        options = RecommendationOptions(excluded_brands=["skb"])
        recs = engine.generate_alternatives(catalog["payload"], catalog["primary"], options)

        assert "Premium" not in _by_name(recs)

    def test_every_recommendation_has_a_confidence_score(self, engine, catalog):
        recs = engine.generate_alternatives(catalog["payload"], catalog["primary"])

        for rec in recs:
            assert 0 <= rec.confidence_score <= 100


@pytest.mark.unit
class TestDeduplication:

    def test_container_listed_once_under_first_rule(self, engine, make_payload, make_container):
        payload = make_payload()
        primary = make_container(name="Primary", price=100, protection_level=ProtectionLevel.MEDIUM)
        make_container(
            name="Cheap And Large", price=80, protection_level=ProtectionLevel.MEDIUM,
            internal_length=25, internal_width=12, internal_height=6,
        )

        recs = engine.generate_alternatives(payload, primary)

        assert len(recs) == 1
        assert recs[0].recommendation_type == RecommendationType.BUDGET


@pytest.mark.unit
class TestPrimaryValidation:

    def test_primary_without_price(self, engine, make_payload, make_container):
        payload = make_payload()
        primary = make_container(price=None)

        with pytest.raises(InvalidInputError):
            engine.generate_alternatives(payload, primary)

    def test_unknown_primary(self, engine, make_payload):
        with pytest.raises(NotFoundError):
            engine.generate_alternatives(make_payload(), uuid.uuid4())

    def test_unknown_payload(self, engine, make_container):
        with pytest.raises(NotFoundError):
            engine.generate_alternatives(uuid.uuid4(), make_container())

    def test_malformed_options(self):
        with pytest.raises(InvalidInputError):
            RecommendationOptions(max_alternatives=0)
        with pytest.raises(InvalidInputError):
            RecommendationOptions(max_price_difference_percent=-5)


@pytest.mark.unit
class TestConfidenceScore:

    def test_purpose_built_snug_case(self):
        payload = build_payload()
        container = build_container(
            name="Synthesizer Case",
            description="Padded case with accessory pocket",
            has_handle=True,
        )
        candidate = ScoredContainer(container=container, compatibility_score=92, score_result=None)

        # 46 + 20 + 15 + 15
        assert calculate_confidence_score(payload, candidate) == 96

    def test_no_bonus_without_the_word_case(self):
        payload = build_payload()
        container = build_container(name="Synthesizer Bag", description="Padded bag")

        assert not is_explicitly_designed(payload, container)

    def test_no_bonus_without_a_payload_keyword(self):
        payload = build_payload()
        container = build_container(name="Utility Case", description="General purpose case")

        assert not is_explicitly_designed(payload, container)

    def test_poor_candidate_stays_in_range(self):
        payload = build_payload()
        container = build_container(
            name="Box", description=None, features=[], has_handle=False,
            internal_length=40, internal_width=40, internal_height=40,
        )
        candidate = ScoredContainer(container=container, compatibility_score=0, score_result=None)

        score = calculate_confidence_score(payload, candidate)
        assert isinstance(score, int)
        assert 0 <= score <= 10

    @pytest.mark.parametrize("fit,expected", [
        (80, 100), (75, 100), (90, 100),
        (92, 80), (72, 80),
        (97, 60), (65, 60), (100, 60),
        (50, 30), (101, 30),
    ])
    def test_axis_closeness_table(self, fit, expected):
        assert axis_closeness_score(fit) == expected


@pytest.mark.unit
def test_same_brand():
    assert same_brand("Gator Cases", "cases gator")
    assert same_brand(" SKB ", "skb")
    assert not same_brand("SKB", "Pelican")
    assert not same_brand(None, "SKB")
