"""
Unit tests for the compatibility scorer.

Covers:
- Weighted combination of dimension, protection, feature overlap and rating
- Defaults for missing preferences, ratings and protection levels
- Degenerate geometry scoring 0 instead of raising
- Price categories and half-up rounding
"""

import pytest

from casefit.matching.scoring import (
    calculate_compatibility_score,
    calculate_dimension_fit,
    determine_price_category,
    round_score,
    score_pair,
)
from casefit.models.container_item import ProtectionLevel
from casefit.models.match import PriceCategory
from tests.factories import build_container, build_payload


@pytest.mark.unit
class TestCompatibilityScore:

    def test_all_preferred_features_high_protection_four_stars(self):
        container = build_container(
            features=["Waterproof shell", "foam padding", "lockable latches"],
        )
        score = calculate_compatibility_score(
            build_payload(), container, preferred_features=["waterproof", "padding", "lock"]
        )

        # 100*0.4 + 100*0.25 + 100*0.2 + 80*0.15
        assert score == 97

    def test_weighted_sum_is_rounded_once(self):
        # Overall fit 11.666% -> dimension 74.9997, total 77.4999
        payload = build_payload(length=1.1666, width=1.1666, height=1.1666)
        container = build_container(
            internal_length=10, internal_width=10, internal_height=10, rating=None,
        )
        result = score_pair(payload, container)

        assert result.rule_scores["dimension"]["score"] < 30
        assert result.total_score < 77.5
        assert result.compatibility_score == 77

    def test_no_preferences_uses_neutral_feature_score(self):
        # 40 + 25 + 15 + 12
        assert calculate_compatibility_score(build_payload(), build_container()) == 92

    def test_partial_feature_overlap(self):
        container = build_container(features=["Waterproof shell"])
        result = score_pair(build_payload(), container, preferred_features=["waterproof", "wheels"])

        assert result.rule_scores["feature"]["sub_score"] == pytest.approx(50)
        # 40 + 25 + 10 + 12
        assert result.compatibility_score == 87

    def test_unrated_low_protection(self):
        container = build_container(rating=None, protection_level=ProtectionLevel.LOW)
        # 40 + 12.5 + 15 + 7.5
        assert calculate_compatibility_score(build_payload(), container) == 75

    def test_missing_protection_level_scores_zero_for_protection(self):
        container = build_container(protection_level=None)
        result = score_pair(build_payload(), container)

        assert result.rule_scores["protection"]["score"] == 0
        # 40 + 0 + 15 + 12
        assert result.compatibility_score == 67

    def test_degenerate_container_scores_zero(self):
        container = build_container(internal_height=0)
        result = score_pair(build_payload(), container)

        assert result.degenerate
        assert result.compatibility_score == 0

    def test_payload_too_large_scores_dimension_zero(self):
        payload = build_payload(length=25, width=15, height=8)
        result = score_pair(payload, build_container())

        assert result.rule_scores["dimension"]["score"] == 0
        assert result.dimension_fit.overall > 100

    @pytest.mark.parametrize("dims,rating,protection", [
        ((5, 5, 5), 5.0, ProtectionLevel.HIGH),
        ((19.4, 9.4, 4.4), 0.0, None),
        ((1, 1, 1), 2.5, ProtectionLevel.MEDIUM),
        ((18, 9, 4.5), 7.0, ProtectionLevel.LOW),
    ])
    def test_score_is_integer_in_range(self, dims, rating, protection):
        payload = build_payload(length=dims[0], width=dims[1], height=dims[2])
        container = build_container(rating=rating, protection_level=protection)
        score = calculate_compatibility_score(payload, container)

        assert isinstance(score, int)
        assert 0 <= score <= 100

    def test_breakdown_lists_every_rule(self):
        breakdown = score_pair(build_payload(), build_container()).breakdown()

        assert set(breakdown["rules"]) == {"dimension", "protection", "feature", "rating"}
        assert breakdown["max_possible"] == pytest.approx(100)


@pytest.mark.unit
class TestAuxiliaryValues:

    def test_dimension_fit_breakdown(self):
        fit = calculate_dimension_fit(build_payload(), build_container())

        assert set(fit) == {"length", "width", "height", "overall"}
        assert fit["overall"] == pytest.approx(90)

    @pytest.mark.parametrize("price,expected", [
        (10, PriceCategory.BUDGET),
        (49.99, PriceCategory.BUDGET),
        (50, PriceCategory.MID_RANGE),
        (150, PriceCategory.MID_RANGE),
        (150.01, PriceCategory.PREMIUM),
        (None, PriceCategory.MID_RANGE),
    ])
    def test_price_category(self, price, expected):
        assert determine_price_category(build_container(price=price)) == expected

    def test_price_category_ignores_currency(self):
        container = build_container(price=200, currency="JPY")
        assert determine_price_category(container) == PriceCategory.PREMIUM

    def test_round_half_up(self):
        assert round_score(96.5) == 97
        assert round_score(2.5) == 3
        assert round_score(76.49) == 76
