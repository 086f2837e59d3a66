"""
Unit tests for the feature heuristic scorer.

Covers:
- Keyword presence across description, features and name
- Weight conversion and weight-ratio scoring
- Recommended protection level and tier alignment
- Averaging over evaluated factors
- Category-weighted appropriateness used by the confidence estimate
"""

import pytest

from casefit.errors import InvalidInputError
from casefit.matching.feature_heuristics import (
    PADDING_KEYWORDS,
    FeatureHeuristicOptions,
    calculate_feature_score,
    category_feature_score,
    convert_weight_to_lb,
    has_feature,
    match_features,
    protection_alignment_score,
    recommended_protection_level,
    weight_ratio_score,
)
from casefit.models.container_item import ProtectionLevel
from tests.factories import build_container, build_payload


@pytest.mark.unit
class TestKeywordPresence:

    def test_found_in_description(self):
        container = build_container(description="Thick FOAM lining", features=[])
        assert has_feature(container, PADDING_KEYWORDS)

    def test_found_in_feature_list(self):
        container = build_container(features=["Removable foam insert"])
        assert has_feature(container, ["foam"])

    def test_found_in_name(self):
        container = build_container(name="Padded Gig Bag", features=[])
        assert has_feature(container, ["padded"])

    def test_absent(self):
        container = build_container(name="Shell", description="Rigid shell", features=["latches"])
        assert not has_feature(container, ["pocket"])

    def test_malformed_feature_list_is_rejected(self):
        container = build_container(description=None, features="padded")
        with pytest.raises(InvalidInputError):
            has_feature(container, ["pocket"])

    def test_non_text_feature_is_rejected(self):
        container = build_container(description=None, features=["padded", 42])
        with pytest.raises(InvalidInputError):
            has_feature(container, ["pocket"])


@pytest.mark.unit
class TestWeight:

    def test_unit_conversion(self):
        assert convert_weight_to_lb(1, "kg") == pytest.approx(2.20462)
        assert convert_weight_to_lb(16, "oz") == pytest.approx(1.0)
        assert convert_weight_to_lb(1000, "g") == pytest.approx(2.20462)
        assert convert_weight_to_lb(3, "LBS") == 3
        assert convert_weight_to_lb(3, None) == 3

    def test_unknown_unit_is_rejected(self):
        with pytest.raises(InvalidInputError):
            convert_weight_to_lb(1, "stone")

    @pytest.mark.parametrize("container_lb,expected", [(4, 100), (5, 100), (7, 75), (10, 50), (12, 25)])
    def test_ratio_bands(self, container_lb, expected):
        payload = build_payload(weight_value=10, weight_unit="lb")
        container = build_container(weight_value=container_lb, weight_unit="lb")
        assert weight_ratio_score(payload, container) == expected

    def test_mixed_units_are_compared_in_pounds(self):
        payload = build_payload(weight_value=10, weight_unit="kg")
        container = build_container(weight_value=10, weight_unit="lb")
        # 10 lb / 22.05 lb is below half
        assert weight_ratio_score(payload, container) == 100

    def test_missing_weight_is_not_evaluated(self):
        payload = build_payload(weight_value=None)
        assert weight_ratio_score(payload, build_container()) is None


@pytest.mark.unit
class TestProtection:

    @pytest.mark.parametrize("category,payload_type,expected", [
        ("Synthesizer", "Digital Synthesizer", ProtectionLevel.HIGH),
        ("Mixer", None, ProtectionLevel.HIGH),
        ("Keyboard", "Vintage Electric Piano", ProtectionLevel.HIGH),
        ("Audio Interface", "USB", ProtectionLevel.MEDIUM),
        ("Drum Machine", None, ProtectionLevel.MEDIUM),
        ("Effects Pedal", None, ProtectionLevel.LOW),
        ("Keyboard Stand", None, ProtectionLevel.MEDIUM),
    ])
    def test_recommended_level(self, category, payload_type, expected):
        payload = build_payload(category=category, type=payload_type)
        assert recommended_protection_level(payload) == expected

    def test_alignment(self):
        assert protection_alignment_score(ProtectionLevel.HIGH, ProtectionLevel.HIGH) == 100
        assert protection_alignment_score(ProtectionLevel.HIGH, ProtectionLevel.MEDIUM) == 75
        assert protection_alignment_score(ProtectionLevel.MEDIUM, ProtectionLevel.LOW) == 75
        assert protection_alignment_score(ProtectionLevel.HIGH, ProtectionLevel.LOW) == 25
        assert protection_alignment_score(ProtectionLevel.LOW, None) == 25


@pytest.mark.unit
class TestFeatureScore:

    def test_well_suited_container(self):
        # Light container (100) and the recommended protection level (100)
        score = calculate_feature_score(build_payload(), build_container())
        assert score == 100

    def test_averages_only_evaluated_factors(self):
        payload = build_payload(weight_value=None)
        container = build_container(features=["foam insert"], description=None)
        options = FeatureHeuristicOptions(require_padding=True, require_compartments=True)

        # padding 100, compartments 0, protection 100
        assert calculate_feature_score(payload, container, options) == 67

    def test_required_flags(self):
        payload = build_payload(weight_value=None)
        container = build_container(waterproof=False, has_wheels=True)
        options = FeatureHeuristicOptions(require_waterproof=True, require_wheels=True)

        # waterproof 0, wheels 100, protection 100
        assert calculate_feature_score(payload, container, options) == 67

    def test_material_and_color_preferences(self):
        payload = build_payload(weight_value=None)
        container = build_container(material="Molded Polypropylene", color="Black")
        options = FeatureHeuristicOptions(preferred_materials=["polypropylene"], preferred_colors=["red"])

        # material 100, color 0, protection 100
        assert calculate_feature_score(payload, container, options) == 67

    def test_unknown_weight_unit_is_rejected(self):
        container = build_container(weight_unit="stone")
        with pytest.raises(InvalidInputError):
            calculate_feature_score(build_payload(), container)

    def test_match_features_ranks_best_first(self):
        payload = build_payload()
        heavy_low = build_container(name="Heavy", weight_value=20, protection_level=ProtectionLevel.LOW)
        light_high = build_container(name="Light")

        ranked = match_features(payload, [heavy_low, light_high])

        assert [m.container.name for m in ranked] == ["Light", "Heavy"]
        assert ranked[0].feature_score > ranked[1].feature_score


@pytest.mark.unit
class TestCategoryFeatureScore:

    def test_synthesizer_with_padding_handle_and_pocket(self):
        container = build_container(features=["padded interior", "accessory pocket"], has_handle=True)
        assert category_feature_score(build_payload(), container) == 100

    def test_drum_machine_values_shockproof(self):
        payload = build_payload(category="Drum Machine")
        container = build_container(features=[], description=None, name="Shell", shockproof=True)
        assert category_feature_score(payload, container) == 40

    def test_effects_pedal_values_pedalboard(self):
        payload = build_payload(category="Effects Pedal")
        container = build_container(
            name="Pedal Board Case", features=["hook and loop surface"], description=None
        )
        assert category_feature_score(payload, container) == 80

    def test_unlisted_category_uses_default_weights(self):
        payload = build_payload(category="Theremin")
        container = build_container(features=["foam"], has_handle=False, description=None, name="Shell")
        assert category_feature_score(payload, container) == 40
