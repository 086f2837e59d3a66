"""
Unit tests for the dimension fit evaluator.

Covers:
- Per-axis and overall fit percentages
- Piecewise dimension score (ideal band, loose, tight, no fit)
- Degenerate containers (zero internal axis)
- Hard eligibility with the clearance buffer
"""

import pytest

from casefit.matching.dimension_fit import (
    calculate_dimension_fit,
    dimension_score,
    is_eligible,
    score_fit,
)
from casefit.models.dimensions import Dimensions


@pytest.mark.unit
class TestFitPercentages:

    def test_snug_payload_is_ninety_percent_on_every_axis(self):
        fit = calculate_dimension_fit(Dimensions(18, 9, 4.5), Dimensions(20, 10, 5))

        assert fit.length == pytest.approx(90)
        assert fit.width == pytest.approx(90)
        assert fit.height == pytest.approx(90)
        assert fit.overall == pytest.approx(90)
        assert fit.fits
        assert score_fit(fit) == 100

    def test_oversized_payload_scores_zero(self):
        fit = calculate_dimension_fit(Dimensions(25, 15, 8), Dimensions(20, 10, 5))

        assert fit.overall > 100
        assert not fit.fits
        assert score_fit(fit) == 0

    def test_to_dict_has_four_percentages(self):
        fit = calculate_dimension_fit(Dimensions(10, 5, 2), Dimensions(20, 10, 4))

        assert fit.to_dict() == {"length": 50.0, "width": 50.0, "height": 50.0, "overall": 50.0}

    def test_zero_internal_axis_is_degenerate_not_an_error(self):
        fit = calculate_dimension_fit(Dimensions(18, 9, 4.5), Dimensions(20, 10, 0))

        assert fit.degenerate
        assert not fit.fits
        assert score_fit(fit) == 0


@pytest.mark.unit
class TestDimensionScore:

    @pytest.mark.parametrize("overall", [70, 75.5, 80, 89.99, 90])
    def test_ideal_band_scores_full(self, overall):
        assert dimension_score(overall) == 100

    @pytest.mark.parametrize("overall", [69.99, 90.01])
    def test_just_outside_ideal_band_is_below_full(self, overall):
        assert dimension_score(overall) < 100

    def test_loose_fit_degrades_toward_seventy(self):
        assert dimension_score(35) == pytest.approx(85)
        assert dimension_score(0) == pytest.approx(70)

    def test_tight_fit_loses_ten_points_per_percent(self):
        assert dimension_score(95) == pytest.approx(50)
        assert dimension_score(100) == pytest.approx(0)

    def test_no_fit_scores_zero(self):
        assert dimension_score(100.5) == 0
        assert dimension_score(150) == 0


@pytest.mark.unit
class TestEligibility:

    def test_exact_clearance_is_eligible(self):
        assert is_eligible(Dimensions(18, 9, 4.5), Dimensions(18.5, 9.5, 5.0))

    def test_one_short_axis_is_not_eligible(self):
        assert not is_eligible(Dimensions(18, 9, 4.5), Dimensions(20, 10, 4.9))

    def test_oversized_payload_is_not_eligible(self):
        assert not is_eligible(Dimensions(25, 15, 8), Dimensions(20, 10, 5))

    def test_custom_clearance(self):
        assert is_eligible(Dimensions(18, 9, 4.5), Dimensions(19, 9.5, 5), clearance=0.5)
        assert not is_eligible(Dimensions(18, 9, 4.5), Dimensions(19, 9.5, 5), clearance=1.0)
