"""
Dimension fit evaluator.

Compares a payload's outer dimensions with a container's internal dimensions,
axis by axis, in a single linear unit (callers convert units beforehand).

Per-axis fit is the share of the container axis the payload occupies:
  fit = payload_axis / container_axis * 100

The overall fit is the mean of the three axes. A snug fit is best:

  overall in [70, 90]   -> 100  (ideal)
  overall < 70          -> 70 + overall / 70 * 30  (too loose)
  overall in (90, 100]  -> 100 - (overall - 90) * 10  (tight but fits)
  overall > 100         -> 0  (does not fit)

A container with a zero internal axis is reported as degenerate and scores 0;
it is never an exception.
"""

from dataclasses import dataclass

from casefit.models.dimensions import Dimensions

IDEAL_FIT_MIN = 70.0
IDEAL_FIT_MAX = 90.0


@dataclass(frozen=True)
class DimensionFit:
    """Per-axis and overall fit percentages."""

    length: float
    width: float
    height: float
    overall: float
    degenerate: bool = False

    @property
    def fits(self) -> bool:
        return not self.degenerate and max(self.length, self.width, self.height) <= 100.0

    def to_dict(self) -> dict:
        return {
            "length": self.length,
            "width": self.width,
            "height": self.height,
            "overall": self.overall,
        }


def calculate_dimension_fit(payload: Dimensions, container: Dimensions) -> DimensionFit:
    """Compute fit percentages for a payload inside a container."""
    if min(container) <= 0:
        return DimensionFit(0.0, 0.0, 0.0, 0.0, degenerate=True)

    length_fit = payload.length / container.length * 100
    width_fit = payload.width / container.width * 100
    height_fit = payload.height / container.height * 100

    return DimensionFit(
        length=length_fit,
        width=width_fit,
        height=height_fit,
        overall=(length_fit + width_fit + height_fit) / 3,
    )


def dimension_score(overall_fit: float) -> float:
    """Piecewise 0-100 score for an overall fit percentage."""
    if IDEAL_FIT_MIN <= overall_fit <= IDEAL_FIT_MAX:
        return 100.0
    if overall_fit < IDEAL_FIT_MIN:
        return 70 + (overall_fit / IDEAL_FIT_MIN) * 30
    if overall_fit <= 100:
        return 100 - ((overall_fit - IDEAL_FIT_MAX) * 10)
    return 0.0


def score_fit(fit: DimensionFit) -> float:
    if fit.degenerate:
        return 0.0
    return dimension_score(fit.overall)


def is_eligible(payload: Dimensions, container: Dimensions, clearance: float = 0.5) -> bool:
    """Hard geometric constraint: every internal axis must exceed the payload by the clearance."""
    return (
        container.length >= payload.length + clearance
        and container.width >= payload.width + clearance
        and container.height >= payload.height + clearance
    )
