"""
Dimension fit rule (Weight: 40 points).

Scores how snugly the payload sits in the container's internal space using the
piecewise dimension score from dimension_fit.py.

Scoring:
  - Overall fit 70-90%: full weight (40 pts)
  - Looser than 70%: 70-100% of weight, shrinking with the fit
  - Tighter than 90% but still fitting: linear drop to 0 at 100%
  - Larger than the container, or zero internal dimension: 0 pts
"""

from casefit.matching.dimension_fit import calculate_dimension_fit, score_fit
from casefit.models.container_item import ContainerItem
from casefit.models.payload_item import PayloadItem


def score(
    payload: PayloadItem,
    container: ContainerItem,
    weight: float = 40.0,
) -> dict:
    """
    Score dimensional fit between payload and container.

    Returns:
        dict with keys: score, max_score, sub_score (0-100), details, fit
    """
    fit = calculate_dimension_fit(payload.dimensions, container.internal_dimensions)

    if fit.degenerate:
        return {
            "score": 0.0,
            "max_score": weight,
            "sub_score": 0.0,
            "details": "Container has a zero internal dimension",
            "fit": fit,
        }

    sub_score = score_fit(fit)
    return {
        "score": weight * sub_score / 100,
        "max_score": weight,
        "sub_score": sub_score,
        "details": (
            f"Fit L/W/H = {fit.length:.1f}% / {fit.width:.1f}% / {fit.height:.1f}% "
            f"(overall {fit.overall:.1f}%)"
        ),
        "fit": fit,
    }
