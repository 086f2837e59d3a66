"""
Preferred feature overlap rule (Weight: 20 points).

Measures the share of the caller's preferred features found (as
case-insensitive substrings) in the container's feature list. This is not the
feature heuristic score from feature_heuristics.py.

Scoring:
  - No preferred features given: 75% of weight
  - Otherwise: matched / requested * weight
"""

from casefit.models.container_item import ContainerItem
from casefit.models.payload_item import PayloadItem

DEFAULT_FEATURE_SCORE = 75.0


def score(
    payload: PayloadItem,
    container: ContainerItem,
    weight: float = 20.0,
    preferred_features: list[str] | None = None,
) -> dict:
    desired = [f for f in (preferred_features or []) if f]

    if not desired:
        return {
            "score": weight * DEFAULT_FEATURE_SCORE / 100,
            "max_score": weight,
            "sub_score": DEFAULT_FEATURE_SCORE,
            "details": "No preferred features requested",
        }

    container_features = [f.lower() for f in (container.features or []) if isinstance(f, str)]
    matched = [
        feature for feature in desired
        if any(feature.lower() in cf for cf in container_features)
    ]
    sub_score = len(matched) / len(desired) * 100

    return {
        "score": weight * sub_score / 100,
        "max_score": weight,
        "sub_score": sub_score,
        "details": f"Matched {len(matched)} of {len(desired)} preferred features: {matched}",
    }
