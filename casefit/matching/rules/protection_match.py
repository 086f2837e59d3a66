"""
Protection level rule (Weight: 25 points).

Scoring:
  - high: full weight (25 pts)
  - medium: 75% of weight
  - low: 50% of weight
  - unknown: 0 pts
"""

from casefit.models.container_item import ContainerItem, ProtectionLevel
from casefit.models.payload_item import PayloadItem

PROTECTION_SCORES = {
    ProtectionLevel.HIGH: 100.0,
    ProtectionLevel.MEDIUM: 75.0,
    ProtectionLevel.LOW: 50.0,
}


def score(
    payload: PayloadItem,
    container: ContainerItem,
    weight: float = 25.0,
) -> dict:
    level = container.protection_level
    if level is None:
        return {
            "score": 0.0,
            "max_score": weight,
            "sub_score": 0.0,
            "details": "No protection level declared",
        }

    level = ProtectionLevel(level)
    sub_score = PROTECTION_SCORES[level]
    return {
        "score": weight * sub_score / 100,
        "max_score": weight,
        "sub_score": sub_score,
        "details": f"Protection level '{level.value}'",
    }
