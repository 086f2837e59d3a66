"""
Customer rating rule (Weight: 15 points).

Scoring:
  - Rated container: rating / 5 * weight
  - Unrated: 50% of weight (benefit of the doubt)
"""

from casefit.models.container_item import ContainerItem
from casefit.models.payload_item import PayloadItem

MAX_RATING = 5.0
UNRATED_SCORE = 50.0


def score(
    payload: PayloadItem,
    container: ContainerItem,
    weight: float = 15.0,
) -> dict:
    if not container.rating:
        return {
            "score": weight * UNRATED_SCORE / 100,
            "max_score": weight,
            "sub_score": UNRATED_SCORE,
            "details": "Unrated container, partial credit given",
        }

    rating = min(max(container.rating, 0.0), MAX_RATING)
    sub_score = rating / MAX_RATING * 100
    return {
        "score": weight * sub_score / 100,
        "max_score": weight,
        "sub_score": sub_score,
        "details": f"Rated {rating:.1f}/5 ({container.review_count or 0} reviews)",
    }
