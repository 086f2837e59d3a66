"""
Feedback service: ingests user ratings and folds them into match scores.

submit_feedback runs in sequence:
  1. Validate the payload and container identities
  2. Append the feedback record (never deduplicated)
  3. Average every rating for the (payload, container) pair
  4. Create a placeholder Match scored from this rating, or blend the
     existing score 70/30 with the average rating (scaled to 0-100)
  5. Refresh the match's feedback aggregates

Nothing is committed here; the caller owns the transaction.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime

from casefit.config import get_settings
from casefit.errors import InvalidInputError, NotFoundError
from casefit.matching.scoring import round_score
from casefit.models.container_item import ProtectionLevel
from casefit.models.feedback import Feedback
from casefit.models.match import Match, PriceCategory
from casefit.repositories.ports import (
    ContainerRepository,
    FeedbackRepository,
    MatchRepository,
    PayloadRepository,
)

logger = logging.getLogger(__name__)

POSITIVE_RATING = 4
NEGATIVE_RATING = 2

# Dimension fit stored on a match created from feedback alone
PLACEHOLDER_DIMENSION_FIT = {"length": 80, "width": 80, "height": 80, "overall": 80}


def _check_rating(name: str, value, required: bool = False) -> None:
    if value is None:
        if required:
            raise InvalidInputError(f"{name} is required")
        return
    if not isinstance(value, int) or isinstance(value, bool) or not 1 <= value <= 5:
        raise InvalidInputError(f"{name} must be an integer from 1 to 5, got {value!r}")


@dataclass
class FeedbackSubmission:
    payload_id: object
    container_id: object
    rating: int
    user_id: str | None = None
    fit_accuracy: int | None = None
    protection_quality: int | None = None
    value_for_money: int | None = None
    actually_purchased: bool = False
    comments: str | None = None

    def __post_init__(self):
        _check_rating("rating", self.rating, required=True)
        _check_rating("fit_accuracy", self.fit_accuracy)
        _check_rating("protection_quality", self.protection_quality)
        _check_rating("value_for_money", self.value_for_money)


@dataclass
class FeedbackOutcome:
    feedback: Feedback
    match: Match
    average_rating: float
    previous_score: int | None = None
    match_created: bool = False

    def to_dict(self) -> dict:
        return {
            "feedback_id": str(self.feedback.id),
            "match_id": str(self.match.id),
            "average_rating": round(self.average_rating, 3),
            "previous_score": self.previous_score,
            "compatibility_score": self.match.compatibility_score,
            "match_created": self.match_created,
        }


@dataclass
class FeedbackStatistics:
    total_feedback: int = 0
    average_rating: float = 0.0
    rating_distribution: list = field(default_factory=list)
    purchase_rate: float = 0.0

    def to_dict(self) -> dict:
        return {
            "total_feedback": self.total_feedback,
            "average_rating": self.average_rating,
            "rating_distribution": self.rating_distribution,
            "purchase_rate": self.purchase_rate,
        }


def blend_score(existing_score: int, average_rating: float, settings=None) -> int:
    """round(existing * 0.7 + average * 20 * 0.3), clamped to [0, 100]."""
    settings = settings or get_settings()
    adjusted = (
        existing_score * settings.algorithm_score_weight
        + average_rating * 20 * settings.feedback_score_weight
    )
    return min(100, max(0, round_score(adjusted)))


class FeedbackAggregator:
    def __init__(
        self,
        payloads: PayloadRepository,
        containers: ContainerRepository,
        matches: MatchRepository,
        feedback: FeedbackRepository,
        settings=None,
    ):
        self.payloads = payloads
        self.containers = containers
        self.matches = matches
        self.feedback = feedback
        self.settings = settings or get_settings()

    def submit_feedback(self, submission: FeedbackSubmission) -> FeedbackOutcome:
        """
        Record a rating and update the pair's Match.

        Raises:
            NotFoundError: unknown payload or container (nothing is written)
        """
        payload = self.payloads.find_by_id(submission.payload_id)
        if payload is None:
            raise NotFoundError("Payload", submission.payload_id)
        container = self.containers.find_by_id(submission.container_id)
        if container is None:
            raise NotFoundError("Container", submission.container_id)

        record = self.feedback.append(
            Feedback(
                user_id=submission.user_id,
                payload_id=payload.id,
                container_id=container.id,
                rating=submission.rating,
                fit_accuracy=submission.fit_accuracy,
                protection_quality=submission.protection_quality,
                value_for_money=submission.value_for_money,
                actually_purchased=submission.actually_purchased,
                comments=submission.comments,
                created_at=datetime.utcnow(),
            )
        )

        records = self.feedback.find_by_pair(payload.id, container.id)
        ratings = [r.rating for r in records]
        average = sum(ratings) / len(ratings)

        match = self.matches.find_by_pair(payload.id, container.id)
        previous_score = None
        created = match is None

        if created:
            match = self.matches.upsert(
                payload.id,
                container.id,
                {
                    "compatibility_score": submission.rating * 20,
                    "dimension_fit": dict(PLACEHOLDER_DIMENSION_FIT),
                    "price_category": PriceCategory.MID_RANGE,
                    "protection_level": ProtectionLevel.MEDIUM,
                    "features": [],
                },
            )
        else:
            previous_score = match.compatibility_score
            match.compatibility_score = blend_score(previous_score, average, self.settings)

        match.feedback_count = len(ratings)
        match.positive_feedback_count = sum(1 for r in ratings if r >= POSITIVE_RATING)
        match.negative_feedback_count = sum(1 for r in ratings if r <= NEGATIVE_RATING)
        match.user_feedback_score = round(average * 20, 2)
        record.match_id = match.id
        self.matches.save(match)

        logger.info(
            "Feedback %s for payload %s / container %s: rating %d, average %.2f, score %s -> %d",
            record.id,
            payload.id,
            container.id,
            submission.rating,
            average,
            previous_score,
            match.compatibility_score,
        )

        return FeedbackOutcome(
            feedback=record,
            match=match,
            average_rating=average,
            previous_score=previous_score,
            match_created=created,
        )

    def get_feedback_for_match(self, payload_id, container_id) -> list[Feedback]:
        return self.feedback.find_by_pair(payload_id, container_id)

    def get_average_rating(self, payload_id, container_id) -> float | None:
        return self.feedback.average_rating(payload_id, container_id)

    def get_top_rated_for_payload(self, payload_id, limit: int = 5) -> list[dict]:
        """Best-rated containers for a payload; containers no longer in the catalog are skipped."""
        results = []
        for container_id, average, count in self.feedback.top_rated_for_payload(payload_id, limit):
            container = self.containers.find_by_id(container_id)
            if container is None:
                continue
            results.append({"container": container, "average_rating": average, "feedback_count": count})
        return results

    def get_feedback_statistics(self) -> FeedbackStatistics:
        ratings = self.feedback.all_ratings()
        if not ratings:
            return FeedbackStatistics()

        distribution = Counter(rating for rating, _ in ratings)
        purchased = sum(1 for _, bought in ratings if bought)

        return FeedbackStatistics(
            total_feedback=len(ratings),
            average_rating=sum(rating for rating, _ in ratings) / len(ratings),
            rating_distribution=[
                {"rating": rating, "count": distribution[rating]} for rating in sorted(distribution)
            ],
            purchase_rate=purchased / len(ratings) * 100,
        )
