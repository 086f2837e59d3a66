"""Repository ports injected into the matching components.

Each entity gets its own interface. Engine components receive concrete
implementations through their constructors; there is no global registry.
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from casefit.errors import InvalidInputError
from casefit.models.container_item import ContainerItem, ProtectionLevel
from casefit.models.feedback import Feedback
from casefit.models.match import Match
from casefit.models.payload_item import PayloadItem

CONTAINER_SORT_FIELDS = ("price", "rating", "name", "created_at")


def coerce_uuid(value, entity: str = "id") -> uuid.UUID:
    """Parse an identity into a UUID, rejecting malformed input."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise InvalidInputError(f"Invalid {entity} '{value}'")


@dataclass(frozen=True)
class ContainerQuery:
    """Predicates for a container lookup.

    Range bounds are inclusive (>= for minimums, <= for max_price). ``brands``
    and ``container_ids`` are set-membership filters. ``None`` means "no filter".
    """

    min_internal_length: Optional[float] = None
    min_internal_width: Optional[float] = None
    min_internal_height: Optional[float] = None
    max_price: Optional[float] = None
    currency: Optional[str] = None
    protection_level: Optional[ProtectionLevel] = None
    waterproof: Optional[bool] = None
    shockproof: Optional[bool] = None
    has_handle: Optional[bool] = None
    has_wheels: Optional[bool] = None
    has_lock: Optional[bool] = None
    brands: Optional[tuple[str, ...]] = None
    container_ids: Optional[tuple[uuid.UUID, ...]] = None


@dataclass(frozen=True)
class ContainerSort:
    field: str = "price"
    descending: bool = False


class PayloadRepository(ABC):
    @abstractmethod
    def find_by_id(self, payload_id) -> Optional[PayloadItem]:
        pass

    @abstractmethod
    def search(
        self,
        term: str | None = None,
        category: str | None = None,
        brand: str | None = None,
        limit: int = 20,
    ) -> list[PayloadItem]:
        """Name/brand/type substring search, most popular first."""
        pass

    @abstractmethod
    def list_ids(self) -> list[uuid.UUID]:
        pass


class ContainerRepository(ABC):
    @abstractmethod
    def find_by_id(self, container_id) -> Optional[ContainerItem]:
        pass

    @abstractmethod
    def find_by_query(
        self,
        query: ContainerQuery,
        sort: ContainerSort | None = None,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[ContainerItem]:
        pass

    @abstractmethod
    def count(self, query: ContainerQuery) -> int:
        pass


class MatchRepository(ABC):
    @abstractmethod
    def upsert(self, payload_id: uuid.UUID, container_id: uuid.UUID, fields: dict) -> Match:
        """Create or update the single Match for the pair."""
        pass

    @abstractmethod
    def save(self, match: Match) -> Match:
        """Persist in-place changes to a Match."""
        pass

    @abstractmethod
    def find_by_pair(self, payload_id, container_id) -> Optional[Match]:
        pass

    @abstractmethod
    def find_by_id(self, match_id) -> Optional[Match]:
        pass

    @abstractmethod
    def list_matches(
        self,
        payload_id=None,
        min_score: int | None = None,
        limit: int | None = None,
    ) -> list[Match]:
        pass

    @abstractmethod
    def scores(self) -> list[int]:
        """All compatibility scores, for statistics."""
        pass


class FeedbackRepository(ABC):
    @abstractmethod
    def append(self, record: Feedback) -> Feedback:
        pass

    @abstractmethod
    def find_by_pair(self, payload_id, container_id) -> list[Feedback]:
        """Feedback for the pair, newest first."""
        pass

    @abstractmethod
    def average_rating(self, payload_id, container_id) -> Optional[float]:
        pass

    @abstractmethod
    def top_rated_for_payload(self, payload_id, limit: int = 5) -> list[tuple[uuid.UUID, float, int]]:
        """(container_id, average rating, feedback count), best first."""
        pass

    @abstractmethod
    def all_ratings(self) -> list[tuple[int, bool]]:
        """(rating, actually_purchased) for every record."""
        pass
