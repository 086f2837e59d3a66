from casefit.repositories.ports import (
    ContainerQuery,
    ContainerSort,
    PayloadRepository,
    ContainerRepository,
    MatchRepository,
    FeedbackRepository,
    coerce_uuid,
)
from casefit.repositories.sql_repositories import (
    SqlPayloadRepository,
    SqlContainerRepository,
    SqlMatchRepository,
    SqlFeedbackRepository,
)
from casefit.repositories.cache import ContainerQueryCache, CachedContainerRepository

__all__ = [
    "ContainerQuery",
    "ContainerSort",
    "PayloadRepository",
    "ContainerRepository",
    "MatchRepository",
    "FeedbackRepository",
    "SqlPayloadRepository",
    "SqlContainerRepository",
    "SqlMatchRepository",
    "SqlFeedbackRepository",
    "coerce_uuid",
    "ContainerQueryCache",
    "CachedContainerRepository",
]
