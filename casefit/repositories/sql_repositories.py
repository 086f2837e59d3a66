"""
SQLAlchemy implementations of the repository ports.

All repositories share the caller's session and only flush; committing is left
to whoever owns the unit of work (an endpoint or a batch worker).

Match upserts use the database's native ``INSERT ... ON CONFLICT DO UPDATE`` on
PostgreSQL and SQLite, keyed by the (payload_id, container_id) unique
constraint, so concurrent writers to the same pair serialize in the database
and the last write wins.
"""

import logging
import uuid
from datetime import datetime

from sqlalchemy import func, or_, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from casefit.errors import InvalidInputError
from casefit.models.container_item import ContainerItem
from casefit.models.feedback import Feedback
from casefit.models.match import Match
from casefit.models.payload_item import PayloadItem
from casefit.repositories.ports import (
    CONTAINER_SORT_FIELDS,
    ContainerQuery,
    ContainerRepository,
    ContainerSort,
    FeedbackRepository,
    MatchRepository,
    PayloadRepository,
    coerce_uuid,
)

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class SqlPayloadRepository(PayloadRepository):
    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, payload_id) -> PayloadItem | None:
        return self.db.get(PayloadItem, coerce_uuid(payload_id, "payload id"))

    def search(self, term=None, category=None, brand=None, limit=20) -> list[PayloadItem]:
        query = self.db.query(PayloadItem)

        if term:
            pattern = f"%{term}%"
            query = query.filter(
                or_(
                    PayloadItem.name.ilike(pattern),
                    PayloadItem.brand.ilike(pattern),
                    PayloadItem.type.ilike(pattern),
                )
            )
        if category:
            query = query.filter(PayloadItem.category == category)
        if brand:
            query = query.filter(PayloadItem.brand == brand)

        return query.order_by(PayloadItem.popularity.desc(), PayloadItem.name).limit(limit).all()

    def list_ids(self) -> list[uuid.UUID]:
        return [row[0] for row in self.db.query(PayloadItem.id).order_by(PayloadItem.popularity.desc()).all()]


class SqlContainerRepository(ContainerRepository):
    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, container_id) -> ContainerItem | None:
        return self.db.get(ContainerItem, coerce_uuid(container_id, "container id"))

    def _filtered(self, query: ContainerQuery):
        q = self.db.query(ContainerItem)

        if query.min_internal_length is not None:
            q = q.filter(ContainerItem.internal_length >= query.min_internal_length)
        if query.min_internal_width is not None:
            q = q.filter(ContainerItem.internal_width >= query.min_internal_width)
        if query.min_internal_height is not None:
            q = q.filter(ContainerItem.internal_height >= query.min_internal_height)
        if query.max_price is not None:
            q = q.filter(ContainerItem.price <= query.max_price)
        if query.currency is not None:
            q = q.filter(ContainerItem.currency == query.currency)
        if query.protection_level is not None:
            q = q.filter(ContainerItem.protection_level == query.protection_level)

        for flag in ("waterproof", "shockproof", "has_handle", "has_wheels", "has_lock"):
            wanted = getattr(query, flag)
            if wanted is not None:
                q = q.filter(getattr(ContainerItem, flag) == wanted)

        if query.brands:
            q = q.filter(ContainerItem.brand.in_(query.brands))
        if query.container_ids:
            q = q.filter(ContainerItem.id.in_(query.container_ids))

        return q

    def find_by_query(self, query, sort=None, skip=0, limit=None) -> list[ContainerItem]:
        q = self._filtered(query)

        if sort is not None:
            if sort.field not in CONTAINER_SORT_FIELDS:
                raise InvalidInputError(
                    f"Invalid sort field '{sort.field}'. Use: {', '.join(CONTAINER_SORT_FIELDS)}"
                )
            column = getattr(ContainerItem, sort.field)
            q = q.order_by(column.desc() if sort.descending else column.asc(), ContainerItem.id)
        else:
            q = q.order_by(ContainerItem.name, ContainerItem.id)

        if skip:
            q = q.offset(skip)
        if limit is not None:
            q = q.limit(limit)
        return q.all()

    def count(self, query: ContainerQuery) -> int:
        return self._filtered(query).count()


class SqlMatchRepository(MatchRepository):
    def __init__(self, db: Session):
        self.db = db

    def upsert(self, payload_id, container_id, fields: dict) -> Match:
        payload_id = coerce_uuid(payload_id, "payload id")
        container_id = coerce_uuid(container_id, "container id")
        insert = _DIALECT_INSERTS.get(self.db.get_bind().dialect.name)

        if insert is None:
            return self._upsert_orm(payload_id, container_id, fields)

        now = datetime.utcnow()
        values = {
            "id": uuid.uuid4(),
            "payload_id": payload_id,
            "container_id": container_id,
            "created_at": now,
            "updated_at": now,
            **fields,
        }
        stmt = insert(Match).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["payload_id", "container_id"],
            set_={**{key: stmt.excluded[key] for key in fields}, "updated_at": now},
        )
        self.db.execute(stmt)

        return self.db.execute(
            select(Match)
            .where(Match.payload_id == payload_id, Match.container_id == container_id)
            .execution_options(populate_existing=True)
        ).scalar_one()

    def _upsert_orm(self, payload_id, container_id, fields: dict) -> Match:
        match = self.find_by_pair(payload_id, container_id)
        if match is None:
            match = Match(payload_id=payload_id, container_id=container_id)
            self.db.add(match)
        for key, value in fields.items():
            setattr(match, key, value)
        self.db.flush()
        return match

    def save(self, match: Match) -> Match:
        self.db.add(match)
        self.db.flush()
        return match

    def find_by_pair(self, payload_id, container_id) -> Match | None:
        return (
            self.db.query(Match)
            .filter(
                Match.payload_id == coerce_uuid(payload_id, "payload id"),
                Match.container_id == coerce_uuid(container_id, "container id"),
            )
            .first()
        )

    def find_by_id(self, match_id) -> Match | None:
        return self.db.get(Match, coerce_uuid(match_id, "match id"))

    def list_matches(self, payload_id=None, min_score=None, limit=None) -> list[Match]:
        query = self.db.query(Match)
        if payload_id is not None:
            query = query.filter(Match.payload_id == coerce_uuid(payload_id, "payload id"))
        if min_score is not None:
            query = query.filter(Match.compatibility_score >= min_score)
        query = query.order_by(Match.compatibility_score.desc(), Match.created_at.desc())
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def scores(self) -> list[int]:
        return [row[0] for row in self.db.query(Match.compatibility_score).all()]


class SqlFeedbackRepository(FeedbackRepository):
    def __init__(self, db: Session):
        self.db = db

    def append(self, record: Feedback) -> Feedback:
        if record.created_at is None:
            record.created_at = datetime.utcnow()
        self.db.add(record)
        self.db.flush()
        return record

    def _pair_filter(self, query, payload_id, container_id):
        return query.filter(
            Feedback.payload_id == coerce_uuid(payload_id, "payload id"),
            Feedback.container_id == coerce_uuid(container_id, "container id"),
        )

    def find_by_pair(self, payload_id, container_id) -> list[Feedback]:
        query = self._pair_filter(self.db.query(Feedback), payload_id, container_id)
        return query.order_by(Feedback.created_at.desc()).all()

    def average_rating(self, payload_id, container_id) -> float | None:
        query = self._pair_filter(self.db.query(func.avg(Feedback.rating)), payload_id, container_id)
        average = query.scalar()
        return float(average) if average is not None else None

    def top_rated_for_payload(self, payload_id, limit=5):
        average = func.avg(Feedback.rating)
        count = func.count(Feedback.id)
        rows = (
            self.db.query(Feedback.container_id, average, count)
            .filter(Feedback.payload_id == coerce_uuid(payload_id, "payload id"))
            .group_by(Feedback.container_id)
            .order_by(average.desc(), count.desc())
            .limit(limit)
            .all()
        )
        return [(container_id, float(avg), int(n)) for container_id, avg, n in rows]

    def all_ratings(self) -> list[tuple[int, bool]]:
        rows = self.db.query(Feedback.rating, Feedback.actually_purchased).all()
        return [(rating, bool(purchased)) for rating, purchased in rows]
