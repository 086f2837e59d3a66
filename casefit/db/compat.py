"""Column types that behave the same on PostgreSQL and SQLite.

The catalog runs on PostgreSQL in production, while tests and local tooling use
SQLite. UUID keys map to native ``uuid`` columns on PostgreSQL and to
``VARCHAR(36)`` elsewhere; JSON documents (dimension-fit breakdowns, feature
lists) map to ``JSONB`` on PostgreSQL and to serialized text elsewhere.
"""
import json
import uuid

from sqlalchemy import String, Text, TypeDecorator
from sqlalchemy.dialects.postgresql import UUID as PG_UUID, JSONB as PG_JSONB


def _is_postgres(dialect) -> bool:
    return dialect.name == "postgresql"


class UUID(TypeDecorator):
    """UUID primary/foreign key type."""
    impl = String(36)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if _is_postgres(dialect):
            return dialect.type_descriptor(PG_UUID(as_uuid=True))
        return dialect.type_descriptor(String(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if not isinstance(value, uuid.UUID):
            value = uuid.UUID(str(value))
        return value if _is_postgres(dialect) else str(value)

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(str(value))


class JSONB(TypeDecorator):
    """JSON document type (dicts and lists)."""
    impl = Text
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if _is_postgres(dialect):
            return dialect.type_descriptor(PG_JSONB())
        return dialect.type_descriptor(Text())

    def process_bind_param(self, value, dialect):
        if value is None or _is_postgres(dialect):
            return value
        return json.dumps(value, sort_keys=True)

    def process_result_value(self, value, dialect):
        if isinstance(value, str):
            return json.loads(value)
        return value
