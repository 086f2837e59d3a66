import uuid
import enum
from datetime import datetime
from sqlalchemy import DateTime, Float, Integer, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from casefit.db.compat import UUID, JSONB

from casefit.db.base import Base
from casefit.models.container_item import ProtectionLevel, enum_values


class PriceCategory(str, enum.Enum):
    BUDGET = "budget"
    MID_RANGE = "mid-range"
    PREMIUM = "premium"


class Match(Base):
    """Scored association between one payload and one container.

    At most one row exists per (payload_id, container_id); re-scoring updates
    the row in place.
    """

    __tablename__ = "matches"
    __table_args__ = (
        UniqueConstraint("payload_id", "container_id", name="uq_matches_payload_container"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(), primary_key=True, default=uuid.uuid4
    )
    payload_id: Mapped[uuid.UUID] = mapped_column(
        UUID(), ForeignKey("payload_items.id"), nullable=False, index=True
    )
    container_id: Mapped[uuid.UUID] = mapped_column(
        UUID(), ForeignKey("container_items.id"), nullable=False, index=True
    )
    compatibility_score: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    dimension_fit: Mapped[dict] = mapped_column(JSONB, nullable=True)
    feature_score: Mapped[int] = mapped_column(Integer, nullable=True)
    price_category: Mapped[PriceCategory] = mapped_column(
        Enum(PriceCategory, values_callable=enum_values), nullable=False
    )
    # Snapshots taken at scoring time; None when the container declares no level
    protection_level: Mapped[ProtectionLevel] = mapped_column(
        Enum(ProtectionLevel, values_callable=enum_values), nullable=True
    )
    features: Mapped[list] = mapped_column(JSONB, nullable=True, default=list)

    # Feedback aggregates
    feedback_count: Mapped[int] = mapped_column(Integer, default=0)
    positive_feedback_count: Mapped[int] = mapped_column(Integer, default=0)
    negative_feedback_count: Mapped[int] = mapped_column(Integer, default=0)
    user_feedback_score: Mapped[float] = mapped_column(Float, nullable=True)

    # Metadata
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    payload: Mapped["PayloadItem"] = relationship(
        "PayloadItem", back_populates="matches"
    )
    container: Mapped["ContainerItem"] = relationship(
        "ContainerItem", back_populates="matches"
    )
    feedback: Mapped[list["Feedback"]] = relationship(
        "Feedback", back_populates="match"
    )

    def __repr__(self) -> str:
        return f"<Match {self.id}: {self.compatibility_score} ({self.price_category.value})>"
