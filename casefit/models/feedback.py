import uuid
from datetime import datetime
from sqlalchemy import String, Text, DateTime, Integer, Boolean, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from casefit.db.compat import UUID

from casefit.db.base import Base


class Feedback(Base):
    """One user rating of a payload/container pairing. Append-only."""

    __tablename__ = "feedback"
    __table_args__ = (
        Index("ix_feedback_payload_container", "payload_id", "container_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[str] = mapped_column(String(100), nullable=True)
    payload_id: Mapped[uuid.UUID] = mapped_column(
        UUID(), ForeignKey("payload_items.id"), nullable=False
    )
    container_id: Mapped[uuid.UUID] = mapped_column(
        UUID(), ForeignKey("container_items.id"), nullable=False
    )
    match_id: Mapped[uuid.UUID] = mapped_column(
        UUID(), ForeignKey("matches.id"), nullable=True
    )

    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    fit_accuracy: Mapped[int] = mapped_column(Integer, nullable=True)
    protection_quality: Mapped[int] = mapped_column(Integer, nullable=True)
    value_for_money: Mapped[int] = mapped_column(Integer, nullable=True)
    actually_purchased: Mapped[bool] = mapped_column(Boolean, default=False)
    comments: Mapped[str] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    match: Mapped["Match"] = relationship("Match", back_populates="feedback")

    def __repr__(self) -> str:
        return f"<Feedback {self.id}: {self.rating}/5>"
