import uuid
from datetime import datetime
from sqlalchemy import String, Text, DateTime, Float, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship
from casefit.db.compat import UUID

from casefit.db.base import Base
from casefit.models.dimensions import Dimensions


class PayloadItem(Base):
    """Equipment to be protected (synthesizer, mixer, pedal, ...)."""

    __tablename__ = "payload_items"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    brand: Mapped[str] = mapped_column(String(255), nullable=True, index=True)
    category: Mapped[str] = mapped_column(String(100), nullable=True, index=True)
    type: Mapped[str] = mapped_column(String(100), nullable=True, index=True)

    # Dimensions
    length: Mapped[float] = mapped_column(Float, nullable=False)
    width: Mapped[float] = mapped_column(Float, nullable=False)
    height: Mapped[float] = mapped_column(Float, nullable=False)
    dimension_unit: Mapped[str] = mapped_column(String(10), default="in")

    # Weight
    weight_value: Mapped[float] = mapped_column(Float, nullable=True)
    weight_unit: Mapped[str] = mapped_column(String(10), default="lb")

    description: Mapped[str] = mapped_column(Text, nullable=True)
    popularity: Mapped[int] = mapped_column(Integer, default=0, index=True)

    # Metadata
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    matches: Mapped[list["Match"]] = relationship(
        "Match", back_populates="payload", cascade="all, delete-orphan"
    )

    @property
    def dimensions(self) -> Dimensions:
        return Dimensions(self.length, self.width, self.height)

    def __repr__(self) -> str:
        return f"<PayloadItem {self.id}: {self.brand} {self.name}>"
