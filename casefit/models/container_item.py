import uuid
import enum
from datetime import datetime
from sqlalchemy import String, Text, DateTime, Float, Integer, Boolean, Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from casefit.db.compat import UUID, JSONB

from casefit.db.base import Base
from casefit.models.dimensions import Dimensions


class ProtectionLevel(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def enum_values(enum_cls) -> list[str]:
    """Persist enum values ("mid-range") rather than member names."""
    return [member.value for member in enum_cls]


class ContainerItem(Base):
    """Protective case offered in the catalog."""

    __tablename__ = "container_items"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    brand: Mapped[str] = mapped_column(String(255), nullable=True, index=True)
    type: Mapped[str] = mapped_column(String(100), nullable=True, index=True)

    # Internal dimensions (payload must fit inside these)
    internal_length: Mapped[float] = mapped_column(Float, nullable=False, index=True)
    internal_width: Mapped[float] = mapped_column(Float, nullable=False, index=True)
    internal_height: Mapped[float] = mapped_column(Float, nullable=False, index=True)

    # External dimensions
    external_length: Mapped[float] = mapped_column(Float, nullable=True)
    external_width: Mapped[float] = mapped_column(Float, nullable=True)
    external_height: Mapped[float] = mapped_column(Float, nullable=True)
    dimension_unit: Mapped[str] = mapped_column(String(10), default="in")

    weight_value: Mapped[float] = mapped_column(Float, nullable=True)
    weight_unit: Mapped[str] = mapped_column(String(10), default="lb")

    # Commercial
    price: Mapped[float] = mapped_column(Float, nullable=True, index=True)
    currency: Mapped[str] = mapped_column(String(3), default="USD")
    rating: Mapped[float] = mapped_column(Float, nullable=True, index=True)
    review_count: Mapped[int] = mapped_column(Integer, nullable=True)
    url: Mapped[str] = mapped_column(String(1024), nullable=True)

    # Protection and capabilities
    protection_level: Mapped[ProtectionLevel] = mapped_column(
        Enum(ProtectionLevel, values_callable=enum_values), nullable=True, index=True
    )
    waterproof: Mapped[bool] = mapped_column(Boolean, default=False)
    shockproof: Mapped[bool] = mapped_column(Boolean, default=False)
    has_handle: Mapped[bool] = mapped_column(Boolean, default=False)
    has_wheels: Mapped[bool] = mapped_column(Boolean, default=False)
    has_lock: Mapped[bool] = mapped_column(Boolean, default=False)

    material: Mapped[str] = mapped_column(String(100), nullable=True)
    color: Mapped[str] = mapped_column(String(100), nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=True)
    features: Mapped[list] = mapped_column(JSONB, nullable=True, default=list)

    # Metadata
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    matches: Mapped[list["Match"]] = relationship(
        "Match", back_populates="container", cascade="all, delete-orphan"
    )

    @property
    def internal_dimensions(self) -> Dimensions:
        return Dimensions(self.internal_length, self.internal_width, self.internal_height)

    def __repr__(self) -> str:
        return f"<ContainerItem {self.id}: {self.name} ({self.price} {self.currency})>"
