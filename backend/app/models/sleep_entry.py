import uuid
from datetime import datetime
from typing import List, Optional
from sqlalchemy import String, DateTime, Float, Integer, Boolean, Text, JSON, ForeignKey, Index, Uuid, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.services.sleep_metrics import derive
from app.utils.enums import QualityLabel


class SleepEntry(Base):
    __tablename__ = "sleep_entries"
    __table_args__ = (
        Index("ix_sleep_entries_user_created", "user_id", "created_at"),
        CheckConstraint("struggle_min < struggle_max", name="ck_sleep_entries_struggle_range"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    username: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    changes: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)  # Sleep goals, max 10
    struggle_min: Mapped[int] = mapped_column(Integer, default=0, nullable=False)  # 0, 2 or 8 hours
    struggle_max: Mapped[int] = mapped_column(Integer, default=2, nullable=False)  # 2, 8 or 10 hours
    bed_time: Mapped[str] = mapped_column(String(5), nullable=False)  # HH:MM
    wake_time: Mapped[str] = mapped_column(String(5), nullable=False)  # HH:MM
    sleep_duration: Mapped[float] = mapped_column(Float, nullable=False)  # 0-24 hours, user-declared
    sleep_quality: Mapped[int] = mapped_column(Integer, default=5, nullable=False, index=True)  # 1-10
    sleep_efficiency: Mapped[float] = mapped_column(Float, default=0, nullable=False)  # 0-100 %
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tags: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
        index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    # Relationships
    user = relationship("User", back_populates="sleep_entries")

    @property
    def sleep_struggle(self) -> dict:
        return {"min": self.struggle_min, "max": self.struggle_max}

    @property
    def calculated_duration(self) -> Optional[float]:
        return derive(self).calculated_duration

    @property
    def quality_description(self) -> Optional[QualityLabel]:
        return derive(self).quality_description

    @property
    def owner_display_name(self) -> Optional[str]:
        # Only safe once the user relationship has been eagerly loaded
        return self.user.display_name if self.user is not None else None

    def __repr__(self) -> str:
        return f"<SleepEntry(id={self.id}, bed={self.bed_time}, wake={self.wake_time}, duration={self.sleep_duration}h)>"
