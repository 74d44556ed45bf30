from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Literal, Optional
from datetime import datetime
import re
import uuid

from app.utils.enums import QualityLabel


CLOCK_TIME_PATTERN = r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$"
USERNAME_PATTERN = r"^[a-zA-Z0-9_-]+$"
TAG_PATTERN = r"^[a-zA-Z0-9\s-]+$"

MAX_CHANGES = 10
MAX_TAGS = 5


class SleepStruggle(BaseModel):
    """Hours the user struggles to fall asleep, as a bucket range"""
    min: Literal[0, 2, 8] = 0
    max: Literal[2, 8, 10] = 2

    @model_validator(mode="after")
    def max_above_min(self):
        if self.max <= self.min:
            raise ValueError("Maximum sleep struggle must be greater than minimum")
        return self


def _clean_changes(v: Optional[List[str]]) -> Optional[List[str]]:
    if v is None:
        return v
    cleaned = [item.strip() for item in v]
    for item in cleaned:
        if not 1 <= len(item) <= 100:
            raise ValueError("Each sleep goal must be between 1 and 100 characters")
    return cleaned


def _clean_tags(v: Optional[List[str]]) -> Optional[List[str]]:
    if v is None:
        return v
    cleaned = [tag.strip() for tag in v]
    for tag in cleaned:
        if not 1 <= len(tag) <= 20:
            raise ValueError("Each tag must be between 1 and 20 characters")
        if not re.match(TAG_PATTERN, tag):
            raise ValueError("Tags can only contain letters, numbers, spaces, and hyphens")
    return cleaned


class SleepEntryCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=32, pattern=USERNAME_PATTERN)
    changes: List[str] = Field(default_factory=list, max_length=MAX_CHANGES)
    sleep_struggle: SleepStruggle = Field(default_factory=SleepStruggle)
    bed_time: str = Field(..., pattern=CLOCK_TIME_PATTERN, examples=["22:30"])
    wake_time: str = Field(..., pattern=CLOCK_TIME_PATTERN, examples=["07:00"])
    sleep_duration: float = Field(..., ge=0, le=24)
    sleep_quality: int = Field(default=5, ge=1, le=10)
    sleep_efficiency: float = Field(default=0, ge=0, le=100)
    notes: Optional[str] = Field(default=None, max_length=500)
    tags: List[str] = Field(default_factory=list, max_length=MAX_TAGS)
    is_public: bool = False

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("changes")
    @classmethod
    def validate_changes(cls, v):
        return _clean_changes(v)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v):
        return _clean_tags(v)


class SleepEntryUpdate(BaseModel):
    username: Optional[str] = Field(default=None, min_length=1, max_length=32, pattern=USERNAME_PATTERN)
    changes: Optional[List[str]] = Field(default=None, max_length=MAX_CHANGES)
    sleep_struggle: Optional[SleepStruggle] = None
    bed_time: Optional[str] = Field(default=None, pattern=CLOCK_TIME_PATTERN)
    wake_time: Optional[str] = Field(default=None, pattern=CLOCK_TIME_PATTERN)
    sleep_duration: Optional[float] = Field(default=None, ge=0, le=24)
    sleep_quality: Optional[int] = Field(default=None, ge=1, le=10)
    sleep_efficiency: Optional[float] = Field(default=None, ge=0, le=100)
    notes: Optional[str] = Field(default=None, max_length=500)
    tags: Optional[List[str]] = Field(default=None, max_length=MAX_TAGS)
    is_public: Optional[bool] = None

    @field_validator("changes")
    @classmethod
    def validate_changes(cls, v):
        return _clean_changes(v)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v):
        return _clean_tags(v)


class SleepEntryView(BaseModel):
    """Stored fields plus the derived display fields"""
    id: uuid.UUID
    username: str
    changes: List[str]
    sleep_struggle: SleepStruggle
    bed_time: str
    wake_time: str
    sleep_duration: float
    sleep_quality: int
    sleep_efficiency: float
    calculated_duration: Optional[float]
    quality_description: Optional[QualityLabel]
    notes: Optional[str]
    tags: List[str]
    is_public: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SleepEntryResponse(SleepEntryView):
    user_id: uuid.UUID


class PublicSleepEntryResponse(SleepEntryView):
    """Public entries only reveal the owner's display name"""
    owner_display_name: Optional[str] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        start_index = (page - 1) * limit
        return cls(
            page=page,
            limit=limit,
            total=total,
            pages=-(-total // limit),
            has_next=start_index + limit < total,
            has_prev=page > 1,
        )


class SleepEntryPage(BaseModel):
    entries: List[SleepEntryResponse]
    pagination: Pagination


class PublicSleepEntryPage(BaseModel):
    entries: List[PublicSleepEntryResponse]
    pagination: Pagination


class SleepTrend(BaseModel):
    """Newest minus oldest entry of the recent window"""
    duration: float = 0
    quality: float = 0


class SleepStats(BaseModel):
    total_entries: int = 0
    avg_duration: float = 0
    avg_quality: float = 0
    avg_efficiency: float = 0
    min_duration: float = 0
    max_duration: float = 0
    best_quality: float = 0
    worst_quality: float = 0
    trend: SleepTrend = Field(default_factory=SleepTrend)


class SleepStatsResponse(BaseModel):
    stats: SleepStats
    recent_window: int
    recent_entries: List[SleepEntryResponse]
