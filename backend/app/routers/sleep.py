from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from datetime import date
import uuid

from app.config import settings
from app.database import get_db
from app.schemas.sleep import (
    SleepEntryCreate, SleepEntryUpdate, SleepEntryResponse, SleepEntryPage,
    PublicSleepEntryResponse, PublicSleepEntryPage, SleepStatsResponse,
)
from app.services.sleep_service import SleepService
from app.utils.exceptions import SleepJournalError, EntryNotFoundError, EntryAccessDeniedError
from app.utils.security import EntryAccess, get_entry_access

router = APIRouter()


def _entry_error(e: SleepJournalError) -> HTTPException:
    if isinstance(e, EntryNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.to_dict())
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.to_dict())


@router.get("/public", response_model=PublicSleepEntryPage)
async def get_public_sleep_entries(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    min_quality: Optional[int] = Query(None, ge=1, le=10, description="Minimum sleep quality"),
    db: AsyncSession = Depends(get_db)
):
    """Browse entries other users chose to share"""
    service = SleepService(db)
    entries, pagination = await service.list_public_entries(
        page=page, limit=limit, min_quality=min_quality
    )
    return PublicSleepEntryPage(
        entries=[PublicSleepEntryResponse.model_validate(e) for e in entries],
        pagination=pagination,
    )


@router.post("", response_model=SleepEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_sleep_entry(
    entry_data: SleepEntryCreate,
    access: EntryAccess = Depends(get_entry_access),
    db: AsyncSession = Depends(get_db)
):
    """Create a new sleep entry"""
    service = SleepService(db)
    return await service.create_entry(access, entry_data)


@router.get("", response_model=SleepEntryPage)
async def get_sleep_entries(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    start_date: Optional[date] = Query(None, description="Start date filter"),
    end_date: Optional[date] = Query(None, description="End date filter"),
    min_quality: Optional[int] = Query(None, ge=1, le=10, description="Minimum sleep quality"),
    min_duration: Optional[float] = Query(None, ge=0, le=24, description="Minimum sleep duration in hours"),
    access: EntryAccess = Depends(get_entry_access),
    db: AsyncSession = Depends(get_db)
):
    """Get the current user's sleep entries, newest first"""
    service = SleepService(db)
    entries, pagination = await service.list_entries(
        access,
        page=page,
        limit=limit,
        start_date=start_date,
        end_date=end_date,
        min_quality=min_quality,
        min_duration=min_duration,
    )
    return SleepEntryPage(
        entries=[SleepEntryResponse.model_validate(e) for e in entries],
        pagination=pagination,
    )


@router.get("/stats", response_model=SleepStatsResponse)
async def get_sleep_stats(
    recent_window: int = Query(
        settings.STATS_RECENT_WINDOW, ge=1, le=100,
        description="Number of most recent entries the trend spans"
    ),
    access: EntryAccess = Depends(get_entry_access),
    db: AsyncSession = Depends(get_db)
):
    """
    Get sleep statistics for the current user.

    Averages and extrema cover every entry. The trend is the newest entry
    minus the oldest entry within the recent window.
    """
    service = SleepService(db)
    stats, recent = await service.get_stats(access, recent_window=recent_window)
    return SleepStatsResponse(
        stats=stats,
        recent_window=recent_window,
        recent_entries=[SleepEntryResponse.model_validate(e) for e in recent],
    )


@router.get("/{entry_id}", response_model=SleepEntryResponse)
async def get_sleep_entry(
    entry_id: uuid.UUID,
    access: EntryAccess = Depends(get_entry_access),
    db: AsyncSession = Depends(get_db)
):
    """Get a specific sleep entry (own or public)"""
    service = SleepService(db)
    try:
        return await service.get_entry(access, entry_id)
    except (EntryNotFoundError, EntryAccessDeniedError) as e:
        raise _entry_error(e)


@router.put("/{entry_id}", response_model=SleepEntryResponse)
async def update_sleep_entry(
    entry_id: uuid.UUID,
    update_data: SleepEntryUpdate,
    access: EntryAccess = Depends(get_entry_access),
    db: AsyncSession = Depends(get_db)
):
    """Update a sleep entry"""
    service = SleepService(db)
    try:
        return await service.update_entry(access, entry_id, update_data)
    except (EntryNotFoundError, EntryAccessDeniedError) as e:
        raise _entry_error(e)


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_sleep_entry(
    entry_id: uuid.UUID,
    access: EntryAccess = Depends(get_entry_access),
    db: AsyncSession = Depends(get_db)
):
    """Delete a sleep entry"""
    service = SleepService(db)
    try:
        await service.delete_entry(access, entry_id)
    except (EntryNotFoundError, EntryAccessDeniedError) as e:
        raise _entry_error(e)
