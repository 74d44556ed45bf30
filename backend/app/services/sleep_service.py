from typing import List, Optional, Tuple
from datetime import date, datetime, time, timedelta
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload
import logging
import uuid

from app.models.sleep_entry import SleepEntry
from app.schemas.sleep import SleepEntryCreate, SleepEntryUpdate, SleepStats, Pagination
from app.services.sleep_metrics import summarize, DEFAULT_RECENT_WINDOW
from app.utils.exceptions import EntryNotFoundError, EntryAccessDeniedError
from app.utils.security import EntryAccess

logger = logging.getLogger(__name__)

# Columns that may be cleared by sending null in an update
NULLABLE_FIELDS = {"notes"}


class SleepService:
    """Sleep journal entries: storage, access control and statistics"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_entry(self, access: EntryAccess, entry_data: SleepEntryCreate) -> SleepEntry:
        """Create a new entry owned by the capability holder"""
        data = entry_data.model_dump(exclude={"sleep_struggle"})
        entry = SleepEntry(
            user_id=access.user_id,
            struggle_min=entry_data.sleep_struggle.min,
            struggle_max=entry_data.sleep_struggle.max,
            **data
        )
        self.db.add(entry)
        await self.db.flush()
        await self.db.refresh(entry)
        logger.info(f"User {access.user_id} created sleep entry {entry.id}")
        return entry

    async def list_entries(
        self,
        access: EntryAccess,
        page: int = 1,
        limit: int = 10,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        min_quality: Optional[int] = None,
        min_duration: Optional[float] = None,
    ) -> Tuple[List[SleepEntry], Pagination]:
        """
        Page through the capability holder's own entries, newest first.

        Args:
            access: Capability of the requesting user
            page: 1-based page number
            limit: Entries per page
            start_date: Only entries created on or after this day
            end_date: Only entries created on or before this day
            min_quality: Only entries with at least this quality
            min_duration: Only entries with at least this declared duration

        Returns:
            The page of entries and its pagination info
        """
        conditions = [SleepEntry.user_id == access.user_id]
        if start_date:
            conditions.append(SleepEntry.created_at >= datetime.combine(start_date, time.min))
        if end_date:
            conditions.append(SleepEntry.created_at < datetime.combine(end_date + timedelta(days=1), time.min))
        if min_quality is not None:
            conditions.append(SleepEntry.sleep_quality >= min_quality)
        if min_duration is not None:
            conditions.append(SleepEntry.sleep_duration >= min_duration)

        return await self._paginate(conditions, page, limit)

    async def list_public_entries(
        self,
        page: int = 1,
        limit: int = 10,
        min_quality: Optional[int] = None,
    ) -> Tuple[List[SleepEntry], Pagination]:
        """Page through everyone's public entries, newest first, with owners loaded"""
        conditions = [SleepEntry.is_public.is_(True)]
        if min_quality is not None:
            conditions.append(SleepEntry.sleep_quality >= min_quality)

        return await self._paginate(conditions, page, limit, load_owner=True)

    async def get_entry(self, access: EntryAccess, entry_id: uuid.UUID) -> SleepEntry:
        """Fetch one entry the capability holder may read"""
        entry = await self._get(entry_id)
        if not access.can_read(entry):
            logger.warning(f"User {access.user_id} denied read of sleep entry {entry_id}")
            raise EntryAccessDeniedError("Not authorized to access this sleep data")
        return entry

    async def update_entry(
        self,
        access: EntryAccess,
        entry_id: uuid.UUID,
        update_data: SleepEntryUpdate,
    ) -> SleepEntry:
        """Apply a partial update to an entry the capability holder owns"""
        entry = await self._get(entry_id)
        if not access.can_write(entry):
            logger.warning(f"User {access.user_id} denied update of sleep entry {entry_id}")
            raise EntryAccessDeniedError("Not authorized to update this sleep data")

        update_dict = update_data.model_dump(exclude_unset=True)
        struggle = update_dict.pop("sleep_struggle", None)
        if struggle is not None:
            entry.struggle_min = struggle["min"]
            entry.struggle_max = struggle["max"]

        for field, value in update_dict.items():
            if value is None and field not in NULLABLE_FIELDS:
                continue
            setattr(entry, field, value)

        await self.db.flush()
        await self.db.refresh(entry)
        logger.info(f"User {access.user_id} updated sleep entry {entry_id}")
        return entry

    async def delete_entry(self, access: EntryAccess, entry_id: uuid.UUID) -> None:
        """Delete an entry the capability holder owns"""
        entry = await self._get(entry_id)
        if not access.can_write(entry):
            logger.warning(f"User {access.user_id} denied delete of sleep entry {entry_id}")
            raise EntryAccessDeniedError("Not authorized to delete this sleep data")

        await self.db.delete(entry)
        await self.db.flush()
        logger.info(f"User {access.user_id} deleted sleep entry {entry_id}")

    async def get_stats(
        self,
        access: EntryAccess,
        recent_window: int = DEFAULT_RECENT_WINDOW,
    ) -> Tuple[SleepStats, List[SleepEntry]]:
        """
        Summary statistics over all of the user's entries.

        Returns:
            The summary and the recent entries the trend was computed from
        """
        result = await self.db.execute(
            select(SleepEntry)
            .where(SleepEntry.user_id == access.user_id)
            .order_by(SleepEntry.created_at.desc(), SleepEntry.id.desc())
        )
        entries = list(result.scalars().all())

        stats = summarize(entries, recent_window=recent_window)
        return stats, entries[:recent_window]

    async def _get(self, entry_id: uuid.UUID) -> SleepEntry:
        entry = await self.db.get(SleepEntry, entry_id)
        if entry is None:
            raise EntryNotFoundError()
        return entry

    async def _paginate(
        self,
        conditions: list,
        page: int,
        limit: int,
        load_owner: bool = False,
    ) -> Tuple[List[SleepEntry], Pagination]:
        total = await self.db.scalar(
            select(func.count()).select_from(SleepEntry).where(*conditions)
        )

        query = (
            select(SleepEntry)
            .where(*conditions)
            .order_by(SleepEntry.created_at.desc(), SleepEntry.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        if load_owner:
            query = query.options(selectinload(SleepEntry.user))

        result = await self.db.execute(query)
        entries = list(result.scalars().all())
        return entries, Pagination.build(page=page, limit=limit, total=total or 0)
