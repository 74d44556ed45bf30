"""Tests for SleepService against an in-memory database"""
import uuid
from datetime import date, datetime

import pytest

from app.schemas.sleep import SleepEntryCreate, SleepEntryUpdate, SleepStruggle
from app.services.sleep_service import SleepService
from app.utils.enums import QualityLabel
from app.utils.exceptions import EntryAccessDeniedError, EntryNotFoundError


@pytest.fixture
def service(db_session):
    return SleepService(db_session)


def new_entry(**overrides):
    data = {
        "username": "test_sleeper",
        "bed_time": "23:30",
        "wake_time": "06:00",
        "sleep_duration": 6.5,
        "sleep_quality": 8,
        "sleep_efficiency": 88,
        "sleep_struggle": SleepStruggle(min=2, max=8),
    }
    data.update(overrides)
    return SleepEntryCreate(**data)


class TestCreateAndRead:

    async def test_create_entry(self, service, test_user, test_access):
        entry = await service.create_entry(test_access, new_entry(tags=["weekday"]))

        assert entry.id is not None
        assert entry.user_id == test_user.id
        assert entry.struggle_min == 2
        assert entry.struggle_max == 8
        assert entry.sleep_struggle == {"min": 2, "max": 8}
        assert entry.tags == ["weekday"]
        assert entry.created_at is not None
        assert entry.calculated_duration == 6.5
        assert entry.quality_description == QualityLabel.excellent

    async def test_owner_reads_private_entry(self, service, test_access):
        created = await service.create_entry(test_access, new_entry())
        fetched = await service.get_entry(test_access, created.id)
        assert fetched.id == created.id

    async def test_stranger_cannot_read_private_entry(self, service, test_access, other_access):
        created = await service.create_entry(test_access, new_entry())
        with pytest.raises(EntryAccessDeniedError):
            await service.get_entry(other_access, created.id)

    async def test_stranger_reads_public_entry(self, service, test_access, other_access):
        created = await service.create_entry(test_access, new_entry(is_public=True))
        fetched = await service.get_entry(other_access, created.id)
        assert fetched.id == created.id

    async def test_missing_entry(self, service, test_access):
        with pytest.raises(EntryNotFoundError):
            await service.get_entry(test_access, uuid.uuid4())


class TestUpdateAndDelete:

    async def test_partial_update(self, service, test_access):
        created = await service.create_entry(test_access, new_entry(notes="restless"))
        updated = await service.update_entry(
            test_access,
            created.id,
            SleepEntryUpdate(wake_time="07:00", sleep_quality=3),
        )

        assert updated.wake_time == "07:00"
        assert updated.sleep_quality == 3
        assert updated.notes == "restless"
        assert updated.calculated_duration == 7.5
        assert updated.quality_description == QualityLabel.poor

    async def test_update_struggle_and_clear_notes(self, service, test_access):
        created = await service.create_entry(test_access, new_entry(notes="restless"))
        updated = await service.update_entry(
            test_access,
            created.id,
            SleepEntryUpdate(sleep_struggle=SleepStruggle(min=8, max=10), notes=None),
        )
        assert updated.sleep_struggle == {"min": 8, "max": 10}
        assert updated.notes is None

    async def test_null_for_required_field_is_ignored(self, service, test_access):
        created = await service.create_entry(test_access, new_entry())
        updated = await service.update_entry(test_access, created.id, SleepEntryUpdate(sleep_duration=None))
        assert updated.sleep_duration == 6.5

    async def test_stranger_cannot_update_public_entry(self, service, test_access, other_access):
        created = await service.create_entry(test_access, new_entry(is_public=True))
        with pytest.raises(EntryAccessDeniedError):
            await service.update_entry(other_access, created.id, SleepEntryUpdate(sleep_quality=1))

    async def test_delete(self, service, test_access):
        created = await service.create_entry(test_access, new_entry())
        await service.delete_entry(test_access, created.id)
        with pytest.raises(EntryNotFoundError):
            await service.get_entry(test_access, created.id)

    async def test_stranger_cannot_delete(self, service, test_access, other_access):
        created = await service.create_entry(test_access, new_entry(is_public=True))
        with pytest.raises(EntryAccessDeniedError):
            await service.delete_entry(other_access, created.id)


class TestListing:

    async def test_newest_first_with_pagination(self, service, test_user, test_access, entry_factory):
        await entry_factory(test_user, [5, 6, 7, 8, 9])

        entries, pagination = await service.list_entries(test_access, page=1, limit=2)
        assert [e.sleep_duration for e in entries] == [9, 8]
        assert pagination.total == 5
        assert pagination.pages == 3
        assert pagination.has_next is True
        assert pagination.has_prev is False

        entries, pagination = await service.list_entries(test_access, page=3, limit=2)
        assert [e.sleep_duration for e in entries] == [5]
        assert pagination.has_next is False

    async def test_same_timestamp_order_is_stable(self, db_session, service, test_user, test_access, entry_factory):
        entries = await entry_factory(test_user, [5, 6, 7, 8])
        for entry in entries:
            entry.created_at = datetime(2024, 1, 1, 7, 0, 0)
        await db_session.flush()
        expected = [e.id for e in sorted(entries, key=lambda e: e.id, reverse=True)]

        first, _ = await service.list_entries(test_access, page=1, limit=2)
        second, _ = await service.list_entries(test_access, page=2, limit=2)
        assert [e.id for e in first + second] == expected

        _, recent = await service.get_stats(test_access, recent_window=2)
        assert [e.id for e in recent] == expected[:2]

    async def test_only_own_entries(self, service, test_user, other_user, test_access, entry_factory):
        await entry_factory(test_user, [7])
        await entry_factory(other_user, [8, 9])

        entries, pagination = await service.list_entries(test_access)
        assert pagination.total == 1
        assert entries[0].user_id == test_user.id

    async def test_filters(self, service, test_user, test_access, entry_factory):
        # Created on 2024-01-01 .. 2024-01-04
        await entry_factory(test_user, [5, 6, 7, 8], qualities=[2, 4, 6, 8])

        entries, _ = await service.list_entries(test_access, min_quality=6)
        assert [e.sleep_quality for e in entries] == [8, 6]

        entries, _ = await service.list_entries(test_access, min_duration=6.5)
        assert [e.sleep_duration for e in entries] == [8, 7]

        entries, _ = await service.list_entries(
            test_access, start_date=date(2024, 1, 2), end_date=date(2024, 1, 3)
        )
        assert [e.sleep_duration for e in entries] == [7, 6]

    async def test_public_listing_loads_owner(self, db_session, service, test_user, other_user, entry_factory):
        await entry_factory(test_user, [7], qualities=[9], is_public=True)
        await entry_factory(other_user, [6], qualities=[3], is_public=True)
        await entry_factory(other_user, [8], is_public=False)
        # Start from an empty identity map, as a fresh request would
        db_session.expunge_all()

        entries, pagination = await service.list_public_entries()
        assert pagination.total == 2
        assert {e.owner_display_name for e in entries} == {"Test Sleeper", "Night Owl"}

        entries, pagination = await service.list_public_entries(min_quality=5)
        assert pagination.total == 1
        assert entries[0].owner_display_name == "Test Sleeper"


class TestStats:

    async def test_no_entries(self, service, test_access):
        stats, recent = await service.get_stats(test_access)
        assert stats.total_entries == 0
        assert stats.avg_duration == 0
        assert stats.trend.duration == 0
        assert recent == []

    async def test_stats_use_creation_order(self, service, test_user, test_access, entry_factory):
        # Oldest first: 7, 6, 8 -> newest first: 8, 6, 7
        await entry_factory(test_user, [7, 6, 8], qualities=[5, 4, 9], efficiencies=[80, 70, 90])

        stats, recent = await service.get_stats(test_access, recent_window=7)
        assert stats.total_entries == 3
        assert stats.avg_duration == 7
        assert stats.min_duration == 6
        assert stats.max_duration == 8
        assert stats.best_quality == 9
        assert stats.worst_quality == 4
        assert stats.avg_efficiency == 80
        assert stats.trend.duration == 1
        assert stats.trend.quality == 4
        assert [e.sleep_duration for e in recent] == [8, 6, 7]

    async def test_recent_window_limits_trend(self, service, test_user, test_access, entry_factory):
        await entry_factory(test_user, [4, 5, 6, 7, 9])

        stats, recent = await service.get_stats(test_access, recent_window=2)
        assert len(recent) == 2
        assert stats.trend.duration == 2
        assert stats.total_entries == 5
        assert stats.min_duration == 4

    async def test_other_users_entries_excluded(self, service, test_user, other_user, test_access, entry_factory):
        await entry_factory(test_user, [8])
        await entry_factory(other_user, [3, 4])

        stats, _ = await service.get_stats(test_access)
        assert stats.total_entries == 1
        assert stats.avg_duration == 8
