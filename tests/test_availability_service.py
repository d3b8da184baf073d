"""
Tests for the single-day availability resolver.

2024-01-15 is a Monday; New York is on EST (UTC-5) that week.
"""

import asyncio
from datetime import UTC, datetime

import pytest

from careslots.core.errors import DataAccessError, ErrorKind
from careslots.models.slot import AvailableSlots, ErrorResult
from careslots.services.availability_service import is_slot_available, resolve_available_slots
from conftest import PROVIDER, TZ, local

MONDAY = "2024-01-15"
MON = 1
SUN = 0


async def labels(data_source, date_str=MONDAY, duration=60, **kwargs):
    result = await resolve_available_slots(data_source, PROVIDER, date_str, duration, TZ, **kwargs)
    assert isinstance(result, AvailableSlots), result
    return [s.local_label for s in result.slots]


class TestScenario:
    async def test_booked_slot_is_removed(self, data_source):
        data_source.add_rule(MON, "09:00", "11:00")
        data_source.add_appointment(local(MONDAY, "10:00"), status="scheduled")
        assert await labels(data_source) == ["09:00"]

    async def test_cancelled_appointment_never_blocks(self, data_source):
        data_source.add_rule(MON, "09:00", "11:00")
        data_source.add_appointment(local(MONDAY, "10:00"), status="cancelled")
        assert await labels(data_source) == ["09:00", "10:00"]

    async def test_pending_blocks(self, data_source):
        data_source.add_rule(MON, "09:00", "11:00")
        data_source.add_appointment(local(MONDAY, "09:00"), status="pending")
        assert await labels(data_source) == ["10:00"]

    async def test_confirmed_only_blocks_when_configured(self, data_source):
        data_source.add_rule(MON, "09:00", "11:00")
        data_source.add_appointment(local(MONDAY, "09:00"), status="confirmed")
        assert await labels(data_source) == ["09:00", "10:00"]
        statuses = {"scheduled", "pending", "confirmed"}
        assert await labels(data_source, blocking_statuses=statuses) == ["10:00"]

    async def test_non_blocking_rows_from_a_loose_data_source_are_ignored(self, data_source):
        data_source.add_rule(MON, "09:00", "11:00")
        data_source.add_appointment(local(MONDAY, "10:00"), status="cancelled")

        async def unfiltered(provider_id, range_start, range_end, statuses):
            return data_source.appointments

        data_source.get_blocking_appointments = unfiltered
        assert await labels(data_source) == ["09:00", "10:00"]

    async def test_slot_carries_utc_instants(self, data_source):
        data_source.add_rule(MON, "09:00", "10:00")
        result = await resolve_available_slots(data_source, PROVIDER, MONDAY, 60, TZ)
        slot = result.slots[0]
        assert slot.start_utc == datetime(2024, 1, 15, 14, 0, tzinfo=UTC)
        assert slot.end_utc == datetime(2024, 1, 15, 15, 0, tzinfo=UTC)
        assert result.date == MONDAY


class TestHalfOpenBoundaries:
    async def test_one_hour_window_gives_one_slot(self, data_source):
        data_source.add_rule(MON, "09:00", "10:00")
        assert await labels(data_source) == ["09:00"]

    async def test_block_ending_at_slot_start_does_not_exclude(self, data_source):
        data_source.add_rule(MON, "09:00", "10:00")
        data_source.add_block(local(MONDAY, "08:00"), local(MONDAY, "09:00"))
        assert await labels(data_source) == ["09:00"]

    async def test_partially_overlapping_block_excludes(self, data_source):
        data_source.add_rule(MON, "09:00", "10:00")
        data_source.add_block(local(MONDAY, "09:30"), local(MONDAY, "10:30"))
        assert await labels(data_source) == []

    async def test_block_starting_at_slot_end_does_not_exclude(self, data_source):
        data_source.add_rule(MON, "09:00", "10:00")
        data_source.add_block(local(MONDAY, "10:00"), local(MONDAY, "11:00"))
        assert await labels(data_source) == ["09:00"]

    async def test_back_to_back_appointment(self, data_source):
        data_source.add_rule(MON, "09:00", "11:00")
        data_source.add_appointment(local(MONDAY, "09:00"), duration=60)
        assert await labels(data_source) == ["10:00"]

    async def test_longer_appointment_covers_next_slot(self, data_source):
        data_source.add_rule(MON, "09:00", "12:00")
        data_source.add_appointment(local(MONDAY, "09:00"), duration=90)
        assert await labels(data_source) == ["11:00"]

    async def test_multi_day_block(self, data_source):
        data_source.add_rule(MON, "09:00", "17:00")
        data_source.add_block(local("2024-01-12", "12:00"), local("2024-01-16", "12:00"))
        assert await labels(data_source) == []

    async def test_available_block_flag_does_not_exclude(self, data_source):
        data_source.add_rule(MON, "09:00", "10:00")
        data_source.add_block(local(MONDAY, "09:00"), local(MONDAY, "10:00"), is_unavailable=False)
        assert await labels(data_source) == ["09:00"]


class TestZeroDurationAppointments:
    @pytest.mark.parametrize("duration", [None, 0])
    async def test_excludes_slot_containing_its_start(self, data_source, duration):
        data_source.add_rule(MON, "09:00", "11:00")
        data_source.add_appointment(local(MONDAY, "09:30"), duration=duration)
        assert await labels(data_source) == ["10:00"]

    async def test_at_slot_boundary_excludes_only_that_slot(self, data_source):
        data_source.add_rule(MON, "09:00", "11:00")
        data_source.add_appointment(local(MONDAY, "10:00"), duration=None)
        assert await labels(data_source) == ["09:00"]


class TestRules:
    async def test_no_rule_is_empty_success(self, data_source):
        data_source.add_rule(SUN, "09:00", "17:00")
        result = await resolve_available_slots(data_source, PROVIDER, MONDAY, 60, TZ)
        assert result == AvailableSlots(date=MONDAY, slots=[])

    async def test_overlapping_rules_are_deduplicated(self, data_source):
        data_source.add_rule(MON, "09:00", "11:00")
        data_source.add_rule(MON, "10:00", "12:00")
        data_source.add_rule(MON, "14:00", "15:00")
        assert await labels(data_source) == ["09:00", "10:00", "11:00", "14:00"]

    async def test_misaligned_rules_keep_their_own_alignment(self, data_source):
        data_source.add_rule(MON, "09:00", "10:00")
        data_source.add_rule(MON, "09:30", "10:30")
        assert await labels(data_source) == ["09:00", "09:30"]

    async def test_malformed_rule_is_skipped(self, data_source, caplog):
        bad = data_source.add_rule(MON, "nine", "11:00")
        data_source.add_rule(MON, "13:00", "12:00")
        data_source.add_rule(MON, "14:00", "15:00")
        assert await labels(data_source) == ["14:00"]
        assert f"weekly rule {bad.id}" in caplog.text

    async def test_end_of_day_rule(self, data_source):
        data_source.add_rule(MON, "22:00", "24:00")
        assert await labels(data_source) == ["22:00", "23:00"]

    async def test_malformed_block_and_appointment_are_skipped(self, data_source):
        data_source.add_rule(MON, "09:00", "11:00")
        data_source.add_block(local(MONDAY, "10:00"), local(MONDAY, "09:00"))
        data_source.add_appointment(local(MONDAY, "09:00"), duration=-30)
        assert await labels(data_source) == ["09:00", "10:00"]

    async def test_other_provider_rows_are_not_used(self, data_source):
        data_source.add_rule(MON, "09:00", "10:00")
        data_source.add_appointment(local(MONDAY, "09:00"), provider_id="prov-2")
        assert await labels(data_source) == ["09:00"]


class TestDaylightSaving:
    async def test_spring_forward_gap(self, data_source):
        # 2024-03-10 is a Sunday; 02:00-03:00 does not exist in New York.
        data_source.add_rule(SUN, "01:00", "04:00")
        data_source.add_rule(SUN, "02:00", "03:00")
        assert await labels(data_source, "2024-03-10") == ["01:00", "03:00"]

    async def test_rule_entirely_in_gap_is_empty_not_error(self, data_source):
        data_source.add_rule(SUN, "02:00", "03:00")
        assert await labels(data_source, "2024-03-10") == []

    async def test_fall_back_repeats_an_hour(self, data_source):
        data_source.add_rule(SUN, "00:00", "03:00")
        result = await resolve_available_slots(data_source, PROVIDER, "2024-11-03", 60, TZ)
        assert [s.local_label for s in result.slots] == ["00:00", "01:00", "01:00", "02:00"]
        assert [s.start_utc.hour for s in result.slots] == [4, 5, 6, 7]

    async def test_summer_slots(self, data_source):
        data_source.add_rule(MON, "09:00", "10:00")
        result = await resolve_available_slots(data_source, PROVIDER, "2024-07-01", 60, TZ)
        assert result.slots[0].start_utc == datetime(2024, 7, 1, 13, 0, tzinfo=UTC)
        assert result.slots[0].local_label == "09:00"


class TestErrors:
    @pytest.mark.parametrize(
        "provider_id,date_str,duration,tz_name",
        [
            ("", MONDAY, 60, TZ),
            ("   ", MONDAY, 60, TZ),
            (None, MONDAY, 60, TZ),
            (PROVIDER, "2024-13-01", 60, TZ),
            (PROVIDER, "Monday", 60, TZ),
            (PROVIDER, MONDAY, 0, TZ),
            (PROVIDER, MONDAY, -15, TZ),
            (PROVIDER, MONDAY, "60", TZ),
            (PROVIDER, MONDAY, 60, ""),
            (PROVIDER, MONDAY, 60, "Not/AZone"),
        ],
    )
    async def test_invalid_input(self, data_source, provider_id, date_str, duration, tz_name):
        result = await resolve_available_slots(data_source, provider_id, date_str, duration, tz_name)
        assert isinstance(result, ErrorResult)
        assert result.error == ErrorKind.invalid_input
        assert data_source.calls == []

    async def test_data_access_error(self, data_source):
        data_source.add_rule(MON, "09:00", "10:00")

        async def failing(*args):
            raise DataAccessError("connection refused")

        data_source.get_unavailability_blocks = failing
        result = await resolve_available_slots(data_source, PROVIDER, MONDAY, 60, TZ)
        assert result == ErrorResult(error=ErrorKind.data_access, detail="connection refused")

    async def test_failed_read_cancels_the_others(self, data_source):
        sibling_cancelled = asyncio.Event()

        async def failing(*args):
            await asyncio.sleep(0)
            raise DataAccessError("connection refused")

        async def slow(*args):
            try:
                await asyncio.sleep(3600)
            except asyncio.CancelledError:
                sibling_cancelled.set()
                raise

        data_source.get_unavailability_blocks = failing
        data_source.get_blocking_appointments = slow
        result = await resolve_available_slots(data_source, PROVIDER, MONDAY, 60, TZ)
        assert result == ErrorResult(error=ErrorKind.data_access, detail="connection refused")
        assert sibling_cancelled.is_set()

    async def test_malformed_read_result_gives_empty_day(self, data_source):
        data_source.add_rule(MON, "09:00", "10:00")

        async def no_rows(*args):
            return None

        data_source.get_unavailability_blocks = no_rows
        assert await labels(data_source) == []

    async def test_connection_error_is_a_data_access_error(self, data_source):
        async def failing(*args):
            raise ConnectionResetError("reset by peer")

        data_source.get_weekly_rules = failing
        result = await resolve_available_slots(data_source, PROVIDER, MONDAY, 60, TZ)
        assert isinstance(result, ErrorResult)
        assert result.error == ErrorKind.data_access

    async def test_cancellation_propagates(self, data_source):
        started = asyncio.Event()

        async def slow(*args):
            started.set()
            await asyncio.sleep(3600)

        data_source.get_blocking_appointments = slow
        task = asyncio.create_task(resolve_available_slots(data_source, PROVIDER, MONDAY, 60, TZ))
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    async def test_caller_deadline(self, data_source):
        async def slow(*args):
            await asyncio.sleep(3600)

        data_source.get_weekly_rules = slow
        with pytest.raises(TimeoutError):
            async with asyncio.timeout(0.01):
                await resolve_available_slots(data_source, PROVIDER, MONDAY, 60, TZ)


class TestSlotCheck:
    async def test_open_and_booked_slots(self, data_source):
        data_source.add_rule(MON, "09:00", "11:00")
        data_source.add_appointment(local(MONDAY, "10:00"))
        assert await is_slot_available(data_source, PROVIDER, local(MONDAY, "09:00"), 60, TZ) is True
        assert await is_slot_available(data_source, PROVIDER, local(MONDAY, "10:00"), 60, TZ) is False

    async def test_unaligned_start_is_not_a_slot(self, data_source):
        data_source.add_rule(MON, "09:00", "11:00")
        assert await is_slot_available(data_source, PROVIDER, "2024-01-15T14:30:00Z", 60, TZ) is False

    async def test_iso_string_start(self, data_source):
        data_source.add_rule(MON, "09:00", "11:00")
        assert await is_slot_available(data_source, PROVIDER, "2024-01-15T09:00:00-05:00", 60, TZ) is True

    async def test_bad_instant(self, data_source):
        result = await is_slot_available(data_source, PROVIDER, "soon", 60, TZ)
        assert isinstance(result, ErrorResult)
        assert result.error == ErrorKind.invalid_input

    async def test_instant_outside_utc_range(self, data_source):
        result = await is_slot_available(
            data_source, PROVIDER, "0001-01-01T00:00:00+09:00", 60, "Asia/Tokyo"
        )
        assert isinstance(result, ErrorResult)
        assert result.error == ErrorKind.invalid_input
        assert data_source.calls == []
