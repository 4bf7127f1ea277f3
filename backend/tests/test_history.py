"""
Tests for the vehicle history service.
"""

from datetime import date, datetime, timedelta

import pytest

from tripcore.config import Settings
from tripcore.errors import CorruptPayload, InvalidRequest, InvalidTimeRange, NoMovingWaypoints, VehicleNotFound
from tripcore.models.record import RawTelemetryRecord
from tripcore.models.trip import MotionState, TripStatus
from tripcore.services.codec import encode_waypoints
from tripcore.services.history import (
    VehicleHistoryService,
    count_slow_segments,
    filter_window,
    validate_window,
)
from tripcore.services.sources import StaticVehicleRegistry, StaticWaypointSource
from tripcore.utils.dates import to_gps_seconds


START = datetime(2026, 1, 7, 8, 0, 0)
T0 = to_gps_seconds(START)


def _record(offset_s: int, speed: int, lat_steps: int = 0, **kwargs) -> RawTelemetryRecord:
    return RawTelemetryRecord(
        vehicle_id="VH-001",
        gps_time=T0 + offset_s,
        x=106_700_000,
        y=10_000_000 + lat_steps * 1_000,
        speed=speed,
        **kwargs,
    )


@pytest.fixture
def trip_records():
    """Short trip with a 1 km/h crawl and a standstill."""
    return [
        _record(0, 5000, 0, mileage=1_000, gps_mileage=990, info="Depot"),
        _record(60, 0, 1, mileage=1_200, gps_mileage=1_180),
        _record(120, 50, 2, mileage=2_000, gps_mileage=1_990),
        _record(180, 4000, 3, mileage=3_500, gps_mileage=3_480, info="Customer"),
    ]


@pytest.fixture
def source(trip_records):
    return StaticWaypointSource({
        "VH-001": encode_waypoints(trip_records, framed=True),
        "VH-PARKED": encode_waypoints([_record(i * 60, 0) for i in range(4)]),
        "VH-BROKEN": "!!!not base64!!!",
    })


@pytest.fixture
def service(source):
    registry = StaticVehicleRegistry({"51A-123.45": "VH-001"})
    return VehicleHistoryService(source, registry=registry)


class TestValidateWindow:
    """Request window validation."""

    def test_valid(self):
        assert validate_window("VH-001", START, START + timedelta(hours=1)) == (
            START, START + timedelta(hours=1)
        )

    def test_zero_width_widened(self):
        assert validate_window("VH-001", START, START) == (START, START + timedelta(minutes=1))

    def test_reversed_window(self):
        with pytest.raises(InvalidTimeRange):
            validate_window("VH-001", START, START - timedelta(seconds=1))

    def test_invalid_time_range_is_value_error(self):
        with pytest.raises(ValueError):
            validate_window("VH-001", START, START - timedelta(hours=1))

    @pytest.mark.parametrize("vehicle_id", ["", "   "])
    def test_blank_vehicle_id(self, vehicle_id):
        with pytest.raises(InvalidRequest, match="Vehicle ID"):
            validate_window(vehicle_id, START, START + timedelta(hours=1))


class TestFilterWindow:
    """Time filtering and ordering of decoded records."""

    def test_bounds_inclusive(self):
        records = [_record(-1, 0), _record(0, 0), _record(60, 0), _record(61, 0)]
        window = filter_window(records, START, START + timedelta(seconds=60))
        assert [r.gps_time - T0 for r in window] == [0, 60]

    def test_fractional_bounds_stay_inside_window(self):
        records = [_record(0, 0), _record(1, 0), _record(60, 0), _record(61, 0)]
        window = filter_window(
            records,
            START + timedelta(milliseconds=500),
            START + timedelta(seconds=60, milliseconds=500),
        )
        assert [r.gps_time - T0 for r in window] == [1, 60]

    def test_sorted(self):
        records = [_record(120, 1), _record(0, 2), _record(60, 3)]
        assert [r.speed for r in filter_window(records, START, START + timedelta(hours=1))] == [2, 3, 1]

    def test_sort_is_stable(self):
        records = [_record(60, 1), _record(0, 2), _record(60, 3)]
        assert [r.speed for r in filter_window(records, START, START + timedelta(hours=1))] == [2, 1, 3]


class TestGetHistory:
    """Full history pipeline."""

    def test_history(self, service):
        history = service.get_history("VH-001", START, START + timedelta(hours=1))

        assert not history.is_empty
        assert len(history.waypoints) == 4
        assert history.statistics.status == TripStatus.OK
        assert history.statistics.total_distance_km == 0.333
        assert history.statistics.raw_record_count == 4
        assert history.waypoints[1].motion_state == MotionState.RUNNING

    def test_unknown_vehicle_is_empty(self, service):
        history = service.get_history("VH-404", START, START + timedelta(hours=1))

        assert history.is_empty
        assert history.statistics.status == TripStatus.NO_DATA
        assert history.statistics.raw_record_count == 0

    def test_window_without_records(self, service):
        history = service.get_history("VH-001", START + timedelta(hours=2), START + timedelta(hours=3))

        assert history.is_empty
        assert history.statistics.status == TripStatus.NO_DATA
        assert history.statistics.raw_record_count == 4

    def test_single_record_window(self, service):
        history = service.get_history("VH-001", START, START + timedelta(seconds=30))

        assert len(history.waypoints) == 1
        assert history.statistics.status == TripStatus.INSUFFICIENT_RECORDS

    def test_zero_width_window(self, service):
        history = service.get_history("VH-001", START, START)

        assert history.end_time == START + timedelta(minutes=1)
        assert len(history.waypoints) == 2

    def test_corrupt_payload(self, service):
        with pytest.raises(CorruptPayload):
            service.get_history("VH-BROKEN", START, START + timedelta(hours=1))

    def test_custom_thresholds(self, source):
        service = VehicleHistoryService(source, settings=Settings(short_idle_seconds=30, long_idle_seconds=60))
        history = service.get_history("VH-PARKED", START, START + timedelta(hours=1))
        assert {w.motion_state for w in history.waypoints} == {MotionState.STOP}

    def test_analyze_payload(self, service, trip_records):
        history = service.analyze_payload("adhoc", encode_waypoints(list(reversed(trip_records))))

        assert history.start_time == START
        assert history.end_time == START + timedelta(seconds=180)
        assert [w.raw_gps_time - T0 for w in history.waypoints] == [0, 60, 120, 180]

    def test_analyze_empty_payload(self, service):
        history = service.analyze_payload("adhoc", "")
        assert history.is_empty
        assert history.statistics.status == TripStatus.NO_DATA


class TestConvenienceWindows:
    """Last-hours and by-date windows."""

    def test_last_hours(self, service):
        now = START + timedelta(hours=1)
        history = service.get_history_last_hours("VH-001", 2, now=now)

        assert history.hours_back == 2
        assert history.start_time == now - timedelta(hours=2)
        assert history.end_time == now
        assert len(history.waypoints) == 4

    @pytest.mark.parametrize("hours", [0, -1, 169])
    def test_last_hours_out_of_range(self, service, hours):
        with pytest.raises(InvalidRequest, match="Hours must be between"):
            service.get_history_last_hours("VH-001", hours)

    def test_last_hours_upper_bound(self, service):
        history = service.get_history_last_hours("VH-001", 168, now=START + timedelta(hours=1))
        assert history.hours_back == 168

    def test_by_date(self, service):
        history = service.get_history_by_date("VH-001", date(2026, 1, 7))

        assert history.date == "2026-01-07"
        assert history.start_time == datetime(2026, 1, 7, 0, 0, 0)
        assert history.end_time == datetime(2026, 1, 7, 23, 59, 59)
        assert len(history.waypoints) == 4

    def test_by_other_date(self, service):
        assert service.get_history_by_date("VH-001", date(2026, 1, 8)).is_empty


class TestPlateLookup:
    """Plate resolution through the registry."""

    def test_by_plate(self, service):
        history = service.get_history_by_plate(" 51a-123.45 ", START, START + timedelta(hours=1))
        assert history.vehicle_id == "VH-001"
        assert len(history.waypoints) == 4

    def test_unknown_plate(self, service):
        with pytest.raises(VehicleNotFound):
            service.get_history_by_plate("99Z-999.99", START, START + timedelta(hours=1))

    def test_no_registry(self, source):
        service = VehicleHistoryService(source)
        with pytest.raises(VehicleNotFound):
            service.resolve_plate("51A-123.45")


class TestTripSummary:
    """Moving-only trip summary."""

    def test_summary(self, service):
        summary = service.get_trip_summary("VH-001", START, START + timedelta(hours=1))

        assert summary.total_distance_km == 2.5
        assert summary.total_gps_distance_km == 2.49
        assert summary.duration_hours == 0.05
        assert summary.average_speed_kmh == 30.17
        assert summary.max_speed_kmh == 50.0
        assert summary.stop_count == 1
        assert summary.total_waypoints == 4
        assert summary.moving_waypoints == 3
        assert summary.start_time == "07-01-2026 08:00:00"
        assert summary.end_time == "07-01-2026 08:03:00"
        assert summary.start.address == "Depot"
        assert summary.end.address == "Customer"
        assert summary.end.latitude == 10.003

    def test_all_zero_speed(self, service):
        with pytest.raises(NoMovingWaypoints, match="zero speed"):
            service.get_trip_summary("VH-PARKED", START, START + timedelta(hours=1))

    def test_no_waypoints(self, service):
        with pytest.raises(NoMovingWaypoints, match="No waypoints found"):
            service.get_trip_summary("VH-404", START, START + timedelta(hours=1))

    def test_reversed_window(self, service):
        with pytest.raises(InvalidTimeRange):
            service.get_trip_summary("VH-001", START, START - timedelta(hours=1))


class TestCountSlowSegments:
    """Transitions into speeds below 1 km/h."""

    def test_counts_transitions(self):
        records = [_record(i, s) for i, s in enumerate([500, 50, 0, 600, 90, 700])]
        assert count_slow_segments(records) == 2

    def test_starts_slow(self):
        records = [_record(i, s) for i, s in enumerate([0, 0, 500])]
        assert count_slow_segments(records) == 1

    def test_boundary(self):
        records = [_record(i, s) for i, s in enumerate([100, 99, 100])]
        assert count_slow_segments(records) == 1
