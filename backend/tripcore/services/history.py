"""
Vehicle history service - the request pipeline.

validate window -> fetch payload -> decode -> filter/sort -> classify -> aggregate

Each call works on its own record list; the service only holds its
injected collaborators, so one instance can serve concurrent requests.
"""

import logging
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Optional

from tripcore.config import Settings
from tripcore.errors import InvalidRequest, InvalidTimeRange, NoMovingWaypoints, VehicleNotFound
from tripcore.models.record import RawTelemetryRecord
from tripcore.models.trip import TripSummary, VehicleHistory, WaypointSnapshot
from tripcore.services.aggregator import compute_trip_statistics, empty_statistics
from tripcore.services.classifier import classify_waypoints
from tripcore.services.codec import decode_waypoints
from tripcore.services.sources import VehicleRegistry, WaypointSource
from tripcore.utils.dates import day_window, format_gps_time, from_gps_seconds, to_gps_seconds, to_gps_seconds_ceil
from tripcore.utils.geo import round_coordinate, to_decimal_degrees


logger = logging.getLogger(__name__)


MAX_HOURS_BACK = 168  # one week
SLOW_SPEED_RAW = 100  # 1 km/h; trip summaries count dips below this as stops


def validate_window(vehicle_id: str, start_time: datetime, end_time: datetime) -> tuple[datetime, datetime]:
    """
    Check a request window before any I/O.

    A zero-width window is widened to one minute.

    Raises:
        InvalidRequest: blank vehicle id
        InvalidTimeRange: start after end
    """
    if not vehicle_id or not vehicle_id.strip():
        raise InvalidRequest("Vehicle ID cannot be empty or whitespace.")
    if start_time == end_time:
        end_time = end_time + timedelta(minutes=1)
    elif start_time > end_time:
        raise InvalidTimeRange(start_time, end_time)
    return start_time, end_time


def filter_window(
    records: list[RawTelemetryRecord],
    start_time: datetime,
    end_time: datetime,
) -> list[RawTelemetryRecord]:
    """Records inside [start, end], sorted by gps_time (stable)."""
    lower = to_gps_seconds_ceil(start_time)
    upper = to_gps_seconds(end_time)
    in_window = [r for r in records if lower <= r.gps_time <= upper]
    return sorted(in_window, key=lambda r: r.gps_time)


def count_slow_segments(ordered: list[RawTelemetryRecord]) -> int:
    """Number of transitions into speeds below 1 km/h."""
    stops = 0
    in_stop = False
    for record in ordered:
        if record.speed < SLOW_SPEED_RAW:
            if not in_stop:
                stops += 1
                in_stop = True
        else:
            in_stop = False
    return stops


def _snapshot(record: RawTelemetryRecord) -> WaypointSnapshot:
    latitude, longitude = to_decimal_degrees(record.x, record.y)
    return WaypointSnapshot(
        timestamp=format_gps_time(record.gps_time),
        latitude=round_coordinate(latitude),
        longitude=round_coordinate(longitude),
        address=record.info or None,
    )


class VehicleHistoryService:
    """Builds vehicle histories and trip summaries from waypoint payloads."""

    def __init__(
        self,
        source: WaypointSource,
        registry: Optional[VehicleRegistry] = None,
        settings: Optional[Settings] = None,
    ):
        self.source = source
        self.registry = registry
        self.settings = settings or Settings()

    def _fetch_records(self, vehicle_id: str, start_time: datetime, end_time: datetime) -> list[RawTelemetryRecord]:
        payload = self.source.fetch_payload(vehicle_id, start_time, end_time)
        records = decode_waypoints(payload)
        logger.debug(f"Decoded {len(records)} records for vehicle {vehicle_id}")
        return records

    def build_history(
        self,
        vehicle_id: str,
        records: list[RawTelemetryRecord],
        start_time: datetime,
        end_time: datetime,
    ) -> VehicleHistory:
        """Filter, classify and aggregate already-decoded records."""
        window = filter_window(records, start_time, end_time)
        if not window:
            logger.info(
                f"No waypoints for vehicle {vehicle_id} between "
                f"{start_time.isoformat()} and {end_time.isoformat()} "
                f"({len(records)} decoded)"
            )
            return VehicleHistory(
                vehicle_id=vehicle_id,
                start_time=start_time,
                end_time=end_time,
                statistics=empty_statistics(len(records)),
            )

        waypoints = classify_waypoints(
            window,
            self.settings.short_idle_seconds,
            self.settings.long_idle_seconds,
        )
        statistics = compute_trip_statistics(
            waypoints,
            len(records),
            self.settings.short_idle_seconds,
            self.settings.long_idle_seconds,
        )
        return VehicleHistory(
            vehicle_id=vehicle_id,
            start_time=start_time,
            end_time=end_time,
            waypoints=tuple(waypoints),
            statistics=statistics,
        )

    def get_history(self, vehicle_id: str, start_time: datetime, end_time: datetime) -> VehicleHistory:
        """
        Waypoint history for a vehicle and local time window.

        Raises:
            InvalidRequest: blank vehicle id
            InvalidTimeRange: start after end
            CorruptPayload: the payload could not be decoded
        """
        start_time, end_time = validate_window(vehicle_id, start_time, end_time)
        logger.info(f"History for vehicle {vehicle_id}: {start_time.isoformat()} -> {end_time.isoformat()}")

        records = self._fetch_records(vehicle_id, start_time, end_time)
        return self.build_history(vehicle_id, records, start_time, end_time)

    def analyze_payload(self, vehicle_id: str, payload: Optional[str]) -> VehicleHistory:
        """Decode and classify a payload directly; the window spans all its records."""
        records = decode_waypoints(payload)
        if not records:
            epoch = from_gps_seconds(0)
            return VehicleHistory(vehicle_id=vehicle_id, start_time=epoch, end_time=epoch, statistics=empty_statistics())

        start_time = from_gps_seconds(min(r.gps_time for r in records))
        end_time = from_gps_seconds(max(r.gps_time for r in records))
        return self.build_history(vehicle_id, records, start_time, end_time)

    def get_history_last_hours(
        self,
        vehicle_id: str,
        hours: int,
        now: Optional[datetime] = None,
    ) -> VehicleHistory:
        if hours <= 0 or hours > MAX_HOURS_BACK:
            raise InvalidRequest(f"Hours must be between 1 and {MAX_HOURS_BACK} (1 week)")

        end_time = now or datetime.now()
        start_time = end_time - timedelta(hours=hours)
        history = self.get_history(vehicle_id, start_time, end_time)
        return replace(history, hours_back=hours)

    def get_history_by_date(self, vehicle_id: str, day: date) -> VehicleHistory:
        start_time, end_time = day_window(day)
        history = self.get_history(vehicle_id, start_time, end_time)
        return replace(history, date=day.isoformat())

    def get_history_by_plate(self, plate: str, start_time: datetime, end_time: datetime) -> VehicleHistory:
        vehicle_id = self.resolve_plate(plate)
        return self.get_history(vehicle_id, start_time, end_time)

    def resolve_plate(self, plate: str) -> str:
        if self.registry is None:
            raise VehicleNotFound("No vehicle registry configured")
        vehicle_id = self.registry.resolve_plate(plate)
        if vehicle_id is None:
            raise VehicleNotFound(f"No vehicle found with plate '{plate}'")
        return vehicle_id

    def get_trip_summary(self, vehicle_id: str, start_time: datetime, end_time: datetime) -> TripSummary:
        """
        Summary over moving waypoints only, using device odometers.

        Raises:
            NoMovingWaypoints: window is empty or every waypoint has zero speed
        """
        start_time, end_time = validate_window(vehicle_id, start_time, end_time)
        records = filter_window(self._fetch_records(vehicle_id, start_time, end_time), start_time, end_time)

        if not records:
            raise NoMovingWaypoints(f"No waypoints found for vehicle {vehicle_id}.")

        moving = [r for r in records if r.is_moving]
        if not moving:
            raise NoMovingWaypoints(
                f"No moving waypoints found for vehicle {vehicle_id} (all waypoints have zero speed)."
            )

        first, last = moving[0], moving[-1]
        speeds = [r.speed / 100.0 for r in moving]

        return TripSummary(
            vehicle_id=vehicle_id,
            start_time=format_gps_time(first.gps_time),
            end_time=format_gps_time(last.gps_time),
            total_distance_km=round((last.mileage - first.mileage) / 1000.0, 3),
            total_gps_distance_km=round((last.gps_mileage - first.gps_mileage) / 1000.0, 2),
            duration_hours=round((last.gps_time - first.gps_time) / 3600.0, 2),
            average_speed_kmh=round(sum(speeds) / len(speeds), 2),
            max_speed_kmh=round(max(speeds), 2),
            stop_count=count_slow_segments(moving),
            total_waypoints=len(records),
            moving_waypoints=len(moving),
            start=_snapshot(first),
            end=_snapshot(last),
        )
