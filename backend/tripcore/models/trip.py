"""
Trip analytics model.

Everything the classifier and aggregator produce:
- per-waypoint summaries in decimal units with a motion state
- trip statistics over a filtered record window
- request-level history and trip summary results
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class MotionState(Enum):
    """Motion state assigned to each waypoint."""

    RUNNING = "running"
    IDLE = "idle"
    STOP = "stop"


class TripStatus(Enum):
    """Marker telling callers why a statistics object is (or is not) populated."""

    OK = "ok"
    NO_DATA = "no_data"
    INSUFFICIENT_RECORDS = "insufficient_records"


@dataclass(frozen=True)
class WaypointSummary:
    """A raw record enriched with decimal units, distance and motion state."""

    timestamp: str              # dd-mm-YYYY HH:MM:SS, local time
    raw_gps_time: int
    latitude: float
    longitude: float
    altitude: int
    speed: float                # km/h
    heading: int
    satellites: int
    mileage: float              # km
    gps_mileage: float          # km
    cumulative_distance_km: float
    event_id: int
    status: int
    voltage: float              # volts
    battery: int
    motion_state: MotionState
    driver_id: Optional[str] = None
    driver_code: Optional[str] = None
    info: Optional[str] = None

    @property
    def is_moving(self) -> bool:
        return self.speed > 0


@dataclass(frozen=True)
class WaypointSnapshot:
    """Start or end point of a trip."""

    timestamp: str
    latitude: float
    longitude: float
    address: Optional[str] = None

    @classmethod
    def from_waypoint(cls, waypoint: WaypointSummary) -> "WaypointSnapshot":
        return cls(
            timestamp=waypoint.timestamp,
            latitude=waypoint.latitude,
            longitude=waypoint.longitude,
            address=waypoint.info,
        )


@dataclass(frozen=True)
class TripStatistics:
    """Aggregate statistics over one filtered waypoint window."""

    status: TripStatus = TripStatus.NO_DATA
    total_distance_km: float = 0.0
    duration_seconds: int = 0

    running_seconds: int = 0
    idle_seconds: int = 0
    stop_seconds: int = 0
    running_time: str = "00:00:00"
    idle_time: str = "00:00:00"
    stop_time: str = "00:00:00"
    running_hours: float = 0.0
    idle_hours: float = 0.0
    stop_hours: float = 0.0

    average_speed_kmh: float = 0.0
    max_speed_kmh: float = 0.0
    stop_count: int = 0

    total_waypoints: int = 0
    moving_waypoints: int = 0
    raw_record_count: int = 0

    start: Optional[WaypointSnapshot] = None
    end: Optional[WaypointSnapshot] = None


@dataclass(frozen=True)
class VehicleHistory:
    """Classified waypoints and statistics for one vehicle and time window."""

    vehicle_id: str
    start_time: datetime
    end_time: datetime
    waypoints: tuple[WaypointSummary, ...] = ()
    statistics: TripStatistics = field(default_factory=TripStatistics)
    hours_back: Optional[int] = None
    date: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return len(self.waypoints) == 0


@dataclass(frozen=True)
class TripSummary:
    """Moving-only trip summary, based on device odometers."""

    vehicle_id: str
    start_time: str
    end_time: str
    total_distance_km: float
    total_gps_distance_km: float
    duration_hours: float
    average_speed_kmh: float
    max_speed_kmh: float
    stop_count: int
    total_waypoints: int
    moving_waypoints: int
    start: WaypointSnapshot
    end: WaypointSnapshot
