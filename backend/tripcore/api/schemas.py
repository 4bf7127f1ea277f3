"""
API schemas (Pydantic models) for request/response validation.
"""

from typing import Optional
from pydantic import BaseModel, Field


# ============================================================================
# Waypoint Schemas
# ============================================================================

class WaypointResponse(BaseModel):
    """Single classified waypoint."""
    timestamp: str
    raw_gps_time: int
    latitude: float
    longitude: float
    altitude: int
    speed: float
    heading: int
    satellites: int
    mileage: float
    gps_mileage: float
    cumulative_distance_km: float
    event_id: int
    status: int
    voltage: float
    battery: int
    vehicle_status: str  # "running", "idle" or "stop"
    driver_id: Optional[str] = None
    driver_code: Optional[str] = None
    info: Optional[str] = None


class SnapshotResponse(BaseModel):
    """Start or end point of a trip."""
    timestamp: str
    latitude: float
    longitude: float
    address: Optional[str] = None


# ============================================================================
# Statistics Schemas
# ============================================================================

class TripStatisticsResponse(BaseModel):
    """Aggregate statistics for a history window."""
    status: str
    total_distance_km: float
    duration_seconds: int
    running_seconds: int
    idle_seconds: int
    stop_seconds: int
    total_running_time: str
    total_idle_time: str
    total_stop_time: str
    total_running_time_hours: float
    total_idle_time_hours: float
    total_stop_time_hours: float
    average_speed_kmh: float
    highest_speed_kmh: float
    amount_of_time_stop: int
    total_waypoints: int
    moving_waypoints: int
    raw_record_count: int
    start: Optional[SnapshotResponse] = None
    end: Optional[SnapshotResponse] = None


class VehicleHistoryResponse(BaseModel):
    """Classified waypoint history for one vehicle and window."""
    vehicle_id: str
    start_time: str
    end_time: str
    message: Optional[str] = None
    hours_back: Optional[int] = None
    date: Optional[str] = None
    statistics: TripStatisticsResponse
    waypoints: list[WaypointResponse]


class TripSummaryResponse(BaseModel):
    """Moving-only trip summary."""
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
    start_location: SnapshotResponse
    end_location: SnapshotResponse


# ============================================================================
# Decode Schemas
# ============================================================================

class DecodeRequest(BaseModel):
    """Raw payload to decode and classify without fetching."""
    payload: str = Field(..., description="Outer base64 payload as served by the waypoint API")
    vehicle_id: str = "adhoc"


# ============================================================================
# Error Schemas
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    detail: str
    code: Optional[str] = None
    stage: Optional[str] = None
