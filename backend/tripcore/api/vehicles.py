"""
API routes for vehicle histories and trip summaries.

Routes are plain (sync) functions: the waypoint source may block on
network I/O and FastAPI runs these in its threadpool.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response

from tripcore.api.schemas import (
    DecodeRequest,
    SnapshotResponse,
    TripStatisticsResponse,
    TripSummaryResponse,
    VehicleHistoryResponse,
    WaypointResponse,
)
from tripcore.models.trip import TripStatistics, TripSummary, VehicleHistory, WaypointSnapshot
from tripcore.services.export import waypoints_to_csv
from tripcore.services.history import VehicleHistoryService
from tripcore.utils.dates import format_timestamp, parse_date, to_local_naive


router = APIRouter(prefix="/vehicles", tags=["vehicles"])
plates_router = APIRouter(prefix="/plates", tags=["plates"])
decode_router = APIRouter(prefix="/decode", tags=["decode"])


def get_history_service(request: Request) -> VehicleHistoryService:
    """Service instance owned by the application."""
    return request.app.state.history_service


def _snapshot_response(snapshot: Optional[WaypointSnapshot]) -> Optional[SnapshotResponse]:
    if snapshot is None:
        return None
    return SnapshotResponse(
        timestamp=snapshot.timestamp,
        latitude=snapshot.latitude,
        longitude=snapshot.longitude,
        address=snapshot.address,
    )


def _statistics_response(stats: TripStatistics) -> TripStatisticsResponse:
    return TripStatisticsResponse(
        status=stats.status.value,
        total_distance_km=stats.total_distance_km,
        duration_seconds=stats.duration_seconds,
        running_seconds=stats.running_seconds,
        idle_seconds=stats.idle_seconds,
        stop_seconds=stats.stop_seconds,
        total_running_time=stats.running_time,
        total_idle_time=stats.idle_time,
        total_stop_time=stats.stop_time,
        total_running_time_hours=stats.running_hours,
        total_idle_time_hours=stats.idle_hours,
        total_stop_time_hours=stats.stop_hours,
        average_speed_kmh=stats.average_speed_kmh,
        highest_speed_kmh=stats.max_speed_kmh,
        amount_of_time_stop=stats.stop_count,
        total_waypoints=stats.total_waypoints,
        moving_waypoints=stats.moving_waypoints,
        raw_record_count=stats.raw_record_count,
        start=_snapshot_response(stats.start),
        end=_snapshot_response(stats.end),
    )


def _history_response(history: VehicleHistory) -> VehicleHistoryResponse:
    message = None
    if history.is_empty:
        message = f"No waypoints found for vehicle {history.vehicle_id} in the specified time range."

    return VehicleHistoryResponse(
        vehicle_id=history.vehicle_id,
        start_time=format_timestamp(history.start_time),
        end_time=format_timestamp(history.end_time),
        message=message,
        hours_back=history.hours_back,
        date=history.date,
        statistics=_statistics_response(history.statistics),
        waypoints=[
            WaypointResponse(
                timestamp=w.timestamp,
                raw_gps_time=w.raw_gps_time,
                latitude=w.latitude,
                longitude=w.longitude,
                altitude=w.altitude,
                speed=w.speed,
                heading=w.heading,
                satellites=w.satellites,
                mileage=w.mileage,
                gps_mileage=w.gps_mileage,
                cumulative_distance_km=w.cumulative_distance_km,
                event_id=w.event_id,
                status=w.status,
                voltage=w.voltage,
                battery=w.battery,
                vehicle_status=w.motion_state.value,
                driver_id=w.driver_id,
                driver_code=w.driver_code,
                info=w.info,
            )
            for w in history.waypoints
        ],
    )


def _trip_summary_response(summary: TripSummary) -> TripSummaryResponse:
    return TripSummaryResponse(
        vehicle_id=summary.vehicle_id,
        start_time=summary.start_time,
        end_time=summary.end_time,
        total_distance_km=summary.total_distance_km,
        total_gps_distance_km=summary.total_gps_distance_km,
        duration_hours=summary.duration_hours,
        average_speed_kmh=summary.average_speed_kmh,
        max_speed_kmh=summary.max_speed_kmh,
        stop_count=summary.stop_count,
        total_waypoints=summary.total_waypoints,
        moving_waypoints=summary.moving_waypoints,
        start_location=_snapshot_response(summary.start),
        end_location=_snapshot_response(summary.end),
    )


@router.get("/{vehicle_id}/history", response_model=VehicleHistoryResponse)
def get_vehicle_history(
    vehicle_id: str,
    start_time: datetime = Query(..., description="Window start, ISO 8601 local time"),
    end_time: datetime = Query(..., description="Window end, ISO 8601 local time"),
    service: VehicleHistoryService = Depends(get_history_service),
):
    """
    Get classified waypoints and trip statistics for a time window.

    An empty window is a normal response with a message and no waypoints.
    """
    history = service.get_history(vehicle_id, to_local_naive(start_time), to_local_naive(end_time))
    return _history_response(history)


@router.get("/{vehicle_id}/history/last-hours", response_model=VehicleHistoryResponse)
def get_vehicle_history_last_hours(
    vehicle_id: str,
    hours: int = Query(24, description="Number of hours to look back (1-168)"),
    service: VehicleHistoryService = Depends(get_history_service),
):
    """Get history for the last N hours."""
    return _history_response(service.get_history_last_hours(vehicle_id, hours))


@router.get("/{vehicle_id}/history/date/{date}", response_model=VehicleHistoryResponse)
def get_vehicle_history_by_date(
    vehicle_id: str,
    date: str,
    service: VehicleHistoryService = Depends(get_history_service),
):
    """Get full-day history; date in dd-mm-YYYY format."""
    try:
        day = parse_date(date)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid date format. Use 'dd-MM-yyyy' (e.g., '07-01-2026')")
    return _history_response(service.get_history_by_date(vehicle_id, day))


@router.get("/{vehicle_id}/history/export")
def export_vehicle_history(
    vehicle_id: str,
    start_time: datetime = Query(...),
    end_time: datetime = Query(...),
    service: VehicleHistoryService = Depends(get_history_service),
):
    """Download the classified waypoint table as CSV."""
    history = service.get_history(vehicle_id, to_local_naive(start_time), to_local_naive(end_time))
    filename = f"{vehicle_id}_{history.start_time:%Y%m%d_%H%M%S}.csv"
    return Response(
        content=waypoints_to_csv(history.waypoints),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{vehicle_id}/trip-summary", response_model=TripSummaryResponse)
def get_vehicle_trip_summary(
    vehicle_id: str,
    start_time: datetime = Query(...),
    end_time: datetime = Query(...),
    service: VehicleHistoryService = Depends(get_history_service),
):
    """
    Get distance, speed and duration over the moving part of a window.
    """
    summary = service.get_trip_summary(vehicle_id, to_local_naive(start_time), to_local_naive(end_time))
    return _trip_summary_response(summary)


@plates_router.get("/{plate}/history", response_model=VehicleHistoryResponse)
def get_history_by_plate(
    plate: str,
    start_time: datetime = Query(...),
    end_time: datetime = Query(...),
    service: VehicleHistoryService = Depends(get_history_service),
):
    """Get history by license plate or display name."""
    history = service.get_history_by_plate(plate, to_local_naive(start_time), to_local_naive(end_time))
    return _history_response(history)


@decode_router.post("", response_model=VehicleHistoryResponse)
def decode_payload(
    request: DecodeRequest,
    service: VehicleHistoryService = Depends(get_history_service),
):
    """
    Decode and classify a raw payload without fetching it.

    Useful for checking payloads captured from the upstream service.
    """
    return _history_response(service.analyze_payload(request.vehicle_id, request.payload))
