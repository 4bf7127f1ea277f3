"""
Trip classifier.

Turns time-sorted raw records into waypoint summaries:
- decimal units and local timestamps
- cumulative great-circle distance, rounded per step
- a motion state per waypoint (running / idle / stop)

Zero-speed records form idle runs. A run is labelled once it closes
(on the next moving record or at end of stream) from the idle seconds
it accumulated: short runs fold into running, long runs become stops,
anything in between stays idle.
"""

from collections.abc import Iterable, Sequence
from typing import Optional

from tripcore.models.record import RawTelemetryRecord
from tripcore.models.trip import MotionState, WaypointSummary
from tripcore.utils.dates import format_gps_time
from tripcore.utils.geo import get_distance, round_coordinate, to_decimal_degrees


SHORT_IDLE_SECONDS = 120
LONG_IDLE_SECONDS = 300
DISTANCE_DECIMALS = 3


def classify_idle_run(
    idle_seconds: int,
    short_idle_seconds: int = SHORT_IDLE_SECONDS,
    long_idle_seconds: int = LONG_IDLE_SECONDS,
) -> MotionState:
    """State for every waypoint of a closed idle run."""
    if idle_seconds <= short_idle_seconds:
        return MotionState.RUNNING
    if idle_seconds > long_idle_seconds:
        return MotionState.STOP
    return MotionState.IDLE


def step_distance_km(previous: RawTelemetryRecord, current: RawTelemetryRecord) -> float:
    """Distance between two consecutive records, in km rounded to 3 decimals."""
    lat1, lon1 = to_decimal_degrees(previous.x, previous.y)
    lat2, lon2 = to_decimal_degrees(current.x, current.y)
    meters = get_distance(lon1, lat1, lon2, lat2)
    return round(meters / 1000.0, DISTANCE_DECIMALS)


def accumulate_distance(steps: Iterable[float]) -> list[float]:
    """
    Running total of per-step distances.

    The total is re-rounded after every addition; the accumulated rounding
    error is part of the published numbers.
    """
    cumulative = 0.0
    totals = []
    for step in steps:
        cumulative = round(cumulative + step, DISTANCE_DECIMALS)
        totals.append(cumulative)
    return totals


def _optional(text: str) -> Optional[str]:
    return text or None


def summarize_record(
    record: RawTelemetryRecord,
    cumulative_distance_km: float,
    motion_state: MotionState,
) -> WaypointSummary:
    """Convert one record to decimal units."""
    latitude, longitude = to_decimal_degrees(record.x, record.y)
    return WaypointSummary(
        timestamp=format_gps_time(record.gps_time),
        raw_gps_time=record.gps_time,
        latitude=round_coordinate(latitude),
        longitude=round_coordinate(longitude),
        altitude=record.altitude,
        speed=record.speed / 100.0,
        heading=record.heading,
        satellites=record.satellites,
        mileage=record.mileage / 1000.0,
        gps_mileage=record.gps_mileage / 1000.0,
        cumulative_distance_km=cumulative_distance_km,
        event_id=record.event_id,
        status=record.status,
        voltage=record.voltage / 1000.0,
        battery=record.battery,
        motion_state=motion_state,
        driver_id=_optional(record.driver_id),
        driver_code=_optional(record.driver_code),
        info=_optional(record.info),
    )


def classify_motion(
    records: Sequence[RawTelemetryRecord],
    short_idle_seconds: int = SHORT_IDLE_SECONDS,
    long_idle_seconds: int = LONG_IDLE_SECONDS,
) -> list[MotionState]:
    """
    Motion state for each record, in input order.

    Records must already be sorted by gps_time. Idle seconds only accrue
    between two consecutive zero-speed records; the gap from a moving
    record into a stopped one is not idle time.
    """
    states: list[Optional[MotionState]] = [None] * len(records)
    run_start: Optional[int] = None
    idle_seconds = 0

    def close_run(end: int) -> None:
        state = classify_idle_run(idle_seconds, short_idle_seconds, long_idle_seconds)
        for index in range(run_start, end):
            states[index] = state

    for index, record in enumerate(records):
        if record.speed > 0:
            if run_start is not None:
                close_run(index)
                run_start = None
                idle_seconds = 0
            states[index] = MotionState.RUNNING
            continue

        if run_start is None:
            run_start = index
            idle_seconds = 0
        else:
            idle_seconds += record.gps_time - records[index - 1].gps_time

    if run_start is not None:
        close_run(len(records))

    return states


def classify_waypoints(
    records: Sequence[RawTelemetryRecord],
    short_idle_seconds: int = SHORT_IDLE_SECONDS,
    long_idle_seconds: int = LONG_IDLE_SECONDS,
) -> list[WaypointSummary]:
    """
    Build one waypoint summary per record.

    Args:
        records: Time-sorted records, already filtered to the request window
        short_idle_seconds: Idle runs at or below this fold into running
        long_idle_seconds: Idle runs above this become stops

    Returns:
        Summaries parallel to ``records``; the input is not modified
    """
    if not records:
        return []

    states = classify_motion(records, short_idle_seconds, long_idle_seconds)
    steps = [step_distance_km(records[i - 1], records[i]) for i in range(1, len(records))]
    cumulative = [0.0] + accumulate_distance(steps)

    return [
        summarize_record(record, distance, state)
        for record, distance, state in zip(records, cumulative, states)
    ]
