"""
Trip statistics aggregator.

Running, idle and stop seconds come from consecutive waypoint pairs, not
from the per-waypoint motion states: the two measures use different
zero-speed rules and are both published as-is.
"""

from collections.abc import Sequence

import numpy as np

from tripcore.models.trip import TripStatistics, TripStatus, WaypointSnapshot, WaypointSummary
from tripcore.services.classifier import LONG_IDLE_SECONDS, SHORT_IDLE_SECONDS
from tripcore.utils.dates import format_hhmmss


SPEED_DECIMALS = 2
HOURS_DECIMALS = 2


def _hours(seconds: int) -> float:
    return round(seconds / 3600.0, HOURS_DECIMALS)


def empty_statistics(raw_record_count: int = 0) -> TripStatistics:
    """Statistics for a window without any waypoint."""
    return TripStatistics(status=TripStatus.NO_DATA, raw_record_count=raw_record_count)


def split_time(
    waypoints: Sequence[WaypointSummary],
    short_idle_seconds: int = SHORT_IDLE_SECONDS,
    long_idle_seconds: int = LONG_IDLE_SECONDS,
) -> tuple[int, int, int, int]:
    """
    Partition the trip duration into running, idle and stop seconds.

    An interval is a zero-speed interval when its starting waypoint has
    speed 0 and the average speed of both endpoints is 0. Contiguous
    zero-speed intervals form a run; once the run closes its duration goes
    to running (<= short), idle (<= long) or stop (> long). Every run longer
    than the short threshold counts as one stop group.

    Returns:
        Tuple of (running_seconds, idle_seconds, stop_seconds, stop_count)
    """
    running_seconds = 0
    idle_seconds = 0
    stop_seconds = 0
    stop_count = 0
    run_seconds = 0
    in_run = False

    def close_run() -> None:
        nonlocal running_seconds, idle_seconds, stop_seconds, stop_count
        if run_seconds <= short_idle_seconds:
            running_seconds += run_seconds
            return
        stop_count += 1
        if run_seconds > long_idle_seconds:
            stop_seconds += run_seconds
        else:
            idle_seconds += run_seconds

    for previous, current in zip(waypoints, waypoints[1:]):
        elapsed = current.raw_gps_time - previous.raw_gps_time
        start_speed = previous.speed
        average_speed = (start_speed + current.speed) / 2.0

        if start_speed == 0 and average_speed == 0:
            run_seconds += elapsed
            in_run = True
            continue

        if in_run:
            close_run()
            run_seconds = 0
            in_run = False
        running_seconds += elapsed

    if in_run:
        close_run()

    return running_seconds, idle_seconds, stop_seconds, stop_count


def compute_trip_statistics(
    waypoints: Sequence[WaypointSummary],
    raw_record_count: int,
    short_idle_seconds: int = SHORT_IDLE_SECONDS,
    long_idle_seconds: int = LONG_IDLE_SECONDS,
) -> TripStatistics:
    """
    Reduce classified waypoints to trip statistics.

    Args:
        waypoints: Classified, time-sorted waypoints of the request window
        raw_record_count: Number of decoded records before time filtering

    Returns:
        TripStatistics; status tells empty and single-waypoint windows apart
    """
    if not waypoints:
        return empty_statistics(raw_record_count)

    if len(waypoints) < 2:
        # No span to measure; defaults plus the marker
        return TripStatistics(status=TripStatus.INSUFFICIENT_RECORDS, raw_record_count=raw_record_count)

    first, last = waypoints[0], waypoints[-1]
    moving = [w for w in waypoints if w.is_moving]

    running_seconds, idle_seconds, stop_seconds, stop_count = split_time(
        waypoints, short_idle_seconds, long_idle_seconds
    )

    speeds = np.array([w.speed for w in waypoints], dtype=np.float64)
    average_speed = float(np.mean(speeds))
    max_speed = max((w.speed for w in moving), default=0.0)

    return TripStatistics(
        status=TripStatus.OK,
        total_distance_km=last.cumulative_distance_km,
        duration_seconds=last.raw_gps_time - first.raw_gps_time,
        running_seconds=running_seconds,
        idle_seconds=idle_seconds,
        stop_seconds=stop_seconds,
        running_time=format_hhmmss(running_seconds),
        idle_time=format_hhmmss(idle_seconds),
        stop_time=format_hhmmss(stop_seconds),
        running_hours=_hours(running_seconds),
        idle_hours=_hours(idle_seconds),
        stop_hours=_hours(stop_seconds),
        average_speed_kmh=round(average_speed, SPEED_DECIMALS),
        max_speed_kmh=round(max_speed, SPEED_DECIMALS),
        stop_count=stop_count,
        total_waypoints=len(waypoints),
        moving_waypoints=len(moving),
        raw_record_count=raw_record_count,
        start=WaypointSnapshot.from_waypoint(first),
        end=WaypointSnapshot.from_waypoint(last),
    )
