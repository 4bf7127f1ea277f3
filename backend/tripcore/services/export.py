"""
Tabular export of classified waypoints.
"""

import io
from collections.abc import Sequence
from dataclasses import asdict
from pathlib import Path

import pandas as pd

from tripcore.models.trip import WaypointSummary


EXPORT_COLUMNS = [
    "timestamp",
    "raw_gps_time",
    "latitude",
    "longitude",
    "altitude",
    "speed",
    "heading",
    "satellites",
    "mileage",
    "gps_mileage",
    "cumulative_distance_km",
    "motion_state",
    "event_id",
    "status",
    "voltage",
    "battery",
    "driver_id",
    "driver_code",
    "info",
]


def waypoints_to_frame(waypoints: Sequence[WaypointSummary]) -> pd.DataFrame:
    """One row per waypoint, motion state as its string value."""
    rows = []
    for waypoint in waypoints:
        row = asdict(waypoint)
        row["motion_state"] = waypoint.motion_state.value
        rows.append(row)
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS)


def waypoints_to_csv(waypoints: Sequence[WaypointSummary]) -> str:
    buffer = io.StringIO()
    waypoints_to_frame(waypoints).to_csv(buffer, index=False)
    return buffer.getvalue()


def write_waypoints_csv(waypoints: Sequence[WaypointSummary], output_path: Path) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    waypoints_to_frame(waypoints).to_csv(output_path, index=False)
    return output_path
