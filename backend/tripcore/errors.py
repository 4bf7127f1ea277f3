"""
Error types raised by the trip analytics pipeline.

"No data" is never an exception: decoders return empty lists and the
service returns empty results. Everything here is a condition the caller
has to see.
"""

from datetime import datetime
from enum import Enum
from typing import Optional


class DecodeStage(Enum):
    """Stage of the payload codec that failed."""

    OUTER_ENCODING = 1
    DECOMPRESSION = 2
    INNER_ENCODING = 3
    DESERIALIZATION = 4

    @property
    def label(self) -> str:
        return self.name.lower()


class TripCoreError(Exception):
    """Base class for pipeline errors."""

    code = "INTERNAL_ERROR"


class CorruptPayload(TripCoreError):
    """A non-empty payload failed to decode at one of the codec stages."""

    code = "CORRUPT_PAYLOAD"

    def __init__(self, stage: DecodeStage, byte_length: int, cause: Optional[BaseException] = None):
        self.stage = stage
        self.byte_length = byte_length
        self.cause = cause
        reason = f": {cause}" if cause is not None else ""
        super().__init__(
            f"Failed to decode waypoint payload at stage {stage.value} "
            f"({stage.label}, {byte_length} bytes){reason}"
        )


class InvalidRequest(TripCoreError, ValueError):
    """Request parameters rejected before any I/O."""

    code = "INVALID_REQUEST"


class InvalidTimeRange(TripCoreError, ValueError):
    """Requested window ends before it starts."""

    code = "INVALID_TIME_RANGE"

    def __init__(self, start: datetime, end: datetime):
        self.start = start
        self.end = end
        super().__init__(
            f"Start time must be before end time "
            f"(start={start.isoformat()}, end={end.isoformat()})"
        )


class VehicleNotFound(TripCoreError, LookupError):
    """Plate or display name did not resolve to a vehicle."""

    code = "VEHICLE_NOT_FOUND"


class NoMovingWaypoints(TripCoreError):
    """A trip summary needs at least one waypoint with non-zero speed."""

    code = "NO_MOVING_WAYPOINTS"


class WaypointSourceError(TripCoreError):
    """The upstream waypoint service could not be reached or answered badly."""

    code = "WAYPOINT_SOURCE_ERROR"
