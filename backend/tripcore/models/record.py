"""
Raw telemetry record model (device-format, integer-scaled).

The codec decodes payloads into this structure before classification.
Field order and meaning follow the upstream binary schema; see
tripcore.services.waypoint_schema for the tag numbers.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ValueSensor:
    """Auxiliary sensor reading attached to a record."""

    t: int = 0       # sensor type id or time
    v: int = 0       # value
    p: int = 0
    i: int = 0       # input
    d: str = ""      # data


@dataclass(frozen=True)
class RawTelemetryRecord:
    """One decoded GPS/status sample from a tracked vehicle."""

    vehicle_id: str = ""
    gps_time: int = 0          # seconds since GPS epoch (2010-01-01 local)
    sys_time: int = 0
    event_id: int = 0
    status: int = 0
    satellites: int = 0
    input: int = 0
    output: int = 0
    voltage: int = 0           # millivolts
    battery: int = 0
    input1: int = 0
    input2: int = 0
    input3: int = 0
    input4: int = 0
    region_id: int = 0

    x: int = 0                 # longitude * 1e6
    y: int = 0                 # latitude * 1e6
    altitude: int = 0
    speed: int = 0             # km/h * 100
    heading: int = 0
    mileage: int = 0           # metres
    gps_mileage: int = 0       # metres

    checksum: int = 0
    device_type_id: int = 0
    geometry_id: str = ""
    driver_id: str = ""
    driver_code: str = ""
    info: str = ""
    data: str = ""
    company_id: str = ""
    unit_id: str = ""
    message: str = ""
    type: int = 0
    version: int = 0
    sensors: tuple[ValueSensor, ...] = ()
    max_speed: int = 0
    road_speed: int = 0
    road: str = ""
    device_id: str = ""
    params: str = ""
    sensor_values: tuple[int, ...] = ()

    @property
    def is_moving(self) -> bool:
        return self.speed > 0
