"""
Binary waypoint schema.

The upstream tracking service serializes a list of waypoints as a
protobuf message whose field 1 repeats the ``Waypoint`` message below.
Tag numbers and wire types are fixed by the producer; field names here
are ours and never appear on the wire.

Text fields are declared as ``bytes`` and decoded leniently: the producer
does not guarantee valid UTF-8, and one stray byte must not reject the
whole list.

The descriptor is assembled at import time so no generated code has to
be kept in sync.
"""

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

from tripcore.models.record import RawTelemetryRecord, ValueSensor


_F = descriptor_pb2.FieldDescriptorProto

PACKAGE = "tripcore"

VALUE_SENSOR_FIELDS = (
    (1, "t", _F.TYPE_INT32),
    (2, "v", _F.TYPE_INT32),
    (3, "p", _F.TYPE_INT32),
    (4, "i", _F.TYPE_INT32),
    (5, "d", _F.TYPE_BYTES),
)

# Scalar fields: (tag, RawTelemetryRecord attribute, protobuf type)
WAYPOINT_FIELDS = (
    (1, "vehicle_id", _F.TYPE_BYTES),
    (2, "gps_time", _F.TYPE_INT32),
    (3, "sys_time", _F.TYPE_INT64),
    (4, "event_id", _F.TYPE_INT32),
    (5, "status", _F.TYPE_INT32),
    (6, "satellites", _F.TYPE_UINT32),
    (7, "input", _F.TYPE_UINT32),
    (8, "output", _F.TYPE_UINT32),
    (9, "voltage", _F.TYPE_INT32),
    (10, "battery", _F.TYPE_INT32),
    (11, "input1", _F.TYPE_INT32),
    (12, "input2", _F.TYPE_INT32),
    (13, "input3", _F.TYPE_INT32),
    (14, "input4", _F.TYPE_INT32),
    (15, "region_id", _F.TYPE_UINT32),
    (16, "x", _F.TYPE_INT32),
    (17, "y", _F.TYPE_INT32),
    (18, "altitude", _F.TYPE_INT32),
    (19, "speed", _F.TYPE_INT32),
    (20, "heading", _F.TYPE_UINT32),
    (21, "mileage", _F.TYPE_INT32),
    (22, "gps_mileage", _F.TYPE_INT32),
    (23, "checksum", _F.TYPE_INT32),
    (24, "device_type_id", _F.TYPE_INT32),
    (25, "geometry_id", _F.TYPE_BYTES),
    (26, "driver_id", _F.TYPE_BYTES),
    (27, "driver_code", _F.TYPE_BYTES),
    (28, "info", _F.TYPE_BYTES),
    (29, "data", _F.TYPE_BYTES),
    (30, "company_id", _F.TYPE_BYTES),
    (31, "unit_id", _F.TYPE_BYTES),
    (32, "message", _F.TYPE_BYTES),
    (33, "type", _F.TYPE_INT32),
    (34, "version", _F.TYPE_INT32),
    # 35: repeated ValueSensor sensors
    (36, "max_speed", _F.TYPE_INT32),
    (37, "road_speed", _F.TYPE_INT32),
    (38, "road", _F.TYPE_BYTES),
    (39, "device_id", _F.TYPE_BYTES),
    (40, "params", _F.TYPE_BYTES),
    # 41: repeated int32 sensor_values
)

SENSORS_TAG = 35
SENSOR_VALUES_TAG = 41


def _build_file_descriptor() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="tripcore/waypoint.proto",
        package=PACKAGE,
        syntax="proto3",
    )

    sensor = file_proto.message_type.add(name="ValueSensor")
    for number, name, field_type in VALUE_SENSOR_FIELDS:
        sensor.field.add(name=name, number=number, type=field_type, label=_F.LABEL_OPTIONAL)

    waypoint = file_proto.message_type.add(name="Waypoint")
    for number, name, field_type in WAYPOINT_FIELDS:
        waypoint.field.add(name=name, number=number, type=field_type, label=_F.LABEL_OPTIONAL)
    waypoint.field.add(
        name="sensors",
        number=SENSORS_TAG,
        type=_F.TYPE_MESSAGE,
        type_name=f".{PACKAGE}.ValueSensor",
        label=_F.LABEL_REPEATED,
    )
    sensor_values = waypoint.field.add(
        name="sensor_values",
        number=SENSOR_VALUES_TAG,
        type=_F.TYPE_INT32,
        label=_F.LABEL_REPEATED,
    )
    # Producer writes one tag per element
    sensor_values.options.packed = False

    waypoint_list = file_proto.message_type.add(name="WaypointList")
    waypoint_list.field.add(
        name="items",
        number=1,
        type=_F.TYPE_MESSAGE,
        type_name=f".{PACKAGE}.Waypoint",
        label=_F.LABEL_REPEATED,
    )
    return file_proto


_pool = descriptor_pool.DescriptorPool()
_pool.AddSerializedFile(_build_file_descriptor().SerializeToString())

WaypointMessage = message_factory.GetMessageClass(_pool.FindMessageTypeByName(f"{PACKAGE}.Waypoint"))
WaypointListMessage = message_factory.GetMessageClass(_pool.FindMessageTypeByName(f"{PACKAGE}.WaypointList"))


def _text(value: bytes) -> str:
    return value.decode("utf-8", errors="replace")


def message_to_record(message) -> RawTelemetryRecord:
    values = {}
    for _, name, field_type in WAYPOINT_FIELDS:
        value = getattr(message, name)
        values[name] = _text(value) if field_type == _F.TYPE_BYTES else value
    return RawTelemetryRecord(
        **values,
        sensors=tuple(
            ValueSensor(t=s.t, v=s.v, p=s.p, i=s.i, d=_text(s.d)) for s in message.sensors
        ),
        sensor_values=tuple(message.sensor_values),
    )


def record_to_message(record: RawTelemetryRecord, message) -> None:
    """Populate an empty Waypoint message from a record."""
    for _, name, field_type in WAYPOINT_FIELDS:
        value = getattr(record, name)
        if field_type == _F.TYPE_BYTES:
            value = value.encode("utf-8")
        setattr(message, name, value)
    for sensor in record.sensors:
        message.sensors.add(t=sensor.t, v=sensor.v, p=sensor.p, i=sensor.i, d=sensor.d.encode("utf-8"))
    message.sensor_values.extend(record.sensor_values)


def parse_waypoint_list(data: bytes) -> list[RawTelemetryRecord]:
    """Deserialize a waypoint list. Raises google.protobuf.message.DecodeError."""
    container = WaypointListMessage.FromString(data)
    return [message_to_record(item) for item in container.items]


def serialize_waypoint_list(records: list[RawTelemetryRecord]) -> bytes:
    container = WaypointListMessage()
    for record in records:
        record_to_message(record, container.items.add())
    return container.SerializeToString()
