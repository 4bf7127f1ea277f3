"""
Tests for the waypoint payload codec.
"""

import base64
import gzip
import struct

import pytest

from tripcore.errors import CorruptPayload, DecodeStage
from tripcore.models.record import RawTelemetryRecord, ValueSensor
from tripcore.services.codec import decode_waypoints, encode_waypoints, has_frame_header
from tripcore.services.waypoint_schema import parse_waypoint_list, serialize_waypoint_list


def _outer(buffer: bytes) -> str:
    return base64.b64encode(buffer).decode("ascii")


@pytest.fixture
def sample_records():
    """Two records with every kind of field populated."""
    return [
        RawTelemetryRecord(
            vehicle_id="VH-001",
            gps_time=505_000_000,
            sys_time=505_000_002,
            event_id=3,
            status=1,
            satellites=9,
            voltage=12650,
            battery=100,
            x=106_700_900,
            y=10_776_900,
            altitude=12,
            speed=4550,
            heading=22,
            mileage=120_345,
            gps_mileage=120_101,
            driver_id="D-7",
            driver_code="0042",
            info="12 Nguyen Hue, District 1",
            sensors=(ValueSensor(t=1, v=870, p=0, i=2, d="fuel"),),
            sensor_values=(1, 0, 35),
        ),
        RawTelemetryRecord(
            vehicle_id="VH-001",
            gps_time=505_000_030,
            x=106_701_100,
            y=10_777_100,
            speed=0,
            mileage=120_380,
        ),
    ]


class TestRoundTrip:
    """Encoding then decoding returns the same records."""

    def test_unframed(self, sample_records):
        payload = encode_waypoints(sample_records)
        assert decode_waypoints(payload) == sample_records

    def test_framed(self, sample_records):
        payload = encode_waypoints(sample_records, framed=True)
        assert decode_waypoints(payload) == sample_records

    def test_frame_header_is_detected(self, sample_records):
        payload = encode_waypoints(sample_records, framed=True)
        buffer = base64.b64decode(payload)
        assert has_frame_header(buffer)
        assert struct.unpack("<i", buffer[:4])[0] == len(buffer) - 4

    def test_unframed_has_no_header(self, sample_records):
        buffer = base64.b64decode(encode_waypoints(sample_records))
        assert not has_frame_header(buffer)
        assert buffer[:2] == b"\x1f\x8b"

    def test_payload_order_preserved(self, sample_records):
        reversed_records = list(reversed(sample_records))
        decoded = decode_waypoints(encode_waypoints(reversed_records))
        assert [r.gps_time for r in decoded] == [505_000_030, 505_000_000]

    def test_whitespace_in_outer_payload(self, sample_records):
        payload = encode_waypoints(sample_records)
        wrapped = "\n".join(payload[i:i + 76] for i in range(0, len(payload), 76))
        assert decode_waypoints(wrapped) == sample_records

    def test_missing_padding_tolerated(self, sample_records):
        payload = encode_waypoints(sample_records).rstrip("=")
        assert decode_waypoints(payload) == sample_records

    def test_sensor_values_unpacked_on_the_wire(self):
        data = serialize_waypoint_list([RawTelemetryRecord(sensor_values=(5, 6))])
        # items (tag 1, length-delimited) wrapping two tag-41 varints
        assert b"\xc8\x02\x05\xc8\x02\x06" in data
        assert parse_waypoint_list(data)[0].sensor_values == (5, 6)


class TestTextFields:
    """Producer strings are not guaranteed to be valid UTF-8."""

    def test_invalid_utf8_does_not_reject_payload(self):
        # speed (tag 19) = 4000, info (tag 28) = b"Depot\xff"
        waypoint = b"\x98\x01\xa0\x1f" + b"\xe2\x01\x06Depot\xff"
        container = b"\x0a" + bytes([len(waypoint)]) + waypoint
        payload = _outer(gzip.compress(base64.b64encode(container)))

        records = decode_waypoints(payload)

        assert len(records) == 1
        assert records[0].speed == 4000
        assert records[0].info == "Depot\ufffd"

    def test_non_ascii_text_round_trips(self):
        record = RawTelemetryRecord(info="12 Nguyễn Huệ", sensors=(ValueSensor(d="nhiên liệu"),))
        assert parse_waypoint_list(serialize_waypoint_list([record])) == [record]


class TestNoData:
    """Empty buffers at any layer mean no data, not an error."""

    @pytest.mark.parametrize("payload", [None, "", "   ", "\r\n"])
    def test_empty_outer(self, payload):
        assert decode_waypoints(payload) == []

    def test_empty_gzip_content(self):
        assert decode_waypoints(_outer(gzip.compress(b""))) == []

    def test_whitespace_only_inner(self):
        assert decode_waypoints(_outer(gzip.compress(b"  \n "))) == []

    def test_empty_waypoint_list(self):
        assert decode_waypoints(encode_waypoints([])) == []

    def test_truncated_tiny_buffer(self):
        assert decode_waypoints(_outer(b"abc")) == []


class TestCorruptPayload:
    """Non-empty buffers that fail to decode name the failing layer."""

    def test_outer_encoding(self):
        with pytest.raises(CorruptPayload) as exc_info:
            decode_waypoints("!!!not base64!!!")
        assert exc_info.value.stage == DecodeStage.OUTER_ENCODING
        assert exc_info.value.byte_length > 0

    def test_decompression(self):
        with pytest.raises(CorruptPayload) as exc_info:
            decode_waypoints(_outer(b"x" * 40))
        assert exc_info.value.stage == DecodeStage.DECOMPRESSION
        assert exc_info.value.byte_length == 40

    def test_inner_encoding(self):
        with pytest.raises(CorruptPayload) as exc_info:
            decode_waypoints(_outer(gzip.compress(b"###")))
        assert exc_info.value.stage == DecodeStage.INNER_ENCODING

    def test_deserialization(self):
        inner = base64.b64encode(b"\xff\xff\xff")
        with pytest.raises(CorruptPayload) as exc_info:
            decode_waypoints(_outer(gzip.compress(inner)))
        assert exc_info.value.stage == DecodeStage.DESERIALIZATION
        assert exc_info.value.byte_length == 3

    def test_cause_is_chained(self):
        with pytest.raises(CorruptPayload) as exc_info:
            decode_waypoints(_outer(b"y" * 64))
        assert exc_info.value.cause is not None
        assert exc_info.value.__cause__ is exc_info.value.cause

    def test_stage_label(self):
        assert DecodeStage.INNER_ENCODING.label == "inner_encoding"
