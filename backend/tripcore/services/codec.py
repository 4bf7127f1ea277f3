"""
Waypoint payload codec.

The upstream service ships waypoints as:

    base64( [4-byte frame header] gzip( base64( protobuf waypoint list ) ) )

Decoding walks the four layers in order. An empty buffer at any layer
means "no data" and yields an empty list; a non-empty buffer that fails
to decode raises CorruptPayload naming the layer.
"""

import base64
import binascii
import gzip
import logging
import struct
import zlib
from typing import Optional

from google.protobuf.message import DecodeError

from tripcore.errors import CorruptPayload, DecodeStage
from tripcore.models.record import RawTelemetryRecord
from tripcore.services.waypoint_schema import parse_waypoint_list, serialize_waypoint_list


logger = logging.getLogger(__name__)


GZIP_MAGIC = b"\x1f\x8b"
FRAME_HEADER_SIZE = 4
# Header (10) + trailer (8): anything shorter cannot hold a gzip member
MIN_GZIP_MEMBER_SIZE = 18


def _strip_whitespace(text: str) -> str:
    return "".join(text.split())


def _b64decode(text: str) -> bytes:
    """Standard-alphabet base64 with missing padding tolerated."""
    padding = -len(text) % 4
    return base64.b64decode(text + "=" * padding, validate=True)


def has_frame_header(buffer: bytes) -> bool:
    """True when the gzip magic sits right after a 4-byte header."""
    return len(buffer) > FRAME_HEADER_SIZE + 1 and buffer[FRAME_HEADER_SIZE:FRAME_HEADER_SIZE + 2] == GZIP_MAGIC


def _decompress(buffer: bytes) -> Optional[str]:
    """
    Gunzip the outer buffer into the inner base64 text.

    Returns None when the buffer is too short to be anything but an empty
    or truncated stream.
    """
    offset = FRAME_HEADER_SIZE if has_frame_header(buffer) else 0
    body = buffer[offset:]
    logger.debug(f"Decompressing {len(body)} bytes (frame header: {offset > 0})")

    try:
        return gzip.decompress(body).decode("utf-8")
    except (OSError, EOFError, zlib.error, UnicodeDecodeError) as e:
        if len(body) < MIN_GZIP_MEMBER_SIZE:
            logger.info(f"Treating {len(body)}-byte undecompressable buffer as empty: {e}")
            return None
        raise CorruptPayload(DecodeStage.DECOMPRESSION, len(body), e) from e


def decode_waypoints(payload: Optional[str]) -> list[RawTelemetryRecord]:
    """
    Decode an outer-encoded waypoint payload.

    Args:
        payload: Base64 text as returned by the waypoint service (may be None)

    Returns:
        Records in payload order (not sorted); empty when there is no data

    Raises:
        CorruptPayload: a non-empty layer failed to decode
    """
    if not payload:
        return []

    outer = _strip_whitespace(payload)
    if not outer:
        return []

    try:
        compressed = _b64decode(outer)
    except (binascii.Error, ValueError) as e:
        logger.error(f"Outer base64 decoding failed for {len(outer)} chars: {e}")
        raise CorruptPayload(DecodeStage.OUTER_ENCODING, len(outer), e) from e

    if not compressed:
        return []

    try:
        inner_text = _decompress(compressed)
    except CorruptPayload as e:
        logger.error(str(e))
        raise
    if not inner_text:
        return []

    inner = _strip_whitespace(inner_text)
    if not inner:
        return []

    try:
        protobuf_bytes = _b64decode(inner)
    except (binascii.Error, ValueError) as e:
        logger.error(f"Inner base64 decoding failed for {len(inner)} chars: {e}")
        raise CorruptPayload(DecodeStage.INNER_ENCODING, len(inner), e) from e

    if not protobuf_bytes:
        return []

    try:
        records = parse_waypoint_list(protobuf_bytes)
    except DecodeError as e:
        logger.error(f"Waypoint deserialization failed for {len(protobuf_bytes)} bytes: {e}")
        raise CorruptPayload(DecodeStage.DESERIALIZATION, len(protobuf_bytes), e) from e

    logger.debug(f"Decoded {len(records)} waypoints from {len(protobuf_bytes)} protobuf bytes")
    return records


def encode_waypoints(records: list[RawTelemetryRecord], framed: bool = False) -> str:
    """
    Encode records the way the upstream service does.

    Args:
        records: Records to encode
        framed: Prefix the gzip stream with a 4-byte little-endian length

    Returns:
        Outer base64 text accepted by decode_waypoints
    """
    inner = base64.b64encode(serialize_waypoint_list(records))
    compressed = gzip.compress(inner)
    if framed:
        compressed = struct.pack("<i", len(compressed)) + compressed
    return base64.b64encode(compressed).decode("ascii")
