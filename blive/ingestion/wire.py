"""Schema-less field extraction from protobuf-style tag/length/value buffers.

Only length-delimited fields are ever returned; every other wire type is
skipped structurally without interpretation.
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Iterator
from dataclasses import dataclass

# Wire types
WIRE_VARINT = 0
WIRE_FIXED64 = 1
WIRE_LENGTH_DELIMITED = 2
WIRE_START_GROUP = 3
WIRE_END_GROUP = 4
WIRE_FIXED32 = 5

MAX_VARINT_BYTES = 10

# dm_v2 layout: user info is field 20, avatar URL is field 4 inside it
AVATAR_OUTER_FIELD = 20
AVATAR_INNER_FIELD = 4


class DecodeError(ValueError):
    """Raised when a buffer is truncated or structurally invalid."""


@dataclass(frozen=True)
class WireRecord:
    """One decoded tag/value unit. ``value`` is empty for non length-delimited types."""

    field_number: int
    wire_type: int
    value: bytes = b""


def read_varint(buffer: bytes | bytearray | memoryview, pos: int) -> tuple[int, int]:
    """Read a base-128 varint starting at ``pos``. Returns (value, new_pos)."""
    result = 0
    shift = 0
    for i in range(MAX_VARINT_BYTES):
        if pos + i >= len(buffer):
            raise DecodeError(f"truncated varint at offset {pos}")
        byte = buffer[pos + i]
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result, pos + i + 1
        shift += 7
    raise DecodeError(f"varint at offset {pos} exceeds {MAX_VARINT_BYTES} bytes")


def _skip(buffer: bytes | bytearray | memoryview, pos: int, count: int) -> int:
    end = pos + count
    if end > len(buffer):
        raise DecodeError(
            f"field needs {count} bytes at offset {pos}, only {len(buffer) - pos} remain"
        )
    return end


def iter_records(buffer: bytes | bytearray | memoryview) -> Iterator[WireRecord]:
    """Walk every record in ``buffer`` in order.

    Raises DecodeError lazily, at the first record that cannot be decoded.
    """
    view = memoryview(buffer)
    pos = 0
    while pos < len(view):
        tag, pos = read_varint(view, pos)
        field_number, wire_type = tag >> 3, tag & 0x07
        if field_number == 0:
            raise DecodeError(f"invalid field number 0 at offset {pos}")

        if wire_type == WIRE_LENGTH_DELIMITED:
            length, pos = read_varint(view, pos)
            start = pos
            pos = _skip(view, pos, length)
            yield WireRecord(field_number, wire_type, bytes(view[start:pos]))
            continue

        if wire_type == WIRE_VARINT:
            _, pos = read_varint(view, pos)
        elif wire_type == WIRE_FIXED64:
            pos = _skip(view, pos, 8)
        elif wire_type == WIRE_FIXED32:
            pos = _skip(view, pos, 4)
        else:
            # groups (3, 4) and reserved types (6, 7)
            raise DecodeError(f"unsupported wire type {wire_type} for field {field_number}")
        yield WireRecord(field_number, wire_type)


def extract_field(buffer: bytes | bytearray | memoryview, field_number: int) -> bytes:
    """Return the payload of the first length-delimited ``field_number``, or b"" if absent."""
    for record in iter_records(buffer):
        if record.field_number == field_number and record.wire_type == WIRE_LENGTH_DELIMITED:
            return record.value
    return b""


def extract_nested(
    buffer: bytes | bytearray | memoryview, outer: int, inner: int
) -> bytes:
    """Extract ``inner`` from the sub-message stored in ``outer``."""
    return extract_field(extract_field(buffer, outer), inner)


def decode_avatar(dm_v2: str | None) -> str:
    """Pull the sender's avatar URL out of a base64 ``dm_v2`` blob."""
    if not dm_v2:
        return ""
    try:
        raw = base64.b64decode(dm_v2, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"dm_v2 is not valid base64: {e}") from e

    face = extract_nested(raw, AVATAR_OUTER_FIELD, AVATAR_INNER_FIELD)
    try:
        return face.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(f"avatar field is not valid UTF-8: {e}") from e
