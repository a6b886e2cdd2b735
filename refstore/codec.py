"""On-disk record layout: a fixed-width reference count followed by the raw value.

    +----------------------------+----------------------+
    | count: uint32 little-endian| value: all remaining |
    +----------------------------+----------------------+

The value needs no length prefix since it occupies everything after the count.
"""

import struct

from .errors import CorruptRecordError, ReferenceCountOverflowError

COUNT_FORMAT = struct.Struct("<I")
COUNT_SIZE = COUNT_FORMAT.size
MAX_REFERENCE_COUNT = 2**32 - 1


def encode_record(count: int, value: bytes) -> bytes:
    """Prefix `value` with its reference count."""
    if count < 1:
        msg = f"Reference count must be positive, got {count}."
        raise ValueError(msg)
    if count > MAX_REFERENCE_COUNT:
        msg = f"Reference count {count} exceeds the maximum of {MAX_REFERENCE_COUNT}."
        raise ReferenceCountOverflowError(msg)
    return COUNT_FORMAT.pack(count) + bytes(value)


def decode_record(record: bytes) -> tuple[int, bytes]:
    """Split a stored record into its (count, value) pair.

    Raises
    ------
        CorruptRecordError: If the record is shorter than the count prefix or carries a zero count.
    """
    if len(record) < COUNT_SIZE:
        msg = f"Record of {len(record)} bytes is shorter than the {COUNT_SIZE}-byte count prefix."
        raise CorruptRecordError(msg)
    (count,) = COUNT_FORMAT.unpack_from(record)
    if count == 0:
        msg = "Record carries a zero reference count."
        raise CorruptRecordError(msg)
    return count, bytes(record[COUNT_SIZE:])
