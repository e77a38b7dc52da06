"""
Encoding of keys and records for the bucket engine.

Records are msgpack maps of their pydantic field values, which keeps them
self-describing: fields added later decode from older data using the model's
defaults, and fields the model does not know are either kept or ignored
according to the model's own `extra` policy.
"""

import logging
import struct
from typing import TypeVar

import msgpack
from pydantic import BaseModel, ValidationError

from putio_sync.exceptions import SerializationError

log = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_KEY = struct.Struct(">Q")
_SIGN_BIAS = 1 << 63


def encode_id(file_id: int) -> bytes:
    """
    Encodes a signed 64-bit ID as an 8-byte big-endian key.

    The value is offset by 2**63 first, so that bytewise key order equals
    numeric order across the whole signed range.
    """
    try:
        return _KEY.pack(file_id + _SIGN_BIAS)
    except struct.error as e:
        raise ValueError(f"File ID {file_id} is outside the signed 64-bit range.") from e


def decode_id(key: bytes) -> int:
    return _KEY.unpack(key)[0] - _SIGN_BIAS


def encode_record(record: BaseModel) -> bytes:
    """Serializes a model to msgpack bytes."""
    try:
        return msgpack.packb(record.model_dump(mode="json"), use_bin_type=True)
    except (TypeError, ValueError, OverflowError) as e:
        raise SerializationError(
            f"Could not encode {type(record).__name__}: {e}"
        ) from e


def decode_record(model: type[ModelT], data: bytes) -> ModelT:
    """Deserializes msgpack bytes into an instance of `model`."""
    try:
        payload = msgpack.unpackb(data, raw=False)
    except (msgpack.UnpackException, ValueError, TypeError) as e:
        log.debug(f"Corrupt {model.__name__} record ({len(data)} bytes): {e}")
        raise SerializationError(f"Could not decode {model.__name__}: {e}") from e

    if not isinstance(payload, dict):
        raise SerializationError(
            f"Could not decode {model.__name__}: expected a map, got "
            f"{type(payload).__name__}"
        )

    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise SerializationError(f"Invalid {model.__name__} record:\n{e}") from e
