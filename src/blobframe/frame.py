"""Metadata framing for blobs.

A frame packs JSON metadata and an opaque payload into one blob:

    <compact UTF-8 JSON object> + FRAME_SEPARATOR + <payload bytes>

The remote store needs no native metadata support; every blob describes
itself. Compact JSON never contains a raw newline and the separator starts
with one, so the first separator occurrence is always the real split point,
even when the payload contains the separator bytes.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
import json
import logging

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .constants import FRAME_SEPARATOR
from .errors import EncodingError, FrameFormatError, MetadataParseError

logger = logging.getLogger(__name__)


class FrameMetadata(BaseModel):
    """Typed view of frame metadata.

    Known fields are optional; any additional keys written by other producers
    are preserved as extras so they survive a decode/encode cycle.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    timestamp: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    file_name: Optional[str] = Field(default=None, alias="fileName")

    def to_mapping(self) -> Dict[str, Any]:
        """Wire-format mapping: camelCase keys, unset fields dropped."""
        return self.model_dump(by_alias=True, exclude_none=True)


MetadataLike = Union[Mapping[str, Any], FrameMetadata]


def _as_mapping(metadata: MetadataLike) -> Mapping[str, Any]:
    if isinstance(metadata, FrameMetadata):
        return metadata.to_mapping()
    return metadata


def _check_json_value(value: Any, where: str) -> None:
    """Reject values json.dumps would silently coerce (non-str keys, tuples, ...)."""
    if value is None or isinstance(value, (str, bool, int, float)):
        return
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise EncodingError(f"Frame metadata keys must be strings, got {key!r} at {where}")
            _check_json_value(item, f"{where}.{key}")
        return
    if isinstance(value, list):
        for index, item in enumerate(value):
            _check_json_value(item, f"{where}[{index}]")
        return
    raise EncodingError(
        f"Frame metadata value at {where} is not JSON-compatible: {type(value).__name__}"
    )


def encode_metadata(metadata: MetadataLike) -> bytes:
    """Serialize metadata to canonical compact JSON bytes.

    Only dicts with string keys, lists, strings, numbers, booleans and None
    are accepted, at any depth, so decoding yields an equal mapping.

    Raises:
        EncodingError: If metadata is not a mapping or holds values JSON cannot represent
    """
    mapping = _as_mapping(metadata)
    if not isinstance(mapping, Mapping):
        raise EncodingError(f"Frame metadata must be a mapping, got {type(mapping).__name__}")
    _check_json_value(dict(mapping), "metadata")

    try:
        text = json.dumps(
            dict(mapping),
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )
    except (TypeError, ValueError) as e:
        raise EncodingError(f"Frame metadata is not JSON-serializable: {e}") from e

    return text.encode("utf-8")


def encode_frame(metadata: MetadataLike, payload: bytes) -> bytes:
    """Build a frame from metadata and payload.

    The payload is copied as-is; the caller's buffer is never modified.

    Raises:
        EncodingError: If metadata cannot be serialized
    """
    if not isinstance(payload, (bytes, bytearray, memoryview)):
        raise EncodingError(f"Frame payload must be bytes, got {type(payload).__name__}")
    return b"".join([encode_metadata(metadata), FRAME_SEPARATOR, bytes(payload)])


def split_frame(blob: bytes) -> Tuple[bytes, bytes]:
    """Split a frame at the first separator into (metadata_bytes, payload).

    Raises:
        FrameFormatError: If the separator is absent
    """
    idx = blob.find(FRAME_SEPARATOR)
    if idx == -1:
        raise FrameFormatError(
            f"Invalid blob format: frame separator not found in {len(blob)} bytes"
        )
    return blob[:idx], blob[idx + len(FRAME_SEPARATOR):]


def decode_metadata(raw: bytes) -> Dict[str, Any]:
    """Parse metadata bytes back into an ordered dict.

    Raises:
        MetadataParseError: If bytes are not UTF-8 JSON describing an object
    """
    try:
        parsed = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MetadataParseError(f"Frame metadata is not valid JSON: {e}") from e

    if not isinstance(parsed, dict):
        raise MetadataParseError(
            f"Frame metadata must be a JSON object, got {type(parsed).__name__}"
        )
    return parsed


def decode_frame(blob: bytes) -> Tuple[Dict[str, Any], bytes]:
    """Decode a frame into (metadata, payload).

    Raises:
        FrameFormatError: If the separator is absent
        MetadataParseError: If the metadata section is malformed
    """
    raw_meta, payload = split_frame(bytes(blob))
    return decode_metadata(raw_meta), payload


@dataclass(frozen=True)
class MetadataFrame:
    """Immutable (metadata, payload) pair as stored in a single blob."""

    metadata: Dict[str, Any] = field(default_factory=dict)
    payload: bytes = b""

    def encode(self) -> bytes:
        """Serialize to blob bytes."""
        return encode_frame(self.metadata, self.payload)

    @classmethod
    def decode(cls, blob: bytes) -> "MetadataFrame":
        """Parse blob bytes into a frame."""
        metadata, payload = decode_frame(blob)
        return cls(metadata=metadata, payload=payload)

    @property
    def file_metadata(self) -> FrameMetadata:
        """Typed view of the metadata.

        Known fields written with another type by a different producer
        (e.g. a numeric timestamp) are left out of the typed view; the raw
        values remain available in ``metadata``.
        """
        try:
            return FrameMetadata.model_validate(self.metadata)
        except ValidationError as e:
            invalid = {err["loc"][0] for err in e.errors() if err["loc"]}
            logger.warning("Ignoring mistyped frame metadata fields: %s", ", ".join(sorted(map(str, invalid))))
            return FrameMetadata.model_validate(
                {key: value for key, value in self.metadata.items() if key not in invalid}
            )
