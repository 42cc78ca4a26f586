"""Native timestamp value and JSON-safe normalization.

Store adapters hand ``Timestamp`` values to the backup engine; backup files
carry them as tagged objects so they survive a JSON round trip without
losing nanosecond precision.

Usage:
    from taskvault.timestamps import Timestamp, normalize, denormalize

    fields = {"createdAt": Timestamp(seconds=1700000000, nanoseconds=5)}
    portable = normalize(fields)
    # {"createdAt": {"__type": "timestamp", "seconds": 1700000000, "nanoseconds": 5}}
    assert denormalize(portable) == fields
"""

import time
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

TIMESTAMP_TAG = "timestamp"
_NANOS_PER_SECOND = 1_000_000_000


class Timestamp(BaseModel):
    """Point in time as whole seconds plus nanoseconds since the Unix epoch."""

    model_config = ConfigDict(frozen=True)

    seconds: int
    nanoseconds: int = Field(default=0, ge=0, lt=_NANOS_PER_SECOND)

    def __init__(self, seconds: int, nanoseconds: int = 0) -> None:
        super().__init__(seconds=seconds, nanoseconds=nanoseconds)

    @classmethod
    def now(cls) -> "Timestamp":
        """Current wall-clock time."""
        seconds, nanoseconds = divmod(time.time_ns(), _NANOS_PER_SECOND)
        return cls(seconds, nanoseconds)

    @classmethod
    def from_datetime(cls, value: datetime, nanoseconds: int | None = None) -> "Timestamp":
        """Build from a datetime.

        Naive datetimes are treated as UTC.  ``nanoseconds`` overrides the
        sub-second part when the caller has more precision than
        ``datetime.microsecond`` can hold.
        """
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        seconds = int(value.replace(microsecond=0).timestamp())
        if nanoseconds is None:
            nanoseconds = value.microsecond * 1000
        return cls(seconds, nanoseconds)

    def to_datetime(self) -> datetime:
        """UTC datetime (truncated to microseconds)."""
        return datetime.fromtimestamp(self.seconds, tz=timezone.utc).replace(
            microsecond=self.nanoseconds // 1000
        )

    def to_json(self) -> dict[str, Any]:
        """Tagged JSON-safe form used in backup files."""
        return {
            "__type": TIMESTAMP_TAG,
            "seconds": self.seconds,
            "nanoseconds": self.nanoseconds,
        }


def is_timestamp_tag(value: Any) -> bool:
    """True if ``value`` is a tagged timestamp mapping."""
    return isinstance(value, dict) and value.get("__type") == TIMESTAMP_TAG


def normalize(value: Any) -> Any:
    """Replace every ``Timestamp`` with its tagged JSON form.

    Walks lists, tuples and dicts recursively and returns a deep copy.
    Tuples come back as lists, matching what ``json`` would produce.
    """
    if value is None:
        return None
    if isinstance(value, Timestamp):
        return value.to_json()
    if isinstance(value, (list, tuple)):
        return [normalize(item) for item in value]
    if isinstance(value, dict):
        return {key: normalize(item) for key, item in value.items()}
    return value


def denormalize(value: Any) -> Any:
    """Inverse of ``normalize``: rebuild ``Timestamp`` values from tags.

    Raises:
        ValueError: If a tagged mapping lacks integer ``seconds`` or
            ``nanoseconds``.
    """
    if value is None:
        return None
    if is_timestamp_tag(value):
        return _timestamp_from_tag(value)
    if isinstance(value, (list, tuple)):
        return [denormalize(item) for item in value]
    if isinstance(value, dict):
        return {key: denormalize(item) for key, item in value.items()}
    return value


def _timestamp_from_tag(tag: dict) -> Timestamp:
    seconds = tag.get("seconds")
    nanoseconds = tag.get("nanoseconds", 0)
    # bool is an int subclass; a tagged true/false is corrupt data
    for name, part in (("seconds", seconds), ("nanoseconds", nanoseconds)):
        if not isinstance(part, int) or isinstance(part, bool):
            raise ValueError(f"Malformed timestamp: '{name}' must be an integer, got {part!r}")
    try:
        return Timestamp(seconds, nanoseconds)
    except ValueError as e:
        raise ValueError(f"Malformed timestamp: {e}") from e
