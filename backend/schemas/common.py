"""Common schema utilities and base classes."""

from datetime import datetime

from pydantic import field_serializer
from utils.serializers import serialize_utc_datetime as _serialize_utc_datetime


class TimestampSerializerMixin:
    """Mixin that always emits created_at as an aware UTC timestamp."""

    @field_serializer("created_at")
    def serialize_created_at(self, dt: datetime, _info):
        return _serialize_utc_datetime(dt)


__all__ = [
    "TimestampSerializerMixin",
]
