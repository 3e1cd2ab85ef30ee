"""Shared Pydantic serializers used across DTOs."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import field_serializer


class DatetimeSerializerMixin:
    """Serialize datetime fields as ISO 8601 strings.

    Uses `check_fields=False` so the mixin can be used by models that do not
    declare the field.
    """

    @field_serializer("expires_at", check_fields=False)
    def serialize_expires_at(self, value: Optional[datetime]) -> Optional[str]:
        return value.isoformat() if value else None
