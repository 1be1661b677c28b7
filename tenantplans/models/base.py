"""Shared column helpers and time arithmetic for all models.

Timestamps are naive UTC throughout; compare them only with ``utcnow()``.
"""

import math
import uuid
from datetime import datetime, timezone

from sqlmodel import Field, SQLModel

SECONDS_PER_DAY = 86400


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


def days_until(moment: datetime, now: datetime | None = None) -> int:
    """Whole days left before ``moment``, rounded up; 0 once it has passed."""
    seconds = (moment - (now or utcnow())).total_seconds()
    return max(0, math.ceil(seconds / SECONDS_PER_DAY))


class TimestampMixin(SQLModel):
    created_at: datetime = Field(default_factory=utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False)

    def touch(self, now: datetime | None = None) -> None:
        self.updated_at = now or utcnow()
