"""
Column helpers shared by every table model.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime
from sqlmodel import Field


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def id_field() -> Any:
    return Field(default_factory=new_id, primary_key=True, max_length=64)


def timestamp_field(index: bool = False, nullable: bool = False) -> Any:
    """A timezone-aware timestamp column defaulting to now (UTC)."""
    if nullable:
        return Field(
            default=None,
            nullable=True,
            sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
        )
    return Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
        index=index,
    )


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; treat them as UTC."""
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
