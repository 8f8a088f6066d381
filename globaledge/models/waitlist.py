"""
Waitlist submission model.

Prospective investors registering interest before onboarding.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel

from globaledge.models.common import id_field, timestamp_field


class WaitlistStatus(str, Enum):
    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    REJECTED = "rejected"


class WaitlistSubmission(SQLModel, table=True):
    __tablename__ = "waitlist_submissions"  # type: ignore[assignment]

    id: str = id_field()
    first_name: str = Field(max_length=100)
    last_name: str = Field(max_length=100)
    email: str = Field(index=True, max_length=320)
    phone: str = Field(max_length=40)
    investor_type: str = Field(max_length=100)
    token_interest: str = Field(max_length=255)
    heard_from: str = Field(max_length=255)
    investment_amount: str = Field(max_length=100)
    company: Optional[str] = Field(default=None, max_length=255)
    message: Optional[str] = Field(default=None)
    status: WaitlistStatus = Field(default=WaitlistStatus.NEW, index=True)
    submitted_at: datetime = timestamp_field(index=True)
