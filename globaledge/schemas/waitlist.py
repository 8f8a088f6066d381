"""
Pydantic schemas for waitlist submissions.
"""

from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from globaledge.models.waitlist import WaitlistStatus
from globaledge.schemas.common import CamelModel


class WaitlistCreate(CamelModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: str = Field(..., min_length=1, max_length=40)
    investor_type: str = Field(..., min_length=1, max_length=100, examples=["accredited"])
    token_interest: str = Field(..., min_length=1, max_length=255)
    heard_from: str = Field(..., min_length=1, max_length=255)
    investment_amount: str = Field(..., min_length=1, max_length=100, examples=["10k-50k"])
    company: Optional[str] = Field(default=None, max_length=255)
    message: Optional[str] = None


class WaitlistStatusUpdate(CamelModel):
    status: WaitlistStatus


class WaitlistResponse(CamelModel):
    id: str
    first_name: str
    last_name: str
    email: str
    phone: str
    investor_type: str
    token_interest: str
    heard_from: str
    investment_amount: str
    company: Optional[str] = None
    message: Optional[str] = None
    status: WaitlistStatus
    submitted_at: datetime
