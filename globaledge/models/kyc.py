"""
KYC application model.

A user's submission of identity details and documents for review.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from globaledge.models.common import id_field, timestamp_field


class KycApplicationStatus(str, Enum):
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class KycApplication(SQLModel, table=True):
    __tablename__ = "kyc_applications"  # type: ignore[assignment]

    id: str = id_field()
    user_id: str = Field(index=True, max_length=64)
    status: KycApplicationStatus = Field(default=KycApplicationStatus.PENDING, index=True)
    personal_details: Dict[str, Any] = Field(
        default_factory=dict, sa_column=Column(JSON, nullable=False)
    )
    documents: List[Any] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    risk_score: Optional[int] = Field(default=None)
    submitted_at: datetime = timestamp_field(index=True)
    reviewed_at: Optional[datetime] = timestamp_field(nullable=True)
    reviewed_by: Optional[str] = Field(default=None, max_length=64)
    rejection_reason: Optional[str] = Field(default=None)
