"""
Security / compliance form model (AML checks, risk assessments, ...).
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from globaledge.models.common import id_field, timestamp_field


class SecurityFormType(str, Enum):
    KYC = "kyc"
    AML = "aml"
    COMPLIANCE = "compliance"
    RISK_ASSESSMENT = "risk_assessment"
    IDENTITY_VERIFICATION = "identity_verification"


class SecurityFormStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    REJECTED = "rejected"
    EXPIRED = "expired"


class FormPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class SecurityForm(SQLModel, table=True):
    __tablename__ = "security_forms"  # type: ignore[assignment]

    id: str = id_field()
    type: SecurityFormType = Field(index=True)
    user_id: str = Field(index=True, max_length=64)
    status: SecurityFormStatus = Field(default=SecurityFormStatus.PENDING, index=True)
    form_data: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    priority: FormPriority = Field(default=FormPriority.MEDIUM)
    submitted_at: datetime = timestamp_field(index=True)
    completed_at: Optional[datetime] = timestamp_field(nullable=True)
    reviewed_by: Optional[str] = Field(default=None, max_length=64)
    review_notes: Optional[str] = Field(default=None)
