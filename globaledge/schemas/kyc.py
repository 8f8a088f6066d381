"""
Pydantic schemas for KYC application request / response serialisation.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from globaledge.models.kyc import KycApplicationStatus
from globaledge.schemas.common import CamelModel


class KycApplicationCreate(CamelModel):
    """New applications always start in ``pending``."""

    user_id: str = Field(..., min_length=1, max_length=64)
    personal_details: Dict[str, Any]
    documents: List[Any]
    risk_score: Optional[int] = Field(default=None, ge=0, le=100)


class KycApplicationUpdate(CamelModel):
    status: Optional[KycApplicationStatus] = None
    personal_details: Optional[Dict[str, Any]] = None
    documents: Optional[List[Any]] = None
    risk_score: Optional[int] = Field(default=None, ge=0, le=100)
    reviewed_by: Optional[str] = Field(default=None, max_length=64)
    rejection_reason: Optional[str] = None


class KycApplicationResponse(CamelModel):
    id: str
    user_id: str
    status: KycApplicationStatus
    personal_details: Dict[str, Any]
    documents: List[Any]
    risk_score: Optional[int] = None
    submitted_at: datetime
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    rejection_reason: Optional[str] = None
