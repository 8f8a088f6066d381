"""
Pydantic schemas for security / compliance forms.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import Field

from globaledge.models.security_form import FormPriority, SecurityFormStatus, SecurityFormType
from globaledge.schemas.common import CamelModel


class SecurityFormCreate(CamelModel):
    type: SecurityFormType
    user_id: str = Field(..., min_length=1, max_length=64)
    form_data: Dict[str, Any]
    priority: FormPriority = FormPriority.MEDIUM


class SecurityFormUpdate(CamelModel):
    status: Optional[SecurityFormStatus] = None
    priority: Optional[FormPriority] = None
    form_data: Optional[Dict[str, Any]] = None
    reviewed_by: Optional[str] = Field(default=None, max_length=64)
    review_notes: Optional[str] = None


class SecurityFormResponse(CamelModel):
    id: str
    type: SecurityFormType
    user_id: str
    status: SecurityFormStatus
    form_data: Dict[str, Any]
    priority: FormPriority
    submitted_at: datetime
    completed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    review_notes: Optional[str] = None
