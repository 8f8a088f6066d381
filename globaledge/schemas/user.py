"""
Pydantic schemas for User API request / response serialisation.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import EmailStr, Field, field_validator

from globaledge.models.user import AccountType, KycStatus, UserRole, UserStatus
from globaledge.schemas.common import CamelModel, Money


class UserCreate(CamelModel):
    """Schema for creating a user.  Password handling lives with the auth provider."""

    email: EmailStr = Field(..., examples=["amira@example.com"])
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    country: str = Field(..., min_length=1, max_length=100, examples=["United Arab Emirates"])
    role: UserRole
    phone: Optional[str] = Field(default=None, max_length=40)
    status: UserStatus = UserStatus.PENDING
    account_type: AccountType = AccountType.INDIVIDUAL
    kyc_status: KycStatus = KycStatus.NOT_STARTED
    total_invested: Decimal = Field(default=Decimal("0"), ge=0, max_digits=20, decimal_places=2)
    investment_limit: Decimal = Field(
        default=Decimal("100000"), gt=0, max_digits=20, decimal_places=2
    )
    permissions: List[str] = Field(default_factory=lambda: ["view_dashboard"])
    company_name: Optional[str] = Field(default=None, max_length=255)

    @field_validator("first_name", "last_name", "country")
    @classmethod
    def strip_and_reject_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class UserUpdate(CamelModel):
    """Partial update; only supplied fields change."""

    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=40)
    country: Optional[str] = Field(default=None, min_length=1, max_length=100)
    role: Optional[UserRole] = None
    status: Optional[UserStatus] = None
    account_type: Optional[AccountType] = None
    kyc_status: Optional[KycStatus] = None
    total_invested: Optional[Decimal] = Field(
        default=None, ge=0, max_digits=20, decimal_places=2
    )
    investment_limit: Optional[Decimal] = Field(
        default=None, gt=0, max_digits=20, decimal_places=2
    )
    permissions: Optional[List[str]] = None
    company_name: Optional[str] = Field(default=None, max_length=255)


class UserResponse(CamelModel):
    id: str
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    country: str
    role: UserRole
    status: UserStatus
    account_type: AccountType
    kyc_status: KycStatus
    total_invested: Money
    investment_limit: Money
    permissions: List[str]
    company_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime
