"""
User domain model.

Platform accounts: investors, asset issuers and back-office staff.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from sqlalchemy import JSON, CheckConstraint, Column
from sqlmodel import Field, SQLModel

from globaledge.models.common import id_field, timestamp_field


class UserRole(str, Enum):
    INVESTOR = "investor"
    ISSUER = "issuer"
    ADMIN = "admin"
    MODERATOR = "moderator"


class UserStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"
    SUSPENDED = "suspended"
    VERIFIED = "verified"


class AccountType(str, Enum):
    INDIVIDUAL = "individual"
    CORPORATE = "corporate"


class KycStatus(str, Enum):
    """Identity-verification progress of a user; see ``services.rules`` for the lattice."""

    NOT_STARTED = "not_started"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class User(SQLModel, table=True):
    """
    SQLModel / SQLAlchemy table definition for users.

    ``email`` is unique at the database level; duplicates surface as 409.
    """

    __tablename__ = "users"  # type: ignore[assignment]

    __table_args__ = (
        CheckConstraint("total_invested >= 0", name="ck_users_total_invested_non_negative"),
        CheckConstraint("investment_limit > 0", name="ck_users_investment_limit_positive"),
    )

    id: str = id_field()
    email: str = Field(unique=True, index=True, max_length=320)
    first_name: str = Field(max_length=100)
    last_name: str = Field(max_length=100)
    phone: Optional[str] = Field(default=None, max_length=40)
    country: str = Field(index=True, max_length=100)
    role: UserRole = Field(default=UserRole.INVESTOR, index=True)
    status: UserStatus = Field(default=UserStatus.PENDING)
    account_type: AccountType = Field(default=AccountType.INDIVIDUAL)
    kyc_status: KycStatus = Field(default=KycStatus.NOT_STARTED, index=True)
    total_invested: Decimal = Field(default=Decimal("0"), max_digits=20, decimal_places=2)
    investment_limit: Decimal = Field(
        default=Decimal("100000"), max_digits=20, decimal_places=2
    )
    permissions: List[str] = Field(
        default_factory=lambda: ["view_dashboard"], sa_column=Column(JSON, nullable=False)
    )
    company_name: Optional[str] = Field(default=None, max_length=255)
    created_at: datetime = timestamp_field(index=True)
    updated_at: datetime = timestamp_field()

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<User id={self.id} email='{self.email}' role={self.role.value}>"
