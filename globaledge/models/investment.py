"""
Investment domain model.

A purchase of asset tokens by a user, with the fee breakdown computed at
creation time (see ``services.rules.compute_fees``).
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import CheckConstraint, Index
from sqlmodel import Field, SQLModel

from globaledge.models.common import id_field, timestamp_field


class InvestmentStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    BANK_TRANSFER = "bank_transfer"
    CRYPTO = "crypto"
    CREDIT_CARD = "credit_card"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class Investment(SQLModel, table=True):
    """
    SQLModel / SQLAlchemy table definition for investments.

    ``user_id`` and ``asset_id`` are plain indexed columns rather than foreign
    keys: mock-seeded rows may reference entities that only exist in the
    mock store.
    """

    __tablename__ = "investments"  # type: ignore[assignment]

    __table_args__ = (
        # Covers: WHERE user_id = ? ORDER BY created_at DESC
        Index("ix_investments_user_created", "user_id", "created_at"),
        CheckConstraint("amount > 0", name="ck_investments_amount_positive"),
        CheckConstraint("tokens > 0", name="ck_investments_tokens_positive"),
    )

    id: str = id_field()
    user_id: str = Field(index=True, max_length=64)
    asset_id: str = Field(index=True, max_length=64)
    amount: Decimal = Field(max_digits=20, decimal_places=2)
    tokens: int
    status: InvestmentStatus = Field(default=InvestmentStatus.PENDING, index=True)
    payment_method: PaymentMethod = Field(default=PaymentMethod.BANK_TRANSFER)
    payment_status: PaymentStatus = Field(default=PaymentStatus.PENDING)
    kyc_completed: bool = Field(default=False)
    platform_fee: Decimal = Field(default=Decimal("0"), max_digits=20, decimal_places=2)
    processing_fee: Decimal = Field(default=Decimal("0"), max_digits=20, decimal_places=2)
    management_fee: Decimal = Field(default=Decimal("0"), max_digits=20, decimal_places=2)
    total_fees: Decimal = Field(default=Decimal("0"), max_digits=20, decimal_places=2)
    created_at: datetime = timestamp_field(index=True)
    updated_at: datetime = timestamp_field()

    def __repr__(self) -> str:
        return (
            f"<Investment id={self.id} user={self.user_id} "
            f"asset={self.asset_id} amount=${self.amount}>"
        )
