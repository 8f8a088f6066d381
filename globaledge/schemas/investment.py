"""
Pydantic schemas for Investment API request / response serialisation.

Fee fields are output-only: they are derived from ``amount``.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from globaledge.models.investment import InvestmentStatus, PaymentMethod, PaymentStatus
from globaledge.schemas.common import CamelModel, Money


class InvestmentCreate(CamelModel):
    user_id: str = Field(..., min_length=1, max_length=64)
    asset_id: str = Field(..., min_length=1, max_length=64)
    amount: Decimal = Field(..., gt=0, max_digits=20, decimal_places=2, examples=[2500.00])
    tokens: int = Field(..., gt=0)
    status: InvestmentStatus = InvestmentStatus.PENDING
    payment_method: PaymentMethod = PaymentMethod.BANK_TRANSFER
    payment_status: PaymentStatus = PaymentStatus.PENDING
    kyc_completed: bool = False


class InvestmentUpdate(CamelModel):
    amount: Optional[Decimal] = Field(default=None, gt=0, max_digits=20, decimal_places=2)
    tokens: Optional[int] = Field(default=None, gt=0)
    status: Optional[InvestmentStatus] = None
    payment_method: Optional[PaymentMethod] = None
    payment_status: Optional[PaymentStatus] = None
    kyc_completed: Optional[bool] = None


class InvestmentResponse(CamelModel):
    id: str
    user_id: str
    asset_id: str
    amount: Money
    tokens: int
    status: InvestmentStatus
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    kyc_completed: bool
    platform_fee: Money
    processing_fee: Money
    management_fee: Money
    total_fees: Money
    created_at: datetime
    updated_at: datetime
