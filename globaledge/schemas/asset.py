"""
Pydantic schemas for Asset API request / response serialisation.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field, field_validator

from globaledge.models.asset import AssetRisk, AssetStatus, AssetType
from globaledge.schemas.common import CamelModel, Money


class AssetCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255, examples=["Jebel Ali Container Fleet"])
    type: AssetType
    description: str = Field(..., min_length=1)
    value: Decimal = Field(
        ..., gt=0, max_digits=20, decimal_places=2, description="Total asset valuation in USD"
    )
    apr: Decimal = Field(
        ..., ge=0, le=100, decimal_places=2, description="Expected annual return, percent"
    )
    risk: AssetRisk
    status: AssetStatus
    funded_percentage: Decimal = Field(default=Decimal("0"), ge=0, le=100, decimal_places=2)
    issuer_id: Optional[str] = Field(default=None, max_length=64)
    total_supply: int = Field(default=0, ge=0)
    minimum_investment: Decimal = Field(
        default=Decimal("0"), ge=0, max_digits=20, decimal_places=2
    )

    @field_validator("name")
    @classmethod
    def validate_name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be blank")
        return v.strip()


class AssetUpdate(CamelModel):
    """Partial update.  Status and funding progress are checked against the stored asset."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1)
    value: Optional[Decimal] = Field(default=None, gt=0, max_digits=20, decimal_places=2)
    apr: Optional[Decimal] = Field(default=None, ge=0, le=100, decimal_places=2)
    risk: Optional[AssetRisk] = None
    status: Optional[AssetStatus] = None
    funded_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100, decimal_places=2)
    total_supply: Optional[int] = Field(default=None, ge=0)
    minimum_investment: Optional[Decimal] = Field(
        default=None, ge=0, max_digits=20, decimal_places=2
    )


class AssetResponse(CamelModel):
    id: str
    name: str
    type: AssetType
    description: str
    value: Money
    apr: Money
    risk: AssetRisk
    status: AssetStatus
    funded_percentage: Money
    issuer_id: Optional[str] = None
    total_supply: int
    minimum_investment: Money
    created_at: datetime
    updated_at: datetime
