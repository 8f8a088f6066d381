"""
Asset domain model.

A real-world asset offered for tokenized investment (shipping containers,
property, trade finance tokens, vault-stored goods).
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import CheckConstraint
from sqlmodel import Field, SQLModel

from globaledge.models.common import id_field, timestamp_field


class AssetType(str, Enum):
    CONTAINER = "container"
    PROPERTY = "property"
    TRADE_TOKEN = "trade_token"
    VAULT = "vault"


class AssetRisk(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class AssetStatus(str, Enum):
    """Offering lifecycle; only moves forward."""

    PENDING = "pending"
    FUNDING = "funding"
    ACTIVE = "active"
    COMPLETED = "completed"


class Asset(SQLModel, table=True):
    """
    SQLModel / SQLAlchemy table definition for assets.

    ``funded_percentage`` is bounded to [0, 100] both here and in the schemas.
    """

    __tablename__ = "assets"  # type: ignore[assignment]

    __table_args__ = (
        CheckConstraint("value > 0", name="ck_assets_value_positive"),
        CheckConstraint("apr >= 0", name="ck_assets_apr_non_negative"),
        CheckConstraint(
            "funded_percentage >= 0 AND funded_percentage <= 100",
            name="ck_assets_funded_percentage_range",
        ),
    )

    id: str = id_field()
    name: str = Field(index=True, max_length=255)
    type: AssetType = Field(index=True)
    description: str
    value: Decimal = Field(max_digits=20, decimal_places=2)
    apr: Decimal = Field(max_digits=6, decimal_places=2)
    risk: AssetRisk
    status: AssetStatus = Field(default=AssetStatus.PENDING, index=True)
    funded_percentage: Decimal = Field(default=Decimal("0"), max_digits=5, decimal_places=2)
    issuer_id: Optional[str] = Field(default=None, index=True, max_length=64)
    total_supply: int = Field(default=0)
    minimum_investment: Decimal = Field(default=Decimal("0"), max_digits=20, decimal_places=2)
    created_at: datetime = timestamp_field(index=True)
    updated_at: datetime = timestamp_field()

    def __repr__(self) -> str:
        return f"<Asset id={self.id} name='{self.name}' status={self.status.value}>"
