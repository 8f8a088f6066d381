"""
Entity definitions.

Everything that differs between entities is declared here; the service,
backends and API routes are generic over an :class:`EntityDefinition`.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Tuple, Type

from pydantic import BaseModel
from sqlmodel import SQLModel

from globaledge.integration.backends import UpdateHook
from globaledge.integration.sources import READ_FALLBACK, FallbackPolicy
from globaledge.models.asset import Asset, AssetRisk, AssetStatus, AssetType
from globaledge.models.investment import (
    Investment,
    InvestmentStatus,
    PaymentMethod,
    PaymentStatus,
)
from globaledge.models.kyc import KycApplication, KycApplicationStatus
from globaledge.models.security_form import (
    FormPriority,
    SecurityForm,
    SecurityFormStatus,
    SecurityFormType,
)
from globaledge.models.user import AccountType, KycStatus, User, UserRole, UserStatus
from globaledge.models.waitlist import WaitlistStatus, WaitlistSubmission
from globaledge.schemas import asset as asset_schemas
from globaledge.schemas import investment as investment_schemas
from globaledge.schemas import kyc as kyc_schemas
from globaledge.schemas import security_form as security_form_schemas
from globaledge.schemas import user as user_schemas
from globaledge.schemas import waitlist as waitlist_schemas
from globaledge.schemas.query import FilterField, QuerySpec
from globaledge.services import rules


def _unchanged(data: Dict[str, Any]) -> Dict[str, Any]:
    return data


@dataclass(frozen=True, eq=False)
class EntityDefinition:
    """
    Declarative description of one entity.

    ``collection`` names the mock-store collection.  ``item_key`` names the
    single record in get/create/update responses, and its plural
    (``list_key``) holds the list in integration list responses.
    ``payload_aliases`` renames legacy request keys before validation.
    """

    name: str
    collection: str
    item_key: str
    model: Type[SQLModel]
    create_schema: Type[BaseModel]
    update_schema: Type[BaseModel]
    response_schema: Type[BaseModel]
    required_fields: Tuple[str, ...]
    query: QuerySpec
    update_required_fields: Tuple[str, ...] = ()
    fallback: FallbackPolicy = READ_FALLBACK
    unique_fields: Tuple[str, ...] = ()
    payload_aliases: Mapping[str, str] = field(default_factory=dict)
    on_create: Callable[[Dict[str, Any]], Dict[str, Any]] = _unchanged
    on_update: UpdateHook = rules.passthrough

    @property
    def list_key(self) -> str:
        return f"{self.item_key}s"

    def serialize(self, record: Any) -> Dict[str, Any]:
        return self.response_schema.model_validate(record).to_api()


USERS = EntityDefinition(
    name="User",
    collection="users",
    item_key="user",
    model=User,
    create_schema=user_schemas.UserCreate,
    update_schema=user_schemas.UserUpdate,
    response_schema=user_schemas.UserResponse,
    required_fields=("email", "firstName", "lastName", "country", "role"),
    query=QuerySpec(
        filters={
            "role": FilterField("role", UserRole),
            "status": FilterField("status", UserStatus),
            "kycStatus": FilterField("kyc_status", KycStatus),
            "accountType": FilterField("account_type", AccountType),
            "country": FilterField("country"),
        },
        sortable={
            "createdAt": "created_at",
            "email": "email",
            "firstName": "first_name",
            "lastName": "last_name",
            "country": "country",
            "totalInvested": "total_invested",
        },
        search_fields=("first_name", "last_name", "email", "company_name"),
    ),
    unique_fields=("email",),
    on_update=rules.user_update,
)

ASSETS = EntityDefinition(
    name="Asset",
    collection="assets",
    item_key="asset",
    model=Asset,
    create_schema=asset_schemas.AssetCreate,
    update_schema=asset_schemas.AssetUpdate,
    response_schema=asset_schemas.AssetResponse,
    required_fields=("name", "type", "description", "value", "apr", "risk", "status"),
    query=QuerySpec(
        filters={
            "type": FilterField("type", AssetType),
            "status": FilterField("status", AssetStatus),
            "risk": FilterField("risk", AssetRisk),
            "issuerId": FilterField("issuer_id"),
        },
        sortable={
            "createdAt": "created_at",
            "name": "name",
            "value": "value",
            "apr": "apr",
            "fundedPercentage": "funded_percentage",
        },
        search_fields=("name", "description"),
    ),
    on_update=rules.asset_update,
)

INVESTMENTS = EntityDefinition(
    name="Investment",
    collection="investments",
    item_key="investment",
    model=Investment,
    create_schema=investment_schemas.InvestmentCreate,
    update_schema=investment_schemas.InvestmentUpdate,
    response_schema=investment_schemas.InvestmentResponse,
    required_fields=("userId", "assetId", "amount", "tokens"),
    query=QuerySpec(
        filters={
            "userId": FilterField("user_id"),
            "investorId": FilterField("user_id"),
            "assetId": FilterField("asset_id"),
            "status": FilterField("status", InvestmentStatus),
            "paymentStatus": FilterField("payment_status", PaymentStatus),
            "paymentMethod": FilterField("payment_method", PaymentMethod),
        },
        sortable={
            "createdAt": "created_at",
            "amount": "amount",
            "tokens": "tokens",
            "totalFees": "total_fees",
        },
    ),
    payload_aliases={"investorId": "userId"},
    on_create=rules.investment_create,
    on_update=rules.investment_update,
)

KYC_APPLICATIONS = EntityDefinition(
    name="KYC application",
    collection="kyc",
    item_key="application",
    model=KycApplication,
    create_schema=kyc_schemas.KycApplicationCreate,
    update_schema=kyc_schemas.KycApplicationUpdate,
    response_schema=kyc_schemas.KycApplicationResponse,
    required_fields=("userId", "personalDetails", "documents"),
    query=QuerySpec(
        filters={
            "userId": FilterField("user_id"),
            "status": FilterField("status", KycApplicationStatus),
        },
        sortable={"submittedAt": "submitted_at", "riskScore": "risk_score"},
        default_sort="submittedAt",
        date_field="submitted_at",
    ),
    on_update=rules.kyc_application_update,
)

WAITLIST = EntityDefinition(
    name="Waitlist submission",
    collection="waitlist",
    item_key="submission",
    model=WaitlistSubmission,
    create_schema=waitlist_schemas.WaitlistCreate,
    update_schema=waitlist_schemas.WaitlistStatusUpdate,
    response_schema=waitlist_schemas.WaitlistResponse,
    required_fields=(
        "firstName",
        "lastName",
        "email",
        "phone",
        "investorType",
        "tokenInterest",
        "heardFrom",
        "investmentAmount",
    ),
    query=QuerySpec(
        filters={
            "status": FilterField("status", WaitlistStatus),
            "investorType": FilterField("investor_type"),
            "tokenInterest": FilterField("token_interest"),
        },
        sortable={"submittedAt": "submitted_at", "lastName": "last_name", "email": "email"},
        default_sort="submittedAt",
        date_field="submitted_at",
        search_fields=("first_name", "last_name", "email", "company"),
    ),
    update_required_fields=("status",),
)

SECURITY_FORMS = EntityDefinition(
    name="Security form",
    collection="security_forms",
    item_key="form",
    model=SecurityForm,
    create_schema=security_form_schemas.SecurityFormCreate,
    update_schema=security_form_schemas.SecurityFormUpdate,
    response_schema=security_form_schemas.SecurityFormResponse,
    required_fields=("type", "userId", "formData"),
    query=QuerySpec(
        filters={
            "userId": FilterField("user_id"),
            "type": FilterField("type", SecurityFormType),
            "status": FilterField("status", SecurityFormStatus),
            "priority": FilterField("priority", FormPriority),
        },
        sortable={"submittedAt": "submitted_at", "priority": "priority"},
        default_sort="submittedAt",
        date_field="submitted_at",
    ),
    on_update=rules.security_form_update,
)

ALL_ENTITIES = (USERS, ASSETS, INVESTMENTS, KYC_APPLICATIONS, WAITLIST, SECURITY_FORMS)
