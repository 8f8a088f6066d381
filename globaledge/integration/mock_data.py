"""
In-process mock data store.

Serves requests made with ``useDatabase=false`` and reads that fall back when
the database is unavailable.  Contents are generated deterministically from
``MOCK_SEED`` with Faker, so every process starts with the same data; writes
made in mock mode live only as long as the process.
"""

import logging
import random
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from faker import Faker

from globaledge.core.config import settings
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
from globaledge.services.rules import compute_fees

logger = logging.getLogger(__name__)

COLLECTIONS = ("users", "assets", "investments", "kyc", "waitlist", "security_forms")

# Timestamps count back from a fixed instant so fixtures do not drift between runs.
EPOCH = datetime(2025, 1, 1, tzinfo=timezone.utc)

_ASSETS = [
    ("Jebel Ali-Dubai Container", AssetType.CONTAINER, "12.5", AssetRisk.MEDIUM, "45000",
     "High-value electronics and luxury goods container route from Jebel Ali Port to Dubai.",
     AssetStatus.ACTIVE, "100"),
    ("Abu Dhabi-Rotterdam Container", AssetType.CONTAINER, "11.8", AssetRisk.MEDIUM, "38000",
     "Petrochemicals and oil products container route from Abu Dhabi to Rotterdam.",
     AssetStatus.FUNDING, "64"),
    ("Dubai Marina Office Tower", AssetType.PROPERTY, "8.2", AssetRisk.LOW, "350000",
     "Premium commercial office space in Dubai Marina with high rental yields.",
     AssetStatus.ACTIVE, "100"),
    ("Abu Dhabi Corniche Residential", AssetType.PROPERTY, "9.5", AssetRisk.LOW, "280000",
     "Luxury residential properties along Abu Dhabi Corniche with waterfront views.",
     AssetStatus.FUNDING, "37.5"),
    ("Dubai Gold Souk Trade Token", AssetType.TRADE_TOKEN, "15.1", AssetRisk.HIGH, "25000",
     "Trade finance token backed by gold and precious metals inventory from Dubai Gold Souk.",
     AssetStatus.PENDING, "0"),
    ("Sharjah Textile Trade Token", AssetType.TRADE_TOKEN, "13.2", AssetRisk.MEDIUM, "18000",
     "Trade finance token for traditional textiles from Sharjah textile markets.",
     AssetStatus.COMPLETED, "100"),
    ("Dubai International Vault", AssetType.VAULT, "6.8", AssetRisk.LOW, "20000",
     "Secure vault storage for gold and precious metals at DIFC.",
     AssetStatus.ACTIVE, "100"),
    ("Abu Dhabi Diamond Vault", AssetType.VAULT, "7.5", AssetRisk.LOW, "15000",
     "High-security vault for diamonds and precious stones at ADGM.",
     AssetStatus.FUNDING, "12"),
]


class MockDataStore:
    """Named collections of model instances keyed by id."""

    def __init__(self) -> None:
        self._collections: Dict[str, Dict[str, Any]] = {name: {} for name in COLLECTIONS}

    def collection(self, name: str) -> Dict[str, Any]:
        return self._collections.setdefault(name, {})

    def add(self, name: str, record: Any) -> Any:
        self.collection(name)[record.id] = record
        return record

    def all(self, name: str) -> List[Any]:
        return list(self.collection(name).values())

    def counts(self) -> Dict[str, int]:
        return {name: len(records) for name, records in self._collections.items()}

    @classmethod
    def seeded(cls, seed: Optional[int] = None) -> "MockDataStore":
        store = cls()
        _populate(store, settings.MOCK_SEED if seed is None else seed)
        logger.debug("Mock data store seeded: %s", store.counts())
        return store


def _populate(store: MockDataStore, seed: int) -> None:
    fake = Faker()
    fake.seed_instance(seed)
    rng = random.Random(seed)

    roles = [UserRole.INVESTOR] * 6 + [UserRole.ISSUER, UserRole.ADMIN, UserRole.MODERATOR]
    kyc_cycle = list(KycStatus)
    for i in range(1, 31):
        first, last = fake.first_name(), fake.last_name()
        created = EPOCH - timedelta(days=3 * i, hours=rng.randint(0, 23))
        role = rng.choice(roles)
        store.add(
            "users",
            User(
                id=f"user-{i:03d}",
                email=f"{first}.{last}.{i}@example.com".lower(),
                first_name=first,
                last_name=last,
                phone=fake.phone_number()[:40],
                country=fake.country()[:100],
                role=role,
                status=rng.choice(list(UserStatus)),
                account_type=(
                    AccountType.CORPORATE if role is UserRole.ISSUER else AccountType.INDIVIDUAL
                ),
                kyc_status=kyc_cycle[i % len(kyc_cycle)],
                total_invested=Decimal(rng.randrange(0, 90_000, 500)),
                investment_limit=Decimal("100000"),
                permissions=["view_dashboard"],
                company_name=fake.company() if role is UserRole.ISSUER else None,
                created_at=created,
                updated_at=created,
            ),
        )

    for i, (name, kind, apr, risk, value, description, status, funded) in enumerate(_ASSETS, 1):
        created = EPOCH - timedelta(days=20 * i)
        store.add(
            "assets",
            Asset(
                id=f"asset-{i:03d}",
                name=name,
                type=kind,
                description=description,
                value=Decimal(value),
                apr=Decimal(apr),
                risk=risk,
                status=status,
                funded_percentage=Decimal(funded),
                issuer_id=None,
                total_supply=int(Decimal(value)) // 10,
                minimum_investment=Decimal("100"),
                created_at=created,
                updated_at=created,
            ),
        )

    users = store.all("users")
    assets = store.all("assets")
    for i in range(1, 41):
        user = rng.choice(users)
        asset = rng.choice(assets)
        amount = Decimal(rng.randrange(500, 25_000, 250))
        kyc_done = user.kyc_status is KycStatus.APPROVED
        payment_status = PaymentStatus.COMPLETED if kyc_done else PaymentStatus.PENDING
        created = EPOCH - timedelta(days=2 * i, hours=rng.randint(0, 23))
        store.add(
            "investments",
            Investment(
                id=f"investment-{i:03d}",
                user_id=user.id,
                asset_id=asset.id,
                amount=amount,
                tokens=int(amount // 10),
                status=InvestmentStatus.COMPLETED if kyc_done else InvestmentStatus.PENDING,
                payment_method=rng.choice(list(PaymentMethod)),
                payment_status=payment_status,
                kyc_completed=kyc_done,
                created_at=created,
                updated_at=created,
                **compute_fees(amount),
            ),
        )

    for i, user in enumerate(u for u in users if u.kyc_status is not KycStatus.NOT_STARTED):
        status = {
            KycStatus.PENDING: KycApplicationStatus.PENDING,
            KycStatus.APPROVED: KycApplicationStatus.APPROVED,
            KycStatus.REJECTED: KycApplicationStatus.REJECTED,
        }[user.kyc_status]
        submitted = user.created_at + timedelta(days=1)
        reviewed = status in (KycApplicationStatus.APPROVED, KycApplicationStatus.REJECTED)
        store.add(
            "kyc",
            KycApplication(
                id=f"kyc-{i + 1:03d}",
                user_id=user.id,
                status=status,
                personal_details={
                    "dateOfBirth": fake.date_of_birth(minimum_age=21, maximum_age=75).isoformat(),
                    "nationality": user.country,
                    "address": fake.address().replace("\n", ", "),
                },
                documents=[{"type": "passport", "status": "uploaded"}],
                risk_score=rng.randint(5, 80),
                submitted_at=submitted,
                reviewed_at=submitted + timedelta(days=2) if reviewed else None,
                reviewed_by="user-admin" if reviewed else None,
                rejection_reason=(
                    "Document mismatch" if status is KycApplicationStatus.REJECTED else None
                ),
            ),
        )

    interests = ["containers", "property", "trade tokens", "vaults"]
    for i in range(1, 13):
        first, last = fake.first_name(), fake.last_name()
        store.add(
            "waitlist",
            WaitlistSubmission(
                id=f"waitlist-{i:03d}",
                first_name=first,
                last_name=last,
                email=f"{first}.{last}@example.org".lower(),
                phone=fake.phone_number()[:40],
                investor_type=rng.choice(["individual", "accredited", "institutional"]),
                token_interest=rng.choice(interests),
                heard_from=rng.choice(["linkedin", "referral", "search", "event"]),
                investment_amount=rng.choice(["<10k", "10k-50k", "50k-250k", "250k+"]),
                company=fake.company() if i % 3 == 0 else None,
                message=None,
                status=list(WaitlistStatus)[i % len(WaitlistStatus)],
                submitted_at=EPOCH - timedelta(days=i, hours=rng.randint(0, 23)),
            ),
        )

    for i in range(1, 11):
        status = list(SecurityFormStatus)[i % len(SecurityFormStatus)]
        submitted = EPOCH - timedelta(days=4 * i)
        store.add(
            "security_forms",
            SecurityForm(
                id=f"form-{i:03d}",
                type=list(SecurityFormType)[i % len(SecurityFormType)],
                user_id=rng.choice(users).id,
                status=status,
                form_data={"reference": fake.bothify("REF-####-????")},
                priority=rng.choice(list(FormPriority)),
                submitted_at=submitted,
                completed_at=submitted + timedelta(days=3)
                if status is SecurityFormStatus.COMPLETED
                else None,
            ),
        )


mock_store = MockDataStore.seeded()
