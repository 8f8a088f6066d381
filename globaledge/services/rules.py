"""
Business rules applied on the write path.

Create hooks take the validated payload (snake_case attribute names) and
return the record data to store.  Update hooks take the stored record and
the requested changes and return the changes to apply; they run inside the
backend that owns the record, so the check and the write always see the
same data.  All violations raise :class:`BusinessRuleViolation` (422).
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict

from globaledge.core.config import settings
from globaledge.core.exceptions import BusinessRuleViolation
from globaledge.models.asset import AssetStatus
from globaledge.models.common import utcnow
from globaledge.models.investment import PaymentStatus
from globaledge.models.kyc import KycApplicationStatus
from globaledge.models.security_form import SecurityFormStatus
from globaledge.models.user import KycStatus

CENT = Decimal("0.01")


# ── Status lattices ──
# Each state maps to the states reachable from it (staying put included).

_USER_KYC_TRANSITIONS: dict[KycStatus, set[KycStatus]] = {
    KycStatus.NOT_STARTED: {KycStatus.NOT_STARTED, KycStatus.PENDING},
    KycStatus.PENDING: {KycStatus.PENDING, KycStatus.APPROVED, KycStatus.REJECTED},
    KycStatus.APPROVED: {KycStatus.APPROVED},
    KycStatus.REJECTED: {KycStatus.REJECTED},
}

_ASSET_STATUS_ORDER = [
    AssetStatus.PENDING,
    AssetStatus.FUNDING,
    AssetStatus.ACTIVE,
    AssetStatus.COMPLETED,
]

_KYC_APPLICATION_TRANSITIONS: dict[KycApplicationStatus, set[KycApplicationStatus]] = {
    KycApplicationStatus.PENDING: {
        KycApplicationStatus.PENDING,
        KycApplicationStatus.UNDER_REVIEW,
        KycApplicationStatus.APPROVED,
        KycApplicationStatus.REJECTED,
    },
    KycApplicationStatus.UNDER_REVIEW: {
        KycApplicationStatus.UNDER_REVIEW,
        KycApplicationStatus.APPROVED,
        KycApplicationStatus.REJECTED,
    },
    KycApplicationStatus.APPROVED: {KycApplicationStatus.APPROVED},
    KycApplicationStatus.REJECTED: {KycApplicationStatus.REJECTED},
}

_SECURITY_FORM_TRANSITIONS: dict[SecurityFormStatus, set[SecurityFormStatus]] = {
    SecurityFormStatus.PENDING: set(SecurityFormStatus),
    SecurityFormStatus.IN_PROGRESS: {
        SecurityFormStatus.IN_PROGRESS,
        SecurityFormStatus.COMPLETED,
        SecurityFormStatus.REJECTED,
        SecurityFormStatus.EXPIRED,
    },
    SecurityFormStatus.COMPLETED: {SecurityFormStatus.COMPLETED},
    SecurityFormStatus.REJECTED: {SecurityFormStatus.REJECTED},
    SecurityFormStatus.EXPIRED: {SecurityFormStatus.EXPIRED},
}


def _check_transition(label: str, lattice: dict, current: Any, requested: Any) -> None:
    if requested not in lattice[current]:
        allowed = ", ".join(sorted(s.value for s in lattice[current]))
        raise BusinessRuleViolation(
            f"Cannot change {label} from '{current.value}' to '{requested.value}'. "
            f"Allowed: {allowed}."
        )


def _with_updated_at(changes: Dict[str, Any]) -> Dict[str, Any]:
    return {**changes, "updated_at": utcnow()}


def passthrough(record: Any, changes: Dict[str, Any]) -> Dict[str, Any]:
    return changes


# ── Fees ──


def _cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_fees(amount: Decimal) -> Dict[str, Decimal]:
    """Fee breakdown for an investment amount.

    Each component is rounded to cents first, so ``total_fees`` is exactly
    the sum of the parts.
    """
    platform = _cents(amount * settings.PLATFORM_FEE_RATE)
    processing = _cents(amount * settings.PROCESSING_FEE_RATE + settings.PROCESSING_FEE_FIXED)
    management = _cents(amount * settings.MANAGEMENT_FEE_RATE)
    return {
        "platform_fee": platform,
        "processing_fee": processing,
        "management_fee": management,
        "total_fees": platform + processing + management,
    }


# ── Users ──


def user_update(record: Any, changes: Dict[str, Any]) -> Dict[str, Any]:
    if "kyc_status" in changes:
        _check_transition(
            "kycStatus", _USER_KYC_TRANSITIONS, record.kyc_status, changes["kyc_status"]
        )
    return _with_updated_at(changes)


# ── Assets ──


def asset_update(record: Any, changes: Dict[str, Any]) -> Dict[str, Any]:
    """Status only moves forward; funding progress never shrinks while funding."""
    if "status" in changes:
        current = _ASSET_STATUS_ORDER.index(record.status)
        requested = _ASSET_STATUS_ORDER.index(changes["status"])
        if requested < current:
            raise BusinessRuleViolation(
                f"Cannot change asset status from '{record.status.value}' back to "
                f"'{changes['status'].value}'."
            )
    if "funded_percentage" in changes and record.status == AssetStatus.FUNDING:
        if Decimal(changes["funded_percentage"]) < Decimal(record.funded_percentage):
            raise BusinessRuleViolation(
                f"fundedPercentage cannot decrease while funding "
                f"(currently {record.funded_percentage})."
            )
    return _with_updated_at(changes)


# ── Investments ──


def _check_payment_requires_kyc(payment_status: Any, kyc_completed: bool) -> None:
    if payment_status == PaymentStatus.COMPLETED and not kyc_completed:
        raise BusinessRuleViolation("Payment cannot be completed before KYC is completed.")


def investment_create(data: Dict[str, Any]) -> Dict[str, Any]:
    _check_payment_requires_kyc(data.get("payment_status"), bool(data.get("kyc_completed")))
    return {**data, **compute_fees(Decimal(data["amount"]))}


def investment_update(record: Any, changes: Dict[str, Any]) -> Dict[str, Any]:
    payment_status = changes.get("payment_status", record.payment_status)
    kyc_completed = changes.get("kyc_completed", record.kyc_completed)
    _check_payment_requires_kyc(payment_status, kyc_completed)
    if "amount" in changes:
        changes = {**changes, **compute_fees(Decimal(changes["amount"]))}
    return _with_updated_at(changes)


# ── KYC applications ──


def kyc_application_update(record: Any, changes: Dict[str, Any]) -> Dict[str, Any]:
    status = changes.get("status")
    if status is not None:
        _check_transition("status", _KYC_APPLICATION_TRANSITIONS, record.status, status)
        terminal = status in (KycApplicationStatus.APPROVED, KycApplicationStatus.REJECTED)
        if terminal and status != record.status:
            changes = {**changes, "reviewed_at": utcnow()}
    return changes


# ── Security forms ──


def security_form_update(record: Any, changes: Dict[str, Any]) -> Dict[str, Any]:
    status = changes.get("status")
    if status is not None:
        _check_transition("status", _SECURITY_FORM_TRANSITIONS, record.status, status)
        if status == SecurityFormStatus.COMPLETED and record.status != status:
            changes = {**changes, "completed_at": utcnow()}
    return changes
