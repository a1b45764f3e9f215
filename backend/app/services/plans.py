"""
Plan, tier and pricing tables for the credit ledger.

Tier expiry is fixed at allocation time:
- student: 30 days
- student_yearly: 365 days
- pro: 90 days
- pro_yearly: 365 days
- free (and any unknown tier): caller-supplied number of days
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Optional

from app.models.credit_batch import CreditTier
from app.services.errors import UnknownPlanTokenError


DEFAULT_EXPIRY_DAYS = 30

TIER_EXPIRY_DAYS: Dict[CreditTier, int] = {
    CreditTier.STUDENT: 30,
    CreditTier.STUDENT_YEARLY: 365,
    CreditTier.PRO: 90,
    CreditTier.PRO_YEARLY: 365,
}


@dataclass(frozen=True)
class PlanAllocation:
    """Credits and tier granted by a purchased plan."""
    credits: int
    tier: CreditTier


PLAN_ALLOCATIONS: Dict[str, PlanAllocation] = {
    "student_monthly": PlanAllocation(credits=50, tier=CreditTier.STUDENT),
    "student_yearly": PlanAllocation(credits=605, tier=CreditTier.STUDENT_YEARLY),
    "pro_monthly": PlanAllocation(credits=150, tier=CreditTier.PRO),
    "pro_yearly": PlanAllocation(credits=605, tier=CreditTier.PRO_YEARLY),
}

# Generic tier names used by billing (tier-A = student, tier-B = pro)
PLAN_ALIASES: Dict[str, str] = {
    "tier-A-monthly": "student_monthly",
    "tier-A-yearly": "student_yearly",
    "tier-B-monthly": "pro_monthly",
    "tier-B-yearly": "pro_yearly",
}

TIER_ALIASES: Dict[str, CreditTier] = {
    "tier-A-monthly": CreditTier.STUDENT,
    "tier-A-yearly": CreditTier.STUDENT_YEARLY,
    "tier-B-monthly": CreditTier.PRO,
    "tier-B-yearly": CreditTier.PRO_YEARLY,
}

# Cost per operation kind
CREDIT_COSTS: Dict[str, int] = {
    "text_analysis": 3,
    "image_analysis": 3,  # vision model
    "image_ocr": 3,
    "detailed_feedback": 2,
}
DEFAULT_OPERATION_COST = 1


def resolve_tier(tier) -> Optional[CreditTier]:
    """Map a tier value or alias to CreditTier; None when unrecognized."""
    if isinstance(tier, CreditTier):
        return tier
    if tier in TIER_ALIASES:
        return TIER_ALIASES[tier]
    try:
        return CreditTier(tier)
    except ValueError:
        return None


def resolve_plan(plan_token: str) -> PlanAllocation:
    """
    Look up the allocation for a plan token.

    Raises:
        UnknownPlanTokenError: If the token is not a known plan
    """
    key = PLAN_ALIASES.get(plan_token, plan_token)
    plan = PLAN_ALLOCATIONS.get(key)
    if plan is None:
        raise UnknownPlanTokenError(plan_token)
    return plan


def compute_expiry(tier: CreditTier, now: datetime, expiry_days: int = DEFAULT_EXPIRY_DAYS) -> datetime:
    """Expiration for a new batch; expiry_days only applies to the free tier."""
    days = TIER_EXPIRY_DAYS.get(tier, expiry_days)
    return now + timedelta(days=days)


def get_credit_cost(operation: str) -> int:
    """Credits charged for one operation of the given kind."""
    return CREDIT_COSTS.get(operation, DEFAULT_OPERATION_COST)
