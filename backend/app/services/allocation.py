"""
Deduction planning over a snapshot of credit batches.

The planner is pure: it decides how much to take from which batch without
touching the database, so the caller can verify the whole request is
covered before applying anything.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List

from app.models.credit_batch import CreditBatch


@dataclass(frozen=True)
class DeductionStep:
    """Take `amount` credits from `batch`."""
    batch: CreditBatch
    amount: int


@dataclass
class DeductionPlan:
    """Ordered steps covering (or failing to cover) a requested amount."""
    requested: int
    steps: List[DeductionStep] = field(default_factory=list)

    @property
    def covered(self) -> int:
        return sum(step.amount for step in self.steps)

    @property
    def satisfied(self) -> bool:
        return self.covered == self.requested


def order_active_batches(batches: Iterable[CreditBatch], now: datetime) -> List[CreditBatch]:
    """Active batches, soonest-expiring first."""
    active = [b for b in batches if b.expires_at > now and b.available > 0]
    return sorted(active, key=lambda b: (b.expires_at, b.created_at or now, b.id))


def plan_deduction(batches: Iterable[CreditBatch], amount: int, now: datetime) -> DeductionPlan:
    """
    Split `amount` across batches, draining the soonest-expiring batch first.

    Each batch gives min(available, remaining). Planning stops as soon as
    the remaining amount reaches zero, so later batches are left untouched.
    If the batches run out first the plan is returned unsatisfied.
    """
    plan = DeductionPlan(requested=amount)
    remaining = amount

    for batch in order_active_batches(batches, now):
        if remaining <= 0:
            break
        take = min(batch.available, remaining)
        plan.steps.append(DeductionStep(batch=batch, amount=take))
        remaining -= take

    return plan
