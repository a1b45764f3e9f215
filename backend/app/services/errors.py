"""
Ledger error types.
All derive from ValueError so callers that already handle ValueError keep working.
"""


class LedgerError(ValueError):
    """Base class for credit ledger errors."""


class InvalidOwnerError(LedgerError):
    """Owner id does not reference an existing account."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


class InvalidAmountError(LedgerError):
    """Credit amount outside the range an operation accepts."""


class UnknownPlanTokenError(LedgerError):
    """Plan token has no credit allocation."""

    def __init__(self, plan_token: str):
        self.plan_token = plan_token
        super().__init__(f"Invalid plan type: {plan_token}")


class InsufficientCreditsError(LedgerError):
    """Active batches cannot cover the requested amount."""

    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient credits. This operation requires {required} credits."
        )


class ConcurrentLedgerUpdateError(LedgerError):
    """A deduction kept losing races against other writers on the same account."""
