"""
Error types raised by the gateway and the optimistic membership controller.
"""

from typing import Optional


class RemoteError(Exception):
    """A Supabase call failed (network, constraint or RLS violation)."""

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        hint: Optional[str] = None,
        details: Optional[str] = None,
    ):
        self.message = message or "Supabase error"
        self.code = code
        self.hint = hint
        self.details = details
        super().__init__(self.message)


class MembershipError(Exception):
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotAuthenticated(MembershipError):
    def __init__(self, message: str = "You must be signed in"):
        super().__init__(message)


class InvalidTarget(MembershipError):
    def __init__(self, message: str = "Target id is required"):
        super().__init__(message)


class RemoteWriteFailed(MembershipError):
    """Raised only after the optimistic cache state has been rolled back."""

    def __init__(self, error: RemoteError):
        super().__init__(error.message)
        self.code = error.code
        self.hint = error.hint
        self.details = error.details


class ReconciliationSchedulingFailed(MembershipError):
    """Logged by the reconciler, never surfaced to callers."""
