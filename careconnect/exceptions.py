"""Custom exceptions for the CareConnect accounts service."""


class CareConnectError(Exception):
    """Base exception for CareConnect errors."""

    pass


class ValidationError(CareConnectError):
    """Missing or malformed input, rejected before any store is touched."""

    pass


class SelfDeletionError(ValidationError):
    """A caller tried to remove their own identity."""

    pass


class AuthenticationError(CareConnectError):
    """Missing, invalid or expired bearer token."""

    pass


class AuthorizationError(CareConnectError):
    """Caller is authenticated but not allowed to perform the action."""

    pass


class NotFoundError(CareConnectError):
    """Target identity or profile does not exist."""

    pass


class StoreError(CareConnectError):
    """A store rejected a request."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class PartialFailureError(StoreError):
    """A saga step failed after earlier steps were already applied.

    Applied steps are not reverted; re-invoking the operation with the same
    arguments converges on the intended state.
    """

    def __init__(
        self,
        message: str,
        step: str,
        completed_steps: list[str],
        status_code: int | None = None,
    ):
        super().__init__(message, status_code)
        self.step = step
        self.completed_steps = completed_steps
