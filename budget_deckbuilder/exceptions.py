"""Custom exceptions for the budget deck builder.

Only caller contract violations raise. Budget, quota and pool infeasibility are
reported through ``AssemblyResult.warnings`` instead.
"""

from __future__ import annotations


class DeckBuilderError(Exception):
    """Base exception class for deck builder errors.

    Attributes:
        code (str): Error code for identifying the error type
        message (str): Descriptive error message
        details (dict): Additional error context and details
    """

    def __init__(self, message: str, code: str = "DECK_ERR", details: dict | None = None):
        """Initialize the base deck builder error.

        Args:
            message: Human-readable error description
            code: Error code for identification and handling
            details: Additional context about the error
        """
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        """Format the error message with code and details."""
        error_msg = f"[{self.code}] {self.message}"
        if self.details:
            error_msg += f"\nDetails: {self.details}"
        return error_msg


class PolicyValidationError(DeckBuilderError):
    """Raised when a generation policy is malformed.

    Covers negative budgets or caps, a non-positive target size, broken role
    bounds, and type weights or power levels outside their scales.
    """

    def __init__(self, field: str, reason: str, details: dict | None = None):
        """Initialize policy validation error.

        Args:
            field: Policy field that failed validation
            reason: Why the value is rejected
            details: Additional context about the offending value
        """
        self.field = field
        message = f"Invalid policy field '{field}': {reason}"
        super().__init__(message, code="POLICY_INVALID", details=details)


class SynergyRulesError(DeckBuilderError):
    """Raised when the synergy rule table or tribe table cannot be loaded."""

    def __init__(self, path: str, reason: str, details: dict | None = None):
        self.path = path
        message = f"Unable to load synergy data from '{path}': {reason}"
        super().__init__(message, code="RULES_INVALID", details=details)


class CandidateDataError(DeckBuilderError):
    """Raised when candidate card data violates the fetch contract.

    Examples are a DataFrame without the required columns or a card
    without a name.
    """

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, code="CANDIDATE_INVALID", details=details)


class CandidateFetchError(DeckBuilderError):
    """Raised when the external candidate fetch fails."""

    def __init__(self, reason: str, details: dict | None = None):
        message = f"Candidate fetch failed: {reason}"
        super().__init__(message, code="FETCH_FAILED", details=details)
