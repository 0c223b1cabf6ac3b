from __future__ import annotations


class DomainError(Exception):
    """Base for domain errors."""


class InvariantViolationError(DomainError):
    """Inputs break a precondition of the estimator; the computation must abort."""


class InsufficientHistoryError(DomainError):
    """Pool oracle does not hold enough observation history."""


class VolatilityInputError(DomainError):
    """Invalid parameters for a volatility request."""


class VolatilityNotFoundError(DomainError):
    """No cached volatility estimate for the pool."""
