"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Request is malformed or violates a business rule; nothing was mutated"""

    pass


class InvalidStateTransitionError(ValidationError):
    """Record is not in a state that allows the requested transition"""

    pass


class NotFoundError(DomainException):
    """Referenced slot, client or record does not exist for this owner"""

    pass


class InsufficientFundsError(DomainException):
    """Balance (checking, savings, liquid cash or invested) cannot cover the amount"""

    pass


class LimitExceededError(DomainException):
    """Amount exceeds a configured cap such as the daily withdrawal limit"""

    pass


class ConcurrencyConflictError(DomainException):
    """A concurrent writer advanced the same record first; safe to retry"""

    pass
