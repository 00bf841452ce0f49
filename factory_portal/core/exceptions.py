"""Custom exceptions for the factory portal."""


class FactoryPortalException(Exception):
    """Base exception for the factory portal."""

    pass


class ValidationError(FactoryPortalException):
    """Raised when validation fails."""

    pass


class NotFoundError(FactoryPortalException):
    """Raised when a resource is not found."""

    pass


class DatabaseError(FactoryPortalException):
    """Raised when a database operation fails."""

    pass


class ServiceError(FactoryPortalException):
    """Raised when a service operation fails."""

    pass


class ConfigurationError(FactoryPortalException):
    """Raised when configuration is invalid."""

    pass


class AuthenticationError(FactoryPortalException):
    """Raised when authentication fails."""

    pass


class AuthorizationError(FactoryPortalException):
    """Raised when an authenticated caller lacks permission."""

    pass


class TransitionError(FactoryPortalException):
    """Raised when a guitar could not be moved to another stage."""

    pass


class CrossRunStageError(TransitionError):
    """Raised when the target stage belongs to a different run than the guitar."""

    pass


class GateRequirementError(TransitionError):
    """Raised when an enforced stage gate has no matching note or photo."""

    pass
