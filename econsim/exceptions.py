"""Custom exception hierarchy for econsim."""


class EconSimError(Exception):
    """Base exception for all econsim errors."""


class ValidationError(EconSimError):
    """Raised when input is malformed or out of range."""


class AmountFormatError(ValidationError):
    """Raised when a money amount is not positive or has more than two decimals."""


class ConflictError(EconSimError):
    """Raised when the current state forbids an otherwise valid operation."""


class NotFoundError(EconSimError):
    """Raised when a referenced entity does not exist."""


class InsufficientFundsError(EconSimError):
    """Raised when a non-bank sender's balance is below the amount."""


class SelfTransferError(EconSimError):
    """Raised when sender and recipient are the same account."""


class InvalidRoleError(EconSimError):
    """Raised when the principal or the target account has the wrong role."""


class StoreError(EconSimError):
    """Raised when the key-value store fails to read or write."""


class ConfigurationError(EconSimError):
    """Raised when configuration is invalid or missing."""


class SinkError(EconSimError):
    """Raised when a notification sink operation fails."""
