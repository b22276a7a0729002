from typing import Optional, Any

class BotError(Exception):
    """
    Base exception for the lookup bot.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)

class AccountNotFoundError(BotError):
    """
    Raised when a referenced account does not exist.
    """
    def __init__(self, message: str = "Account not found", details: Optional[Any] = None):
        super().__init__(message, code="NOT_FOUND", status_code=404, details=details)

class InvalidInputError(BotError):
    """
    Raised when an id, amount or query is malformed.
    """
    def __init__(self, message: str = "Invalid input", details: Optional[Any] = None):
        super().__init__(message, code="INVALID_INPUT", status_code=422, details=details)

class InsufficientCreditsError(BotError):
    """
    Raised when a debit is attempted against a balance below one credit.
    """
    def __init__(self, message: str = "Insufficient credits", details: Optional[Any] = None):
        super().__init__(message, code="INSUFFICIENT_CREDITS", status_code=402, details=details)

class ExternalServiceError(BotError):
    """
    Raised when an external service (membership check, lookup API) fails.
    """
    def __init__(self, message: str = "External service error", details: Optional[Any] = None):
        super().__init__(message, code="EXTERNAL_SERVICE_ERROR", status_code=502, details=details)

class DeliveryError(BotError):
    """
    Raised when a single outbound chat message cannot be delivered.
    """
    def __init__(self, message: str = "Message delivery failed", details: Optional[Any] = None):
        super().__init__(message, code="DELIVERY_FAILED", status_code=502, details=details)
