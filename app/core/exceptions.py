from typing import Optional, Any


class ShopAccountsError(Exception):
    """
    Base exception for the accounts service.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class ValidationError(ShopAccountsError):
    """
    Raised when required input is missing or invalid.
    """
    def __init__(self, message: str = "Validation error", details: Optional[Any] = None):
        super().__init__(message, code="VALIDATION_ERROR", status_code=400, details=details)


class ConflictError(ShopAccountsError):
    """
    Raised when a unique value (email, PAN card, address type) is already taken.
    """
    def __init__(self, message: str = "Resource already exists", details: Optional[Any] = None):
        super().__init__(message, code="CONFLICT", status_code=400, details=details)


class NotFoundError(ShopAccountsError):
    """
    Raised when a user, referral code or target record does not exist.
    """
    def __init__(self, message: str = "Resource not found", details: Optional[Any] = None):
        super().__init__(message, code="NOT_FOUND", status_code=400, details=details)


class AuthError(ShopAccountsError):
    """
    Raised when supplied credentials are wrong.
    """
    def __init__(self, message: str = "Authentication failed", details: Optional[Any] = None):
        super().__init__(message, code="AUTHENTICATION_FAILED", status_code=400, details=details)


class AuthenticationRequiredError(ShopAccountsError):
    """
    Raised when a protected route is called without a valid session token.
    """
    def __init__(self, message: str = "Please login to continue", details: Optional[Any] = None):
        super().__init__(message, code="AUTHENTICATION_REQUIRED", status_code=401, details=details)


class ForbiddenError(ShopAccountsError):
    """
    Raised when the session user lacks the role a route requires.
    """
    def __init__(self, message: str = "Access denied", details: Optional[Any] = None):
        super().__init__(message, code="FORBIDDEN", status_code=403, details=details)


class UnexpectedError(ShopAccountsError):
    """
    Wraps an unanticipated failure that a handler reports with its own status.
    """
    def __init__(self, message: str = "Unexpected error", status_code: int = 500, details: Optional[Any] = None):
        super().__init__(message, code="UNEXPECTED_ERROR", status_code=status_code, details=details)
