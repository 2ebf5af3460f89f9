class LadderException(Exception):
    """Base exception for tennis ladder errors."""
    status_code = 400
    error_code = "LADDER_ERROR"


class ValidationError(LadderException):
    """Raised when a required parameter is missing, empty or malformed."""
    status_code = 400
    error_code = "VALIDATION_ERROR"

    def __init__(self, message: str, fields=None):
        super().__init__(message)
        self.fields = list(fields or [])


class UnknownOperation(LadderException):
    """Raised when the requested API operation does not exist."""
    status_code = 400
    error_code = "UNKNOWN_OPERATION"


class AuthenticationFailed(LadderException):
    """Raised when an email/password pair does not match."""
    status_code = 401
    error_code = "AUTHENTICATION_FAILED"


class NotFoundError(LadderException):
    """Raised when a referenced club, player, challenge or achievement does not exist."""
    status_code = 404
    error_code = "NOT_FOUND"


class ConflictError(LadderException):
    """Raised when a write collides with existing state (duplicate email, scored challenge)."""
    status_code = 409
    error_code = "CONFLICT"


class TransactionFailure(LadderException):
    """Raised when a step of a multi-step mutation fails and the transaction was rolled back."""
    status_code = 500
    error_code = "TRANSACTION_FAILURE"
