# demiland/errors.py


class ApiError(Exception):
    """Base class for failures that map onto an HTTP status and a client-facing message."""
    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ApiError):
    status_code = 400

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.errors = errors


class AuthenticationError(ApiError):
    status_code = 401


class AuthorizationError(ApiError):
    status_code = 403


class NotFoundError(ApiError):
    status_code = 404


# Duplicate records are reported as 400, not 409, for frontend compatibility.
class ConflictError(ApiError):
    status_code = 400
