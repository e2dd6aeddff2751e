from typing import Dict, Optional


class APIError(Exception):
    """Base class for errors rendered as ``{"message": ...}`` responses."""

    status_code = 500
    message = "Server error"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        if message is not None:
            self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.headers = headers
        super().__init__(self.message)


class ValidationError(APIError):
    status_code = 400
    message = "Invalid request"


class ConflictError(APIError):
    status_code = 400
    message = "User already exists"


class AuthError(APIError):
    status_code = 401
    message = "Unauthorized"


class NotFoundError(APIError):
    status_code = 404
    message = "Not found"


class InternalError(APIError):
    pass
