from fastapi import status


class RovigramError(Exception):
    """Expected failure of an operation, rendered as {"error": message}."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RovigramError):
    status_code = status.HTTP_400_BAD_REQUEST


class DuplicateError(RovigramError):
    status_code = status.HTTP_409_CONFLICT


class AuthenticationError(RovigramError):
    status_code = status.HTTP_401_UNAUTHORIZED


class NotAuthenticatedError(RovigramError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class ForbiddenError(RovigramError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(RovigramError):
    status_code = status.HTTP_404_NOT_FOUND


class SessionConfigError(RuntimeError):
    """Session tokens cannot be signed because no secret is configured."""
