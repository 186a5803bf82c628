# src/aide_client/core/errors.py

"""
Error taxonomy shared by the API client, the session store and the controllers.

- NetworkError: transport failure or an unreadable response body. Never retried.
- AuthError: HTTP 401/403. The session must be treated as invalid.
- ApiError: any other non-2xx. Carries the server message when one was sent.
- ValidationError: rejected client-side, before any request was made.
"""

from __future__ import annotations


class ClientError(Exception):
    """Base class for every error surfaced by the client core."""


class NetworkError(ClientError):
    def __init__(self, message: str = "Couldn't reach the server.") -> None:
        super().__init__(message)
        self.message = message


class _HttpStatusError(ClientError):
    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(status={self.status}, message={self.message!r})"


class AuthError(_HttpStatusError):
    """
    401/403 from the backend.

    token is the bearer token the rejected request was sent with (None if it had none),
    so a late rejection of a replaced session can be told apart from the current one.
    """

    def __init__(self, status: int, message: str, token: str | None = None) -> None:
        super().__init__(status, message)
        self.token = token


class ApiError(_HttpStatusError):
    """Other non-2xx responses."""


class ValidationError(ClientError, ValueError):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
