# src/aide_client/session/store.py

"""
Session store: the only owner of the auth token and the signed-in user.

States and transitions:
- VERIFYING       -> AUTHENTICATED   (restore: /auth/me accepted the persisted token)
- VERIFYING       -> UNAUTHENTICATED (restore: any failure; the slot is cleared, no retry)
- UNAUTHENTICATED -> AUTHENTICATED   (login success)
- AUTHENTICATED   -> UNAUTHENTICATED (logout / invalidate)

Logout is client-side only: the token stays valid on the server until it expires.
Auth submits are single-flight; a second submit while one is pending is ignored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..api.client import ApiClient
from ..core.errors import ApiError, ClientError
from ..core.events import EventBus, SessionChanged
from ..core.models import AuthState, Session, User
from ..core.ports import TokenStorage

logger = logging.getLogger(__name__)

REGISTER_SUCCESS_MESSAGE = "Registration successful! Please login."


@dataclass(slots=True, frozen=True)
class AuthResult:
    ok: bool
    message: str | None = None
    user: User | None = None
    ignored: bool = False


class SessionStore:
    def __init__(self, api: ApiClient, storage: TokenStorage, bus: EventBus) -> None:
        self._api = api
        self._storage = storage
        self._bus = bus
        self._inflight = False

        token = self._load_token()
        if token:
            self._session = Session(token=token)
            self._state = AuthState.VERIFYING
        else:
            self._session = Session()
            self._state = AuthState.UNAUTHENTICATED

    # ---- read side ----

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def token(self) -> str | None:
        return self._session.token

    @property
    def user(self) -> User | None:
        return self._session.user

    @property
    def is_authenticated(self) -> bool:
        return self._state is AuthState.AUTHENTICATED

    @property
    def busy(self) -> bool:
        return self._inflight

    # ---- lifecycle ----

    async def restore(self) -> AuthState:
        """Verify a persisted token, if any. Never retries."""
        token = self._load_token()
        if not token:
            self._set(Session(), AuthState.UNAUTHENTICATED)
            return self._state

        self._set(Session(token=token), AuthState.VERIFYING)
        try:
            data = await self._api.request("/auth/me", "GET")
            user = User.from_json(data)
        except ClientError as e:
            logger.info("Stored session rejected (%s); signing out.", e.__class__.__name__)
            if self._session.token == token:
                self._drop_token()
                self._set(Session(), AuthState.UNAUTHENTICATED)
            return self._state

        if self._session.token != token:
            # Logged out (or re-logged in) while verifying: this result is stale.
            logger.debug("Discarding stale verification result.")
            return self._state

        self._set(Session(token=token, user=user), AuthState.AUTHENTICATED)
        logger.info("Session restored for %s", user.email)
        return self._state

    async def login(self, email: str, password: str) -> AuthResult:
        if self._inflight:
            logger.debug("Login ignored: another auth request is in flight.")
            return AuthResult(ok=False, ignored=True)
        if self._state is not AuthState.UNAUTHENTICATED:
            logger.debug("Login ignored in state=%s", self._state)
            return AuthResult(ok=False, ignored=True)

        email = (email or "").strip()
        if not email or not password:
            return AuthResult(ok=False, message="Email and password are required.")

        self._inflight = True
        try:
            data = await self._api.request(
                "/auth/login", "POST", {"email": email, "password": password}, auth_required=False
            )
            token, user = _parse_login(data)
        except ClientError as e:
            message = _failure_message(e, "Authentication failed")
            logger.info("Login failed for %s: %s", email, message)
            return AuthResult(ok=False, message=message)
        finally:
            self._inflight = False

        try:
            self._storage.save(token)
        except OSError:
            logger.exception("Failed to persist session token; session will not survive a restart.")

        self._set(Session(token=token, user=user), AuthState.AUTHENTICATED)
        logger.info("Logged in as %s", user.email)
        return AuthResult(ok=True, user=user)

    async def register(self, email: str, password: str) -> AuthResult:
        """Create an account. Does not sign in: the caller switches to login mode."""
        if self._inflight:
            logger.debug("Register ignored: another auth request is in flight.")
            return AuthResult(ok=False, ignored=True)

        email = (email or "").strip()
        if not email or not password:
            return AuthResult(ok=False, message="Email and password are required.")

        self._inflight = True
        try:
            await self._api.request(
                "/auth/register", "POST", {"email": email, "password": password}, auth_required=False
            )
        except ClientError as e:
            message = _failure_message(e, "Registration failed")
            logger.info("Registration failed for %s: %s", email, message)
            return AuthResult(ok=False, message=message)
        finally:
            self._inflight = False

        logger.info("Registered %s", email)
        return AuthResult(ok=True, message=REGISTER_SUCCESS_MESSAGE)

    def logout(self) -> None:
        """Unconditional, client-side only."""
        self._drop_token()
        self._set(Session(), AuthState.UNAUTHENTICATED)
        logger.info("Logged out.")

    def invalidate(self, reason: str = "", token: str | None = None) -> bool:
        """
        Forced logout after the backend rejected the token.

        When token is given, only the session that still holds it is ended: a late
        rejection of a token that was since replaced leaves the new session alone.
        Returns True when this call signed the user out.
        """
        if self._state is AuthState.UNAUTHENTICATED:
            return False
        if token is not None and token != self._session.token:
            logger.info("Ignoring rejection of a replaced session token%s", f" ({reason})" if reason else "")
            return False
        logger.info("Session invalidated%s", f": {reason}" if reason else "")
        self.logout()
        return True

    # ---- internals ----

    def _load_token(self) -> str | None:
        try:
            return self._storage.load()
        except OSError:
            logger.exception("Failed to read token slot.")
            return None

    def _drop_token(self) -> None:
        try:
            self._storage.clear()
        except OSError:
            logger.exception("Failed to clear token slot.")

    def _set(self, session: Session, state: AuthState) -> None:
        changed = state is not self._state or session.user != self._session.user
        self._session = session
        self._state = state
        if changed:
            self._bus.publish(SessionChanged(state=state, user=session.user))


def _parse_login(data: Any) -> tuple[str, User]:
    if not isinstance(data, dict):
        raise ApiError(200, "Unexpected login response from server.")
    token = data.get("token")
    if not isinstance(token, str) or not token:
        raise ApiError(200, "Login response did not include a token.")
    return token, User.from_json(data.get("user"))


def _failure_message(err: ClientError, fallback: str) -> str:
    msg = str(getattr(err, "message", "") or "").strip()
    return msg or fallback
