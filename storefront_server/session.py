"""Authenticated-user session lifecycle."""

import asyncio
import logging
from enum import Enum
from typing import Any, Optional

from .errors import StorefrontError, UnauthenticatedError, ValidationError, fallback_message
from .models import (
    AuthCredentials,
    AuthResponse,
    Failure,
    RegistrationForm,
    Result,
    User,
)
from .navigation import Navigator
from .observable import Observable
from .storefront_client import StorefrontClient
from .token_store import TokenStore

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    VALIDATING = "validating"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


class SessionManager(Observable):
    """
    Owns the current user and the persisted token.

    The token store and the current-user slot are only ever mutated here,
    and always together, so observers never see a token without a user or
    a user without a token outside of startup validation.
    """

    def __init__(
        self,
        client: StorefrontClient,
        token_store: TokenStore,
        navigator: Optional[Navigator] = None,
        language: str = "en",
    ) -> None:
        super().__init__()
        self._client = client
        self._token_store = token_store
        self._navigator = navigator or Navigator()
        self._language = language
        self._user: Optional[User] = None
        self._state = SessionState.UNINITIALIZED
        self._ready = asyncio.Event()
        client.on_unauthorized(self._handle_unauthorized)

    def _changed(self) -> None:
        self._notify(self._state)

    # State

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def user(self) -> Optional[User]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    @property
    def loading(self) -> bool:
        """True only while a stored token is being validated at startup."""
        return self._state in (SessionState.UNINITIALIZED, SessionState.VALIDATING)

    def _set_authenticated(self, token: str, user: User) -> None:
        self._token_store.set(token)
        self._user = user
        self._state = SessionState.AUTHENTICATED
        self._changed()

    def _set_anonymous(self) -> None:
        if self._token_store.get() is not None:
            self._token_store.remove()
        self._user = None
        self._state = SessionState.ANONYMOUS
        self._changed()

    # Startup

    async def initialize(self) -> SessionState:
        """
        Resolve the startup state from the stored token.

        Safe to call more than once: later calls wait for the first
        validation to finish and return its outcome.
        """
        if self._state != SessionState.UNINITIALIZED:
            await self._ready.wait()
            return self._state

        token = self._token_store.get()
        if not token:
            logger.info("No stored token, starting anonymous session")
            self._state = SessionState.ANONYMOUS
            self._ready.set()
            self._changed()
            return self._state

        self._state = SessionState.VALIDATING
        self._changed()
        logger.info("Validating stored token...")

        validation = None
        try:
            validation = await self._client.validate_token()
        except StorefrontError as e:
            logger.warning(f"Token validation failed: {e}")

        # A login, logout or forced logout during the wait takes precedence
        if self._state != SessionState.VALIDATING or self._token_store.get() != token:
            logger.info("Session changed during token validation, discarding result")
            self._ready.set()
            return self._state

        if validation is not None and validation.valid and validation.user is not None:
            logger.info(f"Stored token confirmed for {validation.user.email}")
            self._user = validation.user
            self._state = SessionState.AUTHENTICATED
            self._ready.set()
            self._changed()
        else:
            logger.info("Stored token rejected, clearing session")
            self._ready.set()
            self._set_anonymous()
        return self._state

    async def wait_ready(self) -> SessionState:
        """Block until startup validation has resolved."""
        return await self.initialize()

    # Operations

    async def login(self, email: str, password: str) -> Result[User]:
        logger.info(f"Logging in {email}")
        try:
            response = await self._client.login(AuthCredentials(email=email, password=password))
        except StorefrontError as e:
            logger.warning(f"Login failed for {email}: {e}")
            return Result(error=Failure.from_error(e, self._fallback("login")))
        return self._accept(response)

    async def register(self, form: RegistrationForm) -> Result[User]:
        """Create an account and start a session for it."""
        try:
            self._validate_registration(form)
        except ValidationError as e:
            return Result(error=Failure.from_error(e, self._fallback(e.code or "register")))

        logger.info(f"Registering {form.email}")
        try:
            response = await self._client.register(form.to_payload())
        except StorefrontError as e:
            logger.warning(f"Registration failed for {form.email}: {e}")
            return Result(error=Failure.from_error(e, self._fallback("register")))
        return self._accept(response)

    def _validate_registration(self, form: RegistrationForm) -> None:
        if form.password != form.confirm_password:
            raise ValidationError(self._fallback("password_mismatch"), code="password_mismatch")
        if len(form.password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(self._fallback("password_too_short"), code="password_too_short")

    def _accept(self, response: AuthResponse) -> Result[User]:
        self._set_authenticated(response.token, response.user)
        self._ready.set()
        logger.info(f"Session started for {response.user.email}")
        return Result(value=response.user)

    def logout(self) -> None:
        logger.info("Logging out")
        self._set_anonymous()

    async def update_profile(self, patch: dict[str, Any]) -> Result[User]:
        user = self._user
        if user is None:
            return self._unauthenticated()

        try:
            updated = await self._client.update_profile(user.id, patch)
        except StorefrontError as e:
            logger.warning(f"Profile update failed for {user.email}: {e}")
            return Result(error=Failure.from_error(e, self._fallback("update_profile")))

        # The session may have ended while the request was in flight
        if self._user is None or self._user.id != user.id:
            logger.warning("Session changed during profile update, discarding result")
            return self._unauthenticated()

        self._user = updated
        self._changed()
        logger.info(f"Profile updated for {updated.email}")
        return Result(value=updated)

    def _unauthenticated(self) -> Result[User]:
        error = UnauthenticatedError(self._fallback("unauthenticated"))
        return Result(error=Failure.from_error(error, error.message))

    def _handle_unauthorized(self) -> None:
        logger.warning("Unauthorized response, ending session")
        self._set_anonymous()
        self._navigator.redirect_to_login()

    def _fallback(self, key: str) -> str:
        return fallback_message(key, self._language)
