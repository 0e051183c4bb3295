"""Wiring of the storefront core for the server surfaces."""

import logging
from typing import Optional

import httpx

from .cart import CartStore
from .checkout import CheckoutOrchestrator
from .config import StorefrontConfig
from .models import AuthCredentials
from .navigation import Navigator
from .session import SessionManager
from .storefront_client import StorefrontClient
from .token_store import FileTokenStore, TokenStore

logger = logging.getLogger(__name__)


class Storefront:
    """One independently constructed set of stores sharing a client."""

    def __init__(
        self,
        token_store: TokenStore,
        api_url: str,
        timeout: float,
        language: str = "en",
        credentials: Optional[AuthCredentials] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.token_store = token_store
        self.credentials = credentials
        self.navigator = Navigator()
        self.client = StorefrontClient(token_store, base_url=api_url, timeout=timeout, transport=transport)
        self.session = SessionManager(self.client, token_store, self.navigator, language=language)
        self.cart = CartStore()
        self.checkout = CheckoutOrchestrator(
            self.session, self.cart, self.client, self.navigator, language=language
        )

    @classmethod
    def from_config(cls, config: StorefrontConfig) -> "Storefront":
        return cls(
            FileTokenStore(config.session_file),
            api_url=config.api_url,
            timeout=config.timeout,
            language=config.language,
            credentials=config.credentials,
        )

    async def start(self) -> None:
        """Resolve the stored session before serving anything."""
        state = await self.session.initialize()
        logger.info(f"Session state at startup: {state.value}")

    async def ensure_authenticated(self) -> bool:
        """Ensure there is a current user, auto-login if credentials are configured."""
        await self.session.wait_ready()
        if self.session.is_authenticated:
            return True

        if self.credentials:
            logger.info("Auto-logging in with configured credentials...")
            result = await self.session.login(self.credentials.email, self.credentials.password)
            if result.ok:
                logger.info("Auto-login successful")
                return True
            logger.warning(f"Auto-login failed: {result.error.message}")

        return False

    async def close(self) -> None:
        await self.client.close()
