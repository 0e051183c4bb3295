"""Application-level navigation target."""

import logging
from typing import Optional

from .observable import Observable

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"


class Navigator(Observable):
    """
    Records where the application was told to go.

    Owned by the application rather than by any view, so a navigation
    requested after its initiating view is gone is still delivered to
    subscribers and kept in ``location``.
    """

    def __init__(self) -> None:
        super().__init__()
        self.location: Optional[str] = None

    def navigate(self, target: str) -> None:
        logger.info(f"Navigating to {target}")
        self.location = target
        self._notify(target)

    def redirect_to_login(self) -> None:
        self.navigate(LOGIN_PATH)
