"""Persistent storage for the session credential token."""

import json
import logging
import os
from pathlib import Path
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"


class TokenStore(Protocol):
    """Key-value store holding at most one credential token."""

    def get(self) -> Optional[str]: ...

    def set(self, token: str) -> None: ...

    def remove(self) -> None: ...


class MemoryTokenStore:
    """Token store that lives only as long as the process."""

    def __init__(self, token: Optional[str] = None) -> None:
        self._token = token

    def get(self) -> Optional[str]:
        return self._token

    def set(self, token: str) -> None:
        self._token = token

    def remove(self) -> None:
        self._token = None


class FileTokenStore:
    """Manages token persistence in a JSON file that survives restarts."""

    def __init__(self, session_file: Optional[str] = None) -> None:
        """
        Initialize the token store.

        Args:
            session_file: Path to store the token. Defaults to ~/.storefront_session.json
        """
        if session_file is None:
            session_file = str(Path.home() / ".storefront_session.json")
        self.session_file = session_file
        self._token: Optional[str] = self._load()

    def _load(self) -> Optional[str]:
        """Load the token from file if it exists."""
        if not os.path.exists(self.session_file):
            return None
        try:
            with open(self.session_file, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not load session file {self.session_file}: {e}")
            return None

        token = data.get(TOKEN_KEY) if isinstance(data, dict) else None
        if isinstance(token, str) and token:
            logger.info(f"Loaded stored token from {self.session_file}")
            return token
        return None

    def get(self) -> Optional[str]:
        return self._token

    def set(self, token: str) -> None:
        """Save the token and restrict the file to the owner."""
        with open(self.session_file, "w") as f:
            json.dump({TOKEN_KEY: token}, f)
        # Set restrictive permissions on session file
        os.chmod(self.session_file, 0o600)
        self._token = token
        logger.info(f"Session saved to {self.session_file}")

    def remove(self) -> None:
        """Forget the token and delete the file."""
        self._token = None
        if os.path.exists(self.session_file):
            try:
                os.remove(self.session_file)
                logger.info("Session cleared")
            except OSError as e:
                logger.warning(f"Could not delete session file: {e}")
