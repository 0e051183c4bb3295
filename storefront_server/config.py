"""Configuration loaded from the environment."""

import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field

from .models import AuthCredentials
from .storefront_client import DEFAULT_BASE_URL, DEFAULT_TIMEOUT


class StorefrontConfig(BaseModel):
    """Runtime settings for the storefront servers."""

    api_url: str = Field(DEFAULT_BASE_URL, description="Backend root URL")
    timeout: float = Field(DEFAULT_TIMEOUT, gt=0, description="Request timeout in seconds")
    session_file: Optional[str] = Field(None, description="Token file, defaults to ~/.storefront_session.json")
    language: str = Field("en", description="Language of fallback messages (en, pt)")
    email: Optional[str] = None
    password: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "StorefrontConfig":
        """
        Build the configuration from environment variables.

        STOREFRONT_API_URL, STOREFRONT_TIMEOUT, STOREFRONT_SESSION_FILE,
        STOREFRONT_LANGUAGE, STOREFRONT_EMAIL, STOREFRONT_PASSWORD
        """
        env = os.environ if environ is None else environ
        values: dict[str, str] = {}
        for field, var in (
            ("api_url", "STOREFRONT_API_URL"),
            ("timeout", "STOREFRONT_TIMEOUT"),
            ("session_file", "STOREFRONT_SESSION_FILE"),
            ("language", "STOREFRONT_LANGUAGE"),
            ("email", "STOREFRONT_EMAIL"),
            ("password", "STOREFRONT_PASSWORD"),
        ):
            value = env.get(var)
            if value:
                values[field] = value
        return cls(**values)

    @property
    def credentials(self) -> Optional[AuthCredentials]:
        if self.email and self.password:
            return AuthCredentials(email=self.email, password=self.password)
        return None
