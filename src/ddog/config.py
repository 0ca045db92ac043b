"""
Configuration management for ddog.

Credentials and site are read from the environment once per invocation
and handed explicitly to the API client.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from ddog.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_SITE = "datadoghq.com"

_SITE_RE = re.compile(r"^[A-Za-z0-9.-]+$")


@dataclass(frozen=True)
class DDogConfig:
    """Configuration for ddog."""

    api_key: str = field(repr=False)
    app_key: str = field(repr=False)
    site: str = DEFAULT_SITE

    @property
    def api_url(self) -> str:
        return f"https://api.{self.site}"

    @property
    def app_url(self) -> str:
        return f"https://app.{self.site}"

    def auth_headers(self) -> Dict[str, str]:
        return {
            "DD-API-KEY": self.api_key,
            "DD-APPLICATION-KEY": self.app_key,
        }

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "DDogConfig":
        """
        Create configuration from environment variables.

        Args:
            environ: Mapping to read from (default: os.environ)

        Returns:
            The loaded DDogConfig

        Raises:
            ConfigError: If a key is missing or empty, or DD_SITE is malformed
        """
        env = os.environ if environ is None else environ

        api_key = env.get("DD_API_KEY")
        app_key = env.get("DD_APP_KEY")
        if api_key is None:
            raise ConfigError("DD_API_KEY environment variable not set")
        if app_key is None:
            raise ConfigError("DD_APP_KEY environment variable not set")
        if not api_key.strip():
            raise ConfigError("DD_API_KEY is empty")
        if not app_key.strip():
            raise ConfigError("DD_APP_KEY is empty")

        site = (env.get("DD_SITE") or DEFAULT_SITE).strip()
        if not _SITE_RE.match(site):
            raise ConfigError(
                f"DD_SITE '{site}' is not a valid site; expected a host name like "
                "datadoghq.com or datadoghq.eu"
            )

        config = cls(api_key=api_key.strip(), app_key=app_key.strip(), site=site.lower())
        logger.debug(f"Datadog site: {config.site}")
        logger.debug("API key: set")
        logger.debug("App key: set")
        return config
