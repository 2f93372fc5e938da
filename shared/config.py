"""
Shared configuration management for the Varnish Cache purge service.
"""

import os
from typing import Dict, Optional
from urllib.parse import urlsplit

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SETTINGS_FILE = "~/.varnish-cache/settings.json"


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="VARNISH_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Persisted cache settings document
    settings_file: str = Field(default=DEFAULT_SETTINGS_FILE)

    # Public base URL of the site whose pages sit behind Varnish
    site_url: str = Field(default="")

    # Purge behaviour
    purge_timeout_seconds: float = Field(default=10.0, gt=0)

    # Admin surface
    admin_api_keys: str = Field(default="")
    nonce_ttl_seconds: int = Field(default=12 * 3600, ge=1)
    notice_ttl_seconds: int = Field(default=30, ge=1)

    def settings_path(self) -> str:
        """Return the settings file path with ``~`` expanded."""
        return os.path.expanduser(self.settings_file)

    def site_host(self) -> Optional[str]:
        """Return the host (with port, if any) of ``site_url``."""
        candidate = self.site_url.strip()
        if not candidate:
            return None
        if "://" not in candidate:
            candidate = f"http://{candidate}"
        host = urlsplit(candidate).netloc
        return host or None

    def api_key_roles(self) -> Dict[str, str]:
        """Parse ``admin_api_keys`` (``key:role`` pairs, comma separated)."""
        roles: Dict[str, str] = {}
        for item in self.admin_api_keys.split(","):
            item = item.strip()
            if not item:
                continue
            key, _, role = item.partition(":")
            roles[key.strip()] = role.strip() or "admin"
        return roles


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"


def get_config(service_name: str, port: int) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port)
