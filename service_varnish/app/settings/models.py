"""
Settings document models.

The persisted JSON keeps the key names the admin screens have always used
(``cache_devmode``, ``cacheLifetime``...), so every field carries its on-disk
alias while Python code uses snake_case names.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Iterable, List, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PurgeFrequency(str, Enum):
    """Recurrence of the scheduled purge."""

    THIRTY_MINUTES = "thirty_minutes"
    HOURLY = "hourly"
    TWICE_DAILY = "twicedaily"
    DAILY = "daily"
    WEEKLY = "weekly"

    @property
    def seconds(self) -> int:
        return _FREQUENCY_SECONDS[self]


# host or bracketed IPv6 literal, optional numeric port
_SERVER_PATTERN = re.compile(r"^(\[[0-9A-Fa-f:.]+\]|[^\s/:\[\]?#@]+)(:[0-9]{1,5})?$")


_FREQUENCY_SECONDS = {
    PurgeFrequency.THIRTY_MINUTES: 30 * 60,
    PurgeFrequency.HOURLY: 3600,
    PurgeFrequency.TWICE_DAILY: 12 * 3600,
    PurgeFrequency.DAILY: 24 * 3600,
    PurgeFrequency.WEEKLY: 7 * 24 * 3600,
}


def _unique(values: Iterable[Any]) -> List[str]:
    """Trim entries, drop empty ones and duplicates, keep first-seen order."""
    seen = set()
    result: List[str] = []
    for value in values:
        if value is None:
            continue
        if not isinstance(value, (str, int, float)) or isinstance(value, bool):
            raise ValueError(f"list entries must be strings, got {type(value).__name__}")
        item = str(value).strip()
        if not item or item in seen:
            continue
        seen.add(item)
        result.append(item)
    return result


def _valid_server(server: str) -> bool:
    match = _SERVER_PATTERN.match(server)
    if not match:
        return False
    port = match.group(2)
    return port is None or 0 < int(port[1:]) <= 65535


class CacheConfig(BaseModel):
    """Cache settings document (one per installation)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    dev_mode: bool = Field(default=False, alias="cache_devmode")
    enabled: bool = False
    server: str = ""
    cache_lifetime: int = Field(default=3600, alias="cacheLifetime", ge=0)
    tag_prefix: str = Field(default="", alias="cacheTagPrefix")
    excluded_params: List[str] = Field(default_factory=list, alias="excludedParams")
    excludes: List[str] = Field(default_factory=list)
    auto_purge: bool = Field(default=False, alias="autoPurge")
    auto_purge_frequency: PurgeFrequency = Field(default=PurgeFrequency.DAILY, alias="autoPurgeFrequency")

    @field_validator("server", mode="before")
    @classmethod
    def _normalize_server(cls, value: Any) -> str:
        if value is None:
            return ""
        server = str(value).strip()
        for scheme in ("http://", "https://"):
            if server.lower().startswith(scheme):
                server = server[len(scheme):]
        server = server.rstrip("/")
        if server and not _valid_server(server):
            raise ValueError("server must be host or host:port")
        return server

    @field_validator("cache_lifetime", mode="before")
    @classmethod
    def _coerce_lifetime(cls, value: Any) -> Any:
        # Older documents store the lifetime as a string ("3600")
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("excluded_params", "excludes", mode="before")
    @classmethod
    def _normalize_list(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple)):
            raise ValueError("expected a list of strings")
        return _unique(value)

    def to_document(self) -> dict:
        """Return the JSON-ready document using the persisted key names."""
        return self.model_dump(by_alias=True, mode="json")


def _checked(value: Union[str, bool, None]) -> bool:
    """Checkbox semantics: only "1" (or a JSON true) counts as ticked."""
    if isinstance(value, bool):
        return value
    return value is not None and str(value).strip() == "1"


class SettingsForm(BaseModel):
    """Raw settings form submission as posted by the admin screen."""

    enabled: Union[bool, str, None] = None
    cache_devmode: Union[bool, str, None] = None
    server: str = ""
    cache_lifetime: Union[int, str] = "3600"
    cache_tag_prefix: str = ""
    excluded_params: str = ""
    excludes: str = ""
    auto_purge: Union[bool, str, None] = None
    auto_purge_frequency: PurgeFrequency = PurgeFrequency.DAILY

    def to_config(self) -> CacheConfig:
        """Normalize the submission into a ``CacheConfig``."""
        return CacheConfig(
            enabled=_checked(self.enabled),
            dev_mode=_checked(self.cache_devmode),
            server=self.server,
            cache_lifetime=self.cache_lifetime,
            tag_prefix=self.cache_tag_prefix.strip(),
            excluded_params=self.excluded_params.split(","),
            excludes=self.excludes.splitlines(),
            auto_purge=_checked(self.auto_purge),
            auto_purge_frequency=self.auto_purge_frequency,
        )
