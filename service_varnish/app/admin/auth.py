"""
API key authorization for administrative endpoints.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional

from fastapi import Request

from shared.errors import AuthenticationError, AuthorizationError
from shared.logging import get_logger, set_user_context


MANAGE_OPTIONS = "manage_options"
POST_EVENTS = "post_events"

ROLE_CAPABILITIES: Dict[str, FrozenSet[str]] = {
    "admin": frozenset({MANAGE_OPTIONS, POST_EVENTS}),
    "service": frozenset({POST_EVENTS}),
}


@dataclass(frozen=True)
class Principal:
    key_id: str
    role: str

    def can(self, capability: str) -> bool:
        return capability in ROLE_CAPABILITIES.get(self.role, frozenset())


class AdminAuthorizer:
    """Resolves the ``X-API-Key`` header to a principal and checks capabilities."""

    def __init__(self, api_keys: Dict[str, str]):
        self.api_keys = dict(api_keys)
        self.logger = get_logger("varnish.auth")

    def authenticate(self, request: Request) -> Principal:
        api_key: Optional[str] = request.headers.get("X-API-Key")
        if not api_key:
            raise AuthenticationError("X-API-Key header required")

        role = self.api_keys.get(api_key)
        if role is None:
            self.logger.warning("Unknown API key", api_key=api_key[:4] + "...")
            raise AuthenticationError("Invalid API key")

        principal = Principal(key_id=api_key[:4] + "...", role=role)
        set_user_context(principal.key_id)
        return principal

    def require(self, request: Request, capability: str = MANAGE_OPTIONS) -> Principal:
        """Authenticate and ensure the caller holds ``capability``."""
        principal = self.authenticate(request)
        if not principal.can(capability):
            self.logger.warning("Capability missing", key=principal.key_id, capability=capability)
            raise AuthorizationError(
                "Sorry, you do not have permission to access this page.",
                details={"capability": capability}
            )
        return principal
