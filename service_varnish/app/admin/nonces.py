"""
Single-use anti-forgery tokens for administrative actions.
"""

from __future__ import annotations

import secrets
import threading
import time
from typing import Callable, Dict, Tuple

from shared.errors import InvalidNonceError
from shared.logging import get_logger


PURGE_ENTIRE_CACHE = "purge-entire-cache"
SAVE_SETTINGS = "save-settings"

KNOWN_ACTIONS = (PURGE_ENTIRE_CACHE, SAVE_SETTINGS)


class NonceManager:
    """Issues tokens bound to one action and accepts each of them once."""

    def __init__(self, ttl_seconds: float = 12 * 3600, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        # token -> (action, expires_at)
        self._tokens: Dict[str, Tuple[str, float]] = {}
        self.logger = get_logger("varnish.nonces")

    def issue(self, action: str) -> str:
        if action not in KNOWN_ACTIONS:
            raise ValueError(f"Unknown nonce action: {action}")
        token = secrets.token_urlsafe(24)
        now = self._clock()
        with self._lock:
            self._prune(now)
            self._tokens[token] = (action, now + self.ttl_seconds)
        return token

    def verify(self, action: str, token: str) -> bool:
        """Consume ``token``; True only if it was issued for ``action`` and is unexpired."""
        if not token:
            return False
        now = self._clock()
        with self._lock:
            entry = self._tokens.get(token)
            if entry is None:
                return False
            bound_action, expires_at = entry
            if bound_action != action:
                return False
            del self._tokens[token]
        return now <= expires_at

    def require(self, action: str, token: str) -> None:
        """Raise ``InvalidNonceError`` unless ``verify`` accepts the token."""
        if not self.verify(action, token):
            self.logger.warning("Anti-forgery check failed", action=action)
            raise InvalidNonceError(details={"action": action})

    def _prune(self, now: float) -> None:
        expired = [token for token, (_, expires_at) in self._tokens.items() if expires_at < now]
        for token in expired:
            del self._tokens[token]
