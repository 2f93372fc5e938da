"""Admin-side helpers: authorization, anti-forgery tokens and notices."""

from .auth import AdminAuthorizer, Principal
from .nonces import NonceManager
from .notices import Notice, NoticeQueue

__all__ = [
    "AdminAuthorizer",
    "Principal",
    "NonceManager",
    "Notice",
    "NoticeQueue",
]
