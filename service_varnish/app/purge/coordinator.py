"""
Invalidation coordinator.

Decides whether a content change should purge the cache and performs the
purge. Every decision starts from a fresh read of the settings document.
"""

import time
from typing import TYPE_CHECKING, Optional

from shared.logging import get_logger

from ..settings import CacheConfig, SettingsStore
from .client import PurgeClient
from .models import (
    HOST_UNDETERMINED,
    ContentChangeEvent,
    EventKind,
    PurgeErrorKind,
    PurgeOutcome,
    PurgeRequest,
)

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector
    from ..admin.notices import NoticeQueue


class InvalidationCoordinator:
    """Entry point the admin and event layers call into."""

    def __init__(
        self,
        store: SettingsStore,
        client: PurgeClient,
        *,
        site_host: Optional[str] = None,
        notices: Optional["NoticeQueue"] = None,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.store = store
        self.client = client
        self.site_host = site_host
        self.notices = notices
        self.metrics = metrics
        self.logger = get_logger("varnish.coordinator")

    def load_config(self) -> CacheConfig:
        return self.store.load()

    def save_config(self, config: CacheConfig) -> None:
        self.store.save(config)

    def get_server(self) -> str:
        return self.store.load().server

    def get_tag_prefix(self) -> str:
        return self.store.load().tag_prefix

    async def purge_host(self, host: str) -> PurgeOutcome:
        """Purge everything cached for ``host`` on the configured server."""
        request = PurgeRequest.for_host(host, self.get_server())

        start = time.perf_counter()
        outcome = await self.client.purge(request)
        duration = None
        if outcome.error_kind is not PurgeErrorKind.NO_SERVER_CONFIGURED:
            duration = time.perf_counter() - start

        self._report(host, outcome, duration)
        return outcome

    async def on_content_change(self, event: ContentChangeEvent) -> Optional[PurgeOutcome]:
        """Purge for ``event`` unless it is filtered out; None means no purge was attempted."""
        skip_reason = self._event_skip_reason(event)
        if skip_reason:
            return self._skip(event, skip_reason)

        config = self.store.load()
        if not config.enabled:
            return self._skip(event, "disabled")
        if config.dev_mode:
            return self._skip(event, "dev_mode")

        host = self.resolve_host(event.host)
        if not host:
            self.logger.warning("Purge skipped, host undetermined", kind=event.kind.value)
            outcome = PurgeOutcome.failed(PurgeErrorKind.HOST_UNDETERMINED, HOST_UNDETERMINED)
            self._report(None, outcome, None)
            return outcome

        self.logger.info(
            "Content change triggers purge",
            kind=event.kind.value,
            object_id=event.object_id,
            object_type=event.object_type,
            host=host,
        )
        return await self.purge_host(host)

    def resolve_host(self, requested_host: Optional[str] = None) -> Optional[str]:
        """Prefer the request's host, fall back to the configured site host."""
        if requested_host and requested_host.strip():
            return requested_host.strip()
        return self.site_host or None

    @staticmethod
    def _event_skip_reason(event: ContentChangeEvent) -> Optional[str]:
        # Only saves are shape-filtered; every other kind is always eligible
        if event.kind is not EventKind.POST_SAVED:
            return None
        if event.is_autosave:
            return "autosave"
        if event.is_revision:
            return "revision"
        if not event.post_type_public:
            return "non_public_type"
        return None

    def _skip(self, event: ContentChangeEvent, reason: str) -> None:
        self.logger.debug("Purge skipped", kind=event.kind.value, reason=reason, object_id=event.object_id)
        if self.metrics:
            self.metrics.record_skipped_purge(reason)
        return None

    def _report(self, host: Optional[str], outcome: PurgeOutcome, duration: Optional[float]) -> None:
        if self.metrics:
            label = "success" if outcome.success else outcome.error_kind.value
            self.metrics.record_purge(label, duration)

        if outcome.success:
            return

        self.logger.error(
            "Varnish purge failed",
            host=host,
            error=outcome.error_message,
            error_kind=outcome.error_kind.value,
            http_status=outcome.http_status,
        )
        if self.notices is not None:
            self.notices.error(f"Varnish Cache Purge Failed: {outcome.error_message}")
