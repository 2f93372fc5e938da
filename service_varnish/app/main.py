"""
Varnish Cache service.

Exposes the settings document, the manual purge action and the
content-change intake used by the CMS adapter.
"""

from typing import Any, Dict, Optional

import pydantic
from fastapi import Body, Query, Request

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from shared.errors import HostUndeterminedError, StorageError, ValidationError

from .admin import AdminAuthorizer, NonceManager, NoticeQueue
from .admin.auth import MANAGE_OPTIONS, POST_EVENTS
from .admin.nonces import PURGE_ENTIRE_CACHE, SAVE_SETTINGS
from .purge import ContentChangeEvent, InvalidationCoordinator, PurgeClient
from .scheduling import ScheduledPurgeRunner
from .settings import SettingsForm, SettingsStore


SERVICE_NAME = "varnishcache"
SERVICE_PORT = 8090


class VarnishCacheService(BaseService):
    """Varnish Cache service implementation."""

    def __init__(self, config: Optional[ServiceConfig] = None):
        super().__init__(SERVICE_NAME, SERVICE_PORT, config=config)

        self.settings_store = SettingsStore(self.config.settings_path())
        self.notices = NoticeQueue(ttl_seconds=self.config.notice_ttl_seconds)
        self.nonces = NonceManager(ttl_seconds=self.config.nonce_ttl_seconds)
        self.authorizer = AdminAuthorizer(self.config.api_key_roles())
        self.coordinator = InvalidationCoordinator(
            self.settings_store,
            PurgeClient(timeout=self.config.purge_timeout_seconds),
            site_host=self.config.site_host(),
            notices=self.notices,
            metrics=self.metrics,
        )
        self.scheduler = ScheduledPurgeRunner(self.coordinator, metrics=self.metrics)

        self._setup_settings_routes()
        self._setup_purge_routes()
        self._setup_admin_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.varnish_service = self

    async def start(self):
        """Arm the scheduled purge when auto-purge is enabled."""
        await self.scheduler.activate()

    async def stop(self):
        """Disarm the scheduled purge."""
        await self.scheduler.deactivate()

    async def _check_dependencies(self) -> Dict[str, str]:
        config = self.coordinator.load_config()
        return {
            "settings_file": "present" if self.settings_store.exists() else "missing",
            "varnish_server": "configured" if config.server else "unconfigured",
        }

    def _setup_settings_routes(self):
        """Settings document read and save."""

        @self.app.get("/settings")
        async def get_settings(request: Request):
            """Return the current settings document."""
            self.authorizer.require(request, MANAGE_OPTIONS)
            return self.coordinator.load_config().to_document()

        @self.app.post("/settings")
        async def save_settings(
            request: Request,
            form: SettingsForm = Body(...),
            nonce: str = Query("", alias="_nonce"),
        ):
            """Normalize and persist a settings form submission."""
            self.authorizer.require(request, MANAGE_OPTIONS)
            self.nonces.require(SAVE_SETTINGS, nonce)

            try:
                config = form.to_config()
            except pydantic.ValidationError as exc:
                raise ValidationError(
                    "Invalid settings",
                    details={"errors": [error["msg"] for error in exc.errors()]}
                )

            try:
                self.coordinator.save_config(config)
            except StorageError as exc:
                self.notices.error(f"Failed to save settings: {exc.message}")
                raise

            self.notices.success("Settings saved successfully.")
            self.logger.info("Settings updated", enabled=config.enabled, server=config.server)
            return {"saved": True, "settings": config.to_document()}

    def _setup_purge_routes(self):
        """Manual purge and content-change intake."""

        @self.app.post("/purge")
        async def purge_entire_cache(
            request: Request,
            nonce: str = Query("", alias="_nonce"),
        ):
            """Purge everything cached for the host this request was made to."""
            self.authorizer.require(request, MANAGE_OPTIONS)
            self.nonces.require(PURGE_ENTIRE_CACHE, nonce)

            host = (request.headers.get("host") or "").strip()
            if not host:
                raise HostUndeterminedError()

            outcome = await self.coordinator.purge_host(host)
            if outcome.success:
                self.notices.success("Cache has been purged successfully.")
            else:
                self.notices.error("Failed to purge cache. Please check your settings.")

            return {"purged": outcome.success, "host": host, "outcome": outcome.to_dict()}

        @self.app.post("/events")
        async def content_changed(request: Request, event: ContentChangeEvent = Body(...)):
            """Decide on and perform a purge for a content change."""
            self.authorizer.require(request, POST_EVENTS)

            outcome = await self.coordinator.on_content_change(event)
            response: Dict[str, Any] = {
                "attempted": outcome is not None,
                "purged": bool(outcome and outcome.success),
                "outcome": outcome.to_dict() if outcome else None,
            }
            return response

    def _setup_admin_routes(self):
        """Nonces, notices and schedule status."""

        @self.app.get("/nonces/{action}")
        async def issue_nonce(request: Request, action: str):
            """Issue an anti-forgery token for ``action``."""
            self.authorizer.require(request, MANAGE_OPTIONS)
            try:
                token = self.nonces.issue(action)
            except ValueError as exc:
                raise ValidationError(str(exc), details={"action": action})
            return {"action": action, "nonce": token}

        @self.app.get("/notices")
        async def collect_notices(request: Request):
            """Return pending admin notices; each is shown once."""
            self.authorizer.require(request, MANAGE_OPTIONS)
            return {"notices": [notice.to_dict() for notice in self.notices.collect()]}

        @self.app.get("/schedule")
        async def schedule_status(request: Request):
            """Report whether the recurring purge is armed."""
            self.authorizer.require(request, MANAGE_OPTIONS)
            return self.scheduler.status()


def create_app(config: Optional[ServiceConfig] = None):
    """Create FastAPI application."""
    service = VarnishCacheService(config)
    return service.app


if __name__ == "__main__":
    service = VarnishCacheService(get_config(SERVICE_NAME, SERVICE_PORT))
    service.run()
