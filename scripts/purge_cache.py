#!/usr/bin/env python3
"""
Purge the Varnish cache for a host from a workstation or CI job.

Uses the same settings document and coordinator as the service. By default
the purge goes through the content-change rules (disabled or dev-mode
settings suppress it); ``--force`` sends the PURGE regardless.
"""

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path
from typing import Optional

from service_varnish.app.purge import ContentChangeEvent, EventKind, InvalidationCoordinator, PurgeClient
from service_varnish.app.settings import SettingsStore
from shared.config import DEFAULT_SETTINGS_FILE, BaseConfig
from shared.logging import configure_logging


async def purge(
    *,
    settings_file: Path,
    host: Optional[str],
    site_url: str,
    timeout: float,
    force: bool,
) -> dict:
    """Execute the purge and return a summary."""
    config = BaseConfig(settings_file=str(settings_file), site_url=site_url)
    coordinator = InvalidationCoordinator(
        SettingsStore(config.settings_path()),
        PurgeClient(timeout=timeout),
        site_host=config.site_host(),
    )

    target = coordinator.resolve_host(host)
    if force:
        if not target:
            return {"attempted": False, "host": None, "error": "Failed to determine current host."}
        outcome = await coordinator.purge_host(target)
    else:
        outcome = await coordinator.on_content_change(ContentChangeEvent(kind=EventKind.MANUAL, host=target))

    return {
        "attempted": outcome is not None,
        "host": target,
        "server": coordinator.get_server(),
        "outcome": outcome.to_dict() if outcome else None,
    }


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Send a PURGE for a host to the configured Varnish server.")
    parser.add_argument("--host", default=None, help="Host header to purge (defaults to the site URL host)")
    parser.add_argument("--site-url", default=os.getenv("VARNISH_SITE_URL", ""), help="Site base URL used when --host is omitted")
    parser.add_argument(
        "--settings-file",
        type=Path,
        default=Path(os.getenv("VARNISH_SETTINGS_FILE", DEFAULT_SETTINGS_FILE)),
        help="Path to the cache settings JSON document",
    )
    parser.add_argument("--timeout", type=float, default=10.0, help="PURGE timeout in seconds")
    parser.add_argument("--force", action="store_true", help="Purge even when the cache is disabled or in dev mode")
    parser.add_argument("--log-level", default=os.getenv("VARNISH_LOG_LEVEL", "warning"), help="Log level")
    return parser.parse_args()


def main() -> int:
    args = _parse_args()
    configure_logging("varnishcache", args.log_level)
    try:
        summary = asyncio.run(
            purge(
                settings_file=args.settings_file,
                host=args.host,
                site_url=args.site_url,
                timeout=args.timeout,
                force=args.force,
            )
        )
    except KeyboardInterrupt:
        return 130

    print(json.dumps(summary, indent=2))

    if not summary["attempted"]:
        print("[purge] skipped: cache disabled, dev mode on, or no host", file=sys.stderr)
        return 2
    return 0 if summary["outcome"]["success"] else 1


if __name__ == "__main__":
    raise SystemExit(main())
