"""
Unit tests for shared service configuration.
"""

import os

import pytest

from shared.config import BaseConfig, get_config


class TestBaseConfig:

    @pytest.mark.parametrize("site_url, expected", [
        ("https://www.example.com", "www.example.com"),
        ("https://www.example.com:8443/blog/", "www.example.com:8443"),
        ("www.example.com", "www.example.com"),
        ("", None),
        ("   ", None),
    ])
    def test_site_host(self, site_url, expected):
        assert BaseConfig(site_url=site_url).site_host() == expected

    def test_api_key_roles(self):
        config = BaseConfig(admin_api_keys=" admin-key:admin , svc-key:service,,bare-key ")

        assert config.api_key_roles() == {
            "admin-key": "admin",
            "svc-key": "service",
            "bare-key": "admin",
        }

    def test_settings_path_expands_home(self):
        config = BaseConfig(settings_file="~/.varnish-cache/settings.json")

        assert config.settings_path() == os.path.join(
            os.path.expanduser("~"), ".varnish-cache", "settings.json"
        )

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("VARNISH_SITE_URL", "https://env.example.com")
        monkeypatch.setenv("VARNISH_PURGE_TIMEOUT_SECONDS", "3.5")

        config = get_config("varnishcache", 8090)

        assert config.site_host() == "env.example.com"
        assert config.purge_timeout_seconds == 3.5
        assert config.port == 8090

    def test_defaults(self, monkeypatch):
        for name in ("VARNISH_SETTINGS_FILE", "VARNISH_PURGE_TIMEOUT_SECONDS", "VARNISH_NOTICE_TTL_SECONDS"):
            monkeypatch.delenv(name, raising=False)

        config = BaseConfig(_env_file=None)

        assert config.settings_file == "~/.varnish-cache/settings.json"
        assert config.purge_timeout_seconds == 10.0
        assert config.notice_ttl_seconds == 30
