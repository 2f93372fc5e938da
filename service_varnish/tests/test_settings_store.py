"""
Unit tests for the settings document and its JSON store.
"""

import json
import os
from unittest.mock import patch

import pydantic
import pytest

from service_varnish.app.settings import CacheConfig, PurgeFrequency, SettingsForm, SettingsStore
from shared.errors import StorageError, StorageErrorKind


DEFAULT_DOCUMENT = {
    "cache_devmode": False,
    "enabled": False,
    "server": "",
    "cacheLifetime": 3600,
    "cacheTagPrefix": "",
    "excludedParams": [],
    "excludes": [],
    "autoPurge": False,
    "autoPurgeFrequency": "daily",
}


class TestSettingsStore:
    """Test cases for SettingsStore."""

    @pytest.fixture
    def settings_path(self, tmp_path):
        """Settings path inside a directory that does not exist yet."""
        return str(tmp_path / ".varnish-cache" / "settings.json")

    @pytest.fixture
    def store(self, settings_path):
        return SettingsStore(settings_path)

    def _write(self, path, content):
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as handle:
            handle.write(content)

    def test_load_missing_file_returns_defaults(self, store):
        config = store.load()

        assert config == CacheConfig()
        assert config.to_document() == DEFAULT_DOCUMENT

    @pytest.mark.parametrize("content", ["{not json", "", "[1, 2, 3]", "null", "\"text\""])
    def test_load_corrupt_file_returns_defaults(self, store, settings_path, content):
        self._write(settings_path, content)

        assert store.load().to_document() == DEFAULT_DOCUMENT

    def test_load_unreadable_file_returns_defaults(self, store, settings_path):
        self._write(settings_path, "{}")

        with patch("builtins.open", side_effect=PermissionError("denied")):
            config = store.load()

        assert config == CacheConfig()

    def test_load_merges_over_defaults(self, store, settings_path):
        self._write(settings_path, json.dumps({"enabled": True, "server": "cache.local:6081"}))

        config = store.load()

        assert config.enabled is True
        assert config.server == "cache.local:6081"
        assert config.dev_mode is False
        assert config.cache_lifetime == 3600
        assert config.excludes == []

    def test_load_accepts_string_lifetime(self, store, settings_path):
        self._write(settings_path, json.dumps({"cacheLifetime": "7200"}))

        assert store.load().cache_lifetime == 7200

    def test_load_invalid_field_falls_back_to_its_default(self, store, settings_path):
        self._write(settings_path, json.dumps({
            "enabled": True,
            "server": "cache.local:6081",
            "cacheLifetime": "forever",
            "autoPurgeFrequency": "every-minute",
        }))

        config = store.load()

        assert config.enabled is True
        assert config.server == "cache.local:6081"
        assert config.cache_lifetime == 3600
        assert config.auto_purge_frequency is PurgeFrequency.DAILY

    def test_load_malformed_server_falls_back_to_unconfigured(self, store, settings_path):
        self._write(settings_path, json.dumps({"enabled": True, "server": "cache.local:notaport"}))

        config = store.load()

        assert config.enabled is True
        assert config.server == ""

    def test_load_ignores_unknown_keys(self, store, settings_path):
        self._write(settings_path, json.dumps({"enabled": True, "legacyOption": 1}))

        config = store.load()

        assert config.enabled is True
        assert "legacyOption" not in config.to_document()

    def test_save_creates_directory_and_round_trips(self, store, settings_path):
        config = CacheConfig(
            enabled=True,
            dev_mode=True,
            server="cache.local:6081",
            cache_lifetime=120,
            tag_prefix="site1",
            excluded_params=["utm_source", "preview"],
            excludes=["/wp-admin", "/cart"],
            auto_purge=True,
            auto_purge_frequency=PurgeFrequency.HOURLY,
        )

        store.save(config)

        assert os.path.isfile(settings_path)
        assert store.load() == config

    def test_save_writes_pretty_printed_persisted_keys(self, store, settings_path):
        store.save(CacheConfig(enabled=True, server="cache.local:6081"))

        with open(settings_path, encoding="utf-8") as handle:
            raw = handle.read()

        assert "\n    \"enabled\": true" in raw
        assert set(json.loads(raw)) == set(DEFAULT_DOCUMENT)

    def test_save_leaves_no_temporary_files(self, store, settings_path):
        store.save(CacheConfig())
        store.save(CacheConfig(enabled=True))

        assert os.listdir(os.path.dirname(settings_path)) == ["settings.json"]

    def test_save_directory_permission_denied(self, store):
        with patch("os.makedirs", side_effect=PermissionError(13, "Permission denied")):
            with pytest.raises(StorageError) as exc_info:
                store.save(CacheConfig())

        assert exc_info.value.kind is StorageErrorKind.PERMISSION_DENIED
        assert exc_info.value.code == "CONFIG_WRITE_FAILED"

    def test_failed_replace_keeps_previous_document(self, store, settings_path):
        store.save(CacheConfig(server="old.local:6081"))

        with patch("os.replace", side_effect=OSError(5, "Input/output error")):
            with pytest.raises(StorageError) as exc_info:
                store.save(CacheConfig(server="new.local:6081"))

        assert exc_info.value.kind is StorageErrorKind.IO_ERROR
        assert store.load().server == "old.local:6081"
        assert os.listdir(os.path.dirname(settings_path)) == ["settings.json"]


class TestCacheConfig:
    """Normalization rules of the settings document."""

    def test_lists_drop_empty_and_duplicate_entries(self):
        config = CacheConfig(
            excluded_params=[" utm_source", "", "utm_source", "preview "],
            excludes=["/cart", "  ", "/checkout", "/cart"],
        )

        assert config.excluded_params == ["utm_source", "preview"]
        assert config.excludes == ["/cart", "/checkout"]

    @pytest.mark.parametrize("raw, expected", [
        ("  cache.local:6081 ", "cache.local:6081"),
        ("http://cache.local:6081/", "cache.local:6081"),
        ("", ""),
        (None, ""),
    ])
    def test_server_normalization(self, raw, expected):
        assert CacheConfig(server=raw).server == expected

    @pytest.mark.parametrize("raw, expected", [
        ("10.0.0.5", "10.0.0.5"),
        ("[::1]:6081", "[::1]:6081"),
        ("https://varnish.internal:80/", "varnish.internal:80"),
    ])
    def test_server_accepts_host_and_port(self, raw, expected):
        assert CacheConfig(server=raw).server == expected

    @pytest.mark.parametrize("raw", [
        "cache.local:notaport",
        "cache.local:99999",
        "cache.local:0",
        "cache.local/purge",
        "cache local:6081",
        "user@cache.local:6081",
    ])
    def test_server_rejects_malformed_values(self, raw):
        with pytest.raises(pydantic.ValidationError):
            CacheConfig(server=raw)

    def test_lists_drop_null_entries(self):
        config = CacheConfig(excludes=["/cart", None, "/checkout"], excluded_params=[None])

        assert config.excludes == ["/cart", "/checkout"]
        assert config.excluded_params == []

    @pytest.mark.parametrize("value", [[{"a": 1}], [["nested"]], [True], {"utm_source": 1}])
    def test_lists_reject_non_scalar_entries(self, value):
        with pytest.raises(pydantic.ValidationError):
            CacheConfig(excluded_params=value)

    def test_populates_from_persisted_aliases(self):
        config = CacheConfig.model_validate({"cache_devmode": True, "cacheTagPrefix": "blog"})

        assert config.dev_mode is True
        assert config.tag_prefix == "blog"

    def test_frequency_intervals(self):
        assert PurgeFrequency.THIRTY_MINUTES.seconds == 1800
        assert PurgeFrequency.HOURLY.seconds == 3600
        assert PurgeFrequency.TWICE_DAILY.seconds == 43200
        assert PurgeFrequency.DAILY.seconds == 86400
        assert PurgeFrequency.WEEKLY.seconds == 604800


class TestSettingsForm:
    """Form submission normalization."""

    def test_to_config_splits_and_trims_fields(self):
        form = SettingsForm(
            enabled="1",
            cache_devmode="0",
            server=" cache.local:6081 ",
            cache_lifetime="900",
            cache_tag_prefix=" shop ",
            excluded_params="utm_source, gclid ,,fbclid",
            excludes="/cart\n\n  /checkout  \n/cart",
            auto_purge="1",
            auto_purge_frequency="twicedaily",
        )

        config = form.to_config()

        assert config.enabled is True
        assert config.dev_mode is False
        assert config.server == "cache.local:6081"
        assert config.cache_lifetime == 900
        assert config.tag_prefix == "shop"
        assert config.excluded_params == ["utm_source", "gclid", "fbclid"]
        assert config.excludes == ["/cart", "/checkout"]
        assert config.auto_purge is True
        assert config.auto_purge_frequency is PurgeFrequency.TWICE_DAILY

    def test_unchecked_boxes_are_false(self):
        config = SettingsForm().to_config()

        assert config.enabled is False
        assert config.dev_mode is False
        assert config.auto_purge is False
        assert config.excluded_params == []
        assert config.excludes == []

    def test_json_booleans_count_as_checked(self):
        config = SettingsForm(enabled=True, cache_devmode=True).to_config()

        assert config.enabled is True
        assert config.dev_mode is True
