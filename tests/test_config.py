"""
Tests for the config module.

Tests the SyncConfig value, its file-backed ConfigStore, and the YAML
application settings loader.
"""

import json
import os
import stat
import sys

import pytest
import yaml

from cloudsync.config.loader import DEFAULT_CONFIG_FILE, ConfigError, ConfigLoader
from cloudsync.config.sync_config import (
    CONFIG_STORAGE_KEY,
    DEFAULT_SYNC_CONFIG_FILE,
    ConfigStore,
    StorageProvider,
    SyncConfig,
    SyncConfigError,
    load_config,
)

# =============================================================================
# SyncConfig
# =============================================================================


class TestSyncConfigDefaults:
    """Tests for SyncConfig default values."""

    def test_defaults(self):
        """Defaults select Gist with every collection enabled."""
        config = SyncConfig()

        assert config.provider == StorageProvider.GIST
        assert config.gist_token is None
        assert config.gist_id is None
        assert config.webdav_url is None
        assert config.sync_bookmarks is True
        assert config.sync_extensions is True
        assert config.sync_history is True
        assert config.auto_sync_interval == 60

    def test_is_immutable(self):
        """Fields cannot be assigned on an existing config."""
        config = SyncConfig()
        with pytest.raises(AttributeError):
            config.gist_token = "abc"  # type: ignore[misc]

    def test_storage_key(self):
        """The config file is named after the storage key."""
        assert CONFIG_STORAGE_KEY == "cloudsync_config"
        assert DEFAULT_SYNC_CONFIG_FILE == "cloudsync_config.json"


class TestSyncConfigWithChanges:
    """Tests for SyncConfig.with_changes."""

    def test_returns_new_value(self):
        """with_changes leaves the original untouched."""
        original = SyncConfig()
        updated = original.with_changes(gist_token="ghp_x", sync_history=False)

        assert original.gist_token is None
        assert original.sync_history is True
        assert updated.gist_token == "ghp_x"
        assert updated.sync_history is False

    def test_accepts_provider_enum_and_string(self):
        """Provider may be given as the enum or its value."""
        assert SyncConfig().with_changes(provider="WEBDAV").provider == StorageProvider.WEBDAV
        assert (
            SyncConfig().with_changes(provider=StorageProvider.WEBDAV).provider
            == StorageProvider.WEBDAV
        )

    def test_unknown_field_rejected(self):
        """Unknown field names raise SyncConfigError."""
        with pytest.raises(SyncConfigError, match="gist_tokn"):
            SyncConfig().with_changes(gist_tokn="x")

    def test_empty_string_clears_value(self):
        """An empty string clears an optional field."""
        config = SyncConfig(gist_id="abc").with_changes(gist_id="")
        assert config.gist_id is None

    def test_invalid_value_rejected(self):
        """Values are validated like from_dict."""
        with pytest.raises(SyncConfigError):
            SyncConfig().with_changes(auto_sync_interval=-5)


class TestMissingCredential:
    """Tests for SyncConfig.missing_credential."""

    def test_gist_without_token(self):
        """Gist needs a token."""
        assert SyncConfig().missing_credential() == "Gist Token"

    def test_gist_with_token(self):
        """A token alone is enough; the gist ID is created on first upload."""
        assert SyncConfig(gist_token="t").missing_credential() is None

    def test_webdav_without_url(self):
        """WebDAV needs a URL even when Gist credentials are present."""
        config = SyncConfig(provider=StorageProvider.WEBDAV, gist_token="t")
        assert config.missing_credential() == "WebDAV URL"

    def test_webdav_with_url_only(self):
        """WebDAV user and password are optional."""
        config = SyncConfig(provider=StorageProvider.WEBDAV, webdav_url="https://d")
        assert config.missing_credential() is None


class TestSyncConfigFromDict:
    """Tests for SyncConfig.from_dict and to_dict."""

    def test_round_trip(self):
        """to_dict output loads back into an equal config."""
        config = SyncConfig(
            provider=StorageProvider.WEBDAV,
            webdav_url="https://dav.example.com/b",
            webdav_user="me",
            webdav_pass="pw",
            sync_extensions=False,
            auto_sync_interval=15,
        )
        assert SyncConfig.from_dict(config.to_dict()) == config

    def test_to_dict_uses_plain_values(self):
        """to_dict writes the provider as a JSON-friendly string."""
        data = SyncConfig().to_dict()
        assert data["provider"] == "GIST"
        json.dumps(data)

    def test_missing_keys_use_defaults(self):
        """An empty dict loads as the default config."""
        assert SyncConfig.from_dict({}) == SyncConfig()

    def test_unknown_keys_ignored(self):
        """Extra keys do not prevent loading."""
        config = SyncConfig.from_dict({"provider": "GIST", "theme": "dark"})
        assert config.provider == StorageProvider.GIST

    @pytest.mark.parametrize(
        "data",
        [
            {"provider": "DROPBOX"},
            {"provider": ["GIST"]},
            {"gist_token": 123},
            {"sync_history": "yes"},
            {"auto_sync_interval": "60"},
            {"auto_sync_interval": True},
            {"auto_sync_interval": -1},
        ],
    )
    def test_invalid_values(self, data):
        """Wrongly typed or out-of-range values raise SyncConfigError."""
        with pytest.raises(SyncConfigError):
            SyncConfig.from_dict(data)

    def test_non_dict_rejected(self):
        """The top level must be an object."""
        with pytest.raises(SyncConfigError, match="dictionary"):
            SyncConfig.from_dict(["GIST"])  # type: ignore[arg-type]

    def test_repr_hides_secrets(self):
        """repr never contains the token or password."""
        config = SyncConfig(gist_token="ghp_secret", webdav_pass="hunter2")
        text = repr(config)
        assert "ghp_secret" not in text
        assert "hunter2" not in text


# =============================================================================
# ConfigStore
# =============================================================================


class TestConfigStore:
    """Tests for ConfigStore persistence."""

    def test_load_returns_none_when_missing(self, tmp_path):
        """Nothing saved yet is not an error."""
        assert ConfigStore.in_directory(tmp_path).load() is None

    def test_in_directory_path(self, tmp_path):
        """The store file lives in the config directory."""
        store = ConfigStore.in_directory(tmp_path)
        assert store.path == tmp_path.resolve() / DEFAULT_SYNC_CONFIG_FILE

    def test_save_then_load(self, tmp_path):
        """A saved config loads back unchanged."""
        store = ConfigStore(tmp_path / "sub" / "cfg.json")
        config = SyncConfig(gist_token="ghp_x", gist_id="abc", sync_history=False)

        store.save(config)

        assert store.load() == config

    def test_save_overwrites(self, tmp_path):
        """Each save replaces the stored value."""
        store = ConfigStore(tmp_path / "cfg.json")
        store.save(SyncConfig(gist_id="first"))
        store.save(SyncConfig(gist_id="second"))

        assert store.load().gist_id == "second"

    def test_saved_file_is_readable_json(self, tmp_path):
        """The file holds the snake_case dictionary."""
        store = ConfigStore(tmp_path / "cfg.json")
        store.save(SyncConfig(gist_token="t"))

        data = json.loads(store.path.read_text(encoding="utf-8"))
        assert data["gist_token"] == "t"
        assert data["provider"] == "GIST"

    @pytest.mark.skipif(sys.platform.startswith("win"), reason="POSIX permissions")
    def test_saved_file_is_owner_only(self, tmp_path):
        """The file holds credentials, so only the owner may read it."""
        store = ConfigStore(tmp_path / "cfg.json")
        store.save(SyncConfig(gist_token="t"))

        mode = stat.S_IMODE(os.stat(store.path).st_mode)
        assert mode == 0o600

    def test_corrupt_json(self, tmp_path):
        """Unparseable JSON raises SyncConfigError."""
        path = tmp_path / "cfg.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(SyncConfigError, match="parse"):
            ConfigStore(path).load()

    def test_invalid_content(self, tmp_path):
        """Valid JSON with invalid values raises SyncConfigError."""
        path = tmp_path / "cfg.json"
        path.write_text(json.dumps({"provider": "FTP"}), encoding="utf-8")

        with pytest.raises(SyncConfigError, match="provider"):
            ConfigStore(path).load()

    def test_load_config_defaults(self, tmp_path):
        """load_config falls back to defaults when nothing is stored."""
        assert load_config(tmp_path) == SyncConfig()


# =============================================================================
# ConfigLoader
# =============================================================================


class TestConfigLoader:
    """Tests for loading the YAML application settings."""

    def test_config_path(self, tmp_path):
        """The settings file lives in the config directory."""
        loader = ConfigLoader(config_dir=tmp_path)
        assert loader._get_config_path() == tmp_path.resolve() / DEFAULT_CONFIG_FILE

    def test_missing_file_is_empty(self, tmp_path):
        """No settings file means an empty dict."""
        assert ConfigLoader(config_dir=tmp_path).load() == {}

    def test_empty_file_is_empty(self, tmp_path):
        """An empty YAML document means an empty dict."""
        (tmp_path / DEFAULT_CONFIG_FILE).write_text("", encoding="utf-8")
        assert ConfigLoader(config_dir=tmp_path).load() == {}

    def test_load_values(self, tmp_path):
        """YAML values are returned as parsed."""
        settings = {"verbose": True, "history_max_results": 200, "http_timeout": 7.5}
        (tmp_path / DEFAULT_CONFIG_FILE).write_text(yaml.safe_dump(settings))

        assert ConfigLoader(config_dir=tmp_path).load_and_validate() == settings

    def test_load_from_other_file(self, tmp_path):
        """load_from_file reads any path."""
        path = tmp_path / "elsewhere.yaml"
        path.write_text("llm_model: claude-test\n", encoding="utf-8")

        loader = ConfigLoader(config_dir=tmp_path)
        assert loader.load_from_file(path) == {"llm_model": "claude-test"}

    def test_invalid_yaml(self, tmp_path):
        """Malformed YAML raises ConfigError."""
        (tmp_path / DEFAULT_CONFIG_FILE).write_text("verbose: [unclosed\n")
        with pytest.raises(ConfigError, match="parse"):
            ConfigLoader(config_dir=tmp_path).load()

    def test_non_mapping(self, tmp_path):
        """A YAML list at the top level raises ConfigError."""
        (tmp_path / DEFAULT_CONFIG_FILE).write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="dictionary"):
            ConfigLoader(config_dir=tmp_path).load()


class TestConfigValidation:
    """Tests for ConfigLoader.validate."""

    @pytest.fixture
    def loader(self, tmp_path):
        return ConfigLoader(config_dir=tmp_path)

    def test_unknown_keys_allowed(self, loader):
        """Keys the tool does not know are ignored."""
        loader.validate({"something_else": object()})

    @pytest.mark.parametrize(
        "config",
        [
            {"verbose": "yes"},
            {"history_max_results": "100"},
            {"history_max_results": True},
            {"http_timeout": "10"},
            {"insights_enabled": 1},
            {"chrome_profile_dir": 42},
        ],
    )
    def test_wrong_types(self, loader, config):
        """Values of the wrong type raise ConfigError."""
        with pytest.raises(ConfigError, match="Invalid type"):
            loader.validate(config)

    @pytest.mark.parametrize(
        "config",
        [
            {"history_max_results": 0},
            {"llm_max_tokens": 0},
            {"log_retention_count": -1},
            {"http_timeout": 0},
        ],
    )
    def test_out_of_range(self, loader, config):
        """Out-of-range numbers raise ConfigError."""
        with pytest.raises(ConfigError):
            loader.validate(config)

    def test_http_timeout_accepts_int(self, loader):
        """http_timeout may be an int or a float."""
        loader.validate({"http_timeout": 30})
        loader.validate({"http_timeout": 2.5})
