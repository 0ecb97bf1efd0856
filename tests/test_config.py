"""Tests for configuration utilities."""

from unittest.mock import patch

import pytest

from encode_tools.exceptions import ConfigError
from encode_tools.utils.config import (
    DEFAULT_CONFIG,
    get_config_path,
    get_value,
    load_config,
    load_option_bags,
    save_config,
    set_value,
)


class TestConfigPath:
    """Tests for config path resolution."""

    def test_get_config_path_default(self):
        """Test default config path is in user config directory."""
        path = get_config_path()
        assert "encode-tools" in str(path)
        assert path.name == "config.toml"


class TestDefaultConfig:
    """Tests for default configuration."""

    def test_default_config_structure(self):
        assert DEFAULT_CONFIG == {"native": {}, "fallback": {}}


class TestLoadConfig:
    """Tests for loading configuration."""

    def test_load_config_missing_file(self, temp_dir):
        """Test loading config when file doesn't exist writes and returns defaults."""
        config_path = temp_dir / "nested" / "config.toml"

        with patch("encode_tools.utils.config.get_config_path", return_value=config_path):
            config = load_config()

        assert config == DEFAULT_CONFIG
        assert config_path.exists()

    def test_load_config_returns_copy(self, temp_dir):
        config = load_config(temp_dir / "config.toml")
        config["native"]["hash_algorithm"] = "md5"
        assert DEFAULT_CONFIG["native"] == {}

    def test_load_config_existing_file(self, temp_dir):
        config_path = temp_dir / "config.toml"
        config_path.write_text('[native]\nhash_algorithm = "xxhash3"\ncompression_level = 9\n')

        config = load_config(config_path)

        assert config["native"]["hash_algorithm"] == "xxhash3"
        assert config["native"]["compression_level"] == 9

    def test_load_config_malformed(self, temp_dir):
        config_path = temp_dir / "config.toml"
        config_path.write_text("[native\nnot toml")

        with pytest.raises(ConfigError, match="Failed to load config"):
            load_config(config_path)


class TestSaveConfig:
    """Tests for saving configuration."""

    def test_roundtrip(self, temp_dir):
        config_path = temp_dir / "config.toml"
        config = {"native": {"image_format": "webp"}, "fallback": {"image_format": "png"}}

        save_config(config, config_path)

        assert load_config(config_path) == config


class TestLoadOptionBags:
    """Tests for load_option_bags."""

    def test_reads_both_tables(self, temp_dir):
        config_path = temp_dir / "config.toml"
        config_path.write_text('[native]\nhashAlgorithm = "xxhash3"\n\n[fallback]\nhash_algorithm = "sha512"\n')

        native, fallback = load_option_bags(config_path)

        assert native == {"hashAlgorithm": "xxhash3"}
        assert fallback == {"hash_algorithm": "sha512"}

    def test_missing_table(self, temp_dir):
        config_path = temp_dir / "config.toml"
        config_path.write_text('[native]\nhash_algorithm = "md5"\n')

        native, fallback = load_option_bags(config_path)

        assert fallback == {}

    def test_tables_read_with_dot_notation(self, temp_dir):
        config_path = temp_dir / "config.toml"
        config_path.write_text('[fallback]\nhash_algorithm = "md5"\n')

        with patch("encode_tools.utils.config.get_value", wraps=get_value) as getter:
            load_option_bags(config_path)

        assert [c.args[1] for c in getter.call_args_list] == ["native", "fallback"]

    def test_table_must_be_table(self, temp_dir):
        config_path = temp_dir / "config.toml"
        config_path.write_text('native = "xxhash3"\n')

        with pytest.raises(ConfigError, match=r"\[native\] must be a table"):
            load_option_bags(config_path)


class TestGetSetValue:
    """Tests for dot-notation access."""

    def test_get_value(self):
        config = {"native": {"hash_algorithm": "xxhash3"}}
        assert get_value(config, "native.hash_algorithm") == "xxhash3"

    def test_get_value_missing(self):
        assert get_value({}, "native.hash_algorithm", "sha2") == "sha2"

    def test_set_value_creates_tables(self):
        config = {}
        set_value(config, "fallback.hash_algorithm", "sha512")
        assert config == {"fallback": {"hash_algorithm": "sha512"}}
