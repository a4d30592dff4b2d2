"""
Unit Tests for Configuration Module.

This test suite validates configuration loading and Settings construction.
"""
import os
import pytest
import tempfile
from pathlib import Path

from config import load_config, get_default_config, read_secret_file
from config.settings import ConfigurationError, Settings


def test_get_default_config():
    """Test default configuration values."""
    config = get_default_config()

    assert config["storage"]["records_file"] == "blogs.json"
    assert config["storage"]["images_dir"] == "images"
    assert config["images"]["quality"] == 25
    assert config["images"]["max_bytes"] == 1024 * 1024
    assert config["tokens"]["expiry_seconds"] == 300
    assert config["tokens"]["secret_key_file"] == "/run/secrets/postbox_secret_key"


def test_load_config_from_project_root():
    """Test loading config.yml from project root."""
    config = load_config()

    assert "storage" in config
    assert "tokens" in config


def test_load_config_with_explicit_path():
    """Test loading config from explicit path."""
    with tempfile.NamedTemporaryFile(mode="w", suffix=".yml", delete=False) as f:
        f.write("""
storage:
  data_dir: /srv/blog
images:
  quality: 40
""")
        temp_path = f.name

    try:
        config = load_config(temp_path)
        assert config["storage"]["data_dir"] == "/srv/blog"
        assert config["images"]["quality"] == 40
        assert config["images"]["max_additional"] == 5
        assert config["storage"]["records_file"] == "blogs.json"
        assert config["tokens"]["expiry_seconds"] == 300
    finally:
        os.unlink(temp_path)


def test_load_config_non_mapping_section_uses_defaults(tmp_path):
    """A section that is not a mapping is replaced by its defaults."""
    path = tmp_path / "config.yml"
    path.write_text("images: 40\ntokens:\n  expiry_seconds: 60\n")

    config = load_config(str(path))

    assert config["images"] == get_default_config()["images"]
    assert config["tokens"]["expiry_seconds"] == 60
    assert config["tokens"]["algorithm"] == "HS256"


def test_load_config_file_not_found():
    """Test loading config when file doesn't exist."""
    config = load_config("/nonexistent/path/config.yml")

    assert config == get_default_config()


def test_load_config_invalid_yaml():
    """Malformed YAML falls back to defaults."""
    with tempfile.NamedTemporaryFile(mode="w", suffix=".yml", delete=False) as f:
        f.write("storage: [unclosed\n")
        temp_path = f.name

    try:
        assert load_config(temp_path) == get_default_config()
    finally:
        os.unlink(temp_path)


def test_read_secret_file_success():
    """Test reading a Docker secret file."""
    with tempfile.NamedTemporaryFile(mode="w", delete=False) as f:
        f.write("test_secret_value\n")
        temp_path = f.name

    try:
        secret = read_secret_file(temp_path)
        assert secret == "test_secret_value"
    finally:
        os.unlink(temp_path)


def test_read_secret_file_not_found():
    """Test reading a secret file that doesn't exist."""
    secret = read_secret_file("/nonexistent/secret/file")
    assert secret is None


class TestSettings:
    """Settings.from_config resolution rules."""

    def test_paths_derived_from_data_dir(self, tmp_path):
        settings = Settings.from_config({
            "storage": {"data_dir": str(tmp_path)},
            "tokens": {"secret_key": "s"},
        })

        assert settings.records_path == tmp_path / "blogs.json"
        assert settings.image_dir == tmp_path / "images"
        assert settings.quality == 25
        assert settings.token_expiry_seconds == 300
        assert settings.url_prefix == ""

    def test_secret_from_config_value_wins(self, tmp_path, monkeypatch):
        secret_file = tmp_path / "secret"
        secret_file.write_text("from-file\n")
        monkeypatch.setenv("SECRET_KEY", "from-env")

        settings = Settings.from_config({
            "tokens": {"secret_key": "from-config", "secret_key_file": str(secret_file)},
        })

        assert settings.secret_key == "from-config"

    def test_secret_from_file(self, tmp_path, monkeypatch):
        secret_file = tmp_path / "secret"
        secret_file.write_text("from-file\n")
        monkeypatch.setenv("SECRET_KEY", "from-env")

        settings = Settings.from_config({"tokens": {"secret_key_file": str(secret_file)}})

        assert settings.secret_key == "from-file"

    def test_secret_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SECRET_KEY", "from-env")

        settings = Settings.from_config({"tokens": {"secret_key_file": str(tmp_path / "missing")}})

        assert settings.secret_key == "from-env"

    def test_missing_secret_raises(self, tmp_path, monkeypatch):
        monkeypatch.delenv("SECRET_KEY", raising=False)

        with pytest.raises(ConfigurationError):
            Settings.from_config({"tokens": {"secret_key_file": str(tmp_path / "missing")}})

    def test_out_of_range_quality_raises(self):
        with pytest.raises(ConfigurationError):
            Settings.from_config({"tokens": {"secret_key": "s"}, "images": {"quality": 0}})

    def test_url_prefix_trailing_slash_stripped(self):
        settings = Settings.from_config({
            "tokens": {"secret_key": "s"},
            "http": {"url_prefix": "/api/blog/"},
        })

        assert settings.url_prefix == "/api/blog"
