"""Tests for configuration loading."""

from pathlib import Path

import yaml

from tigerdyno.config import Config


def _config(tmp_path, settings=None):
    if settings is not None:
        (tmp_path / "settings.yaml").write_text(yaml.safe_dump(settings))
    return Config(config_dir=tmp_path)


def test_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("GLOBAL_PREFIX", raising=False)
    config = _config(tmp_path)
    assert config.global_prefix == "%"
    assert config.admins == []
    assert config.modules == ["trickjump"]
    assert config.module_settings("trickjump") == {}
    assert config.database_path == tmp_path.parent / "data" / "tigerdyno.db"
    assert config.paste_api_url == "https://api.paste.ee/v1/pastes"
    assert config.paste_timeout == 15.0
    assert config.logging_level == "INFO"


def test_settings_file(tmp_path, monkeypatch):
    monkeypatch.delenv("GLOBAL_PREFIX", raising=False)
    config = _config(
        tmp_path,
        {
            "global_prefix": "!",
            "admins": [123456789012345678],
            "maintainer_tag": "@someone",
            "database_path": str(tmp_path / "db.sqlite"),
            "modules": [],
            "module_settings": {"trickjump": {"hide_when_contradicts_permissions": False}},
            "logging": {"level": "DEBUG", "subsystem_levels": {"commands": "WARNING"}},
        },
    )
    assert config.global_prefix == "!"
    assert config.admins == ["123456789012345678"]
    assert config.maintainer_tag == "@someone"
    assert config.database_path == Path(tmp_path / "db.sqlite")
    assert config.modules == []
    assert config.module_settings("trickjump") == {"hide_when_contradicts_permissions": False}
    assert config.logging_level == "DEBUG"
    assert config.logging_subsystem_levels == {"commands": "WARNING"}


def test_environment_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("GLOBAL_PREFIX", "?")
    monkeypatch.setenv("DISCORD_API_TOKEN", "token-from-env")
    config = _config(tmp_path, {"global_prefix": "!"})
    assert config.global_prefix == "?"
    assert config.discord_token == "token-from-env"


def test_malformed_lists_fall_back(tmp_path):
    config = _config(tmp_path, {"admins": "everyone", "modules": "trickjump", "module_settings": {"x": 3}})
    assert config.admins == []
    assert config.modules == []
    assert config.module_settings("x") == {}


def test_validate_does_not_raise(tmp_path, monkeypatch):
    monkeypatch.delenv("DISCORD_API_TOKEN", raising=False)
    monkeypatch.delenv("PASTE_API_TOKEN", raising=False)
    _config(tmp_path, {"admins": ["not-an-id"], "modules": "oops"}).validate()
