"""Tests for feature module loading and conflict detection."""

from unittest.mock import MagicMock, patch

import pytest

from tigerdyno.exceptions import ModuleLoadError
from tigerdyno.module_loader import BotModule, load_module, load_modules
from tigerdyno.modules.trickjump.tables import TABLES


def _config(settings=None):
    config = MagicMock()
    config.module_settings.side_effect = lambda name: (settings or {}).get(name, {})
    return config


def test_load_trickjump():
    module = load_module("trickjump", {})
    assert module.name == "trickjump"
    assert module.command_names == ["jumprole", "tier"]
    assert set(module.tables) == set(TABLES)
    assert module.servers_are_universes
    assert module.permissions is None
    assert module.hide_when_contradicts_permissions


@pytest.mark.parametrize("name", ["Trick-Jump", "../etc", "no_such_module"])
def test_load_module_rejects_bad_names(name):
    with pytest.raises(ModuleLoadError):
        load_module(name, {})


def test_load_module_rejects_bad_settings():
    with pytest.raises(ModuleLoadError, match="invalid settings"):
        load_module("trickjump", {"permissions": "everyone"})


def test_load_modules_skips_broken_modules():
    modules = load_modules(["missing", "trickjump"], _config())
    assert [m.name for m in modules] == ["trickjump"]


def test_load_modules_passes_module_settings():
    settings = {"trickjump": {"permissions": {"servers": {"type": "whitelist", "list": ["1"]}}}}
    (module,) = load_modules(["trickjump"], _config(settings))
    assert "1" in module.permissions.servers.members


def test_reserved_command_conflict():
    modules = load_modules(["trickjump"], _config(), reserved_commands=["Tier"])
    assert modules == ()


def test_later_module_with_same_tables_is_refused():
    modules = load_modules(["trickjump", "trickjump"], _config())
    assert [m.name for m in modules] == ["trickjump"]


def test_module_claiming_system_table_is_refused():
    rogue = BotModule(name="rogue", commands=(), tables={"prefixes": "CREATE TABLE prefixes (x)"})
    with patch("tigerdyno.module_loader.load_module", return_value=rogue):
        assert load_modules(["rogue"], _config()) == ()


def test_command_conflict_between_modules():
    first = BotModule(name="first", commands=load_module("trickjump", {}).commands)
    second = BotModule(name="second", commands=load_module("trickjump", {}).commands, tables={"t": "x"})
    with patch("tigerdyno.module_loader.load_module", side_effect=[first, second]):
        modules = load_modules(["first", "second"], _config())
    assert [m.name for m in modules] == ["first"]
