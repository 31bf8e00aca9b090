"""Tests for identity-based permissions."""

import pytest

from conftest import HOME_CHANNEL, OTHER_USER, SERVER, USER, make_message
from tigerdyno.exceptions import ConfigurationError
from tigerdyno.permissions import (
    InclusionSpecifier,
    InclusionType,
    Permissions,
    allowed,
    allowed_under,
    is_valid_snowflake,
    permissions_from_config,
)


def test_allowed_under_whitelist_and_blacklist():
    white = InclusionSpecifier.whitelist([USER])
    black = InclusionSpecifier.blacklist([USER])
    assert allowed_under(USER, white)
    assert not allowed_under(OTHER_USER, white)
    assert not allowed_under(USER, black)
    assert allowed_under(OTHER_USER, black)


def test_allowed_under_without_specifier_denies():
    """A missing specifier is not "no restriction" at this level."""
    assert not allowed_under(USER, None)


def test_allowed_under_empty_identity_denies():
    assert not allowed_under(None, InclusionSpecifier.blacklist([]))
    assert not allowed_under("", InclusionSpecifier.blacklist([]))


def test_int_and_str_members_compare_equal():
    assert allowed_under("42", InclusionSpecifier.whitelist([42]))
    assert allowed_under(42, InclusionSpecifier(InclusionType.WHITELIST, frozenset({"42"})))


def test_allowed_without_permissions():
    assert allowed(make_message(), None)
    assert allowed(make_message(), Permissions())


def test_allowed_checks_every_present_dimension():
    permissions = Permissions(
        servers=InclusionSpecifier.whitelist([SERVER]),
        users=InclusionSpecifier.blacklist([OTHER_USER]),
    )
    assert allowed(make_message(author=USER), permissions)
    assert not allowed(make_message(author=OTHER_USER), permissions)
    assert not allowed(make_message(server="999"), permissions)


def test_allowed_denies_server_whitelist_in_direct_messages():
    permissions = Permissions(servers=InclusionSpecifier.whitelist([SERVER]))
    assert not allowed(make_message(server=None), permissions)


def test_permissions_from_config():
    permissions = permissions_from_config(
        {
            "servers": {"type": "whitelist", "list": [int(SERVER)]},
            "channels": {"type": "BLACKLIST", "list": []},
        }
    )
    assert permissions.servers.mode == InclusionType.WHITELIST
    assert SERVER in permissions.servers.members
    assert permissions.channels.mode == InclusionType.BLACKLIST
    assert permissions.users is None
    assert allowed(make_message(channel=HOME_CHANNEL), permissions)


def test_permissions_from_config_none():
    assert permissions_from_config(None) is None


@pytest.mark.parametrize(
    "raw",
    [
        "whitelist",
        {"servers": "all"},
        {"servers": {"type": "greylist", "list": []}},
        {"users": {"type": "whitelist", "list": "123"}},
    ],
)
def test_permissions_from_config_rejects_malformed(raw):
    with pytest.raises(ConfigurationError):
        permissions_from_config(raw)


@pytest.mark.parametrize(
    "value,expected",
    [("123456789012345678", True), (42, True), ("", False), ("12a", False), (True, False), (-1, False)],
)
def test_is_valid_snowflake(value, expected):
    assert is_valid_snowflake(value) is expected
