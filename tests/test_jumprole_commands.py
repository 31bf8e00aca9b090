"""Tests for the jumprole command and jumprole storage."""

import pytest

from conftest import (
    HOME_CHANNEL,
    OTHER_CHANNEL,
    OTHER_USER,
    SERVER,
    USER,
    FakeDatabase,
    RecordingResponder,
    make_context,
    make_message,
)
from tigerdyno.commands.arguments import ABSENT, tokenize, validate_arguments
from tigerdyno.commands.results import FailureKind, ResultType
from tigerdyno.commands.stock import stock_commands
from tigerdyno.commands.tree import CommandTree
from tigerdyno.modules.trickjump import create_module
from tigerdyno.modules.trickjump.jumprole_cmd import JumproleCreate
from tigerdyno.modules.trickjump.jumproles import get_jumprole
from tigerdyno.modules.trickjump.tables import GET_SERVER_JUMPROLE_CHANNEL
from tigerdyno.modules.trickjump.tiers import create_tier, get_tier


async def _send(database, text, author=USER, channel=HOME_CHANNEL):
    ctx = make_context(database)
    tree = CommandTree(stock_commands(), [create_module({})])
    ctx.attach_tree(tree)
    responder = RecordingResponder()
    result = await tree.process_message(make_message(text, author=author, channel=channel), responder, ctx)
    return result, responder


async def _designate(database, user=USER):
    await database.query(
        "INSERT INTO designates (snowflake, full_access, server) VALUES (?, 0, ?)", (user, SERVER)
    )


async def _home(database):
    await database.query(
        "INSERT INTO trickjump_guilds (server, jumprole_channel) VALUES (?, ?)", (SERVER, HOME_CHANNEL)
    )


async def _home_channel(database):
    rows = (await database.query(GET_SERVER_JUMPROLE_CHANNEL, (SERVER,))).rows
    return [row[0] for row in rows]


@pytest.mark.asyncio
async def test_choose_works_before_a_channel_is_chosen(database):
    await _designate(database)
    result, responder = await _send(database, f"%jumprole choose <#{HOME_CHANNEL}>", channel=OTHER_CHANNEL)
    assert result.type == ResultType.SUCCEEDED
    assert responder.acknowledged == 1
    assert await _home_channel(database) == [HOME_CHANNEL]


@pytest.mark.asyncio
async def test_choose_replaces_previous_channel(database):
    await _designate(database)
    await _home(database)
    result, _ = await _send(database, f"%jumprole choose {OTHER_CHANNEL}", channel=OTHER_CHANNEL)
    assert result.type == ResultType.SUCCEEDED
    assert await _home_channel(database) == [OTHER_CHANNEL]


@pytest.mark.asyncio
async def test_choose_requires_designate(database):
    result, _ = await _send(database, f"%jumprole choose <#{HOME_CHANNEL}>", author=OTHER_USER)
    assert result.type == ResultType.UNAUTHORIZED
    assert await _home_channel(database) == []


@pytest.mark.asyncio
async def test_choose_rejects_user_mention(database):
    await _designate(database)
    result, responder = await _send(database, f"%jumprole choose <@{USER}>")
    assert result.failure == FailureKind.INVALID_ARGUMENTS
    assert "channel id or mention" in responder.sent[0]


@pytest.mark.asyncio
async def test_create_with_every_property(database):
    await _designate(database)
    await _home(database)
    await create_tier(SERVER, "Hard", 5, database)

    text = (
        "%jumprole create NAME Long Jump TIER Hard KINGDOM cap kingdom "
        "LOCATION near the top hat JUMP TYPE cap throw LINK https://example.com/v "
        "INFO a long, long jump"
    )
    result, responder = await _send(database, text)
    assert result.type == ResultType.SUCCEEDED
    assert responder.acknowledged == 1

    jumprole = await get_jumprole("Long Jump", SERVER, database)
    tier = await get_tier("Hard", SERVER, database)
    assert jumprole.tier_id == tier.id
    assert jumprole.kingdom == "Cap Kingdom"
    assert jumprole.location == "near the top hat"
    assert jumprole.jump_type == "cap throw"
    assert jumprole.link == "https://example.com/v"
    assert jumprole.description == "a long, long jump"
    assert jumprole.added_by == USER


@pytest.mark.asyncio
async def test_create_with_only_required_properties(database):
    await _designate(database)
    await _home(database)
    await create_tier(SERVER, "Hard", 5, database)
    result, _ = await _send(database, "%jumprole create INFO it's a dive TIER Hard NAME Dive")
    assert result.type == ResultType.SUCCEEDED
    jumprole = await get_jumprole("Dive", SERVER, database)
    assert jumprole.kingdom is None
    assert jumprole.link is None
    assert jumprole.description == "it's a dive"


@pytest.mark.asyncio
async def test_create_unknown_tier(database):
    await _designate(database)
    await _home(database)
    result, responder = await _send(database, "%jumprole create NAME Dive TIER Nope INFO x")
    assert result.failure == FailureKind.NOT_FOUND
    assert 'no tier named "Nope"' in responder.sent[0]
    assert await get_jumprole("Dive", SERVER, database) is None


@pytest.mark.asyncio
async def test_create_duplicate(database):
    await _designate(database)
    await _home(database)
    await create_tier(SERVER, "Hard", 5, database)
    await _send(database, "%jumprole create NAME Dive TIER Hard INFO first")
    result, _ = await _send(database, "%jumprole create NAME Dive TIER Hard INFO second")
    assert result.failure == FailureKind.ALREADY_EXISTS
    assert (await get_jumprole("Dive", SERVER, database)).description == "first"


@pytest.mark.asyncio
async def test_duplicate_issues_no_insert():
    existing = (
        7, "Dive", None, None, None, None, "first", 1, USER, SERVER, "2024-01-01T00:00:00+00:00"
    )
    db = FakeDatabase(
        [
            ("FROM prefixes", []),
            ("FROM trickjump_guilds", [(HOME_CHANNEL,)]),
            ("FROM designates", [(1,)]),
            ("FROM trickjump_tiers WHERE name", [(1, "Hard", 5, SERVER)]),
            ("FROM trickjump_jumps WHERE name", [existing]),
        ]
    )
    result, _ = await _send(db, "%jumprole create NAME Dive TIER Hard INFO second")
    assert result.failure == FailureKind.ALREADY_EXISTS
    assert db.statements("INSERT") == []


@pytest.mark.asyncio
async def test_create_unknown_kingdom(database):
    await _designate(database)
    await _home(database)
    result, responder = await _send(database, "%jumprole create NAME Dive TIER Hard KINGDOM Atlantis INFO x")
    assert result.failure == FailureKind.INVALID_ARGUMENTS
    assert "Usage: %jumprole create NAME <name> TIER <tier> (optional: KINGDOM <kingdom>)" in responder.sent[0]


@pytest.mark.asyncio
async def test_create_outside_home_channel(database):
    await _designate(database)
    await _home(database)
    result, responder = await _send(database, "%jumprole create NAME Dive TIER Hard INFO x", channel=OTHER_CHANNEL)
    assert result.type == ResultType.UNAUTHORIZED
    assert "(with the exception of choose)" in responder.sent[0]


@pytest.mark.asyncio
async def test_remove(database):
    await _designate(database)
    await _home(database)
    await create_tier(SERVER, "Hard", 5, database)
    await _send(database, "%jumprole create NAME Long Jump TIER Hard INFO x")

    result, _ = await _send(database, "%jumprole remove Long Jump")
    assert result.type == ResultType.SUCCEEDED
    assert await get_jumprole("Long Jump", SERVER, database) is None

    result, responder = await _send(database, "%jumprole remove Long Jump")
    assert result.failure == FailureKind.NOT_FOUND
    assert 'no jumprole named "Long Jump"' in responder.sent[0]


@pytest.mark.parametrize(
    "info",
    ["Use the LINK below for proof", "touch the NAME sign", "the TIER Hard part"],
)
def test_create_description_keeps_marker_words(info):
    values = validate_arguments(
        tokenize(f"NAME Foo TIER Easy INFO {info}"), JumproleCreate.manual.arguments
    )
    assert values["name"] == "Foo"
    assert values["tier"] == "Easy"
    assert values["link"] is ABSENT
    assert values["description"] == info


@pytest.mark.asyncio
async def test_create_usage_mentions_quoting(database):
    await _designate(database)
    await _home(database)
    result, responder = await _send(database, "%jumprole create TIER Hard NAME Dive INFO x")
    assert result.failure == FailureKind.INVALID_ARGUMENTS
    assert "double quotes" in responder.sent[0]
