"""Tests for the designate registry and rank checks."""

import pytest

from conftest import (
    ADMIN,
    MAINTAINER,
    OTHER_USER,
    SERVER,
    USER,
    FakeDatabase,
    RecordingResponder,
    make_context,
    make_invocation,
)
from tigerdyno.commands.results import FailureKind, ResultType
from tigerdyno.designate import (
    DesignateHandle,
    DesignateRegistry,
    DesignateRemoveResult,
    DesignateStatus,
    require_designate,
)
from tigerdyno.exceptions import QueryFailedError


def _registry():
    return DesignateRegistry([ADMIN])


def test_statuses_are_ordered():
    assert DesignateStatus.INVALID_HANDLE < DesignateStatus.USER_NOT_IN_REGISTRY
    assert DesignateStatus.NO_FULL_ACCESS < DesignateStatus.FULL_ACCESS < DesignateStatus.USER_IS_ADMIN
    assert [int(s) for s in DesignateStatus] == [0, 1, 2, 3, 4]


@pytest.mark.asyncio
async def test_admin_resolves_without_lookup():
    db = FakeDatabase()
    status = await _registry().resolve_rank(DesignateHandle(ADMIN, SERVER), db)
    assert status == DesignateStatus.USER_IS_ADMIN
    assert db.calls == []


@pytest.mark.asyncio
async def test_invalid_handle():
    status = await _registry().resolve_rank(DesignateHandle("nobody", SERVER), FakeDatabase())
    assert status == DesignateStatus.INVALID_HANDLE


@pytest.mark.asyncio
async def test_set_then_change_then_remove(database):
    registry = _registry()
    handle = DesignateHandle(USER, SERVER)

    assert await registry.resolve_rank(handle, database) == DesignateStatus.USER_NOT_IN_REGISTRY
    assert await registry.set_user(handle, False, database) == DesignateStatus.NO_FULL_ACCESS
    assert await registry.set_user(handle, True, database) == DesignateStatus.FULL_ACCESS

    rows = (await database.query("SELECT COUNT(*) FROM designates")).rows
    assert rows == [(1,)]

    assert await registry.remove_user(handle, database) == DesignateRemoveResult.REMOVED
    assert await registry.remove_user(handle, database) == DesignateRemoveResult.ALREADY_NOT_IN_REGISTRY


@pytest.mark.asyncio
async def test_registry_is_per_server(database):
    registry = _registry()
    await registry.set_user(DesignateHandle(USER, SERVER), True, database)
    other_server = DesignateHandle(USER, "900000000000000009")
    assert await registry.resolve_rank(other_server, database) == DesignateStatus.USER_NOT_IN_REGISTRY


@pytest.mark.asyncio
async def test_admins_cannot_be_changed(database):
    registry = _registry()
    handle = DesignateHandle(ADMIN, SERVER)
    assert await registry.set_user(handle, False, database) == DesignateStatus.USER_IS_ADMIN
    assert await registry.remove_user(handle, database) == DesignateRemoveResult.USER_IS_ADMIN


@pytest.mark.asyncio
async def test_query_failures_are_reported_as_values():
    failure = QueryFailedError("locked", query="SELECT", params=())
    db = FakeDatabase([("designates", failure)])
    handle = DesignateHandle(USER, SERVER)
    assert await _registry().set_user(handle, True, db) is None
    assert await _registry().remove_user(handle, db) == DesignateRemoveResult.QUERY_FAILED


@pytest.mark.asyncio
async def test_require_designate_denies_low_rank():
    db = FakeDatabase()
    result = await require_designate(
        make_invocation(author=OTHER_USER), make_context(db), DesignateStatus.NO_FULL_ACCESS, "create tiers"
    )
    assert result.type == ResultType.UNAUTHORIZED
    assert result.reason == (
        "you must be a designate without full access or higher to create tiers "
        "(you are not a designate)."
    )


@pytest.mark.asyncio
async def test_require_designate_allows_sufficient_rank():
    db = FakeDatabase([("FROM designates", [(1,)])])
    result = await require_designate(
        make_invocation(), make_context(db), DesignateStatus.FULL_ACCESS, "designate users"
    )
    assert result is None


@pytest.mark.asyncio
async def test_require_designate_lookup_failure():
    db = FakeDatabase([("designates", QueryFailedError("locked", query="SELECT", params=()))])
    responder = RecordingResponder()
    result = await require_designate(
        make_invocation(path=("tier", "create"), responder=responder),
        make_context(db),
        DesignateStatus.NO_FULL_ACCESS,
        "create tiers",
    )
    assert result.failure == FailureKind.QUERY_FAILED
    assert responder.sent == [
        f"%tier create: an unknown internal error caused the database query to fail. "
        f"Contact {MAINTAINER} for help."
    ]


@pytest.mark.asyncio
async def test_require_designate_outside_server():
    result = await require_designate(
        make_invocation(server=None), make_context(FakeDatabase()), DesignateStatus.NO_FULL_ACCESS, "do that"
    )
    assert result.type == ResultType.UNAUTHORIZED
