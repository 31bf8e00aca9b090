"""Shared fixtures: ids, a recording responder, fake and real databases."""

from contextlib import asynccontextmanager
from typing import Any, Callable, List, Sequence, Tuple, Union
from unittest.mock import MagicMock

import pytest
import pytest_asyncio

from tigerdyno.commands.base import CommandContext, InboundMessage, Invocation
from tigerdyno.database import Database, QueryResult
from tigerdyno.designate import DesignateRegistry
from tigerdyno.modules.trickjump.tables import TABLES

ADMIN = "100000000000000001"
USER = "200000000000000002"
OTHER_USER = "200000000000000003"
SERVER = "300000000000000004"
HOME_CHANNEL = "400000000000000005"
OTHER_CHANNEL = "400000000000000006"
MAINTAINER = "@maintainer"


def make_message(text="", author=USER, channel=HOME_CHANNEL, server=SERVER, mentions_bot=False):
    return InboundMessage(
        raw_text=text,
        author_id=author,
        channel_id=channel,
        server_id=server,
        mentions_bot=mentions_bot,
    )


class RecordingResponder:
    """Collects what a command sent back."""

    def __init__(self, fail=False):
        self.sent: List[str] = []
        self.acknowledged = 0
        self.fail = fail

    async def send(self, text: str) -> None:
        if self.fail:
            raise ConnectionError("channel gone")
        self.sent.append(text)

    async def acknowledge(self) -> None:
        if self.fail:
            raise ConnectionError("channel gone")
        self.acknowledged += 1


def make_invocation(remainder="", path=(), prefix="%", responder=None, **message_kwargs):
    return Invocation(
        message=make_message(**message_kwargs),
        responder=responder or RecordingResponder(),
        prefix=prefix,
        path=tuple(path),
        remainder=remainder,
    )


Scripted = Union[QueryResult, Sequence[Tuple[Any, ...]], Exception, Callable[[str, tuple], Any]]


class FakeDatabase:
    """Database double that records statements and answers from a script.

    ``script`` is a list of (substring, answer) pairs; the first pair
    whose substring occurs in the statement decides the answer. An
    answer may be rows, a QueryResult, an exception to raise, or a
    callable taking (sql, params). Unscripted statements return no rows.
    """

    def __init__(self, script: Sequence[Tuple[str, Scripted]] = ()):
        self.script = list(script)
        self.calls: List[Tuple[str, tuple]] = []
        self.sessions = 0

    async def query(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        normalized = " ".join(sql.split())
        self.calls.append((normalized, tuple(params)))
        for needle, answer in self.script:
            if needle in normalized:
                if callable(answer) and not isinstance(answer, QueryResult):
                    answer = answer(normalized, tuple(params))
                if isinstance(answer, Exception):
                    raise answer
                if isinstance(answer, QueryResult):
                    return answer
                return QueryResult(rows=list(answer), rowcount=len(answer), lastrowid=1)
        return QueryResult()

    @asynccontextmanager
    async def session(self):
        self.sessions += 1
        yield self

    def statements(self, verb: str) -> List[str]:
        return [sql for sql, _ in self.calls if sql.upper().startswith(verb.upper())]


def make_config(**overrides):
    config = MagicMock()
    config.global_prefix = "%"
    config.maintainer_tag = MAINTAINER
    config.admins = [ADMIN]
    for key, value in overrides.items():
        setattr(config, key, value)
    return config


def make_context(database, paste=None, **config_overrides):
    return CommandContext(
        config=make_config(**config_overrides),
        database=database,
        designates=DesignateRegistry([ADMIN]),
        paste=paste,
    )


@pytest_asyncio.fixture
async def database(tmp_path):
    """Real SQLite database with the system and trickjump tables."""
    db = Database(tmp_path / "data" / "tigerdyno.db")
    await db.initialize(list(TABLES.values()))
    return db


@pytest.fixture
def responder():
    return RecordingResponder()
