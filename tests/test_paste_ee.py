"""Tests for the paste.ee client."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from tigerdyno.exceptions import PasteError
from tigerdyno.integrations.paste_ee import Paste, PasteClient

API_URL = "https://api.paste.ee/v1/pastes"


def _client(token="secret-token"):
    return PasteClient(api_token=token, api_url=API_URL, timeout=5)


def _session_returning(status, json_body=None, text_body=""):
    response = MagicMock()
    response.status = status
    response.json = AsyncMock(return_value=json_body)
    response.text = AsyncMock(return_value=text_body)
    session = MagicMock()
    session.post.return_value.__aenter__.return_value = response
    session.post.return_value.__aexit__.return_value = False
    return session


def test_rejects_plain_http():
    with pytest.raises(PasteError):
        PasteClient(api_token="t", api_url="http://api.paste.ee/v1/pastes")


def test_paste_url_is_raw_link():
    assert Paste(id="abc").url == "https://paste.ee/r/abc"


@pytest.mark.asyncio
async def test_create_paste_success():
    client = _client()
    session = _session_returning(201, {"id": "xyz", "link": "https://paste.ee/p/xyz"})
    with patch.object(client, "_get_session", AsyncMock(return_value=session)):
        result = await client.create_paste("manual text")
    assert result.succeeded
    assert result.paste.url == "https://paste.ee/r/xyz"

    kwargs = session.post.call_args.kwargs
    assert kwargs["headers"] == {"X-Auth-Token": "secret-token"}
    assert kwargs["json"]["sections"][0]["contents"] == "manual text"


@pytest.mark.asyncio
async def test_create_paste_http_error():
    client = _client()
    session = _session_returning(401, text_body="bad token")
    with patch.object(client, "_get_session", AsyncMock(return_value=session)):
        result = await client.create_paste("manual text")
    assert not result.succeeded
    assert "401" in result.error


@pytest.mark.asyncio
async def test_create_paste_unexpected_body():
    client = _client()
    session = _session_returning(200, {"success": True})
    with patch.object(client, "_get_session", AsyncMock(return_value=session)):
        result = await client.create_paste("manual text")
    assert not result.succeeded
    assert "unexpected response" in result.error


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [asyncio.TimeoutError(), aiohttp.ClientConnectionError("refused")])
async def test_create_paste_transport_errors(error):
    client = _client()
    with patch.object(client, "_post", AsyncMock(side_effect=error)):
        result = await client.create_paste("manual text")
    assert not result.succeeded
    assert result.error


@pytest.mark.asyncio
async def test_create_paste_without_token():
    client = _client(token="")
    with patch.object(client, "_post", AsyncMock()) as post:
        result = await client.create_paste("manual text")
    assert not result.succeeded
    post.assert_not_called()


@pytest.mark.asyncio
async def test_close_without_session():
    await _client().close()
