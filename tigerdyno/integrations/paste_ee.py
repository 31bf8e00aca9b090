"""paste.ee client used to publish the command manual.

The manual is far longer than a chat message allows, so the
``commands`` stock command uploads it here and replies with a link.

Key classes:
    Paste: A created paste (pydantic).
    CreatePasteResult: Either a paste or an error string.
    PasteClient: Owns the aiohttp session and performs uploads.
"""

import asyncio
from typing import Optional
from urllib.parse import urlparse

import aiohttp
import structlog
from pydantic import BaseModel, ValidationError

from ..exceptions import PasteError

logger = structlog.get_logger("tigerdyno.integrations")

RAW_URL_BASE = "https://paste.ee/r/"


class Paste(BaseModel):
    """A paste as returned by the paste.ee API."""

    id: str
    link: Optional[str] = None

    @property
    def url(self) -> str:
        """Raw-text URL of the paste."""
        return RAW_URL_BASE + self.id


class CreatePasteResult(BaseModel):
    paste: Optional[Paste] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.paste is not None


class PasteClient:
    """Uploads text to paste.ee.

    Args:
        api_token: paste.ee application token (X-Auth-Token).
        api_url: Paste creation endpoint.
        timeout: Total seconds allowed for one upload.

    Raises:
        PasteError: If api_url is not HTTPS or has no host.
    """

    def __init__(self, api_token: str, api_url: str, timeout: float = 15):
        self.api_token = api_token
        self.api_url = api_url
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

        parsed = urlparse(api_url)
        if parsed.scheme != "https" or not parsed.hostname:
            logger.warning("invalid_paste_api_url", url=api_url)
            raise PasteError("paste API URL must be HTTPS with a host", url=api_url)

        if not self.api_token:
            logger.warning("paste_api_token_not_found")

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the shared aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self):
        """Close the shared HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def _post(self, text: str, description: str) -> Paste:
        session = await self._get_session()
        payload = {
            "description": description,
            "sections": [{"name": description, "syntax": "text", "contents": text}],
        }
        async with session.post(
            self.api_url,
            json=payload,
            headers={"X-Auth-Token": self.api_token},
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        ) as resp:
            if resp.status not in (200, 201):
                error_text = await resp.text()
                raise PasteError(
                    f"paste.ee answered with status {resp.status}",
                    status=resp.status,
                    body=error_text[:500],
                )
            data = await resp.json()
        return Paste.model_validate(data)

    async def create_paste(self, text: str, description: str = "tigerdyno manual") -> CreatePasteResult:
        """Upload text and return the created paste or an error.

        Never raises for service failures; they are logged and returned
        in ``error``.
        """
        if not self.api_token:
            return CreatePasteResult(error="no paste API token is configured")

        try:
            paste = await self._post(text, description)
        except PasteError as e:
            logger.error("paste_rejected", status=e.status, error=str(e))
            return CreatePasteResult(error=e.message)
        except asyncio.TimeoutError:
            logger.warning("paste_timeout", timeout=self.timeout)
            return CreatePasteResult(error="the paste service timed out")
        except aiohttp.ClientError as e:
            logger.error("paste_request_failed", error=str(e))
            return CreatePasteResult(error=str(e))
        except ValidationError as e:
            logger.error("paste_response_invalid", error=str(e))
            return CreatePasteResult(error="the paste service returned an unexpected response")

        logger.info("paste_created", paste_id=paste.id, length=len(text))
        return CreatePasteResult(paste=paste)
