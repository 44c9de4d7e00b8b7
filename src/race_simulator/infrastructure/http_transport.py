import asyncio
from typing import Any, Dict, Optional

import aiohttp
import structlog

from ..domain.errors import TransportError
from ..domain.interfaces import IEventSender
from ..domain.models import DispatchResponse

logger = structlog.get_logger()


class AiohttpEventSender(IEventSender):
    """
    JSON POST client for the IoT wrapper. No retries.

    Use as an async context manager so the session is closed on exit.
    """
    def __init__(self, connect_timeout: float = 1.0, request_timeout: float = 1.0):
        # sock_connect covers only the TCP handshake, not time spent queued for a connection
        self._timeout = aiohttp.ClientTimeout(
            sock_connect=connect_timeout,
            total=request_timeout,
        )
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "AiohttpEventSender":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def connect(self) -> None:
        if self._session is not None:
            await self.close()
        # No pool cap: every event of a same-second burst goes out at once
        self._session = aiohttp.ClientSession(
            connector=aiohttp.TCPConnector(limit=0),
            timeout=self._timeout,
            headers={"content-type": "application/json"},
        )
        logger.debug("http_session_opened", total_timeout=self._timeout.total)

    async def close(self) -> None:
        if self._session is None:
            return
        await self._session.close()
        self._session = None

    async def post(self, url: str, payload: Dict[str, Any]) -> DispatchResponse:
        if self._session is None:
            raise RuntimeError("AiohttpEventSender used before connect()")

        try:
            async with self._session.post(url, json=payload) as response:
                body = await response.text(errors="replace")
                return DispatchResponse(
                    status=response.status,
                    headers=dict(response.headers),
                    body=body,
                )
        except aiohttp.ClientError as e:
            raise TransportError(url, f"network error: {e}") from e
        except asyncio.TimeoutError as e:
            raise TransportError(url, "request timed out") from e
