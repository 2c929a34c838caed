"""
Streaming transport boundary.

The connection supervisor only needs open / receive / send / close. The
aiohttp implementation connects with ``autoping=False`` so ping and pong
frames reach the read loop instead of being answered inside the library.
"""

import asyncio
from abc import ABC, abstractmethod
from enum import Enum
from typing import NamedTuple, Optional, Union

import aiohttp

from .errors import TransportSendError, TransportConnectError, TransportReadError
from ..utils.logger import get_logger

logger = get_logger('transport')


class FrameKind(Enum):
    DATA = "data"
    PING = "ping"
    PONG = "pong"
    CLOSE = "close"


class Frame(NamedTuple):
    kind: FrameKind
    payload: Union[bytes, str] = b""


class Session(ABC):
    """A live connection. Only its opener may close it."""

    @property
    @abstractmethod
    def closed(self) -> bool:
        ...

    @abstractmethod
    async def receive(self) -> Frame:
        """Next inbound frame; raises TransportReadError on failure"""

    @abstractmethod
    async def send(self, kind: FrameKind, payload: Union[bytes, str] = b"") -> None:
        """Write one frame; raises TransportSendError on failure"""

    @abstractmethod
    async def close(self) -> None:
        ...


class Transport(ABC):
    """Dials new sessions"""

    @abstractmethod
    async def open(self, url: str) -> Session:
        """Raises TransportConnectError when the dial fails"""


_FRAME_KINDS = {
    aiohttp.WSMsgType.TEXT: FrameKind.DATA,
    aiohttp.WSMsgType.BINARY: FrameKind.DATA,
    aiohttp.WSMsgType.PING: FrameKind.PING,
    aiohttp.WSMsgType.PONG: FrameKind.PONG,
    aiohttp.WSMsgType.CLOSE: FrameKind.CLOSE,
    aiohttp.WSMsgType.CLOSING: FrameKind.CLOSE,
    aiohttp.WSMsgType.CLOSED: FrameKind.CLOSE,
}


class AiohttpSession(Session):
    """aiohttp WebSocket wrapped as a Session"""

    def __init__(self, http: aiohttp.ClientSession, ws: aiohttp.ClientWebSocketResponse):
        self._http = http
        self._ws = ws

    @property
    def closed(self) -> bool:
        return self._ws.closed

    async def receive(self) -> Frame:
        try:
            msg = await self._ws.receive()
        except (aiohttp.ClientError, OSError, RuntimeError, asyncio.TimeoutError) as e:
            raise TransportReadError(f"Receive failed: {e}") from e

        if msg.type == aiohttp.WSMsgType.ERROR:
            raise TransportReadError(f"WebSocket error: {self._ws.exception()}")

        kind = _FRAME_KINDS.get(msg.type)
        if kind is None:
            raise TransportReadError(f"Unexpected frame type {msg.type!r}")

        if kind is FrameKind.CLOSE:
            return Frame(kind, b"")
        return Frame(kind, msg.data if msg.data is not None else b"")

    async def send(self, kind: FrameKind, payload: Union[bytes, str] = b"") -> None:
        if self._ws.closed:
            raise TransportSendError("Session is closed")

        data = payload.encode() if isinstance(payload, str) else payload
        try:
            if kind is FrameKind.PING:
                await self._ws.ping(data)
            elif kind is FrameKind.PONG:
                await self._ws.pong(data)
            elif kind is FrameKind.DATA:
                await self._ws.send_bytes(data)
            else:
                await self._ws.close()
        except (aiohttp.ClientError, OSError, RuntimeError) as e:
            raise TransportSendError(f"Send {kind.value} failed: {e}") from e

    async def close(self) -> None:
        try:
            if not self._ws.closed:
                await self._ws.close()
        finally:
            if not self._http.closed:
                await self._http.close()


class AiohttpTransport(Transport):
    """Opens one aiohttp ClientSession per WebSocket connection"""

    def __init__(self, connect_timeout: Optional[float] = 10.0):
        self.connect_timeout = connect_timeout

    async def open(self, url: str) -> Session:
        http = aiohttp.ClientSession()
        ws = None
        try:
            ws = await asyncio.wait_for(
                http.ws_connect(url, autoping=False, heartbeat=None),
                timeout=self.connect_timeout
            )
        except (aiohttp.ClientError, OSError, asyncio.TimeoutError) as e:
            raise TransportConnectError(f"Could not connect to {url}: {str(e) or type(e).__name__}") from e
        finally:
            if ws is None:
                await http.close()

        return AiohttpSession(http, ws)
