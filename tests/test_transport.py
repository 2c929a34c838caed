"""Tests for the aiohttp transport against a local WebSocket server."""

import contextlib

import aiohttp
import pytest
from aiohttp import web

from bookticker.data_ingestion.errors import TransportConnectError, TransportReadError, TransportSendError
from bookticker.data_ingestion.transport import AiohttpSession, AiohttpTransport, Frame, FrameKind


@contextlib.asynccontextmanager
async def serve(routes):
    """Run an aiohttp app on an ephemeral localhost port, yielding its base URL"""
    app = web.Application()
    for path, handler in routes.items():
        app.router.add_get(path, handler)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", 0)
    await site.start()
    host, port = runner.addresses[0][:2]
    try:
        yield f"ws://{host}:{port}"
    finally:
        await runner.cleanup()


@pytest.mark.asyncio
async def test_frames_reach_the_read_loop():
    server_seen = []

    async def handler(request):
        ws = web.WebSocketResponse(autoping=False)
        await ws.prepare(request)

        await ws.ping(b"srv-1")
        msg = await ws.receive()
        server_seen.append((msg.type, msg.data))

        await ws.send_str('{"e":"depthUpdate"}')
        msg = await ws.receive()
        server_seen.append((msg.type, msg.data))

        await ws.close()
        return ws

    async with serve({"/ws": handler}) as base:
        session = await AiohttpTransport(connect_timeout=5).open(f"{base}/ws")
        try:
            # the library must not answer the ping itself
            assert await session.receive() == Frame(FrameKind.PING, b"srv-1")
            await session.send(FrameKind.PONG, b"srv-1")

            assert await session.receive() == Frame(FrameKind.DATA, '{"e":"depthUpdate"}')
            await session.send(FrameKind.PING, b"hb")

            assert await session.receive() == Frame(FrameKind.CLOSE, b"")
            assert session.closed

            with pytest.raises(TransportSendError):
                await session.send(FrameKind.PONG, b"late")
        finally:
            await session.close()

    assert server_seen == [
        (aiohttp.WSMsgType.PONG, b"srv-1"),
        (aiohttp.WSMsgType.PING, b"hb"),
    ]


@pytest.mark.asyncio
async def test_send_after_close_raises():
    async def handler(request):
        ws = web.WebSocketResponse(autoping=False)
        await ws.prepare(request)
        async for _ in ws:
            pass
        return ws

    async with serve({"/ws": handler}) as base:
        session = await AiohttpTransport(connect_timeout=5).open(f"{base}/ws")
        await session.close()

        assert session.closed
        with pytest.raises(TransportSendError):
            await session.send(FrameKind.PING, b"")
        await session.close()


@pytest.mark.asyncio
async def test_refused_dial_raises_connect_error():
    with pytest.raises(TransportConnectError):
        await AiohttpTransport(connect_timeout=5).open("ws://127.0.0.1:1/ws")


@pytest.mark.asyncio
async def test_plain_http_endpoint_raises_connect_error():
    async def plain(request):
        return web.Response(text="not a websocket")

    async with serve({"/plain": plain}) as base:
        with pytest.raises(TransportConnectError):
            await AiohttpTransport(connect_timeout=5).open(f"{base}/plain")


class StubWebSocket:
    """Client WebSocket whose receive() returns or raises a fixed outcome"""

    def __init__(self, outcome):
        self.outcome = outcome
        self.closed = False

    async def receive(self):
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome

    def exception(self):
        return self.outcome.data


@pytest.mark.asyncio
async def test_error_message_raises_read_error():
    error = aiohttp.WSMessage(aiohttp.WSMsgType.ERROR, RuntimeError("boom"), None)
    session = AiohttpSession(http=None, ws=StubWebSocket(error))

    with pytest.raises(TransportReadError, match="boom"):
        await session.receive()


@pytest.mark.asyncio
async def test_receive_failure_raises_read_error():
    session = AiohttpSession(http=None, ws=StubWebSocket(aiohttp.ClientConnectionError("reset")))

    with pytest.raises(TransportReadError, match="reset"):
        await session.receive()


@pytest.mark.parametrize("msg_type,kind", [
    (aiohttp.WSMsgType.TEXT, FrameKind.DATA),
    (aiohttp.WSMsgType.BINARY, FrameKind.DATA),
    (aiohttp.WSMsgType.PING, FrameKind.PING),
    (aiohttp.WSMsgType.PONG, FrameKind.PONG),
    (aiohttp.WSMsgType.CLOSE, FrameKind.CLOSE),
    (aiohttp.WSMsgType.CLOSING, FrameKind.CLOSE),
    (aiohttp.WSMsgType.CLOSED, FrameKind.CLOSE),
])
@pytest.mark.asyncio
async def test_message_types_map_to_frame_kinds(msg_type, kind):
    session = AiohttpSession(http=None, ws=StubWebSocket(aiohttp.WSMessage(msg_type, b"x", None)))

    frame = await session.receive()

    assert frame.kind is kind
    assert frame.payload == (b"" if kind is FrameKind.CLOSE else b"x")
