"""
Binance Depth Stream Connection Supervisor
=========================================

Long-lived client for the diff-depth WebSocket stream:
- Unbounded reconnection with a fixed backoff
- Order book reset on every new connection
- Ping replies echoing the peer's payload
- Graceful shutdown observed at every wait (connect, receive, backoff)
"""

import asyncio
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from .depth_decoder import DepthDelta, decode_depth_message
from .errors import DecodeError, TransportConnectError, TransportError, TransportReadError
from .order_book import OrderBookStore
from .transport import Frame, FrameKind, Session, Transport
from ..utils.logger import get_logger

logger = get_logger('binance_connector')

SleepFn = Callable[[float], Awaitable[Any]]


async def run_until_stopped(awaitable: Awaitable, stop: asyncio.Event) -> Tuple[bool, Any]:
    """
    Await ``awaitable`` unless ``stop`` is set first.

    Returns (True, result) when the awaitable finished, (False, None) when
    stop won and the awaitable was cancelled. Exceptions from the awaitable
    propagate.
    """
    if stop.is_set():
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        return False, None

    task = asyncio.ensure_future(awaitable)
    stopper = asyncio.ensure_future(stop.wait())
    try:
        done, _ = await asyncio.wait({task, stopper}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        stopper.cancel()
        if not task.done():
            task.cancel()

    if task in done:
        return True, task.result()
    return False, None


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class ConnectionSupervisor:
    """
    Drives connect -> read loop -> failure -> backoff -> reconnect, forever.

    The supervisor is the only owner of the session: it opens it, exposes it
    read-only through ``current_session`` while connected, and closes it.
    """

    def __init__(self,
                 url: str,
                 transport: Transport,
                 store: OrderBookStore,
                 reconnect_delay: float = 5.0,
                 sleep: Optional[SleepFn] = None,
                 decoder: Callable[[Any], DepthDelta] = decode_depth_message):

        self.url = url
        self.transport = transport
        self.store = store
        self.reconnect_delay = reconnect_delay
        self._sleep = sleep or asyncio.sleep
        self._decode = decoder

        # Connection state
        self.state = ConnectionState.DISCONNECTED
        self._session: Optional[Session] = None
        self._shutdown = asyncio.Event()
        self.is_running = False

        # Callbacks
        self._connected_listeners: List[Callable[[Session], None]] = []
        self._delta_listeners: List[Callable[[DepthDelta], None]] = []

        self.stats = {
            'connections': 0,
            'connect_failures': 0,
            'disconnects': 0,
            'messages_received': 0,
            'deltas_applied': 0,
            'decode_errors': 0,
            'pings_answered': 0,
            'pong_failures': 0,
            'last_message_time': 0.0
        }

    @property
    def current_session(self) -> Optional[Session]:
        """The live session while connected; callers must never close it"""
        return self._session

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    def add_connected_listener(self, callback: Callable[[Session], None]) -> None:
        """Called with each newly opened session, after the book reset"""
        self._connected_listeners.append(callback)

    def add_delta_listener(self, callback: Callable[[DepthDelta], None]) -> None:
        """Called after each delta has been applied to the store"""
        self._delta_listeners.append(callback)

    def _emit(self, listeners: List[Callable], payload: Any) -> None:
        for callback in listeners:
            try:
                callback(payload)
            except Exception as e:
                logger.error(f"Listener {getattr(callback, '__qualname__', callback)!r} failed: {e}")

    def stop(self) -> None:
        """Request shutdown; run() returns once the open session is closed"""
        if not self._shutdown.is_set():
            logger.info("Shutdown requested")
        self._shutdown.set()

    @property
    def stopping(self) -> bool:
        return self._shutdown.is_set()

    async def run(self) -> None:
        """Main loop. Returns only after stop()."""
        self.is_running = True
        logger.info(f"Connection supervisor started for {self.url}")

        try:
            while not self._shutdown.is_set():
                session = await self._connect()

                if session is not None:
                    try:
                        self._on_connected(session)
                        await self._read_loop(session)
                    finally:
                        await self._close_session(session)

                if self._shutdown.is_set():
                    break

                logger.info(f"Reconnecting in {self.reconnect_delay:g}s...")
                await run_until_stopped(self._sleep(self.reconnect_delay), self._shutdown)
        finally:
            self.state = ConnectionState.DISCONNECTED
            self.is_running = False
            logger.info("Connection supervisor stopped")

    async def _connect(self) -> Optional[Session]:
        self.state = ConnectionState.CONNECTING
        logger.info(f"Connecting to depth stream: {self.url}")

        try:
            finished, session = await run_until_stopped(self.transport.open(self.url), self._shutdown)
        except TransportConnectError as e:
            self.stats['connect_failures'] += 1
            self.state = ConnectionState.DISCONNECTED
            logger.error(f"Connection failed: {e}")
            return None

        if not finished:
            self.state = ConnectionState.DISCONNECTED
            return None

        return session

    def _on_connected(self, session: Session) -> None:
        self.store.reset()
        self._session = session
        self.state = ConnectionState.CONNECTED
        self.stats['connections'] += 1

        logger.success("Depth stream connected")
        self._emit(self._connected_listeners, session)

    async def _read_loop(self, session: Session) -> None:
        """Process frames until the session fails, the peer closes, or shutdown"""
        while not self._shutdown.is_set():
            try:
                finished, frame = await run_until_stopped(session.receive(), self._shutdown)
            except TransportReadError as e:
                logger.warning(f"WebSocket read failed: {e}")
                return

            if not finished:
                return

            self.stats['messages_received'] += 1
            self.stats['last_message_time'] = time.time()

            if frame.kind is FrameKind.CLOSE:
                logger.warning("WebSocket closed by peer")
                return
            if frame.kind is FrameKind.PING:
                await self._reply_pong(session, frame)
            elif frame.kind is FrameKind.PONG:
                logger.debug("Pong received")
            else:
                self._handle_data(frame.payload)

    async def _reply_pong(self, session: Session, frame: Frame) -> None:
        logger.debug("Ping received")
        try:
            await session.send(FrameKind.PONG, frame.payload)
            self.stats['pings_answered'] += 1
        except TransportError as e:
            # The read loop notices a dead connection on its own
            self.stats['pong_failures'] += 1
            logger.error(f"Pong reply failed: {e}")

    def _handle_data(self, payload: Any) -> None:
        try:
            delta = self._decode(payload)
        except DecodeError as e:
            self.stats['decode_errors'] += 1
            logger.error(f"Skipping malformed depth message: {e}")
            return

        self.store.apply(delta)
        self.stats['deltas_applied'] += 1
        self._emit(self._delta_listeners, delta)

    async def _close_session(self, session: Session) -> None:
        self._session = None
        self.state = ConnectionState.DISCONNECTED
        self.stats['disconnects'] += 1

        try:
            await session.close()
        except Exception as e:
            logger.error(f"Error closing session: {e}")

    def get_statistics(self) -> Dict:
        """Connection statistics"""
        return {
            **self.stats,
            'state': self.state.value,
            'is_running': self.is_running,
            'url': self.url,
            'order_book_stats': self.store.get_statistics()
        }
