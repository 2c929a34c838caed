"""
Keep-alive pings on a fixed timer.

One sender serves one session. A failed send means the connection is gone:
the sender stops and leaves recovery to the connection supervisor. It never
closes the session and never restarts itself; the engine starts a new sender
for each new connection.
"""

import asyncio
from typing import Optional

from ..data_ingestion.binance_connector import SleepFn, run_until_stopped
from ..data_ingestion.errors import HeartbeatSendError, TransportError
from ..data_ingestion.transport import FrameKind, Session
from ..utils.logger import get_logger

logger = get_logger('heartbeat')


class HeartbeatSender:

    def __init__(self,
                 session: Session,
                 interval: float = 20.0,
                 sleep: Optional[SleepFn] = None):
        self.session = session
        self.interval = interval
        self._sleep = sleep or asyncio.sleep
        self._stop = asyncio.Event()

        self.pings_sent = 0
        self.is_running = False
        self.last_error: Optional[HeartbeatSendError] = None

    def stop(self) -> None:
        self._stop.set()

    async def run(self) -> None:
        """Ping every interval until stopped or a send fails"""
        self.is_running = True
        try:
            while not self._stop.is_set():
                finished, _ = await run_until_stopped(self._sleep(self.interval), self._stop)
                if not finished:
                    break

                if self.session.closed:
                    logger.info("Session closed, heartbeat stopped")
                    break

                try:
                    await self.session.send(FrameKind.PING, b"")
                except TransportError as e:
                    self.last_error = HeartbeatSendError(f"Ping failed: {e}")
                    self.last_error.__cause__ = e
                    logger.warning(f"Heartbeat send failed, heartbeat stopped: {e}")
                    break

                self.pings_sent += 1
                logger.debug("Heartbeat ping sent")
        finally:
            self.is_running = False
