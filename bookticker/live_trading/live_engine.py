"""
Book Ticker Engine
==================

Wires the order book, the connection supervisor, the heartbeat and the
top-of-book reporter together, and owns their background tasks.
"""

import asyncio
import contextlib
from typing import Any, Callable, Dict, Optional

from .heartbeat import HeartbeatSender
from ..data_ingestion.binance_connector import ConnectionSupervisor, SleepFn
from ..data_ingestion.order_book import OrderBookStore
from ..data_ingestion.transport import AiohttpTransport, Session, Transport
from ..reporting.top_levels import TopLevelsReporter
from ..utils.config import Config, load_config
from ..utils.logger import get_logger


class BookTickerEngine:
    """
    Runs the book ticker daemon:
    - One supervisor task for connect / read / reconnect
    - One heartbeat task per live session, relaunched on every reconnect
    - A report after every applied delta
    """

    def __init__(self,
                 cfg: Optional[Config] = None,
                 transport: Optional[Transport] = None,
                 sink: Callable[[str], None] = print,
                 sleep: Optional[SleepFn] = None,
                 heartbeat_sleep: Optional[SleepFn] = None):
        self.config = cfg or load_config()
        self.logger = get_logger('live_engine')

        conn = self.config.connection
        self.store = OrderBookStore(self.config.feed.symbol)
        self.supervisor = ConnectionSupervisor(
            url=self.config.feed.ws_url,
            transport=transport or AiohttpTransport(connect_timeout=conn.connect_timeout),
            store=self.store,
            reconnect_delay=conn.reconnect_delay,
            sleep=sleep
        )
        self.reporter = TopLevelsReporter(
            self.store,
            levels=self.config.report.levels,
            sink=sink,
            min_interval=self.config.report.min_interval,
            title=f"Latest Binance {self.config.feed.symbol} order book (Top {self.config.report.levels})"
        )

        self._heartbeat_sleep = heartbeat_sleep
        self.heartbeat: Optional[HeartbeatSender] = None
        self._heartbeat_task: Optional[asyncio.Task] = None
        self.heartbeats_started = 0

        self.supervisor.add_connected_listener(self._on_connected)
        self.supervisor.add_delta_listener(self.reporter.on_delta)

    def _on_connected(self, session: Session) -> None:
        """Replace the heartbeat with one bound to the new session"""
        self._cancel_heartbeat()

        self.heartbeat = HeartbeatSender(
            session,
            interval=self.config.connection.heartbeat_interval,
            sleep=self._heartbeat_sleep
        )
        self._heartbeat_task = asyncio.get_running_loop().create_task(self.heartbeat.run())
        self.heartbeats_started += 1
        self.logger.debug(f"Heartbeat #{self.heartbeats_started} started")

    def _cancel_heartbeat(self) -> None:
        if self.heartbeat is not None:
            self.heartbeat.stop()
        if self._heartbeat_task is not None and not self._heartbeat_task.done():
            self._heartbeat_task.cancel()

    async def run(self, duration: Optional[float] = None) -> None:
        """
        Run until stop() is called or, when given, ``duration`` seconds pass
        """
        self.logger.info(f"Starting book ticker for {self.config.feed.symbol}")
        supervisor_task = asyncio.get_running_loop().create_task(self.supervisor.run())

        try:
            if duration is None:
                await supervisor_task
            else:
                done, _ = await asyncio.wait({supervisor_task}, timeout=duration)
                if not done:
                    self.logger.info(f"Run duration of {duration:g}s elapsed, shutting down")
                self.supervisor.stop()
                await supervisor_task
        finally:
            self.supervisor.stop()
            if not supervisor_task.done():
                supervisor_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await supervisor_task

            self._cancel_heartbeat()
            if self._heartbeat_task is not None:
                with contextlib.suppress(asyncio.CancelledError):
                    await self._heartbeat_task

            self.logger.info("Book ticker stopped")

    def stop(self) -> None:
        """Request graceful shutdown"""
        self.supervisor.stop()
        if self.heartbeat is not None:
            self.heartbeat.stop()

    def get_statistics(self) -> Dict[str, Any]:
        return {
            **self.supervisor.get_statistics(),
            'heartbeats_started': self.heartbeats_started,
            'heartbeat_pings_sent': self.heartbeat.pings_sent if self.heartbeat else 0,
            'reports': self.reporter.reports
        }
