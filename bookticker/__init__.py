"""
Binance Order Book Ticker
=========================

Keeps a local copy of one symbol's order book from the Binance diff-depth
WebSocket stream and prints the top price levels after every update.

Project Structure:
- bookticker/data_ingestion: depth decoding, order book store, transport and connection supervisor
- bookticker/live_trading: heartbeat and the engine that runs everything
- bookticker/reporting: top-of-book text report
- bookticker/utils: configuration and logging
"""

__version__ = "0.1.0"

from bookticker.data_ingestion.order_book import OrderBookStore, PriceLevelTable
from bookticker.data_ingestion.binance_connector import ConnectionSupervisor
from bookticker.live_trading.live_engine import BookTickerEngine

__all__ = [
    "OrderBookStore",
    "PriceLevelTable",
    "ConnectionSupervisor",
    "BookTickerEngine"
]
