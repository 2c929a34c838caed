"""
Data Ingestion Module
=====================

- Depth message decoding
- Order book maintenance with atomic delta apply
- WebSocket transport and the reconnecting connection supervisor
"""

from .order_book import OrderBookStore, PriceLevelTable, PriceLevel, BookSnapshot
from .depth_decoder import DepthDelta, decode_depth_message
from .binance_connector import ConnectionSupervisor, ConnectionState

__all__ = [
    'OrderBookStore',
    'PriceLevelTable',
    'PriceLevel',
    'BookSnapshot',
    'DepthDelta',
    'decode_depth_message',
    'ConnectionSupervisor',
    'ConnectionState'
]
