"""
Live Module
===========

Keep-alive heartbeat and the engine that runs the book ticker.
"""

from .heartbeat import HeartbeatSender
from .live_engine import BookTickerEngine

__all__ = [
    'HeartbeatSender',
    'BookTickerEngine'
]
