"""
Book Ticker Configuration
"""

import os
from typing import Any, Dict, Literal, Optional
from pydantic import BaseModel, Field, field_validator
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


DEFAULT_WS_URL = "wss://stream.binance.com:9443/ws/btcusdt@depth"


class FeedConfig(BaseModel):
    """Depth stream endpoint"""
    ws_url: str = Field(default=DEFAULT_WS_URL, description="Depth stream WebSocket URL")
    symbol: str = Field(default="BTCUSDT", description="Symbol shown in the report title")

    @field_validator("ws_url")
    @classmethod
    def _websocket_scheme(cls, value: str) -> str:
        if not value.startswith(("ws://", "wss://")):
            raise ValueError(f"ws_url must use ws:// or wss://, got {value!r}")
        return value

    @field_validator("symbol")
    @classmethod
    def _upper_symbol(cls, value: str) -> str:
        return value.upper()


class ConnectionConfig(BaseModel):
    """Reconnect and keep-alive timing, in seconds"""
    # Constant, not exponential: the daemon retries forever at this pace
    reconnect_delay: float = Field(default=5.0, gt=0, description="Fixed wait between connection attempts")
    heartbeat_interval: float = Field(default=20.0, gt=0, description="Interval between keep-alive pings")
    connect_timeout: float = Field(default=10.0, gt=0, description="Timeout for the WebSocket handshake")


class ReportConfig(BaseModel):
    """Top-of-book report"""
    levels: int = Field(default=5, ge=1, description="Price levels rendered per side")
    min_interval: float = Field(default=0.0, ge=0, description="Minimum seconds between reports (0 = every update)")


class LoggingConfig(BaseModel):
    """Log output"""
    mode: Literal["production", "development", "quiet", "silent"] = Field(default="production", description="Console logging mode")
    file: Optional[str] = Field(default=None, description="Optional rotating log file")


def _from_env(**variables: str) -> Dict[str, str]:
    """Raw values of the set environment variables, keyed by model field"""
    return {field: os.environ[name] for field, name in variables.items() if os.getenv(name)}


class Config:
    """
    Main configuration class

    Environment strings are handed to the pydantic models unconverted, so a
    bad value surfaces as a ValidationError naming the field.
    """

    def __init__(self):
        self.feed = FeedConfig(**_from_env(
            ws_url="BOOKTICKER_WS_URL",
            symbol="BOOKTICKER_SYMBOL"
        ))
        self.connection = ConnectionConfig(**_from_env(
            reconnect_delay="BOOKTICKER_RECONNECT_DELAY",
            heartbeat_interval="BOOKTICKER_HEARTBEAT_INTERVAL",
            connect_timeout="BOOKTICKER_CONNECT_TIMEOUT"
        ))
        self.report = ReportConfig(**_from_env(
            levels="BOOKTICKER_REPORT_LEVELS",
            min_interval="BOOKTICKER_REPORT_MIN_INTERVAL"
        ))
        self.logging = LoggingConfig(**_from_env(
            mode="BOOKTICKER_LOG_MODE",
            file="BOOKTICKER_LOG_FILE"
        ))

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary"""
        return {
            "feed": self.feed.model_dump(),
            "connection": self.connection.model_dump(),
            "report": self.report.model_dump(),
            "logging": self.logging.model_dump()
        }


def load_config() -> Config:
    """
    Build a Config from the current environment

    Raises pydantic.ValidationError for malformed BOOKTICKER_* values.
    """
    return Config()
