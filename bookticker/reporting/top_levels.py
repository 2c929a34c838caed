"""
Top-of-book text report.

Renders the best N asks and bids as ``price: quantity`` lines, prices at
fixed 8-decimal precision.
"""

import time
from decimal import Decimal
from typing import Callable, Iterable, Optional

from ..data_ingestion.order_book import BookSnapshot, OrderBookStore, PriceLevel


_RULE = "+------------------------+"


def format_level(level: PriceLevel) -> str:
    """``100.00000000: 1.5``"""
    return f"{level.price:.8f}: {format_quantity(level.quantity)}"


def format_quantity(quantity: Decimal) -> str:
    # 'f' keeps wire precision without switching to exponent notation
    return format(quantity, "f")


def _section(heading: str, levels: Iterable[PriceLevel]) -> list:
    lines = [_RULE, f"|{heading:^24}|", _RULE]
    lines.extend(f"| {format_level(level)}" for level in levels)
    return lines


def render_report(snapshot: BookSnapshot, title: Optional[str] = None) -> str:
    """Asks (best first) above bids (best first)"""
    if title is None:
        depth = max(len(snapshot.asks), len(snapshot.bids))
        title = f"Latest {snapshot.symbol or 'order'} book (Top {depth})"

    lines = ["", title]
    lines += _section("ASKS", snapshot.asks)
    lines += _section("BIDS", snapshot.bids)
    lines.append(_RULE)
    return "\n".join(lines)


class TopLevelsReporter:
    """
    Read-only consumer of the order book.

    Hooked to the connection supervisor's delta listener, so a report is
    produced after every applied update; ``min_interval`` throttles that.
    """

    def __init__(self,
                 store: OrderBookStore,
                 levels: int = 5,
                 sink: Callable[[str], None] = print,
                 min_interval: float = 0.0,
                 title: Optional[str] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.store = store
        self.levels = levels
        self.sink = sink
        self.min_interval = min_interval
        self.title = title
        self._clock = clock
        self._last_report: Optional[float] = None
        self.reports = 0

    def report(self) -> str:
        snapshot = self.store.snapshot(self.levels, self.levels)
        text = render_report(snapshot, self._title_for(snapshot))
        self.sink(text)
        self.reports += 1
        self._last_report = self._clock()
        return text

    def _title_for(self, snapshot: BookSnapshot) -> str:
        if self.title:
            return self.title
        return f"Latest {snapshot.symbol or 'order'} book (Top {self.levels})"

    def on_delta(self, delta) -> None:
        """Delta listener: report unless throttled"""
        if self.min_interval > 0 and self._last_report is not None:
            if self._clock() - self._last_report < self.min_interval:
                return
        self.report()
