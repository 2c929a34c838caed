"""
Local Order Book for the Depth Stream
=====================================

Keeps one price -> quantity table per side and applies depth deltas to both
sides under a single lock, so a reader never sees half of a message.

Prices are parsed once into ``Decimal`` and that value is both the dict key
and the sort key. ``Decimal("100.0")`` and ``Decimal("100.00000000")`` hash
and compare equal, so differently formatted strings for the same price land
on the same level.
"""

import heapq
import threading
import time
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple, Union

from .errors import NumericParseError
from ..utils.logger import get_logger

logger = get_logger('order_book')

DecimalLike = Union[str, Decimal]

# Largest decimal exponent accepted for a price or quantity
MAX_EXPONENT = 32


class PriceLevel(NamedTuple):
    """Single price level on one side of the book"""
    price: Decimal
    quantity: Decimal


@dataclass(frozen=True)
class BookSnapshot:
    """Top levels of both sides, taken under the book lock"""
    symbol: str
    bids: Tuple[PriceLevel, ...]
    asks: Tuple[PriceLevel, ...]
    event_time: int
    taken_at: float

    def best_bid(self) -> Optional[PriceLevel]:
        return self.bids[0] if self.bids else None

    def best_ask(self) -> Optional[PriceLevel]:
        return self.asks[0] if self.asks else None

    def spread(self) -> Optional[Decimal]:
        """Best ask minus best bid"""
        if not self.bids or not self.asks:
            return None
        return self.asks[0].price - self.bids[0].price


def parse_decimal(value: DecimalLike, field: str = "value") -> Decimal:
    """
    Parse a wire string into a finite Decimal.

    Raises NumericParseError for anything Decimal rejects, for NaN or
    infinities, and for magnitudes beyond 10**MAX_EXPONENT either way, whose
    fixed-point rendering would be enormous.
    """
    if isinstance(value, Decimal):
        parsed = value
    else:
        try:
            parsed = Decimal(value)
        except (InvalidOperation, TypeError, ValueError) as e:
            raise NumericParseError(f"Invalid {field} {value!r}") from e

    if not parsed.is_finite():
        raise NumericParseError(f"Non-finite {field} {value!r}")
    if parsed and abs(parsed.adjusted()) > MAX_EXPONENT:
        raise NumericParseError(f"Out of range {field} {value!r}")
    return parsed


class PriceLevelTable:
    """
    Price -> quantity map for one side of the book.

    Thread-safety: NOT thread-safe on its own. OrderBookStore holds the lock
    that covers both of its tables.
    """

    __slots__ = ('side', '_levels', 'skipped')

    def __init__(self, side: str):
        self.side = side
        self._levels: Dict[Decimal, Decimal] = {}
        self.skipped = 0

    def upsert(self, price: DecimalLike, quantity: DecimalLike) -> bool:
        """
        Insert, overwrite or delete one level.

        A zero quantity removes the price (no-op when absent). Malformed
        prices or quantities are logged and skipped.

        Returns True if the entry was applied.
        """
        try:
            price_value = parse_decimal(price, "price")
            qty_value = parse_decimal(quantity, "quantity")
            if qty_value < 0:
                raise NumericParseError(f"Negative quantity {quantity!r}")
        except NumericParseError as e:
            self.skipped += 1
            logger.warning(f"Skipping {self.side} level: {e}")
            return False

        if qty_value == 0:
            self._levels.pop(price_value, None)
        else:
            self._levels[price_value] = qty_value
        return True

    def top_n(self, n: int, descending: bool) -> List[PriceLevel]:
        """Up to n levels ordered by numeric price (descending for bids)"""
        if n <= 0 or not self._levels:
            return []

        select = heapq.nlargest if descending else heapq.nsmallest
        prices = select(n, self._levels)
        return [PriceLevel(price, self._levels[price]) for price in prices]

    def get(self, price: DecimalLike) -> Optional[Decimal]:
        return self._levels.get(parse_decimal(price, "price"))

    def items(self) -> List[Tuple[Decimal, Decimal]]:
        return list(self._levels.items())

    def clear(self) -> None:
        self._levels.clear()

    def __len__(self) -> int:
        return len(self._levels)

    def __contains__(self, price: object) -> bool:
        try:
            return parse_decimal(price, "price") in self._levels  # type: ignore[arg-type]
        except NumericParseError:
            return False


class OrderBookStore:
    """
    Bid and ask tables behind one lock.

    - apply() writes a whole delta in one critical section
    - snapshot() reads both sides in the same critical section discipline
    - reset() discards everything; called on every (re)connect since state
      from a dropped connection cannot be trusted across the gap
    """

    def __init__(self, symbol: str = ""):
        self.symbol = symbol

        self.bids = PriceLevelTable("bid")
        self.asks = PriceLevelTable("ask")

        self._lock = threading.RLock()
        self._last_event_time = 0

        self.stats = {
            'deltas_applied': 0,
            'entries_applied': 0,
            'resets': 0
        }

    def reset(self) -> None:
        """Clear both sides"""
        with self._lock:
            self.bids.clear()
            self.asks.clear()
            self._last_event_time = 0
            self.stats['resets'] += 1

        logger.info(f"Order book reset for {self.symbol or 'feed'}")

    def apply(self, delta) -> int:
        """
        Apply every bid and ask entry of a decoded delta.

        Returns the number of entries accepted; malformed entries are skipped
        by the tables.
        """
        with self._lock:
            applied = self._apply_side(self.bids, delta.bids)
            applied += self._apply_side(self.asks, delta.asks)

            if delta.symbol and not self.symbol:
                self.symbol = delta.symbol
            self._last_event_time = delta.event_time
            self.stats['deltas_applied'] += 1
            self.stats['entries_applied'] += applied

        return applied

    @staticmethod
    def _apply_side(table: PriceLevelTable, entries: Iterable[Tuple[str, str]]) -> int:
        applied = 0
        for price, quantity in entries:
            if table.upsert(price, quantity):
                applied += 1
        return applied

    def snapshot(self, n_bids: int = 5, n_asks: int = 5) -> BookSnapshot:
        """Top n_bids bids (highest first) and n_asks asks (lowest first)"""
        with self._lock:
            return BookSnapshot(
                symbol=self.symbol,
                bids=tuple(self.bids.top_n(n_bids, descending=True)),
                asks=tuple(self.asks.top_n(n_asks, descending=False)),
                event_time=self._last_event_time,
                taken_at=time.time()
            )

    def best_bid_ask(self) -> Tuple[Optional[Decimal], Optional[Decimal]]:
        """Best bid and ask prices"""
        snap = self.snapshot(1, 1)
        best_bid = snap.best_bid()
        best_ask = snap.best_ask()
        return (
            best_bid.price if best_bid else None,
            best_ask.price if best_ask else None
        )

    def get_statistics(self) -> Dict:
        """Level counts and apply counters"""
        with self._lock:
            return {
                **self.stats,
                'entries_skipped': self.bids.skipped + self.asks.skipped,
                'current_levels': {'bids': len(self.bids), 'asks': len(self.asks)},
                'last_event_time': self._last_event_time
            }
