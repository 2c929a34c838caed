"""Tests for the top-of-book report."""

from decimal import Decimal

from bookticker.data_ingestion.depth_decoder import DepthDelta
from bookticker.data_ingestion.order_book import OrderBookStore, PriceLevel
from bookticker.reporting.top_levels import TopLevelsReporter, format_level, render_report


def _store_with_levels() -> OrderBookStore:
    store = OrderBookStore("BTCUSDT")
    store.apply(DepthDelta(
        "depthUpdate", 1, "BTCUSDT",
        bids=tuple((str(p), "1.5") for p in (100, 99, 98, 97, 96, 95)),
        asks=(("101", "2.0"), ("101.5", "0.00100000"), ("9.5", "3"))
    ))
    return store


def test_format_level_uses_eight_decimals():
    assert format_level(PriceLevel(Decimal("100"), Decimal("1.5"))) == "100.00000000: 1.5"
    assert format_level(PriceLevel(Decimal("0.123456789"), Decimal("1E-8"))) == "0.12345679: 0.00000001"


def test_render_report_layout():
    text = render_report(_store_with_levels().snapshot(5, 5), title="Top 5")
    lines = text.split("\n")

    assert lines[:5] == [
        "",
        "Top 5",
        "+------------------------+",
        "|          ASKS          |",
        "+------------------------+",
    ]
    assert lines[5:8] == [
        "| 9.50000000: 3",
        "| 101.00000000: 2.0",
        "| 101.50000000: 0.00100000",
    ]
    assert lines[8:11] == [
        "+------------------------+",
        "|          BIDS          |",
        "+------------------------+",
    ]
    assert lines[11:16] == [f"| {p}.00000000: 1.5" for p in (100, 99, 98, 97, 96)]
    assert lines[16:] == ["+------------------------+"]


def test_render_empty_book():
    text = render_report(OrderBookStore().snapshot())
    assert "ASKS" in text and "BIDS" in text
    assert ": " not in text


def test_reporter_writes_after_each_delta():
    store = _store_with_levels()
    output = []
    reporter = TopLevelsReporter(store, levels=2, sink=output.append)

    reporter.on_delta(None)
    reporter.on_delta(None)

    assert reporter.reports == 2
    assert "Latest BTCUSDT book (Top 2)" in output[0]
    assert "| 100.00000000: 1.5" in output[0]
    assert "| 98.00000000: 1.5" not in output[0]


def test_reporter_throttles_with_min_interval():
    now = [0.0]
    output = []
    reporter = TopLevelsReporter(
        _store_with_levels(), sink=output.append, min_interval=1.0, clock=lambda: now[0]
    )

    reporter.on_delta(None)
    now[0] = 0.5
    reporter.on_delta(None)
    now[0] = 1.2
    reporter.on_delta(None)

    assert len(output) == 2
