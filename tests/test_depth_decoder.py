"""Tests for depth message decoding."""

import json

import pytest

from bookticker.data_ingestion.depth_decoder import DepthDelta, decode_depth_message
from bookticker.data_ingestion.errors import DecodeError


def _message(**overrides) -> dict:
    message = {
        "e": "depthUpdate",
        "E": 1700000000123,
        "s": "BTCUSDT",
        "b": [["100.00000000", "1.5"], ["99.00000000", "0.00000000"]],
        "a": [["101.00000000", "2.0"]],
    }
    message.update(overrides)
    return message


class TestDecodeDepthMessage:
    def test_valid_message(self):
        delta = decode_depth_message(json.dumps(_message()))

        assert delta == DepthDelta(
            event_type="depthUpdate",
            event_time=1700000000123,
            symbol="BTCUSDT",
            bids=(("100.00000000", "1.5"), ("99.00000000", "0.00000000")),
            asks=(("101.00000000", "2.0"),),
        )

    def test_accepts_bytes(self):
        delta = decode_depth_message(json.dumps(_message()).encode())
        assert delta.symbol == "BTCUSDT"

    def test_missing_bids_is_empty_side(self):
        message = _message()
        del message["b"]
        delta = decode_depth_message(json.dumps(message))

        assert delta.bids == ()
        assert delta.asks == (("101.00000000", "2.0"),)

    def test_missing_sides_and_metadata_default(self):
        delta = decode_depth_message("{}")
        assert delta == DepthDelta()
        assert delta.is_empty()

    def test_null_side_is_empty(self):
        delta = decode_depth_message(json.dumps(_message(a=None)))
        assert delta.asks == ()

    @pytest.mark.parametrize("raw", [
        "not valid json {",
        b"\x80\x81{}",
        "",
    ])
    def test_invalid_json(self, raw):
        with pytest.raises(DecodeError):
            decode_depth_message(raw)

    @pytest.mark.parametrize("raw", ["[]", "42", '"depthUpdate"', "null"])
    def test_non_object_envelope(self, raw):
        with pytest.raises(DecodeError, match="JSON object"):
            decode_depth_message(raw)

    @pytest.mark.parametrize("overrides", [
        {"b": "100.0"},
        {"a": {"101.0": "1"}},
        {"b": [["100.0"]]},
        {"b": [["100.0", "1.0", "extra"]]},
        {"a": [[101.0, "1.0"]]},
        {"a": ["101.0", "1.0"]},
        {"E": "1700000000123"},
        {"E": True},
        {"e": 5},
        {"s": ["BTCUSDT"]},
    ])
    def test_malformed_structure(self, overrides):
        with pytest.raises(DecodeError):
            decode_depth_message(json.dumps(_message(**overrides)))
