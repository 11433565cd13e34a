"""Tests for the CallbackContext ABI codec."""

import pytest

from flasharb.codec import CallbackContext
from flasharb.exceptions import InvalidCallbackPayload


def _context(**overrides):
    values = dict(
        debt_pool="0x1111111111111111111111111111111111111111",
        target_pool="0x2222222222222222222222222222222222222222",
        debt_token_smaller=True,
        borrowed_token="0x3333333333333333333333333333333333333333",
        debt_token="0x4444444444444444444444444444444444444444",
        debt_amount=2_441_490_000,
        debt_token_out_amount=2_558_330_000,
    )
    values.update(overrides)
    return CallbackContext(**values)


def test_round_trip() -> None:
    context = _context()
    assert CallbackContext.decode(context.encode()) == context


def test_round_trip_keeps_extremes() -> None:
    context = _context(debt_token_smaller=False, debt_amount=0, debt_token_out_amount=2 ** 256 - 1)
    decoded = CallbackContext.decode(context.encode())
    assert decoded.debt_token_smaller is False
    assert decoded.debt_token_out_amount == 2 ** 256 - 1


def test_encoding_is_seven_words() -> None:
    assert len(_context().encode()) == 7 * 32


def test_malformed_payload() -> None:
    with pytest.raises(InvalidCallbackPayload):
        CallbackContext.decode(b"\x01\x02\x03")
