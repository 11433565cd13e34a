"""Tests for pair validation and arbitrage sizing."""

import pytest

from flasharb.arbitrage import pair_info, plan_arbitrage, quote_profit
from flasharb.calculator import get_amount_in, get_amount_out
from flasharb.chain import UniswapV2Pair, address_key
from flasharb.exceptions import (
    InvalidPairConfiguration,
    NonStandardOrdering,
    NotProfitable,
    SamePairAddress,
)
from flasharb.registry import BaseAssetRegistry

ETHER = 10 ** 18
USDC = 10 ** 6


@pytest.fixture
def registry(usdc, weth):
    return BaseAssetRegistry([weth.address, usdc.address])


def test_same_pool_rejected(pool_high, registry) -> None:
    with pytest.raises(SamePairAddress):
        pair_info(pool_high, pool_high, registry)


def test_unsorted_pool_rejected(chain, pool_high, usdc, token, registry) -> None:
    high, low = sorted((usdc.address, token.address), key=address_key, reverse=True)
    unsorted = UniswapV2Pair(chain, high, low, label="unsorted", sort_tokens=False)
    with pytest.raises(NonStandardOrdering):
        pair_info(pool_high, unsorted, registry)


def test_different_pairs_rejected(make_pool, pool_high, usdc, aero, registry) -> None:
    other = make_pool(usdc, aero, 1000 * USDC, 1000 * ETHER, label="other")
    with pytest.raises(InvalidPairConfiguration) as excinfo:
        pair_info(pool_high, other, registry)
    assert not isinstance(excinfo.value, NonStandardOrdering)


def test_pair_without_base_token_rejected(pool_high, pool_low) -> None:
    with pytest.raises(InvalidPairConfiguration, match="no base token"):
        pair_info(pool_high, pool_low, BaseAssetRegistry())


def test_base_quote_split(pool_high, pool_low, usdc, token, registry) -> None:
    pair = pair_info(pool_high, pool_low, registry)
    assert pair.base_token == usdc.address
    assert pair.quote_token == token.address
    assert pair.base_token_smaller == (pool_high.token0() == usdc.address)


def test_token0_wins_when_both_are_base(make_pool, usdc, weth) -> None:
    pool_a = make_pool(weth, usdc, 10 * ETHER, 30_000 * USDC, label="a")
    pool_b = make_pool(weth, usdc, 10 * ETHER, 31_000 * USDC, label="b")
    pair = pair_info(pool_a, pool_b, BaseAssetRegistry([weth.address, usdc.address]))
    assert pair.base_token == pool_a.token0()
    assert pair.base_token_smaller


def test_plan_borrows_from_cheaper_pool(pool_high, pool_low, registry) -> None:
    plan = plan_arbitrage(pool_high, pool_low, registry)
    assert plan.info.lower_pool == pool_low.address
    assert plan.info.higher_pool == pool_high.address
    assert 13 * 10 ** 17 < plan.borrow_amount < 133 * 10 ** 16
    assert plan.profitable
    assert 100 * USDC < plan.expected_profit < 130 * USDC


def test_plan_is_independent_of_argument_order(pool_high, pool_low, registry) -> None:
    forward = plan_arbitrage(pool_high, pool_low, registry)
    backward = plan_arbitrage(pool_low, pool_high, registry)
    assert forward == backward


def test_plan_uses_each_pools_fee(make_pool, usdc, token, registry) -> None:
    cheap = make_pool(usdc, token, 90_000 * USDC, 50 * ETHER, fee=500, label="cheap")
    dear = make_pool(usdc, token, 100_000 * USDC, 50 * ETHER, fee=10000, label="dear")
    plan = plan_arbitrage(cheap, dear, registry)
    r = plan.reserves
    assert plan.debt_amount == get_amount_in(plan.borrow_amount, r.a1, r.b1, 500)
    assert plan.base_out == get_amount_out(plan.borrow_amount, r.b2, r.a2, 10000)


def test_fees_reduce_profit(make_pool, pool_high, pool_low, usdc, token, registry) -> None:
    """Same reserves and borrow amount: fee-free pools earn more."""
    free_high = make_pool(usdc, token, 100_000 * USDC, 50 * ETHER, fee=0, label="free-high")
    free_low = make_pool(usdc, token, 90_000 * USDC, 50 * ETHER, fee=0, label="free-low")

    with_fee = plan_arbitrage(pool_high, pool_low, registry)
    fee_free = plan_arbitrage(free_high, free_low, registry)

    assert fee_free.borrow_amount == with_fee.borrow_amount
    assert fee_free.expected_profit > with_fee.expected_profit > 0


def test_equal_prices_not_profitable(make_pool, usdc, token, registry) -> None:
    pool_a = make_pool(usdc, token, 100_000 * USDC, 50 * ETHER, label="a")
    pool_b = make_pool(usdc, token, 200_000 * USDC, 100 * ETHER, label="b")
    with pytest.raises(NotProfitable):
        plan_arbitrage(pool_a, pool_b, registry)


def test_quote_profit(pool_high, pool_low, usdc, registry) -> None:
    plan = plan_arbitrage(pool_high, pool_low, registry)
    assert quote_profit(pool_high, pool_low, registry) == (plan.expected_profit, usdc.address)


def test_quote_profit_without_opportunity(make_pool, usdc, token, registry) -> None:
    pool_a = make_pool(usdc, token, 100_000 * USDC, 50 * ETHER, label="a")
    pool_b = make_pool(usdc, token, 100_000 * USDC, 50 * ETHER, label="b")
    assert quote_profit(pool_a, pool_b, registry) == (0, usdc.address)


def test_quote_profit_still_validates(pool_high, pool_low) -> None:
    with pytest.raises(InvalidPairConfiguration):
        quote_profit(pool_high, pool_low, BaseAssetRegistry())
