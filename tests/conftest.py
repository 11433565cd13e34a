"""Shared fixtures: an in-memory chain with USDC/TOKEN and WETH/AERO pools."""

import pytest

from flasharb.arbitrageur import FlashArbitrageur
from flasharb.chain import Chain, ERC20Token, UniswapV2Pair, WrappedNative, make_address

USDC = 10 ** 6
ETHER = 10 ** 18


@pytest.fixture
def chain():
    return Chain(timestamp=1_700_000_000)


@pytest.fixture
def operator():
    return make_address("test:operator")


@pytest.fixture
def weth(chain):
    return WrappedNative(chain)


@pytest.fixture
def usdc(chain):
    return ERC20Token(chain, "USDC", 6)


@pytest.fixture
def token(chain):
    return ERC20Token(chain, "TOKEN", 18)


@pytest.fixture
def aero(chain):
    return ERC20Token(chain, "AERO", 18)


@pytest.fixture
def make_pool(chain):
    """Factory: pool seeded with `base_amount` of base and `quote_amount` of quote."""

    def _make(base, quote, base_amount, quote_amount, fee=3000, label="pool"):
        pool = UniswapV2Pair(chain, base.address, quote.address, fee=fee, label=label)
        if pool.token0() == base.address:
            pool.seed(base_amount, quote_amount)
        else:
            pool.seed(quote_amount, base_amount)
        return pool

    return _make


@pytest.fixture
def pool_high(make_pool, usdc, token):
    """TOKEN is expensive here: 100000 USDC / 50 TOKEN"""
    return make_pool(usdc, token, 100_000 * USDC, 50 * ETHER, label="high")


@pytest.fixture
def pool_low(make_pool, usdc, token):
    """TOKEN is cheap here: 90000 USDC / 50 TOKEN"""
    return make_pool(usdc, token, 90_000 * USDC, 50 * ETHER, label="low")


@pytest.fixture
def arbitrageur(chain, weth, usdc):
    return FlashArbitrageur(chain, wnative=weth.address, base_tokens=[weth.address, usdc.address])
