#!/usr/bin/env python3
"""
双池套利规划（只读）

Pools are duck-typed: anything with `address`, `fee`, `token0()`,
`token1()` and `get_reserves()` works, so the same planner runs against the
in-memory chain and against live pairs read through web3.

Path:
1. 从低价池闪电借出报价代币
2. 在高价池卖出，换回基础代币
3. 用基础代币偿还低价池
4. 利润 = 收到的基础代币 - 应还的基础代币
"""

import logging
from dataclasses import dataclass
from typing import Any, Tuple

from web3 import Web3

from .calculator import (
    PRICE_PRECISION,
    SQRT_TOLERANCE,
    OrderedReserves,
    calc_borrow_amount,
    get_amount_in,
    get_amount_out,
    order_reserves,
)
from .chain import address_key
from .exceptions import (
    EconomicError,
    InvalidPairConfiguration,
    NonStandardOrdering,
    NotProfitable,
    SamePairAddress,
)
from .registry import BaseAssetRegistry

logger = logging.getLogger(__name__)


# ============================================
# Data Structures
# ============================================

@dataclass(frozen=True)
class TokenPair:
    """Base/quote split of a validated pair"""
    base_token_smaller: bool
    base_token: str
    quote_token: str


@dataclass(frozen=True)
class ArbitrageInfo:
    base_token: str
    quote_token: str
    base_token_smaller: bool
    lower_pool: str
    higher_pool: str


@dataclass(frozen=True)
class ArbitragePlan:
    """Sized opportunity, computed from current reserves"""
    info: ArbitrageInfo
    reserves: OrderedReserves
    borrow_amount: int       # quote token, borrowed from lower_pool
    debt_amount: int         # base token owed to lower_pool
    base_out: int            # base token received from higher_pool

    @property
    def expected_profit(self) -> int:
        return self.base_out - self.debt_amount

    @property
    def profitable(self) -> bool:
        return self.base_out > self.debt_amount


# ============================================
# Validating
# ============================================

def pair_info(pool0: Any, pool1: Any, registry: BaseAssetRegistry) -> TokenPair:
    """
    检查两个池能否套利，并把交易对拆分为基础/报价代币

    两个代币都是基础资产时，以 token0 为基础代币。

    异常:
        SamePairAddress: 两个地址指向同一个池
        NonStandardOrdering: 池未满足 token0 < token1
        InvalidPairConfiguration: 交易对不同，或没有基础代币
    """
    if Web3.to_checksum_address(pool0.address) == Web3.to_checksum_address(pool1.address):
        raise SamePairAddress("same pair address")

    pool0_token0, pool0_token1 = pool0.token0(), pool0.token1()
    pool1_token0, pool1_token1 = pool1.token0(), pool1.token1()

    if not (address_key(pool0_token0) < address_key(pool0_token1)
            and address_key(pool1_token0) < address_key(pool1_token1)):
        raise NonStandardOrdering("non standard uniswap AMM pair")

    if (address_key(pool0_token0), address_key(pool0_token1)) != \
            (address_key(pool1_token0), address_key(pool1_token1)):
        raise InvalidPairConfiguration("pools do not share the same token pair")

    if registry.contains(pool0_token0):
        return TokenPair(True, Web3.to_checksum_address(pool0_token0), Web3.to_checksum_address(pool0_token1))
    if registry.contains(pool0_token1):
        return TokenPair(False, Web3.to_checksum_address(pool0_token1), Web3.to_checksum_address(pool0_token0))
    raise InvalidPairConfiguration("no base token in pair")


# ============================================
# Sizing
# ============================================

def size_arbitrage(
    pool0: Any,
    pool1: Any,
    pair: TokenPair,
    precision: int = PRICE_PRECISION,
    tolerance: int = SQRT_TOLERANCE
) -> ArbitragePlan:
    """
    Order the pools by price and size the trade from current reserves.

    Each leg is priced with its own pool's fee; the borrow amount itself is
    fee-agnostic.

    Raises:
        NotProfitable: both pools quote the same price
        NoRealSolution / NoPositiveSolution: from the solver
    """
    pool0_reserve0, pool0_reserve1, _ = pool0.get_reserves()
    pool1_reserve0, pool1_reserve1, _ = pool1.get_reserves()

    order = order_reserves(
        (pool0_reserve0, pool0_reserve1),
        (pool1_reserve0, pool1_reserve1),
        pair.base_token_smaller,
        precision
    )
    if order.prices_equal:
        raise NotProfitable(f"pool prices are equal ({order.price0})")

    lower, higher = (pool0, pool1) if order.pool0_is_lower else (pool1, pool0)
    info = ArbitrageInfo(
        base_token=pair.base_token,
        quote_token=pair.quote_token,
        base_token_smaller=pair.base_token_smaller,
        lower_pool=Web3.to_checksum_address(lower.address),
        higher_pool=Web3.to_checksum_address(higher.address),
    )

    r = order.reserves
    borrow_amount = calc_borrow_amount(r, tolerance)
    # quote borrowed on the lower pool, owed back in base
    debt_amount = get_amount_in(borrow_amount, r.a1, r.b1, lower.fee)
    # quote sold on the higher pool for base
    base_out = get_amount_out(borrow_amount, r.b2, r.a2, higher.fee)

    return ArbitragePlan(
        info=info,
        reserves=r,
        borrow_amount=borrow_amount,
        debt_amount=debt_amount,
        base_out=base_out,
    )


def plan_arbitrage(
    pool0: Any,
    pool1: Any,
    registry: BaseAssetRegistry,
    precision: int = PRICE_PRECISION,
    tolerance: int = SQRT_TOLERANCE
) -> ArbitragePlan:
    """Validate and size in one call."""
    pair = pair_info(pool0, pool1, registry)
    return size_arbitrage(pool0, pool1, pair, precision, tolerance)


def quote_profit(
    pool0: Any,
    pool1: Any,
    registry: BaseAssetRegistry,
    precision: int = PRICE_PRECISION,
    tolerance: int = SQRT_TOLERANCE
) -> Tuple[int, str]:
    """
    按当前储备计算两个池的预期套利利润

    返回:
        (profit, base_token)，没有机会时 profit 为 0。
        配置错误和算术错误仍会抛出。
    """
    pair = pair_info(pool0, pool1, registry)
    try:
        plan = size_arbitrage(pool0, pool1, pair, precision, tolerance)
    except EconomicError as e:
        logger.debug(f"No opportunity between {pool0.address} and {pool1.address}: {e}")
        return 0, pair.base_token
    return max(plan.expected_profit, 0), pair.base_token
