#!/usr/bin/env python3
"""
套利计算模块 - 恒定乘积池 (INTEGER ONLY)

⚡ Everything here is exact-integer arithmetic on raw token units:
1. Fixed-point price comparison of two pools
2. Swap output/input under a proportional input fee
3. Low-precision Newton square root
4. Closed-form optimal borrow amount (quadratic)

🛡️ Word-size checks:
Python integers never wrap, so every intermediate value is bounded explicitly
to the 256-bit range a contract would have. Leaving the range raises
ArithmeticOverflow instead of silently producing a number no contract
could have produced.

核心公式（从低价池 1 借出 x 个报价代币，在池 2 卖出）：
    profit(x) = a2*x/(b2+x) - a1*x/(b1-x)
    d/dx = 0  ->  (a1*b1 - a2*b2)x^2 + 2*b1*b2*(a1+a2)x + b1*b2*(a1*b2 - a2*b1) = 0
"""

from dataclasses import dataclass
from typing import Tuple

from .exceptions import (
    ArithmeticOverflow,
    DomainError,
    InsufficientInput,
    InsufficientLiquidity,
    InsufficientOutput,
    InvalidReserves,
    NoPositiveSolution,
    NoRealSolution,
)

# ============================================
# Pre-computed Constants
# ============================================

UINT112_MAX = 2 ** 112 - 1
UINT256_MAX = 2 ** 256 - 1
INT256_MAX = 2 ** 255 - 1
INT256_MIN = -(2 ** 255)

# Fee in pips (same unit as the V3 fee tiers)
FEE_DENOMINATOR = 1_000_000
DEFAULT_FEE = 3000  # 0.3% == multiply input by 997/1000
FEE_NAMES = {0: "0%", 100: "0.01%", 500: "0.05%", 2500: "0.25%", 3000: "0.3%", 10000: "1%"}

# Fixed-point price precision (decimal digits)
PRICE_PRECISION = 18

# Square root: scale by 10^6, iterate to an absolute tolerance, descale by 10^3
SQRT_SCALE = 10 ** 6
SQRT_DESCALE = 10 ** 3
SQRT_TOLERANCE = 1000

# Reserves are divided down to this many significant digits before the
# quadratic coefficients are formed
SOLVER_SIGNIFICANT_DIGITS = 5


# ============================================
# Data Structures
# ============================================

@dataclass(frozen=True)
class OrderedReserves:
    """
    Reserves of two pools, re-expressed around the price difference.

    (a1, b1): base/quote reserves of the lower-price pool
    (a2, b2): base/quote reserves of the higher-price pool
    """
    a1: int
    b1: int
    a2: int
    b2: int


@dataclass(frozen=True)
class PriceOrder:
    """Result of comparing two pools by price"""
    pool0_is_lower: bool
    prices_equal: bool
    price0: int                # base per quote, fixed point
    price1: int
    reserves: OrderedReserves


# ============================================
# Checked word arithmetic
# ============================================

def _u256(value: int) -> int:
    if value < 0 or value > UINT256_MAX:
        raise ArithmeticOverflow(f"value out of uint256 range: {value}")
    return value


def _i256(value: int) -> int:
    if value < INT256_MIN or value > INT256_MAX:
        raise ArithmeticOverflow(f"value out of int256 range: {value}")
    return value


def _mul_i256(*factors: int) -> int:
    """Signed product, bounds-checked after every step."""
    result = 1
    for factor in factors:
        result = _i256(result * factor)
    return result


def _div_trunc(numerator: int, denominator: int) -> int:
    """Signed division truncating toward zero."""
    quotient = abs(numerator) // abs(denominator)
    if (numerator < 0) != (denominator < 0):
        return -quotient
    return quotient


def _check_fee(fee: int) -> None:
    if fee < 0 or fee >= FEE_DENOMINATOR:
        raise DomainError(f"fee must be in [0, {FEE_DENOMINATOR}) pips, got {fee}")


# ============================================
# Fixed-Point Price Comparator
# ============================================

def fixed_point_ratio(numerator: int, denominator: int, precision: int = PRICE_PRECISION) -> int:
    """numerator / denominator with `precision` decimal digits."""
    if denominator == 0:
        raise InvalidReserves("division by zero reserve")
    return _u256(numerator * 10 ** precision) // denominator


def order_reserves(
    pool0_reserves: Tuple[int, int],
    pool1_reserves: Tuple[int, int],
    base_token_smaller: bool,
    precision: int = PRICE_PRECISION
) -> PriceOrder:
    """
    Order two pools of the same pair by price.

    The price of a pool is the price of its quote token denominated in the
    base token (base reserve / quote reserve). The strictly cheaper pool
    becomes (a1, b1). On a tie pool1 is reported as the lower one and
    `prices_equal` is set; deciding what a tie means is left to the caller.

    Args:
        pool0_reserves: (reserve0, reserve1) of pool0
        pool1_reserves: (reserve0, reserve1) of pool1
        base_token_smaller: base token is token0 of both pools

    Returns:
        PriceOrder
    """
    if 0 in pool0_reserves or 0 in pool1_reserves:
        raise InvalidReserves(f"empty reserves: {pool0_reserves}, {pool1_reserves}")

    if base_token_smaller:
        base0, quote0 = pool0_reserves
        base1, quote1 = pool1_reserves
    else:
        quote0, base0 = pool0_reserves
        quote1, base1 = pool1_reserves

    price0 = fixed_point_ratio(base0, quote0, precision)
    price1 = fixed_point_ratio(base1, quote1, precision)

    if price0 < price1:
        reserves = OrderedReserves(a1=base0, b1=quote0, a2=base1, b2=quote1)
    else:
        reserves = OrderedReserves(a1=base1, b1=quote1, a2=base0, b2=quote0)

    return PriceOrder(
        pool0_is_lower=price0 < price1,
        prices_equal=price0 == price1,
        price0=price0,
        price1=price1,
        reserves=reserves
    )


# ============================================
# Constant-Product Swap Calculator
# ============================================

def get_amount_out(
    amount_in: int,
    reserve_in: int,
    reserve_out: int,
    fee: int = DEFAULT_FEE
) -> int:
    """
    Output amount for an exact input (fee taken from the input side).

    amountOut = amountIn*f*reserveOut / (reserveIn*D + amountIn*f), f = D - fee
    """
    if amount_in <= 0:
        raise InsufficientInput("insufficient input amount")
    if reserve_in <= 0 or reserve_out <= 0:
        raise InsufficientLiquidity("insufficient liquidity")
    _check_fee(fee)

    amount_in_with_fee = _u256(amount_in * (FEE_DENOMINATOR - fee))
    numerator = _u256(amount_in_with_fee * reserve_out)
    denominator = _u256(_u256(reserve_in * FEE_DENOMINATOR) + amount_in_with_fee)
    return numerator // denominator


def get_amount_in(
    amount_out: int,
    reserve_in: int,
    reserve_out: int,
    fee: int = DEFAULT_FEE
) -> int:
    """
    Input amount required for an exact output.

    The trailing +1 rounds in the pool's favour so the constant product
    never decreases.
    """
    if amount_out <= 0:
        raise InsufficientOutput("insufficient output amount")
    if reserve_in <= 0 or reserve_out <= 0 or amount_out >= reserve_out:
        raise InsufficientLiquidity("insufficient liquidity")
    _check_fee(fee)

    numerator = _u256(_u256(reserve_in * amount_out) * FEE_DENOMINATOR)
    denominator = _u256((reserve_out - amount_out) * (FEE_DENOMINATOR - fee))
    return numerator // denominator + 1


# ============================================
# Integer Square Root (low precision)
# ============================================

def sqrt(n: int, tolerance: int = SQRT_TOLERANCE) -> int:
    """
    Newton square root seeded at the scaled input.

    Deliberately approximate: the input is scaled by 10^6, iterated until two
    successive estimates differ by less than `tolerance` (scaled units) and
    descaled by 10^3. Undefined for n <= 1.
    """
    if n <= 1:
        raise DomainError(f"sqrt requires n > 1, got {n}")

    scaled = _u256(n * SQRT_SCALE)
    res = scaled
    while True:
        xi = (res + scaled // res) // 2
        if res - xi < tolerance:
            break
        res = xi
    return res // SQRT_DESCALE


# ============================================
# Optimal Borrow-Size Solver
# ============================================

def calc_solution_for_quadratic(
    a: int,
    b: int,
    c: int,
    tolerance: int = SQRT_TOLERANCE
) -> Tuple[int, int]:
    """
    Roots of a*x^2 + b*x + c = 0, truncated toward zero.

    A zero `a` collapses to the linear root -c/b, returned twice.
    """
    m = _i256(_mul_i256(b, b) - _mul_i256(4, a, c))
    if m <= 0:
        raise NoRealSolution("complex number")

    if a == 0:
        x = _div_trunc(-c, b)
        return x, x

    sqrt_m = 1 if m == 1 else sqrt(m, tolerance)
    two_a = _mul_i256(2, a)
    x1 = _div_trunc(-b + sqrt_m, two_a)
    x2 = _div_trunc(-b - sqrt_m, two_a)
    return x1, x2


def scale_divisor(reserves: OrderedReserves) -> int:
    """Power of ten that leaves the smallest reserve with ~5 significant digits."""
    smallest = min(reserves.a1, reserves.b1, reserves.a2, reserves.b2)
    digits = len(str(smallest))
    return 10 ** max(0, digits - SOLVER_SIGNIFICANT_DIGITS)


def calc_borrow_amount(reserves: OrderedReserves, tolerance: int = SQRT_TOLERANCE) -> int:
    """
    Profit-maximising amount of quote token to borrow from the cheaper pool.

    The reserves are divided by a power of ten first, so the coefficients
    stay inside int256 for 18-decimal tokens; the root is multiplied back.
    The fee is not part of the derivation, the caller re-checks profit with
    the fee-aware swap functions.

    Args:
        reserves: OrderedReserves (cheaper pool first)
        tolerance: square-root tolerance

    Returns:
        Borrow amount in raw quote-token units
    """
    d = scale_divisor(reserves)
    a1 = reserves.a1 // d
    b1 = reserves.b1 // d
    a2 = reserves.a2 // d
    b2 = reserves.b2 // d

    a = _i256(_mul_i256(a1, b1) - _mul_i256(a2, b2))
    b = _mul_i256(2, b1, b2, a1 + a2)
    c = _mul_i256(b1, b2, _i256(_mul_i256(a1, b2) - _mul_i256(a2, b1)))

    x1, x2 = calc_solution_for_quadratic(a, b, c, tolerance)

    # 0 < x < b1 and x < b2
    for x in (x1, x2):
        if 0 < x < b1 and x < b2:
            return x * d
    raise NoPositiveSolution(f"no root inside reserves (x1={x1}, x2={x2})")
