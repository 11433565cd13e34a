#!/usr/bin/env python3
"""
Flash-swap arbitrageur

The on-chain half of the system: borrows quote token from the cheaper pool
with a flash swap, sells it on the pricier pool inside the swap callback,
repays the loan in base token and keeps the difference.

States:
    IDLE -> VALIDATING -> SIZING -> BORROWING -> AWAITING_CALLBACK -> SETTLING -> IDLE
    any failure                                                               -> REVERTED

Every entry point is expected to run inside `Chain.transact`, which undoes
all balance and reserve changes of a failed attempt.
"""

import logging
from enum import Enum
from typing import List, Optional, Tuple

from web3 import Web3

from .arbitrage import ArbitragePlan, pair_info, quote_profit, size_arbitrage
from .calculator import PRICE_PRECISION, SQRT_TOLERANCE
from .chain import Chain, Contract, ERC20Token, make_address
from .codec import CallbackContext
from .exceptions import (
    ConfigValidationError,
    FlashArbError,
    ForeignOrigin,
    InvalidPairConfiguration,
    LosingMoney,
    NotProfitable,
)
from .guard import CallbackGuard
from .registry import BaseAssetRegistry

logger = logging.getLogger(__name__)

# what a pool handle must expose
PAIR_INTERFACE = ("token0", "token1", "get_reserves", "swap")


class AttemptState(Enum):
    """Arbitrage attempt state"""
    IDLE = "idle"
    VALIDATING = "validating"
    SIZING = "sizing"
    BORROWING = "borrowing"
    AWAITING_CALLBACK = "awaiting_callback"
    SETTLING = "settling"
    REVERTED = "reverted"


class FlashArbitrageur(Contract):
    """
    Two-pool flash-swap arbitrage contract

    Usage:
        >>> bot = FlashArbitrageur(chain, wnative=weth.address, base_tokens=[weth.address])
        >>> profit = chain.transact(operator, bot.flash_arbitrage, pool_a.address, pool_b.address)
    """

    def __init__(
        self,
        chain: Chain,
        wnative: str,
        base_tokens: Optional[List[str]] = None,
        address: Optional[str] = None,
        price_precision: int = PRICE_PRECISION,
        sqrt_tolerance: int = SQRT_TOLERANCE
    ) -> None:
        self.wnative = Web3.to_checksum_address(wnative)
        deployed = chain.find_contract(self.wnative)
        if deployed is not None and not hasattr(deployed, "withdraw"):
            raise ConfigValidationError(f"wnative {self.wnative} is not a wrapped native token")
        super().__init__(chain, address or make_address("flasharb:arbitrageur"))
        self.registry = BaseAssetRegistry(base_tokens)
        self.price_precision = price_precision
        self.sqrt_tolerance = sqrt_tolerance
        self.state = AttemptState.IDLE
        self._guard = CallbackGuard()

    # ============================================
    # Base tokens
    # ============================================

    def add_base_token(self, token: str) -> None:
        self.registry.add(token)

    def remove_base_token(self, token: str) -> None:
        self.registry.remove(token)

    def base_tokens(self) -> List[str]:
        return self.registry.tokens()

    def is_base_token(self, token: str) -> bool:
        return self.registry.contains(token)

    # ============================================
    # Views
    # ============================================

    @property
    def guard(self) -> CallbackGuard:
        return self._guard

    def get_profit(self, pool0: str, pool1: str) -> Tuple[int, str]:
        """Expected (profit, base_token) of flash_arbitrage(pool0, pool1) right now."""
        return quote_profit(
            self._pool(pool0),
            self._pool(pool1),
            self.registry,
            self.price_precision,
            self.sqrt_tolerance
        )

    # ============================================
    # Entry point
    # ============================================

    def flash_arbitrage(self, pool0: str, pool1: str) -> int:
        """
        Arbitrage two pools of the same pair.

        Args:
            pool0: address of one pool
            pool1: address of the other pool

        Returns:
            Profit in base-token units (already unwrapped to native currency
            when the base token is the wrapped native token)
        """
        try:
            profit = self._run_attempt(pool0, pool1)
        except FlashArbError as e:
            self._set_state(AttemptState.REVERTED)
            logger.warning(f"Arbitrage {pool0} / {pool1} failed: {type(e).__name__}: {e}")
            raise
        except BaseException:
            self._set_state(AttemptState.REVERTED)
            raise
        self._set_state(AttemptState.IDLE)
        logger.info(f"Arbitrage {pool0} / {pool1} succeeded, profit {profit}")
        return profit

    def _run_attempt(self, pool0: str, pool1: str) -> int:
        self._set_state(AttemptState.VALIDATING)
        pair0 = self._pool(pool0)
        pair1 = self._pool(pool1)
        pair = pair_info(pair0, pair1, self.registry)

        self._set_state(AttemptState.SIZING)
        plan = size_arbitrage(pair0, pair1, pair, self.price_precision, self.sqrt_tolerance)
        if not plan.profitable:
            raise NotProfitable(
                f"arbitrage fail, no profit (out={plan.base_out}, debt={plan.debt_amount})"
            )

        return self._borrow(plan)

    def _borrow(self, plan: ArbitragePlan) -> int:
        info = plan.info
        base = self._token(info.base_token)
        balance_before = base.balance_of(self.address)

        self._set_state(AttemptState.BORROWING)
        amount0_out, amount1_out = (
            (0, plan.borrow_amount) if info.base_token_smaller else (plan.borrow_amount, 0)
        )
        context = CallbackContext(
            debt_pool=info.lower_pool,
            target_pool=info.higher_pool,
            debt_token_smaller=info.base_token_smaller,
            borrowed_token=info.quote_token,
            debt_token=info.base_token,
            debt_amount=plan.debt_amount,
            debt_token_out_amount=plan.base_out,
        )
        lower = self.chain.contract_at(info.lower_pool)

        with self._guard.armed(info.lower_pool):
            self._set_state(AttemptState.AWAITING_CALLBACK)
            self.chain.call(
                self.address, lower.swap,
                amount0_out, amount1_out, self.address, context.encode()
            )

            balance_after = base.balance_of(self.address)
            if balance_after <= balance_before:
                raise LosingMoney(f"losing money ({balance_before} -> {balance_after})")

            if info.base_token == self.wnative:
                self.chain.call(self.address, base.withdraw, balance_after)

        return balance_after - balance_before

    # ============================================
    # Flash-swap callback
    # ============================================

    def settlement_callback(self, sender: str, amount0: int, amount1: int, data: bytes) -> None:
        """
        Second leg, called by the lower-price pool from inside its swap().

        Args:
            sender: account that initiated the swap, must be this contract
            amount0: token0 sent to us
            amount1: token1 sent to us
            data: encoded CallbackContext
        """
        self._guard.check(self.chain.msg_sender)
        if Web3.to_checksum_address(sender) != self.address:
            raise ForeignOrigin(f"flash swap initiated by {sender}")

        self._set_state(AttemptState.SETTLING)
        context = CallbackContext.decode(data)
        borrowed_amount = amount0 if amount0 > 0 else amount1

        # sell borrowed quote token on the higher price pool
        borrowed = self._token(context.borrowed_token)
        self.chain.call(self.address, borrowed.transfer, context.target_pool, borrowed_amount)

        amount0_out, amount1_out = (
            (context.debt_token_out_amount, 0)
            if context.debt_token_smaller
            else (0, context.debt_token_out_amount)
        )
        target = self.chain.contract_at(context.target_pool)
        self.chain.call(self.address, target.swap, amount0_out, amount1_out, self.address, b"")

        # repay the lower price pool
        debt = self._token(context.debt_token)
        self.chain.call(self.address, debt.transfer, context.debt_pool, context.debt_amount)

    def receive(self, amount: int) -> None:
        """Native currency sent to the contract (e.g. from unwrapping)."""
        logger.debug(f"Received {amount} native from {self.chain.msg_sender}")

    # ============================================
    # Helpers
    # ============================================

    def _pool(self, address: str) -> Contract:
        """Resolve a caller-supplied pool handle."""
        try:
            pool = self.chain.find_contract(address)
        except ValueError:
            raise InvalidPairConfiguration(f"malformed pool address: {address!r}") from None
        if pool is None:
            raise InvalidPairConfiguration(f"no pool at {address}")
        if not all(callable(getattr(pool, name, None)) for name in PAIR_INTERFACE):
            raise InvalidPairConfiguration(f"{address} is not a pair")
        return pool

    def _token(self, address: str) -> ERC20Token:
        return self.chain.contract_at(address)

    def _set_state(self, state: AttemptState) -> None:
        if state is not self.state:
            logger.debug(f"State {self.state.value} -> {state.value}")
        self.state = state
