"""
FlashArb-Pair host environment

In-memory stand-in for the chain the arbitrageur runs on:
- per-contract storage and native balances
- a call stack that provides msg.sender
- all-or-nothing transactions (snapshot, run, restore on any exception)
- ERC20 / wrapped-native tokens and Uniswap V2 style pairs

The arbitrage core relies on the host for atomicity: it never undoes its own
transfers, a failed unit is rolled back here.
"""

import copy
import logging
import threading
import time
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from web3 import Web3

from .calculator import DEFAULT_FEE, FEE_DENOMINATOR, UINT112_MAX
from .exceptions import (
    ArithmeticOverflow,
    InsufficientInput,
    InsufficientLiquidity,
    InsufficientOutput,
    TransferFailed,
)

logger = logging.getLogger(__name__)


def make_address(label: str) -> str:
    """Deterministic checksummed address for a label (last 20 bytes of keccak)."""
    digest = bytes(Web3.keccak(text=label))
    return Web3.to_checksum_address("0x" + digest[-20:].hex())


def address_key(address: str) -> int:
    """Canonical token ordering: numeric value of the address."""
    return int(address, 16)


# ============================================
# Chain
# ============================================

class Chain:
    """
    Serialized, atomic execution host.

    Usage:
        >>> chain = Chain()
        >>> profit = chain.transact(operator, arbitrageur.flash_arbitrage, pool_a, pool_b)
    """

    def __init__(self, timestamp: Optional[int] = None) -> None:
        self._storage: Dict[str, Dict[str, Any]] = {}
        self._native: Dict[str, int] = {}
        self._contracts: Dict[str, "Contract"] = {}
        self._call_stack: List[str] = []
        self._lock = threading.RLock()
        self.timestamp = timestamp if timestamp is not None else int(time.time())

    # ---------- contracts ----------

    def deploy(self, contract: "Contract") -> None:
        if contract.address in self._contracts:
            raise ValueError(f"address already in use: {contract.address}")
        self._contracts[contract.address] = contract
        self._storage.setdefault(contract.address, {})

    def contract_at(self, address: str) -> "Contract":
        address = Web3.to_checksum_address(address)
        try:
            return self._contracts[address]
        except KeyError:
            raise ValueError(f"no contract at {address}") from None

    def find_contract(self, address: str) -> Optional["Contract"]:
        return self._contracts.get(Web3.to_checksum_address(address))

    def storage(self, address: str) -> Dict[str, Any]:
        return self._storage.setdefault(address, {})

    # ---------- native currency ----------

    def native_balance(self, address: str) -> int:
        return self._native.get(Web3.to_checksum_address(address), 0)

    def credit_native(self, address: str, amount: int) -> None:
        address = Web3.to_checksum_address(address)
        self._native[address] = self._native.get(address, 0) + amount

    def debit_native(self, address: str, amount: int) -> None:
        address = Web3.to_checksum_address(address)
        balance = self._native.get(address, 0)
        if amount > balance:
            raise TransferFailed(f"native balance {balance} < {amount} for {address}")
        self._native[address] = balance - amount

    # ---------- execution ----------

    @property
    def msg_sender(self) -> str:
        if not self._call_stack:
            raise RuntimeError("no call in progress")
        return self._call_stack[-1]

    def call(self, caller: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Invoke `fn` with `caller` as msg.sender."""
        self._call_stack.append(Web3.to_checksum_address(caller))
        try:
            return fn(*args, **kwargs)
        finally:
            self._call_stack.pop()

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Run the block as one unit: any exception restores the pre-block state."""
        with self._lock:
            snapshot = copy.deepcopy((self._storage, self._native))
            try:
                yield
            except BaseException:
                self._storage, self._native = snapshot
                logger.debug("Transaction reverted, state restored")
                raise

    def transact(self, sender: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Top-level transaction from an external account."""
        with self.atomic():
            return self.call(sender, fn, *args, **kwargs)


class Contract:
    """Base class for anything deployed on a Chain."""

    def __init__(self, chain: Chain, address: str) -> None:
        self.chain = chain
        self.address = Web3.to_checksum_address(address)
        chain.deploy(self)

    @property
    def _storage(self) -> Dict[str, Any]:
        return self.chain.storage(self.address)


# ============================================
# Tokens
# ============================================

class ERC20Token(Contract):
    """Minimal ERC20: balances plus transfer from msg.sender."""

    def __init__(
        self,
        chain: Chain,
        symbol: str,
        decimals: int = 18,
        address: Optional[str] = None
    ) -> None:
        super().__init__(chain, address or make_address(f"token:{symbol}"))
        self.symbol = symbol
        self.decimals = decimals
        self._storage.update({"balances": {}, "total_supply": 0})

    def balance_of(self, holder: str) -> int:
        return self._storage["balances"].get(Web3.to_checksum_address(holder), 0)

    def total_supply(self) -> int:
        return self._storage["total_supply"]

    def transfer(self, to: str, amount: int) -> bool:
        self._move(self.chain.msg_sender, Web3.to_checksum_address(to), amount)
        return True

    def mint(self, to: str, amount: int) -> None:
        """Create tokens out of thin air (funding for demos and tests)."""
        to = Web3.to_checksum_address(to)
        balances = self._storage["balances"]
        balances[to] = balances.get(to, 0) + amount
        self._storage["total_supply"] += amount

    def _burn(self, holder: str, amount: int) -> None:
        balances = self._storage["balances"]
        balance = balances.get(holder, 0)
        if amount > balance:
            raise TransferFailed(f"{self.symbol}: burn {amount} exceeds balance {balance}")
        balances[holder] = balance - amount
        self._storage["total_supply"] -= amount

    def _move(self, sender: str, to: str, amount: int) -> None:
        if amount < 0:
            raise TransferFailed(f"{self.symbol}: negative transfer {amount}")
        balances = self._storage["balances"]
        balance = balances.get(sender, 0)
        if amount > balance:
            raise TransferFailed(
                f"{self.symbol}: transfer {amount} exceeds balance {balance} of {sender}"
            )
        balances[sender] = balance - amount
        balances[to] = balances.get(to, 0) + amount

    def __repr__(self) -> str:
        return f"ERC20Token({self.symbol}, {self.address})"


class WrappedNative(ERC20Token):
    """WETH-style wrapper around the native currency."""

    def __init__(self, chain: Chain, symbol: str = "WETH", address: Optional[str] = None) -> None:
        super().__init__(chain, symbol, 18, address)

    def deposit(self, amount: int) -> None:
        sender = self.chain.msg_sender
        self.chain.debit_native(sender, amount)
        self.mint(sender, amount)

    def withdraw(self, amount: int) -> None:
        """Unwrap: burn `amount` from msg.sender and pay out native currency."""
        sender = self.chain.msg_sender
        self._burn(sender, amount)
        self.chain.credit_native(sender, amount)

        receiver = self.chain.find_contract(sender)
        if receiver is not None and hasattr(receiver, "receive"):
            self.chain.call(self.address, receiver.receive, amount)


# ============================================
# Constant-product pair
# ============================================

class UniswapV2Pair(Contract):
    """
    Uniswap V2 style pair with flash swaps.

    Outputs are sent first; when `data` is non-empty the recipient's
    settlement_callback runs before the fee-adjusted constant product is
    checked against the pair's balances.
    """

    def __init__(
        self,
        chain: Chain,
        token_a: str,
        token_b: str,
        fee: int = DEFAULT_FEE,
        label: str = "pair",
        address: Optional[str] = None,
        sort_tokens: bool = True
    ) -> None:
        token_a = Web3.to_checksum_address(token_a)
        token_b = Web3.to_checksum_address(token_b)
        if sort_tokens:
            token_a, token_b = sorted((token_a, token_b), key=address_key)
        super().__init__(chain, address or make_address(f"pair:{label}:{token_a}:{token_b}"))
        self._token0 = token_a
        self._token1 = token_b
        self.fee = fee
        self.label = label
        self._storage.update({"reserve0": 0, "reserve1": 0, "block_timestamp_last": 0})

    def token0(self) -> str:
        return self._token0

    def token1(self) -> str:
        return self._token1

    def get_reserves(self) -> Tuple[int, int, int]:
        s = self._storage
        return s["reserve0"], s["reserve1"], s["block_timestamp_last"]

    def seed(self, amount0: int, amount1: int) -> None:
        """Mint liquidity straight into the pair and sync (demo/test funding)."""
        self._erc20(self._token0).mint(self.address, amount0)
        self._erc20(self._token1).mint(self.address, amount1)
        self.sync()

    def sync(self) -> None:
        self._update(*self._balances())

    def swap(self, amount0_out: int, amount1_out: int, to: str, data: bytes = b"") -> None:
        sender = self.chain.msg_sender
        to = Web3.to_checksum_address(to)

        if amount0_out < 0 or amount1_out < 0 or (amount0_out == 0 and amount1_out == 0):
            raise InsufficientOutput("insufficient output amount")
        reserve0, reserve1, _ = self.get_reserves()
        if amount0_out >= reserve0 or amount1_out >= reserve1:
            raise InsufficientLiquidity("insufficient liquidity")

        # optimistic transfers
        if amount0_out > 0:
            self.chain.call(self.address, self._erc20(self._token0).transfer, to, amount0_out)
        if amount1_out > 0:
            self.chain.call(self.address, self._erc20(self._token1).transfer, to, amount1_out)
        if data:
            callee = self.chain.contract_at(to)
            self.chain.call(
                self.address, callee.settlement_callback,
                sender, amount0_out, amount1_out, data
            )

        balance0, balance1 = self._balances()
        amount0_in = balance0 - (reserve0 - amount0_out) if balance0 > reserve0 - amount0_out else 0
        amount1_in = balance1 - (reserve1 - amount1_out) if balance1 > reserve1 - amount1_out else 0
        if amount0_in == 0 and amount1_in == 0:
            raise InsufficientInput("insufficient input amount")

        adjusted0 = balance0 * FEE_DENOMINATOR - amount0_in * self.fee
        adjusted1 = balance1 * FEE_DENOMINATOR - amount1_in * self.fee
        if adjusted0 * adjusted1 < reserve0 * reserve1 * FEE_DENOMINATOR ** 2:
            raise InsufficientLiquidity("K")

        self._update(balance0, balance1)
        logger.debug(
            f"Swap on {self.label}: in=({amount0_in}, {amount1_in}) "
            f"out=({amount0_out}, {amount1_out}) to={to}"
        )

    def _erc20(self, token: str) -> ERC20Token:
        return self.chain.contract_at(token)

    def _balances(self) -> Tuple[int, int]:
        return (
            self._erc20(self._token0).balance_of(self.address),
            self._erc20(self._token1).balance_of(self.address),
        )

    def _update(self, balance0: int, balance1: int) -> None:
        if balance0 > UINT112_MAX or balance1 > UINT112_MAX:
            raise ArithmeticOverflow("reserve exceeds uint112")
        self._storage.update({
            "reserve0": balance0,
            "reserve1": balance1,
            "block_timestamp_last": self.chain.timestamp,
        })

    def __repr__(self) -> str:
        return f"UniswapV2Pair({self.label}, {self.address})"
