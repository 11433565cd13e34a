"""
Live pair reader

Read-only view of a deployed Uniswap V2 style pair through web3, shaped like
`chain.UniswapV2Pair` so `arbitrage.quote_profit` can price real pools.
"""

from typing import List, Optional, Tuple

from web3 import Web3

from .calculator import DEFAULT_FEE

# Uniswap V2 Pair ABI (minimal)
PAIR_ABI = [
    {
        "inputs": [],
        "name": "token0",
        "outputs": [{"name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [],
        "name": "token1",
        "outputs": [{"name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [],
        "name": "getReserves",
        "outputs": [
            {"name": "_reserve0", "type": "uint112"},
            {"name": "_reserve1", "type": "uint112"},
            {"name": "_blockTimestampLast", "type": "uint32"}
        ],
        "stateMutability": "view",
        "type": "function"
    }
]


class Web3Pair:
    """
    Uniswap V2 pair read over RPC.

    token0/token1 never change for a deployed pair, so they are fetched once.
    Reserves are read fresh on every call.
    """

    def __init__(self, w3: Web3, address: str, fee: int = DEFAULT_FEE):
        self.w3 = w3
        self.address = w3.to_checksum_address(address)
        self.fee = fee
        self._contract = None
        self._token0: Optional[str] = None
        self._token1: Optional[str] = None

    @property
    def contract(self):
        """Lazy load pair contract."""
        if self._contract is None:
            self._contract = self.w3.eth.contract(address=self.address, abi=PAIR_ABI)
        return self._contract

    def token0(self) -> str:
        if self._token0 is None:
            self._token0 = self.w3.to_checksum_address(self.contract.functions.token0().call())
        return self._token0

    def token1(self) -> str:
        if self._token1 is None:
            self._token1 = self.w3.to_checksum_address(self.contract.functions.token1().call())
        return self._token1

    def get_reserves(self) -> Tuple[int, int, int]:
        reserve0, reserve1, timestamp = self.contract.functions.getReserves().call()
        return reserve0, reserve1, timestamp


def load_pairs(w3: Web3, addresses: List[str], fee: int = DEFAULT_FEE) -> List[Web3Pair]:
    return [Web3Pair(w3, address, fee) for address in addresses]
