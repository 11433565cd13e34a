"""
CallbackContext ABI codec

The context travels through the pool's swap() as opaque bytes and comes back
in the settlement callback. ABI encoding keeps the round trip loss-free.
"""

from dataclasses import dataclass

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from web3 import Web3

from .exceptions import InvalidCallbackPayload

CALLBACK_CONTEXT_TYPES = [
    "address",  # debt_pool
    "address",  # target_pool
    "bool",     # debt_token_smaller
    "address",  # borrowed_token
    "address",  # debt_token
    "uint256",  # debt_amount
    "uint256",  # debt_token_out_amount
]


@dataclass(frozen=True)
class CallbackContext:
    """State needed to finish the second leg of one attempt"""
    debt_pool: str
    target_pool: str
    debt_token_smaller: bool
    borrowed_token: str
    debt_token: str
    debt_amount: int
    debt_token_out_amount: int

    def encode(self) -> bytes:
        return encode(
            CALLBACK_CONTEXT_TYPES,
            [
                Web3.to_checksum_address(self.debt_pool),
                Web3.to_checksum_address(self.target_pool),
                self.debt_token_smaller,
                Web3.to_checksum_address(self.borrowed_token),
                Web3.to_checksum_address(self.debt_token),
                self.debt_amount,
                self.debt_token_out_amount,
            ]
        )

    @classmethod
    def decode(cls, data: bytes) -> "CallbackContext":
        try:
            values = decode(CALLBACK_CONTEXT_TYPES, data)
        except DecodingError as e:
            raise InvalidCallbackPayload(f"malformed callback payload: {e}") from e

        debt_pool, target_pool, smaller, borrowed, debt, amount, out_amount = values
        return cls(
            debt_pool=Web3.to_checksum_address(debt_pool),
            target_pool=Web3.to_checksum_address(target_pool),
            debt_token_smaller=smaller,
            borrowed_token=Web3.to_checksum_address(borrowed),
            debt_token=Web3.to_checksum_address(debt),
            debt_amount=amount,
            debt_token_out_amount=out_amount,
        )
