"""
Settlement-callback authorization guard

A single slot naming the only pool allowed to call the arbitrageur back.
It is armed right before the flash swap and disarmed when the attempt ends,
whatever the outcome.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from web3 import Web3

from .exceptions import ReentrantAttempt, UnauthorizedCallback

logger = logging.getLogger(__name__)

# address(1): matches no deployed pool
IDLE = "0x0000000000000000000000000000000000000001"


class CallbackGuard:
    """Single-slot "who may call me back" credential."""

    def __init__(self) -> None:
        self._permitted = IDLE

    @property
    def permitted(self) -> str:
        return self._permitted

    @property
    def is_idle(self) -> bool:
        return self._permitted == IDLE

    @contextmanager
    def armed(self, pool: str) -> Iterator[str]:
        """Permit `pool` for the duration of the block."""
        if not self.is_idle:
            raise ReentrantAttempt(f"guard already armed for {self._permitted}")
        self._permitted = Web3.to_checksum_address(pool)
        logger.debug(f"Guard armed: {self._permitted}")
        try:
            yield self._permitted
        finally:
            self._permitted = IDLE
            logger.debug("Guard disarmed")

    def check(self, caller: str) -> None:
        if self.is_idle or Web3.to_checksum_address(caller) != self._permitted:
            raise UnauthorizedCallback(f"callback from {caller} not permitted")
