"""
基础资产白名单

只有其中一个代币在白名单内的交易对才会被考虑，
该代币作为价格比较的基础（分母）资产。
"""

import logging
from typing import Dict, Iterable, Iterator, List, Optional

from web3 import Web3

logger = logging.getLogger(__name__)


class BaseAssetRegistry:
    """
    按插入顺序保存的基础代币地址集合

    以校验和地址判断成员关系，"0xabc..." 与 "0xABC..." 视为同一代币。
    """

    def __init__(self, tokens: Optional[Iterable[str]] = None) -> None:
        # dict 保持插入顺序
        self._tokens: Dict[str, None] = {}
        for token in tokens or ():
            self.add(token)

    def contains(self, token: str) -> bool:
        return Web3.to_checksum_address(token) in self._tokens

    def add(self, token: str) -> bool:
        """添加基础代币，已存在时返回 False"""
        address = Web3.to_checksum_address(token)
        if address in self._tokens:
            return False
        self._tokens[address] = None
        logger.info(f"Base token added: {address}")
        return True

    def remove(self, token: str) -> bool:
        """移除基础代币，不存在时返回 False"""
        address = Web3.to_checksum_address(token)
        if address not in self._tokens:
            return False
        del self._tokens[address]
        logger.info(f"Base token removed: {address}")
        return True

    def tokens(self) -> List[str]:
        return list(self._tokens)

    def __contains__(self, token: object) -> bool:
        return isinstance(token, str) and self.contains(token)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._tokens))

    def __len__(self) -> int:
        return len(self._tokens)

    def __repr__(self) -> str:
        return f"BaseAssetRegistry({self.tokens()!r})"
