"""
FlashArb-Pair: two-pool flash-swap arbitrage for constant-product AMMs
"""

from .arbitrage import ArbitrageInfo, ArbitragePlan, plan_arbitrage, quote_profit
from .arbitrageur import AttemptState, FlashArbitrageur
from .chain import Chain, ERC20Token, UniswapV2Pair, WrappedNative
from .config_loader import ArbitrageConfig, ConfigLoader, load_config
from .reader import Web3Pair, load_pairs
from .registry import BaseAssetRegistry

__all__ = [
    "ArbitrageConfig",
    "ArbitrageInfo",
    "ArbitragePlan",
    "AttemptState",
    "BaseAssetRegistry",
    "Chain",
    "ConfigLoader",
    "ERC20Token",
    "FlashArbitrageur",
    "UniswapV2Pair",
    "Web3Pair",
    "WrappedNative",
    "load_config",
    "load_pairs",
    "plan_arbitrage",
    "quote_profit",
]
