"""
Simulated market scenarios

Builds a Chain with tokens, seeded pools and a deployed FlashArbitrageur from
a JSON description (see config/scenario.json). Amounts in the file are
human-readable and scaled by each token's decimals.
"""

import json
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Tuple

from .arbitrageur import FlashArbitrageur
from .chain import Chain, ERC20Token, UniswapV2Pair, WrappedNative, make_address
from .config_loader import ArbitrageConfig
from .exceptions import ConfigValidationError


@dataclass
class Scenario:
    chain: Chain
    arbitrageur: FlashArbitrageur
    operator: str
    tokens: Dict[str, ERC20Token] = field(default_factory=dict)
    pools: Dict[str, UniswapV2Pair] = field(default_factory=dict)
    arbitrages: List[Tuple[str, str]] = field(default_factory=list)


def to_units(amount: str, decimals: int) -> int:
    """"1.5" with 6 decimals -> 1500000"""
    try:
        return int(Decimal(amount) * 10 ** decimals)
    except InvalidOperation:
        raise ConfigValidationError(f"invalid amount: {amount!r}")


def load_scenario_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigValidationError(f"scenario file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigValidationError(f"invalid JSON in {path}: {e}")


def build_scenario(config: ArbitrageConfig, raw: Dict[str, Any]) -> Scenario:
    """
    Deploy everything a scenario describes.

    Args:
        config: effective configuration (base tokens, fee, solver settings)
        raw: parsed scenario JSON

    Returns:
        Scenario ready for chain.transact(operator, arbitrageur.flash_arbitrage, ...)
    """
    chain = Chain()
    operator = config.operator_address or raw.get("operator") or make_address("flasharb:operator")

    tokens: Dict[str, ERC20Token] = {}
    for entry in raw.get("tokens", []):
        symbol = entry["symbol"]
        if entry.get("wrapped_native"):
            tokens[symbol] = WrappedNative(chain, symbol, address=entry.get("address"))
        else:
            tokens[symbol] = ERC20Token(chain, symbol, entry.get("decimals", 18), entry.get("address"))

    pools: Dict[str, UniswapV2Pair] = {}
    for entry in raw.get("pools", []):
        label = entry["label"]
        try:
            token_a = tokens[entry["token_a"]]
            token_b = tokens[entry["token_b"]]
        except KeyError as e:
            raise ConfigValidationError(f"pool {label}: unknown token {e}")

        pool = UniswapV2Pair(
            chain, token_a.address, token_b.address,
            fee=entry.get("fee", config.default_fee), label=label
        )
        amount_a = to_units(entry["reserve_a"], token_a.decimals)
        amount_b = to_units(entry["reserve_b"], token_b.decimals)
        if pool.token0() == token_a.address:
            pool.seed(amount_a, amount_b)
        else:
            pool.seed(amount_b, amount_a)
        pools[label] = pool

    arbitrageur = FlashArbitrageur(
        chain,
        wnative=config.wnative_address,
        base_tokens=config.base_tokens,
        price_precision=config.price_precision,
        sqrt_tolerance=config.sqrt_tolerance,
    )

    arbitrages = []
    for first, second in raw.get("arbitrages", []):
        if first not in pools or second not in pools:
            raise ConfigValidationError(f"unknown pool in arbitrage [{first}, {second}]")
        arbitrages.append((first, second))

    return Scenario(
        chain=chain,
        arbitrageur=arbitrageur,
        operator=operator,
        tokens=tokens,
        pools=pools,
        arbitrages=arbitrages,
    )
