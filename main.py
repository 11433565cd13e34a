#!/usr/bin/env python3
"""
=========================================================
     ⚡ FlashArb-Pair - Two-Pool Flash-Swap Arbitrage
=========================================================

Runs the arbitrageur against a simulated market:
1. Load config/arbitrage.json (+ .env overrides)
2. Deploy tokens and pools from config/scenario.json
3. Quote every configured pool pair
4. Execute the profitable ones, each as one atomic transaction

Usage:
    python main.py
    SCENARIO_FILE=my_scenario.json python main.py
"""

import logging
import os
import sys
from pathlib import Path

from flasharb import load_config
from flasharb.calculator import FEE_NAMES
from flasharb.exceptions import ConfigValidationError, FlashArbError
from flasharb.scenario import build_scenario, load_scenario_file

PROJECT_ROOT = Path(__file__).resolve().parent


def _format_units(amount: int, decimals: int) -> str:
    return f"{amount / 10 ** decimals:,.6f}"


def main() -> int:
    try:
        config = load_config()
    except ConfigValidationError as e:
        print(f"❌ Config error: {e}")
        return 1

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper()),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    scenario_path = Path(os.getenv("SCENARIO_FILE", PROJECT_ROOT / "config" / "scenario.json"))
    try:
        scenario = build_scenario(config, load_scenario_file(scenario_path))
    except ConfigValidationError as e:
        print(f"❌ Scenario error: {e}")
        return 1

    chain = scenario.chain
    bot = scenario.arbitrageur
    symbols = {token.address: token for token in scenario.tokens.values()}

    print("\n" + "=" * 60)
    print("     ⚡ FlashArb-Pair - Two-Pool Flash-Swap Arbitrage")
    print("=" * 60)
    print(f"  Arbitrageur:        {bot.address}")
    print(f"  Operator:           {scenario.operator}")
    print(f"  Base Tokens:        {len(bot.base_tokens())}")
    for address in bot.base_tokens():
        token = symbols.get(address)
        print(f"    - {token.symbol if token else address}")
    print(f"  Min Profit:         {config.minimum_profit}")
    print(f"  Sqrt Tolerance:     {config.sqrt_tolerance}")
    print("=" * 60)
    print("📊 Pools")
    print("=" * 60)
    for label, pool in scenario.pools.items():
        reserve0, reserve1, _ = pool.get_reserves()
        token0, token1 = symbols[pool.token0()], symbols[pool.token1()]
        print(
            f"  {label:<16} {_format_units(reserve0, token0.decimals)} {token0.symbol} / "
            f"{_format_units(reserve1, token1.decimals)} {token1.symbol} "
            f"(fee {FEE_NAMES.get(pool.fee, pool.fee)})"
        )
    print("=" * 60)

    executed = 0
    for first, second in scenario.arbitrages:
        pool0 = scenario.pools[first].address
        pool1 = scenario.pools[second].address
        print(f"\n🔍 {first} <-> {second}")

        try:
            quote, base_token = bot.get_profit(pool0, pool1)
        except FlashArbError as e:
            print(f"   ❌ Cannot arbitrage: {type(e).__name__}: {e}")
            continue

        base = symbols[base_token]
        print(f"   Expected profit:   {_format_units(quote, base.decimals)} {base.symbol}")
        if quote == 0 or quote < config.minimum_profit:
            print("   ⏭️  Skipped (below minimum profit)")
            continue

        try:
            profit = chain.transact(scenario.operator, bot.flash_arbitrage, pool0, pool1)
        except FlashArbError as e:
            print(f"   ❌ Reverted: {type(e).__name__}: {e}")
            continue

        executed += 1
        print(f"   ✅ Profit:          {_format_units(profit, base.decimals)} {base.symbol}")
        if base_token == bot.wnative:
            print(f"   💰 Native balance:  {_format_units(chain.native_balance(bot.address), 18)}")

    print("\n" + "=" * 60)
    print(f"  Executed {executed} of {len(scenario.arbitrages)} arbitrages")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
