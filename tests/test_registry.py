"""Tests for the base-asset allow-list."""

from web3 import Web3

from flasharb.registry import BaseAssetRegistry

WETH = "0x4200000000000000000000000000000000000006"
USDC = Web3.to_checksum_address("0x833589fcd6edb6e08f4c7c32d4f71b54bda02913")


def test_add_is_idempotent() -> None:
    registry = BaseAssetRegistry()
    assert registry.add(WETH) is True
    assert registry.add(WETH) is False
    assert len(registry) == 1


def test_membership_ignores_address_case() -> None:
    registry = BaseAssetRegistry([USDC])
    assert registry.contains(USDC.lower())
    assert USDC.lower() in registry
    assert 42 not in registry


def test_remove_is_idempotent() -> None:
    registry = BaseAssetRegistry([WETH, USDC])
    assert registry.remove(WETH) is True
    assert registry.remove(WETH) is False
    assert registry.tokens() == [USDC]


def test_insertion_order_is_kept() -> None:
    registry = BaseAssetRegistry([USDC, WETH])
    assert list(registry) == [USDC, WETH]
    registry.remove(USDC)
    registry.add(USDC)
    assert registry.tokens() == [WETH, USDC]


def test_add_and_remove_are_logged(caplog) -> None:
    registry = BaseAssetRegistry()
    with caplog.at_level("INFO", logger="flasharb.registry"):
        registry.add(WETH)
        registry.add(WETH)
        registry.remove(WETH)
    messages = [r.getMessage() for r in caplog.records]
    assert messages == [f"Base token added: {WETH}", f"Base token removed: {WETH}"]
