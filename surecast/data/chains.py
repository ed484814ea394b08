"""Supported networks."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel

ETHEREUM = 1
OPTIMISM = 10
POLYGON = 137
BASE = 8453
ARBITRUM = 42161

CHAIN_NAMES: Dict[int, str] = {
    ETHEREUM: "Ethereum",
    ARBITRUM: "Arbitrum",
    OPTIMISM: "Optimism",
    POLYGON: "Polygon",
    BASE: "Base",
}


class NativeCurrency(BaseModel):
    name: str
    symbol: str
    decimals: int = 18


class ChainParameters(BaseModel):
    """Parameters handed to the wallet when it does not know a network."""

    chain_name: str
    rpc_urls: List[str]
    native_currency: NativeCurrency
    block_explorer_urls: List[str]


_ETHER = NativeCurrency(name="Ether", symbol="ETH")

CHAIN_CONFIGS: Dict[int, ChainParameters] = {
    ARBITRUM: ChainParameters(
        chain_name="Arbitrum One",
        rpc_urls=["https://arb1.arbitrum.io/rpc"],
        native_currency=_ETHER,
        block_explorer_urls=["https://arbiscan.io"],
    ),
    OPTIMISM: ChainParameters(
        chain_name="Optimism",
        rpc_urls=["https://mainnet.optimism.io"],
        native_currency=_ETHER,
        block_explorer_urls=["https://optimistic.etherscan.io"],
    ),
    POLYGON: ChainParameters(
        chain_name="Polygon",
        rpc_urls=["https://polygon-rpc.com"],
        native_currency=NativeCurrency(name="MATIC", symbol="POL"),
        block_explorer_urls=["https://polygonscan.com"],
    ),
    BASE: ChainParameters(
        chain_name="Base",
        rpc_urls=["https://mainnet.base.org"],
        native_currency=_ETHER,
        block_explorer_urls=["https://basescan.org"],
    ),
}


def chain_name(chain_id: Optional[int]) -> str:
    if chain_id is None:
        return ""
    return CHAIN_NAMES.get(chain_id, f"chain {chain_id}")


def chain_id_from_name(name: str) -> Optional[int]:
    """Look up a chain id by display name, case-insensitively."""
    lowered = name.strip().lower()
    for chain_id, display in CHAIN_NAMES.items():
        if display.lower() == lowered:
            return chain_id
    return None
