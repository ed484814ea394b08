"""Token registry per chain."""

from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel

from ..constants import ZERO_ADDRESS
from .chains import ARBITRUM, BASE, ETHEREUM, OPTIMISM, POLYGON
from .vaults import find_vault_by_symbol


class TokenInfo(BaseModel):
    address: str
    symbol: str
    decimals: int


def _token(symbol: str, address: str, decimals: int) -> TokenInfo:
    return TokenInfo(address=address, symbol=symbol, decimals=decimals)


TOKENS: Dict[int, Dict[str, TokenInfo]] = {
    ETHEREUM: {
        "ETH": _token("ETH", ZERO_ADDRESS, 18),
        "USDC": _token("USDC", "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", 6),
        "USDT": _token("USDT", "0xdAC17F958D2ee523a2206206994597C13D831ec7", 6),
        "DAI": _token("DAI", "0x6B175474E89094C44Da98b954EedeAC495271d0F", 18),
        "WETH": _token("WETH", "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2", 18),
    },
    ARBITRUM: {
        "ETH": _token("ETH", ZERO_ADDRESS, 18),
        "USDC": _token("USDC", "0xaf88d065e77c8cC2239327C5EDb3A432268e5831", 6),
        "USDC.e": _token("USDC.e", "0xFF970A61A04b1cA14834A43f5dE4533eBDDB5CC8", 6),
        "WETH": _token("WETH", "0x82aF49447D8a07e3bd95BD0d56f35241523fBab1", 18),
    },
    OPTIMISM: {
        "ETH": _token("ETH", ZERO_ADDRESS, 18),
        "USDC": _token("USDC", "0x0b2C639c533813f4Aa9D7837CAf62653d097Ff85", 6),
        "WETH": _token("WETH", "0x4200000000000000000000000000000000000006", 18),
    },
    BASE: {
        "ETH": _token("ETH", ZERO_ADDRESS, 18),
        "USDC": _token("USDC", "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913", 6),
        "WETH": _token("WETH", "0x4200000000000000000000000000000000000006", 18),
    },
    POLYGON: {
        "MATIC": _token("MATIC", ZERO_ADDRESS, 18),
        "USDC": _token("USDC", "0x3c499c542cEF5E3811e1192ce70d8cC03d5c3359", 6),
        "WETH": _token("WETH", "0x7ceB23fD6bC0adD59E62ac25578270cFf1b9f619", 18),
    },
}


def find_token(chain_id: int, symbol_or_address: str) -> Optional[TokenInfo]:
    """Find a token by exact symbol, then by address or symbol ignoring case."""
    chain_tokens = TOKENS.get(chain_id)
    if not chain_tokens:
        return None
    if symbol_or_address in chain_tokens:
        return chain_tokens[symbol_or_address]

    lowered = symbol_or_address.lower()
    for token in chain_tokens.values():
        if token.address.lower() == lowered or token.symbol.lower() == lowered:
            return token
    return None


def find_asset(chain_id: int, symbol: str) -> Optional[TokenInfo]:
    """Resolve a plain token or a vault receipt token on ``chain_id``."""
    token = find_token(chain_id, symbol)
    if token is not None:
        return token
    vault = find_vault_by_symbol(chain_id, symbol)
    if vault is None:
        return None
    return TokenInfo(address=vault.address, symbol=vault.symbol, decimals=vault.decimals)
