"""Static chain, token and vault registries."""

from .chains import CHAIN_CONFIGS, CHAIN_NAMES, chain_id_from_name, chain_name
from .tokens import TOKENS, TokenInfo, find_asset, find_token
from .vaults import (
    PROTOCOL_LABELS,
    VAULT_TOKENS,
    VaultToken,
    find_vault_by_symbol,
    find_vault_token,
)

__all__ = [
    "CHAIN_CONFIGS",
    "CHAIN_NAMES",
    "chain_id_from_name",
    "chain_name",
    "TOKENS",
    "TokenInfo",
    "find_asset",
    "find_token",
    "PROTOCOL_LABELS",
    "VAULT_TOKENS",
    "VaultToken",
    "find_vault_by_symbol",
    "find_vault_token",
]
