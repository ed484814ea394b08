"""Vault and staking receipt tokens.

The quoting API recognises these addresses as ``toToken`` and composes the
swap, bridge and deposit or stake into a single transaction.
"""

from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel

from .chains import ARBITRUM, BASE, ETHEREUM, OPTIMISM, POLYGON

DefiProtocol = Literal["aave-v3", "lido", "etherfi"]

PROTOCOL_LABELS: Dict[str, str] = {
    "aave-v3": "Aave V3",
    "lido": "Lido",
    "etherfi": "EtherFi",
}


class VaultToken(BaseModel):
    address: str
    symbol: str
    decimals: int
    protocol: DefiProtocol
    underlying_symbol: str
    label: str


def _aave(symbol: str, address: str, decimals: int, underlying: str) -> VaultToken:
    return VaultToken(
        address=address,
        symbol=symbol,
        decimals=decimals,
        protocol="aave-v3",
        underlying_symbol=underlying,
        label=f"Aave V3 {symbol}",
    )


VAULT_TOKENS: Dict[int, List[VaultToken]] = {
    ETHEREUM: [
        VaultToken(
            address="0x7f39C581F595B53c5cb19bD0b3f8dA6c935E2Ca0",
            symbol="wstETH",
            decimals=18,
            protocol="lido",
            underlying_symbol="ETH",
            label="Lido wstETH",
        ),
        VaultToken(
            address="0xCd5fE23C85820F7B72D0926FC9b05b43E359b7ee",
            symbol="weETH",
            decimals=18,
            protocol="etherfi",
            underlying_symbol="ETH",
            label="EtherFi weETH",
        ),
        _aave("aWETH", "0x4d5F47FA6A74757f35C14fD3a6Ef8E3C9BC514E8", 18, "ETH"),
        _aave("aUSDC", "0x98C23E9d8f34FEFb1B7BD6a91B7FF122F4e16F5c", 6, "USDC"),
        _aave("aUSDT", "0x23878914EFE38d27C4D67Ab83ed1b93A74D4086a", 6, "USDT"),
        _aave("aDAI", "0x018008bfb33d285247A21d44E50697654f754e63", 18, "DAI"),
    ],
    ARBITRUM: [
        _aave("aWETH", "0xe50fA9b3c56FfB159cB0FCA61F5c9D750e8128c8", 18, "ETH"),
        _aave("aUSDC", "0x724dc807b04555b71ed48a6896b6F41593b8C637", 6, "USDC"),
    ],
    OPTIMISM: [
        _aave("aWETH", "0xe50fA9b3c56FfB159cB0FCA61F5c9D750e8128c8", 18, "ETH"),
        _aave("aUSDC", "0x625E7708f30cA75bfd92586e17077590C60eb4cD", 6, "USDC"),
    ],
    BASE: [
        _aave("aWETH", "0xD4a0e0b9149BCee3C920d2E00b5dE09138fd8bb7", 18, "ETH"),
        _aave("aUSDC", "0x4e65fE4DbA92790696d040ac24Aa414708F5c0AB", 6, "USDC"),
    ],
    POLYGON: [
        _aave("aWPOL", "0x6d80113e533a2C0fe82EaBD35f1875DcEA89Ea97", 18, "MATIC"),
        _aave("aWETH", "0xe50fA9b3c56FfB159cB0FCA61F5c9D750e8128c8", 18, "WETH"),
        _aave("aUSDC", "0xA4D94019934D8333Ef880ABFFbF2FDd611C762BD", 6, "USDC"),
    ],
}


def vault_tokens_for_chain(chain_id: int) -> List[VaultToken]:
    return VAULT_TOKENS.get(chain_id, [])


def find_vault_token(
    chain_id: int, protocol: str, underlying_symbol: str
) -> Optional[VaultToken]:
    return next(
        (
            v
            for v in vault_tokens_for_chain(chain_id)
            if v.protocol == protocol and v.underlying_symbol == underlying_symbol
        ),
        None,
    )


def find_vault_by_symbol(chain_id: int, symbol: str) -> Optional[VaultToken]:
    return next((v for v in vault_tokens_for_chain(chain_id) if v.symbol == symbol), None)
