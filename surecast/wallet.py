"""Wallet collaborator interface.

Signing and broadcast live outside surecast; the engine only talks to an
object satisfying :class:`Wallet`.
"""

from __future__ import annotations

import logging
from typing import List, Protocol

from .constants import UNKNOWN_CHAIN_ERROR_CODE
from .contracts import PreparedTransaction
from .data.chains import CHAIN_CONFIGS, ChainParameters
from .errors import ChainSwitchError, WalletError

logger = logging.getLogger(__name__)


class Wallet(Protocol):
    """Protocol for the signing wallet."""

    async def request_accounts(self) -> List[str]:
        """Return connected accounts, prompting the user if needed."""

    async def active_chain_id(self) -> int:
        """Return the chain the wallet is currently on."""

    async def switch_chain(self, chain_id: int) -> None:
        """Switch the active network; raises :class:`WalletError`."""

    async def add_chain(self, chain_id: int, params: ChainParameters) -> None:
        """Register an unknown network with the wallet."""

    async def send_transaction(self, sender: str, tx: PreparedTransaction) -> str:
        """Sign and broadcast ``tx``, returning its hash."""


async def switch_chain(wallet: Wallet, chain_id: int) -> None:
    """Switch ``wallet`` to ``chain_id``.

    When the wallet reports the network as unknown, adding it is attempted
    once; the add request is expected to leave the wallet on that network.
    """
    try:
        await wallet.switch_chain(chain_id)
        return
    except WalletError as e:
        if e.code != UNKNOWN_CHAIN_ERROR_CODE:
            raise ChainSwitchError(str(e)) from e

    params = CHAIN_CONFIGS.get(chain_id)
    if params is None:
        raise ChainSwitchError(
            f"Unknown chain ID: {chain_id}. Please add it to the wallet manually."
        )

    logger.info(f"Wallet does not know chain {chain_id}, adding {params.chain_name}")
    try:
        await wallet.add_chain(chain_id, params)
    except WalletError as e:
        raise ChainSwitchError(str(e)) from e
