"""Shared test doubles for the quote service and the wallet."""

import asyncio
from typing import Callable, List, Optional, Set, Union

import pytest

from surecast.contracts import PreparedTransaction, Quote, TxTag
from surecast.data.chains import ChainParameters
from surecast.errors import WalletError
from surecast.persistence import InMemoryStateRepository
from surecast.quotes import QuoteRequest
from surecast.state import StateHolder

SENDER = "0x1111111111111111111111111111111111111111"


class FakeQuotes:
    """Returns scripted outputs in call order; exceptions in the script are raised."""

    def __init__(self, script: Optional[List[Union[str, Exception]]] = None):
        self.script: List[Union[str, Exception]] = list(script or [])
        self.requests: List[QuoteRequest] = []
        self.gate: Optional[asyncio.Event] = None

    async def get_quote(self, request: QuoteRequest) -> Quote:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        item = self.script.pop(0) if self.script else "1000000"
        if isinstance(item, Exception):
            raise item
        return Quote(
            tx=PreparedTransaction(
                to="0x1231DEB6f5749EF6cE6943a275A1D3E7486F4EaE",
                data="0xdeadbeef",
                value="0x0",
                chain_id=request.from_chain,
                tag=TxTag.LIFI_SWAP,
                description="Swap",
            ),
            from_symbol="ETH",
            to_symbol="USDC",
            from_amount=request.from_amount,
            to_amount=item,
            to_amount_min=item,
            to_decimals=6,
            gas_usd="0.10",
            estimated_seconds=30,
        )


class FakeWallet:
    """Wallet double that records switches, additions and submissions."""

    def __init__(self, chain_id: int = 1, known_chains: Optional[Set[int]] = None):
        self.accounts = [SENDER]
        self.chain_id = chain_id
        self.known_chains = known_chains if known_chains is not None else {1, 10, 137, 8453, 42161}
        self.switch_calls: List[int] = []
        self.added: List[ChainParameters] = []
        self.sent: List[PreparedTransaction] = []
        self.send_errors: List[Optional[Exception]] = []
        self.switch_error: Optional[WalletError] = None
        self.on_send: Optional[Callable[[], None]] = None

    async def request_accounts(self) -> List[str]:
        return list(self.accounts)

    async def active_chain_id(self) -> int:
        return self.chain_id

    async def switch_chain(self, chain_id: int) -> None:
        self.switch_calls.append(chain_id)
        if self.switch_error is not None:
            raise self.switch_error
        if chain_id not in self.known_chains:
            raise WalletError("Unrecognized chain ID", code=4902)
        self.chain_id = chain_id

    async def add_chain(self, chain_id: int, params: ChainParameters) -> None:
        self.added.append(params)
        self.known_chains.add(chain_id)
        self.chain_id = chain_id

    async def send_transaction(self, sender: str, tx: PreparedTransaction) -> str:
        if self.send_errors:
            error = self.send_errors.pop(0)
            if error is not None:
                raise error
        self.sent.append(tx)
        if self.on_send is not None:
            self.on_send()
        return f"0x{len(self.sent):064x}"


@pytest.fixture
def repository():
    return InMemoryStateRepository()


@pytest.fixture
def holder(repository):
    return StateHolder(repository)


@pytest.fixture
def quotes():
    return FakeQuotes()


@pytest.fixture
def wallet():
    return FakeWallet()
