"""Adapter for the external quoting API."""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel, Field

from .config import QuoteConfig
from .contracts import PreparedTransaction, Quote, TxTag
from .errors import QuoteError

logger = logging.getLogger(__name__)


class QuoteRequest(BaseModel):
    """Everything needed to quote one step."""

    from_chain: int
    to_chain: int
    from_token: str
    to_token: str
    from_amount: str
    from_address: str
    slippage: float = Field(default=0.005, description="Fraction, not percent")


def _sum_gas_usd(gas_costs: Any) -> str:
    total = Decimal("0")
    for cost in gas_costs or []:
        try:
            total += Decimal(str(cost.get("amountUSD") or "0"))
        except (InvalidOperation, AttributeError):
            continue
    return f"{total.quantize(Decimal('0.01'))}"


def parse_quote(data: Dict[str, Any], from_chain: int) -> Quote:
    """Normalize a raw quote response.

    The upstream gas limit is deliberately not copied; the wallet estimates
    gas itself.
    """
    try:
        action = data["action"]
        estimate = data["estimate"]
        request = data["transactionRequest"]
        from_token = action["fromToken"]
        to_token = action["toToken"]

        tx = PreparedTransaction(
            to=request["to"],
            data=request["data"],
            value=request.get("value") or "0x0",
            chain_id=int(request.get("chainId") or from_chain),
            tag=TxTag.LIFI_SWAP,
            description=f"Swap {from_token['symbol']} → {to_token['symbol']}",
        )
        return Quote(
            tx=tx,
            from_symbol=from_token["symbol"],
            to_symbol=to_token["symbol"],
            from_amount=str(action["fromAmount"]),
            to_amount=str(estimate["toAmount"]),
            to_amount_min=str(estimate["toAmountMin"]),
            to_decimals=int(to_token["decimals"]),
            gas_usd=_sum_gas_usd(estimate.get("gasCosts")),
            estimated_seconds=int(estimate.get("executionDuration") or 0),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise QuoteError(f"Malformed quote response: {e}") from e


class QuoteService:
    """Fetches quotes over HTTP with ``httpx``."""

    def __init__(
        self,
        config: Optional[QuoteConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config or QuoteConfig()
        self._client = client

    async def _get(self, url: str, params: Dict[str, str]) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(url, params=params)
        async with httpx.AsyncClient(timeout=self.config.timeout) as client:
            return await client.get(url, params=params)

    async def get_quote(self, request: QuoteRequest) -> Quote:
        params = {
            "fromChain": str(request.from_chain),
            "toChain": str(request.to_chain),
            "fromToken": request.from_token,
            "toToken": request.to_token,
            "fromAmount": request.from_amount,
            "fromAddress": request.from_address,
            "slippage": str(request.slippage),
        }
        if self.config.integrator:
            params["integrator"] = self.config.integrator

        url = f"{self.config.base_url.rstrip('/')}/quote"
        logger.debug(f"Requesting quote {params}")
        try:
            response = await self._get(url, params)
        except httpx.HTTPError as e:
            raise QuoteError(f"Quote request failed: {e}") from e

        if response.status_code >= 400:
            raise QuoteError(f"LI.FI quote failed: {response.text}")

        try:
            data = response.json()
        except ValueError as e:
            raise QuoteError(f"Quote response is not JSON: {e}") from e

        quote = parse_quote(data, request.from_chain)
        logger.info(
            f"Quoted {quote.from_amount} {quote.from_symbol} -> "
            f"{quote.to_amount} {quote.to_symbol} (gas ${quote.gas_usd})"
        )
        return quote
