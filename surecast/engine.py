"""Workflow execution engine.

Steps run strictly one at a time: quote, switch network if needed, submit,
record. Any failure marks the step ``error``, the run ``failed`` and stops
the loop; the user resumes with :meth:`WorkflowEngine.retry_from_failure`,
which never re-runs steps that already succeeded.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from .amounts import to_base_units
from .constants import ZERO_ADDRESS
from .contracts import (
    ExecutionStatus,
    PreparedTransaction,
    Quote,
    StepStatus,
    TxTag,
    Workflow,
    WorkflowExecution,
)
from .data.chains import chain_name
from .data.tokens import find_asset
from .errors import (
    AmountError,
    ChainingError,
    QuoteError,
    RunInProgressError,
    SubmissionError,
    SurecastError,
    ValidationError,
    WalletError,
)
from .quotes import QuoteRequest
from .state import StateHolder
from .wallet import Wallet, switch_chain

logger = logging.getLogger(__name__)


class QuoteProvider(Protocol):
    async def get_quote(self, request: QuoteRequest) -> Quote:
        """Return a quote or raise :class:`QuoteError`."""


class CancellationToken:
    """Run-scoped cooperative cancellation flag."""

    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class WorkflowEngine:
    """Drives a :class:`WorkflowExecution` for the holder's current workflow."""

    def __init__(
        self, holder: StateHolder, quotes: QuoteProvider, wallet: Wallet
    ) -> None:
        self._holder = holder
        self._quotes = quotes
        self._wallet = wallet
        self._token: Optional[CancellationToken] = None

    # ------------------------------------------------------------------
    # Helpers
    def _workflow(self) -> Workflow:
        workflow = self._holder.state.current_workflow
        if workflow is None:
            raise ValidationError("No active workflow.")
        return workflow

    def _execution(self) -> WorkflowExecution:
        execution = self._holder.state.execution
        if execution is None:
            raise ValidationError("No active execution.")
        workflow = self._workflow()
        if execution.workflow_id != workflow.id or len(execution.steps) != len(
            workflow.steps
        ):
            raise SurecastError("Execution does not match the current workflow.")
        return execution

    def _ensure_idle(self, action: str) -> None:
        if self._holder.run_active:
            raise RunInProgressError(f"Cannot {action} while a run is active.")

    # ------------------------------------------------------------------
    # Control surface
    async def start_run(self) -> WorkflowExecution:
        """Create a fresh execution record with every step ``pending``."""
        state = await self._holder.load()
        workflow = state.current_workflow
        if workflow is None or not workflow.steps:
            raise ValidationError("No workflow with steps to execute.")
        self._ensure_idle("start")

        state.execution = WorkflowExecution.for_workflow(workflow)
        state.prepared_tx = None
        await self._holder.commit()
        logger.info(
            f"Started execution of {workflow.name!r} ({len(workflow.steps)} steps)"
        )
        return state.execution

    async def prepare_step_quote(self, step_index: int) -> Quote:
        """Quote step ``step_index`` and make its transaction the live one.

        Raises:
            ChainingError: The step chains from a predecessor without a
                quoted output.
            QuoteError: The upstream API rejected the request or the step
                references an unknown token or malformed amount.
            ValidationError: The step already succeeded.
            RunInProgressError: A run owns the execution.
        """
        self._ensure_idle("quote a step")
        return await self._quote_step(step_index)

    async def _quote_step(self, step_index: int) -> Quote:
        state = await self._holder.load()
        workflow = self._workflow()
        execution = self._execution() if state.execution is not None else None
        if not 0 <= step_index < len(workflow.steps):
            raise ValidationError(f"Step {step_index} not found.")
        if (
            execution is not None
            and execution.steps[step_index].status == StepStatus.SUCCESS
        ):
            raise ValidationError(f"Step {step_index} already succeeded.")

        step = workflow.steps[step_index]
        cfg = step.config
        from_chain = cfg.from_chain or state.preferences.default_chain
        to_chain = cfg.to_chain or from_chain
        from_symbol = cfg.from_token or "ETH"
        to_symbol = cfg.to_token or "USDC"

        from_info = find_asset(from_chain, from_symbol)
        if from_info is None:
            raise QuoteError(f"Token {from_symbol} not found on chain {from_chain}.")
        to_info = find_asset(to_chain, to_symbol)

        if cfg.use_all_from_previous:
            if step_index == 0:
                raise ChainingError("First step cannot use the previous step's output.")
            previous = execution.steps[step_index - 1] if execution else None
            if previous is None or not previous.quoted_output:
                raise ChainingError("Previous step has no quoted output for chaining.")
            raw_amount = previous.quoted_output
        else:
            try:
                raw_amount = to_base_units(cfg.amount or "", from_info.decimals)
            except AmountError as e:
                raise QuoteError(f"Step {step_index + 1}: {e}") from e

        quote = await self._quotes.get_quote(
            QuoteRequest(
                from_chain=from_chain,
                to_chain=to_chain,
                from_token=from_info.address,
                to_token=to_info.address if to_info else to_symbol,
                from_amount=raw_amount,
                from_address=state.user_address or ZERO_ADDRESS,
                slippage=state.preferences.slippage / 100,
            )
        )

        state.prepared_tx = quote.tx.model_copy(update={"step_id": step.id})
        if execution is not None:
            record = execution.steps[step_index]
            record.status = StepStatus.READY
            record.quoted_output = quote.to_amount
            record.quoted_output_decimals = quote.to_decimals
        await self._holder.commit()
        return quote

    async def update_step_status(
        self,
        step_index: int,
        status: StepStatus,
        tx_hash: Optional[str] = None,
        error: Optional[str] = None,
        chain_id: Optional[int] = None,
    ) -> WorkflowExecution:
        """Record a status transition and recompute the overall status.

        A step that succeeded is final: its hash, chain and quoted output
        are never rewritten.
        """
        self._ensure_idle("update a step")
        return await self._set_step_status(
            step_index, status, tx_hash=tx_hash, error=error, chain_id=chain_id
        )

    async def _set_step_status(
        self,
        step_index: int,
        status: StepStatus,
        tx_hash: Optional[str] = None,
        error: Optional[str] = None,
        chain_id: Optional[int] = None,
    ) -> WorkflowExecution:
        await self._holder.load()
        execution = self._execution()
        if not 0 <= step_index < len(execution.steps):
            raise ValidationError(f"Execution step {step_index} not found.")

        record = execution.steps[step_index]
        if record.status == StepStatus.SUCCESS:
            raise ValidationError(f"Step {step_index} already succeeded.")

        record.status = status
        if tx_hash:
            record.tx_hash = tx_hash
        if error:
            record.error = error
        if chain_id is not None:
            record.chain_id = chain_id

        if status == StepStatus.SUCCESS:
            execution.current_step_index = step_index + 1
        elif status == StepStatus.QUOTING:
            execution.current_step_index = step_index
        execution.refresh_status()
        await self._holder.commit()
        return execution

    def get_prepared_transaction(self) -> Optional[PreparedTransaction]:
        return self._holder.get_prepared()

    async def clear_prepared_transaction(self) -> None:
        await self._holder.clear_prepared()

    async def prepare_retry(self) -> Optional[int]:
        """Reset the first unfinished step to ``pending``.

        Returns the index to resume from, or ``None`` when every step has
        already succeeded.
        """
        self._ensure_idle("retry")
        await self._holder.load()
        execution = self._execution()
        index = execution.first_unfinished_index()
        if index is None:
            return None

        record = execution.steps[index]
        record.status = StepStatus.PENDING
        record.error = None
        record.tx_hash = None
        record.chain_id = None
        record.quoted_output = None
        record.quoted_output_decimals = None
        execution.status = ExecutionStatus.RUNNING
        execution.current_step_index = index
        await self._holder.commit()
        logger.info(f"Reset step {index + 1} for retry")
        return index

    # ------------------------------------------------------------------
    # Run loop
    def cancel(self) -> None:
        """Stop the active run before its next step."""
        if self._token is not None:
            self._token.cancel()

    async def execute(self, sender: Optional[str] = None) -> WorkflowExecution:
        """Start a fresh run and execute every step from the first."""
        await self.start_run()
        return await self.run(0, sender=sender)

    async def retry_from_failure(
        self, sender: Optional[str] = None
    ) -> WorkflowExecution:
        """Resume from the first step that has not succeeded."""
        index = await self.prepare_retry()
        if index is None:
            return self._execution()
        return await self.run(index, sender=sender)

    async def reset(self) -> None:
        """Cancel any run and discard the execution record."""
        self.cancel()
        state = await self._holder.load()
        state.execution = None
        state.prepared_tx = None
        await self._holder.commit()

    async def _resolve_sender(self, sender: Optional[str]) -> str:
        if sender:
            return sender
        accounts = await self._wallet.request_accounts()
        if not accounts:
            raise SubmissionError("No wallet accounts found.")
        state = self._holder.state
        if state.user_address != accounts[0]:
            state.user_address = accounts[0]
            await self._holder.commit()
        return accounts[0]

    async def _fail(self, index: int, message: str) -> WorkflowExecution:
        execution = await self._set_step_status(
            index, StepStatus.ERROR, error=message
        )
        logger.warning(f"Step {index + 1} failed: {message}")
        return execution

    async def _run_step(self, index: int, total: int, account: str) -> None:
        label = f"Step {index + 1}/{total}"
        await self._set_step_status(index, StepStatus.QUOTING)
        await self._quote_step(index)
        tx = self._holder.take_prepared(TxTag.LIFI_SWAP)

        if tx.chain_id != await self._wallet.active_chain_id():
            logger.info(f"{label}: switching to {chain_name(tx.chain_id)}")
            await self._set_step_status(
                index, StepStatus.SWITCHING_CHAIN, chain_id=tx.chain_id
            )
            await switch_chain(self._wallet, tx.chain_id)

        await self._set_step_status(index, StepStatus.CONFIRMING)
        try:
            tx_hash = await self._wallet.send_transaction(account, tx)
        except WalletError as e:
            raise SubmissionError(str(e)) from e

        await self._set_step_status(
            index, StepStatus.SUCCESS, tx_hash=tx_hash, chain_id=tx.chain_id
        )
        await self._holder.clear_prepared()
        logger.info(f"{label} confirmed: {tx_hash}")

    async def run(
        self, start_index: int = 0, sender: Optional[str] = None
    ) -> WorkflowExecution:
        """Execute steps from ``start_index`` until done, failed or cancelled."""
        await self._holder.load()
        workflow = self._workflow()
        execution = self._execution()
        token = CancellationToken()

        with self._holder.exclusive_run(workflow.id):
            self._token = token
            try:
                account = await self._resolve_sender(sender)
                total = len(workflow.steps)
                for index in range(start_index, total):
                    if token.cancelled:
                        logger.info(f"Run of {workflow.name!r} cancelled")
                        return execution

                    try:
                        await self._run_step(index, total, account)
                    except SurecastError as e:
                        return await self._fail(index, str(e))

                execution.refresh_status()
                await self._holder.commit()
                if execution.status == ExecutionStatus.COMPLETED:
                    logger.info(
                        f"Workflow {workflow.name!r} completed, all {total} steps executed"
                    )
                return execution
            finally:
                self._token = None
