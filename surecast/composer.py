"""Workflow composition: the current-workflow slot and the saved list.

Every step is validated here before it is stored, so malformed steps never
reach the execution engine.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from .amounts import is_positive_amount
from .constants import DEFAULT_WORKFLOW_NAME
from .contracts import StepConfig, StepType, Workflow, WorkflowStep
from .data.chains import ETHEREUM, chain_name
from .data.tokens import find_asset
from .data.vaults import PROTOCOL_LABELS, find_vault_token
from .errors import ValidationError
from .serialization import deserialize_workflow, serialize_workflow
from .state import StateHolder

logger = logging.getLogger(__name__)

DEFAULT_DEPOSIT_PROTOCOL = "aave-v3"
DEFAULT_STAKE_PROTOCOL = "lido"


def _not_available(symbol: str, chain_id: int) -> ValidationError:
    where = chain_name(chain_id) or "this chain"
    return ValidationError(f"{symbol} is not available on {where}.")


def validate_step(
    step_type: StepType,
    config: StepConfig,
    position: int,
    default_chain: int = ETHEREUM,
) -> StepConfig:
    """Check a step and return its normalized configuration.

    ``position`` is the index the step will occupy. Chains default to
    ``default_chain``; deposit and stake steps resolve their destination to
    the protocol's receipt token.

    Raises:
        ValidationError: The step cannot be executed as configured.
    """
    cfg = config.model_copy()
    cfg.from_chain = cfg.from_chain or default_chain
    cfg.to_chain = cfg.to_chain or cfg.from_chain
    cfg.from_token = cfg.from_token or "ETH"

    if cfg.use_all_from_previous:
        if position == 0:
            raise ValidationError("The first step cannot use the previous step's output.")
        cfg.amount = None
    else:
        cfg.amount = (cfg.amount or "").strip()
        if not is_positive_amount(cfg.amount):
            raise ValidationError("Please enter a valid positive number.")

    if find_asset(cfg.from_chain, cfg.from_token) is None:
        raise _not_available(cfg.from_token, cfg.from_chain)

    if step_type == StepType.DEPOSIT:
        cfg.protocol = cfg.protocol or DEFAULT_DEPOSIT_PROTOCOL
        asset = cfg.to_token or "USDC"
        vault = find_vault_token(cfg.to_chain, cfg.protocol, asset)
        if vault is None:
            label = PROTOCOL_LABELS.get(cfg.protocol, cfg.protocol)
            raise ValidationError(
                f"{label} does not support {asset} deposits on {chain_name(cfg.to_chain)}."
            )
        cfg.to_token = vault.symbol
        return cfg

    if step_type == StepType.STAKE:
        # staking receipts live on mainnet; the quote bridges when needed
        cfg.protocol = cfg.protocol or DEFAULT_STAKE_PROTOCOL
        cfg.to_chain = ETHEREUM
        vault = find_vault_token(ETHEREUM, cfg.protocol, "ETH")
        if vault is None:
            label = PROTOCOL_LABELS.get(cfg.protocol, cfg.protocol)
            raise ValidationError(f"{label} staking is not configured.")
        cfg.to_token = vault.symbol
        return cfg

    cfg.to_token = cfg.to_token or "USDC"
    if cfg.from_chain == cfg.to_chain and cfg.from_token == cfg.to_token:
        raise ValidationError(
            "Cannot swap a token to itself on the same chain. "
            "Choose a different destination token or chain."
        )
    if find_asset(cfg.to_chain, cfg.to_token) is None:
        raise _not_available(cfg.to_token, cfg.to_chain)
    return cfg


def describe_step(step: WorkflowStep) -> str:
    """One-line human summary, e.g. ``Swap 1.5 ETH → USDC``."""
    cfg = step.config
    amount = (
        "all from previous step"
        if cfg.use_all_from_previous
        else f"{cfg.amount} {cfg.from_token}"
    )
    text = f"{step.type.value.capitalize()} {amount} → {cfg.to_token}"
    if cfg.protocol:
        text += f" ({PROTOCOL_LABELS.get(cfg.protocol, cfg.protocol)})"
    if cfg.from_chain and cfg.to_chain and cfg.from_chain != cfg.to_chain:
        text += f" [{chain_name(cfg.from_chain)} → {chain_name(cfg.to_chain)}]"
    return text


class WorkflowComposer:
    """Edits the current workflow and manages the saved list."""

    def __init__(self, holder: StateHolder) -> None:
        self._holder = holder

    async def current(self) -> Optional[Workflow]:
        state = await self._holder.load()
        return state.current_workflow

    async def _require_current(self) -> Workflow:
        workflow = await self.current()
        if workflow is None:
            raise ValidationError("No active workflow.")
        return workflow

    async def saved(self) -> List[Workflow]:
        state = await self._holder.load()
        return list(state.workflows)

    async def new_workflow(self, name: str = DEFAULT_WORKFLOW_NAME) -> Workflow:
        """Replace the current slot with an empty workflow."""
        state = await self._holder.load()
        state.current_workflow = Workflow(name=name or DEFAULT_WORKFLOW_NAME)
        state.execution = None
        await self._holder.commit()
        logger.info(f"Started new workflow {state.current_workflow.name!r}")
        return state.current_workflow

    async def add_step(self, step_type: StepType, config: StepConfig) -> WorkflowStep:
        """Validate and append a step, creating a workflow if none is active."""
        state = await self._holder.load()
        workflow = state.current_workflow or Workflow()
        cfg = validate_step(
            step_type, config, len(workflow.steps), state.preferences.default_chain
        )
        step = WorkflowStep(type=step_type, config=cfg)
        workflow.steps.append(step)
        workflow.touch()
        state.current_workflow = workflow
        await self._holder.commit()
        logger.info(f"Added step {len(workflow.steps)}: {describe_step(step)}")
        return step

    async def remove_step(self, step_id: str) -> Workflow:
        workflow = await self._require_current()
        remaining = [s for s in workflow.steps if s.id != step_id]
        if len(remaining) == len(workflow.steps):
            raise ValidationError(f"Step {step_id} not found.")
        # a chained step cannot become the first step
        if remaining and remaining[0].config.use_all_from_previous:
            raise ValidationError(
                "Removing this step would leave a chained step first."
            )
        workflow.steps = remaining
        workflow.touch()
        await self._holder.commit()
        return workflow

    async def rename(self, name: str) -> Workflow:
        if not name.strip():
            raise ValidationError("Workflow name cannot be empty.")
        workflow = await self._require_current()
        workflow.name = name.strip()
        workflow.touch()
        await self._holder.commit()
        return workflow

    async def save_workflow(self, name: Optional[str] = None) -> Workflow:
        """Upsert the current workflow into the saved list by id."""
        state = await self._holder.load()
        workflow = await self._require_current()
        if name is not None:
            if not name.strip():
                raise ValidationError("Workflow name cannot be empty.")
            workflow.name = name.strip()
        workflow.touch()

        saved = workflow.model_copy(deep=True)
        for index, existing in enumerate(state.workflows):
            if existing.id == saved.id:
                state.workflows[index] = saved
                break
        else:
            state.workflows.append(saved)
        await self._holder.commit()
        logger.info(f"Saved workflow {workflow.name!r} ({workflow.id})")
        return saved

    async def load_workflow(self, workflow_id: str) -> Workflow:
        """Make a saved workflow the current one."""
        state = await self._holder.load()
        target = next((w for w in state.workflows if w.id == workflow_id), None)
        if target is None:
            raise ValidationError("Workflow not found.")
        state.current_workflow = target.model_copy(deep=True)
        state.execution = None
        await self._holder.commit()
        return state.current_workflow

    async def delete_workflow(self, workflow_id: str) -> int:
        """Remove a saved workflow; clears the current slot if it was active.

        Returns the number of saved workflows remaining.
        """
        state = await self._holder.load()
        state.workflows = [w for w in state.workflows if w.id != workflow_id]
        if state.current_workflow is not None and state.current_workflow.id == workflow_id:
            state.current_workflow = None
            state.execution = None
        await self._holder.commit()
        return len(state.workflows)

    async def set_current(self, workflow: Workflow) -> Workflow:
        """Replace the current slot wholesale, e.g. after loading from records."""
        state = await self._holder.load()
        state.current_workflow = workflow
        state.execution = None
        await self._holder.commit()
        logger.info(f"Current workflow is now {workflow.name!r}")
        return workflow

    async def import_workflow(self, payload: str) -> Workflow:
        """Parse a compact JSON workflow and make it current."""
        return await self.set_current(deserialize_workflow(payload))

    async def export_workflow(self) -> str:
        return serialize_workflow(await self._require_current())

