"""Core data contracts for surecast workflows."""

from __future__ import annotations

import itertools
import time
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from .constants import DEFAULT_SLIPPAGE_PERCENT, DEFAULT_WORKFLOW_NAME

_id_counter = itertools.count(1)


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def generate_id() -> str:
    """Return a short process-unique identifier.

    Identifiers are local handles only; they are never persisted as part of
    a workflow's stored identity.
    """
    return f"{_base36(now_ms())}-{next(_id_counter)}"


def _base36(value: int) -> str:
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    out = ""
    while value:
        value, rem = divmod(value, 36)
        out = digits[rem] + out
    return out or "0"


class StepType(str, Enum):
    SWAP = "swap"
    BRIDGE = "bridge"
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    STAKE = "stake"
    UNSTAKE = "unstake"
    BORROW = "borrow"
    REPAY = "repay"


class StepStatus(str, Enum):
    PENDING = "pending"
    QUOTING = "quoting"
    READY = "ready"
    SWITCHING_CHAIN = "switching-chain"
    CONFIRMING = "confirming"
    SUCCESS = "success"
    ERROR = "error"


class ExecutionStatus(str, Enum):
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    FAILED = "failed"


class TxTag(str, Enum):
    """Identifies which operation produced a prepared transaction."""

    LIFI_SWAP = "lifi-swap"
    ENS_WRITE = "ens-write"
    WRITE_REQUEST = "write-request"


class StepConfig(BaseModel):
    """User-supplied configuration of a single step."""

    protocol: Optional[str] = None
    from_token: Optional[str] = None
    to_token: Optional[str] = None
    from_chain: Optional[int] = None
    to_chain: Optional[int] = None
    amount: Optional[str] = None
    use_all_from_previous: bool = False


class WorkflowStep(BaseModel):
    """One DeFi action inside a workflow."""

    id: str = Field(default_factory=generate_id)
    type: StepType
    config: StepConfig = Field(default_factory=StepConfig)


class Workflow(BaseModel):
    """Ordered, named list of steps."""

    id: str = Field(default_factory=generate_id)
    name: str = DEFAULT_WORKFLOW_NAME
    description: Optional[str] = None
    steps: List[WorkflowStep] = Field(default_factory=list)
    created_at: int = Field(default_factory=now_ms)
    updated_at: int = Field(default_factory=now_ms)

    def touch(self) -> None:
        self.updated_at = now_ms()


class StepExecution(BaseModel):
    """Per-step run record."""

    step_id: str
    status: StepStatus = StepStatus.PENDING
    tx_hash: Optional[str] = None
    chain_id: Optional[int] = None
    error: Optional[str] = None
    quoted_output: Optional[str] = None
    quoted_output_decimals: Optional[int] = None


class WorkflowExecution(BaseModel):
    """Ephemeral run record derived from a workflow at start."""

    workflow_id: str
    started_at: int = Field(default_factory=now_ms)
    current_step_index: int = 0
    steps: List[StepExecution] = Field(default_factory=list)
    status: ExecutionStatus = ExecutionStatus.RUNNING

    @classmethod
    def for_workflow(cls, workflow: Workflow) -> "WorkflowExecution":
        return cls(
            workflow_id=workflow.id,
            steps=[StepExecution(step_id=step.id) for step in workflow.steps],
        )

    def first_unfinished_index(self) -> Optional[int]:
        """Index of the first step not in ``success``, if any."""
        for index, step in enumerate(self.steps):
            if step.status != StepStatus.SUCCESS:
                return index
        return None

    def refresh_status(self) -> None:
        """Derive overall status from step statuses."""
        if self.steps and all(s.status == StepStatus.SUCCESS for s in self.steps):
            self.status = ExecutionStatus.COMPLETED
        elif any(s.status == StepStatus.ERROR for s in self.steps):
            self.status = ExecutionStatus.FAILED
        else:
            self.status = ExecutionStatus.RUNNING


class PreparedTransaction(BaseModel):
    """Single-slot transaction handed to the signing collaborator."""

    to: str
    data: str
    value: str = "0x0"
    chain_id: int
    description: Optional[str] = None
    tag: Optional[TxTag] = None
    step_id: Optional[str] = None


class Quote(BaseModel):
    """Normalized quote for one step."""

    tx: PreparedTransaction
    from_symbol: str
    to_symbol: str
    from_amount: str
    to_amount: str
    to_amount_min: str
    to_decimals: int
    gas_usd: str
    estimated_seconds: int


class ManifestEntry(BaseModel):
    slug: str
    name: str


class Manifest(BaseModel):
    """Index of workflow slugs saved under one name identity."""

    entries: List[ManifestEntry] = Field(default_factory=list)

    def upsert(self, slug: str, name: str) -> None:
        """Add ``slug`` or overwrite its name in place."""
        for entry in self.entries:
            if entry.slug == slug:
                entry.name = name
                return
        self.entries.append(ManifestEntry(slug=slug, name=name))

    def get(self, slug: str) -> Optional[ManifestEntry]:
        return next((e for e in self.entries if e.slug == slug), None)

    def slugs(self) -> List[str]:
        return [e.slug for e in self.entries]


class Preferences(BaseModel):
    slippage: float = DEFAULT_SLIPPAGE_PERCENT
    default_chain: int = 1


class SessionState(BaseModel):
    """Everything the composer side persists between sessions."""

    current_workflow: Optional[Workflow] = None
    workflows: List[Workflow] = Field(default_factory=list)
    prepared_tx: Optional[PreparedTransaction] = None
    execution: Optional[WorkflowExecution] = None
    user_address: Optional[str] = None
    user_ens: Optional[str] = None
    preferences: Preferences = Field(default_factory=Preferences)

