"""Typed command surface for the execution and composition controls.

Each command is a pydantic model discriminated on ``method`` and answered
with its own response model. Field names accept the camelCase spelling used
by browser clients (``stepIndex``) as well as snake_case.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

import httpx
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from .composer import WorkflowComposer
from .config import LookupConfig
from .contracts import (
    Manifest,
    PreparedTransaction,
    Quote,
    SessionState,
    StepStatus,
    Workflow,
    WorkflowExecution,
)
from .engine import WorkflowEngine
from .errors import SurecastError
from .lookups import prefetch_manifest, reverse_lookup
from .records import TextRecordClient
from .serialization import workflow_key
from .state import StateHolder

logger = logging.getLogger(__name__)


class _Command(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GetState(_Command):
    method: Literal["getState"] = "getState"


class GetCurrentWorkflow(_Command):
    method: Literal["getCurrentWorkflow"] = "getCurrentWorkflow"


class GetWorkflows(_Command):
    method: Literal["getWorkflows"] = "getWorkflows"


class SetUserAddress(_Command):
    method: Literal["setUserAddress"] = "setUserAddress"
    address: str = Field(min_length=1)


class StartExecution(_Command):
    method: Literal["startExecution"] = "startExecution"


class GetExecution(_Command):
    method: Literal["getExecution"] = "getExecution"


class PrepareStepQuote(_Command):
    method: Literal["prepareStepQuote"] = "prepareStepQuote"
    step_index: int = Field(ge=0)


class UpdateStepStatus(_Command):
    method: Literal["updateStepStatus"] = "updateStepStatus"
    step_index: int = Field(ge=0)
    status: StepStatus
    tx_hash: Optional[str] = None
    error: Optional[str] = None
    chain_id: Optional[int] = None


class GetPreparedTransaction(_Command):
    method: Literal["getPreparedTransaction"] = "getPreparedTransaction"


class ClearPreparedTransaction(_Command):
    method: Literal["clearPreparedTransaction"] = "clearPreparedTransaction"


class RetryFromFailure(_Command):
    method: Literal["retryFromFailure"] = "retryFromFailure"


class SaveWorkflow(_Command):
    method: Literal["saveWorkflow"] = "saveWorkflow"
    name: str = Field(min_length=1)


class DeleteStep(_Command):
    method: Literal["deleteStep"] = "deleteStep"
    step_id: str


class NewWorkflow(_Command):
    method: Literal["newWorkflow"] = "newWorkflow"


class ImportWorkflow(_Command):
    method: Literal["importWorkflow"] = "importWorkflow"
    workflow_json: str = Field(min_length=1)


class DeleteWorkflow(_Command):
    method: Literal["deleteWorkflow"] = "deleteWorkflow"
    workflow_id: str


class LoadWorkflow(_Command):
    method: Literal["loadWorkflow"] = "loadWorkflow"
    workflow_id: str


class PrepareEnsSave(_Command):
    method: Literal["prepareEnsSave"] = "prepareEnsSave"
    namehash: str
    slug: Optional[str] = None


class LoadFromEns(_Command):
    method: Literal["loadFromEns"] = "loadFromEns"
    namehash: str
    slug: Optional[str] = None


Command = Annotated[
    Union[
        GetState,
        GetCurrentWorkflow,
        GetWorkflows,
        SetUserAddress,
        StartExecution,
        GetExecution,
        PrepareStepQuote,
        UpdateStepStatus,
        GetPreparedTransaction,
        ClearPreparedTransaction,
        RetryFromFailure,
        SaveWorkflow,
        DeleteStep,
        NewWorkflow,
        ImportWorkflow,
        DeleteWorkflow,
        LoadWorkflow,
        PrepareEnsSave,
        LoadFromEns,
    ],
    Field(discriminator="method"),
]

_command_adapter: TypeAdapter[Command] = TypeAdapter(Command)


def parse_command(payload: Dict[str, Any]) -> Command:
    """Validate a ``{"method": ..., **params}`` mapping into a command.

    Unknown methods and missing parameters raise ``pydantic.ValidationError``.
    """
    return _command_adapter.validate_python(payload)


# ----------------------------------------------------------------------
# Responses


class SuccessResponse(BaseModel):
    success: bool = True


class StateResponse(BaseModel):
    state: SessionState


class WorkflowResponse(BaseModel):
    workflow: Optional[Workflow] = None


class WorkflowsResponse(BaseModel):
    workflows: List[Workflow]


class SetUserAddressResponse(SuccessResponse):
    ens: Optional[str] = None
    manifest: Optional[Manifest] = None


class ExecutionResponse(BaseModel):
    execution: Optional[WorkflowExecution] = None


class QuoteResponse(BaseModel):
    quote: Quote


class PreparedTransactionResponse(BaseModel):
    tx: Optional[PreparedTransaction] = None


class RetryResponse(BaseModel):
    resume_index: Optional[int] = None
    execution: WorkflowExecution


class SaveWorkflowResponse(SuccessResponse):
    workflow_id: str


class DeleteWorkflowResponse(SuccessResponse):
    remaining: int


class PrepareEnsSaveResponse(SuccessResponse):
    key: str
    slug: str
    tx: PreparedTransaction


Response = Union[
    SuccessResponse,
    StateResponse,
    WorkflowResponse,
    WorkflowsResponse,
    SetUserAddressResponse,
    ExecutionResponse,
    QuoteResponse,
    PreparedTransactionResponse,
    RetryResponse,
    SaveWorkflowResponse,
    DeleteWorkflowResponse,
    PrepareEnsSaveResponse,
]


class CommandHandler:
    """Dispatch typed commands to the composer, engine and record layer."""

    def __init__(
        self,
        holder: StateHolder,
        composer: WorkflowComposer,
        engine: WorkflowEngine,
        records: Optional[TextRecordClient] = None,
        lookup_config: Optional[LookupConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._holder = holder
        self._composer = composer
        self._engine = engine
        self._records = records
        self._lookup_config = lookup_config
        self._http_client = http_client
        self._handlers = {
            GetState: self._get_state,
            GetCurrentWorkflow: self._get_current_workflow,
            GetWorkflows: self._get_workflows,
            SetUserAddress: self._set_user_address,
            StartExecution: self._start_execution,
            GetExecution: self._get_execution,
            PrepareStepQuote: self._prepare_step_quote,
            UpdateStepStatus: self._update_step_status,
            GetPreparedTransaction: self._get_prepared_transaction,
            ClearPreparedTransaction: self._clear_prepared_transaction,
            RetryFromFailure: self._retry_from_failure,
            SaveWorkflow: self._save_workflow,
            DeleteStep: self._delete_step,
            NewWorkflow: self._new_workflow,
            ImportWorkflow: self._import_workflow,
            DeleteWorkflow: self._delete_workflow,
            LoadWorkflow: self._load_workflow,
            PrepareEnsSave: self._prepare_ens_save,
            LoadFromEns: self._load_from_ens,
        }

    async def handle(self, command: Command) -> Response:
        handler = self._handlers[type(command)]
        logger.debug(f"Handling {command.method}")
        return await handler(command)

    async def handle_raw(self, payload: Dict[str, Any]) -> Response:
        return await self.handle(parse_command(payload))

    def _require_records(self) -> TextRecordClient:
        if self._records is None:
            raise SurecastError("Record access is not configured.")
        return self._records

    # ------------------------------------------------------------------
    # Queries
    async def _get_state(self, command: GetState) -> StateResponse:
        return StateResponse(state=await self._holder.load())

    async def _get_current_workflow(
        self, command: GetCurrentWorkflow
    ) -> WorkflowResponse:
        return WorkflowResponse(workflow=await self._composer.current())

    async def _get_workflows(self, command: GetWorkflows) -> WorkflowsResponse:
        return WorkflowsResponse(workflows=await self._composer.saved())

    async def _get_execution(self, command: GetExecution) -> ExecutionResponse:
        state = await self._holder.load()
        return ExecutionResponse(execution=state.execution)

    async def _get_prepared_transaction(
        self, command: GetPreparedTransaction
    ) -> PreparedTransactionResponse:
        await self._holder.load()
        return PreparedTransactionResponse(tx=self._engine.get_prepared_transaction())

    # ------------------------------------------------------------------
    # Session
    async def _set_user_address(
        self, command: SetUserAddress
    ) -> SetUserAddressResponse:
        state = await self._holder.load()
        state.user_address = command.address
        await self._holder.commit()

        lookup = await reverse_lookup(
            command.address, self._lookup_config, self._http_client
        )
        if not lookup.value:
            return SetUserAddressResponse()
        state.user_ens = lookup.value
        await self._holder.commit()

        manifest = None
        if self._records is not None:
            manifest = (await prefetch_manifest(self._records, lookup.value)).value
        return SetUserAddressResponse(ens=lookup.value, manifest=manifest)

    # ------------------------------------------------------------------
    # Execution
    async def _start_execution(self, command: StartExecution) -> ExecutionResponse:
        return ExecutionResponse(execution=await self._engine.start_run())

    async def _prepare_step_quote(self, command: PrepareStepQuote) -> QuoteResponse:
        return QuoteResponse(quote=await self._engine.prepare_step_quote(command.step_index))

    async def _update_step_status(
        self, command: UpdateStepStatus
    ) -> ExecutionResponse:
        execution = await self._engine.update_step_status(
            command.step_index,
            command.status,
            tx_hash=command.tx_hash,
            error=command.error,
            chain_id=command.chain_id,
        )
        return ExecutionResponse(execution=execution)

    async def _clear_prepared_transaction(
        self, command: ClearPreparedTransaction
    ) -> SuccessResponse:
        await self._holder.load()
        await self._engine.clear_prepared_transaction()
        return SuccessResponse()

    async def _retry_from_failure(self, command: RetryFromFailure) -> RetryResponse:
        index = await self._engine.prepare_retry()
        state = await self._holder.load()
        return RetryResponse(resume_index=index, execution=state.execution)

    # ------------------------------------------------------------------
    # Composition
    async def _save_workflow(self, command: SaveWorkflow) -> SaveWorkflowResponse:
        saved = await self._composer.save_workflow(command.name)
        return SaveWorkflowResponse(workflow_id=saved.id)

    async def _delete_step(self, command: DeleteStep) -> SuccessResponse:
        await self._composer.remove_step(command.step_id)
        return SuccessResponse()

    async def _new_workflow(self, command: NewWorkflow) -> WorkflowResponse:
        return WorkflowResponse(workflow=await self._composer.new_workflow())

    async def _import_workflow(self, command: ImportWorkflow) -> WorkflowResponse:
        workflow = await self._composer.import_workflow(command.workflow_json)
        return WorkflowResponse(workflow=workflow)

    async def _delete_workflow(self, command: DeleteWorkflow) -> DeleteWorkflowResponse:
        remaining = await self._composer.delete_workflow(command.workflow_id)
        return DeleteWorkflowResponse(remaining=remaining)

    async def _load_workflow(self, command: LoadWorkflow) -> WorkflowResponse:
        return WorkflowResponse(workflow=await self._composer.load_workflow(command.workflow_id))

    # ------------------------------------------------------------------
    # Records
    async def _prepare_ens_save(self, command: PrepareEnsSave) -> PrepareEnsSaveResponse:
        records = self._require_records()
        state = await self._holder.load()
        workflow = state.current_workflow
        if workflow is None or not workflow.steps:
            raise SurecastError("No workflow with steps to save.")

        manifest = await records.read_manifest(command.namehash)
        tx, slug = records.prepare_save(
            command.namehash, workflow, slug=command.slug, manifest=manifest
        )
        await self._holder.set_prepared(tx)
        return PrepareEnsSaveResponse(key=workflow_key(slug), slug=slug, tx=tx)

    async def _load_from_ens(self, command: LoadFromEns) -> WorkflowResponse:
        records = self._require_records()
        workflow = await records.load_workflow(command.namehash, command.slug)
        return WorkflowResponse(workflow=await self._composer.set_current(workflow))
