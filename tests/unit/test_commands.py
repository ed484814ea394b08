import httpx
import pydantic
import pytest

from surecast.commands import (
    CommandHandler,
    ExecutionResponse,
    PrepareStepQuote,
    UpdateStepStatus,
    parse_command,
)
from surecast.composer import WorkflowComposer
from surecast.config import LookupConfig
from surecast.contracts import ExecutionStatus, StepConfig, StepStatus, StepType, TxTag
from surecast.engine import WorkflowEngine
from surecast.errors import SurecastError, ValidationError
from surecast.namehash import name_hash, name_hash_hex
from surecast.records import TextRecordClient
from surecast.serialization import serialize_workflow
from surecast.transports import InMemoryCallTransport

NODE = name_hash_hex("alice.eth")


@pytest.fixture
def transport():
    return InMemoryCallTransport()


@pytest.fixture
def handler(holder, quotes, wallet, transport):
    def names(request):
        return httpx.Response(200, json={"name": "alice.eth"})

    return CommandHandler(
        holder,
        WorkflowComposer(holder),
        WorkflowEngine(holder, quotes, wallet),
        records=TextRecordClient(transport),
        lookup_config=LookupConfig(reverse_name_url="https://names.test"),
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(names)),
    )


async def _two_steps(holder):
    composer = WorkflowComposer(holder)
    await composer.new_workflow("Loop")
    await composer.add_step(StepType.SWAP, StepConfig(amount="0.1"))
    await composer.add_step(
        StepType.SWAP, StepConfig(from_token="USDC", to_token="DAI", use_all_from_previous=True)
    )


def test_parse_command_accepts_camel_case():
    command = parse_command(
        {"method": "updateStepStatus", "stepIndex": 1, "status": "success", "txHash": "0xabc"}
    )
    assert isinstance(command, UpdateStepStatus)
    assert command.step_index == 1
    assert command.status == StepStatus.SUCCESS
    assert command.tx_hash == "0xabc"


def test_parse_command_accepts_snake_case():
    command = parse_command({"method": "prepareStepQuote", "step_index": 0})
    assert isinstance(command, PrepareStepQuote)


@pytest.mark.parametrize(
    "payload",
    [
        {"method": "selfDestruct"},
        {"method": "prepareStepQuote"},
        {"method": "prepareStepQuote", "stepIndex": -1},
        {"method": "updateStepStatus", "stepIndex": 0, "status": "exploded"},
        {"method": "saveWorkflow", "name": ""},
    ],
)
def test_parse_command_rejects_bad_payloads(payload):
    with pytest.raises(pydantic.ValidationError):
        parse_command(payload)


@pytest.mark.asyncio
async def test_execution_flow_through_commands(handler, holder, quotes):
    await _two_steps(holder)
    quotes.script = ["250000000", "99"]

    started = await handler.handle_raw({"method": "startExecution"})
    assert [s.status for s in started.execution.steps] == [StepStatus.PENDING] * 2

    quoted = await handler.handle_raw({"method": "prepareStepQuote", "stepIndex": 0})
    assert quoted.quote.to_amount == "250000000"

    prepared = await handler.handle_raw({"method": "getPreparedTransaction"})
    assert prepared.tx.tag == TxTag.LIFI_SWAP

    await handler.handle_raw(
        {"method": "updateStepStatus", "stepIndex": 0, "status": "success", "txHash": "0x01", "chainId": 1}
    )
    await handler.handle_raw({"method": "prepareStepQuote", "stepIndex": 1})
    assert quotes.requests[1].from_amount == "250000000"

    done = await handler.handle_raw(
        {"method": "updateStepStatus", "stepIndex": 1, "status": "success", "txHash": "0x02"}
    )
    assert isinstance(done, ExecutionResponse)
    assert done.execution.status == ExecutionStatus.COMPLETED

    cleared = await handler.handle_raw({"method": "clearPreparedTransaction"})
    assert cleared.success
    assert (await handler.handle_raw({"method": "getPreparedTransaction"})).tx is None


@pytest.mark.asyncio
async def test_retry_from_failure_command(handler, holder):
    await _two_steps(holder)
    await handler.handle_raw({"method": "startExecution"})
    await handler.handle_raw({"method": "updateStepStatus", "stepIndex": 0, "status": "success"})
    failed = await handler.handle_raw(
        {"method": "updateStepStatus", "stepIndex": 1, "status": "error", "error": "rejected"}
    )
    assert failed.execution.status == ExecutionStatus.FAILED

    retry = await handler.handle_raw({"method": "retryFromFailure"})

    assert retry.resume_index == 1
    assert retry.execution.status == ExecutionStatus.RUNNING
    assert retry.execution.steps[1].status == StepStatus.PENDING
    assert retry.execution.steps[1].error is None


@pytest.mark.asyncio
async def test_start_without_steps_is_error(handler):
    with pytest.raises(ValidationError, match="No workflow with steps"):
        await handler.handle_raw({"method": "startExecution"})


@pytest.mark.asyncio
async def test_composition_commands(handler, holder):
    await _two_steps(holder)

    saved = await handler.handle_raw({"method": "saveWorkflow", "name": "Saved Loop"})
    workflows = await handler.handle_raw({"method": "getWorkflows"})
    assert [w.id for w in workflows.workflows] == [saved.workflow_id]

    fresh = await handler.handle_raw({"method": "newWorkflow"})
    assert fresh.workflow.steps == []

    loaded = await handler.handle_raw({"method": "loadWorkflow", "workflowId": saved.workflow_id})
    assert loaded.workflow.name == "Saved Loop"

    second = loaded.workflow.steps[1].id
    await handler.handle_raw({"method": "deleteStep", "stepId": second})
    current = await handler.handle_raw({"method": "getCurrentWorkflow"})
    assert len(current.workflow.steps) == 1

    deleted = await handler.handle_raw({"method": "deleteWorkflow", "workflowId": saved.workflow_id})
    assert deleted.remaining == 0


@pytest.mark.asyncio
async def test_import_workflow_command(handler, holder):
    await _two_steps(holder)
    payload = serialize_workflow(holder.state.current_workflow)
    await handler.handle_raw({"method": "newWorkflow"})

    imported = await handler.handle_raw({"method": "importWorkflow", "workflowJson": payload})

    assert imported.workflow.name == "Loop"
    assert imported.workflow.steps[1].config.use_all_from_previous


@pytest.mark.asyncio
async def test_set_user_address_resolves_name(handler, holder, transport):
    transport.set_text(name_hash("alice.eth"), "com.surecast.workflows", '[["loop","Loop"]]')

    response = await handler.handle_raw(
        {"method": "setUserAddress", "address": "0x1111111111111111111111111111111111111111"}
    )

    assert response.success
    assert response.ens == "alice.eth"
    assert response.manifest.slugs() == ["loop"]
    state = (await handler.handle_raw({"method": "getState"})).state
    assert state.user_address == "0x1111111111111111111111111111111111111111"
    assert state.user_ens == "alice.eth"


@pytest.mark.asyncio
async def test_set_user_address_survives_lookup_failure(holder, quotes, wallet):
    def broken(request):
        return httpx.Response(500)

    handler = CommandHandler(
        holder,
        WorkflowComposer(holder),
        WorkflowEngine(holder, quotes, wallet),
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(broken)),
    )

    response = await handler.handle_raw({"method": "setUserAddress", "address": "0xabc"})

    assert response.success
    assert response.ens is None
    assert response.manifest is None
    assert holder.state.user_address == "0xabc"


@pytest.mark.asyncio
async def test_prepare_ens_save_then_load(handler, holder, transport):
    await _two_steps(holder)

    response = await handler.handle_raw({"method": "prepareEnsSave", "namehash": NODE})

    assert response.slug == "loop"
    assert response.key == "com.surecast.workflow.loop"
    assert response.tx.tag == TxTag.ENS_WRITE
    assert holder.get_prepared() == response.tx

    transport.execute(response.tx.to, response.tx.data)
    await handler.handle_raw({"method": "newWorkflow"})

    loaded = await handler.handle_raw({"method": "loadFromEns", "namehash": NODE, "slug": "loop"})
    assert loaded.workflow.name == "Loop"
    assert len(loaded.workflow.steps) == 2
    assert holder.state.current_workflow.id == loaded.workflow.id


@pytest.mark.asyncio
async def test_prepare_ens_save_requires_steps(handler):
    with pytest.raises(SurecastError, match="No workflow with steps"):
        await handler.handle_raw({"method": "prepareEnsSave", "namehash": NODE})


@pytest.mark.asyncio
async def test_record_commands_need_records(holder, quotes, wallet):
    handler = CommandHandler(holder, WorkflowComposer(holder), WorkflowEngine(holder, quotes, wallet))
    with pytest.raises(SurecastError, match="not configured"):
        await handler.handle_raw({"method": "loadFromEns", "namehash": NODE})
