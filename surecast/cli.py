"""Command line interface for composing and storing surecast workflows."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Awaitable, Callable, Optional, TypeVar

import typer

from surecast import get_repository, get_transport
from surecast.amounts import to_human
from surecast.composer import WorkflowComposer, describe_step
from surecast.config import load_config
from surecast.contracts import StepConfig, StepType
from surecast.data.chains import chain_id_from_name, chain_name
from surecast.data.tokens import find_asset
from surecast.engine import WorkflowEngine
from surecast.errors import SurecastError
from surecast.namehash import name_hash, name_hash_hex
from surecast.quotes import QuoteService
from surecast.records import TextRecordClient
from surecast.state import StateHolder

T = TypeVar("T")

app = typer.Typer(help="CLI for surecast DeFi workflows")

# Command groups
workflow_app = typer.Typer(help="Compose and manage workflows")
ens_app = typer.Typer(help="Read and prepare ENS text records")

app.add_typer(workflow_app, name="workflow")
app.add_typer(ens_app, name="ens")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Surecast CLI entry point."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _run(factory: Callable[[StateHolder], Awaitable[T]]) -> T:
    """Run ``factory`` against fresh session state, exiting on domain errors."""
    holder = StateHolder(get_repository())
    try:
        return asyncio.run(factory(holder))
    except SurecastError as e:
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(code=1)


def _parse_chain(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    if value.isdigit():
        return int(value)
    chain_id = chain_id_from_name(value)
    if chain_id is not None:
        return chain_id
    raise typer.BadParameter(f"Unknown chain: {value}")


async def _with_records(
    work: Callable[[TextRecordClient], Awaitable[T]],
) -> T:
    transport = get_transport()
    await transport.connect()
    try:
        return await work(TextRecordClient(transport))
    finally:
        await transport.disconnect()


# ----------------------------------------------------------------------
# workflow


@workflow_app.command("new")
def workflow_new(name: Optional[str] = typer.Argument(None)) -> None:
    """Start a new empty workflow, replacing the current one."""
    workflow = _run(lambda h: WorkflowComposer(h).new_workflow(name or ""))
    typer.echo(f"Created workflow {workflow.name!r} ({workflow.id})")


@workflow_app.command("add")
def workflow_add(
    step_type: StepType = typer.Argument(..., help="Step type"),
    amount: Optional[str] = typer.Option(None, help="Amount in human units"),
    from_token: Optional[str] = typer.Option(None, "--from-token"),
    to_token: Optional[str] = typer.Option(None, "--to-token"),
    from_chain: Optional[str] = typer.Option(None, "--from-chain", help="Chain name or id"),
    to_chain: Optional[str] = typer.Option(None, "--to-chain", help="Chain name or id"),
    protocol: Optional[str] = typer.Option(None, help="aave-v3, lido or etherfi"),
    use_previous: bool = typer.Option(
        False, "--use-previous", help="Use the full output of the previous step"
    ),
) -> None:
    """
    Append a validated step to the current workflow.

    Example:
        surecast workflow add swap --amount 0.1 --from-token ETH --to-token USDC --from-chain arbitrum
        surecast workflow add deposit --use-previous --from-token USDC --to-token USDC --protocol aave-v3
    """
    config = StepConfig(
        protocol=protocol,
        from_token=from_token,
        to_token=to_token,
        from_chain=_parse_chain(from_chain),
        to_chain=_parse_chain(to_chain),
        amount=amount,
        use_all_from_previous=use_previous,
    )
    step = _run(lambda h: WorkflowComposer(h).add_step(step_type, config))
    typer.echo(f"Added {step.id}: {describe_step(step)}")


@workflow_app.command("remove")
def workflow_remove(step_id: str) -> None:
    """Remove a step from the current workflow."""
    workflow = _run(lambda h: WorkflowComposer(h).remove_step(step_id))
    typer.echo(f"Removed step {step_id}; {len(workflow.steps)} remaining")


@workflow_app.command("show")
def workflow_show() -> None:
    """Show the current workflow and its steps."""
    workflow = _run(lambda h: WorkflowComposer(h).current())
    if workflow is None:
        typer.echo("No active workflow")
        raise typer.Exit(code=1)
    typer.echo(f"Workflow {workflow.name} ({workflow.id})")
    if not workflow.steps:
        typer.echo("No steps")
    for index, step in enumerate(workflow.steps, start=1):
        typer.echo(f"{index}. [{step.id}] {describe_step(step)}")


@workflow_app.command("list")
def workflow_list() -> None:
    """List saved workflows."""
    workflows = _run(lambda h: WorkflowComposer(h).saved())
    if not workflows:
        typer.echo("No workflows found")
        return
    for wf in workflows:
        typer.echo(f"{wf.id}\t{wf.name}\t{len(wf.steps)} steps")


@workflow_app.command("save")
def workflow_save(name: Optional[str] = typer.Option(None, help="Rename before saving")) -> None:
    """Save the current workflow into the local list."""
    saved = _run(lambda h: WorkflowComposer(h).save_workflow(name))
    typer.echo(f"Saved {saved.name!r} ({saved.id})")


@workflow_app.command("load")
def workflow_load(workflow_id: str) -> None:
    """Make a saved workflow the current one."""
    workflow = _run(lambda h: WorkflowComposer(h).load_workflow(workflow_id))
    typer.echo(f"Loaded {workflow.name!r}")


@workflow_app.command("delete")
def workflow_delete(workflow_id: str) -> None:
    """Delete a saved workflow."""
    remaining = _run(lambda h: WorkflowComposer(h).delete_workflow(workflow_id))
    typer.echo(f"Deleted {workflow_id}; {remaining} remaining")


@workflow_app.command("export")
def workflow_export(
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to file"),
) -> None:
    """Print the current workflow in its compact stored form."""
    payload = _run(lambda h: WorkflowComposer(h).export_workflow())
    if output is None:
        typer.echo(payload)
        return
    output.write_text(payload, encoding="utf-8")
    typer.echo(f"Wrote {len(payload.encode('utf-8'))} bytes to {output}")


@workflow_app.command("import")
def workflow_import(source: str = typer.Argument(..., help="JSON string or file path")) -> None:
    """Import a compact workflow and make it current."""
    if source.lstrip().startswith("{"):
        payload = source
    else:
        path = Path(source)
        if not path.exists():
            typer.secho("Specified path does not exist", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        payload = path.read_text(encoding="utf-8")
    workflow = _run(lambda h: WorkflowComposer(h).import_workflow(payload))
    typer.echo(f"Imported {workflow.name!r} with {len(workflow.steps)} steps")


# ----------------------------------------------------------------------
# ens


@ens_app.command("namehash")
def ens_namehash(name: str) -> None:
    """Print the namehash of NAME."""
    try:
        typer.echo(name_hash_hex(name))
    except SurecastError as e:
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(code=1)


@ens_app.command("read")
def ens_read(name: str, key: str) -> None:
    """Read text record KEY of NAME."""

    async def _read(holder: StateHolder) -> Optional[str]:
        return await _with_records(lambda r: r.read_record(name_hash(name), key))

    value = _run(_read)
    if value is None:
        typer.echo("No record found")
        raise typer.Exit(code=1)
    typer.echo(value)


@ens_app.command("manifest")
def ens_manifest(name: str) -> None:
    """List the workflows saved under NAME."""

    async def _read(holder: StateHolder):
        return await _with_records(lambda r: r.read_manifest(name_hash(name)))

    manifest = _run(_read)
    if not manifest.entries:
        typer.echo("No workflows saved")
        return
    for entry in manifest.entries:
        typer.echo(f"{entry.slug}\t{entry.name}")


@ens_app.command("load")
def ens_load(
    name: str,
    slug: Optional[str] = typer.Option(None, help="Workflow slug; legacy record when omitted"),
) -> None:
    """Load a workflow stored under NAME and make it current."""

    async def _load(holder: StateHolder):
        workflow = await _with_records(lambda r: r.load_workflow(name_hash(name), slug))
        return await WorkflowComposer(holder).set_current(workflow)

    workflow = _run(_load)
    typer.echo(f"Loaded {workflow.name!r} with {len(workflow.steps)} steps")


@ens_app.command("prepare-save")
def ens_prepare_save(
    name: str,
    slug: Optional[str] = typer.Option(None, help="Override the slug derived from the name"),
) -> None:
    """
    Prepare the transaction that saves the current workflow under NAME.

    The transaction is stored as the prepared transaction and printed as
    JSON for a wallet to sign; nothing is submitted.
    """

    async def _prepare(holder: StateHolder):
        state = await holder.load()
        if state.current_workflow is None or not state.current_workflow.steps:
            raise SurecastError("No workflow with steps to save.")
        node = name_hash(name)

        async def _build(records: TextRecordClient):
            manifest = await records.read_manifest(node)
            return records.prepare_save(node, state.current_workflow, slug, manifest)

        tx, used_slug = await _with_records(_build)
        await holder.set_prepared(tx)
        return tx, used_slug

    tx, used_slug = _run(_prepare)
    typer.echo(f"Slug: {used_slug}")
    typer.echo(json.dumps(tx.model_dump(mode="json"), indent=2))


# ----------------------------------------------------------------------
# quote


@app.command("quote")
def quote(step: int = typer.Option(1, help="1-based step number to quote")) -> None:
    """Preview a live quote for one step of the current workflow."""
    config = load_config()

    async def _quote(holder: StateHolder):
        engine = WorkflowEngine(holder, QuoteService(config.quote), wallet=None)
        return await engine.prepare_step_quote(step - 1)

    result = _run(_quote)
    source = find_asset(result.tx.chain_id, result.from_symbol)
    sent = to_human(result.from_amount, source.decimals) if source else result.from_amount
    received = to_human(result.to_amount, result.to_decimals, max_fraction_digits=4)
    typer.echo(f"{sent} {result.from_symbol} -> {received} {result.to_symbol}")
    typer.echo(
        f"Minimum {to_human(result.to_amount_min, result.to_decimals, max_fraction_digits=4)}"
        f" {result.to_symbol}, gas ${result.gas_usd}, ~{result.estimated_seconds}s"
        f" on {chain_name(result.tx.chain_id)}"
    )
