"""Compact JSON forms for workflows and manifests stored in text records.

Every byte stored on-chain costs gas, so workflows use single-letter keys
and omit absent fields, and the manifest is a bare list of pairs.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterable

from pydantic import ValidationError as PydanticValidationError

from .constants import (
    SERIALIZATION_VERSION,
    SLUG_MAX_LENGTH,
    WORKFLOW_KEY_PREFIX,
)
from .contracts import (
    Manifest,
    ManifestEntry,
    StepConfig,
    StepType,
    Workflow,
    WorkflowStep,
    generate_id,
    now_ms,
)
from .errors import SerializationError

_SEPARATORS = (",", ":")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")

# compact key -> StepConfig attribute
_STEP_FIELDS = {
    "p": "protocol",
    "ft": "from_token",
    "tt": "to_token",
    "fc": "from_chain",
    "tc": "to_chain",
    "a": "amount",
}


def slugify(name: str) -> str:
    """Turn a workflow name into a URL-safe slug.

    ``"Yield Optimizer!"`` becomes ``"yield-optimizer"``.
    """
    slug = _NON_ALNUM.sub("-", name.lower()).strip("-")
    return slug[:SLUG_MAX_LENGTH]


def workflow_key(slug: str) -> str:
    """Text record key for the workflow stored under ``slug``."""
    return f"{WORKFLOW_KEY_PREFIX}{slug}"


def _compact_step(step: WorkflowStep) -> Dict[str, Any]:
    compact: Dict[str, Any] = {"t": step.type.value}
    for short, attr in _STEP_FIELDS.items():
        value = getattr(step.config, attr)
        if value:
            compact[short] = value
    if step.config.use_all_from_previous:
        compact["all"] = True
    return compact


def workflow_to_compact(workflow: Workflow) -> Dict[str, Any]:
    return {
        "v": SERIALIZATION_VERSION,
        "name": workflow.name,
        "ts": workflow.updated_at,
        "steps": [_compact_step(step) for step in workflow.steps],
    }


def serialize_workflow(workflow: Workflow) -> str:
    return json.dumps(
        workflow_to_compact(workflow), separators=_SEPARATORS, ensure_ascii=False
    )


def _expand_step(compact: Any) -> WorkflowStep:
    if not isinstance(compact, dict) or "t" not in compact:
        raise SerializationError(f"Malformed step entry: {compact!r}")
    try:
        step_type = StepType(compact["t"])
    except ValueError as exc:
        raise SerializationError(f"Unknown step type: {compact['t']!r}") from exc

    values = {
        attr: compact[short]
        for short, attr in _STEP_FIELDS.items()
        if compact.get(short)
    }
    values["use_all_from_previous"] = bool(compact.get("all"))
    try:
        config = StepConfig(**values)
    except PydanticValidationError as exc:
        raise SerializationError(f"Malformed step config: {exc}") from exc
    return WorkflowStep(id=generate_id(), type=step_type, config=config)


def workflow_from_compact(compact: Any) -> Workflow:
    if not isinstance(compact, dict):
        raise SerializationError("Workflow payload must be a JSON object")
    version = compact.get("v", SERIALIZATION_VERSION)
    if version != SERIALIZATION_VERSION:
        raise SerializationError(f"Unsupported workflow version: {version!r}")
    steps = compact.get("steps") or []
    if not isinstance(steps, list):
        raise SerializationError("Workflow steps must be a list")

    created = compact.get("ts") or now_ms()
    return Workflow(
        id=generate_id(),
        name=compact.get("name") or "",
        steps=[_expand_step(s) for s in steps],
        created_at=created,
        updated_at=now_ms(),
    )


def deserialize_workflow(payload: str) -> Workflow:
    """Rebuild a workflow, assigning fresh workflow and step identifiers."""
    try:
        compact = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise SerializationError(f"Invalid workflow JSON: {exc}") from exc
    return workflow_from_compact(compact)


def serialize_manifest(entries: Iterable[ManifestEntry] | Manifest) -> str:
    """Encode as ``[["slug","Name"], ...]``."""
    if isinstance(entries, Manifest):
        entries = entries.entries
    rows = [[entry.slug, entry.name] for entry in entries]
    return json.dumps(rows, separators=_SEPARATORS, ensure_ascii=False)


def deserialize_manifest(payload: str) -> Manifest:
    try:
        rows = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise SerializationError(f"Invalid manifest JSON: {exc}") from exc
    if not isinstance(rows, list):
        raise SerializationError("Manifest payload must be a list")

    manifest = Manifest()
    for row in rows:
        if not isinstance(row, list):
            raise SerializationError(f"Malformed manifest row: {row!r}")
        slug = row[0] if len(row) > 0 and row[0] is not None else ""
        name = row[1] if len(row) > 1 and row[1] is not None else ""
        manifest.upsert(str(slug), str(name))
    return manifest
