"""Surecast: compose DeFi workflows, store them in ENS text records, replay them."""

from .commands import CommandHandler, parse_command
from .composer import WorkflowComposer
from .contracts import (
    Manifest,
    PreparedTransaction,
    Quote,
    StepConfig,
    StepType,
    Workflow,
    WorkflowExecution,
    WorkflowStep,
)
from .engine import WorkflowEngine
from .persistence import get_repository
from .quotes import QuoteService
from .records import TextRecordClient
from .state import StateHolder
from .transports import get_transport

__version__ = "0.1.0"
__all__ = [
    "CommandHandler",
    "Manifest",
    "PreparedTransaction",
    "Quote",
    "QuoteService",
    "StateHolder",
    "StepConfig",
    "StepType",
    "TextRecordClient",
    "Workflow",
    "WorkflowComposer",
    "WorkflowEngine",
    "WorkflowExecution",
    "WorkflowStep",
    "get_repository",
    "get_transport",
    "parse_command",
]
