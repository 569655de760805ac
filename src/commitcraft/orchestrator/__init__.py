"""Generation orchestration: graph, sessions, events and service context."""

from commitcraft.orchestrator.context import ServiceContext
from commitcraft.orchestrator.events import EventBus, Subscription
from commitcraft.orchestrator.exceptions import (
    GraphBuildError,
    OrchestratorError,
    PipelineAbortedError,
)
from commitcraft.orchestrator.graph import build_graph
from commitcraft.orchestrator.session import GenerationSession
from commitcraft.orchestrator.state import GenerationState, make_initial_state

__all__ = [
    "EventBus",
    "GenerationSession",
    "GenerationState",
    "GraphBuildError",
    "OrchestratorError",
    "PipelineAbortedError",
    "ServiceContext",
    "Subscription",
    "build_graph",
    "make_initial_state",
]
