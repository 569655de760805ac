"""State definition for the LangGraph generation pipeline."""

import operator
from typing import Annotated, Any, TypedDict

from commitcraft.config import Preferences
from commitcraft.models import (
    BuiltPrompt,
    CommitMessageRecord,
    DiffAnalysis,
    DiffDocument,
    EnhancementResult,
    GenerationRequest,
    ModelConfig,
)
from commitcraft.providers.stream import CancellationToken


class GenerationState(TypedDict):
    """State for one trigger of a generation session.

    Fields with Annotated[list, operator.add] reducers accumulate across nodes.
    All other fields use default overwrite semantics.
    """

    # Input
    session_id: str
    sequence: int
    diff_text: str
    model_id: str
    narrative: str | None
    persona: str | None
    preferences: Preferences
    token: CancellationToken

    # Analysis
    document: DiffDocument | None
    analysis: DiffAnalysis | None

    # Prompt and generation
    model_config: ModelConfig | None
    prompt: BuiltPrompt | None
    request: GenerationRequest | None  # Set once the model and prompt are fixed
    raw_message: str | None
    generation_time_ms: int
    cost_estimate_usd: float

    # Enhancement and persistence
    enhancement: EnhancementResult | None
    record: CommitMessageRecord | None

    # Control
    stage: str
    cancelled: bool
    failure: dict[str, Any] | None

    # Error accumulation
    errors: Annotated[list[str], operator.add]


def make_initial_state(
    session_id: str,
    sequence: int,
    diff_text: str,
    model_id: str,
    preferences: Preferences,
    token: CancellationToken,
    narrative: str | None = None,
    persona: str | None = None,
) -> GenerationState:
    """Create the initial state for one pipeline run.

    Args:
        session_id: Owning session id.
        sequence: Per-session sequence number of this trigger.
        diff_text: Raw diff to describe.
        model_id: Registered model id to generate with.
        preferences: Enhancement toggles and preferred format.
        token: Cancellation token for this sequence.
        narrative: Optional free-text description of the change.
        persona: Optional persona text for the prompt.

    Returns:
        GenerationState dict with all fields initialised to defaults.
    """
    return {
        "session_id": session_id,
        "sequence": sequence,
        "diff_text": diff_text,
        "model_id": model_id,
        "narrative": narrative,
        "persona": persona,
        "preferences": preferences,
        "token": token,
        "document": None,
        "analysis": None,
        "model_config": None,
        "prompt": None,
        "request": None,
        "raw_message": None,
        "generation_time_ms": 0,
        "cost_estimate_usd": 0.0,
        "enhancement": None,
        "record": None,
        "stage": "analysis",
        "cancelled": False,
        "failure": None,
        "errors": [],
    }
