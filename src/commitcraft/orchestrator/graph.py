"""LangGraph pipeline for one commit message generation.

Wires DiffAnalyzer, PromptBuilder, ModelRouter, MessageEnhancer and the
history store into a linear StateGraph. Every node reports failures in
state instead of raising, and a conditional edge after each node ends the
run on the first failure or cancellation.
"""

import hashlib
import logging
from typing import Any, Callable, Protocol

from langgraph.graph import END, START, StateGraph

from commitcraft.analysis.diff_analyzer import DiffAnalyzer
from commitcraft.analysis.exceptions import AnalysisError
from commitcraft.enhancement.enhancer import MessageEnhancer
from commitcraft.models import CommitMessageRecord, DiffAnalysis, GenerationRequest, ProgressStage
from commitcraft.orchestrator.exceptions import GraphBuildError
from commitcraft.orchestrator.state import GenerationState
from commitcraft.prompting.prompt_builder import PromptBuilder
from commitcraft.providers.router import ModelRouter
from commitcraft.store.cache import AnalysisCache

logger = logging.getLogger(__name__)

STAGE_ANALYSIS = "analysis"
STAGE_PROMPT = "prompt"
STAGE_GENERATION = "generation"
STAGE_ENHANCEMENT = "enhancement"
STAGE_PERSISTENCE = "persistence"


class PipelineHooks(Protocol):
    """Session callbacks that gate node output on the current sequence."""

    def emit(self, sequence: int, stage: ProgressStage, payload: dict[str, Any]) -> bool:
        """Publish an event; False if the sequence has been superseded."""

    def record_analysis(self, sequence: int, analysis: DiffAnalysis) -> None:
        """Expose the analysis through current_analysis()."""

    def commit(self, sequence: int, record: CommitMessageRecord) -> bool:
        """Persist the record; False if the sequence has been superseded."""


def failure_payload(stage: str, exc: BaseException) -> dict[str, Any]:
    return {
        "stage": stage,
        "kind": type(exc).__name__,
        "message": str(exc),
        "retryable": bool(getattr(exc, "retryable", False)),
    }


def _failed(stage: str, exc: Exception) -> dict:
    logger.warning("Pipeline failed during %s: %s: %s", stage, type(exc).__name__, exc)
    return {
        "errors": [f"{stage} error: {exc}"],
        "failure": failure_payload(stage, exc),
        "stage": stage,
    }


def _superseded(stage: str) -> dict:
    return {"cancelled": True, "stage": stage}


def analysis_cache_key(fingerprint: str, narrative: str | None) -> str:
    if not narrative:
        return fingerprint
    digest = hashlib.sha256(narrative.encode("utf-8")).hexdigest()[:16]
    return f"{fingerprint}:{digest}"


def clean_model_output(text: str) -> str:
    """Strip whitespace and a wrapping code fence from model output."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")
        lines = lines[1:]
        if lines and lines[-1].strip().startswith("```"):
            lines = lines[:-1]
        cleaned = "\n".join(lines).strip()
    return cleaned


def make_analyze_node(
    analyzer: DiffAnalyzer,
    cache: AnalysisCache,
    hooks: PipelineHooks,
    ttl: float | None = None,
) -> Callable[[GenerationState], dict]:
    """Factory: returns a node closure that parses and analyzes the diff.

    The analysis is computed through the cache, so concurrent triggers for
    the same diff share one computation.

    On error: returns {"errors": [str], "failure": {...}}
    """

    def analyze_node(state: GenerationState) -> dict:
        sequence = state["sequence"]
        if not hooks.emit(sequence, ProgressStage.ANALYSIS_STARTED, {"diff_chars": len(state["diff_text"])}):
            return _superseded(STAGE_ANALYSIS)
        try:
            if not state["diff_text"].strip():
                raise AnalysisError("Diff is empty; nothing to describe")
            document = analyzer.parse(state["diff_text"])
            if not document.files:
                raise AnalysisError("Diff contains no file changes")
            key = analysis_cache_key(document.fingerprint, state["narrative"])
            analysis = cache.get_or_compute(
                key,
                lambda: analyzer.analyze(document, narrative=state["narrative"]),
                ttl=ttl,
            )
        except Exception as exc:
            return _failed(STAGE_ANALYSIS, exc)

        hooks.record_analysis(sequence, analysis)
        delivered = hooks.emit(sequence, ProgressStage.ANALYSIS_COMPLETE, {
            "fingerprint": analysis.fingerprint,
            "complexity": analysis.complexity.value,
            "files": analysis.total_files_changed,
            "analysis": analysis.model_dump(mode="json"),
        })
        if not delivered:
            return _superseded(STAGE_ANALYSIS)
        return {"document": document, "analysis": analysis, "stage": STAGE_PROMPT}

    return analyze_node


def make_prompt_node(
    prompt_builder: PromptBuilder,
    router: ModelRouter,
) -> Callable[[GenerationState], dict]:
    """Factory: returns a node closure that resolves the model and builds the prompt.

    Also fixes the GenerationRequest for this attempt; later nodes take the
    sequence they report under from it.

    On error: returns {"errors": [str], "failure": {...}}
    """

    def prompt_node(state: GenerationState) -> dict:
        try:
            model_config = router.get_model(state["model_id"])
            prompt = prompt_builder.build(state["document"], persona=state["persona"])
        except Exception as exc:
            return _failed(STAGE_PROMPT, exc)
        request = GenerationRequest(
            diff_fingerprint=state["analysis"].fingerprint,
            model_id=model_config.id,
            parameters=model_config.parameters,
            sequence=state["sequence"],
        )
        return {"model_config": model_config, "prompt": prompt, "request": request, "stage": STAGE_GENERATION}

    return prompt_node


def make_generate_node(router: ModelRouter, hooks: PipelineHooks) -> Callable[[GenerationState], dict]:
    """Factory: returns a node closure that streams the model response.

    Each fragment is published as a generation-progress event. When the
    session reports the sequence superseded, the stream is cancelled and
    closed from this thread and no further fragments are read.

    On error: returns {"errors": [str], "failure": {...}}
    """

    def generate_node(state: GenerationState) -> dict:
        sequence = state["request"].sequence
        token = state["token"]
        try:
            stream = router.generate(state["prompt"].text, state["model_config"], token=token)
            for fragment in stream:
                delivered = hooks.emit(sequence, ProgressStage.GENERATION_PROGRESS, {
                    "fragment": fragment,
                    "text": stream.text,
                })
                if not delivered:
                    stream.close()
                    break
        except Exception as exc:
            return _failed(STAGE_GENERATION, exc)

        if not stream.completed:
            logger.info("Generation for sequence %d stopped before completion", sequence)
            return _superseded(STAGE_GENERATION)

        message = clean_model_output(stream.text)
        usage = stream.usage
        generation_time_ms = usage.latency_ms if usage is not None else int(stream.elapsed_ms)
        cost = usage.cost_usd if usage is not None else 0.0
        delivered = hooks.emit(sequence, ProgressStage.GENERATION_COMPLETE, {
            "model_id": stream.model_id,
            "message": message,
            "generation_time_ms": generation_time_ms,
            "cost_usd": cost,
            "prompt_truncated": state["prompt"].truncated,
        })
        if not delivered:
            return _superseded(STAGE_GENERATION)
        return {
            "raw_message": message,
            "generation_time_ms": generation_time_ms,
            "cost_estimate_usd": cost,
            "stage": STAGE_ENHANCEMENT,
        }

    return generate_node


def make_enhance_node(enhancer: MessageEnhancer, hooks: PipelineHooks) -> Callable[[GenerationState], dict]:
    """Factory: returns a node closure that runs the enhancement chain.

    On error: returns {"errors": [str], "failure": {...}}
    """

    def enhance_node(state: GenerationState) -> dict:
        try:
            result = enhancer.enhance(
                state["raw_message"],
                state["preferences"],
                diff_text=state["diff_text"],
                analysis=state["analysis"],
            )
        except Exception as exc:
            return _failed(STAGE_ENHANCEMENT, exc)

        delivered = hooks.emit(state["request"].sequence, ProgressStage.ENHANCEMENT_COMPLETE, {
            "message": result.message,
            "applied_steps": list(result.applied_steps),
            "warnings": list(result.warnings),
            "suggestions": list(result.suggestions),
        })
        if not delivered:
            return _superseded(STAGE_ENHANCEMENT)
        return {"enhancement": result, "stage": STAGE_PERSISTENCE}

    return enhance_node


def make_persist_node(hooks: PipelineHooks) -> Callable[[GenerationState], dict]:
    """Factory: returns a node closure that builds and commits the history record.

    On error: returns {"errors": [str], "failure": {...}, "record": record}.
    The record is returned even when the history file write fails.
    """

    def persist_node(state: GenerationState) -> dict:
        enhancement = state["enhancement"]
        request = state["request"]
        record = CommitMessageRecord(
            session_id=state["session_id"],
            sequence=request.sequence,
            raw_message=state["raw_message"],
            enhanced_message=enhancement.message,
            diff_fingerprint=request.diff_fingerprint,
            model_id=request.model_id,
            temperature=request.parameters.temperature,
            generation_time_ms=state["generation_time_ms"],
            cost_estimate_usd=state["cost_estimate_usd"],
            prompt_truncated=state["prompt"].truncated,
            post_processing_steps=list(enhancement.applied_steps),
            sentiment=enhancement.sentiment,
            tone=enhancement.tone,
            conventional_commit_valid=enhancement.format_valid,
            version_bump=enhancement.version_bump,
            warnings=list(enhancement.warnings),
            suggestions=list(enhancement.suggestions),
        )
        try:
            committed = hooks.commit(request.sequence, record)
        except Exception as exc:
            failed = _failed(STAGE_PERSISTENCE, exc)
            failed["record"] = record
            return failed
        if not committed:
            return _superseded(STAGE_PERSISTENCE)
        return {"record": record}

    return persist_node


def continue_or_stop(state: GenerationState) -> str:
    """Router for the edge after each node: "continue" or "stop"."""
    if state["failure"] is not None or state["cancelled"]:
        return "stop"
    return "continue"


def build_graph(
    analyzer: DiffAnalyzer,
    cache: AnalysisCache,
    prompt_builder: PromptBuilder,
    router: ModelRouter,
    enhancer: MessageEnhancer,
    hooks: PipelineHooks,
    cache_ttl: float | None = None,
):
    """Build and compile the generation StateGraph.

    Edge topology:
      START -> analyze_node -> prompt_node -> generate_node
      generate_node -> enhance_node -> persist_node -> END
      every node except persist -> conditional(continue_or_stop) -> {next, END}

    Args:
        analyzer: Diff parser and analyzer.
        cache: Single-flight analysis cache.
        prompt_builder: Prompt construction.
        router: Model router with rate limiting and cost tracking.
        enhancer: Post-generation enhancement chain.
        hooks: Session callbacks for events and persistence.
        cache_ttl: Analysis cache lifetime in seconds; None uses the cache default.

    Returns:
        CompiledStateGraph ready to invoke.

    Raises:
        GraphBuildError: If graph construction fails.
    """
    try:
        graph = StateGraph(GenerationState)

        graph.add_node("analyze_node", make_analyze_node(analyzer, cache, hooks, ttl=cache_ttl))
        graph.add_node("prompt_node", make_prompt_node(prompt_builder, router))
        graph.add_node("generate_node", make_generate_node(router, hooks))
        graph.add_node("enhance_node", make_enhance_node(enhancer, hooks))
        graph.add_node("persist_node", make_persist_node(hooks))

        graph.add_edge(START, "analyze_node")
        for current, following in (
            ("analyze_node", "prompt_node"),
            ("prompt_node", "generate_node"),
            ("generate_node", "enhance_node"),
            ("enhance_node", "persist_node"),
        ):
            graph.add_conditional_edges(
                current,
                continue_or_stop,
                {"continue": following, "stop": END},
            )
        graph.add_edge("persist_node", END)

        return graph.compile()

    except Exception as exc:
        raise GraphBuildError(f"Failed to build generation graph: {exc}") from exc
