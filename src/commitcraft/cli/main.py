"""CLI entry point for commitcraft."""
import argparse
import json
import sys
import traceback
from pathlib import Path

from dotenv import load_dotenv

from commitcraft.analysis.conventions import format_prefix
from commitcraft.config import PipelineSettings
from commitcraft.models import CommitFormat, ProgressStage
from commitcraft.orchestrator.exceptions import OrchestratorError
from commitcraft.providers.exceptions import ConfigurationError, ProviderLayerError
from commitcraft.store.exceptions import StoreError
from commitcraft.utils.logging_setup import configure_logging

# Exit codes
EXIT_SUCCESS = 0
EXIT_INVALID_INPUT = 1
EXIT_PROVIDER_ERROR = 2
EXIT_ORCHESTRATOR_ERROR = 3
EXIT_PIPELINE_ERROR = 4
EXIT_UNEXPECTED = 5
EXIT_KEYBOARD_INTERRUPT = 130

STDIN_MARKER = "-"
EVENT_TIMEOUT_SECONDS = 300.0

# Error event kinds reported with EXIT_PROVIDER_ERROR
PROVIDER_FAILURE_KINDS = frozenset({
    "ProviderError",
    "RateLimitExceeded",
    "UnsupportedProviderError",
})

# Safe keys allowed in config output (no secrets)
_SAFE_CONFIG_KEYS = frozenset({
    "diff_file", "model", "format", "persona", "narrative", "history_path",
    "models_file", "max_diff_chars", "cache_ttl_seconds", "stages",
    "analyze_only", "verbose", "dry_run", "output_json",
})

# (flag suffix, Preferences field)
_STAGE_FLAGS = (
    ("lint", "enable_commit_linting"),
    ("grammar", "enable_grammar_correction"),
    ("emoji", "enable_emoji_suggestions"),
    ("sentiment", "enable_sentiment_analysis"),
    ("tone", "enable_tone_analysis"),
    ("version", "enable_version_suggestions"),
)


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="commitcraft",
        description="Generate, analyze and enhance commit messages from a diff",
    )
    parser.add_argument(
        "diff_file",
        nargs="?",
        default=STDIN_MARKER,
        help="Path to a unified diff, or '-' to read stdin (default: -)",
    )
    parser.add_argument("--model", type=str, default=None, help="Registered model id to generate with")
    parser.add_argument(
        "--format",
        type=str,
        default=None,
        choices=[fmt.value for fmt in CommitFormat],
        help="Preferred commit message format",
    )
    parser.add_argument("--persona", type=str, default=None, help="Persona text for the prompt")
    parser.add_argument(
        "--narrative",
        type=str,
        default=None,
        help="Free-text description of the change (ticket ids, domain hints)",
    )
    for suffix, _ in _STAGE_FLAGS:
        parser.add_argument(
            f"--no-{suffix}",
            action="store_true",
            help=f"Disable the {suffix} enhancement stage",
        )
    parser.add_argument("--analyze-only", action="store_true", help="Print the diff analysis and exit")
    parser.add_argument("--list-models", action="store_true", help="List registered models and exit")
    parser.add_argument("--history-path", type=str, default=None, help="JSON file for persistent history")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument(
        "--dry-run", action="store_true", help="Print config and exit without running"
    )
    parser.add_argument(
        "--output-json", action="store_true", help="Output results as JSON"
    )
    return parser


def read_diff(source: str) -> str:
    """Read diff text from a path or stdin.

    Raises:
        SystemExit: If the file cannot be read.
    """
    if source == STDIN_MARKER:
        return sys.stdin.read()
    path = Path(source).expanduser()
    if not path.is_file():
        print(f"Error: '{source}' is not a readable file.", file=sys.stderr)
        raise SystemExit(EXIT_INVALID_INPUT)
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        print(f"Error: could not read '{source}': {exc}", file=sys.stderr)
        raise SystemExit(EXIT_INVALID_INPUT) from exc


def build_settings(args: argparse.Namespace, base: PipelineSettings) -> PipelineSettings:
    """Apply CLI overrides on top of environment settings."""
    prefs_update: dict = {}
    if args.model:
        prefs_update["default_model_id"] = args.model
    if args.format:
        prefs_update["preferred_format"] = CommitFormat(args.format)
    for suffix, field_name in _STAGE_FLAGS:
        if getattr(args, f"no_{suffix}"):
            prefs_update[field_name] = False

    update: dict = {"preferences": base.preferences.model_copy(update=prefs_update)}
    if args.history_path:
        update["history_path"] = args.history_path
    if args.persona:
        update["persona"] = args.persona
    return base.model_copy(update=update)


def format_result_json(result: dict) -> str:
    """Serialize result dict to JSON string.

    Calls .model_dump() on Pydantic model values. Falls back to str()
    for non-serializable types via default=str.
    """

    def _serialize(obj):
        if obj is None:
            return None
        if hasattr(obj, "model_dump"):
            return obj.model_dump(mode="json")
        return obj

    prepared = {k: _serialize(v) for k, v in result.items()}
    return json.dumps(prepared, indent=2, default=str, ensure_ascii=False)


def print_analysis_human(analysis) -> None:
    """Print a DiffAnalysis in human-readable format."""
    print(f"\n{'='*60}")
    print("Diff Analysis")
    print(f"{'='*60}")
    print(f"Fingerprint: {analysis.fingerprint[:12]}")
    print(
        f"Files: {analysis.total_files_changed}  "
        f"+{analysis.total_lines_added} -{analysis.total_lines_removed}"
    )
    languages = ", ".join(f"{lang} ({count})" for lang, count in analysis.languages.items())
    print(f"Languages: {languages or 'none'}")
    print(f"Modules: {', '.join(analysis.affected_modules) or 'none'}")
    print(f"Domains: {', '.join(analysis.domain_contexts)}")
    print(f"Complexity: {analysis.complexity.value} (score {analysis.complexity_score})")
    prefix = format_prefix(analysis.suggested_type, analysis.suggested_scope)
    breaking = " (breaking)" if analysis.breaking_change else ""
    print(f"Suggested: {prefix}{breaking}, version bump {analysis.version_bump.value}")
    if analysis.linked_tickets:
        print(f"Tickets: {', '.join(analysis.linked_tickets)}")

    if analysis.security_findings:
        print(f"\nSecurity findings ({len(analysis.security_findings)}):")
        for finding in analysis.security_findings:
            print(
                f"  [{finding.severity.value}] {finding.file_path}:{finding.line_number} "
                f"{finding.description}"
            )
    if analysis.code_smells:
        print(f"\nCode smells ({len(analysis.code_smells)}):")
        for smell in analysis.code_smells:
            print(f"  {smell.file_path}:{smell.line_number} {smell.message}")
    for suggestion in analysis.refactor_suggestions:
        print(f"  Suggestion ({suggestion.file_path}): {suggestion.suggestion}")
    if analysis.low_confidence_files:
        print(f"\nLow-confidence parses: {', '.join(analysis.low_confidence_files)}")

    preflight = analysis.preflight
    print(
        f"\nPreflight: lint={'pass' if preflight.lint_passed else 'fail'} "
        f"security={'pass' if preflight.security_scan_passed else 'fail'} "
        f"tests_suggested={'yes' if preflight.tests_suggested else 'no'}"
    )
    print(f"{'='*60}")


def print_result_human(result: dict) -> None:
    """Print a generation result in human-readable format."""
    record = result.get("record")
    print(f"\n{'='*60}")
    print("Commit Message")
    print(f"{'='*60}")
    if record is not None:
        print(record.final_message)
        print(f"\n{'-'*60}")
        print(f"Model: {record.model_id}  ({record.generation_time_ms} ms, ${record.cost_estimate_usd:.6f})")
        if record.post_processing_steps:
            print(f"Steps: {', '.join(record.post_processing_steps)}")
        if record.version_bump is not None:
            print(f"Suggested version bump: {record.version_bump.value}")
        if record.prompt_truncated:
            print("Note: the diff was truncated to fit the prompt budget")
        for warning in record.warnings:
            print(f"  ! {warning}")
        for suggestion in record.suggestions:
            print(f"  * {suggestion}")
        print(f"Record: {record.id}")

    errors = result.get("errors", [])
    if errors:
        print(f"\nErrors ({len(errors)}):")
        for err in errors:
            print(f"  - {err}")
    print(f"{'='*60}")


def print_models(models: list, as_json: bool) -> None:
    if as_json:
        print(json.dumps(
            [m.model_dump(mode="json", include={"id", "provider", "display_name", "api_base"}) for m in models],
            indent=2,
        ))
        return
    for model in models:
        label = model.display_name or model.id
        print(f"  {model.id:<24} {model.provider:<10} {label}")


def print_config_human(config: dict) -> None:
    """Print configuration in human-readable format.

    Only prints keys in the safe allowlist to prevent secret leakage.
    """
    print("\nConfiguration:")
    print(f"{'='*40}")
    for key, value in config.items():
        if key in _SAFE_CONFIG_KEYS:
            print(f"  {key}: {value}")
    print(f"{'='*40}")


def determine_exit_code(result: dict) -> int:
    """Determine the exit code from the final pipeline state."""
    failure = result.get("failure")
    if failure is None:
        return EXIT_SUCCESS if result.get("record") is not None else EXIT_PIPELINE_ERROR
    if failure.get("kind") in PROVIDER_FAILURE_KINDS:
        return EXIT_PROVIDER_ERROR
    return EXIT_PIPELINE_ERROR


def _handle_error(label: str, exc: BaseException, verbose: bool, exit_code: int) -> int:
    """Print error message to stderr and return the exit code."""
    print(f"{label}: {exc}", file=sys.stderr)
    if verbose:
        traceback.print_exc(file=sys.stderr)
    return exit_code


def create_context(settings: PipelineSettings):
    """Build the service context.

    Orchestrator imports are deferred to avoid loading langgraph, the
    provider SDKs and tree-sitter for --help and --dry-run paths.
    """
    from commitcraft.orchestrator.context import ServiceContext

    return ServiceContext.create(settings)


def _run_analysis(context, diff_text: str, narrative: str | None):
    """Analyze a diff through the shared analysis cache, as the pipeline does."""
    from commitcraft.orchestrator.graph import analysis_cache_key

    document = context.analyzer.parse(diff_text)
    return context.cache.get_or_compute(
        analysis_cache_key(document.fingerprint, narrative),
        lambda: context.analyzer.analyze(document, narrative=narrative),
    )


def _run_generation(context, diff_text: str, args: argparse.Namespace) -> dict:
    """Trigger one generation and stream its fragments to stdout."""
    session = context.new_session()
    subscription = session.subscribe()
    try:
        future = session.submit(diff_text, narrative=args.narrative)
        streaming = not args.output_json
        for event in subscription.until_terminal(timeout=EVENT_TIMEOUT_SECONDS):
            if streaming and event.stage == ProgressStage.GENERATION_PROGRESS:
                print(event.payload.get("fragment", ""), end="", flush=True)
            elif args.verbose and event.stage != ProgressStage.GENERATION_PROGRESS:
                print(f"[{event.stage.value}]", file=sys.stderr)
        result = future.result()
        if streaming and result.get("raw_message"):
            print()
        failure = result.get("failure")
        if failure is not None:
            print(
                f"Pipeline error during {failure['stage']}: {failure['kind']}: {failure['message']}",
                file=sys.stderr,
            )
        return result
    finally:
        subscription.close()


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code integer.
    """
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        settings = build_settings(args, PipelineSettings.from_env())
    except ConfigurationError as exc:
        return _handle_error("Configuration error", exc, args.verbose, EXIT_INVALID_INPUT)

    prefs = settings.preferences
    config = {
        "diff_file": args.diff_file,
        "model": prefs.default_model_id,
        "format": prefs.preferred_format.value,
        "persona": settings.persona,
        "narrative": args.narrative,
        "history_path": settings.history_path,
        "models_file": settings.models_file,
        "max_diff_chars": settings.max_diff_chars,
        "cache_ttl_seconds": settings.cache_ttl_seconds,
        "stages": [suffix for suffix, field_name in _STAGE_FLAGS if getattr(prefs, field_name)],
        "analyze_only": args.analyze_only,
        "verbose": args.verbose,
        "dry_run": args.dry_run,
        "output_json": args.output_json,
    }

    if args.dry_run:
        if args.output_json:
            print(json.dumps(config, indent=2))
        else:
            print_config_human(config)
        return EXIT_SUCCESS

    try:
        context = create_context(settings)
    except (ConfigurationError, StoreError) as exc:
        return _handle_error("Configuration error", exc, args.verbose, EXIT_INVALID_INPUT)
    except Exception as exc:
        return _handle_error("Unexpected error", exc, args.verbose, EXIT_UNEXPECTED)

    with context:
        if args.list_models:
            print_models(context.registry.list_models(), args.output_json)
            return EXIT_SUCCESS

        try:
            diff_text = read_diff(args.diff_file)
        except SystemExit as exc:
            return exc.code
        if not diff_text.strip():
            print("Error: the diff is empty.", file=sys.stderr)
            return EXIT_INVALID_INPUT

        try:
            if args.analyze_only:
                analysis = _run_analysis(context, diff_text, args.narrative)
                if args.output_json:
                    print(format_result_json({"analysis": analysis}))
                else:
                    print_analysis_human(analysis)
                return EXIT_SUCCESS

            result = _run_generation(context, diff_text, args)
            if args.output_json:
                print(format_result_json({
                    "record": result.get("record"),
                    "analysis": result.get("analysis"),
                    "failure": result.get("failure"),
                    "errors": result.get("errors", []),
                }))
            else:
                print_result_human(result)
            return determine_exit_code(result)

        except ConfigurationError as exc:
            return _handle_error("Configuration error", exc, args.verbose, EXIT_INVALID_INPUT)

        except ProviderLayerError as exc:
            return _handle_error("Provider error", exc, args.verbose, EXIT_PROVIDER_ERROR)

        except OrchestratorError as exc:
            return _handle_error("Orchestrator error", exc, args.verbose, EXIT_ORCHESTRATOR_ERROR)

        except KeyboardInterrupt:
            print("\nInterrupted.", file=sys.stderr)
            return EXIT_KEYBOARD_INTERRUPT

        except Exception as exc:
            return _handle_error("Unexpected error", exc, args.verbose, EXIT_UNEXPECTED)
