"""Pipeline settings and user preferences.

Settings are read from COMMITCRAFT_* environment variables with typed
defaults; the CLI loads .env files first via python-dotenv.
"""

import os

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from commitcraft.models.record_models import CommitFormat
from commitcraft.providers.exceptions import ConfigurationError
from commitcraft.providers.registry import DEFAULT_MODEL_ID

ENV_PREFIX = "COMMITCRAFT_"

# Defaults
DEFAULT_CACHE_TTL_SECONDS = 3600.0
DEFAULT_MAX_DIFF_CHARS = 4000
DEFAULT_RATE_LIMIT_MAX_REQUESTS = 10
DEFAULT_RATE_LIMIT_WINDOW_SECONDS = 60.0
DEFAULT_RATE_LIMIT_MAX_WAIT_SECONDS = 5.0
DEFAULT_ANALYSIS_WORKERS = 4
DEFAULT_PROGRESS_QUEUE_SIZE = 256
DEFAULT_HISTORY_MAX_RECORDS = 100

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


class Preferences(BaseModel):
    """User-facing toggles consumed by the orchestrator and enhancer."""

    model_config = ConfigDict(frozen=True)

    default_model_id: str = DEFAULT_MODEL_ID
    preferred_format: CommitFormat = CommitFormat.CONVENTIONAL
    enable_commit_linting: bool = True
    enable_grammar_correction: bool = True
    enable_emoji_suggestions: bool = True
    enable_sentiment_analysis: bool = True
    enable_tone_analysis: bool = True
    enable_version_suggestions: bool = True

    def all_stages_disabled(self) -> "Preferences":
        return self.model_copy(update={
            "enable_commit_linting": False,
            "enable_grammar_correction": False,
            "enable_emoji_suggestions": False,
            "enable_sentiment_analysis": False,
            "enable_tone_analysis": False,
            "enable_version_suggestions": False,
        })


class PipelineSettings(BaseModel):
    """Process-wide settings for building a ServiceContext."""

    model_config = ConfigDict(frozen=True)

    cache_ttl_seconds: float = Field(default=DEFAULT_CACHE_TTL_SECONDS, gt=0)
    max_diff_chars: int = Field(default=DEFAULT_MAX_DIFF_CHARS, gt=0)
    rate_limit_max_requests: int = Field(default=DEFAULT_RATE_LIMIT_MAX_REQUESTS, gt=0)
    rate_limit_window_seconds: float = Field(default=DEFAULT_RATE_LIMIT_WINDOW_SECONDS, gt=0)
    rate_limit_max_wait_seconds: float = Field(default=DEFAULT_RATE_LIMIT_MAX_WAIT_SECONDS, ge=0)
    analysis_workers: int = Field(default=DEFAULT_ANALYSIS_WORKERS, gt=0)
    progress_queue_size: int = Field(default=DEFAULT_PROGRESS_QUEUE_SIZE, gt=0)
    history_path: str | None = None
    history_max_records: int = Field(default=DEFAULT_HISTORY_MAX_RECORDS, gt=0)
    models_file: str | None = None
    persona: str | None = None
    preferences: Preferences = Field(default_factory=Preferences)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "PipelineSettings":
        """Build settings from COMMITCRAFT_* variables.

        Args:
            environ: Mapping to read instead of os.environ (tests).

        Raises:
            ConfigurationError: If a variable holds an invalid value.
        """
        env = os.environ if environ is None else environ

        def _get(name: str) -> str | None:
            value = env.get(ENV_PREFIX + name)
            return value if value not in (None, "") else None

        def _bool(name: str, default: bool) -> bool:
            raw = _get(name)
            if raw is None:
                return default
            lowered = raw.strip().lower()
            if lowered in _TRUE_VALUES:
                return True
            if lowered in _FALSE_VALUES:
                return False
            raise ConfigurationError(f"{ENV_PREFIX}{name} must be a boolean, got {raw!r}")

        values: dict = {}
        numeric = {
            "CACHE_TTL_SECONDS": "cache_ttl_seconds",
            "MAX_DIFF_CHARS": "max_diff_chars",
            "RATE_LIMIT_MAX_REQUESTS": "rate_limit_max_requests",
            "RATE_LIMIT_WINDOW_SECONDS": "rate_limit_window_seconds",
            "RATE_LIMIT_MAX_WAIT_SECONDS": "rate_limit_max_wait_seconds",
            "ANALYSIS_WORKERS": "analysis_workers",
            "PROGRESS_QUEUE_SIZE": "progress_queue_size",
            "HISTORY_MAX_RECORDS": "history_max_records",
        }
        for env_name, field_name in numeric.items():
            raw = _get(env_name)
            if raw is not None:
                values[field_name] = raw
        for env_name, field_name in (
            ("HISTORY_PATH", "history_path"),
            ("MODELS_FILE", "models_file"),
            ("PERSONA", "persona"),
        ):
            raw = _get(env_name)
            if raw is not None:
                values[field_name] = raw

        defaults = Preferences()
        prefs: dict = {
            "default_model_id": _get("DEFAULT_MODEL") or defaults.default_model_id,
            "preferred_format": _get("PREFERRED_FORMAT") or defaults.preferred_format,
            "enable_commit_linting": _bool("ENABLE_LINTING", True),
            "enable_grammar_correction": _bool("ENABLE_GRAMMAR", True),
            "enable_emoji_suggestions": _bool("ENABLE_EMOJI", True),
            "enable_sentiment_analysis": _bool("ENABLE_SENTIMENT", True),
            "enable_tone_analysis": _bool("ENABLE_TONE", True),
            "enable_version_suggestions": _bool("ENABLE_VERSION_BUMP", True),
        }
        try:
            values["preferences"] = Preferences.model_validate(prefs)
            return cls.model_validate(values)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid {ENV_PREFIX}* configuration: {exc}") from exc
