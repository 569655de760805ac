"""Registry of selectable model configurations."""

import json
import logging
import threading
from pathlib import Path

from pydantic import ValidationError

from commitcraft.models.llm_models import CostCoefficients, GenerationParameters, ModelConfig
from commitcraft.providers.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_MODEL_ID = "claude-sonnet-4-5"
DEFAULT_OLLAMA_BASE = "http://localhost:11434/v1"

_COMMIT_FEATURES = ["streaming", "conventional-commits"]

BUILTIN_MODELS = [
    ModelConfig(
        id=DEFAULT_MODEL_ID,
        provider="anthropic",
        provider_model="claude-sonnet-4-5-20250929",
        display_name="Claude Sonnet 4.5",
        parameters=GenerationParameters(temperature=0.4, max_output_tokens=400),
        cost=CostCoefficients(input_per_1k=0.003, output_per_1k=0.015),
        features_supported=_COMMIT_FEATURES,
        context_window=200_000,
    ),
    ModelConfig(
        id="gpt-4-turbo",
        provider="openai",
        display_name="GPT-4 Turbo",
        parameters=GenerationParameters(temperature=0.5, max_output_tokens=400, top_p=1.0),
        cost=CostCoefficients(input_per_1k=0.01, output_per_1k=0.03),
        features_supported=_COMMIT_FEATURES,
        context_window=128_000,
    ),
    ModelConfig(
        id="gpt-4o-mini",
        provider="openai",
        display_name="GPT-4o mini",
        parameters=GenerationParameters(temperature=0.5, max_output_tokens=400),
        cost=CostCoefficients(input_per_1k=0.00015, output_per_1k=0.0006),
        features_supported=_COMMIT_FEATURES,
        context_window=128_000,
    ),
    ModelConfig(
        id="gpt-3.5-turbo",
        provider="openai",
        display_name="GPT-3.5 Turbo",
        parameters=GenerationParameters(temperature=0.7, max_output_tokens=300),
        cost=CostCoefficients(input_per_1k=0.0005, output_per_1k=0.0015),
        features_supported=["streaming"],
        context_window=16_385,
    ),
    ModelConfig(
        id="gemini-pro",
        provider="gemini",
        display_name="Gemini Pro",
        parameters=GenerationParameters(temperature=0.7, max_output_tokens=400, top_k=40),
        cost=CostCoefficients(input_per_1k=0.0001, output_per_1k=0.0002),
        features_supported=["streaming"],
    ),
    ModelConfig(
        id="custom-fine-tuned-v1",
        provider="custom",
        display_name="Custom fine-tuned v1",
        parameters=GenerationParameters(temperature=0.3, max_output_tokens=300),
        cost=CostCoefficients(input_per_1k=0.005, output_per_1k=0.01),
        features_supported=["conventional-commits"],
    ),
    ModelConfig(
        id="ollama-mistral",
        provider="ollama",
        provider_model="mistral:7b",
        display_name="Mistral 7B (Ollama)",
        parameters=GenerationParameters(temperature=0.4, max_output_tokens=300),
        api_base=DEFAULT_OLLAMA_BASE,
        features_supported=["streaming", "local"],
    ),
]


class ModelRegistry:
    """Thread-safe id -> ModelConfig map built from defaults plus custom entries."""

    def __init__(self, models: list[ModelConfig] | None = None) -> None:
        self._lock = threading.Lock()
        self._models: dict[str, ModelConfig] = {}
        for config in models or []:
            self._models[config.id] = config

    @classmethod
    def with_defaults(cls, custom_file: str | None = None) -> "ModelRegistry":
        registry = cls(BUILTIN_MODELS)
        if custom_file:
            registry.load_custom_file(custom_file)
        return registry

    def register(self, config: ModelConfig) -> None:
        with self._lock:
            if config.id in self._models:
                logger.info("Overriding model configuration %s", config.id)
            self._models[config.id] = config

    def load_custom_file(self, path: str) -> int:
        """Load custom model entries from a JSON list (or {"models": [...]}).

        Args:
            path: Path to the JSON file.

        Returns:
            Number of entries registered.

        Raises:
            ConfigurationError: If the file is missing, unreadable or an entry
                fails validation.
        """
        file_path = Path(path).expanduser()
        try:
            payload = json.loads(file_path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise ConfigurationError(f"Custom models file not found: {file_path}") from exc
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigurationError(f"Failed to read custom models file {file_path}: {exc}") from exc

        entries = payload.get("models", []) if isinstance(payload, dict) else payload
        if not isinstance(entries, list):
            raise ConfigurationError(f"Custom models file {file_path} must hold a list of models")

        configs: list[ModelConfig] = []
        for index, entry in enumerate(entries):
            try:
                configs.append(ModelConfig.model_validate(entry))
            except ValidationError as exc:
                raise ConfigurationError(
                    f"Invalid model entry #{index} in {file_path}: {exc}"
                ) from exc

        for config in configs:
            self.register(config)
        return len(configs)

    def get(self, model_id: str) -> ModelConfig:
        with self._lock:
            config = self._models.get(model_id)
        if config is None:
            raise ConfigurationError(f"Unknown model id: {model_id}")
        return config

    def list_models(self) -> list[ModelConfig]:
        with self._lock:
            return list(self._models.values())

    def __contains__(self, model_id: object) -> bool:
        with self._lock:
            return model_id in self._models
