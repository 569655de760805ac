"""Models describing generative-model configuration and requests."""

from pydantic import BaseModel, ConfigDict, Field


class GenerationParameters(BaseModel):
    model_config = ConfigDict(frozen=True)

    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_output_tokens: int = Field(default=512, gt=0)
    top_p: float | None = Field(default=None, ge=0.0, le=1.0)
    top_k: int | None = Field(default=None, gt=0)
    stop_sequences: list[str] = Field(default_factory=list)


class CostCoefficients(BaseModel):
    """USD cost per 1K tokens."""

    model_config = ConfigDict(frozen=True)

    input_per_1k: float = Field(default=0.0, ge=0.0)
    output_per_1k: float = Field(default=0.0, ge=0.0)


class ModelConfig(BaseModel):
    """A selectable generative model. Read-only for the life of a generation."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    id: str = Field(min_length=1)
    provider: str  # "anthropic" | "openai" | "custom" | "ollama" | "gemini" | ...
    provider_model: str | None = None  # Upstream model name when it differs from id
    display_name: str = ""
    parameters: GenerationParameters = Field(default_factory=GenerationParameters)
    system_prompt: str = ""
    cost: CostCoefficients = Field(default_factory=CostCoefficients)
    features_supported: list[str] = Field(default_factory=list)
    api_base: str | None = None
    context_window: int | None = None

    @property
    def upstream_model(self) -> str:
        return self.provider_model or self.id


class GenerationRequest(BaseModel):
    """Identifies one generation attempt within a session."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    diff_fingerprint: str
    model_id: str
    parameters: GenerationParameters = Field(default_factory=GenerationParameters)
    sequence: int = Field(ge=0)


class BuiltPrompt(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    truncated: bool = False
    diff_chars: int = 0  # Size of the diff body actually embedded


class GenerationUsage(BaseModel):
    """Cost accounting for one completed stream."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model_id: str
    input_tokens: int = 0
    output_tokens: int = 0
    cost_usd: float = 0.0
    latency_ms: int = 0
