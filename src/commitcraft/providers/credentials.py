"""Opaque provider credentials."""

import os

from pydantic import BaseModel, ConfigDict, SecretStr


class ProviderCredentials(BaseModel):
    """API keys passed through to provider clients and never inspected or logged."""

    model_config = ConfigDict(frozen=True)

    anthropic_api_key: SecretStr | None = None
    openai_api_key: SecretStr | None = None
    custom_api_key: SecretStr | None = None

    @classmethod
    def from_env(cls) -> "ProviderCredentials":
        def _secret(*names: str) -> SecretStr | None:
            for name in names:
                value = os.getenv(name)
                if value:
                    return SecretStr(value)
            return None

        return cls(
            anthropic_api_key=_secret("ANTHROPIC_API_KEY", "CLAUDE_CODE_OAUTH_TOKEN"),
            openai_api_key=_secret("OPENAI_API_KEY"),
            custom_api_key=_secret("COMMITCRAFT_CUSTOM_API_KEY"),
        )

    @staticmethod
    def reveal(secret: SecretStr | None) -> str | None:
        return secret.get_secret_value() if secret is not None else None
