"""Tests for PipelineSettings, Preferences and ProviderCredentials."""

import pytest

from commitcraft.config import (
    DEFAULT_HISTORY_MAX_RECORDS,
    DEFAULT_MAX_DIFF_CHARS,
    PipelineSettings,
    Preferences,
)
from commitcraft.models import CommitFormat
from commitcraft.providers.credentials import ProviderCredentials
from commitcraft.providers.exceptions import ConfigurationError


class TestPipelineSettingsFromEnv:
    """Tests for PipelineSettings.from_env()."""

    def test_defaults_with_empty_environment(self):
        """Test that no variables gives the typed defaults."""
        settings = PipelineSettings.from_env({})
        assert settings.max_diff_chars == DEFAULT_MAX_DIFF_CHARS
        assert settings.history_path is None
        assert settings.history_max_records == DEFAULT_HISTORY_MAX_RECORDS
        assert settings.preferences == Preferences()

    def test_reads_prefixed_variables(self):
        """Test numeric, path and preference variables."""
        settings = PipelineSettings.from_env({
            "COMMITCRAFT_MAX_DIFF_CHARS": "2000",
            "COMMITCRAFT_RATE_LIMIT_MAX_REQUESTS": "3",
            "COMMITCRAFT_HISTORY_PATH": "/tmp/history.json",
            "COMMITCRAFT_DEFAULT_MODEL": "gpt-4o-mini",
            "COMMITCRAFT_PREFERRED_FORMAT": "jira",
            "COMMITCRAFT_ENABLE_EMOJI": "off",
            "COMMITCRAFT_ENABLE_VERSION_BUMP": "no",
            "COMMITCRAFT_HISTORY_MAX_RECORDS": "25",
        })
        assert settings.max_diff_chars == 2000
        assert settings.rate_limit_max_requests == 3
        assert settings.history_path == "/tmp/history.json"
        assert settings.preferences.default_model_id == "gpt-4o-mini"
        assert settings.preferences.preferred_format == CommitFormat.JIRA
        assert settings.preferences.enable_version_suggestions is False
        assert settings.history_max_records == 25
        assert settings.preferences.enable_emoji_suggestions is False
        assert settings.preferences.enable_tone_analysis is True

    def test_empty_values_ignored(self):
        """Test that an empty variable falls back to the default."""
        settings = PipelineSettings.from_env({"COMMITCRAFT_MAX_DIFF_CHARS": ""})
        assert settings.max_diff_chars == DEFAULT_MAX_DIFF_CHARS

    @pytest.mark.parametrize("name, value", [
        ("COMMITCRAFT_MAX_DIFF_CHARS", "lots"),
        ("COMMITCRAFT_MAX_DIFF_CHARS", "0"),
        ("COMMITCRAFT_ENABLE_TONE", "maybe"),
        ("COMMITCRAFT_PREFERRED_FORMAT", "haiku"),
    ])
    def test_invalid_values_raise(self, name, value):
        """Test that bad values become ConfigurationError."""
        with pytest.raises(ConfigurationError):
            PipelineSettings.from_env({name: value})


class TestPreferences:
    """Tests for Preferences."""

    def test_all_stages_disabled(self):
        """Test the helper that turns every stage off."""
        preferences = Preferences().all_stages_disabled()
        assert not any([
            preferences.enable_commit_linting,
            preferences.enable_grammar_correction,
            preferences.enable_emoji_suggestions,
            preferences.enable_sentiment_analysis,
            preferences.enable_tone_analysis,
            preferences.enable_version_suggestions,
        ])
        assert preferences.default_model_id == Preferences().default_model_id


class TestProviderCredentials:
    """Tests for ProviderCredentials."""

    def test_from_env(self, monkeypatch):
        """Test the environment lookup and the OAuth fallback."""
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        monkeypatch.setenv("CLAUDE_CODE_OAUTH_TOKEN", "oauth-token")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-openai")
        credentials = ProviderCredentials.from_env()
        assert ProviderCredentials.reveal(credentials.anthropic_api_key) == "oauth-token"
        assert ProviderCredentials.reveal(credentials.openai_api_key) == "sk-openai"

    def test_secrets_hidden_in_repr(self, monkeypatch):
        """Test that keys never appear in repr or dumps."""
        monkeypatch.setenv("OPENAI_API_KEY", "sk-openai-secret")
        credentials = ProviderCredentials.from_env()
        assert "sk-openai-secret" not in repr(credentials)
        assert "sk-openai-secret" not in str(credentials.model_dump())
