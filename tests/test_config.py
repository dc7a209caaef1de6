"""Tests for application configuration."""

from __future__ import annotations

import pytest

from claimcheck.config import APPROVE_KEYWORDS, REJECT_KEYWORDS, AppConfig
from claimcheck.errors import ConfigError


class TestAppConfig:
    """Test AppConfig dataclass."""

    def test_default_config(self) -> None:
        """Should create config with default values."""
        config = AppConfig()

        assert config.window_size == 900
        assert config.overlap == 150
        assert config.top_k == 6
        assert config.embed_batch_size == 10
        assert config.temperature == 0.0
        assert config.embedding_model == "text-embedding-3-small"
        assert config.chat_model == "gpt-4o-mini"

    def test_keyword_sets(self) -> None:
        """Should carry the fixed heuristic keyword sets."""
        config = AppConfig()

        assert "pre-existing" in config.reject_keywords
        assert "waiting period" in config.reject_keywords
        assert "shall be paid" in config.approve_keywords
        assert config.reject_keywords == REJECT_KEYWORDS
        assert config.approve_keywords == APPROVE_KEYWORDS

    def test_model_label(self) -> None:
        """Should describe both models for the response metadata."""
        config = AppConfig()

        assert config.model_label == "embedding:text-embedding-3-small + gpt-4o-mini (chat)"

    @pytest.mark.parametrize("overlap", [900, 1000])
    def test_overlap_not_smaller_than_window(self, overlap: int) -> None:
        """Should reject overlap >= window_size at construction."""
        with pytest.raises(ConfigError):
            AppConfig(window_size=900, overlap=overlap)

    def test_config_error_is_value_error(self) -> None:
        """Should be catchable as ValueError."""
        with pytest.raises(ValueError):
            AppConfig(top_k=0)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"window_size": 0},
            {"overlap": -1},
            {"top_k": 0},
            {"embed_batch_size": 0},
            {"extract_workers": 0},
            {"llm_timeout": 0},
            {"embedding_backend": "word2vec"},
        ],
    )
    def test_invalid_values(self, kwargs: dict) -> None:
        """Should reject out-of-range values."""
        with pytest.raises(ConfigError):
            AppConfig(**kwargs)


class TestFromEnv:
    """Test AppConfig.from_env."""

    def test_empty_environment(self) -> None:
        """Should fall back to defaults."""
        config = AppConfig.from_env({})

        assert config.openai_api_key is None
        assert config.top_k == 6

    def test_overrides(self) -> None:
        """Should read API key and numeric overrides."""
        config = AppConfig.from_env(
            {
                "OPENAI_API_KEY": "sk-test",
                "CLAIMCHECK_TOP_K": "3",
                "CLAIMCHECK_WINDOW_SIZE": "500",
                "CLAIMCHECK_OVERLAP": "50",
                "CLAIMCHECK_LLM_TIMEOUT": "12.5",
                "CLAIMCHECK_CHAT_MODEL": "gpt-4o",
            }
        )

        assert config.openai_api_key == "sk-test"
        assert config.top_k == 3
        assert config.window_size == 500
        assert config.overlap == 50
        assert config.llm_timeout == 12.5
        assert config.chat_model == "gpt-4o"

    def test_local_backend_default_model(self) -> None:
        """Should pick a sentence-transformers model for the local backend."""
        config = AppConfig.from_env({"CLAIMCHECK_EMBEDDING_BACKEND": "sentence-transformers"})

        assert config.embedding_backend == "sentence-transformers"
        assert config.embedding_model.startswith("sentence-transformers/")

    def test_bad_integer(self) -> None:
        """Should raise ConfigError for non-numeric overrides."""
        with pytest.raises(ConfigError, match="CLAIMCHECK_TOP_K"):
            AppConfig.from_env({"CLAIMCHECK_TOP_K": "many"})

    def test_invalid_range_from_env(self) -> None:
        """Should validate ranges for environment overrides too."""
        with pytest.raises(ConfigError):
            AppConfig.from_env({"CLAIMCHECK_WINDOW_SIZE": "100", "CLAIMCHECK_OVERLAP": "100"})
