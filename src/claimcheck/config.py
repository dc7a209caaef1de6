"""Application configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Literal, Mapping

from claimcheck.errors import ConfigError

DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"
DEFAULT_LOCAL_EMBEDDING_MODEL = "sentence-transformers/all-mpnet-base-v2"
DEFAULT_CHAT_MODEL = "gpt-4o-mini"

REJECT_KEYWORDS: tuple[str, ...] = (
    "not covered",
    "exclusion",
    "deductible not",
    "pre-existing",
    "waiting period",
    "not eligible",
    "excludes",
)
APPROVE_KEYWORDS: tuple[str, ...] = (
    "covered",
    "shall be paid",
    "payable",
    "benefit",
    "eligible",
    "entitled",
)


@dataclass(slots=True)
class AppConfig:
    window_size: int = 900
    overlap: int = 150
    top_k: int = 6
    embed_batch_size: int = 10
    clause_excerpt_chars: int = 300
    embedding_backend: Literal["openai", "sentence-transformers"] = "openai"
    embedding_model: str = DEFAULT_EMBEDDING_MODEL
    chat_model: str = DEFAULT_CHAT_MODEL
    max_output_tokens: int = 600
    temperature: float = 0.0
    llm_timeout: float = 60.0
    fetch_timeout: float = 30.0
    extract_workers: int = 4
    openai_api_key: str | None = None
    reject_keywords: tuple[str, ...] = field(default=REJECT_KEYWORDS)
    approve_keywords: tuple[str, ...] = field(default=APPROVE_KEYWORDS)

    def __post_init__(self) -> None:
        if self.window_size <= 0:
            raise ConfigError(f"window_size must be positive, got {self.window_size}")
        if self.overlap < 0:
            raise ConfigError(f"overlap must not be negative, got {self.overlap}")
        if self.overlap >= self.window_size:
            raise ConfigError(
                f"overlap ({self.overlap}) must be smaller than window_size ({self.window_size})"
            )
        if self.top_k < 1:
            raise ConfigError(f"top_k must be at least 1, got {self.top_k}")
        if self.embed_batch_size < 1:
            raise ConfigError(f"embed_batch_size must be at least 1, got {self.embed_batch_size}")
        if self.extract_workers < 1:
            raise ConfigError(f"extract_workers must be at least 1, got {self.extract_workers}")
        if self.clause_excerpt_chars < 1:
            raise ConfigError("clause_excerpt_chars must be at least 1")
        if self.llm_timeout <= 0 or self.fetch_timeout <= 0:
            raise ConfigError("timeouts must be positive")
        if self.embedding_backend not in ("openai", "sentence-transformers"):
            raise ConfigError(f"Unknown embedding backend: {self.embedding_backend}")

    @property
    def model_label(self) -> str:
        return f"embedding:{self.embedding_model} + {self.chat_model} (chat)"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AppConfig":
        """Build a config from ``OPENAI_API_KEY`` and ``CLAIMCHECK_*`` variables."""
        env = os.environ if environ is None else environ
        kwargs: dict[str, object] = {"openai_api_key": env.get("OPENAI_API_KEY") or None}

        int_options = {
            "CLAIMCHECK_WINDOW_SIZE": "window_size",
            "CLAIMCHECK_OVERLAP": "overlap",
            "CLAIMCHECK_TOP_K": "top_k",
            "CLAIMCHECK_EMBED_BATCH_SIZE": "embed_batch_size",
            "CLAIMCHECK_MAX_OUTPUT_TOKENS": "max_output_tokens",
            "CLAIMCHECK_EXTRACT_WORKERS": "extract_workers",
        }
        float_options = {
            "CLAIMCHECK_LLM_TIMEOUT": "llm_timeout",
            "CLAIMCHECK_FETCH_TIMEOUT": "fetch_timeout",
        }
        str_options = {
            "CLAIMCHECK_EMBEDDING_BACKEND": "embedding_backend",
            "CLAIMCHECK_EMBEDDING_MODEL": "embedding_model",
            "CLAIMCHECK_CHAT_MODEL": "chat_model",
        }

        for name, attr in int_options.items():
            if env.get(name):
                try:
                    kwargs[attr] = int(env[name])
                except ValueError as exc:
                    raise ConfigError(f"{name} must be an integer, got {env[name]!r}") from exc
        for name, attr in float_options.items():
            if env.get(name):
                try:
                    kwargs[attr] = float(env[name])
                except ValueError as exc:
                    raise ConfigError(f"{name} must be a number, got {env[name]!r}") from exc
        for name, attr in str_options.items():
            if env.get(name):
                kwargs[attr] = env[name]

        # A local backend without an explicit model falls back to the sentence-transformers default
        if (
            kwargs.get("embedding_backend") == "sentence-transformers"
            and "embedding_model" not in kwargs
        ):
            kwargs["embedding_model"] = DEFAULT_LOCAL_EMBEDDING_MODEL

        return cls(**kwargs)  # type: ignore[arg-type]
