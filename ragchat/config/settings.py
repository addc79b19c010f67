"""
RagChat - Centralized Configuration
====================================
Uses ``pydantic-settings`` (``BaseSettings``) to load *all* configuration
from environment variables and the project-level ``.env`` file.

Security
--------
- ``GOOGLE_API_KEY`` is typed as ``SecretStr`` and has **no default value**.
  If the key is missing at startup, Pydantic raises a ``ValidationError``
  with a clear error message.  The raw value is never exposed in repr,
  logs, or tracebacks.

Paths
-----
All filesystem paths are ``Path.resolve()``-d at class level so they
work identically on Windows, WSL, and Linux.

Retrieval
---------
``SIMILARITY_THRESHOLD`` and ``SEARCH_RESULTS_LIMIT`` default to the
values the chatbot has always used (0.5 floor, top 3) but can be tuned
per deployment.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application-wide settings.

    Every field is loaded from environment variables (or ``.env``).
    Fields *without* a default are **required** — the app will refuse
    to start until they are provided.

    Attributes
    ----------
    GOOGLE_API_KEY : SecretStr
        API key for Google AI Studio (Gemini), used for both embeddings
        and chat completion.  **Required.**
    ENV : Literal["dev", "prod"]
        Environment mode controlling logging verbosity.
    LOG_LEVEL : str | None
        Explicit log level; overrides the ``ENV`` default when set.
    EMBEDDING_MODEL : str
        Model identifier passed to ``GoogleGenerativeAIEmbeddings``.
    LLM_MODEL : str
        Model identifier for the chat session.
    SIMILARITY_THRESHOLD : float
        Cosine-similarity floor; chunks at or below it are never returned.
    SEARCH_RESULTS_LIMIT : int
        Maximum number of chunks injected as context.
    EMBED_TIMEOUT_SECONDS, LLM_TIMEOUT_SECONDS : float
        Per-call timeouts for the two providers.
    MAX_WORKERS : int
        Thread pool size for parallel file extraction + embedding.
    CORS_ORIGINS : list[str]
        Allowed cross-origin callers of the HTTP API.
    """

    # ── Resolved Absolute Paths ────────────────────────────────────────
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    DATA_RAW_DIR: Path = BASE_DIR / "data" / "raw"

    # ── Environment Mode ───────────────────────────────────────────────
    ENV: Literal["dev", "prod"] = "dev"
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None

    # ── API Keys (REQUIRED — no default) ───────────────────────────────
    GOOGLE_API_KEY: SecretStr

    # ── Model Configuration ────────────────────────────────────────────
    EMBEDDING_MODEL: str = "models/gemini-embedding-001"
    EMBEDDING_TASK_TYPE: str = "semantic_similarity"
    LLM_MODEL: str = "gemini-2.0-flash"
    LLM_TEMPERATURE: float = 0.7
    MAX_OUTPUT_TOKENS: int = 500

    # ── Corpus ─────────────────────────────────────────────────────────
    LOAD_SEED_CORPUS: bool = True
    INGEST_ON_STARTUP: bool = True

    # ── Retrieval ──────────────────────────────────────────────────────
    SIMILARITY_THRESHOLD: float = 0.5
    SEARCH_RESULTS_LIMIT: int = 3

    # ── Provider timeouts ──────────────────────────────────────────────
    EMBED_TIMEOUT_SECONDS: float = 30.0
    LLM_TIMEOUT_SECONDS: float = 60.0

    # ── Concurrency ────────────────────────────────────────────────────
    MAX_WORKERS: int = 4

    # ── HTTP ───────────────────────────────────────────────────────────
    PORT: int = 3000
    CORS_ORIGINS: list[str] = ["*"]

    # ── Validators ─────────────────────────────────────────────────────

    @field_validator("SIMILARITY_THRESHOLD")
    @classmethod
    def _threshold_range(cls, v: float) -> float:
        if not -1.0 <= v <= 1.0:
            raise ValueError(f"SIMILARITY_THRESHOLD must be within [-1, 1], got {v}")
        return v


    @field_validator("SEARCH_RESULTS_LIMIT", "MAX_OUTPUT_TOKENS")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"value must be ≥ 1, got {v}")
        return v


    @field_validator("LLM_TEMPERATURE")
    @classmethod
    def _temperature_range(cls, v: float) -> float:
        if not 0.0 <= v <= 2.0:
            raise ValueError(f"LLM_TEMPERATURE must be 0.0–2.0, got {v}")
        return v


    @field_validator("EMBED_TIMEOUT_SECONDS", "LLM_TIMEOUT_SECONDS")
    @classmethod
    def _timeout_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"timeouts must be > 0, got {v}")
        return v


    @field_validator("MAX_WORKERS")
    @classmethod
    def _workers_range(cls, v: int) -> int:
        if not 1 <= v <= 16:
            raise ValueError(f"MAX_WORKERS must be 1–16, got {v}")
        return v

    # ── Pydantic Settings Configuration ────────────────────────────────
    model_config = SettingsConfigDict(env_file=Path(__file__).resolve().parent.parent.parent / ".env", env_file_encoding="utf-8", extra="ignore")


# ── Singleton Instance ─────────────────────────────────────────────────
# Import this throughout the project:
#     from ragchat.config.settings import settings
settings = Settings()
