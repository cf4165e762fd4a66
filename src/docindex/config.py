"""Runtime settings for DocIndex.

Values come from (highest priority first) CLI flags, ``DOCINDEX_*``
environment variables, a ``.env`` file in the working directory, and the
defaults below.
"""

from dataclasses import dataclass
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DOCINDEX_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Storage ---
    db_path: str = "./index.db"

    # --- Backends ---
    ollama_url: str = "http://localhost:11434"
    embedder: Literal["ollama", "local"] = "ollama"
    embedding_model: str = "nomic-embed-text:latest"
    local_embedding_model: str = "all-MiniLM-L6-v2"
    llm_model: str = "llama3.1:8b"

    # --- HTTP ---
    connect_timeout: float = 30.0
    embed_timeout: float = 60.0
    llm_timeout: float = 300.0
    max_retries: int = Field(default=3, ge=1)
    backoff_base: float = Field(default=1.0, ge=0.0)
    backoff_max: float = Field(default=8.0, ge=0.0)

    # --- Indexing ---
    chunk_size: int = Field(default=512, gt=0)
    overlap_size: int = Field(default=50, ge=0)
    max_file_size: int = 10 * 1024 * 1024
    index_workers: int = Field(default=1, ge=1)
    ignore_file: str = ".gitignore"


@dataclass(frozen=True)
class RagSettings:
    """Tuning constants of the RAG pipeline.

    The pre-filter threshold is ``min(threshold * pre_filter_factor,
    pre_filter_cap)``; the rerank pool defaults to ``top_k *
    rerank_pool_factor`` candidates.
    """

    pre_filter_factor: float = 0.5
    pre_filter_cap: float = 0.1
    rerank_pool_factor: int = 2
    context_separator: str = "\n\n----\n\n"
    empty_context: str = "No context found."
