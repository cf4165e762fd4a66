"""Construction of the runtime components from settings."""

from docindex.config import Settings
from docindex.embedders import OllamaEmbedder
from docindex.llm import OllamaLlm
from docindex.protocols import EmbeddingProvider
from docindex.storage import DocumentStore


def open_store(settings: Settings) -> DocumentStore:
    """Open (and create if needed) the index database."""
    store = DocumentStore(settings.db_path)
    store.initialize()
    return store


def make_embedder(settings: Settings) -> EmbeddingProvider:
    if settings.embedder == "local":
        # Import here to avoid loading torch unless needed
        from docindex.embedders.sentence_transformer import SentenceTransformerEmbedder

        return SentenceTransformerEmbedder(settings.local_embedding_model)

    return OllamaEmbedder(
        base_url=settings.ollama_url,
        model_name=settings.embedding_model,
        timeout=(settings.connect_timeout, settings.embed_timeout),
        retries=settings.max_retries,
        backoff_base=settings.backoff_base,
        backoff_max=settings.backoff_max,
    )


def make_llm(settings: Settings) -> OllamaLlm:
    return OllamaLlm(
        base_url=settings.ollama_url,
        model_name=settings.llm_model,
        timeout=(settings.connect_timeout, settings.llm_timeout),
        retries=settings.max_retries,
        backoff_base=settings.backoff_base,
        backoff_max=settings.backoff_max,
    )
