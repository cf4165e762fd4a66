"""Embedding providers for vector generation.

``SentenceTransformerEmbedder`` lives in
``docindex.embedders.sentence_transformer`` and is imported on demand, since
it loads torch.
"""

from docindex.embedders.ollama import OllamaEmbedder

__all__ = ["OllamaEmbedder"]
