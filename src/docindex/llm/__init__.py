"""Chat-completion backends."""

from docindex.llm.ollama import OllamaLlm, parse_chat_response

__all__ = ["OllamaLlm", "parse_chat_response"]
