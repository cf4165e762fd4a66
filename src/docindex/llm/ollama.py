"""Chat completion backed by an Ollama server."""

import json
import logging
from typing import Optional

import requests

from docindex.errors import ApiError, ErrorKind
from docindex.utils.http import Timeout, post_json
from docindex.utils.retry import call_with_retry

logger = logging.getLogger(__name__)


class OllamaLlm:
    """LLM service calling Ollama's ``/api/chat`` endpoint."""

    DEFAULT_MODEL = "llama3.1:8b"
    DEFAULT_URL = "http://localhost:11434"

    def __init__(
        self,
        base_url: str = DEFAULT_URL,
        model_name: str | None = None,
        timeout: Timeout = (30.0, 300.0),
        retries: int = 3,
        backoff_base: float = 1.0,
        backoff_max: float = 8.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.model_name = model_name or self.DEFAULT_MODEL
        self.timeout = timeout
        self.retries = retries
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.session = session or requests.Session()

    def generate_answer(self, system_prompt: str, user_message: str) -> str:
        """Send one system + user exchange and return the reply text."""
        return call_with_retry(
            lambda: self._request(system_prompt, user_message),
            retries=self.retries,
            base=self.backoff_base,
            cap=self.backoff_max,
            what=f"Chat request to {self.base_url}",
        )

    def _request(self, system_prompt: str, user_message: str) -> str:
        url = f"{self.base_url}/api/chat"
        logger.debug(f"Chat request: model={self.model_name}, user message {len(user_message)} chars")
        response = post_json(
            self.session,
            url,
            {
                "model": self.model_name,
                "messages": [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_message},
                ],
                "stream": False,
            },
            self.timeout,
        )
        answer = parse_chat_response(response.text)
        logger.debug(f"Chat answer: {answer[:200]!r}")
        return answer

    def close(self) -> None:
        self.session.close()


def parse_chat_response(raw: str) -> str:
    """Extract the reply from a chat response body.

    Ollama returns one JSON object when ``stream`` is false but NDJSON
    fragments when streaming is forced server-side; both are accepted and
    fragments are concatenated in order.

    Raises:
        ApiError: MALFORMED if no line carries ``message.content``.
    """
    parts = []
    found = False
    for line in raw.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            payload = json.loads(line)
        except ValueError as e:
            raise ApiError(ErrorKind.MALFORMED, f"Chat response is not JSON: {line[:100]!r}") from e
        message = payload.get("message") if isinstance(payload, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if isinstance(content, str):
            parts.append(content)
            found = True

    if not found:
        raise ApiError(ErrorKind.MALFORMED, "Chat response has no message content")
    return "".join(parts).strip()
