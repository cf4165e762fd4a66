"""Protocol for chat-completion backends."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class LlmService(Protocol):
    """A chat model answering one user message under one system prompt."""

    def generate_answer(self, system_prompt: str, user_message: str) -> str:
        """Return the model's reply text.

        Raises:
            ApiError: when the backend is unreachable, answers with a
                non-success status, or returns an unusable payload.
        """
        ...
