"""LLM-based reranking of search results."""

import logging
import re
import string
from typing import Protocol, runtime_checkable

from docindex.errors import ApiError, ScoreParseError
from docindex.models import RerankedResult, SearchResult
from docindex.protocols import LlmService

logger = logging.getLogger(__name__)

RERANK_SYSTEM_PROMPT = """\
You are an expert at judging how relevant a text fragment is to a query.
Rate how relevant the given fragment is to the given query.
Return ONLY a number from 0.0 to 1.0, where:
- 0.0 means completely irrelevant
- 1.0 means completely relevant
Do not add any explanation, only the number."""

_IN_RANGE = re.compile(r"^(?:0(?:\.\d+)?|\.\d+|1(?:\.0+)?)$")
_ANY_NUMBER = re.compile(r"-?(?:\d+(?:\.\d+)?|\.\d+)")
_LEADING_PUNCT = string.punctuation.replace(".", "").replace("-", "")


def parse_relevance_score(response: str) -> float:
    """Read a relevance score in [0.0, 1.0] from free-form model output.

    The first whitespace-separated token that is a number in range wins
    (surrounding punctuation ignored). Failing that, the first number
    anywhere in the text is clamped into range.

    Raises:
        ScoreParseError: if the response contains no number at all
    """
    cleaned = response.replace("\r", " ").replace("\n", " ").strip()

    for token in cleaned.split():
        token = token.lstrip(_LEADING_PUNCT).rstrip(string.punctuation)
        if _IN_RANGE.match(token):
            return float(token)

    match = _ANY_NUMBER.search(cleaned)
    if match is not None:
        return min(1.0, max(0.0, float(match.group())))

    raise ScoreParseError(f"No relevance score in response: {response[:100]!r}")


def build_rerank_message(query: str, content: str) -> str:
    return (
        f"Query: {query}\n"
        "\n"
        "Text fragment:\n"
        f"{content}\n"
        "\n"
        "Relevance score (a single number from 0.0 to 1.0):"
    )


@runtime_checkable
class Reranker(Protocol):
    """Re-scores search results with a more precise relevance estimate."""

    def rerank(self, query: str, results: list[SearchResult]) -> list[RerankedResult]:
        """Return rescored results, best first."""
        ...


class LlmReranker:
    """Ask an LLM to score each candidate.

    One request per candidate, issued sequentially. A candidate whose
    request fails or whose answer holds no score is dropped, never scored
    as zero.
    """

    def __init__(self, llm: LlmService, system_prompt: str = RERANK_SYSTEM_PROMPT):
        self.llm = llm
        self.system_prompt = system_prompt

    def score(self, query: str, result: SearchResult) -> float:
        response = self.llm.generate_answer(
            self.system_prompt, build_rerank_message(query, result.content)
        )
        return parse_relevance_score(response)

    def rerank(self, query: str, results: list[SearchResult]) -> list[RerankedResult]:
        reranked = []
        for result in results:
            try:
                score = self.score(query, result)
            except (ApiError, ScoreParseError) as e:
                logger.warning(
                    f"Dropping chunk {result.chunk.id} of {result.document.file_name} from rerank: {e}"
                )
                continue
            reranked.append(RerankedResult(search_result=result, rerank_score=score))

        logger.debug(f"Reranked {len(reranked)} of {len(results)} candidates")
        return sorted(reranked, key=lambda r: r.rerank_score, reverse=True)
