"""FastMCP server exposing a document index to agents."""

from typing import Optional

from mcp.server.fastmcp import FastMCP

from docindex.errors import ApiError, ThresholdRangeError
from docindex.models import IndexStats, RagAnswer, SearchResult
from docindex.protocols import EmbeddingProvider, LlmService
from docindex.search import RagOrchestrator, SemanticSearch
from docindex.storage import DocumentStore


def format_results(query: str, results: list[SearchResult]) -> str:
    """Render search results as a numbered list with scores."""
    if not results:
        return f"No results found for: {query}"

    lines = []
    for i, r in enumerate(results, 1):
        # Truncate long text snippets
        text = r.content[:200].replace("\n", " ")
        if len(r.content) > 200:
            text += "..."

        lines.append(f"{i}. [{r.similarity:.3f}] {r.document.file_path} (chunk {r.chunk.chunk_index})")
        lines.append(f"   {text}")
        lines.append("")

    return "\n".join(lines)


def format_answer(result: RagAnswer) -> str:
    lines = [result.answer, ""]
    if result.sources:
        lines.append("Sources:")
        for source in result.sources:
            lines.append(f"  - {source.document_path} (chunk {source.chunk_index})")
    else:
        lines.append("Sources: none (no relevant context found)")
    return "\n".join(lines)


def format_stats(stats: IndexStats) -> str:
    return (
        f"Documents: {stats.documents}\n"
        f"Chunks: {stats.chunks}\n"
        f"Embeddings: {stats.embeddings}"
    )


def create_mcp_server(
    store: DocumentStore,
    embedder: EmbeddingProvider,
    llm: LlmService,
) -> FastMCP:
    """Create an MCP server over an existing index.

    Args:
        store: Opened document store
        embedder: Provider matching the model the index was built with
        llm: Chat backend for reranking and answers

    Returns:
        Configured FastMCP server instance
    """
    mcp = FastMCP(
        name="docindex",
    )

    semantic = SemanticSearch(store, embedder)
    rag = RagOrchestrator(semantic, llm)

    @mcp.tool()
    def search(query: str, top_k: int = 10) -> str:
        """Semantic search across the indexed documents.

        Use this to find relevant content by concept, not just keyword.

        Args:
            query: Natural language description of what you're looking for
            top_k: Maximum number of results to return (default: 10)

        Returns:
            Ranked list of relevant chunks with similarity scores
        """
        try:
            results = semantic.search(query, top_k)
        except ApiError as e:
            return f"Search failed: {e}"
        return format_results(query, results)

    @mcp.tool()
    def ask(
        question: str,
        top_k: int = 5,
        enable_reranking: bool = False,
        relevance_threshold: Optional[float] = None,
    ) -> str:
        """Answer a question from the indexed documents.

        Args:
            question: The question to answer
            top_k: Number of chunks to ground the answer on
            enable_reranking: Rescore candidates with the LLM (slower)
            relevance_threshold: Minimum relevance in [0.0, 1.0]

        Returns:
            The answer followed by its source documents
        """
        try:
            result = rag.answer_with_rag(
                question,
                top_k=top_k,
                enable_reranking=enable_reranking,
                relevance_threshold=relevance_threshold,
            )
        except (ApiError, ThresholdRangeError) as e:
            return f"Error: {e}"
        return format_answer(result)

    @mcp.tool()
    def stats() -> str:
        """Show how many documents, chunks and embeddings are indexed."""
        return format_stats(store.get_stats())

    return mcp
