"""CLI entry point for DocIndex."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Literal, cast

from docindex.chunkers import ChunkConfig
from docindex.components import make_embedder, make_llm, open_store
from docindex.config import Settings
from docindex.errors import ApiError, ChunkingError, DocIndexError, ThresholdRangeError
from docindex.indexing import DocumentIndexer
from docindex.ingesters import FolderScanner
from docindex.search import RagOrchestrator, SemanticSearch, validate_threshold
from docindex.utils.ignore import IgnoreRules

logger = logging.getLogger(__name__)


def index(settings: Settings, path: str, ignore_file: str | None, excludes: list[str], streaming: bool) -> None:
    """Index a directory incrementally.

    Args:
        settings: Effective settings
        path: Directory to index
        ignore_file: Ignore file relative to the directory (default .gitignore)
        excludes: Extra ignore patterns
        streaming: Read files through the streaming chunker
    """
    root = Path(path)
    if not root.is_dir():
        logger.error(f"Directory does not exist: {path}")
        sys.exit(1)

    try:
        config = ChunkConfig(settings.chunk_size, settings.overlap_size)
    except ChunkingError as e:
        logger.error(str(e))
        sys.exit(1)

    ignore = IgnoreRules.defaults()
    ignore_path = root / (ignore_file or settings.ignore_file)
    project_patterns = IgnoreRules.read_patterns(ignore_path)
    if project_patterns:
        ignore.extend(project_patterns)
        logger.info(f"Loaded {ignore_path}, {len(ignore)} ignore patterns in total")
    ignore.extend(excludes)

    store = open_store(settings)
    embedder = make_embedder(settings)
    scanner = FolderScanner(ignore=ignore, max_file_size=settings.max_file_size)
    indexer = DocumentIndexer(
        store,
        embedder,
        config,
        scanner=scanner,
        streaming=streaming,
        max_workers=settings.index_workers,
    )

    logger.info(f"Indexing {root} with {embedder.model_name}...")

    def on_progress(processed: int, total: int) -> None:
        logger.info(f"Progress: {processed}/{total} files")

    summary = indexer.index_directory(root, on_progress=on_progress)

    logger.info("")
    logger.info(
        f"Indexed {summary.indexed}, unchanged {summary.skipped}, failed {summary.failed} "
        f"of {summary.total} files ({summary.chunks} chunks written)"
    )
    for failed_path, reason in summary.failures.items():
        logger.info(f"  FAILED {failed_path}: {reason}")


def search(settings: Settings, query: str, top_k: int) -> None:
    """Print the top-k chunks for a query."""
    store = open_store(settings)
    semantic = SemanticSearch(store, make_embedder(settings))

    print(f'Searching for: "{query}"\n')
    try:
        results = semantic.search(query, top_k)
    except DocIndexError as e:
        logger.error(f"Search failed: {e}")
        sys.exit(1)

    if not results:
        print("No results found.")
        return

    for i, result in enumerate(results, 1):
        print("=" * 80)
        print(f"Result {i} (similarity: {result.similarity:.4f})")
        print(f"File: {result.document.file_path}")
        print(f"Type: {result.document.file_type}  Chunk: {result.chunk.chunk_index}")
        print("-" * 80)
        print(result.content)
        print()


def stats(settings: Settings) -> None:
    """Show index statistics."""
    store = open_store(settings)
    counts = store.get_stats()

    print("Index Statistics:")
    print(f"  Database: {settings.db_path}")
    print(f"  Documents: {counts.documents}")
    print(f"  Chunks: {counts.chunks}")
    print(f"  Embeddings: {counts.embeddings}")
    for key in ["embedding_model", "last_indexed_root", "last_indexed_at"]:
        value = store.get_metadata(key)
        if value:
            print(f"  {key}: {value}")


def clear(settings: Settings) -> None:
    open_store(settings).clear_all()
    print("Index cleared successfully.")


def remove(settings: Settings, path: str) -> None:
    """Remove one document from the index."""
    store = open_store(settings)
    indexer = DocumentIndexer(store, make_embedder(settings))
    if indexer.remove(path):
        print(f"Document removed from index: {path}")
    else:
        print(f"Document not found in index: {path}")


def ask(
    settings: Settings,
    question: str,
    mode: str,
    top_k: int,
    enable_reranking: bool,
    relevance_threshold: float | None,
    rerank_top_k: int | None,
) -> None:
    """Ask a question directly or grounded on the index."""
    store = open_store(settings)
    llm = make_llm(settings)
    rag = RagOrchestrator(SemanticSearch(store, make_embedder(settings)), llm)

    try:
        if mode == "plain":
            print(rag.answer_without_rag(question))
            return
        result = rag.answer_with_rag(
            question,
            top_k=top_k,
            enable_reranking=enable_reranking,
            relevance_threshold=relevance_threshold,
            rerank_top_k=rerank_top_k,
        )
    except (ApiError, ThresholdRangeError) as e:
        logger.error(f"Question failed: {e}")
        sys.exit(1)

    print(result.answer)
    print()
    s = result.stats
    if s is not None:
        print("Pipeline:")
        print(f"  Retrieved: {s.initial_count}")
        if s.after_pre_filter_count is not None:
            print(f"  After pre-filter: {s.after_pre_filter_count}")
        if s.after_rerank_count is not None:
            print(f"  After rerank: {s.after_rerank_count}")
        if s.filtering_enabled:
            print(f"  After threshold: {s.after_filter_count}")
        print(f"  Used as context: {s.final_count}")
    if result.sources:
        print("Sources:")
        for source in result.sources:
            print(f"  - {source.document_name} ({source.document_path}, chunk {source.chunk_index})")
    else:
        print("Sources: none (no relevant context found)")


def serve(settings: Settings, transport: str = "stdio") -> None:
    """Start MCP server for the index.

    Args:
        settings: Effective settings
        transport: Transport protocol (stdio or sse)
    """
    if not Path(settings.db_path).exists():
        logger.error(f"Index not found: {settings.db_path}")
        sys.exit(1)

    # Import here to avoid loading MCP unless needed
    from docindex.server import create_mcp_server

    logger.info(f"Serving {settings.db_path} via {transport}")
    mcp = create_mcp_server(open_store(settings), make_embedder(settings), make_llm(settings))
    mcp.run(transport=cast(Literal["stdio", "sse", "streamable-http"], transport))


def threshold_arg(value: str) -> float:
    """argparse type for --relevance-threshold."""
    try:
        return validate_threshold(float(value))
    except (ValueError, ThresholdRangeError) as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docindex",
        description="DocIndex - semantic search and RAG over a local file tree",
    )
    parser.add_argument("--db-path", help="Path to SQLite index (default: ./index.db)")
    parser.add_argument("--ollama-url", help="Ollama server URL")
    parser.add_argument(
        "--embedder",
        choices=["ollama", "local"],
        help="Embedding backend (default: ollama)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # index command
    index_parser = subparsers.add_parser("index", help="Index a directory")
    index_parser.add_argument("path", help="Directory to index")
    index_parser.add_argument("--chunk-size", type=int, help="Chunk size in characters (default: 512)")
    index_parser.add_argument("--overlap", type=int, help="Overlap size in characters (default: 50)")
    index_parser.add_argument("--ignore-file", help="Ignore file inside the directory (default: .gitignore)")
    index_parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Extra ignore pattern, .gitignore syntax (repeatable)",
    )
    index_parser.add_argument("--workers", type=int, help="Files indexed in parallel (default: 1)")
    index_parser.add_argument(
        "--no-streaming",
        action="store_true",
        help="Read whole files instead of streaming them",
    )

    # search command
    search_parser = subparsers.add_parser("search", help="Search indexed documents")
    search_parser.add_argument("query", help="Search query")
    search_parser.add_argument("--top-k", type=int, default=10, help="Number of results (default: 10)")

    subparsers.add_parser("stats", help="Show index statistics")
    subparsers.add_parser("clear", help="Clear all indexed data")

    remove_parser = subparsers.add_parser("remove", help="Remove a document from the index")
    remove_parser.add_argument("path", help="Path of the indexed file")

    # ask command
    ask_parser = subparsers.add_parser("ask", help="Ask a question with or without RAG")
    ask_parser.add_argument("question", nargs="+", help="Question to ask the model")
    ask_parser.add_argument(
        "--mode",
        choices=["plain", "rag"],
        default="plain",
        help="plain: model only; rag: answer from the index (default: plain)",
    )
    ask_parser.add_argument("--top-k", type=int, default=5, help="Chunks used as context (default: 5)")
    ask_parser.add_argument(
        "--enable-reranking",
        action="store_true",
        help="Rescore candidates with the LLM (slower but more accurate)",
    )
    ask_parser.add_argument(
        "--relevance-threshold",
        type=threshold_arg,
        help="Drop chunks scoring below this value (0.0-1.0)",
    )
    ask_parser.add_argument(
        "--rerank-top-k",
        type=int,
        help="Candidates retrieved for reranking (default: top-k * 2)",
    )

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Start MCP server for the index")
    serve_parser.add_argument(
        "--transport",
        choices=["stdio", "sse"],
        default="stdio",
        help="Transport protocol (default: stdio)",
    )

    return parser


def effective_settings(args: argparse.Namespace) -> Settings:
    """Settings from env/.env with CLI flags applied on top."""
    overrides = {
        "db_path": args.db_path,
        "ollama_url": args.ollama_url,
        "embedder": args.embedder,
        "chunk_size": getattr(args, "chunk_size", None),
        "overlap_size": getattr(args, "overlap", None),
        "index_workers": getattr(args, "workers", None),
    }
    return Settings(**{k: v for k, v in overrides.items() if v is not None})


def main() -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
    )
    # urllib3 logs every connection at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    settings = effective_settings(args)

    if args.command == "index":
        index(settings, args.path, args.ignore_file, args.exclude, streaming=not args.no_streaming)
    elif args.command == "search":
        search(settings, args.query, args.top_k)
    elif args.command == "stats":
        stats(settings)
    elif args.command == "clear":
        clear(settings)
    elif args.command == "remove":
        remove(settings, args.path)
    elif args.command == "ask":
        ask(
            settings,
            " ".join(args.question),
            args.mode,
            args.top_k,
            args.enable_reranking,
            args.relevance_threshold,
            args.rerank_top_k,
        )
    elif args.command == "serve":
        serve(settings, args.transport)


if __name__ == "__main__":
    main()
