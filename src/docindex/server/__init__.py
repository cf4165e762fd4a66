"""MCP server for DocIndex."""

from docindex.server.mcp_server import create_mcp_server, format_answer, format_results, format_stats

__all__ = ["create_mcp_server", "format_results", "format_answer", "format_stats"]
