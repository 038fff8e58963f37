"""Observability module for metrics and monitoring."""

from qdrant_memory.observability.metrics import (
    start_metrics_server,
    track_embedding_request,
    track_search_results,
    track_tool_call,
    track_vectorstore_operation,
)

__all__ = [
    "start_metrics_server",
    "track_embedding_request",
    "track_search_results",
    "track_tool_call",
    "track_vectorstore_operation",
]
