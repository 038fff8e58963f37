"""Prometheus metrics for the memory server.

Provides metrics instrumentation for:
- Tool call latency and outcomes
- Embedding request latency and batch sizes
- Vector store operation latency
- Search result counts and top scores
"""

from prometheus_client import (
    Counter,
    Histogram,
    start_http_server,
)

from qdrant_memory.logging_config import get_logger

logger = get_logger(__name__)


# Tool Call Metrics
TOOL_CALL_DURATION = Histogram(
    "tool_call_duration_seconds",
    "Tool call duration in seconds",
    ["tool", "outcome"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

TOOL_CALL_TOTAL = Counter(
    "tool_calls_total",
    "Total tool calls",
    ["tool", "outcome"],  # "outcome" label values: success, failure, error
)


# Embedding Metrics
EMBEDDING_REQUEST_DURATION = Histogram(
    "embedding_request_duration_seconds",
    "Embedding request duration in seconds",
    ["model", "status"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0],
)

EMBEDDING_REQUEST_TOTAL = Counter(
    "embedding_requests_total",
    "Total embedding requests",
    ["model", "status"],
)

EMBEDDING_BATCH_SIZE = Histogram(
    "embedding_batch_size",
    "Embedding batch size",
    ["model"],
    buckets=[1, 5, 10, 25, 50, 100, 250, 500],
)


# Vector Store Metrics
VECTORSTORE_OPERATION_DURATION = Histogram(
    "vectorstore_operation_duration_seconds",
    "Vector store operation duration",
    ["operation", "status"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0],
)

VECTORSTORE_OPERATION_TOTAL = Counter(
    "vectorstore_operations_total",
    "Total vector store operations",
    ["operation", "status"],
)


# Search Metrics
SEARCH_RESULTS_RETURNED = Histogram(
    "search_results_returned",
    "Number of memories returned per search",
    buckets=[0, 1, 2, 3, 5, 10, 20, 50],
)

SEARCH_TOP_SCORE = Histogram(
    "search_top_score",
    "Top similarity score per search",
    buckets=[0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0],
)


def start_metrics_server(port: int, addr: str = "0.0.0.0") -> None:
    """Expose the default registry over HTTP in a background thread.

    Args:
        port: TCP port to listen on.
        addr: Bind address.
    """
    start_http_server(port, addr=addr)
    logger.info(f"Metrics exporter listening on {addr}:{port}")


def track_tool_call(
    tool: str,
    duration: float,
    outcome: str,
) -> None:
    """Track tool call metrics.

    Args:
        tool: Tool name as requested by the host.
        duration: Handling duration in seconds.
        outcome: "success", "failure" (success:false body) or "error".
    """
    TOOL_CALL_DURATION.labels(tool=tool, outcome=outcome).observe(duration)
    TOOL_CALL_TOTAL.labels(tool=tool, outcome=outcome).inc()


def track_embedding_request(
    model: str,
    duration: float,
    batch_size: int,
    success: bool = True,
) -> None:
    """Track embedding request metrics.

    Args:
        model: Embedding model name.
        duration: Request duration in seconds.
        batch_size: Number of texts in the request.
        success: Whether the request succeeded.
    """
    status = "success" if success else "error"

    EMBEDDING_REQUEST_DURATION.labels(model=model, status=status).observe(duration)
    EMBEDDING_REQUEST_TOTAL.labels(model=model, status=status).inc()
    EMBEDDING_BATCH_SIZE.labels(model=model).observe(batch_size)


def track_vectorstore_operation(
    operation: str,
    duration: float,
    success: bool = True,
) -> None:
    """Track vector store operation metrics.

    Args:
        operation: Operation name (put, query, scroll, ...).
        duration: Operation duration in seconds.
        success: Whether the operation succeeded.
    """
    status = "success" if success else "error"

    VECTORSTORE_OPERATION_DURATION.labels(operation=operation, status=status).observe(
        duration
    )
    VECTORSTORE_OPERATION_TOTAL.labels(operation=operation, status=status).inc()


def track_search_results(
    results_returned: int,
    top_score: float,
) -> None:
    """Track search result metrics.

    Args:
        results_returned: Number of memories returned.
        top_score: Highest similarity score (0 when nothing matched).
    """
    SEARCH_RESULTS_RETURNED.observe(results_returned)
    if top_score > 0:
        SEARCH_TOP_SCORE.observe(top_score)
