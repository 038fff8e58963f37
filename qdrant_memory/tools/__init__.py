"""Tool catalogue and dispatch."""

from qdrant_memory.tools.catalogue import TOOL_SPECS, ToolSpec
from qdrant_memory.tools.dispatcher import ToolDispatcher
from qdrant_memory.tools.models import ToolOutcome

__all__ = [
    "TOOL_SPECS",
    "ToolDispatcher",
    "ToolOutcome",
    "ToolSpec",
]
