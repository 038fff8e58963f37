"""Static catalogue of the tools exposed to the host."""

from dataclasses import dataclass
from typing import Any

from mcp.types import Tool
from pydantic import BaseModel

from qdrant_memory.tools.models import (
    ClearAllArgs,
    ListMemoriesArgs,
    MemoryIdArgs,
    NoArgs,
    SearchMemoryArgs,
    StoreMemoryArgs,
)


@dataclass(frozen=True)
class ToolSpec:
    """A tool name, its description and its argument model."""

    name: str
    description: str
    arguments: type[BaseModel]

    def input_schema(self) -> dict[str, Any]:
        """JSON schema of the arguments."""
        schema = self.arguments.model_json_schema()
        schema.pop("title", None)
        schema.pop("description", None)
        schema.setdefault("properties", {})
        return schema

    def to_tool(self) -> Tool:
        """Protocol-level tool definition."""
        return Tool(
            name=self.name,
            description=self.description,
            inputSchema=self.input_schema(),
        )


TOOL_SPECS: tuple[ToolSpec, ...] = (
    ToolSpec(
        name="store_memory",
        description=(
            "Store information in semantic memory. The information will be "
            "indexed and can be retrieved via semantic search."
        ),
        arguments=StoreMemoryArgs,
    ),
    ToolSpec(
        name="search_memory",
        description=(
            "Search for semantically similar information in memory. Returns the "
            "most relevant results based on vector similarity."
        ),
        arguments=SearchMemoryArgs,
    ),
    ToolSpec(
        name="delete_memory",
        description=(
            "Delete a specific memory by its ID. The ID is returned when "
            "storing a memory."
        ),
        arguments=MemoryIdArgs,
    ),
    ToolSpec(
        name="get_memory",
        description="Retrieve a specific memory by its ID with all its details.",
        arguments=MemoryIdArgs,
    ),
    ToolSpec(
        name="list_memories",
        description=(
            "List stored memories with pagination. Pass the returned "
            "next_offset as offset to get the following page."
        ),
        arguments=ListMemoriesArgs,
    ),
    ToolSpec(
        name="get_stats",
        description=(
            "Get statistics about the memory collection (total count, status, "
            "embedding model)."
        ),
        arguments=NoArgs,
    ),
    ToolSpec(
        name="clear_all_memories",
        description=(
            "Delete ALL memories from the collection. Warning: this action is "
            "irreversible! Requires confirm=true."
        ),
        arguments=ClearAllArgs,
    ),
)

TOOLS_BY_NAME: dict[str, ToolSpec] = {spec.name: spec for spec in TOOL_SPECS}
