"""Semantic memory tools for LLM hosts, backed by Qdrant."""

__version__ = "1.0.0"
