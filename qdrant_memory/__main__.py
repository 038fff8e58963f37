"""Allow ``python -m qdrant_memory``."""

from qdrant_memory.server import main

main()
