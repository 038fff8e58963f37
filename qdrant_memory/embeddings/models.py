"""Embedding data models."""

from typing import Self

from pydantic import BaseModel, Field, model_validator


class EmbeddingResult(BaseModel):
    """One vector returned by the embedding provider, paired with its input."""

    text: str = Field(description="Text that was embedded")
    embedding: list[float] = Field(description="Embedding vector")
    model: str = Field(description="Model that produced the vector")
    dimensions: int = Field(description="Vector length")

    @model_validator(mode="after")
    def check_dimensions(self) -> Self:
        if self.dimensions != len(self.embedding):
            raise ValueError(
                f"dimensions ({self.dimensions}) does not match "
                f"embedding length ({len(self.embedding)})"
            )
        return self
