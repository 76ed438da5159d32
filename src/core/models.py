# src/core/models.py — v2
"""Shared Pydantic domain models used across modules.

A Document is the unit flowing through a pipeline: the source record
(id, text, metadata) plus the annotations attached by preprocessing.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator


class Annotation(BaseModel):
    """Typed span over the document text."""

    type: str
    begin: int = Field(ge=0)
    end: int = Field(ge=0)
    features: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def validate_span(self) -> Annotation:
        if self.end < self.begin:
            raise ValueError(
                f"Annotation end ({self.end}) must be >= begin ({self.begin})"
            )
        return self

    def covered_text(self, text: str) -> str:
        """Return the slice of text covered by this annotation."""
        return text[self.begin : self.end]


class Document(BaseModel):
    """Source record plus annotations added by preprocessing."""

    id: str = Field(min_length=1)
    text: str = ""
    annotations: list[Annotation] = Field(default_factory=list)
    metadata: dict[str, str] = Field(default_factory=dict)

    def select(self, annotation_type: str) -> list[Annotation]:
        """Return annotations of the given type, in document order."""
        return sorted(
            (a for a in self.annotations if a.type == annotation_type),
            key=lambda a: (a.begin, a.end),
        )

    @property
    def annotation_types(self) -> dict[str, set[str]]:
        """Map each annotation type to the feature names it carries."""
        types: dict[str, set[str]] = {}
        for annotation in self.annotations:
            types.setdefault(annotation.type, set()).update(annotation.features)
        return types
