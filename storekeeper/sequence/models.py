"""Data models for identifier allocation."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Identifier(BaseModel):
    """An allocated identifier: integer value plus its namespace presentation."""

    model_config = ConfigDict(frozen=True)

    namespace: str
    value: int = Field(..., ge=0)
    formatted: str

    def __str__(self) -> str:
        return self.formatted


class SequenceGap(BaseModel):
    """Inclusive range of unused values between two used ones."""

    start: int
    end: int


class SequenceStatus(BaseModel):
    """Snapshot of a namespace's used values."""

    namespace: str
    used_numbers: List[int]
    gaps: List[SequenceGap]
    duplicates: List[int] = Field(default_factory=list, description="Values carried by more than one document")
    next_available: Optional[str] = Field(None, description="None once the namespace has no values left")
    total_used: int
