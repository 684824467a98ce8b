"""
Shared Pydantic base models.

Persisted and value-object models inherit from StrictModel. Store-owned records that
are updated in place inherit from MutableModel.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class StrictModel(BaseModel):
    """Base model with strict validation settings."""

    model_config = ConfigDict(
        extra='forbid',  # Raise error on unexpected fields
        strict=True,  # Strict type validation
        frozen=True,  # Immutable (cannot modify after creation)
    )


class MutableModel(BaseModel):
    """Strict model whose fields may be reassigned after creation."""

    model_config = ConfigDict(
        extra='forbid',
        strict=True,
        frozen=False,
        validate_assignment=True,
    )
