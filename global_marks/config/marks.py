"""
Mark tracking configuration.

Extends base configuration with annotation and key-interception settings.
"""

from __future__ import annotations

import pydantic

from global_marks.config.base import BaseMarksSettings, lazy_settings


class MarksSettings(BaseMarksSettings):
    """Settings consumed by MarksSession and its services."""

    # Annotations (gutter signs)
    ANNOTATION_PREFIX: str = 'GlobalMarkSign'  # Sign name is '{prefix}_{mark}'
    ANNOTATION_GROUP: str = 'global_marks'
    ANNOTATION_PRIORITY: int = 10
    HANDLE_BASE: int = 1000  # First allocated handle is HANDLE_BASE + 1

    # Compatibility shim
    MARK_KEY: str = 'm'

    @pydantic.field_validator('ANNOTATION_PRIORITY')
    @classmethod
    def validate_priority(cls, v: int) -> int:
        if not 0 <= v <= 1000:
            raise ValueError('ANNOTATION_PRIORITY must be between 0-1000')
        return v

    @pydantic.field_validator('HANDLE_BASE')
    @classmethod
    def validate_handle_base(cls, v: int) -> int:
        if v < 0:
            raise ValueError('HANDLE_BASE must not be negative')
        return v

    @pydantic.field_validator('MARK_KEY')
    @classmethod
    def validate_mark_key(cls, v: str) -> str:
        if len(v) != 1:
            raise ValueError('MARK_KEY must be a single character')
        return v


# Module-level singleton (lazy-loaded)
settings = lazy_settings(MarksSettings)
