"""Configuration for global-marks."""

from __future__ import annotations

from global_marks.config.base import BaseMarksSettings, get_settings, lazy_settings
from global_marks.config.marks import MarksSettings, settings

__all__ = [
    'BaseMarksSettings',
    'MarksSettings',
    'get_settings',
    'lazy_settings',
    'settings',
]
