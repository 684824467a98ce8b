"""
global-marks: durable named bookmarks over documents open in several views.

Public entry point is MarksSession; the service layer lives in global_marks.services.
"""

from __future__ import annotations

from global_marks.session import MarksSession

__all__ = ['MarksSession']
