"""
Shared exceptions for global-marks.

Domain-specific exceptions used across services.

Exception Hierarchy:
    GlobalMarksError (base)
    ├── PersistenceError (persisted file unreadable/unwritable/corrupt)
    ├── MarkResolutionError (jump target lookup failures)
    │   ├── MarkNotFoundError (no record in host or store)
    │   └── UnresolvableMarkError (document not shown in any view)
    ├── ShimInstallConflictError (mark keystroke already bound by the user)
    └── CapabilityUnavailableError (host lacks a probed capability)
"""

from __future__ import annotations

from pathlib import Path


class GlobalMarksError(Exception):
    """Base exception for all global-marks errors."""


class PersistenceError(GlobalMarksError):
    """Raised when the persisted mark file cannot be read or written."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f'Cannot persist marks at {path}: {reason}')


class MarkResolutionError(GlobalMarksError):
    """Base exception for jump resolution failures."""


class MarkNotFoundError(MarkResolutionError):
    """Raised when neither the host nor the store knows the mark."""

    def __init__(self, mark_id: str) -> None:
        self.mark_id = mark_id
        super().__init__(f"Mark '{mark_id}' not registered.")


class UnresolvableMarkError(MarkResolutionError):
    """Raised when the mark's document is not open in any view."""

    def __init__(self, mark_id: str, document_id: int, document_name: str) -> None:
        self.mark_id = mark_id
        self.document_id = document_id
        self.document_name = document_name
        super().__init__(
            f"Buffer for mark '{mark_id}' ({document_name}) is not open in any split. Open it to jump."
        )


class ShimInstallConflictError(GlobalMarksError):
    """Raised when the mark keystroke already carries a user binding."""

    def __init__(self, key: str, binding: object) -> None:
        self.key = key
        self.binding = binding
        super().__init__(
            f"Key '{key}' is already mapped by the user; mark tracking falls back to explicit refreshes."
        )


class CapabilityUnavailableError(GlobalMarksError):
    """Raised by host probes when the requested capability does not exist."""

    def __init__(self, capability: str) -> None:
        self.capability = capability
        super().__init__(f'Host capability unavailable: {capability}')
