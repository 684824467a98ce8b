"""
Base configuration for global-marks.

Shared settings and helper functions for all entry points (editor integration, CLI).
"""

from __future__ import annotations

import os
import pathlib
from typing import TypeVar

import lazy_object_proxy
import pydantic
import pydantic_settings

T = TypeVar('T', bound='BaseMarksSettings')


class BaseMarksSettings(pydantic_settings.BaseSettings):
    """Shared configuration across all global-marks entry points."""

    model_config = pydantic_settings.SettingsConfigDict(
        env_prefix='GLOBAL_MARKS_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=True,  # Fail fast on misconfiguration
        extra='forbid',  # Reject unknown settings
    )

    # Application metadata
    APP_NAME: str = 'global-marks'
    VERSION: str = '0.1.0'

    # Persistence
    PERSIST_FILE: pathlib.Path = pathlib.Path.home() / '.global-marks' / 'global_marks.json'

    @pydantic.field_validator('PERSIST_FILE')
    @classmethod
    def expand_persist_file(cls, v: pathlib.Path) -> pathlib.Path:
        """Allow '~' in configured paths."""
        return v.expanduser()


def get_settings(settings_class: type[T], env_file: str | None = None) -> T:
    """
    Factory for creating settings with dynamic .env file loading.

    LOAD_ENV_FILE environment variable specifies custom .env file path.
    When unset (production), loads from environment variables only.

    Args:
        settings_class: Settings class to instantiate
        env_file: Optional path to .env file (overrides LOAD_ENV_FILE)

    Returns:
        Settings instance

    Raises:
        FileNotFoundError: If specified .env file doesn't exist
    """
    env_file_path = env_file or os.getenv('LOAD_ENV_FILE')

    if not env_file_path:
        return settings_class()  # No .env file, load from environment only

    resolved_path = pathlib.Path(env_file_path).resolve()
    if not resolved_path.exists():
        raise FileNotFoundError(f'Environment file not found: {resolved_path}')

    return settings_class(_env_file=resolved_path)


def lazy_settings(settings_class: type[T]) -> T:
    """
    Lazy settings - defers instantiation until first access.

    Args:
        settings_class: Settings class to instantiate

    Returns:
        Proxy that instantiates settings on first access
    """
    return lazy_object_proxy.Proxy(lambda: get_settings(settings_class))
