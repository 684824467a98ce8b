"""
Location codec - reads and writes the persisted mark registry.

Stores the registry as a single JSON file (by default ~/.global-marks/global_marks.json).
Writes go through a temp file + rename under a file lock, so a crash mid-write
leaves the previous file intact.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from filelock import FileLock, Timeout

from global_marks.exceptions import PersistenceError
from global_marks.schemas.persisted import StoreSnapshot, dump_store_document, parse_store_document

__all__ = ['LocationCodec']

logger = logging.getLogger(__name__)


class LocationCodec:
    """Serializes StoreSnapshot objects to and from the persisted file."""

    LOCK_TIMEOUT_SECONDS = 2.0

    def __init__(self, path: Path) -> None:
        """
        Initialize codec.

        Args:
            path: Location of the persisted JSON file (need not exist yet)
        """
        self.path = path
        self.lock_file = path.with_suffix('.lock')

    def load(self) -> StoreSnapshot:
        """
        Read the persisted registry.

        A missing file is an empty registry. Content that decodes but has the wrong
        shape is discarded (see parse_store_document).

        Returns:
            Snapshot of every valid entry

        Raises:
            PersistenceError: If the file exists but cannot be read or is not valid JSON
        """
        if not self.path.exists():
            logger.debug(f'No persisted marks at {self.path}')
            return StoreSnapshot()

        try:
            with self.path.open(encoding='utf-8') as f:
                data = json.load(f)
        except OSError as e:
            raise PersistenceError(self.path, f'unreadable ({e.strerror or e})') from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise PersistenceError(self.path, f'corrupt ({e})') from e

        snapshot = parse_store_document(data)
        logger.info(
            f'Loaded {len(snapshot.global_marks)} global and '
            f'{sum(len(v) for v in snapshot.scoped_marks.values())} scoped marks from {self.path}'
        )
        return snapshot

    def save(self, snapshot: StoreSnapshot) -> Path:
        """
        Write the registry atomically using temp file + rename.

        Args:
            snapshot: State to persist

        Returns:
            Path of the written file

        Raises:
            PersistenceError: If the directory or file cannot be written
        """
        tmp_file = self.path.with_suffix('.tmp.json')
        data = dump_store_document(snapshot)

        try:
            # Ensure directory exists
            self.path.parent.mkdir(parents=True, exist_ok=True)

            with FileLock(self.lock_file, timeout=self.LOCK_TIMEOUT_SECONDS):
                with tmp_file.open('w', encoding='utf-8') as f:
                    json.dump(data, f, indent=2)
                # Atomic rename
                tmp_file.replace(self.path)
        except Timeout as e:
            raise PersistenceError(self.path, f'lock {self.lock_file} is held by another process') from e
        except OSError as e:
            raise PersistenceError(self.path, f'unwritable ({e.strerror or e})') from e

        logger.debug(f'Saved {len(data)} mark keys to {self.path}')
        return self.path
