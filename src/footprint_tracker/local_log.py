"""Append-only local log of stored calculations.

The log is a single named slot holding a JSON array of records, written as
``<storage_dir>/<slot>.json``. Appends read the whole array, add the record
and atomically replace the file while holding an advisory ``portalocker``
lock on a sibling ``.lock`` file. Unreadable content reads as an empty log.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path
from typing import IO

import portalocker

from footprint_tracker.settings import TrackerSettings, get_settings

LOGGER = logging.getLogger(__name__)

__all__ = ["LocalCalculationLog"]


@contextmanager
def _acquire_slot_lock(slot_path: Path) -> Iterator[IO[bytes]]:
    """Hold an exclusive advisory lock for rewrites of ``slot_path``."""
    lock_path = slot_path.with_suffix(slot_path.suffix + ".lock")
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    with lock_path.open("a+b") as lock_fp:
        portalocker.lock(lock_fp, portalocker.LOCK_EX)
        try:
            yield lock_fp
        finally:
            portalocker.unlock(lock_fp)


class LocalCalculationLog:
    """JSON-array log of calculation records stored in a named slot."""

    def __init__(self, storage_dir: str | Path, slot: str = "calculations") -> None:
        self._dir = Path(storage_dir)
        self._slot = slot

    @classmethod
    def from_settings(cls, settings: TrackerSettings | None = None) -> LocalCalculationLog:
        """Build a log using the configured storage directory and slot name."""

        settings_obj = settings or get_settings()
        return cls(settings_obj.resolved_storage_dir, settings_obj.log_slot)

    @property
    def path(self) -> Path:
        return self._dir / f"{self._slot}.json"

    def read_all(self) -> list[dict[str, object]]:
        """Return every record in the slot.

        Returns:
            Records in insertion order. A missing slot, undecodable bytes,
            invalid JSON or a top-level value other than an array yields an
            empty list; entries that are not JSON objects are dropped.
        """

        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except UnicodeDecodeError as exc:
            LOGGER.warning(
                "Local calculation log is not valid UTF-8; treating as empty",
                extra={"path": str(self.path)},
                exc_info=exc,
            )
            return []
        except OSError as exc:
            LOGGER.warning(
                "Local calculation log unreadable",
                extra={"path": str(self.path), "error_type": type(exc).__name__},
                exc_info=exc,
            )
            return []

        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            LOGGER.warning(
                "Local calculation log is not valid JSON; treating as empty",
                extra={"path": str(self.path)},
                exc_info=exc,
            )
            return []

        if not isinstance(data, list):
            LOGGER.warning(
                "Local calculation log is not an array; treating as empty",
                extra={"path": str(self.path), "type": type(data).__name__},
            )
            return []
        return [dict(item) for item in data if isinstance(item, dict)]

    def append(self, record: Mapping[str, object]) -> None:
        """Append ``record`` by rewriting the whole slot.

        Raises:
            OSError: If the slot cannot be written.
        """

        self._dir.mkdir(parents=True, exist_ok=True)
        with _acquire_slot_lock(self.path):
            records = self.read_all()
            records.append(dict(record))
            self._write(records)
        LOGGER.debug(
            "Appended calculation to local log",
            extra={"path": str(self.path), "records": len(records)},
        )

    def clear(self) -> None:
        """Remove the slot and its lock file."""

        self.path.unlink(missing_ok=True)
        self.path.with_suffix(self.path.suffix + ".lock").unlink(missing_ok=True)

    def _write(self, records: list[dict[str, object]]) -> None:
        temp_path: Path | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=str(self._dir), suffix=".tmp", delete=False
            ) as tmp:
                temp_path = Path(tmp.name)
                json.dump(records, tmp, ensure_ascii=False)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(temp_path, self.path)
        except Exception:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
            raise
