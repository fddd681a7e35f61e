from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional, Protocol

from .errors import StoreUnavailable
from .lib.files import atomic_write_text

logger = logging.getLogger(__name__)


class ProgressStore(Protocol):
    """Durable slot holding the highest fully completed step index."""

    def exists(self) -> bool:
        ...

    def read(self) -> int:
        ...

    def write(self, value: int) -> None:
        ...


def _check_value(value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise StoreUnavailable(f"Refusing to store progress value {value!r}")
    return value


class FileProgressStore:
    """One file holding one decimal integer.

    Writes go through a temp file + os.replace() so a crash never leaves a
    partial number behind. The file is world-writable by default so a run
    started under sudo can be resumed by the invoking user.
    """

    def __init__(self, path: str, *, mode: Optional[int] = 0o666) -> None:
        self.path = Path(path)
        self.mode = mode

    def __repr__(self) -> str:
        return f"FileProgressStore({str(self.path)!r})"

    def exists(self) -> bool:
        return self.path.exists()

    def read(self) -> int:
        if not self.path.exists():
            return 0
        try:
            raw = self.path.read_text(encoding="utf-8").strip()
        except OSError as e:
            raise StoreUnavailable(f"Cannot read progress file {self.path}: {e}") from e

        if raw == "":
            return 0
        try:
            value = int(raw)
        except ValueError as e:
            raise StoreUnavailable(f"Progress file {self.path} is corrupt: {raw!r}") from e
        if value < 0:
            raise StoreUnavailable(f"Progress file {self.path} holds a negative step: {value}")
        return value

    def write(self, value: int) -> None:
        _check_value(value)
        try:
            atomic_write_text(str(self.path), f"{value}\n", mode=self.mode)
        except OSError as e:
            raise StoreUnavailable(f"Cannot write progress file {self.path}: {e}") from e
        logger.debug("Progress %s -> %d", self.path, value)


class MemoryProgressStore:
    """In-process store; every write is kept in `writes` for inspection."""

    def __init__(self, initial: Optional[int] = None) -> None:
        self._value = initial
        self.writes: List[int] = []

    def exists(self) -> bool:
        return self._value is not None

    def read(self) -> int:
        return self._value or 0

    def write(self, value: int) -> None:
        self._value = _check_value(value)
        self.writes.append(value)


def describe_store(store: ProgressStore) -> str:
    path = getattr(store, "path", None)
    return os.fspath(path) if path is not None else type(store).__name__
