"""Single-slot storage for the integration resume point."""

import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from ..errors import StateFileError
from ..models import PersistedState


class StateStore(ABC):
    """
    Holds at most one PersistedState.

    Presence of a state means an integration is in progress.
    """

    @abstractmethod
    def exists(self) -> bool: ...

    @abstractmethod
    def load(self) -> Optional[PersistedState]:
        """Return the stored state, or None when nothing is stored."""

    @abstractmethod
    def save(self, state: PersistedState) -> None: ...

    @abstractmethod
    def delete(self) -> None: ...


class FileStateStore(StateStore):
    """Keeps the state as a pretty-printed JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Optional[PersistedState]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StateFileError(f"Invalid state file {self.path}: {e}") from e
        return PersistedState.from_dict(data)

    def save(self, state: PersistedState) -> None:
        # Write then rename so an interrupted save never leaves a torn file
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(state.to_dict(), indent=2), encoding="utf-8")
        os.replace(tmp, self.path)

    def delete(self) -> None:
        if self.path.exists():
            self.path.unlink()


class InMemoryStateStore(StateStore):
    """Keeps the state in memory, as the serialized document."""

    def __init__(self):
        self._data: Optional[dict] = None
        self.saves = 0

    def exists(self) -> bool:
        return self._data is not None

    def load(self) -> Optional[PersistedState]:
        if self._data is None:
            return None
        return PersistedState.from_dict(self._data)

    def save(self, state: PersistedState) -> None:
        self._data = state.to_dict()
        self.saves += 1

    def delete(self) -> None:
        self._data = None

    @property
    def raw(self) -> Optional[dict]:
        """Copy of the stored document."""
        return dict(self._data) if self._data is not None else None
