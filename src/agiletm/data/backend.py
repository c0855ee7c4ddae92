"""Storage backends holding the persisted tracker document."""

import copy
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional, Union

from agiletm.logs import get_logger
from agiletm.models import TrackerDocument
from .io import atomic_write, data_type_for, load_data_file
from .validate import parse_document

log = get_logger("data.backend")


class StorageBackend(ABC):
    """Loads and saves the whole tracker document in one piece."""

    @abstractmethod
    def load(self) -> TrackerDocument:
        """Return a fresh copy of the persisted document (empty if none exists yet)."""
        pass

    @abstractmethod
    def save(self, document: TrackerDocument) -> None:
        """Replace the persisted document."""
        pass


class FileBackend(StorageBackend):
    """A JSON (or YAML, by suffix) file rewritten atomically on every save."""

    def __init__(self, path: Union[Path, str]):
        self.path = Path(path)
        self.data_type = data_type_for(self.path)

    def load(self) -> TrackerDocument:
        data = load_data_file(self.path)
        if data is None:
            log.debug(f"No document at {self.path}, starting empty")
            return TrackerDocument()
        return parse_document(data, source=self.path)

    def save(self, document: TrackerDocument) -> None:
        atomic_write(self.data_type, self.path, document.model_dump(mode="json"), create_dirs=True)

    def __repr__(self):
        return f"FileBackend({str(self.path)!r})"


class MemoryBackend(StorageBackend):
    """Keeps the serialized document in memory; each load hands out an independent copy."""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self._data = copy.deepcopy(data) if data is not None else None
        self.saves = 0

    @property
    def data(self) -> Optional[Dict[str, Any]]:
        return copy.deepcopy(self._data)

    def load(self) -> TrackerDocument:
        if self._data is None:
            return TrackerDocument()
        return parse_document(copy.deepcopy(self._data))

    def save(self, document: TrackerDocument) -> None:
        self._data = document.model_dump(mode="json")
        self.saves += 1
