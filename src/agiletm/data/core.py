"""
TrackerCore - the concierge the CLI talks to.

Wires one storage backend to the Entity Store and its collaborators
(relationships, lifecycle, comments) and exposes metrics and export over the
store's current document.
"""
from pathlib import Path
from typing import Optional, Union

from agiletm.config import get_data_file
from agiletm.metrics import MetricsReport, compute
from .backend import FileBackend, StorageBackend
from .comments import CommentLedger
from .export import export
from .lifecycle import Lifecycle
from .relations import RelationshipManager
from .store import EntityStore


class TrackerCore:
    def __init__(self, backend: StorageBackend):
        self.backend = backend
        self.store = EntityStore(backend)
        self.relations = RelationshipManager(self.store)
        self.lifecycle = Lifecycle(self.store)
        self.comments = CommentLedger(self.store)

    @classmethod
    def from_path(cls, path: Optional[Union[Path, str]] = None) -> "TrackerCore":
        """Open the tracker stored at ``path`` (or the configured default data file)."""
        return cls(FileBackend(get_data_file(path)))

    def compute_metrics(self) -> MetricsReport:
        return compute(self.store.all())

    def export(self, format: str, destination: Union[Path, str]) -> Path:
        return export(self.store.document(), format, destination)
