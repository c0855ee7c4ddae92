from agiletm.models import TrackerDocument
from .backend import StorageBackend


class IdAllocator:
    """Hands out entity ids from the counter stored in the document itself."""

    def __init__(self, backend: StorageBackend):
        self.backend = backend

    @staticmethod
    def allocate(document: TrackerDocument) -> int:
        """Take the next id from an already loaded document; the caller persists it."""
        new_id = document.next_id
        document.next_id = new_id + 1
        return new_id

    def next_id(self) -> int:
        """Consume an id and persist the advanced counter before returning it."""
        document = self.backend.load()
        new_id = self.allocate(document)
        self.backend.save(document)
        return new_id
