"""
Data management submodule: storage, the entity store and its collaborators.
"""

from .backend import StorageBackend, FileBackend, MemoryBackend
from .store import EntityStore
from .relations import RelationshipManager
from .lifecycle import Lifecycle
from .comments import CommentLedger
from .core import TrackerCore

__all__ = [
    'StorageBackend',
    'FileBackend',
    'MemoryBackend',
    'EntityStore',
    'RelationshipManager',
    'Lifecycle',
    'CommentLedger',
    'TrackerCore',
]
