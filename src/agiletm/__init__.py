"""
agiletm - a local, file-persisted tracker for epics, stories, tasks and sprints.

Work is organized as Epic → Story → Task, with stories and tasks assigned to
time-boxed sprints. Everything lives in a single JSON (or YAML) document.
"""

from .version import VERSION, APP_SCHEMA_VERSION
from .models import (
    EntityType,
    Status,
    Comment,
    Epic,
    Story,
    Task,
    Sprint,
    TrackerDocument,
)
from .recovery import AgileError, ValidationError, NotFoundError, StoreIOError
from .data import EntityStore, FileBackend, MemoryBackend, TrackerCore

__version__ = VERSION

__all__ = [
    "VERSION",
    "APP_SCHEMA_VERSION",
    "EntityType",
    "Status",
    "Comment",
    "Epic",
    "Story",
    "Task",
    "Sprint",
    "TrackerDocument",
    "AgileError",
    "ValidationError",
    "NotFoundError",
    "StoreIOError",
    "EntityStore",
    "FileBackend",
    "MemoryBackend",
    "TrackerCore",
]
