from typing import Optional


class AgileError(Exception):
    """Base exception for all tracker errors."""
    pass

class RecoverableError(AgileError):
    """An error that can be reported to the user without data loss."""
    pass

class FatalError(AgileError):
    """An error that requires application termination or major intervention."""
    pass

class ValidationError(RecoverableError):
    """A required field is missing or empty, a value is unknown, or a link target is invalid."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

class NotFoundError(RecoverableError):
    """An id does not resolve to an entity (of the requested type)."""

    def __init__(self, message: str, entity_id: Optional[int] = None):
        super().__init__(message)
        self.entity_id = entity_id

class StoreIOError(RecoverableError):
    """The persisted document could not be read or written."""

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path

class CorruptDocumentError(StoreIOError):
    """Corrupted document - from syntax errors in data formats, to data failing the schema"""
    pass
