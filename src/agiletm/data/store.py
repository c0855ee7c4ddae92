"""
EntityStore - the single reader and writer of the persisted tracker document.

Every public method is one load -> mutate -> save cycle against the injected
backend. Nothing is cached between calls, so two stores over the same file
always see each other's completed writes (and the last writer wins).
"""
from contextlib import contextmanager
from datetime import date
from typing import Any, Dict, Iterator, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from agiletm.models import (
    BaseEntity, Comment, EntityType, ENTITY_CLASSES, LINK_FIELDS, Sprint, TrackerDocument, describe_error,
)
from agiletm.recovery import NotFoundError, ValidationError
from .backend import StorageBackend
from .ids import IdAllocator

# Fields owned by the store itself; callers never overwrite them
IMMUTABLE_FIELDS = frozenset({"id", "type", "created_at", "comments"})
# Stamped only by the start and complete transitions
LIFECYCLE_FIELDS = frozenset({"started_at", "completed_at"})


def _require(**values):
    for name, value in values.items():
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(f"{name} is required", field=name)

def _build(model_class, **fields) -> BaseEntity:
    try:
        return model_class(**fields)
    except PydanticValidationError as e:
        field, message = describe_error(e)
        raise ValidationError(message, field=field) from e

def require_entity(document: TrackerDocument, entity_id: int,
                   entity_type: Optional[Union[str, EntityType]] = None) -> BaseEntity:
    """Find an entity or raise NotFoundError; with ``entity_type`` a wrong-typed hit counts as missing."""
    entity = document.find(entity_id)
    if entity_type is None:
        if entity is None:
            raise NotFoundError(f"Entity with ID {entity_id} not found", entity_id=entity_id)
        return entity

    expected = EntityType.parse(entity_type)
    if entity is None or entity.type != expected.value:
        raise NotFoundError(f"{expected.value.capitalize()} with ID {entity_id} not found", entity_id=entity_id)
    return entity


class EntityStore:
    """Create, find, list, update, archive and delete entities."""

    def __init__(self, backend: StorageBackend):
        self.backend = backend
        self.ids = IdAllocator(backend)

    @contextmanager
    def transaction(self, write: bool = True) -> Iterator[TrackerDocument]:
        """Load the document, hand it out for mutation, and save it unless the block raised."""
        document = self.backend.load()
        yield document
        if write:
            self.backend.save(document)

    def next_id(self) -> int:
        return self.ids.next_id()

    def create(self, type: Union[str, EntityType], title: str, description: str,
               story_points: Optional[int] = None, difficulty: Optional[float] = None,
               assigned_to: Optional[str] = None) -> BaseEntity:
        """
        Create an epic, story or task.

        Raises:
            ValidationError: on an empty title/description, an unknown type,
                a sprint type (see create_sprint) or negative estimates.
        """
        entity_type = EntityType.parse(type)
        if entity_type is EntityType.SPRINT:
            raise ValidationError("Sprints must be created with create_sprint", field="type")
        _require(title=title, description=description)

        with self.transaction() as document:
            entity = _build(
                ENTITY_CLASSES[entity_type],
                id=document.next_id,
                title=title,
                description=description,
                story_points=story_points,
                difficulty=difficulty,
                assigned_to=assigned_to,
            )
            IdAllocator.allocate(document)
            document.entities.append(entity)
        return entity

    def create_sprint(self, title: str, description: str,
                      start_date: Union[str, date], end_date: Union[str, date]) -> Sprint:
        _require(title=title, description=description, start_date=start_date, end_date=end_date)

        with self.transaction() as document:
            sprint = _build(
                Sprint,
                id=document.next_id,
                title=title,
                description=description,
                start_date=start_date,
                end_date=end_date,
            )
            IdAllocator.allocate(document)
            document.entities.append(sprint)
        return sprint

    def find(self, entity_id: int) -> Optional[BaseEntity]:
        with self.transaction(write=False) as document:
            return document.find(entity_id)

    def list(self, type: Union[str, EntityType], include_archived: bool = False) -> List[BaseEntity]:
        entity_type = EntityType.parse(type)
        with self.transaction(write=False) as document:
            return [e for e in document.of_type(entity_type) if include_archived or not e.archived]

    def all(self) -> List[BaseEntity]:
        with self.transaction(write=False) as document:
            return list(document.entities)

    def document(self) -> TrackerDocument:
        return self.backend.load()

    def update(self, entity_id: int, attrs: Dict[str, Any]) -> BaseEntity:
        """
        Merge ``attrs`` into an entity, overwriting existing values.

        A ``None`` link field unlinks; a non-null one must point at an entity
        of the matching type. Lifecycle timestamps are rejected; use the
        start and complete transitions.
        """
        for field in attrs:
            if field in LIFECYCLE_FIELDS:
                raise ValidationError(f"{field} is set by the lifecycle transitions", field=field)

        with self.transaction() as document:
            entity = require_entity(document, entity_id)
            updated = self.apply(document, entity, attrs)
        return updated

    @staticmethod
    def apply(document: TrackerDocument, entity: BaseEntity, attrs: Dict[str, Any]) -> BaseEntity:
        """Validate ``attrs`` against ``entity`` and swap the merged entity into ``document``."""
        fields = type(entity).model_fields
        for field, value in attrs.items():
            if field in IMMUTABLE_FIELDS:
                raise ValidationError(f"{field} cannot be updated", field=field)
            if field not in fields:
                raise ValidationError(f"{field} is not a field of a {entity.type}", field=field)
            if field in LINK_FIELDS and value is not None:
                document.resolve_link(field, value)

        merged = entity.model_dump()
        merged.update(attrs)
        updated = _build(type(entity), **merged)

        index = document.entities.index(entity)
        document.entities[index] = updated
        return updated

    def assign(self, entity_id: int, assignee: str) -> BaseEntity:
        _require(assignee=assignee)
        return self.update(entity_id, {"assigned_to": assignee})

    def archive(self, entity_id: int) -> BaseEntity:
        return self.update(entity_id, {"archived": True})

    def unarchive(self, entity_id: int) -> BaseEntity:
        return self.update(entity_id, {"archived": False})

    def delete(self, entity_id: int) -> None:
        """Remove an entity and its comments. Entities linking to it keep their (now dangling) ids."""
        with self.transaction() as document:
            entity = require_entity(document, entity_id)
            document.entities.remove(entity)

    def add_comment(self, entity_id: int, content: str) -> Comment:
        from .comments import CommentLedger
        return CommentLedger(self).add_comment(entity_id, content)

    def list_comments(self, entity_id: int) -> List[Comment]:
        from .comments import CommentLedger
        return CommentLedger(self).list_comments(entity_id)
