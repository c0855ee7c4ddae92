from typing import List, Optional

from agiletm.models import BaseEntity, EntityType, LINK_FIELDS, TrackerDocument
from agiletm.recovery import ValidationError
from .store import EntityStore, require_entity


def stories_in_sprint(document: TrackerDocument, sprint_id: int) -> List[BaseEntity]:
    return [s for s in document.of_type(EntityType.STORY) if s.sprint_id == sprint_id]

def tasks_in_sprint(document: TrackerDocument, sprint_id: int) -> List[BaseEntity]:
    """Tasks linked to the sprint directly, or through a story that is linked to it."""
    story_ids = {s.id for s in stories_in_sprint(document, sprint_id)}
    return [
        t for t in document.of_type(EntityType.TASK)
        if t.sprint_id == sprint_id or (t.story_id is not None and t.story_id in story_ids)
    ]


class RelationshipManager:
    """Validates and writes epic/story/sprint links, and answers parent/child queries."""

    def __init__(self, store: EntityStore):
        self.store = store

    def link(self, entity_id: int, epic_id: Optional[int] = None, story_id: Optional[int] = None,
             sprint_id: Optional[int] = None) -> BaseEntity:
        """
        Point an entity at any subset of epic, story and sprint.

        Omitted (None) targets are left untouched. Each supplied target must
        exist and have the matching type.

        Raises:
            NotFoundError: if ``entity_id`` is unknown.
            ValidationError: naming the offending field for a missing or
                mis-typed target, or when the entity cannot carry links.
        """
        links = {
            field: target
            for field, target in (("epic_id", epic_id), ("story_id", story_id), ("sprint_id", sprint_id))
            if target is not None
        }
        with self.store.transaction() as document:
            entity = require_entity(document, entity_id)
            for field, target in links.items():
                document.resolve_link(field, target)
            return self.store.apply(document, entity, links)

    def unlink(self, entity_id: int, *fields: str) -> BaseEntity:
        unknown = [f for f in fields if f not in LINK_FIELDS]
        if unknown:
            raise ValidationError(f"{unknown[0]} is not a link field", field=unknown[0])
        return self.store.update(entity_id, {f: None for f in fields})

    def stories_in_epic(self, epic_id: int) -> List[BaseEntity]:
        with self.store.transaction(write=False) as document:
            return [s for s in document.of_type(EntityType.STORY) if s.epic_id == epic_id]

    def tasks_in_story(self, story_id: int) -> List[BaseEntity]:
        with self.store.transaction(write=False) as document:
            return [t for t in document.of_type(EntityType.TASK) if t.story_id == story_id]

    def stories_in_sprint(self, sprint_id: int) -> List[BaseEntity]:
        with self.store.transaction(write=False) as document:
            return stories_in_sprint(document, sprint_id)

    def tasks_in_sprint(self, sprint_id: int) -> List[BaseEntity]:
        with self.store.transaction(write=False) as document:
            return tasks_in_sprint(document, sprint_id)

    def parent(self, entity: BaseEntity, field: str) -> Optional[BaseEntity]:
        """Resolve a link field to its target; dangling or mis-typed references read as absent."""
        target_id = getattr(entity, field, None)
        if target_id is None:
            return None
        target = self.store.find(target_id)
        if target is None or target.type != LINK_FIELDS[field].value:
            return None
        return target
