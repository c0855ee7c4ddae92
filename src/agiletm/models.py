from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, model_validator
from datetime import datetime, date
from enum import Enum
from typing import Annotated, Optional, List, Dict, Literal, Tuple, Union

from .recovery import ValidationError


class EntityType(Enum):
    EPIC = "epic"
    STORY = "story"
    TASK = "task"
    SPRINT = "sprint"

    @classmethod
    def parse(cls, value: Union[str, "EntityType"]) -> "EntityType":
        """Coerce a type name into an EntityType, raising ValidationError for unknown kinds."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            kinds = ", ".join(t.value for t in cls)
            raise ValidationError(f"Unknown entity type '{value}' (expected one of: {kinds})", field="type")

class Status(Enum):
    TODO = "to do"
    DOING = "doing"
    DONE = "done"

# Link field -> type its target must have
LINK_FIELDS: Dict[str, EntityType] = {
    "epic_id": EntityType.EPIC,
    "story_id": EntityType.STORY,
    "sprint_id": EntityType.SPRINT,
}

def describe_error(exc: PydanticValidationError) -> Tuple[Optional[str], str]:
    """Reduce a pydantic error to (field, message) for the first failing location."""
    err = exc.errors()[0]
    field = ".".join(str(part) for part in err["loc"]) or None
    message = f"{field}: {err['msg']}" if field else err["msg"]
    return field, message

class Comment(BaseModel):
    """A single note attached to exactly one entity."""

    id: int = Field(ge=1, description="Sequential id, unique only within the owning entity")
    content: str = Field(min_length=1, description="Comment text")
    created_at: datetime = Field(default_factory=datetime.now, description="When the comment was added")

class BaseEntity(BaseModel):
    """Fields shared by every entity kind."""

    id: int = Field(ge=1, description="Process-unique id shared across all entity types")
    type: str = Field(description="Entity kind; the union discriminator")
    title: str = Field(min_length=1, description="Short human readable title")
    description: str = Field(min_length=1, description="Longer description")
    status: Status = Field(default=Status.TODO, description="Lifecycle status")
    archived: bool = Field(default=False, description="Hidden from default listings when true")
    created_at: datetime = Field(default_factory=datetime.now, description="When the entity was created")
    started_at: Optional[datetime] = Field(default=None, description="Set by the start transition")
    completed_at: Optional[datetime] = Field(default=None, description="Set by the complete transition")
    comments: List[Comment] = Field(default_factory=list, description="Comment thread in insertion order")

    @property
    def entity_type(self) -> EntityType:
        return EntityType(self.type)

    def next_comment_id(self) -> int:
        return max((c.id for c in self.comments), default=0) + 1

class WorkItem(BaseEntity):
    """Epics, stories and tasks: estimable, assignable and linkable."""

    story_points: Optional[int] = Field(default=None, ge=0, description="Story point estimate")
    difficulty: Optional[float] = Field(default=None, ge=0, description="Difficulty in engineering hours")
    assigned_to: Optional[str] = Field(default=None, description="Assignee name")
    epic_id: Optional[int] = Field(default=None, description="Parent epic")
    story_id: Optional[int] = Field(default=None, description="Parent story")
    sprint_id: Optional[int] = Field(default=None, description="Sprint the item is assigned to")

class Epic(WorkItem):
    type: Literal["epic"] = "epic"

class Story(WorkItem):
    type: Literal["story"] = "story"

class Task(WorkItem):
    type: Literal["task"] = "task"

class Sprint(BaseEntity):
    """A time-boxed container; stories and tasks point at it, it owns nothing."""

    type: Literal["sprint"] = "sprint"
    start_date: date = Field(description="First day of the sprint")
    end_date: date = Field(description="Last day of the sprint")

    @model_validator(mode='after')
    def validate_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

Entity = Annotated[Union[Epic, Story, Task, Sprint], Field(discriminator="type")]

ENTITY_CLASSES = {
    EntityType.EPIC: Epic,
    EntityType.STORY: Story,
    EntityType.TASK: Task,
    EntityType.SPRINT: Sprint,
}

class TrackerDocument(BaseModel):
    """The whole persisted state: the id counter plus every entity."""

    next_id: int = Field(default=1, ge=1, description="Next id to hand out")
    entities: List[Entity] = Field(default_factory=list, description="All entities in insertion order")

    @model_validator(mode='after')
    def validate_ids(self):
        seen = set()
        for entity in self.entities:
            if entity.id in seen:
                raise ValueError(f"duplicate entity id {entity.id}")
            seen.add(entity.id)
        if seen and self.next_id <= max(seen):
            raise ValueError(f"next_id {self.next_id} would reissue an existing id")
        return self

    def find(self, entity_id: int) -> Optional[BaseEntity]:
        return next((e for e in self.entities if e.id == entity_id), None)

    def of_type(self, entity_type: EntityType) -> List[BaseEntity]:
        return [e for e in self.entities if e.type == entity_type.value]

    def resolve_link(self, field: str, target_id: int) -> BaseEntity:
        """Return the entity a link field points at, or raise ValidationError naming the field."""
        expected = LINK_FIELDS[field]
        target = self.find(target_id)
        if target is None:
            raise ValidationError(f"{field}: no entity with id {target_id}", field=field)
        if target.type != expected.value:
            raise ValidationError(
                f"{field}: entity {target_id} has type '{target.type}', expected '{expected.value}'",
                field=field,
            )
        return target
