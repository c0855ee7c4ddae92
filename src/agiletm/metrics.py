"""
Metrics aggregation over the current entity set.

``compute`` is a pure function: it only reads the entities it is given.
"""
from typing import Dict, Iterable, List

from pydantic import BaseModel, Field

from .models import BaseEntity, EntityType, Status, TrackerDocument
from .data.relations import tasks_in_sprint

UNASSIGNED = "Unassigned"
SUMMARIZED_TYPES = (EntityType.EPIC, EntityType.STORY, EntityType.TASK)


class EntityStats(BaseModel):
    total: int = 0
    to_do: int = 0
    doing: int = 0
    done: int = 0
    archived: int = 0
    story_points: int = 0
    average_difficulty: float = 0

class SprintLoad(BaseModel):
    title: str
    count: int = 0

class MetricsReport(BaseModel):
    """Per-type stats, task counts per sprint and per assignee."""

    entity_stats: Dict[str, EntityStats] = Field(default_factory=dict)
    tasks_per_sprint: Dict[int, SprintLoad] = Field(default_factory=dict)
    tasks_per_assignee: Dict[str, int] = Field(default_factory=dict)


def _entity_stats(items: List[BaseEntity]) -> EntityStats:
    difficulties = [e.difficulty or 0 for e in items]
    return EntityStats(
        total=len(items),
        to_do=sum(1 for e in items if e.status == Status.TODO),
        doing=sum(1 for e in items if e.status == Status.DOING),
        done=sum(1 for e in items if e.status == Status.DONE),
        archived=sum(1 for e in items if e.archived),
        story_points=sum(e.story_points or 0 for e in items),
        average_difficulty=round(sum(difficulties) / len(difficulties), 2) if difficulties else 0,
    )

def compute(entities: Iterable[BaseEntity]) -> MetricsReport:
    """
    Summarize the given entities.

    Archived entities are included in every count; ``archived`` reports how
    many of them there are. A task belongs to a sprint when it is linked to
    it directly or through its story.
    """
    document = TrackerDocument.model_construct(entities=list(entities))
    report = MetricsReport()

    for entity_type in SUMMARIZED_TYPES:
        report.entity_stats[entity_type.value] = _entity_stats(document.of_type(entity_type))

    for sprint in document.of_type(EntityType.SPRINT):
        report.tasks_per_sprint[sprint.id] = SprintLoad(
            title=sprint.title,
            count=len(tasks_in_sprint(document, sprint.id)),
        )

    for task in document.of_type(EntityType.TASK):
        assignee = task.assigned_to or UNASSIGNED
        report.tasks_per_assignee[assignee] = report.tasks_per_assignee.get(assignee, 0) + 1

    return report
