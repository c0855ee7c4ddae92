from datetime import datetime
from typing import Optional, Union

from agiletm.models import BaseEntity, EntityType, Status
from .store import EntityStore, require_entity

# transition name -> (status it sets, timestamp field it stamps)
TRANSITIONS = {
    "start": (Status.DOING, "started_at"),
    "complete": (Status.DONE, "completed_at"),
}


class Lifecycle:
    """
    The to do -> doing -> done state machine.

    No transition is refused: starting a done entity moves it back to doing,
    and re-running a transition restamps its timestamp.
    """

    def __init__(self, store: EntityStore):
        self.store = store

    def transition(self, name: str, entity_id: int,
                   entity_type: Optional[Union[str, EntityType]] = None) -> BaseEntity:
        status, stamp_field = TRANSITIONS[name]
        with self.store.transaction() as document:
            entity = require_entity(document, entity_id, entity_type)
            return self.store.apply(document, entity, {"status": status, stamp_field: datetime.now()})

    def start(self, entity_id: int, entity_type: Optional[Union[str, EntityType]] = None) -> BaseEntity:
        return self.transition("start", entity_id, entity_type)

    def complete(self, entity_id: int, entity_type: Optional[Union[str, EntityType]] = None) -> BaseEntity:
        return self.transition("complete", entity_id, entity_type)
