from datetime import datetime
from typing import TYPE_CHECKING, List

from agiletm.models import Comment
from agiletm.recovery import ValidationError
from .store import require_entity

if TYPE_CHECKING:
    from .store import EntityStore


class CommentLedger:
    """Append-only comment threads; ids restart at 1 for every entity."""

    def __init__(self, store: "EntityStore"):
        self.store = store

    def add_comment(self, entity_id: int, content: str) -> Comment:
        with self.store.transaction() as document:
            entity = require_entity(document, entity_id)
            if not isinstance(content, str) or not content.strip():
                raise ValidationError("content is required", field="content")
            comment = Comment(id=entity.next_comment_id(), content=content, created_at=datetime.now())
            entity.comments.append(comment)
        return comment

    def list_comments(self, entity_id: int) -> List[Comment]:
        with self.store.transaction(write=False) as document:
            return list(require_entity(document, entity_id).comments)
