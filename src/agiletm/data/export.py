from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, List, Union

from agiletm.models import BaseEntity, TrackerDocument
from agiletm.recovery import StoreIOError, ValidationError
from .io import DATA_JSON, atomic_write, load_data_file, write_csv
from .validate import parse_document

EXPORT_FORMATS = ("json", "csv")

CSV_COLUMNS = [
    "id", "type", "title", "description", "story_points", "difficulty", "status", "archived",
    "created_at", "started_at", "completed_at", "epic_id", "story_id", "sprint_id", "assigned_to",
]


def _cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value

def csv_row(entity: BaseEntity) -> List[Any]:
    """Flatten an entity over CSV_COLUMNS; fields the variant lacks render empty."""
    return [_cell(getattr(entity, column, None)) for column in CSV_COLUMNS]

def export(document: TrackerDocument, format: str, destination: Union[Path, str]) -> Path:
    """
    Write a snapshot of ``document`` to ``destination``.

    ``json`` writes the full document exactly as persisted (counter, entities,
    nested comments). ``csv`` writes one row per entity without comments.
    """
    destination = Path(destination)
    if format == "json":
        atomic_write(DATA_JSON, destination, document.model_dump(mode="json"), create_dirs=True)
    elif format == "csv":
        write_csv(destination, CSV_COLUMNS, (csv_row(e) for e in document.entities), create_dirs=True)
    else:
        raise ValidationError(f"Unknown export format '{format}' (expected one of: {', '.join(EXPORT_FORMATS)})",
                              field="format")
    return destination

def load_export(source: Union[Path, str]) -> TrackerDocument:
    """Read a JSON export back into a document."""
    data = load_data_file(source)
    if data is None:
        raise StoreIOError(f"File not found: {source}", path=source)
    return parse_document(data, source=source)
