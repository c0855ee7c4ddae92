"""
JSON Schema checks for tracker documents.

The schema is generated from the ``TrackerDocument`` pydantic model, so the
on-disk contract and the in-memory model cannot drift apart.
"""
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Union

from jsonschema import Draft202012Validator
from pydantic import ValidationError as PydanticValidationError

from agiletm.logs import get_logger
from agiletm.models import TrackerDocument, describe_error
from agiletm.recovery import CorruptDocumentError, StoreIOError
from agiletm.version import APP_SCHEMA_VERSION
from .io import DATA_JSON, atomic_write, load_data_file

log = get_logger("data.validate")

SCHEMA_DIALECT = "https://json-schema.org/draft/2020-12/schema"


@lru_cache(maxsize=1)
def document_schema() -> Dict[str, Any]:
    """Build the JSON schema for a persisted tracker document."""
    schema = TrackerDocument.model_json_schema()
    schema["$schema"] = SCHEMA_DIALECT
    schema["$comment"] = f"agiletm document schema v{APP_SCHEMA_VERSION}"
    return schema

def _format_path(error) -> str:
    return "/".join(str(part) for part in error.absolute_path) or "<root>"

def schema_errors(data: Any) -> List[str]:
    """
    Validate raw document data against the schema.

    Returns:
        Human readable messages, one per failing location; empty when valid.
    """
    validator = Draft202012Validator(document_schema())
    errors = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.absolute_path])
    return [f"{_format_path(e)}: {e.message}" for e in errors]

def parse_document(data: Dict[str, Any], source: Union[Path, str] = "<memory>") -> TrackerDocument:
    """
    Turn raw document data into a TrackerDocument.

    Raises:
        CorruptDocumentError: if the data fails the schema or the model rules
            (duplicate ids, a counter that would reissue an id, ...).
    """
    problems = schema_errors(data)
    if problems:
        log.error(f"Document {source} FAILED schema validation: {problems[0]}")
        raise CorruptDocumentError(f"{source} is not a valid tracker document: {problems[0]}", path=source)

    try:
        return TrackerDocument.model_validate(data)
    except PydanticValidationError as e:
        _, message = describe_error(e)
        log.error(f"Document {source} FAILED model validation: {message}")
        raise CorruptDocumentError(f"{source} is not a valid tracker document: {message}", path=source) from e

def validate_file(file_path: Union[Path, str]) -> List[str]:
    """
    Validate a persisted or exported document file.

    Returns:
        An empty list when the file is valid, otherwise the problems found.
    """
    file_path = Path(file_path)
    try:
        data = load_data_file(file_path)
    except CorruptDocumentError as e:
        return [str(e)]
    if data is None:
        raise StoreIOError(f"File not found: {file_path}", path=file_path)

    problems = schema_errors(data)
    if problems:
        log.info(f"File '{file_path}' has {len(problems)} schema problem(s)")
        return problems

    try:
        TrackerDocument.model_validate(data)
    except PydanticValidationError as e:
        return [describe_error(e)[1]]

    log.info(f"File '{file_path}' is VALID for schema version '{APP_SCHEMA_VERSION}'.")
    return []

def write_schema(file_path: Union[Path, str]):
    """Write the document schema to a JSON file."""
    atomic_write(DATA_JSON, file_path, document_schema(), create_dirs=True)
