"""Unit tests for file storage, schema validation and export."""

import csv
import json
import os

import pytest
import yaml

from agiletm.data import EntityStore, FileBackend, TrackerCore
from agiletm.data.export import CSV_COLUMNS, export, load_export
from agiletm.data.io import atomic_write, DATA_JSON, load_data_file
from agiletm.data.validate import document_schema, schema_errors, validate_file
from agiletm.models import TrackerDocument
from agiletm.recovery import CorruptDocumentError, StoreIOError, ValidationError


@pytest.fixture
def file_core(tmp_path):
    return TrackerCore(FileBackend(tmp_path / "agile_data.json"))


class TestFileBackend:
    """Test the JSON/YAML file backend."""

    def test_missing_file_loads_empty(self, tmp_path):
        """Test a fresh location starts with an empty document and is not created by reads."""
        backend = FileBackend(tmp_path / "nothing.json")
        assert backend.load() == TrackerDocument()
        assert not (tmp_path / "nothing.json").exists()

    def test_json_document_shape(self, tmp_path):
        """Test the persisted document is {next_id, entities} with explicit nulls."""
        path = tmp_path / "data" / "agile_data.json"
        store = EntityStore(FileBackend(path))
        store.create("task", "T", "d")

        data = json.loads(path.read_text(encoding="utf-8"))
        assert set(data) == {"next_id", "entities"}
        assert data["next_id"] == 2
        assert data["entities"][0]["epic_id"] is None
        assert data["entities"][0]["comments"] == []

    def test_yaml_backend(self, tmp_path):
        """Test a .yml path stores YAML and reloads the same entities."""
        path = tmp_path / "agile_data.yml"
        store = EntityStore(FileBackend(path))
        epic = store.create("epic", "E", "d", story_points=3)
        store.add_comment(epic.id, "hi")

        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        assert data["entities"][0]["title"] == "E"
        assert EntityStore(FileBackend(path)).find(epic.id).comments[0].content == "hi"

    def test_no_temp_files_left(self, tmp_path):
        """Test atomic writes clean up after themselves."""
        store = EntityStore(FileBackend(tmp_path / "agile_data.json"))
        store.create("task", "T", "d")
        store.create("task", "T2", "d")
        assert os.listdir(tmp_path) == ["agile_data.json"]

    def test_corrupt_json(self, tmp_path):
        """Test unparsable documents raise CorruptDocumentError."""
        path = tmp_path / "agile_data.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(CorruptDocumentError, match="Syntax error"):
            FileBackend(path).load()

    def test_schema_violation(self, tmp_path):
        """Test well-formed JSON that is not a tracker document is rejected."""
        path = tmp_path / "agile_data.json"
        path.write_text(json.dumps({"next_id": 0, "entities": []}), encoding="utf-8")
        with pytest.raises(CorruptDocumentError, match="next_id"):
            FileBackend(path).load()

    def test_model_violation(self, tmp_path):
        """Test rules beyond the schema (duplicate ids) are enforced on load."""
        path = tmp_path / "agile_data.json"
        entity = {"id": 1, "type": "task", "title": "T", "description": "d"}
        path.write_text(json.dumps({"next_id": 3, "entities": [entity, entity]}), encoding="utf-8")
        with pytest.raises(CorruptDocumentError, match="duplicate entity id"):
            FileBackend(path).load()

    def test_unreadable_location(self, tmp_path):
        """Test I/O failures surface as StoreIOError."""
        path = tmp_path / "is_a_dir.json"
        path.mkdir()
        with pytest.raises(StoreIOError):
            FileBackend(path).load()

    def test_corrupt_error_is_store_error(self):
        """Test callers can catch every storage failure as StoreIOError."""
        assert issubclass(CorruptDocumentError, StoreIOError)


class TestAtomicWrite:
    """Test io helpers."""

    def test_round_trip(self, tmp_path):
        """Test writing then loading a JSON file."""
        path = tmp_path / "nested" / "file.json"
        atomic_write(DATA_JSON, path, {"a": 1}, create_dirs=True)
        assert load_data_file(path) == {"a": 1}

    def test_missing_directory_without_create(self, tmp_path):
        """Test writes into a missing directory fail as StoreIOError."""
        with pytest.raises(StoreIOError):
            atomic_write(DATA_JSON, tmp_path / "missing" / "file.json", {"a": 1})

    def test_non_dict_document(self, tmp_path):
        """Test a file holding a list is rejected."""
        path = tmp_path / "list.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(CorruptDocumentError):
            load_data_file(path)


class TestSchema:
    """Test the generated document schema."""

    def test_schema_accepts_persisted_documents(self, file_core, scenario_file):
        """Test real documents validate."""
        data = json.loads(scenario_file.read_text(encoding="utf-8"))
        assert schema_errors(data) == []

    def test_schema_reports_paths(self):
        """Test problems name the failing location."""
        problems = schema_errors({"next_id": 1, "entities": [{"id": "x", "type": "task"}]})
        assert problems
        assert problems[0].startswith("entities/0")

    def test_schema_dialect(self):
        """Test the schema declares draft 2020-12."""
        assert document_schema()["$schema"].endswith("2020-12/schema")


@pytest.fixture
def scenario_file(file_core, tmp_path):
    store = file_core.store
    epic = store.create("epic", "Launch", "d", story_points=8, difficulty=5)
    story = store.create("story", "S1", "d")
    file_core.relations.link(story.id, epic_id=epic.id)
    task = store.create("task", "T1", "d, with a comma", assigned_to="ana")
    file_core.relations.link(task.id, story_id=story.id)
    sprint = store.create_sprint("Sprint A", "d", "2025-01-01", "2025-01-14")
    file_core.relations.link(story.id, sprint_id=sprint.id)
    store.add_comment(task.id, "needs review")
    file_core.lifecycle.start(task.id)
    return tmp_path / "agile_data.json"


class TestExport:
    """Test JSON and CSV export."""

    def test_json_export_is_the_document(self, file_core, scenario_file, tmp_path):
        """Test JSON export matches the persisted document."""
        out = file_core.export("json", tmp_path / "out" / "export.json")
        assert json.loads(out.read_text(encoding="utf-8")) == json.loads(scenario_file.read_text(encoding="utf-8"))

    def test_json_round_trip(self, file_core, scenario_file, tmp_path):
        """Test reloading an export reproduces the same entities in order."""
        out = file_core.export("json", tmp_path / "export.json")
        assert load_export(out) == file_core.store.document()
        assert validate_file(out) == []

    def test_csv_export(self, file_core, scenario_file, tmp_path):
        """Test the flattened CSV form."""
        out = file_core.export("csv", tmp_path / "export.csv")
        with open(out, newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))

        assert rows[0] == CSV_COLUMNS
        assert len(rows) == 5
        by_id = {row[0]: dict(zip(CSV_COLUMNS, row)) for row in rows[1:]}

        task = by_id["3"]
        assert task["type"] == "task"
        assert task["description"] == "d, with a comma"
        assert task["status"] == "doing"
        assert task["archived"] == "false"
        assert task["story_id"] == "2"
        assert task["sprint_id"] == ""
        assert task["assigned_to"] == "ana"
        assert task["started_at"] != ""
        assert task["completed_at"] == ""

        sprint = by_id["4"]
        assert sprint["story_points"] == ""
        assert sprint["difficulty"] == ""
        assert sprint["epic_id"] == ""

    def test_unknown_format(self, file_core, tmp_path):
        """Test other formats are validation errors."""
        with pytest.raises(ValidationError) as exc:
            file_core.export("xml", tmp_path / "out.xml")
        assert exc.value.field == "format"
        assert not (tmp_path / "out.xml").exists()

    def test_export_empty_document(self, tmp_path):
        """Test exporting with nothing stored."""
        out = export(TrackerDocument(), "json", tmp_path / "empty.json")
        assert json.loads(out.read_text(encoding="utf-8")) == {"next_id": 1, "entities": []}

    def test_load_export_missing(self, tmp_path):
        """Test reading a missing export."""
        with pytest.raises(StoreIOError):
            load_export(tmp_path / "nope.json")

    def test_validate_file_reports_problems(self, tmp_path):
        """Test validate_file lists what is wrong instead of raising."""
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"next_id": 1, "entities": [{"id": 1}]}), encoding="utf-8")
        assert validate_file(path)
