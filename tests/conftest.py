"""Shared fixtures."""

import pytest

from agiletm.data import EntityStore, MemoryBackend, TrackerCore


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep log files and default data files out of the user's home and cwd."""
    monkeypatch.setenv("AGILETM_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("AGILETM_DATA_FILE", raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def store(backend):
    return EntityStore(backend)


@pytest.fixture
def core(backend):
    return TrackerCore(backend)


@pytest.fixture
def scenario(core):
    """Epic 1 <- story 2 <- task 3, with story 2 in sprint 4."""
    store = core.store
    epic = store.create("epic", "Launch", "d", story_points=8, difficulty=5)
    story = store.create("story", "S1", "d", story_points=3, difficulty=2)
    core.relations.link(story.id, epic_id=epic.id)
    task = store.create("task", "T1", "d", story_points=1, difficulty=1)
    core.relations.link(task.id, story_id=story.id)
    sprint = store.create_sprint("Sprint A", "d", "2025-01-01", "2025-01-14")
    core.relations.link(story.id, sprint_id=sprint.id)
    return {"epic": epic.id, "story": story.id, "task": task.id, "sprint": sprint.id}
