"""Unit tests for metrics aggregation."""

from agiletm.metrics import UNASSIGNED, compute


class TestMetrics:
    """Test compute()."""

    def test_empty(self):
        """Test metrics over no entities."""
        report = compute([])
        assert set(report.entity_stats) == {"epic", "story", "task"}
        for stat in report.entity_stats.values():
            assert stat.total == 0
            assert stat.average_difficulty == 0
        assert report.tasks_per_sprint == {}
        assert report.tasks_per_assignee == {}

    def test_scenario(self, core, scenario):
        """Test the epic/story/task/sprint scenario."""
        report = core.compute_metrics()
        task_stats = report.entity_stats["task"]
        assert task_stats.total == 1
        assert task_stats.to_do == 1
        assert report.entity_stats["epic"].story_points == 8
        assert report.entity_stats["epic"].average_difficulty == 5
        assert report.tasks_per_sprint[scenario["sprint"]].title == "Sprint A"
        assert report.tasks_per_sprint[scenario["sprint"]].count == 1
        assert report.tasks_per_assignee == {UNASSIGNED: 1}

    def test_status_counts_add_up(self, core):
        """Test to_do + doing + done == total for every type."""
        store = core.store
        for i in range(5):
            store.create("task", f"T{i}", "d")
        store.create("story", "S", "d")
        core.lifecycle.start(1)
        core.lifecycle.start(2)
        core.lifecycle.complete(2)
        core.lifecycle.complete(3)
        store.archive(4)

        report = core.compute_metrics()
        for stat in report.entity_stats.values():
            assert stat.to_do + stat.doing + stat.done == stat.total
        tasks = report.entity_stats["task"]
        assert (tasks.total, tasks.to_do, tasks.doing, tasks.done, tasks.archived) == (5, 2, 1, 2, 1)

    def test_points_and_difficulty(self, store):
        """Test missing estimates count as zero and averages round to 2 places."""
        store.create("task", "A", "d", story_points=3, difficulty=1)
        store.create("task", "B", "d", story_points=2, difficulty=1)
        store.create("task", "C", "d")
        stats = compute(store.all()).entity_stats["task"]
        assert stats.story_points == 5
        assert stats.average_difficulty == 0.67

    def test_assignees(self, store):
        """Test per-assignee task counts, ignoring non-task items."""
        store.create("task", "A", "d", assigned_to="ana")
        store.create("task", "B", "d", assigned_to="ana")
        store.create("task", "C", "d", assigned_to="bo")
        store.create("task", "D", "d")
        store.create("story", "S", "d", assigned_to="cy")
        report = compute(store.all())
        assert report.tasks_per_assignee == {"ana": 2, "bo": 1, UNASSIGNED: 1}

    def test_sprint_counts_are_independent(self, core, scenario):
        """Test tasks outside any sprint are not counted per sprint."""
        core.store.create("task", "loose", "d")
        other = core.store.create_sprint("Sprint B", "d", "2025-01-15", "2025-01-28")
        report = core.compute_metrics()
        assert report.tasks_per_sprint[other.id].count == 0
        assert sum(s.count for s in report.tasks_per_sprint.values()) == 1
        assert report.entity_stats["task"].total == 2

    def test_compute_is_pure(self, core, backend, scenario):
        """Test metrics never write."""
        saves = backend.saves
        core.compute_metrics()
        assert backend.saves == saves
