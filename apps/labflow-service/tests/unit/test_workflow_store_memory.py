import json

import pytest

from labflow.store import MemoryBackend, RecordNotFound, StoreError, WorkflowStore


@pytest.fixture
def store():
    return WorkflowStore(MemoryBackend())


def _seed_workflow(store, *, steps=True):
    first = store.create_assay({"title": "Extraction", "estimated_time": "30 minutes"})
    second = store.create_assay({"title": "Quantification", "estimated_time": "1 hour"})
    if steps:
        store.create_step({"assay_id": first, "title": "Lyse", "order_index": 1})
        store.create_step({"assay_id": first, "title": "Spin", "order_index": 2})
        store.create_step({"assay_id": second, "title": "Measure", "order_index": 1})
    workflow_id = store.create_workflow(
        {"title": "DNA prep", "assay_ids": [first, second], "dependencies": [], "project_id": None}
    )
    return workflow_id, first, second


def test_create_assigns_id_and_matching_timestamps(store):
    project_id = store.create_project({"title": "Lab move"})
    project = store.get_project_by_id(project_id)
    assert project["title"] == "Lab move"
    assert project["created_at"] == project["updated_at"]
    assert store.projects == [project]
    assert store.loading is False and store.error is None


def test_update_merges_fields_and_refreshes_updated_at(store):
    project_id = store.create_project({"title": "Lab move", "status": "active"})
    before = store.get_project_by_id(project_id)
    updated = store.update_project(project_id, {"status": "completed", "id": "ignored"})
    assert updated["id"] == project_id
    assert updated["title"] == "Lab move"
    assert updated["status"] == "completed"
    assert updated["updated_at"] >= before["updated_at"]
    assert store.projects[0]["status"] == "completed"


def test_update_missing_record_records_error_and_raises(store):
    with pytest.raises(RecordNotFound):
        store.update_workflow("missing", {"title": "x"})
    assert "not found" in store.error
    assert store.loading is False


def test_delete_removes_from_local_table(store):
    workflow_id, _first, _second = _seed_workflow(store)
    store.delete_workflow(workflow_id)
    assert store.get_workflow_by_id(workflow_id) is None
    assert all(w["id"] != workflow_id for w in store.workflows)


def test_fetch_filters_and_replaces_table(store):
    p1 = store.create_project({"title": "One"})
    store.create_workflow({"title": "In p1", "project_id": p1})
    store.create_workflow({"title": "Loose", "project_id": None})
    assert len(store.fetch_workflows()) == 2
    rows = store.fetch_workflows(project_id=p1)
    assert [w["title"] for w in rows] == ["In p1"]
    assert store.workflows == rows


def test_fetch_assays_follows_workflow_order(store):
    workflow_id, first, second = _seed_workflow(store)
    store.update_workflow(workflow_id, {"assay_ids": [second, first]})
    assert [a["id"] for a in store.fetch_assays(workflow_id=workflow_id)] == [second, first]


def test_fetch_steps_sorted_by_order_index(store):
    assay_id = store.create_assay({"title": "Stain"})
    store.create_step({"assay_id": assay_id, "title": "Second", "order_index": 2})
    store.create_step({"assay_id": assay_id, "title": "First", "order_index": 1})
    assert [s["title"] for s in store.fetch_steps(assay_id)] == ["First", "Second"]


def test_start_workflow_positions_on_first_step(store):
    workflow_id, first, _second = _seed_workflow(store)
    run_id = store.start_workflow(workflow_id, {"samples": 4})
    run = store.get_user_workflow_by_id(run_id)
    first_step = store.fetch_steps(first)[0]
    assert run["status"] == "in-progress"
    assert run["current_assay_id"] == str(first)
    assert run["current_step_id"] == first_step["id"]
    assert run["parameters"] == {"samples": 4}
    assert store.user_workflows[-1]["id"] == run_id


def test_start_workflow_honours_dependencies(store):
    workflow_id, first, second = _seed_workflow(store)
    store.update_workflow(
        workflow_id, {"dependencies": [{"from_assay_id": second, "to_assay_id": first}]}
    )
    run = store.get_user_workflow_by_id(store.start_workflow(workflow_id))
    assert run["current_assay_id"] == str(second)


@pytest.mark.parametrize(
    "setup,message",
    [
        (lambda s: "unknown", "Workflow not found"),
        (lambda s: s.create_workflow({"title": "Empty", "assay_ids": []}), "No assays found for workflow"),
        (lambda s: _seed_workflow(s, steps=False)[0], "No steps found for first assay"),
    ],
)
def test_start_workflow_failures(store, setup, message):
    workflow_id = setup(store)
    with pytest.raises(StoreError, match=message):
        store.start_workflow(workflow_id, {})
    assert store.error == message
    assert store.loading is False


def test_complete_user_workflow_sets_status_and_timestamp(store):
    workflow_id, _first, _second = _seed_workflow(store)
    run_id = store.start_workflow(workflow_id, {})
    done = store.complete_user_workflow(run_id)
    assert done["status"] == "completed"
    assert done["completed_at"] is not None
    assert store.user_workflows[-1]["status"] == "completed"


def test_fetch_error_is_recorded_not_raised():
    class Broken(MemoryBackend):
        def list(self, table, **filters):
            raise StoreError("backend offline")

    store = WorkflowStore(Broken())
    store.projects = [{"id": "kept"}]
    assert store.fetch_projects() == [{"id": "kept"}]
    assert store.error == "backend offline"
    assert store.loading is False


def test_get_by_id_does_not_toggle_loading():
    seen = []

    class Spy(MemoryBackend):
        def get(self, table, record_id):
            seen.append(store.loading)
            return super().get(table, record_id)

    store = WorkflowStore(Spy())
    assert store.get_assay_by_id("missing") is None
    assert seen == [False]


def test_loading_is_true_during_calls():
    seen = []

    class Spy(MemoryBackend):
        def create(self, table, data):
            seen.append(store.loading)
            return super().create(table, data)

    store = WorkflowStore(Spy())
    store.create_assay({"title": "Blot"})
    assert seen == [True]
    assert store.loading is False


def test_demo_fixture_seeds_tables(tmp_path, monkeypatch):
    fixture = tmp_path / "demo.json"
    fixture.write_text(json.dumps({"projects": [{"id": "p1", "title": "Seeded"}]}))
    monkeypatch.setenv("LABFLOW_DEMO_FIXTURE", str(fixture))
    monkeypatch.delenv("LABFLOW_API_URL", raising=False)
    store = WorkflowStore.from_env()
    assert isinstance(store.backend, MemoryBackend)
    assert store.get_project_by_id("p1")["title"] == "Seeded"


def test_seed_rejects_unknown_tables():
    with pytest.raises(StoreError, match="Unknown table"):
        MemoryBackend({"gadgets": []})


def test_workflow_graph_is_validated(store):
    workflow_id, first, second = _seed_workflow(store)
    loop = [
        {"from_assay_id": first, "to_assay_id": second},
        {"from_assay_id": second, "to_assay_id": first},
    ]
    with pytest.raises(StoreError, match="cycle") as excinfo:
        store.update_workflow(workflow_id, {"dependencies": loop})
    assert excinfo.value.status_code == 422
    assert store.get_workflow_by_id(workflow_id)["dependencies"] == []

    with pytest.raises(StoreError, match="not part of the workflow"):
        store.create_workflow({"title": "Stray", "assay_ids": [first], "dependencies": loop[:1]})


def test_publishing_needs_assays(store):
    with pytest.raises(StoreError, match="without assays") as excinfo:
        store.create_workflow({"title": "Hollow", "status": "published"})
    assert excinfo.value.status_code == 409

    workflow_id, _first, _second = _seed_workflow(store)
    assert store.update_workflow(workflow_id, {"status": "published"})["status"] == "published"
    with pytest.raises(StoreError, match="without assays"):
        store.update_workflow(workflow_id, {"assay_ids": [], "dependencies": []})


def test_delete_assay_detaches_it_everywhere(store):
    workflow_id, first, second = _seed_workflow(store)
    store.update_workflow(workflow_id, {"dependencies": [{"from_assay_id": first, "to_assay_id": second}]})
    run_id = store.start_workflow(workflow_id, {})

    store.delete_assay(first)
    workflow = store.get_workflow_by_id(workflow_id)
    assert workflow["assay_ids"] == [second]
    assert workflow["dependencies"] == []
    assert store.fetch_steps(first) == []
    run = store.get_user_workflow_by_id(run_id)
    assert run["current_assay_id"] is None and run["current_step_id"] is None

    restarted = store.get_user_workflow_by_id(store.start_workflow(workflow_id, {}))
    assert restarted["current_assay_id"] == str(second)


def test_delete_workflow_drops_its_runs(store):
    workflow_id, _first, _second = _seed_workflow(store)
    run_id = store.start_workflow(workflow_id, {})
    store.delete_workflow(workflow_id)
    assert store.get_user_workflow_by_id(run_id) is None


def test_finished_runs_cannot_change_status(store):
    workflow_id, _first, _second = _seed_workflow(store)
    run_id = store.start_workflow(workflow_id, {})
    done = store.complete_user_workflow(run_id)

    with pytest.raises(StoreError, match="Run is completed") as excinfo:
        store.complete_user_workflow(run_id)
    assert excinfo.value.status_code == 409
    with pytest.raises(StoreError, match="Run is completed"):
        store.update_user_workflow(run_id, {"status": "in-progress"})
    assert store.get_user_workflow_by_id(run_id)["completed_at"] == done["completed_at"]

    dropped = store.start_workflow(workflow_id, {})
    assert store.update_user_workflow(dropped, {"status": "abandoned"})["completed_at"] is None


def test_only_assay_of_published_workflow_cannot_be_deleted(store):
    workflow_id, first, second = _seed_workflow(store)
    store.update_workflow(workflow_id, {"assay_ids": [first], "dependencies": [], "status": "published"})

    with pytest.raises(StoreError, match="only one in published workflows") as excinfo:
        store.delete_assay(first)
    assert excinfo.value.status_code == 409
    assert store.get_workflow_by_id(workflow_id)["assay_ids"] == [first]

    store.delete_assay(second)
    store.update_workflow(workflow_id, {"status": "draft"})
    store.delete_assay(first)
    assert store.get_workflow_by_id(workflow_id)["assay_ids"] == []
