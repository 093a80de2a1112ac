import uuid

from labflow.utils.feature_flags import refresh_feature_flag_cache


def test_admin_creates_workflow_with_graph(client, admin_headers, assay_factory, workflow_factory):
    a = assay_factory("Transform cells")
    b = assay_factory("Induce expression")
    wf = workflow_factory(assays=[a, b], dependencies=[(a, b)])
    assert wf["assay_ids"] == [a["id"], b["id"]]
    assert wf["status"] == "published"

    graph = client.get(f"/workflows/{wf['id']}/graph").json()
    assert graph["execution_order"] == [a["id"], b["id"]]
    assert graph["dependencies"] == [{"from_assay_id": a["id"], "to_assay_id": b["id"]}]
    assert graph["total_minutes"] == 240
    assert graph["total_time"] == "4 hours"


def test_non_admin_cannot_author(client, user_headers):
    r = client.post("/workflows/", json={"title": "Sneaky"}, headers=user_headers)
    assert r.status_code == 403


def test_drafts_hidden_from_guests_and_members(client, admin_headers, user_headers, workflow_factory):
    draft = workflow_factory("Draft protocol", status="draft")
    published = workflow_factory("Public protocol")

    guest_titles = [w["title"] for w in client.get("/workflows/").json()]
    member_titles = [w["title"] for w in client.get("/workflows/", headers=user_headers).json()]
    admin_titles = [w["title"] for w in client.get("/workflows/", headers=admin_headers).json()]
    assert guest_titles == member_titles == [published["title"]]
    assert set(admin_titles) == {draft["title"], published["title"]}

    assert client.get(f"/workflows/{draft['id']}", headers=user_headers).status_code == 404
    assert client.get(f"/workflows/{draft['id']}", headers=admin_headers).status_code == 200


def test_catalog_filters(client, admin_headers, workflow_factory):
    workflow_factory("Gel electrophoresis", category="Molecular biology", difficulty="beginner")
    workflow_factory("Flow cytometry", category="Immunology", difficulty="advanced", description="Count cells")
    workflow_factory("Old method", status="archived")

    def titles(**params):
        return [w["title"] for w in client.get("/workflows/", params=params, headers=admin_headers).json()]

    assert titles(category="immunology") == ["Flow cytometry"]
    assert titles(difficulty="beginner") == ["Gel electrophoresis"]
    assert titles(search="count") == ["Flow cytometry"]
    assert titles(status="archived") == ["Old method"]


def test_project_filter_and_unknown_project(client, admin_headers, workflow_factory):
    project = client.post("/projects/", json={"title": "Vaccine study"}, headers=admin_headers).json()
    workflow_factory("Linked", project_id=project["id"])
    workflow_factory("Unlinked")
    rows = client.get("/workflows/", params={"project_id": project["id"]}).json()
    assert [w["title"] for w in rows] == ["Linked"]

    r = client.post("/workflows/", json={"title": "Orphan", "project_id": str(uuid.uuid4())}, headers=admin_headers)
    assert r.status_code == 422


def test_invalid_graph_rejected(client, admin_headers, assay_factory):
    a = assay_factory("Step A")
    b = assay_factory("Step B")
    payload = {
        "title": "Loop",
        "assay_ids": [a["id"], b["id"]],
        "dependencies": [
            {"from_assay_id": a["id"], "to_assay_id": b["id"]},
            {"from_assay_id": b["id"], "to_assay_id": a["id"]},
        ],
    }
    r = client.post("/workflows/", json=payload, headers=admin_headers)
    assert r.status_code == 422
    assert "cycle" in r.json()["detail"]

    r = client.post("/workflows/", json={"title": "Ghost", "assay_ids": [str(uuid.uuid4())]}, headers=admin_headers)
    assert r.status_code == 422


def test_replace_graph_reorders_execution(client, admin_headers, assay_factory, workflow_factory):
    a = assay_factory("First")
    b = assay_factory("Second")
    c = assay_factory("Third")
    wf = workflow_factory(assays=[a, b])
    r = client.put(
        f"/workflows/{wf['id']}/graph",
        json={
            "assay_ids": [a["id"], b["id"], c["id"]],
            "dependencies": [{"from_assay_id": c["id"], "to_assay_id": a["id"]}],
        },
        headers=admin_headers,
    )
    assert r.status_code == 200, r.text
    assert r.json()["execution_order"] == [b["id"], c["id"], a["id"]]
    assert client.get(f"/workflows/{wf['id']}").json()["assay_ids"] == [a["id"], b["id"], c["id"]]


def test_graph_editor_flag(client, admin_headers, workflow_factory, monkeypatch):
    wf = workflow_factory()
    monkeypatch.setenv("FEATURE_GRAPH_EDITOR_ENABLED", "false")
    refresh_feature_flag_cache()
    r = client.put(f"/workflows/{wf['id']}/graph", json={"assay_ids": []}, headers=admin_headers)
    assert r.status_code == 503


def test_update_publish_and_delete(client, admin_headers, assay_factory, workflow_factory):
    empty = workflow_factory("Empty draft", status="draft")
    assert client.post(f"/workflows/{empty['id']}/publish", headers=admin_headers).status_code == 409

    wf = workflow_factory("Draft", assays=[assay_factory()], status="draft")
    r = client.put(f"/workflows/{wf['id']}", json={"hypothesis": "It works"}, headers=admin_headers)
    assert r.json()["hypothesis"] == "It works"
    assert r.json()["title"] == "Draft"

    published = client.post(f"/workflows/{wf['id']}/publish", headers=admin_headers)
    assert published.json()["status"] == "published"

    assert client.delete(f"/workflows/{wf['id']}", headers=admin_headers).status_code == 204
    assert client.get(f"/workflows/{wf['id']}", headers=admin_headers).status_code == 404
    assert client.delete(f"/workflows/{wf['id']}", headers=admin_headers).status_code == 404


def test_update_validation(client, admin_headers, workflow_factory):
    wf = workflow_factory()
    r = client.put(f"/workflows/{wf['id']}", json={"difficulty": "impossible"}, headers=admin_headers)
    assert r.status_code == 422
    missing = client.put(f"/workflows/{uuid.uuid4()}", json={"title": "Nope"}, headers=admin_headers)
    assert missing.status_code == 404


def test_publish_requires_assays_on_every_path(client, admin_headers, workflow_factory):
    r = client.post("/workflows/", json={"title": "Hollow", "status": "published"}, headers=admin_headers)
    assert r.status_code == 409

    empty = workflow_factory("Empty draft", status="draft")
    r = client.put(f"/workflows/{empty['id']}", json={"status": "published"}, headers=admin_headers)
    assert r.status_code == 409
    assert client.get(f"/workflows/{empty['id']}", headers=admin_headers).json()["status"] == "draft"

    live = workflow_factory("Live")
    r = client.put(f"/workflows/{live['id']}/graph", json={"assay_ids": []}, headers=admin_headers)
    assert r.status_code == 409
    assert client.get(f"/workflows/{live['id']}").json()["assay_ids"] == live["assay_ids"]

    archived = client.put(f"/workflows/{live['id']}", json={"status": "archived"}, headers=admin_headers)
    assert archived.json()["status"] == "archived"


def test_null_values_for_required_fields_rejected(client, admin_headers, assay_factory, workflow_factory):
    wf = workflow_factory()
    for field in ("title", "status", "difficulty", "description", "category"):
        r = client.put(f"/workflows/{wf['id']}", json={field: None}, headers=admin_headers)
        assert r.status_code == 422, field
    # Nullable columns still accept null
    r = client.put(f"/workflows/{wf['id']}", json={"estimated_total_time": None}, headers=admin_headers)
    assert r.status_code == 200

    assay = assay_factory()
    for field in ("title", "description", "protocol", "materials"):
        r = client.put(f"/assays/{assay['id']}", json={field: None}, headers=admin_headers)
        assert r.status_code == 422, field

    step = assay["steps"][0]
    for field in ("title", "order_index"):
        r = client.put(f"/steps/{step['id']}", json={field: None}, headers=admin_headers)
        assert r.status_code == 422, field
    assert client.put(f"/steps/{step['id']}", json={"warning": None}, headers=admin_headers).status_code == 200

    project = client.post("/projects/", json={"title": "Null check"}, headers=admin_headers).json()
    r = client.put(f"/projects/{project['id']}", json={"status": None}, headers=admin_headers)
    assert r.status_code == 422
