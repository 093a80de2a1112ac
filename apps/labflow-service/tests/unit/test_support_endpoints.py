from labflow.utils.feature_flags import refresh_feature_flag_cache


def test_support_build_info(client, monkeypatch):
    monkeypatch.setenv("BUILD_SHA", "abc123")
    monkeypatch.delenv("IMAGE_TAG", raising=False)
    data = client.get("/build-info").json()
    assert data["service_name"] == "labflow-service"
    assert data["build_sha"] == "abc123"
    assert data["image_tag"] is None
    assert "version" in data


def test_feature_flags_endpoint(client, monkeypatch):
    monkeypatch.setenv("FEATURE_GRAPH_EDITOR_ENABLED", "false")
    refresh_feature_flag_cache()
    data = client.get("/feature-flags").json()
    assert data["feature_graph_editor_enabled"] is False
    assert data["feature_formula_evaluation_enabled"] is True
