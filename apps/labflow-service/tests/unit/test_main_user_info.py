def test_user_info_guest(client):
    data = client.get("/user-info").json()
    assert data["authenticated"] is False
    assert data["feature_progress_tracking_enabled"] is True


def test_user_info_from_proxy_headers(client, admin_headers):
    data = client.get("/user-info", headers=admin_headers).json()
    assert data["authenticated"] is True
    assert data["email"] == "admin@example.com"
    assert data["role"] == "admin"
    assert data["is_admin"] is True


def test_user_info_dev_mode(client, monkeypatch):
    monkeypatch.setenv("DEV_MODE", "true")
    monkeypatch.setenv("APP_BASE_URL", "http://localhost:3000")
    data = client.get("/user-info").json()
    assert data["email"] == "dev@localhost"
    assert data["display_name"] == "Development User"


def test_user_info_dev_mode_misconfigured(client, monkeypatch):
    monkeypatch.setenv("DEV_MODE", "true")
    monkeypatch.setenv("APP_BASE_URL", "https://labflow.example.org")
    assert client.get("/user-info").status_code == 500
