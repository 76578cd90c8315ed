"""
Tests for the browserhub REST API.

The application is built around a registry backed by FakeDriver, so no
browser is ever started.
"""

import pytest
from fastapi.testclient import TestClient

from browserhub.main import build_registry, create_app
from browserhub.modules.config import ConfigModule
from browserhub.modules.session import LaunchOptions, SessionRegistry


@pytest.fixture
def api_registry(fake_driver, events):
    return SessionRegistry(fake_driver, listener=events.append)


@pytest.fixture
def client(api_registry):
    """Test client running the full application lifespan."""
    app = create_app(registry=api_registry, config=ConfigModule(environ={}))
    with TestClient(app) as test_client:
        yield test_client


class TestServiceEndpoints:
    """Test info, health and metrics endpoints."""

    def test_service_info(self, client):
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "Browser-as-a-Service"
        assert data["status"] == "ok"
        assert data["activeSessions"] == 0

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert "timestamp" in data

    def test_healthz(self, client):
        response = client.get("/healthz")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_metrics_reports_active_sessions(self, client):
        client.post("/sessions")
        client.post("/sessions")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "browserhub_active_sessions 2" in response.text


class TestCreateSession:
    """Test POST /sessions."""

    def test_create_without_body(self, client, fake_driver):
        response = client.post("/sessions")

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        session = data["session"]
        assert session["id"].startswith("sess_")
        assert session["wsEndpoint"].startswith("ws://127.0.0.1:")
        assert session["cdpUrl"] == session["wsEndpoint"]
        assert session["status"] == "active"
        assert session["options"]["headless"] is True
        assert session["options"]["viewport"] == {"width": 1920, "height": 1080}
        assert fake_driver.launch_count == 1

    def test_create_with_options(self, client, fake_driver):
        response = client.post(
            "/sessions",
            json={
                "headless": False,
                "viewport": {"width": 1280, "height": 720},
                "userAgent": "TestAgent/1.0",
                "proxy": {"server": "http://proxy:8080", "username": "bob", "password": "hunter2"},
            },
        )

        assert response.status_code == 201
        options = response.json()["session"]["options"]
        assert options["headless"] is False
        assert options["viewport"] == {"width": 1280, "height": 720}
        assert options["userAgent"] == "TestAgent/1.0"
        assert options["proxy"] == {"server": "http://proxy:8080", "username": "bob"}
        assert "hunter2" not in response.text

        launched = fake_driver.launched[0].options
        assert launched.proxy.password == "hunter2"
        assert launched.viewport.width == 1280

    def test_create_accepts_snake_case(self, client, fake_driver):
        response = client.post("/sessions", json={"user_agent": "SnakeAgent"})

        assert response.status_code == 201
        assert fake_driver.launched[0].options.user_agent == "SnakeAgent"

    def test_create_rejects_invalid_viewport(self, client, fake_driver):
        response = client.post("/sessions", json={"viewport": {"width": 0, "height": 720}})

        assert response.status_code == 422
        data = response.json()
        assert data["success"] is False
        assert data["cause"] == "invalid_options"
        assert "viewport.width" in data["error"]
        assert "detail" not in data
        assert fake_driver.launch_count == 0

    def test_create_rejects_non_object_body(self, client, fake_driver):
        response = client.post("/sessions", json=["headless"])

        assert response.status_code == 422
        assert response.json()["success"] is False
        assert fake_driver.launch_count == 0

    def test_unparsable_body_means_defaults(self, client, fake_driver):
        response = client.post(
            "/sessions", content=b"not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 201
        assert response.json()["session"]["options"]["headless"] is True
        assert fake_driver.launched[0].options == LaunchOptions()

    def test_create_rejects_empty_proxy_server(self, client, fake_driver):
        response = client.post("/sessions", json={"proxy": {"server": ""}})

        assert response.status_code == 422
        assert fake_driver.launch_count == 0

    def test_launch_failure_returns_500(self, client, fake_driver):
        fake_driver.launch_error = RuntimeError("Chrome exited unexpectedly (code 1)")

        response = client.post("/sessions")

        assert response.status_code == 500
        data = response.json()
        assert data["success"] is False
        assert "exited unexpectedly" in data["error"]
        assert data["cause"] == "driver"

    def test_launch_timeout_header(self, client, fake_driver):
        fake_driver.launch_delay = 1.0

        response = client.post("/sessions", headers={"X-Launch-Timeout": "0.05"})

        assert response.status_code == 500
        assert response.json()["cause"] == "timeout"
        assert client.get("/sessions").json()["count"] == 0

    def test_launch_timeout_header_must_be_positive(self, client):
        response = client.post("/sessions", headers={"X-Launch-Timeout": "0"})

        assert response.status_code == 422
        data = response.json()
        assert data["success"] is False
        assert "x-launch-timeout" in data["error"]

    def test_launch_timeout_header_can_exceed_default(self, fake_driver):
        fake_driver.launch_delay = 0.1
        registry = SessionRegistry(fake_driver, launch_timeout=0.02)
        app = create_app(registry=registry, config=ConfigModule(environ={}))

        with TestClient(app) as client:
            assert client.post("/sessions").json()["cause"] == "timeout"
            response = client.post("/sessions", headers={"X-Launch-Timeout": "5"})

        assert response.status_code == 201


class TestBuildRegistry:
    def test_driver_startup_bounded_by_registry_deadline(self):
        registry = build_registry(ConfigModule(environ={"LAUNCH_TIMEOUT": "45"}))

        assert registry.launch_timeout == 45.0
        assert registry.driver.startup_timeout is None
        assert registry.driver.terminate_timeout == 5.0


class TestReadSessions:
    """Test GET /sessions and GET /sessions/{id}."""

    def test_list_empty(self, client):
        response = client.get("/sessions")

        assert response.status_code == 200
        assert response.json() == {"success": True, "count": 0, "sessions": []}

    def test_list_oldest_first(self, client):
        ids = [client.post("/sessions").json()["session"]["id"] for _ in range(3)]

        data = client.get("/sessions").json()

        assert data["count"] == 3
        assert [s["id"] for s in data["sessions"]] == ids

    def test_get_session(self, client):
        created = client.post("/sessions", json={"userAgent": "A/1"}).json()["session"]

        response = client.get(f"/sessions/{created['id']}")

        assert response.status_code == 200
        assert response.json()["session"] == created

    def test_get_unknown_session(self, client):
        response = client.get("/sessions/sess_doesnotexist")

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Session not found"}


class TestDeleteSession:
    """Test DELETE /sessions/{id}."""

    def test_delete_session(self, client, fake_driver):
        session_id = client.post("/sessions").json()["session"]["id"]

        response = client.delete(f"/sessions/{session_id}")

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": f"Session {session_id} terminated",
        }
        assert len(fake_driver.terminated) == 1
        assert client.get(f"/sessions/{session_id}").status_code == 404

    def test_delete_twice(self, client):
        session_id = client.post("/sessions").json()["session"]["id"]

        assert client.delete(f"/sessions/{session_id}").status_code == 200
        response = client.delete(f"/sessions/{session_id}")

        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_delete_unknown(self, client, fake_driver):
        response = client.delete("/sessions/sess_nope")

        assert response.status_code == 404
        assert fake_driver.terminated == []

    def test_delete_reports_success_when_browser_misbehaves(self, client, fake_driver):
        session_id = client.post("/sessions").json()["session"]["id"]
        fake_driver.terminate_error = RuntimeError("kill failed")

        response = client.delete(f"/sessions/{session_id}")

        assert response.status_code == 200
        assert client.get("/sessions").json()["count"] == 0


class TestShutdown:
    """Test lifecycle cleanup."""

    def test_lifespan_exit_terminates_all_sessions(self, api_registry, fake_driver):
        app = create_app(registry=api_registry, config=ConfigModule(environ={}))

        with TestClient(app) as client:
            for _ in range(3):
                assert client.post("/sessions").status_code == 201

        assert api_registry.count() == 0
        assert api_registry.is_shutting_down
        assert len(fake_driver.terminated) == 3

    def test_create_rejected_while_shutting_down(self, client, api_registry):
        client.portal.call(api_registry.shutdown_all)

        response = client.post("/sessions")

        assert response.status_code == 503
        data = response.json()
        assert data["success"] is False
        assert data["cause"] == "shutting_down"
        assert client.get("/").json()["status"] == "shutting_down"
