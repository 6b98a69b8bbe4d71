from app.api.routes import health
from app.db.bootstrap import ensure_timetable_constraints


def test_health_endpoints(client):
    live = client.get("/api/health/live")
    assert live.status_code == 200
    assert live.json()["status"] == "ok"

    ready = client.get("/api/health/ready")
    assert ready.status_code in {200, 503}
    payload = ready.json()
    assert "database" in payload
    assert "smtp" not in payload


def test_ready_reports_schema_of_bound_engine(client, engine, monkeypatch):
    monkeypatch.setattr(health, "engine", engine)

    ready = client.get("/api/health/ready")

    assert ready.status_code == 200
    assert ready.json()["database"]["schema_ok"] is True
    assert ready.json()["database"]["missing_indexes"] == []


def test_security_headers_are_set(client):
    response = client.get("/api/health")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["Cache-Control"] == "no-store"
    assert response.headers["X-Request-ID"]


def test_constraint_bootstrap_is_idempotent(engine):
    # Tables were created with the indexes already in place.
    assert ensure_timetable_constraints(engine) == []
