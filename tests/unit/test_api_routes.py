"""
Tests for the HTTP API (FastAPI TestClient, in-memory database).
"""

import pytest
from fastapi.testclient import TestClient

from config import settings
from src.database.connection import Database, set_database

ORG = "org_api"


def headers(user_id: str) -> dict:
    return {"X-User-Id": user_id, "X-Organization-Id": ORG}


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(settings, "enable_scheduler", False)
    set_database(Database("sqlite+aiosqlite:///:memory:"))

    from src.main import app
    with TestClient(app) as test_client:
        yield test_client

    set_database(None)


@pytest.fixture
def generated(client):
    response = client.post("/api/phases/1/generate", json={}, headers=headers("usr_zarko"))
    assert response.status_code == 200
    return response.json()


def week_one_task(client, user_id: str, title: str) -> dict:
    body = client.get("/api/schedule/1", headers=headers(user_id)).json()
    for task in body["visibleTasks"]:
        if task["title"] == title:
            return task
    raise AssertionError(f"{title!r} not in week 1 of {user_id}")


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_identity_headers_required(client):
    response = client.get("/api/schedule/1")
    assert response.status_code == 422


def test_generate_phase(generated):
    assert generated["version"] == 1
    assert generated["count"] == 108
    assert generated["users"] == 9
    assert generated["warnings"]
    assert generated["carry_over"]["phase"] == 1


def test_generate_invalid_phase(client):
    response = client.post("/api/phases/9/generate", json={}, headers=headers("usr_zarko"))
    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


def test_schedule(client, generated):
    response = client.get("/api/schedule/1", headers=headers("usr_angel"))

    assert response.status_code == 200
    body = response.json()
    assert body["totalTasks"] == 12
    assert body["currentWeek"] == 1
    assert len(body["visibleTasks"]) == 3


def test_schedule_for_missing_phase(client, generated):
    response = client.get("/api/schedule/2", headers=headers("usr_angel"))
    assert response.status_code == 404


def test_collaborative_flow(client, generated):
    """Executor completes, leader sees it in the queue and validates."""
    task = week_one_task(client, "usr_angel", "Crear contenido semanal Instagram")
    assert task["leader_id"] == "usr_carla"

    completed = client.post(f"/api/tasks/{task['id']}/complete", json={}, headers=headers("usr_angel"))
    assert completed.status_code == 200
    assert completed.json()["state"] == "completed_by_user"
    assert completed.json()["validated_by_leader"] is False

    queue = client.get("/api/leader-queue/1", headers=headers("usr_carla")).json()
    assert [item["id"] for item in queue["tasks"]] == [task["id"]]

    validated = client.post(
        f"/api/tasks/{task['id']}/validate",
        json={
            "executor_id": "usr_angel",
            "feedback": {"whatWentWell": "Constancia", "whatToImprove": "Más vídeo", "rating": 5},
        },
        headers=headers("usr_carla"),
    )
    assert validated.status_code == 200
    assert validated.json()["state"] == "validated"

    alerts = client.get("/api/alerts", headers=headers("usr_angel")).json()["alerts"]
    assert "task_validated" in [alert["alert_type"] for alert in alerts]


def test_invalid_feedback(client, generated):
    task = week_one_task(client, "usr_angel", "Crear contenido semanal Instagram")
    client.post(f"/api/tasks/{task['id']}/complete", json={}, headers=headers("usr_angel"))

    response = client.post(
        f"/api/tasks/{task['id']}/validate",
        json={"executor_id": "usr_angel", "feedback": {"whatWentWell": "Bien", "rating": 3}},
        headers=headers("usr_carla"),
    )

    assert response.status_code == 400
    assert "whatToImprove" in response.json()["reason"]


def test_complete_someone_elses_task(client, generated):
    task = week_one_task(client, "usr_angel", "Optimizar perfil LinkedIn empresa")

    response = client.post(f"/api/tasks/{task['id']}/complete", json={}, headers=headers("usr_carla"))

    assert response.status_code == 403
    assert response.json()["error"] == "permission_denied"


def test_unmark(client, generated):
    task = week_one_task(client, "usr_angel", "Optimizar perfil LinkedIn empresa")
    client.post(f"/api/tasks/{task['id']}/complete", json={}, headers=headers("usr_angel"))

    first = client.delete(f"/api/tasks/{task['id']}/completion", headers=headers("usr_angel"))
    second = client.delete(f"/api/tasks/{task['id']}/completion", headers=headers("usr_angel"))

    assert first.json()["unmarked"] is True
    assert second.json()["unmarked"] is False


def test_swap(client, generated):
    task = week_one_task(client, "usr_angel", "Optimizar perfil LinkedIn empresa")

    response = client.post(
        f"/api/tasks/{task['id']}/swap",
        json={"title": "Preparar calendario editorial"},
        headers=headers("usr_angel"),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["task"]["title"] == "Preparar calendario editorial"
    assert body["quota"]["usedSwaps"] == 1
    assert body["swappedByLeader"] is False

    swaps = client.get("/api/swaps/1", headers=headers("usr_angel")).json()
    assert swaps["quota"]["remainingSwaps"] == swaps["quota"]["totalSwaps"] - 1
    assert swaps["history"][0]["old_title"] == "Optimizar perfil LinkedIn empresa"


def test_weekly_objective_flow(client):
    status = client.get("/api/okrs/generation-status", headers=headers("usr_manu")).json()
    assert status["allowed"] is True

    created = client.post(
        "/api/okrs/objectives",
        json={
            "title": "Publicar dashboard de ventas",
            "key_results": [{"title": "Dashboards publicados", "target_value": 2}],
        },
        headers=headers("usr_manu"),
    )
    assert created.status_code == 200
    objective = created.json()

    blocked = client.post(
        "/api/okrs/objectives",
        json={"title": "Segundo objetivo", "key_results": [{"title": "Algo", "target_value": 1}]},
        headers=headers("usr_manu"),
    )
    assert blocked.status_code == 409
    assert blocked.json()["error"] == "carry_over_blocked"

    key_result_id = objective["key_results"][0]["id"]
    progress = client.post(
        f"/api/okrs/key-results/{key_result_id}/progress",
        json={"new_value": 2, "comment": "Ventas y marketing publicados"},
        headers=headers("usr_manu"),
    )
    assert progress.json()["status"] == "completed"

    assert client.get("/api/okrs/generation-status", headers=headers("usr_manu")).json()["allowed"] is True


def test_alerts_mark_read(client, generated):
    alerts = client.get("/api/alerts", headers=headers("usr_zarko")).json()["alerts"]
    assert alerts

    alert_id = alerts[0]["id"]
    assert client.post(f"/api/alerts/{alert_id}/read", headers=headers("usr_zarko")).status_code == 200
    assert client.post(f"/api/alerts/{alert_id}/read", headers=headers("usr_angel")).status_code == 404

    unread = client.get("/api/alerts", params={"unread_only": True}, headers=headers("usr_zarko")).json()
    assert alert_id not in [alert["id"] for alert in unread["alerts"]]


def test_reconcile(client, generated):
    response = client.post("/api/reconcile", headers=headers("usr_zarko"))

    assert response.status_code == 200
    assert response.json()["organization_id"] == ORG


def test_lock_task(client, generated):
    task = week_one_task(client, "usr_angel", "Optimizar perfil LinkedIn empresa")

    locked = client.post(f"/api/tasks/{task['id']}/lock", json={"locked": True}, headers=headers("usr_carla"))
    assert locked.status_code == 200
    assert locked.json()["is_locked"] is True

    completed = client.post(f"/api/tasks/{task['id']}/complete", json={}, headers=headers("usr_angel"))
    assert completed.status_code == 400

    denied = client.post(f"/api/tasks/{task['id']}/lock", json={"locked": False}, headers=headers("usr_miguel"))
    assert denied.status_code == 403
