from fastapi.testclient import TestClient

from app.main import app
from tests.helpers import as_user, create_admin, create_manager, create_user, create_viewer


def test_admin_ping_forbidden_without_admin_role(db_session):
    create_user(db_session, "user@local.test", "User Local")

    client = TestClient(app)
    r = client.get("/admin/ping", headers=as_user("user@local.test"))
    assert r.status_code == 403
    assert "ADMIN" in r.json()["error"]


def test_admin_ping_ok_with_admin_role(db_session):
    headers = create_admin(db_session, "admin2@local.test")

    client = TestClient(app)
    r = client.get("/admin/ping", headers=headers)
    assert r.status_code == 200
    assert r.json()["admin"] == "admin2@local.test"


def test_missing_header_is_unauthorized(db_session):
    client = TestClient(app)
    r = client.get("/entities/projects")
    assert r.status_code == 401
    assert r.json() == {"error": "Missing X-User-Email header (dev auth)"}


def test_inactive_user_is_unauthorized(db_session):
    user = create_user(db_session, "gone@local.test", roles=("ADMIN",))
    user.is_active = False
    db_session.commit()

    client = TestClient(app)
    r = client.get("/entities/projects", headers=as_user("gone@local.test"))
    assert r.status_code == 401


def test_viewer_can_read_but_not_write(db_session):
    headers = create_viewer(db_session)
    client = TestClient(app)

    r = client.get("/entities/projects", headers=headers)
    assert r.status_code == 200

    r = client.post("/entities/projects", json={"name": "Atlas"}, headers=headers)
    assert r.status_code == 403
    assert r.json()["error"].startswith("Forbidden")


def test_viewer_write_is_refused_before_validation(db_session):
    """A forbidden write never reaches the schema"""
    headers = create_viewer(db_session)
    client = TestClient(app)

    r = client.post("/entities/projects", json={"name": ""}, headers=headers)
    assert r.status_code == 403
    assert "details" not in r.json()


def test_viewer_cannot_delete(db_session):
    headers = create_viewer(db_session)
    client = TestClient(app)

    r = client.delete("/entities/projects/some-id", headers=headers)
    assert r.status_code == 403


def test_restricted_entity_requires_elevated_role(db_session):
    manager = create_manager(db_session)
    admin = create_admin(db_session)
    client = TestClient(app)

    r = client.get("/entities/rate-cards", headers=manager)
    assert r.status_code == 403

    r = client.post("/entities/rate-cards", json={"name": "Standard"}, headers=manager)
    assert r.status_code == 403

    r = client.get("/entities/rate-cards", headers=admin)
    assert r.status_code == 200
    assert r.json() == []


def test_entity_index_hides_restricted_entities(db_session):
    manager = create_manager(db_session)
    admin = create_admin(db_session)
    client = TestClient(app)

    names = client.get("/entities", headers=manager).json()
    assert "projects" in names
    assert "rate-cards" not in names

    names = client.get("/entities", headers=admin).json()
    assert "rate-cards" in names
