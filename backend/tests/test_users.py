from sqlmodel import Session, select

from agent_console.core.security import verify_password
from agent_console.models import ActivityLog, User
from conftest import login, make_user

NEW_USER = {"email": "a@b.com", "name": "A", "password": "123456", "role": "user"}


def _activity(app, action):
    with Session(app.state.engine) as session:
        return session.exec(select(ActivityLog).where(ActivityLog.action == action)).all()


def test_create_user(client, app, admin, admin_headers):
    response = client.post("/api/users", json=NEW_USER, headers=admin_headers)
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "User created successfully"
    assert body["user"]["email"] == "a@b.com"
    assert body["user"]["role"] == "user"
    assert "password" not in body["user"]
    assert "createdAt" in body["user"]

    logs = _activity(app, "create_user")
    assert len(logs) == 1
    assert logs[0].agent == "user-management"
    assert logs[0].user_id == admin.id
    assert "a@b.com" in logs[0].details


def test_create_user_rejects_duplicate_email(client, admin_headers):
    assert client.post("/api/users", json=NEW_USER, headers=admin_headers).status_code == 201
    response = client.post("/api/users", json=NEW_USER, headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error"] == "User with this email already exists"


def test_create_user_validation_errors(client, admin_headers):
    response = client.post(
        "/api/users",
        json={"email": "not-an-email", "name": "", "password": "123", "role": "superuser"},
        headers=admin_headers,
    )
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation failed"
    fields = {detail["field"] for detail in body["details"]}
    assert {"email", "name", "password", "role"} <= fields


def test_update_only_touches_given_fields(client, app, admin_headers):
    created = client.post("/api/users", json=NEW_USER, headers=admin_headers).json()["user"]

    response = client.put(f"/api/users/{created['id']}", json={"name": "Renamed"}, headers=admin_headers)
    assert response.status_code == 200
    updated = response.json()["user"]
    assert updated["name"] == "Renamed"
    assert updated["email"] == "a@b.com"
    assert updated["role"] == "user"

    with Session(app.state.engine) as session:
        stored = session.get(User, created["id"])
        assert verify_password("123456", stored.password)

    logs = _activity(app, "update_user")
    assert len(logs) == 1
    assert "name to Renamed" in logs[0].details


def test_update_treats_blank_fields_as_unchanged(client, app, admin_headers):
    created = client.post("/api/users", json=NEW_USER, headers=admin_headers).json()["user"]

    response = client.put(
        f"/api/users/{created['id']}",
        json={"email": "", "name": "", "password": "", "role": "developer"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    updated = response.json()["user"]
    assert updated["email"] == "a@b.com"
    assert updated["name"] == "A"
    assert updated["role"] == "developer"

    with Session(app.state.engine) as session:
        assert verify_password("123456", session.get(User, created["id"]).password)


def test_update_password_is_rehashed(client, app, admin_headers):
    created = client.post("/api/users", json=NEW_USER, headers=admin_headers).json()["user"]
    client.put(f"/api/users/{created['id']}", json={"password": "newpass1"}, headers=admin_headers)
    login(client, "a@b.com", "newpass1")


def test_update_rejects_taken_email(client, app, admin_headers):
    created = client.post("/api/users", json=NEW_USER, headers=admin_headers).json()["user"]
    response = client.put(
        f"/api/users/{created['id']}", json={"email": "admin@example.com"}, headers=admin_headers
    )
    assert response.status_code == 409


def test_update_unknown_user(client, admin_headers):
    response = client.put("/api/users/missing", json={"name": "X"}, headers=admin_headers)
    assert response.status_code == 404
    assert response.json() == {"error": "User not found"}


def test_admin_cannot_delete_self(client, admin, admin_headers):
    response = client.delete(f"/api/users/{admin.id}", headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "Cannot delete your own account"


def test_delete_user_removes_their_activity(client, app, admin_headers):
    victim = make_user(app, "victim@example.com", "victim123")
    login(client, "victim@example.com", "victim123")
    assert len(_activity(app, "user_login")) == 2

    response = client.delete(f"/api/users/{victim.id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"message": "User deleted successfully"}

    with Session(app.state.engine) as session:
        assert session.get(User, victim.id) is None
        assert session.exec(select(ActivityLog).where(ActivityLog.user_id == victim.id)).all() == []

    logs = _activity(app, "delete_user")
    assert len(logs) == 1
    assert logs[0].level == "warning"

    assert client.delete(f"/api/users/{victim.id}", headers=admin_headers).status_code == 404


def test_list_users_paginates_and_filters(client, app, admin_headers):
    for i in range(3):
        make_user(app, f"dev{i}@example.com", "devpass", role="developer")

    response = client.get("/api/users", params={"page": 1, "limit": 2}, headers=admin_headers)
    body = response.json()
    assert len(body["items"]) == 2
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 4, "totalPages": 2}

    by_role = client.get("/api/users", params={"role": "developer"}, headers=admin_headers).json()
    assert by_role["pagination"]["total"] == 3

    by_search = client.get("/api/users", params={"search": "dev1"}, headers=admin_headers).json()
    assert [u["email"] for u in by_search["items"]] == ["dev1@example.com"]


def test_get_user(client, admin, admin_headers):
    response = client.get(f"/api/users/{admin.id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["email"] == "admin@example.com"


def test_mixed_case_email_can_log_in(client, admin_headers):
    payload = {**NEW_USER, "email": "Alice@Example.com"}
    assert client.post("/api/users", json=payload, headers=admin_headers).status_code == 201

    response = client.post("/api/auth/login", json={"email": "Alice@Example.com", "password": "123456"})
    assert response.status_code == 200
    assert response.json()["user"]["email"] == "Alice@Example.com"


def test_user_timestamps_carry_utc_offset(client, admin, admin_headers):
    body = client.get(f"/api/users/{admin.id}", headers=admin_headers).json()
    for field in ("createdAt", "updatedAt", "lastLoginTime"):
        assert body[field].endswith("Z"), body[field]

    update = client.put(f"/api/users/{admin.id}", json={"name": "Renamed"}, headers=admin_headers)
    assert update.status_code == 200
    assert update.json()["user"]["updatedAt"].endswith("Z")
