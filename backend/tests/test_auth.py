from jose import jwt

from app.core.config import get_settings
from app.core.security import create_access_token
from conftest import auth_header, login_admin, register_admin, register_student


def test_admin_register_and_login(client):
    data = register_admin(client)
    assert data["role"] == "ADMIN"
    assert data["email"] == "admin@example.com"
    assert "hashed_password" not in data

    response = client.post("/api/auth/admin/login", json={"email": "ADMIN@example.com", "password": "secret123"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["user"]["role"] == "ADMIN"
    assert "admin_token" in response.cookies

    claims = jwt.get_unverified_claims(body["data"]["access_token"])
    assert claims["role"] == "ADMIN"


def test_duplicate_admin_is_rejected(client):
    register_admin(client)
    response = client.post(
        "/api/auth/admin/register",
        json={"email": "admin@example.com", "password": "secret123", "name": "Again"},
    )
    assert response.status_code == 409
    assert response.json() == {"success": False, "message": "Admin with this email already exists"}


def test_registration_validation(client):
    short = client.post("/api/auth/admin/register", json={"email": "a@example.com", "password": "123", "name": "A"})
    assert short.status_code == 400
    assert short.json()["success"] is False

    bad_email = client.post("/api/auth/admin/register", json={"email": "nope", "password": "secret123", "name": "A"})
    assert bad_email.status_code == 400

    bad_usn = client.post("/api/auth/student/register", json={"usn": "1ab-21", "password": "secret123", "name": "S"})
    assert bad_usn.status_code == 400


def test_student_usn_is_normalized(client):
    data = register_student(client, usn="1ab21cs007")
    assert data["usn"] == "1AB21CS007"

    response = client.post("/api/auth/student/login", json={"usn": "1Ab21cS007", "password": "secret123"})
    assert response.status_code == 200
    assert "student_token" in response.cookies


def test_wrong_password_is_unauthorized(client):
    register_student(client)
    response = client.post("/api/auth/student/login", json={"usn": "1AB21CS001", "password": "wrong-pass"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid USN or password"


def test_cookie_authenticates_until_logout(client):
    register_admin(client)
    client.post("/api/auth/admin/login", json={"email": "admin@example.com", "password": "secret123"})
    assert client.get("/api/timetable/weekly/3A").status_code == 200

    logout = client.post("/api/auth/admin/logout")
    assert logout.status_code == 200
    client.cookies.clear()
    assert client.get("/api/timetable/weekly/3A").status_code == 401


def test_missing_invalid_and_expired_tokens(client):
    register_admin(client)
    token = login_admin(client)

    missing = client.get("/api/timetable/weekly/3A")
    assert missing.status_code == 401
    assert missing.json()["message"] == "Authentication required. Please login first."

    garbage = client.get("/api/timetable/weekly/3A", headers=auth_header("not-a-token"))
    assert garbage.status_code == 401

    user_id = jwt.get_unverified_claims(token)["sub"]
    expired = create_access_token(user_id, "ADMIN", expires_minutes=-5)
    response = client.get("/api/timetable/weekly/3A", headers=auth_header(expired))
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid or expired token"


def test_token_for_unknown_user(client):
    settings = get_settings()
    token = jwt.encode({"sub": "missing", "role": "ADMIN"}, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    response = client.get("/api/timetable/weekly/3A", headers=auth_header(token))
    assert response.status_code == 401
    assert response.json()["message"] == "User not found"
