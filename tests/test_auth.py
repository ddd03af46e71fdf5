"""Tests for signup, login and logout."""
import pytest

from bookmarkDesk.models import BookmarkFolder
from profileDesk.models import CustomUser

from .conftest import PASSWORD

pytestmark = pytest.mark.django_db


def _signup(client, username="newbie", email="newbie@example.com", password=PASSWORD):
    return client.post("/api/auth/signup/", {
        "username": username,
        "email": email,
        "display_name": "New Reader",
        "password": password,
    }, format="json")


def test_signup_returns_tokens_and_creates_default_folder(api_client):
    response = _signup(api_client)
    assert response.status_code == 201
    body = response.json()
    assert body["username"] == "newbie"
    assert body["token"] and body["refresh_token"]

    user = CustomUser.objects.get(username="newbie")
    assert user.check_password(PASSWORD)
    folder = BookmarkFolder.objects.get(user=user)
    assert folder.is_default
    assert folder.name == "Favorites"


def test_signup_rejects_duplicate_username_case_insensitive(api_client, make_user):
    make_user("Taken")
    response = _signup(api_client, username="taken", email="other@example.com")
    assert response.status_code == 400
    assert "username" in response.json()


def test_signup_rejects_duplicate_email(api_client, make_user):
    make_user("first", email="same@example.com")
    response = _signup(api_client, email="SAME@example.com")
    assert response.status_code == 400
    assert "email" in response.json()


def test_signup_rejects_weak_password(api_client):
    response = _signup(api_client, password="12345")
    assert response.status_code == 400
    assert not CustomUser.objects.filter(username="newbie").exists()


def test_signup_rejects_bad_username_characters(api_client):
    response = _signup(api_client, username="no spaces!")
    assert response.status_code == 400


@pytest.mark.parametrize("identifier", ["reader", "READER", "reader@example.com"])
def test_login_by_username_or_email(api_client, user, identifier):
    response = api_client.post("/api/auth/login/", {
        "username_or_email": identifier, "password": PASSWORD,
    }, format="json")
    assert response.status_code == 200
    assert response.json()["userId"] == user.id


def test_login_with_wrong_password(api_client, user):
    response = api_client.post("/api/auth/login/", {
        "username_or_email": "reader", "password": "wrong-password",
    }, format="json")
    assert response.status_code == 400


def test_login_inactive_user(api_client, make_user):
    make_user("sleeper", is_active=False)
    response = api_client.post("/api/auth/login/", {
        "username_or_email": "sleeper", "password": PASSWORD,
    }, format="json")
    assert response.status_code == 400


def test_access_token_authenticates_requests(api_client):
    token = _signup(api_client).json()["token"]
    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    response = api_client.get("/api/profile/")
    assert response.status_code == 200
    assert response.json()["username"] == "newbie"


def test_logout_blacklists_refresh_token(api_client):
    refresh = _signup(api_client).json()["refresh_token"]

    response = api_client.post("/api/auth/logout/", {"refresh_token": refresh}, format="json")
    assert response.status_code == 200
    assert response.json()["message"] == "Logged out successfully"

    response = api_client.post("/api/auth/token/refresh/", {"refresh": refresh}, format="json")
    assert response.status_code == 401


def test_logout_requires_token(api_client):
    response = api_client.post("/api/auth/logout/", {}, format="json")
    assert response.status_code == 400


def test_logout_with_garbage_token(api_client):
    response = api_client.post("/api/auth/logout/", {"refresh_token": "garbage"}, format="json")
    assert response.status_code == 400
