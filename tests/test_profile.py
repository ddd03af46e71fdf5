"""Tests for the profile settings endpoints."""
import pytest
from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile

from bookmarkDesk.models import BookmarkFolder
from profileDesk.models import CustomUser
from storageDesk.services import avatar_key

from .conftest import PASSWORD, make_image

pytestmark = pytest.mark.django_db


def test_profile_requires_authentication(api_client):
    assert api_client.get("/api/profile/").status_code == 401


def test_get_profile(auth_client, user):
    body = auth_client.get("/api/profile/").json()
    assert body["id"] == user.id
    assert body["email"] == "reader@example.com"
    assert body["credits"] == 0
    assert body["notification_preferences"] == {"email": True, "site": True}


def test_update_profile_fields(auth_client, user):
    response = auth_client.patch("/api/profile/", {"display_name": "Night Owl", "bio": "Reads at 3am"}, format="json")
    assert response.status_code == 200
    user.refresh_from_db()
    assert user.display_name == "Night Owl"
    assert user.bio == "Reads at 3am"


def test_username_change_rejects_taken_name(auth_client, make_user):
    make_user("Someone")
    response = auth_client.patch("/api/profile/", {"username": "someone"}, format="json")
    assert response.status_code == 400
    assert "username" in response.json()


def test_username_can_change_case_of_own_name(auth_client, user):
    response = auth_client.patch("/api/profile/", {"username": "Reader"}, format="json")
    assert response.status_code == 200
    assert response.json()["username"] == "Reader"


def test_bio_length_limit(auth_client):
    response = auth_client.patch("/api/profile/", {"bio": "x" * 1001}, format="json")
    assert response.status_code == 400


def test_avatar_upload_stores_image(auth_client, user):
    response = auth_client.post("/api/profile/avatar/", {"avatar": make_image("me.png")}, format="multipart")
    assert response.status_code == 201
    user.refresh_from_db()
    assert user.avatar_url == response.json()["avatar_url"]
    assert default_storage.exists(avatar_key(user.id))


def test_avatar_rejects_oversized_file(auth_client, settings):
    settings.AVATAR_MAX_BYTES = 10
    response = auth_client.post("/api/profile/avatar/", {"avatar": make_image("me.png")}, format="multipart")
    assert response.status_code == 400


def test_avatar_rejects_non_image(auth_client):
    fake = SimpleUploadedFile("me.png", b"plain text", content_type="image/png")
    response = auth_client.post("/api/profile/avatar/", {"avatar": fake}, format="multipart")
    assert response.status_code == 400


def test_preferences_merge_notification_flags(auth_client, user):
    response = auth_client.patch(
        "/api/profile/preferences/",
        {"theme": "dark", "notification_preferences": {"email": False}},
        format="json",
    )
    assert response.status_code == 200
    user.refresh_from_db()
    assert user.theme == "dark"
    assert user.notification_preferences == {"email": False, "site": True}


def test_preferences_reject_unknown_theme(auth_client):
    response = auth_client.patch("/api/profile/preferences/", {"theme": "neon"}, format="json")
    assert response.status_code == 400


def test_password_change(auth_client, user):
    response = auth_client.post("/api/profile/password/", {
        "current_password": PASSWORD,
        "new_password": "An0ther-Secret!",
        "confirm_password": "An0ther-Secret!",
    }, format="json")
    assert response.status_code == 200
    user.refresh_from_db()
    assert user.check_password("An0ther-Secret!")


def test_password_change_requires_current_password(auth_client):
    response = auth_client.post("/api/profile/password/", {
        "current_password": "nope",
        "new_password": "An0ther-Secret!",
        "confirm_password": "An0ther-Secret!",
    }, format="json")
    assert response.status_code == 400
    assert "current_password" in response.json()


def test_password_change_requires_matching_confirmation(auth_client):
    response = auth_client.post("/api/profile/password/", {
        "current_password": PASSWORD,
        "new_password": "An0ther-Secret!",
        "confirm_password": "Different-Secret!",
    }, format="json")
    assert response.status_code == 400


def test_delete_account_requires_password(auth_client, user):
    response = auth_client.delete("/api/profile/", {"password": "wrong"}, format="json")
    assert response.status_code == 400
    assert CustomUser.objects.filter(pk=user.pk).exists()


def test_delete_account_removes_user_and_folders(auth_client, user):
    response = auth_client.delete("/api/profile/", {"password": PASSWORD}, format="json")
    assert response.status_code == 204
    assert not CustomUser.objects.filter(pk=user.pk).exists()
    assert not BookmarkFolder.objects.filter(user_id=user.pk).exists()


def test_public_user_details(auth_client, make_user):
    other = make_user("artist", display_name="The Artist")
    body = auth_client.get(f"/api/users/{other.id}/").json()
    assert body == {
        "id": other.id,
        "username": "artist",
        "display_name": "The Artist",
        "avatar_url": "",
        "bio": "",
    }
