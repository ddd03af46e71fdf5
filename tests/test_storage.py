"""Tests for the object-store helpers and storage endpoints."""
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError
from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile

from storageDesk import services
from storageDesk.services import (
    delete_prefix,
    get_file,
    list_files,
    put_object,
    upload_file,
    user_comic_page_key,
)


def test_key_layout():
    assert services.cover_key("c1") == "covers/c1.jpg"
    assert services.user_comic_cover_key(7, "c1") == "user-comics/7/covers/c1.jpg"
    assert user_comic_page_key(7, "c1", 4) == "user-comics/7/pages/c1/004.jpg"
    assert services.avatar_key(7) == "avatars/7.jpg"


def test_put_object_overwrites_fixed_key():
    put_object("misc/item.txt", b"one")
    stored = put_object("misc/item.txt", b"two")
    assert stored.key == "misc/item.txt"
    assert get_file("misc/item.txt") == b"two"


def test_upload_file_prefixes_timestamp_and_cleans_name():
    stored = upload_file(SimpleUploadedFile("My Photo.PNG", b"data"), "uploads")
    assert stored.key.startswith("uploads/")
    assert stored.key.endswith("-my-photo.png")
    assert default_storage.exists(stored.key)


def test_list_and_delete_prefix():
    put_object("ads/home/b.png", b"b")
    put_object("ads/home/a.png", b"a")
    put_object("ads/home/nested/c.png", b"c")

    assert [o.key for o in list_files("ads/home/")] == ["ads/home/a.png", "ads/home/b.png"]
    assert list_files("ads/nowhere/") == []

    assert delete_prefix("ads/home/") == 2
    assert list_files("ads/home/") == []


def test_get_missing_file_raises():
    with pytest.raises(services.StorageError):
        get_file("missing/file.bin")


@pytest.mark.django_db
def test_connectivity_check(api_client):
    body = api_client.get("/api/test/").json()
    assert body["success"] is True
    assert body["data"] == [1]


@pytest.mark.django_db
def test_connectivity_upload(api_client):
    response = api_client.post("/api/test/", {"file": SimpleUploadedFile("hello.txt", b"hi")}, format="multipart")
    assert response.status_code == 200
    assert default_storage.exists(response.json()["key"])

    response = api_client.post("/api/test/", {}, format="multipart")
    assert response.status_code == 400


@pytest.mark.django_db
def test_ads_listing(api_client):
    put_object("ads/home/banner.png", b"x")
    body = api_client.get("/api/storage/ads/home/").json()
    assert body["position"] == "home"
    assert [a["key"] for a in body["ads"]] == ["ads/home/banner.png"]


@pytest.mark.django_db
def test_signed_url_for_own_key(auth_client, user):
    key = f"user-comics/{user.id}/covers/x.jpg"
    response = auth_client.get("/api/storage/signed-url/", {"key": key})
    assert response.status_code == 200
    assert response.json()["key"] == key
    assert response.json()["url"].endswith(key)


@pytest.mark.django_db
def test_signed_url_forbidden_for_other_users_key(auth_client, user):
    response = auth_client.get("/api/storage/signed-url/", {"key": f"user-comics/{user.id + 1}/covers/x.jpg"})
    assert response.status_code == 403


@pytest.mark.django_db
def test_signed_url_admin_may_sign_anything(client_for, make_user):
    admin = make_user("admin1", role="admin")
    response = client_for(admin).get("/api/storage/signed-url/", {"key": "covers/anything.jpg"})
    assert response.status_code == 200


@pytest.mark.django_db
@pytest.mark.parametrize("key", ["", "user-comics/1/../2/x.jpg"])
def test_signed_url_rejects_bad_keys(auth_client, key):
    assert auth_client.get("/api/storage/signed-url/", {"key": key}).status_code == 400


@pytest.mark.django_db
def test_signed_url_uses_s3_presigning(auth_client, user, settings, monkeypatch):
    settings.S3_CONFIGURED = True
    settings.AWS_STORAGE_BUCKET_NAME = "comics"
    client = MagicMock()
    client.generate_presigned_url.return_value = "https://s3.example.com/signed"
    monkeypatch.setattr(services, "_s3_client", lambda: client)

    key = f"avatars/{user.id}.jpg"
    response = auth_client.get("/api/storage/signed-url/", {"key": key, "expires_in": "60"})
    assert response.json()["url"] == "https://s3.example.com/signed"
    client.generate_presigned_url.assert_called_once_with(
        "get_object", Params={"Bucket": "comics", "Key": key}, ExpiresIn=60,
    )


@pytest.mark.django_db
def test_signed_url_reports_s3_errors(auth_client, user, settings, monkeypatch):
    settings.S3_CONFIGURED = True
    client = MagicMock()
    client.generate_presigned_url.side_effect = ClientError({"Error": {"Code": "403", "Message": "Denied"}}, "GetObject")
    monkeypatch.setattr(services, "_s3_client", lambda: client)

    response = auth_client.get("/api/storage/signed-url/", {"key": f"avatars/{user.id}.jpg"})
    assert response.status_code == 502
    assert response.json()["code"] == "storage_error"
