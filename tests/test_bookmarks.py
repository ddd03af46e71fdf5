"""Tests for bookmark folders and bookmarks."""
import uuid
from io import StringIO

import pytest
from django.core.management import call_command

from bookmarkDesk.models import Bookmark, BookmarkFolder, DefaultFolderProtected, FolderLimitExceeded
from userComicDesk.models import UserComic

pytestmark = pytest.mark.django_db

FOLDERS = "/api/bookmarks/folders/"


def _folder(client, name):
    response = client.post(FOLDERS, {"name": name}, format="json")
    assert response.status_code == 201, response.content
    return response.json()


def _bookmark(client, folder_id, comic, comic_type="official"):
    return client.post(
        f"{FOLDERS}{folder_id}/bookmarks/",
        {"comic_type": comic_type, "comic_id": str(comic.id)},
        format="json",
    )


def test_new_user_gets_default_folder(user):
    folders = list(BookmarkFolder.objects.filter(user=user))
    assert len(folders) == 1
    assert folders[0].is_default
    assert folders[0].display_order == 0


def test_folders_require_authentication(api_client):
    assert api_client.get(FOLDERS).status_code == 401


def test_hundred_and_first_folder_is_rejected(user):
    BookmarkFolder.objects.bulk_create([
        BookmarkFolder(user=user, name=f"F{i}", display_order=i) for i in range(1, 100)
    ])
    assert BookmarkFolder.objects.filter(user=user).count() == 100

    with pytest.raises(FolderLimitExceeded):
        BookmarkFolder.objects.create(user=user, name="One too many", display_order=100)
    assert BookmarkFolder.objects.filter(user=user).count() == 100


def test_folder_limit_via_api(auth_client, user):
    user.max_bookmark_folders = 2
    user.save(update_fields=["max_bookmark_folders"])

    _folder(auth_client, "Second")
    response = auth_client.post(FOLDERS, {"name": "Third"}, format="json")
    assert response.status_code == 400
    assert response.json()["code"] == "folder_limit"

    stats = auth_client.get(f"{FOLDERS}stats/").json()
    assert stats == {"total_folders": 2, "total_bookmarks": 0, "folders_remaining": 0}


def test_folder_create_appends_and_validates(auth_client):
    body = _folder(auth_client, "  Later  ")
    assert body["name"] == "Later"
    assert body["display_order"] == 1
    assert body["bookmark_count"] == 0
    assert body["color"] == "#3498db"

    assert auth_client.post(FOLDERS, {"name": "   "}, format="json").status_code == 400
    assert auth_client.post(FOLDERS, {"name": "Red", "color": "red"}, format="json").status_code == 400


def test_folders_are_private(auth_client, make_user):
    other_folder = BookmarkFolder.objects.get(user=make_user("someone"))
    response = auth_client.get(f"{FOLDERS}{other_folder.id}/bookmarks/")
    assert response.status_code == 404
    assert len(auth_client.get(FOLDERS).json()) == 1


def test_default_folder_cannot_be_deleted(auth_client, user):
    default = BookmarkFolder.objects.get(user=user, is_default=True)
    response = auth_client.delete(f"{FOLDERS}{default.id}/")
    assert response.status_code == 400
    assert response.json()["code"] == "default_folder"
    with pytest.raises(DefaultFolderProtected):
        default.delete()
    assert BookmarkFolder.objects.filter(pk=default.pk).exists()


def test_rename_folder(auth_client):
    folder = _folder(auth_client, "Old")
    response = auth_client.patch(f"{FOLDERS}{folder['id']}/", {"name": "New", "color": "#00ff00"}, format="json")
    assert response.status_code == 200
    assert BookmarkFolder.objects.get(pk=folder["id"]).name == "New"


def test_bookmark_lifecycle(auth_client, make_comic):
    comic = make_comic(title="Sky Pirates", slug="sky-pirates")
    folder = _folder(auth_client, "Adventure")

    response = _bookmark(auth_client, folder["id"], comic)
    assert response.status_code == 201
    bookmark = response.json()
    assert bookmark["title"] == "Sky Pirates"
    assert bookmark["slug"] == "sky-pirates"

    listing = {f["name"]: f["bookmark_count"] for f in auth_client.get(FOLDERS).json()}
    assert listing["Adventure"] == 1

    response = auth_client.delete(f"{FOLDERS}{folder['id']}/bookmarks/{bookmark['id']}/")
    assert response.status_code == 204
    listing = {f["name"]: f["bookmark_count"] for f in auth_client.get(FOLDERS).json()}
    assert listing["Adventure"] == 0

    response = auth_client.delete(f"{FOLDERS}{folder['id']}/bookmarks/{bookmark['id']}/")
    assert response.status_code == 404


def test_duplicate_bookmark_conflicts(auth_client, user, make_comic):
    comic = make_comic()
    default = BookmarkFolder.objects.get(user=user, is_default=True)
    assert _bookmark(auth_client, default.id, comic).status_code == 201

    response = _bookmark(auth_client, default.id, comic)
    assert response.status_code == 409
    assert response.json()["code"] == "duplicate_bookmark"

    # the same comic can live in another folder
    other = _folder(auth_client, "Again")
    assert _bookmark(auth_client, other["id"], comic).status_code == 201


def test_bookmark_uppercase_id_is_a_duplicate(auth_client, user, make_comic):
    comic = make_comic()
    default = BookmarkFolder.objects.get(user=user, is_default=True)
    _bookmark(auth_client, default.id, comic)
    response = auth_client.post(
        f"{FOLDERS}{default.id}/bookmarks/",
        {"comic_id": str(comic.id).upper()},
        format="json",
    )
    assert response.status_code == 409


def test_bookmark_unknown_comic(auth_client, user):
    default = BookmarkFolder.objects.get(user=user, is_default=True)
    response = auth_client.post(f"{FOLDERS}{default.id}/bookmarks/", {"comic_id": str(uuid.uuid4())}, format="json")
    assert response.status_code == 400
    response = auth_client.post(f"{FOLDERS}{default.id}/bookmarks/", {"comic_id": "not-a-uuid"}, format="json")
    assert response.status_code == 400


def test_bookmark_user_comic(auth_client, user, make_user):
    upload = UserComic.objects.create(
        user=make_user("artist"), title="Indie", slug="indie-000001", artist="A", status=UserComic.STATUS_PUBLISHED,
    )
    default = BookmarkFolder.objects.get(user=user, is_default=True)
    response = _bookmark(auth_client, default.id, upload, comic_type="user")
    assert response.status_code == 201
    assert response.json()["title"] == "Indie"


def test_bookmark_status(auth_client, user, make_comic):
    comic = make_comic()
    default = BookmarkFolder.objects.get(user=user, is_default=True)
    url = f"{FOLDERS}status/official/{comic.id}/"
    assert auth_client.get(url).json() == {"is_bookmarked": False, "folder_ids": []}

    _bookmark(auth_client, default.id, comic)
    assert auth_client.get(url).json() == {"is_bookmarked": True, "folder_ids": [str(default.id)]}


def test_reorder_folders(auth_client, user):
    default = BookmarkFolder.objects.get(user=user, is_default=True)
    a = _folder(auth_client, "A")
    b = _folder(auth_client, "B")

    response = auth_client.post(f"{FOLDERS}reorder/", {"source": 2, "destination": 0}, format="json")
    assert response.status_code == 200
    assert [f["name"] for f in response.json()] == ["B", "Favorites", "A"]

    response = auth_client.post(
        f"{FOLDERS}reorder/",
        {"order": [str(default.id), a["id"], b["id"]]},
        format="json",
    )
    assert [f["display_order"] for f in response.json()] == [0, 1, 2]
    assert [f["name"] for f in response.json()] == ["Favorites", "A", "B"]


def test_reorder_folders_stale(auth_client, user):
    default = BookmarkFolder.objects.get(user=user, is_default=True)
    a = _folder(auth_client, "A")
    response = auth_client.post(
        f"{FOLDERS}reorder/",
        {"order": [a["id"], str(default.id)], "expected_order": [a["id"], str(default.id)]},
        format="json",
    )
    assert response.status_code == 409
    assert response.json()["code"] == "stale_order"


def test_reorder_payload_validation(auth_client):
    assert auth_client.post(f"{FOLDERS}reorder/", {}, format="json").status_code == 400
    response = auth_client.post(f"{FOLDERS}reorder/", {"source": 0, "destination": 9}, format="json")
    assert response.status_code == 400
    assert response.json()["code"] == "invalid_index"


def test_reorder_bookmarks_in_folder(auth_client, user, make_comic):
    default = BookmarkFolder.objects.get(user=user, is_default=True)
    comics = [make_comic(title=t) for t in ("First", "Second", "Third")]
    for comic in comics:
        _bookmark(auth_client, default.id, comic)

    response = auth_client.post(
        f"{FOLDERS}{default.id}/bookmarks/reorder/", {"source": 0, "destination": 2}, format="json",
    )
    assert response.status_code == 200
    assert [b["title"] for b in response.json()] == ["Second", "Third", "First"]


def test_deleting_comic_removes_bookmarks(auth_client, user, make_comic):
    comic = make_comic()
    default = BookmarkFolder.objects.get(user=user, is_default=True)
    _bookmark(auth_client, default.id, comic)
    comic.delete()
    assert not Bookmark.objects.filter(user=user).exists()


def test_deleting_folder_removes_its_bookmarks(auth_client, user, make_comic):
    folder = _folder(auth_client, "Temp")
    _bookmark(auth_client, folder["id"], make_comic())
    assert auth_client.delete(f"{FOLDERS}{folder['id']}/").status_code == 204
    assert Bookmark.objects.filter(user=user).count() == 0


def test_normalize_command_compacts_and_prunes(user, make_comic):
    default = BookmarkFolder.objects.get(user=user, is_default=True)
    BookmarkFolder.objects.create(user=user, name="Gap", display_order=9)
    kept = make_comic()
    Bookmark.objects.create(user=user, folder=default, comic_id=str(kept.id), display_order=5)
    Bookmark.objects.create(user=user, folder=default, comic_id=str(uuid.uuid4()), display_order=8)

    out = StringIO()
    call_command("normalize_display_order", "--prune", stdout=out)

    assert "Removed 1 dangling bookmarks." in out.getvalue()
    orders = list(BookmarkFolder.objects.filter(user=user).order_by("display_order").values_list("display_order", flat=True))
    assert orders == [0, 1]
    assert list(default.bookmarks.values_list("display_order", flat=True)) == [0]
