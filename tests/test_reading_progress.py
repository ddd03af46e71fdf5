"""Tests for reading progress and the reading list."""
from datetime import timedelta

import pytest
from django.utils import timezone

from readingActivityDesk.models import ReadingProgress

pytestmark = pytest.mark.django_db


def test_progress_requires_authentication(api_client):
    assert api_client.get("/api/activity/reading-list/").status_code == 401


def test_progress_upsert(auth_client, make_comic):
    comic = make_comic(chapters=[(1, 5), (2, 5)])
    first, second = comic.chapters.order_by("chapter_number")

    response = auth_client.post("/api/activity/progress/", {"chapter_id": first.id, "page_number": 2}, format="json")
    assert response.status_code == 201
    assert response.json()["chapter_label"] == "Chapter 1: Part 1"

    response = auth_client.post("/api/activity/progress/", {"chapter_id": second.id, "page_number": 4}, format="json")
    assert response.status_code == 200
    body = response.json()
    assert body["chapter_number"] == 2
    assert body["page_number"] == 4
    assert body["page_count"] == 5
    assert ReadingProgress.objects.count() == 1


def test_progress_rejects_page_beyond_chapter(auth_client, make_comic):
    chapter = make_comic(chapters=[(1, 3)]).chapters.get()
    response = auth_client.post("/api/activity/progress/", {"chapter_id": chapter.id, "page_number": 4}, format="json")
    assert response.status_code == 400
    assert "page_number" in response.json()


@pytest.mark.parametrize("payload", [{"chapter_id": 999, "page_number": 1}, {"chapter_id": 1, "page_number": 0}])
def test_progress_rejects_bad_payload(auth_client, payload):
    assert auth_client.post("/api/activity/progress/", payload, format="json").status_code == 400


def test_get_and_delete_comic_progress(auth_client, make_comic):
    comic = make_comic(chapters=[(1, 2)])
    url = f"/api/activity/progress/{comic.id}/"
    assert auth_client.get(url).json() == {"progress": None}

    auth_client.post("/api/activity/progress/", {"chapter_id": comic.chapters.get().id, "page_number": 1}, format="json")
    assert auth_client.get(url).json()["progress"]["comic_slug"] == comic.slug

    assert auth_client.delete(url).status_code == 204
    assert auth_client.delete(url).status_code == 404


def test_reading_list_is_recent_first_and_capped(auth_client, user, make_comic):
    now = timezone.now()
    for i in range(12):
        comic = make_comic(title=f"Read {i}", chapters=[(1, 1)])
        progress = ReadingProgress.objects.create(user=user, comic=comic, chapter=comic.chapters.get(), page_number=1)
        ReadingProgress.objects.filter(pk=progress.pk).update(last_read_at=now - timedelta(minutes=12 - i))

    body = auth_client.get("/api/activity/reading-list/").json()
    assert len(body) == 10
    assert body[0]["comic_title"] == "Read 11"
    assert body[-1]["comic_title"] == "Read 2"
