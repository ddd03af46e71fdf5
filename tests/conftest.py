import io
import itertools
import zipfile

import pytest
from django.core.cache import cache
from django.core.files.uploadedfile import SimpleUploadedFile
from PIL import Image
from rest_framework.test import APIClient

from comicDesk.models import Chapter, Comic, Genre, Page
from profileDesk.models import CustomUser

PASSWORD = "Str0ng-Passw0rd!"
_counter = itertools.count(1)


def make_image(name="page.png", size=(8, 8), fmt="PNG", color="red"):
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt)
    return SimpleUploadedFile(name, buf.getvalue(), content_type=f"image/{fmt.lower()}")


def make_zip(entries):
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, content in entries:
            zf.writestr(name, content)
    return SimpleUploadedFile("pages.zip", buf.getvalue(), content_type="application/zip")


def image_bytes(fmt="PNG"):
    return make_image(fmt=fmt).read()


@pytest.fixture(autouse=True)
def media_root(settings, tmp_path):
    settings.MEDIA_ROOT = str(tmp_path / "media")
    return settings.MEDIA_ROOT


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def make_user(db):
    def factory(username=None, **extra):
        n = next(_counter)
        username = username or f"user{n}"
        return CustomUser.objects.create_user(
            username=username,
            email=extra.pop("email", f"{username}@example.com"),
            password=extra.pop("password", PASSWORD),
            **extra,
        )
    return factory


@pytest.fixture
def user(make_user):
    return make_user("reader")


@pytest.fixture
def auth_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def client_for():
    def factory(some_user):
        client = APIClient()
        client.force_authenticate(user=some_user)
        return client
    return factory


@pytest.fixture
def genre(db):
    return Genre.objects.create(name="Action", slug="action", color="#ff0000")


@pytest.fixture
def make_comic(db):
    def factory(title=None, chapters=(), **extra):
        n = next(_counter)
        title = title or f"Comic {n}"
        comic = Comic.objects.create(title=title, slug=extra.pop("slug", f"comic-{n}"), **extra)
        for entry in chapters:
            number, page_total = entry[0], entry[1]
            premium = entry[2] if len(entry) > 2 else False
            cost = entry[3] if len(entry) > 3 else 0
            chapter = Chapter.objects.create(
                comic=comic, chapter_number=number, title=f"Part {number}",
                is_premium=premium, credit_cost=cost,
            )
            for page_number in range(1, page_total + 1):
                Page.objects.create(
                    chapter=chapter, page_number=page_number,
                    image_url=f"/media/covers/{comic.id}/{number}/{page_number}.jpg",
                )
        return comic
    return factory


@pytest.fixture
def image_factory():
    return make_image
