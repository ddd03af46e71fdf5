"""Tests for the shared ordering helpers."""
import random

import pytest

from bookmarkDesk.models import BookmarkFolder
from bookmarkDesk.utils.ordering import (
    OrderingError,
    StaleOrder,
    assign_positions,
    compact,
    move_item,
    next_position,
    persist_positions,
)
from userComicDesk.models import UserComic, UserComicPage


def test_move_item_moves_forward_and_keeps_relative_order():
    assert move_item(["a", "b", "c", "d"], 0, 2) == ["b", "c", "a", "d"]


def test_move_item_moves_backward():
    assert move_item(["a", "b", "c", "d"], 3, 1) == ["a", "d", "b", "c"]


def test_move_item_same_index_is_identity():
    items = ["a", "b", "c"]
    assert move_item(items, 1, 1) == items


def test_move_item_does_not_mutate_input():
    items = ["a", "b", "c"]
    move_item(items, 0, 2)
    assert items == ["a", "b", "c"]


@pytest.mark.parametrize("source,destination", [(-1, 0), (0, 3), (3, 0), (0, -1)])
def test_move_item_rejects_out_of_range(source, destination):
    with pytest.raises(OrderingError) as exc:
        move_item(["a", "b", "c"], source, destination)
    assert exc.value.code == "invalid_index"


def test_move_item_rejects_empty_list():
    with pytest.raises(OrderingError):
        move_item([], 0, 0)


@pytest.mark.parametrize("size", [1, 2, 7, 100])
def test_reorder_yields_permutation_with_item_at_destination(size):
    rng = random.Random(size)
    items = list(range(size))
    for _ in range(25):
        source = rng.randrange(size)
        destination = rng.randrange(size)
        moved = move_item(items, source, destination)

        positions = assign_positions(moved, start=0)
        assert sorted(positions.values()) == list(range(size))
        assert sorted(moved) == items
        assert moved[destination] == items[source]
        rest_before = [i for i in items if i != items[source]]
        rest_after = [i for i in moved if i != items[source]]
        assert rest_before == rest_after


def test_assign_positions_one_based_for_pages():
    assert assign_positions([10, 20, 30], start=1) == {"10": 1, "20": 2, "30": 3}


@pytest.fixture
def folders(user):
    # user already owns the default folder at position 0
    created = [
        BookmarkFolder.objects.create(user=user, name=name, display_order=i)
        for i, name in enumerate(["One", "Two", "Three"], start=1)
    ]
    return [user.bookmark_folders.get(is_default=True)] + created


def _order(user):
    return list(BookmarkFolder.objects.filter(user=user).order_by("display_order").values_list("name", flat=True))


@pytest.mark.django_db
def test_persist_positions_writes_new_order(user, folders):
    ids = [f.pk for f in reversed(folders)]
    changed = persist_positions(BookmarkFolder.objects.filter(user=user), ids)

    assert changed == 4
    assert _order(user) == ["Three", "Two", "One", "Favorites"]
    positions = list(BookmarkFolder.objects.filter(user=user).order_by("display_order").values_list("display_order", flat=True))
    assert positions == [0, 1, 2, 3]


@pytest.mark.django_db
def test_persist_positions_only_counts_changed_rows(user, folders):
    ids = [folders[0].pk, folders[2].pk, folders[1].pk, folders[3].pk]
    changed = persist_positions(BookmarkFolder.objects.filter(user=user), ids)
    assert changed == 2


@pytest.mark.django_db
def test_persist_positions_noop_when_unchanged(user, folders):
    ids = [f.pk for f in folders]
    assert persist_positions(BookmarkFolder.objects.filter(user=user), ids) == 0


@pytest.mark.django_db
def test_persist_positions_detects_stale_order(user, folders):
    stale = [folders[1].pk, folders[0].pk, folders[2].pk, folders[3].pk]
    with pytest.raises(StaleOrder) as exc:
        persist_positions(
            BookmarkFolder.objects.filter(user=user),
            [f.pk for f in reversed(folders)],
            expected_order=stale,
        )
    assert exc.value.code == "stale_order"
    assert _order(user) == ["Favorites", "One", "Two", "Three"]


@pytest.mark.django_db
def test_persist_positions_requires_every_item(user, folders):
    with pytest.raises(OrderingError):
        persist_positions(BookmarkFolder.objects.filter(user=user), [folders[0].pk, folders[1].pk])


@pytest.mark.django_db
def test_persist_positions_rejects_duplicates(user, folders):
    ids = [folders[0].pk, folders[0].pk, folders[1].pk, folders[2].pk]
    with pytest.raises(OrderingError):
        persist_positions(BookmarkFolder.objects.filter(user=user), ids)


@pytest.mark.django_db
def test_persist_positions_on_unique_page_numbers(user):
    comic = UserComic.objects.create(user=user, title="Pages", slug="pages-000001", artist="A")
    pages = [
        UserComicPage.objects.create(comic=comic, page_number=n, image_url=f"/{n}.jpg", storage_key=f"{n}.jpg")
        for n in (1, 2, 3)
    ]

    order = [pages[2].pk, pages[0].pk, pages[1].pk]
    persist_positions(comic.pages.all(), order, field="page_number", start=1, unique=True)

    result = list(comic.pages.order_by("page_number").values_list("storage_key", flat=True))
    assert result == ["3.jpg", "1.jpg", "2.jpg"]


@pytest.mark.django_db
def test_next_position_and_compact(user):
    BookmarkFolder.objects.create(user=user, name="Gap", display_order=7)
    qs = BookmarkFolder.objects.filter(user=user)
    assert next_position(qs) == 8

    compact(qs)
    assert list(qs.order_by("display_order").values_list("display_order", flat=True)) == [0, 1]
