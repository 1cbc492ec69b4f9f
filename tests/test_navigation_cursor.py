import pytest

from imgsort.core.navigation_cursor import NavigationCursor
from imgsort.core.path_catalog import PathCatalog


class RecordingScheduler:
    def __init__(self):
        self.calls = []

    def set_priority_index(self, index):
        self.calls.append(("priority", index))

    def maintain_window(self):
        self.calls.append(("maintain",))
        return []


def make_catalog(n):
    catalog = PathCatalog("/photos")
    for i in range(n):
        catalog.append(f"/photos/img_{i:02d}.jpg")
    return catalog


def test_empty_catalog_has_no_position():
    cursor = NavigationCursor(make_catalog(0))
    assert cursor.index is None
    assert cursor.current() is None
    assert cursor.next() is False
    assert cursor.prev() is False


def test_starts_at_first_entry():
    cursor = NavigationCursor(make_catalog(3))
    assert cursor.index == 0
    assert cursor.current().basename == "img_00.jpg"


def test_next_and_prev_clamp_at_ends():
    cursor = NavigationCursor(make_catalog(2))

    assert cursor.prev() is False
    assert cursor.index == 0
    assert cursor.next() is True
    assert cursor.next() is False
    assert cursor.index == 1
    assert not cursor.has_next()
    assert cursor.has_prev()


def test_first_and_last():
    cursor = NavigationCursor(make_catalog(5))
    assert cursor.last() is True
    assert cursor.index == 4
    assert cursor.last() is False
    assert cursor.first() is True
    assert cursor.index == 0


def test_move_to_out_of_range_raises_and_keeps_position():
    cursor = NavigationCursor(make_catalog(3))
    cursor.move_to(2)
    with pytest.raises(IndexError):
        cursor.move_to(3)
    with pytest.raises(IndexError):
        cursor.move_to(-1)
    assert cursor.index == 2


def test_moves_recentre_then_evict():
    scheduler = RecordingScheduler()
    cursor = NavigationCursor(make_catalog(4))
    cursor.attach_scheduler(scheduler)
    cursor.next()
    cursor.move_to(3)

    assert scheduler.calls == [
        ("priority", 0),
        ("maintain",),
        ("priority", 1),
        ("maintain",),
        ("priority", 3),
        ("maintain",),
    ]


def test_clamped_move_does_not_notify():
    scheduler = RecordingScheduler()
    cursor = NavigationCursor(make_catalog(1), scheduler)
    cursor.next()
    cursor.prev()
    assert scheduler.calls == []
