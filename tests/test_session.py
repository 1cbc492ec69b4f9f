import os

import pytest

from imgsort.core.app_settings import PrefetchConfig
from imgsort.core.frame_snapshot import EMPTY_FRAME
from imgsort.core.path_catalog import LoadState, PathCatalog
from imgsort.core.placeholders import PLACEHOLDER_FAILED, PLACEHOLDER_INFO_KEY
from imgsort.core.session import SessionContext


@pytest.fixture
def session():
    ctx = SessionContext(
        config=PrefetchConfig(
            window_radius=1,
            worker_count=2,
            display_max_size=(320, 240),
            thumbnail_max_size=(32, 32),
            thumbnail_strip_radius=1,
        )
    )
    yield ctx
    ctx.close()


def basenames(paths):
    return sorted(os.path.basename(p) for p in paths)


def test_new_session_is_empty(session):
    assert session.snapshot() is EMPTY_FRAME
    assert session.next() is False
    assert session.retry_current() is False


def test_open_directory_loads_window_and_reports_failures(session, image_dir):
    catalog = session.open_directory(str(image_dir))
    assert len(catalog) == 3
    assert session.wait_until_idle(timeout=10)

    a, b, c = list(catalog)
    assert a.state == LoadState.LOADED
    assert a.dimensions == (640, 480)
    assert b.state == LoadState.FAILED
    assert b.error == "unsupported or unrecognized image format"
    # c is outside the window of the first image
    assert c.state == LoadState.NOT_LOADED


def test_snapshot_describes_current_image_and_strip(session, image_dir):
    session.open_directory(str(image_dir))
    assert session.wait_until_idle(timeout=10)

    frame = session.snapshot()

    assert frame.position_text == "Image 1/3: a.jpg"
    assert frame.status_text == "Loaded: 1/3, Failed: 1"
    assert frame.current.basename == "a.jpg"
    assert frame.current.image.size == (320, 240)
    assert [view.basename for view in frame.thumbnails] == ["a.jpg", "b.png"]
    assert frame.thumbnails[0].image.size == (32, 24)
    failed_render = frame.thumbnails[1].render((32, 32))
    assert failed_render.info[PLACEHOLDER_INFO_KEY] == PLACEHOLDER_FAILED


def test_snapshot_pins_current_image(session, image_dir):
    session.open_directory(str(image_dir))
    session.snapshot()
    assert session.cache.pinned == session.catalog.get(0).path


def test_navigation_moves_window(session, many_images_dir):
    session.open_directory(str(many_images_dir))
    assert session.wait_until_idle(timeout=10)
    assert basenames(session.cache.paths()) == ["img_00.png", "img_01.png"]

    assert session.last() is True
    assert session.wait_until_idle(timeout=10)

    assert basenames(session.cache.paths()) == ["img_08.png", "img_09.png"]
    assert session.catalog.get(0).state == LoadState.NOT_LOADED
    assert session.next() is False
    assert session.snapshot().position_text == "Image 10/10: img_09.png"


def test_move_to_out_of_range_raises(session, many_images_dir):
    session.open_directory(str(many_images_dir))
    with pytest.raises(IndexError):
        session.move_to(10)
    assert session.cursor.index == 0


def test_retry_current_requeues_failed_image(session, image_dir):
    session.open_directory(str(image_dir))
    assert session.wait_until_idle(timeout=10)
    session.next()
    assert session.wait_until_idle(timeout=10)

    frame = session.snapshot()
    assert frame.current.state == LoadState.FAILED
    assert frame.current.error

    assert session.retry_current() is True
    assert session.wait_until_idle(timeout=10)
    assert session.catalog.get(1).state == LoadState.FAILED


def test_empty_directory(session, tmp_path):
    empty = tmp_path / "empty"
    empty.mkdir()
    catalog = session.open_directory(str(empty))
    assert len(catalog) == 0
    assert session.scheduler is None
    assert session.snapshot() is EMPTY_FRAME


def test_unreadable_directory_leaves_empty_session(session, image_dir, tmp_path):
    session.open_directory(str(image_dir))
    with pytest.raises(OSError):
        session.open_directory(str(tmp_path / "missing"))
    assert len(session.catalog) == 0
    assert session.scheduler is None
    assert session.snapshot() is EMPTY_FRAME


def test_adopt_catalog_replaces_previous_session(session, image_dir, many_images_dir):
    session.open_directory(str(image_dir))
    assert session.wait_until_idle(timeout=10)
    old_cache = session.cache
    session.adopt_catalog(PathCatalog.scan(str(many_images_dir)))

    assert session.cache is not old_cache
    assert len(old_cache) == 0
    assert session.current_folder_path == os.path.normpath(str(many_images_dir))
    assert session.wait_until_idle(timeout=10)
    assert session.snapshot().position_text == "Image 1/10: img_00.png"


def test_every_strip_cell_loads_with_wide_strip_request(many_images_dir):
    ctx = SessionContext(
        config=PrefetchConfig(
            window_radius=1,
            worker_count=2,
            display_max_size=(64, 64),
            thumbnail_max_size=(16, 16),
            thumbnail_strip_radius=3,
        )
    )
    try:
        ctx.open_directory(str(many_images_dir))
        ctx.move_to(5)
        assert ctx.wait_until_idle(timeout=10)

        frame = ctx.snapshot()

        assert [view.index for view in frame.thumbnails] == [4, 5, 6]
        for view in frame.thumbnails:
            assert view.state == LoadState.LOADED
            assert view.image is not None
    finally:
        ctx.close()
