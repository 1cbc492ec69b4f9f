import os
from unittest.mock import patch

import pytest

from imgsort.core import app_settings
from imgsort.core.app_settings import PrefetchConfig


def test_defaults():
    assert app_settings.get_window_radius() == app_settings.DEFAULT_WINDOW_RADIUS
    assert app_settings.get_worker_count() == app_settings.DEFAULT_WORKER_COUNT
    assert app_settings.get_display_max_resolution() == (1920, 1200)
    assert app_settings.get_thumbnail_size() == 256
    assert app_settings.get_thumbnail_strip_radius() == 3


def test_load_prefetch_config_reads_settings():
    app_settings.set_window_radius(7)
    app_settings.set_worker_count(1)
    app_settings.set_display_max_resolution(800, 600)
    app_settings.set_thumbnail_size(128)
    app_settings.set_thumbnail_strip_radius(2)

    config = app_settings.load_prefetch_config()

    assert config == PrefetchConfig(
        window_radius=7,
        worker_count=1,
        display_max_size=(800, 600),
        thumbnail_max_size=(128, 128),
        thumbnail_strip_radius=2,
    )


def test_strip_radius_is_capped_at_window_radius():
    config = PrefetchConfig(window_radius=1, thumbnail_strip_radius=3)
    assert config.thumbnail_strip_radius == 1

    app_settings.set_window_radius(2)
    assert app_settings.load_prefetch_config().thumbnail_strip_radius == 2


def test_invalid_values_are_rejected():
    with pytest.raises(ValueError):
        app_settings.set_window_radius(-1)
    with pytest.raises(ValueError):
        app_settings.set_display_max_resolution(0, 600)
    with pytest.raises(ValueError):
        app_settings.set_thumbnail_size(0)
    with patch("os.cpu_count", return_value=2):
        with pytest.raises(ValueError):
            app_settings.set_worker_count(3)
        with pytest.raises(ValueError):
            app_settings.set_worker_count(0)


@pytest.mark.parametrize(
    "kwargs",
    [{"window_radius": -1}, {"worker_count": 0}, {"thumbnail_strip_radius": -2}],
)
def test_prefetch_config_validation(kwargs):
    with pytest.raises(ValueError):
        PrefetchConfig(**kwargs)


def test_recent_folders_most_recent_first(tmp_path):
    first = tmp_path / "first"
    second = tmp_path / "second"
    first.mkdir()
    second.mkdir()

    app_settings.add_recent_folder(str(first))
    app_settings.add_recent_folder(str(second))
    app_settings.add_recent_folder(str(first))
    app_settings.add_recent_folder(str(tmp_path / "missing"))

    assert app_settings.get_recent_folders() == [
        os.path.normpath(str(first)),
        os.path.normpath(str(second)),
    ]


def test_disk_cache_size_in_bytes():
    app_settings.set_thumbnail_disk_cache_size_mb(3)
    assert app_settings.get_thumbnail_disk_cache_size_bytes() == 3 * 1024 * 1024
