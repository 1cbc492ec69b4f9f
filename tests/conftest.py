import os
import threading

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PIL import Image
from PyQt6.QtCore import QSettings

from imgsort.core import app_settings
from imgsort.core.image_processing.image_decoder import (
    DecodedImage,
    DecodeError,
    ImageDecoder,
)


def write_image(path, size=(64, 48), color=(200, 30, 30)):
    img = Image.new("RGB", size, color)
    img.save(path)
    return str(path)


@pytest.fixture
def image_dir(tmp_path):
    """a.jpg (valid), b.png (corrupt), c.bmp (valid), plus non-image noise."""
    directory = tmp_path / "images"
    directory.mkdir()
    write_image(directory / "a.jpg", size=(640, 480))
    (directory / "b.png").write_bytes(b"this is not a png")
    write_image(directory / "c.bmp", size=(100, 200), color=(10, 200, 10))
    (directory / "notes.txt").write_text("not an image")
    (directory / "sub").mkdir()
    write_image(directory / "sub" / "nested.jpg")
    return directory


@pytest.fixture
def many_images_dir(tmp_path):
    """Ten valid images named img_00.png .. img_09.png."""
    directory = tmp_path / "many"
    directory.mkdir()
    for i in range(10):
        write_image(directory / f"img_{i:02d}.png", size=(32 + i, 24), color=(i * 20, 0, 0))
    return directory


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Route QSettings to a throwaway ini file so tests never touch user settings."""
    ini_path = str(tmp_path / "settings.ini")
    monkeypatch.setattr(
        app_settings,
        "_get_settings",
        lambda: QSettings(ini_path, QSettings.Format.IniFormat),
    )
    return ini_path


class FakeDecoder:
    """
    Decoder stand-in that records calls and can hold loads until released.

    Paths whose basename is in `fail` raise DecodeError. When `gate` is
    set, decode blocks until `release()` is called.
    """

    def __init__(self, fail=(), gated=False):
        self.fail = set(fail)
        self.calls = []
        self._calls_lock = threading.Lock()
        self.gate = threading.Event()
        self.started = threading.Semaphore(0)
        if not gated:
            self.gate.set()

    def release(self):
        self.gate.set()

    def decode(self, path, display_max_size, thumbnail_max_size):
        with self._calls_lock:
            self.calls.append(os.path.basename(path))
        self.started.release()
        self.gate.wait(timeout=10)
        if os.path.basename(path) in self.fail:
            raise DecodeError(path, "corrupt image data (fake)")
        full = Image.new("RGBA", (40, 30))
        thumb = ImageDecoder.make_thumbnail(full, thumbnail_max_size)
        return DecodedImage(full=full, thumb=thumb, dimensions=(400, 300))


@pytest.fixture
def fake_decoder():
    return FakeDecoder()
