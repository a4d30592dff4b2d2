"""
Pytest configuration and shared fixtures for all tests.

This module provides fixtures shared across the suite:
- Isolated settings pointing at a per-test data directory
- JPEG payload factories built with Pillow
- A controllable clock for token expiry and publish-time checks
- A Flask test client wired to the isolated settings
"""
import io
import time

import pytest
from PIL import Image

from blog.blog import create_app
from config.settings import Settings
from posts.blobs import BlobStorage
from posts.models import ImageUpload
from posts.store import RecordStore

TEST_SECRET = "test-secret-key-for-postbox-image-tokens"


class FakeClock:
    """Callable clock whose time only moves when a test moves it."""

    def __init__(self, now: float):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_jpeg(width: int = 64, height: int = 48, color=(200, 30, 30), quality: int = 95) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def make_upload(data: bytes = None, content_type: str = "image/jpeg", filename: str = "photo.jpg") -> ImageUpload:
    return ImageUpload(filename=filename, content_type=content_type, data=data if data is not None else make_jpeg())


@pytest.fixture
def test_config(tmp_path):
    """Configuration dictionary rooted in the test's temp directory."""
    return {
        "storage": {"data_dir": str(tmp_path / "data")},
        "tokens": {"secret_key": TEST_SECRET},
    }


@pytest.fixture
def settings(test_config):
    return Settings.from_config(test_config)


@pytest.fixture
def store(settings):
    return RecordStore.from_settings(settings)


@pytest.fixture
def blobs(settings):
    return BlobStorage.from_settings(settings)


@pytest.fixture
def clock():
    return FakeClock(time.time())


@pytest.fixture
def jpeg_bytes():
    return make_jpeg()


@pytest.fixture
def app(test_config, clock):
    app = create_app(config=test_config, clock=clock)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    """Flask test client for making HTTP requests without a server."""
    with app.test_client() as client:
        yield client
