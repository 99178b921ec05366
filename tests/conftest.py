import json
from typing import Callable, List

import httpx
import pytest
from PIL import Image

from passslot.config import get_settings
from passslot.services.client import PassSlot


TEST_APP_KEY = "test-app-key"


class RecordingHandler:
    """Mock PassSlot API: records requests and answers with queued responses."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.responses: List[Callable[[httpx.Request], httpx.Response]] = []

    def reply(self, status_code: int = 200, json_body=None, content: bytes = b"", content_type: str = None):
        headers = {}
        if json_body is not None:
            content = json.dumps(json_body).encode("utf-8")
            content_type = content_type or "application/json; charset=utf-8"
        if content_type:
            headers["Content-Type"] = content_type
        self.responses.append(
            lambda request: httpx.Response(status_code, headers=headers, content=content)
        )

    def fail(self, exc_type=httpx.ConnectError, message: str = "connection refused"):
        def raise_error(request):
            raise exc_type(message, request=request)

        self.responses.append(raise_error)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Isolate tests from the environment and the shared client."""
    for name in ("PASSSLOT_APP_KEY", "PASSSLOT_DEBUG", "PASSSLOT_TIMEOUT", "PASSSLOT_CA_BUNDLE"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    PassSlot.reset()
    yield
    PassSlot.reset()
    get_settings.cache_clear()


@pytest.fixture
def api() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def engine(api: RecordingHandler):
    client = PassSlot(TEST_APP_KEY, transport=httpx.MockTransport(api))
    yield client
    client.close()


def _write_image(path, image_format: str, mode: str = "RGB"):
    Image.new(mode, (29, 29), color=(200, 30, 30)).save(path, format=image_format)
    return str(path)


@pytest.fixture
def png_image(tmp_path):
    # Extension deliberately wrong: format is detected from content
    return _write_image(tmp_path / "icon.dat", "PNG")


@pytest.fixture
def jpeg_image(tmp_path):
    return _write_image(tmp_path / "strip.jpg", "JPEG")


@pytest.fixture
def gif_image(tmp_path):
    return _write_image(tmp_path / "logo.gif", "GIF")


@pytest.fixture
def bmp_image(tmp_path):
    return _write_image(tmp_path / "footer.png", "BMP")


@pytest.fixture
def text_file(tmp_path):
    path = tmp_path / "notes.png"
    path.write_text("definitely not an image")
    return str(path)
