import io
import os

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from sheet_scanner.api.http_api import create_app
from sheet_scanner.config import Settings


class FakeAnalysisClient:
    """Stands in for `AnalysisClient`; records what it was asked to analyze."""

    def __init__(self, result=None, error=None):
        self.result = {"1": "A"} if result is None else result
        self.error = error
        self.calls = []
        self.existed_during_call = []

    def analyze_image(self, path):
        self.calls.append(path)
        self.existed_during_call.append(os.path.exists(path))
        if self.error is not None:
            raise self.error
        return self.result


def image_bytes(image_format="PNG"):
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), "white").save(buffer, format=image_format)
    return buffer.getvalue()


@pytest.fixture
def upload_dir(tmp_path):
    return str(tmp_path / "uploads")


@pytest.fixture
def settings(upload_dir):
    return Settings(api_key="test-key", upload_dir=upload_dir)


@pytest.fixture
def fake_client():
    return FakeAnalysisClient()


@pytest.fixture
def make_client(settings, fake_client):
    def _make(settings_override=None, analysis_client=None):
        app = create_app(settings_override or settings, analysis_client or fake_client)
        return TestClient(app)

    return _make


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture
def png_bytes():
    return image_bytes("PNG")
