"""
Test configuration and fixtures for the palette service tests.
"""
import io

import numpy as np
import pytest
import requests
from fastapi.testclient import TestClient
from PIL import Image

from main import app


@pytest.fixture
def test_client():
    """Create test client for the FastAPI app."""
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_metrics():
    """Reset metrics before each test."""
    from palette_service.utils.metrics import reset_metrics
    reset_metrics()


class CountingSession(requests.Session):
    """requests.Session that tallies how many were opened and closed."""

    opened = 0
    closed = 0

    def __init__(self):
        super().__init__()
        type(self).opened += 1

    def close(self):
        type(self).closed += 1
        super().close()


@pytest.fixture
def counting_session(monkeypatch):
    """Count every requests.Session created during the test."""
    CountingSession.opened = 0
    CountingSession.closed = 0
    monkeypatch.setattr(requests, "Session", CountingSession)
    monkeypatch.setattr(requests.sessions, "Session", CountingSession)
    return CountingSession


def encode_png(array: np.ndarray) -> bytes:
    """Encode an (H, W, 3|4) uint8 array as PNG bytes."""
    buffer = io.BytesIO()
    Image.fromarray(array).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def three_color_png():
    """10x10 image: 60 px red, 30 px dark blue, 10 px gray."""
    img = np.zeros((10, 10, 3), dtype=np.uint8)
    img[0:6] = (220, 30, 30)
    img[6:9] = (10, 20, 90)
    img[9] = (128, 128, 128)
    return encode_png(img)


@pytest.fixture
def png_encoder():
    """Expose ``encode_png`` to tests that build their own images."""
    return encode_png
