"""
Shared test configuration for backend tests.

Hypothesis settings:
- CI profile disables example database to prevent "Flaky" errors from stale examples
- Default profile keeps database for local development
"""

import pytest
from hypothesis import settings, HealthCheck
from PIL import Image

from pdf_samples import BLUE, QUADRANT_PAGE_SIZE, build_quadrant_image, images_to_pdf

# CI profile: no example database → no stale example → no Flaky errors
settings.register_profile(
    "ci",
    database=None,
    suppress_health_check=[HealthCheck.too_slow],
)

# Default profile: keep database, suppress slow health check
settings.register_profile(
    "default",
    suppress_health_check=[HealthCheck.too_slow],
)

settings.load_profile("default")


def pytest_configure(config):
    config.addinivalue_line("markers", "smoke: pure parsing + config tests (<10s)")
    config.addinivalue_line("markers", "core: pdfium composition + API tests (<30s)")


@pytest.fixture()
def quadrant_pdf() -> bytes:
    return images_to_pdf([build_quadrant_image(*QUADRANT_PAGE_SIZE)])


@pytest.fixture()
def two_page_pdf() -> bytes:
    """Page 0: 200x100 quadrants, page 1: 300x300 solid blue."""
    return images_to_pdf([
        build_quadrant_image(*QUADRANT_PAGE_SIZE),
        Image.new("RGB", (300, 300), BLUE),
    ])


@pytest.fixture()
def quadrant_pdf_path(tmp_path, quadrant_pdf):
    path = tmp_path / "source.pdf"
    path.write_bytes(quadrant_pdf)
    return path


@pytest.fixture()
def upload_dir(tmp_path, monkeypatch):
    """Point the app's upload scratch directory at a per-test temp dir."""
    from pdfcrop.core.config import settings as app_settings

    path = tmp_path / "uploads"
    monkeypatch.setattr(app_settings, "upload_dir", str(path))
    return path


@pytest.fixture()
def fresh_metrics():
    """Reset singleton metrics before and after each test."""
    from pdfcrop.crop_metrics import get_crop_metrics

    m = get_crop_metrics()
    m.reset()
    yield m
    m.reset()


@pytest.fixture()
def client(upload_dir, fresh_metrics):
    from fastapi.testclient import TestClient
    from pdfcrop.main import app

    return TestClient(app)
