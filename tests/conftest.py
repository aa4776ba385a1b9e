"""
Pytest configuration and fixtures for Document Section Preprocessor tests.
"""

import base64
import io
import os

import pytest
from fastapi.testclient import TestClient
from PIL import Image

# Set test environment variables before importing the app
os.environ["ALLOWED_ORIGINS"] = "https://app.example.com, .trusted.org"
os.environ["PUBLIC_API_URL"] = "https://api.example.com"
os.environ["LOG_LEVEL"] = "DEBUG"

from docprep_backend.chart_renderer import ChartRasterizer
from docprep_backend.main import app
from docprep_backend.preprocessor import SectionPreprocessor
from docprep_backend.qrcode_renderer import QRCodeEncoder
from docprep_backend.utils import PNG_DATA_URI_PREFIX


@pytest.fixture
def client():
    """Create a test client for the FastAPI app."""
    return TestClient(app)


@pytest.fixture
def preprocessor():
    """Preprocessor with the default backends."""
    return SectionPreprocessor(qr_encoder=QRCodeEncoder(), chart_rasterizer=ChartRasterizer())


@pytest.fixture
def raw_base64():
    """A 150-character payload made only of base64 characters."""
    payload = "iVBORw0KGgo" + "A" * 139
    assert len(payload) == 150
    return payload


@pytest.fixture
def chart_config():
    """Minimal bar chart in Chart.js configuration shape."""
    return {
        "type": "bar",
        "data": {
            "labels": ["Jan", "Feb", "Mar"],
            "datasets": [
                {
                    "label": "Sales",
                    "data": [12, 19, 3],
                    "backgroundColor": ["rgba(255, 99, 132, 0.2)", "#36a2eb", "orange"],
                    "borderColor": "rgb(255, 99, 132)",
                }
            ],
        },
        "options": {"plugins": {"title": {"display": True, "text": "Quarterly sales"}}},
    }


@pytest.fixture
def overflowing_text():
    """Text longer than any QR version can hold at level H."""
    return "x" * 5000


def decode_png(data_uri: str) -> Image.Image:
    assert data_uri.startswith(PNG_DATA_URI_PREFIX)
    payload = base64.b64decode(data_uri[len(PNG_DATA_URI_PREFIX):])
    assert payload
    return Image.open(io.BytesIO(payload))


@pytest.fixture
def png_from_data_uri():
    """Decode a PNG data URI into a Pillow image."""
    return decode_png
