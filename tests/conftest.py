"""
Pytest configuration file.
Ensures the project root is in sys.path for imports.
Provides shared fixtures for all tests.
"""
import io
import sys
from pathlib import Path

import pytest
from PIL import Image

# Add project root to sys.path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from backend.config import Settings  # noqa: E402
from backend.models import UploadedImage  # noqa: E402

EURUSD_REPLY = 'PAIR: "EUR/USD"\nTIMEFRAME: "H1"\nTREND: "Bullish"\nSIGNAL: "UP"'

BOUNDARY = "----chartboundary7MA4YWxkTrZu0gW"


class FakeVisionClient:
    """
    Stand-in for GeminiVisionClient.
    Returns ``reply`` (or raises ``error``) and records every call.
    """
    model_name = "fake-vision"

    def __init__(self, reply: str = EURUSD_REPLY, error: Exception = None):
        self.reply = reply
        self.error = error
        self.calls = []

    def describe_chart(self, prompt, image):
        self.calls.append((prompt, image))
        if self.error is not None:
            raise self.error
        return self.reply


def make_image(fmt: str = "PNG", size=(16, 16)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, (0, 212, 170)).save(buf, format=fmt)
    return buf.getvalue()


def multipart_body(parts, boundary: str = BOUNDARY) -> bytes:
    """
    Encode ``parts`` as multipart/form-data.
    Each part is (name, filename or None, content_type or None, bytes).
    """
    chunks = []
    for name, filename, content_type, data in parts:
        disposition = f'form-data; name="{name}"'
        if filename is not None:
            disposition += f'; filename="{filename}"'
        head = f"--{boundary}\r\nContent-Disposition: {disposition}\r\n"
        if content_type:
            head += f"Content-Type: {content_type}\r\n"
        chunks.append(head.encode() + b"\r\n" + data + b"\r\n")
    chunks.append(f"--{boundary}--\r\n".encode())
    return b"".join(chunks)


@pytest.fixture
def png_bytes():
    return make_image("PNG")


@pytest.fixture
def png_upload(png_bytes):
    return UploadedImage(filename="chart.png", content_type="image/png", data=png_bytes)


@pytest.fixture
def settings():
    return Settings(api_key="test-key")


@pytest.fixture
def vision():
    return FakeVisionClient()
