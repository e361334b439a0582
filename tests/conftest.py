"""Shared pytest fixtures and test helpers for qrprint tests."""

from __future__ import annotations

import io
import logging
from pathlib import Path

import pytest
import requests
from PIL import Image

from qrprint.cards import CardContent, ColorPalette, Contact, Profile
from qrprint.config import FetchConfig
from qrprint.logging import ROOT_LOGGER


def make_png(size: tuple[int, int], color=(200, 220, 240), mode: str = "RGB") -> bytes:
    """Encode a solid-colour image as PNG bytes."""
    if mode == "RGBA" and len(color) == 3:
        color = (*color, 128)
    buf = io.BytesIO()
    Image.new(mode, size, color).save(buf, format="PNG")
    return buf.getvalue()


def open_png(data: bytes) -> Image.Image:
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


# ---------------------------------------------------------------------------
# HTTP stubs
# ---------------------------------------------------------------------------


class FakeResponse:
    """Just enough of ``requests.Response`` for streamed downloads."""

    def __init__(self, body: bytes = b"", status: int = 200):
        self.body = body
        self.status_code = status

    def __enter__(self) -> FakeResponse:
        return self

    def __exit__(self, *exc) -> None:
        return None

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def iter_content(self, chunk_size: int = 1):
        for i in range(0, len(self.body), chunk_size):
            yield self.body[i : i + chunk_size]


class FakeSession:
    """Replays a script of responses or exceptions, one per ``get`` call."""

    def __init__(self, *script):
        self.script = list(script)
        self.calls: list[tuple[str, dict]] = []
        self.closed = False

    def get(self, url: str, **kwargs):
        self.calls.append((url, kwargs))
        item = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(item, Exception):
            raise item
        if isinstance(item, (bytes, bytearray)):
            return FakeResponse(bytes(item))
        return item

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fast_fetch() -> FetchConfig:
    """Fetch config with no backoff sleeps."""
    return FetchConfig(max_attempts=3, backoff_base_seconds=0, backoff_cap_seconds=0, timeout_seconds=5)


# ---------------------------------------------------------------------------
# Isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_logging():
    """Drop handlers the CLI installs so captured streams do not leak between tests."""
    yield
    root = logging.getLogger(ROOT_LOGGER)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(logging.NOTSET)


@pytest.fixture
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Empty working directory and no ``QRPRINT_*`` env vars."""
    import os

    for key in list(os.environ):
        if key.startswith("QRPRINT_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------


@pytest.fixture
def design_png() -> bytes:
    return make_png((2000, 1500))


@pytest.fixture
def full_content() -> CardContent:
    return CardContent(
        profile=Profile(name="Jane Doe", title="Director", company="Acme Corp"),
        contact=Contact(phone="+1 555 0100", email="jane@acme.test", website="acme.test"),
    )


@pytest.fixture
def palette() -> ColorPalette:
    return ColorPalette()
