"""Remote asset fetch — explicit timeout, bounded retry, cancellable.

Design images and profile photos live with an external storage
collaborator. Every fetch either returns the full body or raises
``AssetUnavailable``; there is no degraded result.
"""

from __future__ import annotations

import io
import threading
import time
from pathlib import Path

import requests
from PIL import Image, UnidentifiedImageError

from qrprint.config import FetchConfig
from qrprint.errors import AssetUnavailable
from qrprint.logging import audit, get_logger, trace

log = get_logger("fetch")

_CHUNK_BYTES = 64 * 1024


class FetchCancelled(AssetUnavailable):
    """The caller abandoned the request while a fetch was in flight."""


class FetchRejected(AssetUnavailable):
    """The server refused the asset or it is too large; retrying cannot help."""

    @property
    def retryable(self) -> bool:
        return False


# Client errors that can still clear up on their own
_TRANSIENT_4XX = (408, 429)


def backoff_delay(attempt: int, base: float, cap: float) -> float:
    """Exponential backoff for the given 1-based attempt number, capped."""
    return min(cap, base * (2 ** (attempt - 1)))


def is_remote(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def _check_cancel(cancel: threading.Event | None, url: str):
    if cancel is not None and cancel.is_set():
        raise FetchCancelled(f"fetch of {url[:80]} cancelled")


def _download(session: requests.Session, url: str, cfg: FetchConfig, cancel: threading.Event | None) -> bytes:
    with session.get(url, stream=True, timeout=cfg.timeout_seconds) as r:
        if 400 <= r.status_code < 500 and r.status_code not in _TRANSIENT_4XX:
            raise FetchRejected(f"{url[:80]} returned HTTP {r.status_code}")
        r.raise_for_status()
        buf = bytearray()
        for chunk in r.iter_content(chunk_size=_CHUNK_BYTES):
            _check_cancel(cancel, url)
            if chunk:
                buf.extend(chunk)
                if len(buf) > cfg.max_bytes:
                    raise FetchRejected(f"{url[:80]} exceeds {cfg.max_bytes} bytes")
    if not buf:
        raise AssetUnavailable(f"{url[:80]} returned an empty body")
    return bytes(buf)


@trace
def fetch_bytes(
    url: str,
    cfg: FetchConfig | None = None,
    session: requests.Session | None = None,
    cancel: threading.Event | None = None,
) -> bytes:
    """Download *url* with retry and backoff.

    Raises:
        AssetUnavailable: all attempts failed, or the body was empty.
        FetchRejected: a 4xx response (other than 408/429) or a body over
            ``max_bytes``; raised on the first attempt without retrying.
        FetchCancelled: *cancel* was set before or during the download.
    """
    cfg = cfg or FetchConfig()
    own_session = session is None
    session = session or requests.Session()

    try:
        attempt = 0
        while True:
            _check_cancel(cancel, url)
            try:
                data = _download(session, url, cfg, cancel)
            except (FetchCancelled, FetchRejected):
                raise
            except (requests.RequestException, AssetUnavailable) as e:
                attempt += 1
                if attempt >= cfg.max_attempts:
                    raise AssetUnavailable(
                        f"fetch of {url[:80]} failed after {attempt} attempts: {e}"
                    ) from e
                delay = backoff_delay(attempt, cfg.backoff_base_seconds, cfg.backoff_cap_seconds)
                audit("asset.fetch_retry", logger=log, url=url[:80], attempt=attempt, delay_s=delay, error=str(e))
                if cancel is not None:
                    if cancel.wait(delay):
                        raise FetchCancelled(f"fetch of {url[:80]} cancelled") from e
                else:
                    time.sleep(delay)
                continue

            audit("asset.fetched", logger=log, url=url[:80], bytes=len(data), attempts=attempt + 1)
            return data
    finally:
        if own_session:
            session.close()


@trace
def read_source(
    source: bytes | str | Path,
    cfg: FetchConfig | None = None,
    session: requests.Session | None = None,
    cancel: threading.Event | None = None,
) -> bytes:
    """Resolve an image source (raw bytes, local path or http(s) URL) to bytes."""
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    if isinstance(source, str) and is_remote(source):
        return fetch_bytes(source, cfg=cfg, session=session, cancel=cancel)
    path = Path(source)
    try:
        return path.read_bytes()
    except OSError as exc:
        raise AssetUnavailable(f"cannot read {path}: {exc}") from exc


def decode_image(data: bytes, label: str = "image") -> Image.Image:
    """Decode image bytes fully into memory; undecodable data is AssetUnavailable."""
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        raise AssetUnavailable(f"{label} could not be decoded: {exc}") from exc
    return img
