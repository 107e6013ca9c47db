"""Download and decode room photos for the advertisement."""

from __future__ import annotations

import io
from typing import Iterable, List, Optional

import httpx
from PIL import Image, UnidentifiedImageError

from telemetry.logging_utils import get_logger
from telemetry.retry import retry_with_backoff

logger = get_logger(__name__)

DEFAULT_LIMIT = 6


def public_photo_url(base_url: str, bucket: str, path: str) -> str:
    """Public storage URL for an object path; absolute URLs pass through."""
    if path.startswith("http://") or path.startswith("https://"):
        return path
    return f"{base_url.rstrip('/')}/storage/v1/object/public/{bucket}/{path.lstrip('/')}"


def _fetch(client: httpx.Client, url: str) -> bytes:
    resp = retry_with_backoff(
        lambda: client.get(url),
        retries=2,
        retry_exceptions=(httpx.TransportError,),
        label="image_download",
    )
    resp.raise_for_status()
    return resp.content


def _decode(data: bytes) -> Image.Image:
    image = Image.open(io.BytesIO(data))
    image.load()
    return image


def download_images(
    urls: Iterable[str], limit: int = DEFAULT_LIMIT, client: Optional[httpx.Client] = None, timeout: float = 10.0
) -> List[Image.Image]:
    """Fetch up to ``limit`` images in order. Failures are logged and skipped."""
    wanted = [url for url in urls if url][:limit]
    if not wanted:
        return []
    owns_client = client is None
    client = client or httpx.Client(timeout=timeout, follow_redirects=True)
    images: List[Image.Image] = []
    try:
        for url in wanted:
            try:
                images.append(_decode(_fetch(client, url)))
            except httpx.HTTPError as exc:
                logger.warning("image_download_failed", extra={"url": url, "error": str(exc)[:200]})
            except (UnidentifiedImageError, OSError) as exc:
                logger.warning("image_decode_failed", extra={"url": url, "error": str(exc)[:200]})
    finally:
        if owns_client:
            client.close()
    logger.info("images_downloaded", extra={"requested": len(wanted), "decoded": len(images)})
    return images
