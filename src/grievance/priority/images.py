"""Image decode facility for classification previews."""

from __future__ import annotations

import base64
import binascii
import io
from pathlib import Path
from typing import Optional, Union

import httpx
from PIL import Image, UnidentifiedImageError

from grievance.config import Settings
from grievance.utils.logging import get_logger


logger = get_logger(__name__)

MAX_IMAGE_BYTES = 20 * 1024 * 1024

# Pillow signals corrupt or hostile payloads through all of these.
_DECODE_ERRORS = (
    UnidentifiedImageError,
    Image.DecompressionBombError,
    OSError,
    ValueError,
    SyntaxError,
)

ImageRef = Union[str, Path, bytes, Image.Image]


class ImageDecodeError(ValueError):
    """Raised when an image reference cannot be turned into pixels."""


class ImageDecoder:
    """Turn a path, bytes, data URI or http(s) URL into an RGB image."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.BaseTransport] = None,
        max_bytes: int = MAX_IMAGE_BYTES,
    ) -> None:
        self.settings = settings or Settings()
        self.transport = transport
        self.max_bytes = max_bytes

    def decode(self, ref: ImageRef) -> Image.Image:
        if isinstance(ref, Image.Image):
            return ref.convert("RGB")
        if isinstance(ref, (bytes, bytearray)):
            return self._open_bytes(bytes(ref))
        if isinstance(ref, Path):
            return self._open_path(ref)
        if isinstance(ref, str):
            if ref.startswith("data:"):
                return self._open_bytes(_decode_data_uri(ref))
            if ref.startswith(("http://", "https://")):
                return self._open_bytes(self._fetch(ref))
            return self._open_path(Path(ref))
        raise ImageDecodeError(f"Unsupported image reference type: {type(ref).__name__}")

    def _fetch(self, url: str) -> bytes:
        try:
            with httpx.Client(
                timeout=self.settings.image_fetch_timeout_seconds,
                follow_redirects=True,
                transport=self.transport,
            ) as client:
                with client.stream("GET", url) as response:
                    response.raise_for_status()
                    declared = response.headers.get("content-length")
                    if declared and declared.isdigit() and int(declared) > self.max_bytes:
                        raise ImageDecodeError(f"Image larger than {self.max_bytes} bytes")
                    body = bytearray()
                    for chunk in response.iter_bytes():
                        body.extend(chunk)
                        if len(body) > self.max_bytes:
                            raise ImageDecodeError(f"Image larger than {self.max_bytes} bytes")
                    return bytes(body)
        except httpx.HTTPError as exc:
            raise ImageDecodeError(f"Could not fetch image: {exc}") from exc

    def _open_path(self, path: Path) -> Image.Image:
        if not path.is_file():
            raise ImageDecodeError(f"Image not found: {path}")
        return self._open_bytes(path.read_bytes())

    @staticmethod
    def _open_bytes(data: bytes) -> Image.Image:
        if not data:
            raise ImageDecodeError("Empty image payload")
        try:
            with Image.open(io.BytesIO(data)) as image:
                image.load()
                return image.convert("RGB")
        except _DECODE_ERRORS as exc:
            raise ImageDecodeError(f"Could not decode image: {exc}") from exc


def _decode_data_uri(uri: str) -> bytes:
    header, sep, payload = uri.partition(",")
    if not sep:
        raise ImageDecodeError("Malformed data URI")
    if not header.endswith(";base64"):
        raise ImageDecodeError("Only base64 data URIs are supported")
    try:
        return base64.b64decode(payload, validate=True)
    except binascii.Error as exc:
        raise ImageDecodeError(f"Invalid base64 payload: {exc}") from exc
