# image attachments: raw bytes in, pre-downscaled data URI out
import base64
from typing import Callable, Optional

from shop.errors import ValidationError

# the downscaler caps width at MAX_WIDTH and re-encodes as JPEG at JPEG_QUALITY
MAX_WIDTH = 800
JPEG_QUALITY = 0.7

# a whole product document has to fit under the store's per-document ceiling
MAX_IMAGE_BYTES = 700 * 1024

Downscaler = Callable[[bytes], bytes]

_SIGNATURES = (
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"RIFF", "image/webp"),
)


def sniff_mime(data: bytes) -> Optional[str]:
    for magic, mime in _SIGNATURES:
        if data.startswith(magic):
            if mime == "image/webp" and data[8:12] != b"WEBP":
                continue
            return mime
    return None


def to_data_uri(data: bytes, mime: str) -> str:
    return f"data:{mime};base64," + base64.b64encode(data).decode("ascii")


def prepare_image(
    raw: bytes,
    downscaler: Optional[Downscaler] = None,
    max_bytes: int = MAX_IMAGE_BYTES,
) -> str:
    """
    Turn an attached image into the inline payload stored on a product.

    The downscaler is an external utility; without one the bytes are used as
    they are, which only works for images that are already small enough.
    Raises ValidationError for empty input, unknown formats, or a result over
    max_bytes.
    """
    if not raw:
        raise ValidationError("Image file is empty.", field="image")

    data = downscaler(raw) if downscaler is not None else raw
    mime = sniff_mime(data)
    if mime is None:
        raise ValidationError("Unsupported image format.", field="image")
    if len(data) > max_bytes:
        raise ValidationError(
            f"Image is too large ({len(data) // 1024} KiB, limit {max_bytes // 1024} KiB).",
            field="image",
        )
    return to_data_uri(data, mime)
