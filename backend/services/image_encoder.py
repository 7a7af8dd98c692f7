"""
Turns a selected image file into an ImageAsset.

The asset keeps the raw base64 payload for the provider request and the
full data URL for rendering the preview in the page.
"""
import base64
import inspect
import logging
import re
from typing import Any, Optional, Tuple

from core.errors import FileReadError
from models.image_edit import ImageAsset

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"

_MIME_IN_HEADER = re.compile(r":(.*?);")

# type/subtype with no separators that would break the data URL header
_MIME_TYPE = re.compile(r"[\w.+-]+/[\w.+-]+")


def build_data_url(payload: str, mime_type: Optional[str]) -> str:
    return f"data:{mime_type or DEFAULT_MIME_TYPE};base64,{payload}"


def parse_data_url(data_url: str) -> Tuple[str, str]:
    """
    Split a data URL into its base64 payload and MIME type.

    Args:
        data_url: String shaped like ``data:<mime>;base64,<payload>``

    Returns:
        Tuple of (payload, mime_type); the MIME type falls back to
        application/octet-stream when the header does not name one
    """
    header, _, payload = data_url.partition(",")
    match = _MIME_IN_HEADER.search(header)
    mime_type = match.group(1) if match and match.group(1) else DEFAULT_MIME_TYPE
    return payload, mime_type


def asset_from_data_url(data_url: str) -> ImageAsset:
    payload, mime_type = parse_data_url(data_url)
    return ImageAsset(base64=payload, mime_type=mime_type, data_url=data_url)


def encode_bytes(data: bytes, content_type: Optional[str] = None) -> ImageAsset:
    # Drop parameters such as "; charset=..." so the header stays well formed
    mime_type = (content_type or "").split(";")[0].strip()
    if not _MIME_TYPE.fullmatch(mime_type):
        mime_type = DEFAULT_MIME_TYPE
    encoded = base64.b64encode(data).decode("ascii")
    return asset_from_data_url(build_data_url(encoded, mime_type))


def decode_data_url(data_url: str) -> Tuple[bytes, str]:
    """Decode a data URL back into raw bytes and its MIME type"""
    payload, mime_type = parse_data_url(data_url)
    return base64.b64decode(payload), mime_type


async def encode_image(file: Any) -> ImageAsset:
    """
    Read a whole file and encode it.

    Args:
        file: An UploadFile, or any object with a (sync or async) ``read()``
              and an optional ``content_type`` attribute

    Returns:
        The encoded ImageAsset

    Raises:
        FileReadError: The file could not be read; the original error is chained
    """
    try:
        data = file.read()
        if inspect.isawaitable(data):
            data = await data
    except (OSError, ValueError, RuntimeError) as exc:
        logger.error("❌ Could not read uploaded file %r: %s", getattr(file, "filename", None), exc)
        raise FileReadError() from exc

    if not isinstance(data, (bytes, bytearray)):
        logger.error("❌ Uploaded file returned %s instead of bytes", type(data).__name__)
        raise FileReadError()

    return encode_bytes(bytes(data), getattr(file, "content_type", None))
