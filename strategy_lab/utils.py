import base64
import binascii
import logging
import re
from io import BytesIO
from typing import Tuple

from PIL import Image, UnidentifiedImageError

from strategy_lab.errors import ValidationError
from strategy_lab.models import ImageHistoryEntry

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_MIME = "image/png"

_DATA_URI_PATTERN = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[^,;]+)*),(?P<data>.*)$", re.DOTALL)


def split_data_uri(value: str) -> Tuple[str, str]:
    """
    Return (mime_type, base64_payload) for a data URI.
    A bare base64 string is accepted as a PNG payload.
    """
    match = _DATA_URI_PATTERN.match(value.strip())
    if not match:
        return DEFAULT_IMAGE_MIME, value.strip()
    return match.group("mime") or DEFAULT_IMAGE_MIME, match.group("data")


def decode_data_uri(value: str) -> Tuple[str, bytes]:
    mime_type, payload = split_data_uri(value)
    try:
        return mime_type, base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"Image data is not valid base64: {str(e)}") from e


def to_data_uri(data: bytes, mime_type: str = DEFAULT_IMAGE_MIME) -> str:
    encoded = base64.b64encode(data).decode()
    return f"data:{mime_type};base64,{encoded}"


def image_bytes_to_data_uri(raw: bytes) -> str:
    """
    Verify that an upload is an image Pillow can read and encode it
    with the mime type of its actual format.
    """
    try:
        with Image.open(BytesIO(raw)) as image:
            image.verify()
            image_format = image.format
    except (UnidentifiedImageError, OSError) as e:
        logger.error(f"Rejected upload that is not a readable image: {str(e)}")
        raise ValidationError("The uploaded file is not a supported image.") from e

    mime_type = Image.MIME.get(image_format, DEFAULT_IMAGE_MIME)
    return to_data_uri(raw, mime_type)


def mime_extension(mime_type: str) -> str:
    subtype = mime_type.split("/")[-1].lower()
    return {"jpeg": "jpg", "svg+xml": "svg"}.get(subtype, subtype)


def download_filename(entry: ImageHistoryEntry) -> str:
    mime_type, _ = split_data_uri(entry.url)
    return f"edit-{entry.id}.{mime_extension(mime_type)}"
