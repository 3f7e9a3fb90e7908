"""Data URI helpers and upload handling."""

import base64
from datetime import datetime
from io import BytesIO

import pytest
from PIL import Image

from strategy_lab.errors import ValidationError
from strategy_lab.models import ImageHistoryEntry
from strategy_lab.utils import (
    decode_data_uri,
    download_filename,
    image_bytes_to_data_uri,
    split_data_uri,
    to_data_uri,
)


def _image_bytes(image_format):
    buffered = BytesIO()
    Image.new("RGB", (4, 4), color=(200, 30, 30)).save(buffered, format=image_format)
    return buffered.getvalue()


class TestDataUri:
    def test_split(self):
        assert split_data_uri("data:image/jpeg;base64,QUJD") == ("image/jpeg", "QUJD")

    def test_split_bare_payload(self):
        assert split_data_uri("QUJD") == ("image/png", "QUJD")

    def test_decode(self):
        assert decode_data_uri("data:image/webp;base64,QUJD") == ("image/webp", b"ABC")

    def test_decode_invalid(self):
        with pytest.raises(ValidationError):
            decode_data_uri("data:image/png;base64,not base64!")

    def test_to_data_uri(self):
        assert to_data_uri(b"ABC", "image/gif") == "data:image/gif;base64,QUJD"


class TestImageBytesToDataUri:
    def test_png(self):
        raw = _image_bytes("PNG")

        uri = image_bytes_to_data_uri(raw)

        assert uri.startswith("data:image/png;base64,")
        assert base64.b64decode(uri.split(",", 1)[1]) == raw

    def test_jpeg_detected_from_content(self):
        assert image_bytes_to_data_uri(_image_bytes("JPEG")).startswith("data:image/jpeg;base64,")

    def test_not_an_image(self):
        with pytest.raises(ValidationError):
            image_bytes_to_data_uri(b"%PDF-1.7 definitely not an image")


class TestDownloadFilename:
    @pytest.mark.parametrize(
        "url, expected",
        [
            ("data:image/png;base64,QUJD", "edit-1700000000000.png"),
            ("data:image/jpeg;base64,QUJD", "edit-1700000000000.jpg"),
        ],
    )
    def test_extension_from_mime(self, url, expected):
        entry = ImageHistoryEntry(id="1700000000000", url=url, prompt="p", timestamp=datetime.now())

        assert download_filename(entry) == expected
