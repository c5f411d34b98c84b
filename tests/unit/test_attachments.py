"""Attachment helper tests.

What:
  Cover extension parsing, image detection, MIME guessing, ``data:`` URLs,
  size formatting, payload decoding, filename sanitising and checksums.
"""

import hashlib

import pytest

from emlparse.attachments import (
    attachment_checksum,
    data_url,
    decode_attachment,
    file_extension,
    format_file_size,
    guess_mime_type,
    is_image,
    safe_filename,
)
from emlparse.core.model import Attachment


def _attachment(name="a.txt", content_type="text/plain", data="SGk=") -> Attachment:
    return Attachment(name=name, content_type=content_type, data=data, size=len(data))


@pytest.mark.parametrize(
    ("name", "expected"),
    [("report.pdf", "pdf"), ("archive.tar.gz", "gz"), ("README", ""), ("", "")],
)
def test_file_extension(name, expected):
    assert file_extension(name) == expected


def test_is_image_ignores_case():
    assert is_image(_attachment(name="Photo.PNG"))
    assert not is_image(_attachment(name="photo.png.exe"))


def test_guess_mime_type_prefers_declared_type():
    assert guess_mime_type(_attachment(name="x.svg", content_type="text/xml")) == "text/xml"
    assert guess_mime_type(_attachment(name="x.svg", content_type="")) == "image/svg+xml"
    assert guess_mime_type(_attachment(name="x.bin", content_type="")) == "application/octet-stream"


def test_data_url():
    assert data_url(_attachment(name="dot.png", content_type="image/png", data="iVBO")) == (
        "data:image/png;base64,iVBO"
    )
    assert data_url(_attachment(data="")) == ""


def test_data_url_reencodes_invalid_payload():
    url = data_url(_attachment(data="not base64!"))
    assert url == "data:text/plain;base64,bm90IGJhc2U2NCE="


@pytest.mark.parametrize(
    ("size", "expected"),
    [(0, "0 B"), (-5, "0 B"), (512, "512 B"), (1024, "1 KB"), (1536, "1.5 KB"), (1048576, "1 MB"), (1024 ** 4, "1024 GB")],
)
def test_format_file_size(size, expected):
    assert format_file_size(size) == expected


def test_decode_attachment():
    assert decode_attachment(_attachment()) == b"Hi"
    with pytest.raises(ValueError):
        decode_attachment(_attachment(data="%%%"))


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("report.pdf", "report.pdf"),
        ("../../etc/passwd", "passwd"),
        ("C:\\Users\\me\\cv.doc", "cv.doc"),
        ("a<b>:c.txt", "a_b_c.txt"),
        ("résumé.txt", "résumé.txt"),
        ("..", "attachment"),
    ],
)
def test_safe_filename(name, expected):
    assert safe_filename(name) == expected


def test_attachment_checksum():
    assert attachment_checksum(_attachment()) == "sha256:" + hashlib.sha256(b"Hi").hexdigest()
