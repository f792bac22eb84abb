"""Shared builders for PDFs, images and signature payloads."""

import base64
import stat
from io import BytesIO

import fitz  # PyMuPDF
import pytest
from PIL import Image

from signature_service.models import Point, SignatureOverlay, Size
from signature_service.store import InMemoryOverlayStore

LETTER = (612, 792)


def make_pdf(pages: int = 1, size: tuple = LETTER) -> bytes:
    doc = fitz.open()
    for number in range(pages):
        page = doc.new_page(width=size[0], height=size[1])
        page.insert_text((72, 72), f"Page {number + 1}")
    data = doc.tobytes()
    doc.close()
    return data


def make_image_bytes(
    width: int = 60, height: int = 20, fmt: str = "PNG", color: tuple = (0, 0, 0)
) -> bytes:
    buf = BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format=fmt)
    return buf.getvalue()


def data_uri(raw: bytes, subtype: str = "png") -> str:
    return f"data:image/{subtype};base64,{base64.b64encode(raw).decode('ascii')}"


def make_overlay(
    image_data: str = None,
    page: int = 1,
    x: float = 300,
    y: float = 400,
    width: float = 150,
    height: float = 50,
) -> SignatureOverlay:
    if image_data is None:
        image_data = data_uri(make_image_bytes())
    return SignatureOverlay(
        image_data=image_data,
        page=page,
        position=Point(x=x, y=y),
        size=Size(width=width, height=height),
    )


@pytest.fixture
def store() -> InMemoryOverlayStore:
    return InMemoryOverlayStore()


@pytest.fixture
def pdf_bytes() -> bytes:
    return make_pdf()


def fake_soffice(tmp_path, body: str) -> str:
    """Write an executable shell script standing in for LibreOffice.

    It is called as ``soffice --headless --convert-to pdf --outdir <dir> <source>``.
    """
    script = tmp_path / "soffice"
    script.write_text("#!/bin/sh\n" + body)
    script.chmod(script.stat().st_mode | stat.S_IEXEC)
    return str(script)
