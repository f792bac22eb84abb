import asyncio
import sys

import pytest

from conftest import fake_soffice, make_pdf
from signature_service import rendering
from signature_service.errors import ConversionError
from signature_service.rendering import DocumentRenderer

pytestmark = pytest.mark.asyncio

shell_script_only = pytest.mark.skipif(
    sys.platform.startswith("win"), reason="shell script stand-in"
)


async def test_pdf_passes_through(pdf_bytes):
    assert await DocumentRenderer().convert(pdf_bytes, "contract.pdf") == pdf_bytes


async def test_pdf_content_with_docx_name_passes_through(pdf_bytes):
    assert await DocumentRenderer().convert(pdf_bytes, "contract.docx") == pdf_bytes


async def test_unsupported_extension():
    with pytest.raises(ConversionError, match="Unsupported"):
        await DocumentRenderer().convert(b"hello", "notes.txt")


async def test_unreadable_pdf():
    with pytest.raises(ConversionError):
        await DocumentRenderer().convert(b"%PDF-1.7 garbage", "broken.pdf")


async def test_missing_soffice(monkeypatch):
    monkeypatch.setattr(rendering, "find_soffice", lambda: None)

    with pytest.raises(ConversionError, match="not found"):
        await DocumentRenderer().convert(b"PK\x03\x04docx", "contract.docx")


async def test_soffice_that_cannot_start(tmp_path):
    renderer = DocumentRenderer(soffice_path=str(tmp_path / "missing-soffice"))

    with pytest.raises(ConversionError, match="Could not start"):
        await renderer.convert(b"PK\x03\x04docx", "contract.docx")


@shell_script_only
async def test_converts_with_soffice(tmp_path):
    converted = make_pdf(pages=2)
    fixture = tmp_path / "converted.pdf"
    fixture.write_bytes(converted)
    soffice = fake_soffice(tmp_path, f'cp "{fixture}" "$5/source.pdf"\n')

    result = await DocumentRenderer(soffice_path=soffice).convert(b"PK\x03\x04docx", "a.docx")

    assert result == converted


@shell_script_only
async def test_soffice_failure_is_reported(tmp_path):
    soffice = fake_soffice(tmp_path, 'echo "source file could not be loaded" >&2\nexit 1\n')

    with pytest.raises(ConversionError, match="could not be loaded"):
        await DocumentRenderer(soffice_path=soffice).convert(b"PK\x03\x04", "a.doc")


@shell_script_only
async def test_soffice_without_output(tmp_path):
    soffice = fake_soffice(tmp_path, "exit 0\n")

    with pytest.raises(ConversionError, match="did not produce"):
        await DocumentRenderer(soffice_path=soffice).convert(b"PK\x03\x04", "a.docx")


@shell_script_only
async def test_conversion_timeout(tmp_path):
    soffice = fake_soffice(tmp_path, "exec sleep 5\n")
    renderer = DocumentRenderer(soffice_path=soffice, timeout=0.2)

    with pytest.raises(ConversionError, match="timed out"):
        await renderer.convert(b"PK\x03\x04", "a.docx")


@shell_script_only
async def test_conversion_leaves_event_loop_free(tmp_path):
    converted = make_pdf()
    fixture = tmp_path / "converted.pdf"
    fixture.write_bytes(converted)
    soffice = fake_soffice(tmp_path, f'sleep 1\ncp "{fixture}" "$5/source.pdf"\n')
    renderer = DocumentRenderer(soffice_path=soffice)
    finished = []

    async def convert():
        result = await renderer.convert(b"PK\x03\x04", "a.docx")
        finished.append("convert")
        return result

    async def ticker():
        await asyncio.sleep(0.1)
        finished.append("ticker")

    result, _ = await asyncio.gather(convert(), ticker())

    assert result == converted
    assert finished == ["ticker", "convert"]
