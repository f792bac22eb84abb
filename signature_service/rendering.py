"""Conversion of editable office documents into PDF bytes."""

from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Optional

import fitz  # PyMuPDF
from fastapi.concurrency import run_in_threadpool

from .compositor import mupdf_lock
from .errors import ConversionError

logger = logging.getLogger(__name__)

EDITABLE_SUFFIXES = {".doc", ".docx"}
PDF_SUFFIX = ".pdf"
SUPPORTED_SUFFIXES = EDITABLE_SUFFIXES | {PDF_SUFFIX}


def find_soffice() -> Optional[str]:
    return shutil.which("soffice") or shutil.which("libreoffice")


def is_pdf(content: bytes) -> bool:
    return content.lstrip()[:5] == b"%PDF-"


def ensure_pdf(content: bytes) -> int:
    """Check that ``content`` opens as a PDF with pages; return the page count."""
    try:
        with mupdf_lock, fitz.open(stream=content, filetype="pdf") as doc:
            page_count = doc.page_count
    except (RuntimeError, ValueError) as exc:
        raise ConversionError(f"Converted output is not a readable PDF: {exc}") from exc

    if page_count == 0:
        raise ConversionError("Converted PDF has no pages")
    return page_count


class DocumentRenderer:
    """Turns DOC/DOCX uploads into PDF through a headless LibreOffice.

    PDF uploads are passed through after a parse check.
    """

    def __init__(
        self, soffice_path: Optional[str] = None, timeout: float = 30.0
    ) -> None:
        self.soffice_path = soffice_path
        self.timeout = timeout

    async def convert(self, content: bytes, filename: str) -> bytes:
        """Return PDF bytes for ``content``; soffice runs in the thread pool."""
        suffix = self._editable_suffix(content, filename)
        if suffix is None:
            ensure_pdf(content)
            return content

        pdf_bytes = await run_in_threadpool(self._run_soffice, content, suffix)
        ensure_pdf(pdf_bytes)
        return pdf_bytes

    @staticmethod
    def _editable_suffix(content: bytes, filename: str) -> Optional[str]:
        """Return the suffix to convert from, or None when ``content`` is already a PDF."""
        suffix = Path(filename).suffix.lower()
        if suffix not in SUPPORTED_SUFFIXES:
            raise ConversionError(f"Unsupported document type: {suffix or filename}")
        if suffix == PDF_SUFFIX or is_pdf(content):
            return None
        return suffix

    def _run_soffice(self, content: bytes, suffix: str) -> bytes:
        soffice = self.soffice_path or find_soffice()
        if not soffice:
            raise ConversionError("LibreOffice (soffice) was not found on this host")

        with tempfile.TemporaryDirectory(prefix="signature_convert_") as work_dir:
            work = Path(work_dir)
            source = work / f"source{suffix}"
            source.write_bytes(content)

            logger.info("Converting %s document to PDF", suffix)
            try:
                subprocess.run(
                    [
                        soffice,
                        "--headless",
                        "--convert-to",
                        "pdf",
                        "--outdir",
                        str(work),
                        str(source),
                    ],
                    check=True,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.PIPE,
                    timeout=self.timeout,
                )
            except subprocess.TimeoutExpired as exc:
                raise ConversionError(
                    f"Conversion timed out after {self.timeout:g}s"
                ) from exc
            except subprocess.CalledProcessError as exc:
                stderr = (exc.stderr or b"").decode("utf-8", "replace").strip()
                raise ConversionError(f"soffice failed: {stderr or exc}") from exc
            except OSError as exc:
                raise ConversionError(f"Could not start soffice: {exc}") from exc

            output = work / "source.pdf"
            if not output.exists():
                raise ConversionError("soffice did not produce a PDF")
            return output.read_bytes()
