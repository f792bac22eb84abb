"""Ingestion and download orchestration around the overlay store."""

from __future__ import annotations

import base64
import logging
import re
from dataclasses import dataclass
from datetime import timedelta
from pathlib import PurePath
from typing import List, Optional, Sequence, Tuple

import fitz  # PyMuPDF

from .compositor import Composition, Compositor, mupdf_lock
from .errors import ValidationError
from .models import DocumentRecord, SignatureOverlay
from .rendering import DocumentRenderer, ensure_pdf
from .store import InMemoryOverlayStore, OverlayStore, evict_older_than

logger = logging.getLogger(__name__)

SIGNED_SUFFIX = "_assinado.pdf"
_WHITESPACE = re.compile(r"\s+")


@dataclass
class PagePreview:
    page_count: int
    page_number: int
    width: float
    height: float
    preview_base64: str


def signed_file_name(identity: str) -> str:
    """Suggested download name: ``contract.docx`` becomes ``contract_assinado.pdf``."""
    path = PurePath(identity)
    stem = path.stem if path.suffix.lower() in {".doc", ".docx", ".pdf"} else path.name
    return f"{stem}{SIGNED_SUFFIX}"


class DocumentManager:
    """Handles conversion, storage and signing of uploaded documents."""

    def __init__(
        self,
        renderer: DocumentRenderer,
        store: Optional[OverlayStore] = None,
        record_ttl: Optional[timedelta] = None,
    ) -> None:
        self.renderer = renderer
        self.store = store if store is not None else InMemoryOverlayStore()
        self.compositor = Compositor(self.store)
        self.record_ttl = record_ttl

    def ingest(
        self, identity: str, base_bytes: bytes, overlays: Sequence[SignatureOverlay]
    ) -> DocumentRecord:
        record = self.store.put(identity, base_bytes, overlays)
        if self.record_ttl is not None:
            evict_older_than(self.store, self.record_ttl)
        return record

    async def ingest_upload(
        self, filename: str, content: bytes, overlays: Sequence[SignatureOverlay]
    ) -> Tuple[DocumentRecord, int]:
        """Convert an uploaded document and store it with its overlays.

        Returns the stored record and the converted document's page count.
        """
        if not filename:
            raise ValidationError("document name is required", field="document")
        if not content:
            raise ValidationError("document content is empty", field="document")

        pdf_bytes = await self.renderer.convert(content, filename)
        record = self.ingest(filename, pdf_bytes, overlays)
        return record, ensure_pdf(record.base_bytes)

    async def ingest_encoded(
        self, filename: str, encoded: str, overlays: Sequence[SignatureOverlay]
    ) -> Tuple[DocumentRecord, int]:
        try:
            content = base64.b64decode(_WHITESPACE.sub("", encoded), validate=True)
        except ValueError as exc:
            raise ValidationError(
                f"content of {filename} is not valid base64", field="content"
            ) from exc
        return await self.ingest_upload(filename, content, overlays)

    def compose(self, identity: str) -> Composition:
        return self.compositor.compose_report(identity)

    def remove(self, identity: str) -> DocumentRecord:
        record = self.store.remove(identity)
        logger.info("Removed pending document %s", identity)
        return record

    def pending_identities(self) -> List[str]:
        return self.store.identities()

    async def get_page_preview(
        self, filename: str, content: bytes, page_number: int = 1, zoom: float = 1.0
    ) -> PagePreview:
        pdf_bytes = await self.renderer.convert(content, filename)

        with mupdf_lock, fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
            if not 1 <= page_number <= doc.page_count:
                raise ValidationError("Invalid page number", field="page")

            page = doc.load_page(page_number - 1)
            pix = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom), alpha=False)
            preview_b64 = base64.b64encode(pix.tobytes("png")).decode("utf-8")
            rect = page.rect
            return PagePreview(
                page_count=doc.page_count,
                page_number=page_number,
                width=rect.width,
                height=rect.height,
                preview_base64=preview_b64,
            )
