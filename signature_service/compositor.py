"""Compositing of stored signature overlays onto a document's PDF pages."""

from __future__ import annotations

import io
import logging
import threading
from dataclasses import dataclass
from typing import List, Tuple, Union

import fitz  # PyMuPDF
from PIL import Image

from .errors import CorruptDocumentError, DecodeError
from .geometry import NativeRect, to_native
from .models import SignatureOverlay
from .payload import ImageFormat, decode_payload
from .store import OverlayStore

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
PLACEHOLDER_COLOR = (1, 0, 0)
PLACEHOLDER_BORDER_WIDTH = 2

# MuPDF keeps per-process state that is not safe to share between threads;
# every module that opens a fitz document holds this lock while it does.
mupdf_lock = threading.RLock()


@dataclass(frozen=True)
class Embedded:
    page_number: int
    rect: NativeRect
    format: ImageFormat


@dataclass(frozen=True)
class Placeholder:
    page_number: int
    rect: NativeRect
    reason: str


EmbedOutcome = Union[Embedded, Placeholder]


@dataclass(frozen=True)
class Composition:
    data: bytes
    outcomes: Tuple[EmbedOutcome, ...]

    @property
    def placeholder_count(self) -> int:
        return sum(1 for outcome in self.outcomes if isinstance(outcome, Placeholder))


def pixmap_from_bytes(raw_bytes: bytes) -> fitz.Pixmap:
    """Normalise any Pillow-readable image into an RGB or RGBA pixmap."""
    with Image.open(io.BytesIO(raw_bytes)) as pil_img:
        if pil_img.mode not in {"RGB", "RGBA"}:
            pil_img = pil_img.convert("RGBA")

        if pil_img.mode == "RGBA":
            return fitz.Pixmap(
                fitz.csRGB, pil_img.width, pil_img.height, pil_img.tobytes(), True
            )
        return fitz.Pixmap(
            fitz.csRGB, pil_img.width, pil_img.height, pil_img.tobytes(), False
        )


def page_rect(page: fitz.Page, rect: NativeRect) -> fitz.Rect:
    """Map a PDF native rectangle into PyMuPDF's top-left page space."""
    native = fitz.Rect(rect.x, rect.y, rect.x + rect.width, rect.y + rect.height)
    return native * page.transformation_matrix


def open_pdf(data: bytes) -> fitz.Document:
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except (RuntimeError, ValueError) as exc:
        raise CorruptDocumentError(f"Stored document is not a readable PDF: {exc}") from exc

    if doc.page_count == 0:
        doc.close()
        raise CorruptDocumentError("Stored document has no pages")
    return doc


def resolve_page(doc: fitz.Document, requested: int) -> int:
    """Return the 1-based page to draw on, falling back to page 1 when out of range."""
    if 1 <= requested <= doc.page_count:
        return requested
    logger.warning(
        "Page %d requested but document has %d page(s); using page 1",
        requested,
        doc.page_count,
    )
    return 1


def embed_overlay(
    page: fitz.Page, page_number: int, overlay: SignatureOverlay, rect: NativeRect
) -> EmbedOutcome:
    """Embed the overlay's image, or report why a placeholder is needed."""
    try:
        image = decode_payload(overlay.image_data)
    except DecodeError as exc:
        return Placeholder(page_number=page_number, rect=rect, reason=exc.message)

    try:
        pixmap = pixmap_from_bytes(image.data)
        page.insert_image(
            page_rect(page, rect), pixmap=pixmap, keep_proportion=False, overlay=True
        )
    except Exception as exc:
        # Pillow and MuPDF raise outside OSError too, e.g. DecompressionBombError
        return Placeholder(
            page_number=page_number,
            rect=rect,
            reason=(
                f"Could not embed {image.format.value} image: "
                f"{type(exc).__name__}: {exc}"
            ),
        )

    return Embedded(page_number=page_number, rect=rect, format=image.format)


def draw_placeholder(page: fitz.Page, rect: NativeRect) -> None:
    page.draw_rect(
        page_rect(page, rect),
        color=PLACEHOLDER_COLOR,
        fill=None,
        width=PLACEHOLDER_BORDER_WIDTH,
        overlay=True,
    )


class Compositor:
    """Builds the signed PDF for a stored document on every request.

    The stored record is only read; each call starts again from the record's
    base bytes so repeated calls return identical output. Calls may come from
    several threads at once: the PyMuPDF work of each call runs under
    ``mupdf_lock``, so concurrent calls are serialized rather than interleaved.
    """

    def __init__(self, store: OverlayStore) -> None:
        self.store = store

    def compose(self, identity: str) -> bytes:
        return self.compose_report(identity).data

    def compose_report(self, identity: str) -> Composition:
        record = self.store.get(identity)
        outcomes: List[EmbedOutcome] = []

        with mupdf_lock, open_pdf(record.base_bytes) as doc:
            for overlay in record.overlays:
                page_number = resolve_page(doc, overlay.page)
                page = doc.load_page(page_number - 1)
                rect = to_native(overlay.position, overlay.size, page.mediabox.height)

                outcome = embed_overlay(page, page_number, overlay, rect)
                if isinstance(outcome, Placeholder):
                    logger.warning(
                        "Drawing placeholder on page %d of %s: %s",
                        page_number,
                        identity,
                        outcome.reason,
                    )
                    draw_placeholder(page, rect)
                outcomes.append(outcome)

            data = doc.tobytes(garbage=3, deflate=True, no_new_id=True)

        composition = Composition(data=data, outcomes=tuple(outcomes))
        logger.info(
            "Composed %s: %d overlay(s), %d placeholder(s)",
            identity,
            len(outcomes),
            composition.placeholder_count,
        )
        return composition
