"""Process-local storage of documents awaiting signature composition."""

from __future__ import annotations

import logging
import math
import threading
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Protocol, Sequence

from .errors import NotFoundError, ValidationError
from .models import DocumentRecord, SignatureOverlay
from .payload import is_supported_tag, payload_tag

logger = logging.getLogger(__name__)


class OverlayStore(Protocol):
    def put(
        self, identity: str, base_bytes: bytes, overlays: Sequence[SignatureOverlay]
    ) -> DocumentRecord: ...

    def get(self, identity: str) -> DocumentRecord: ...

    def remove(self, identity: str) -> DocumentRecord: ...

    def identities(self) -> List[str]: ...

    def __len__(self) -> int: ...


def _is_positive(value: object) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
        and value > 0
    )


def _is_coordinate(value: object) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def validate_overlay(overlay: SignatureOverlay, index: int) -> None:
    """Structural checks only; image content is checked when composing."""
    if not isinstance(overlay.image_data, str) or not overlay.image_data.strip():
        raise ValidationError("image data is required", field="imageData", index=index)

    tag = payload_tag(overlay.image_data)
    if tag is not None and not is_supported_tag(tag):
        raise ValidationError(
            f"unsupported image type '{tag}', use JPEG or PNG",
            field="imageData",
            index=index,
        )

    page = overlay.page
    if isinstance(page, bool) or not isinstance(page, int) or page < 1:
        raise ValidationError("page must be an integer >= 1", field="page", index=index)

    if overlay.position is None or not (
        _is_coordinate(overlay.position.x) and _is_coordinate(overlay.position.y)
    ):
        raise ValidationError("position (x, y) is required", field="position", index=index)

    if overlay.size is None or not (
        _is_positive(overlay.size.width) and _is_positive(overlay.size.height)
    ):
        raise ValidationError(
            "width and height must be greater than zero", field="size", index=index
        )


class InMemoryOverlayStore:
    """Dictionary-backed store.

    Records are immutable, so readers never take the lock; writers replace
    whole records under it. Nothing expires unless removed explicitly.
    """

    def __init__(self) -> None:
        self._records: Dict[str, DocumentRecord] = {}
        self._lock = threading.Lock()

    def put(
        self, identity: str, base_bytes: bytes, overlays: Sequence[SignatureOverlay]
    ) -> DocumentRecord:
        if not identity:
            raise ValidationError("document identity is required", field="identity")
        if not base_bytes:
            raise ValidationError("document content is empty", field="document")

        batch = tuple(overlays)
        for index, overlay in enumerate(batch):
            validate_overlay(overlay, index)

        record = DocumentRecord(
            identity=identity, base_bytes=bytes(base_bytes), overlays=batch
        )
        with self._lock:
            replaced = identity in self._records
            self._records[identity] = record

        logger.info(
            "Stored %d overlay(s) for %s (%s)",
            len(batch),
            identity,
            "replaced" if replaced else "new",
        )
        return record

    def get(self, identity: str) -> DocumentRecord:
        record = self._records.get(identity)
        if record is None:
            raise NotFoundError(identity)
        return record

    def remove(self, identity: str) -> DocumentRecord:
        with self._lock:
            record = self._records.pop(identity, None)
        if record is None:
            raise NotFoundError(identity)
        return record

    def identities(self) -> List[str]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)


def evict_older_than(
    store: OverlayStore, max_age: timedelta, now: Optional[datetime] = None
) -> List[str]:
    """Remove records created more than ``max_age`` ago; return their identities."""
    now = now or datetime.now(timezone.utc)
    evicted: List[str] = []
    for identity in store.identities():
        try:
            record = store.get(identity)
        except NotFoundError:
            continue
        if now - record.created_at <= max_age:
            continue
        try:
            store.remove(identity)
        except NotFoundError:
            continue
        evicted.append(identity)

    if evicted:
        logger.info("Evicted %d expired document(s)", len(evicted))
    return evicted
