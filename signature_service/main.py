"""FastAPI application for placing signature images on uploaded documents."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from pathlib import PurePath
from typing import Optional
from urllib.parse import quote

from fastapi import FastAPI, File, Form, HTTPException, Response, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .compositor import PDF_MEDIA_TYPE
from .config import settings
from .document_manager import DocumentManager, signed_file_name
from .errors import SignatureServiceError
from .models import DocumentRecord
from .rendering import DocumentRenderer, SUPPORTED_SUFFIXES
from .schemas import (
    DocumentSummary,
    OverlayPosition,
    OverlaySize,
    PreviewResponse,
    RemoveResponse,
    SignatureRequest,
    UploadBatchResponse,
    UploadFileResponse,
    UploadRequest,
)

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

DOCUMENT_CONTENT_TYPES = {
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/msword",
    "application/pdf",
    "application/octet-stream",
}
RECOMMENDED_SIGNATURE_SIZE = OverlaySize(width=148, height=33)

app = FastAPI(title="Document Signature API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

document_manager = DocumentManager(
    DocumentRenderer(
        soffice_path=settings.soffice_path,
        timeout=settings.conversion_timeout_seconds,
    ),
    record_ttl=(
        timedelta(seconds=settings.record_ttl_seconds)
        if settings.record_ttl_seconds is not None
        else None
    ),
)


def _http_error(exc: SignatureServiceError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)


def _summary(record: DocumentRecord, page_count: int) -> DocumentSummary:
    return DocumentSummary(
        document_id=record.identity,
        signed_file_name=signed_file_name(record.identity),
        page_count=page_count,
        signature_count=len(record.overlays),
    )


async def _read_document(file: UploadFile) -> bytes:
    suffix = PurePath(file.filename or "").suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES or (
        file.content_type and file.content_type not in DOCUMENT_CONTENT_TYPES
    ):
        raise HTTPException(
            status_code=400, detail="Only .doc, .docx and .pdf files are supported"
        )

    content = await file.read()
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail="Document is too large")
    if not content:
        raise HTTPException(status_code=400, detail="Document is empty")
    return content


@app.get("/api/test")
def api_test() -> JSONResponse:
    return JSONResponse(
        {
            "message": "API running",
            "pending_documents": len(document_manager.pending_identities()),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "endpoints": {
                "upload_file": "POST /api/upload-file",
                "upload": "POST /api/upload",
                "preview": "POST /api/preview",
                "download": "GET /api/download/{file_name}",
                "remove": "DELETE /api/documents/{file_name}",
            },
        }
    )


@app.post("/api/upload-file", response_model=UploadFileResponse)
async def upload_file(
    document: UploadFile = File(...),
    signature: str = Form(...),
    page: int = Form(1),
    positionX: Optional[float] = Form(None),
    positionY: Optional[float] = Form(None),
    signatureWidth: Optional[float] = Form(None),
    signatureHeight: Optional[float] = Form(None),
) -> UploadFileResponse:
    content = await _read_document(document)
    request = SignatureRequest(
        imageData=signature,
        page=page,
        position=OverlayPosition(
            x=300.0 if positionX is None else positionX,
            y=400.0 if positionY is None else positionY,
        ),
        width=settings.default_signature_width if signatureWidth is None else signatureWidth,
        height=settings.default_signature_height if signatureHeight is None else signatureHeight,
    )

    try:
        record, page_count = await document_manager.ingest_upload(
            document.filename, content, [request.to_overlay()]
        )
    except SignatureServiceError as exc:
        raise _http_error(exc) from exc

    return UploadFileResponse(
        message="Document processed",
        document=_summary(record, page_count),
        timestamp=datetime.now(timezone.utc),
    )


@app.post("/api/upload", response_model=UploadBatchResponse)
async def upload_documents(payload: UploadRequest) -> UploadBatchResponse:
    if not payload.documents:
        raise HTTPException(status_code=400, detail="At least one document is required")
    if not payload.signatures:
        raise HTTPException(status_code=400, detail="At least one signature is required")

    overlays = [signature.to_overlay() for signature in payload.signatures]
    summaries = []
    try:
        for item in payload.documents:
            record, page_count = await document_manager.ingest_encoded(
                item.name, item.content, overlays
            )
            summaries.append(_summary(record, page_count))
    except SignatureServiceError as exc:
        raise _http_error(exc) from exc

    return UploadBatchResponse(
        message=(
            f"{len(summaries)} document(s) processed with "
            f"{len(overlays)} signature(s) each"
        ),
        total_documents=len(summaries),
        signatures_per_document=len(overlays),
        documents=summaries,
        timestamp=datetime.now(timezone.utc),
    )


@app.post("/api/preview", response_model=PreviewResponse)
async def preview_document(
    document: UploadFile = File(...), page_number: int = Form(1)
) -> PreviewResponse:
    content = await _read_document(document)
    try:
        preview = await document_manager.get_page_preview(
            document.filename, content, page_number
        )
    except SignatureServiceError as exc:
        raise _http_error(exc) from exc

    return PreviewResponse(
        file_name=document.filename,
        page_count=preview.page_count,
        page_number=preview.page_number,
        width=preview.width,
        height=preview.height,
        preview_data_url=f"data:image/png;base64,{preview.preview_base64}",
        recommended_size=RECOMMENDED_SIGNATURE_SIZE,
    )


@app.get("/api/download/{file_name}")
async def download_document(file_name: str) -> Response:
    try:
        composition = document_manager.compose(file_name)
    except SignatureServiceError as exc:
        raise _http_error(exc) from exc

    download_name = quote(signed_file_name(file_name))
    return Response(
        content=composition.data,
        media_type=PDF_MEDIA_TYPE,
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{download_name}",
            "Cache-Control": "no-store",
            "X-Signature-Placeholders": str(composition.placeholder_count),
        },
    )


@app.delete("/api/documents/{file_name}", response_model=RemoveResponse)
def remove_document(file_name: str) -> RemoveResponse:
    try:
        document_manager.remove(file_name)
    except SignatureServiceError as exc:
        raise _http_error(exc) from exc
    return RemoveResponse(document_id=file_name)


@app.get("/health")
def health() -> JSONResponse:
    return JSONResponse({"status": "ok"})
