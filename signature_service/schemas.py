"""Pydantic schemas for the signature overlay API."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from .models import (
    DEFAULT_SIGNATURE_HEIGHT,
    DEFAULT_SIGNATURE_WIDTH,
    Point,
    SignatureOverlay,
    Size,
)


class OverlayPosition(BaseModel):
    x: float
    y: float


class OverlaySize(BaseModel):
    width: float = DEFAULT_SIGNATURE_WIDTH
    height: float = DEFAULT_SIGNATURE_HEIGHT


class SignatureRequest(BaseModel):
    imageData: str = Field(..., description="Base64 image, optionally a data:image URI")
    page: int = Field(1, description="1-based page number")
    position: OverlayPosition = Field(
        ..., description="Top-left corner of the signature, origin at the page's top-left"
    )
    size: Optional[OverlaySize] = None
    width: Optional[float] = Field(None, description="Shorthand for size.width")
    height: Optional[float] = Field(None, description="Shorthand for size.height")

    @model_validator(mode="after")
    def _single_size_form(self) -> "SignatureRequest":
        if self.size is not None and (self.width is not None or self.height is not None):
            raise ValueError("send either size or width/height, not both")
        return self

    def to_overlay(self) -> SignatureOverlay:
        if self.size is not None:
            size = Size(width=self.size.width, height=self.size.height)
        else:
            size = Size(
                width=DEFAULT_SIGNATURE_WIDTH if self.width is None else self.width,
                height=DEFAULT_SIGNATURE_HEIGHT if self.height is None else self.height,
            )
        return SignatureOverlay(
            image_data=self.imageData,
            page=self.page,
            position=Point(x=self.position.x, y=self.position.y),
            size=size,
        )


class UploadDocument(BaseModel):
    name: str = Field(..., description="Original file name; used as the document identity")
    content: str = Field(..., description="Base64-encoded DOC, DOCX or PDF bytes")


class UploadRequest(BaseModel):
    documents: List[UploadDocument]
    signatures: List[SignatureRequest]


class DocumentSummary(BaseModel):
    document_id: str = Field(..., description="Identity to use for the download")
    signed_file_name: str
    page_count: int
    signature_count: int
    status: str = Field(default="processed")


class UploadFileResponse(BaseModel):
    message: str
    document: DocumentSummary
    timestamp: datetime


class UploadBatchResponse(BaseModel):
    message: str
    total_documents: int
    signatures_per_document: int
    documents: List[DocumentSummary]
    timestamp: datetime


class PreviewResponse(BaseModel):
    file_name: str
    page_count: int
    page_number: int
    width: float
    height: float
    preview_data_url: str
    recommended_size: OverlaySize


class RemoveResponse(BaseModel):
    document_id: str
    status: str = Field(default="removed")
