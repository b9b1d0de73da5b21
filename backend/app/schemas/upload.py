"""
Pydantic schemas for upload endpoints.
"""
from pydantic import BaseModel, Field
from typing import Optional


class Base64UploadRequest(BaseModel):
    """Schema for JSON uploads with an inline base64 payload."""
    filename: Optional[str] = Field(None, description="Original filename; its suffix becomes the extension")
    data: Optional[str] = Field(None, description="Data URI (data:<mime>;base64,<payload>) or raw base64")
    base64_data: Optional[str] = Field(None, alias="base64", description="Raw base64 payload")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "filename": "receipt.png",
                "data": "data:image/png;base64,iVBORw0KGgo..."
            }
        }


class UploadResponse(BaseModel):
    """Schema for a stored object."""
    ok: bool = True
    blob_name: str = Field(..., alias="blobName", description="Object name within the container")
    url: str = Field(..., description="Object URL")
    content_type: str = Field(..., alias="contentType", description="Content type recorded on the object")
    size: int = Field(..., description="Stored size in bytes")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "ok": True,
                "blobName": "20240131235959_0a1b2c3d4e5f.png",
                "url": "https://storage.example.com/photos/20240131235959_0a1b2c3d4e5f.png",
                "contentType": "image/png",
                "size": 48213
            }
        }


class ErrorResponse(BaseModel):
    """Schema for classified failures."""
    ok: bool = False
    error: str = Field(..., description="Short opaque reason")


class AnalysisResponse(BaseModel):
    """Schema for analysis stub responses."""
    ok: bool = True
    cv: Optional[dict] = None
    di: Optional[dict] = None
