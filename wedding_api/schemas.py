"""
Pydantic schemas for request and response data validation.
Every endpoint answers with the ApiResponse envelope: { success, data?, error? }.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from typing import Any, Literal, Optional, List


class ApiResponse(BaseModel):
    """
    Shared response envelope.
    Routes use response_model_exclude_unset so that unset keys are omitted.
    """
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None


class GalleryImageResponse(BaseModel):
    """Gallery row as returned by GET /api/gallery."""
    id: int
    url: str
    filename: str
    image_type: Literal["main", "gallery"]
    order_index: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_model(cls, image) -> "GalleryImageResponse":
        return cls(
            id=image.id,
            url=f"/uploads/{image.filename}",
            filename=image.filename,
            image_type=image.image_type,
            order_index=image.order_index,
            created_at=image.created_at,
        )


class GalleryImageCreate(BaseModel):
    """
    Request schema for registering an already stored file in the gallery.
    Used by POST /api/gallery.
    """
    filename: str = Field(..., min_length=1, max_length=255)
    image_type: Literal["main", "gallery"] = "gallery"


class GalleryReorderRequest(BaseModel):
    """
    Request schema for reordering gallery images.
    Used by PUT /api/admin/gallery. Contains image IDs in the desired display order.
    """
    sortedIds: List[int] = Field(..., min_length=1)

    @field_validator("sortedIds")
    @classmethod
    def validate_unique_ids(cls, v):
        if len(v) != len(set(v)):
            raise ValueError("Duplicate image IDs are not allowed")
        return v


class GuestbookCreate(BaseModel):
    """Request schema for POST /api/guestbook."""
    name: str = Field(..., max_length=50)
    password: str = Field(..., min_length=1, max_length=100)
    content: str = Field(..., max_length=1000)

    @field_validator("name", "content")
    @classmethod
    def strip_not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v


class GuestbookEntryResponse(BaseModel):
    """Public guestbook entry; created_at is preformatted for display."""
    id: int
    name: str
    content: str
    created_at: str


class AdminGuestbookEntryResponse(BaseModel):
    """Guestbook entry as listed in the admin panel."""
    id: int
    name: str
    content: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ContactBase(BaseModel):
    side: Literal["groom", "bride"]
    relationship: Literal["person", "father", "mother", "brother", "sister", "other"]
    name: str = Field(..., min_length=1, max_length=50)
    phone: Optional[str] = Field(None, max_length=20)
    bank_name: Optional[str] = Field(None, max_length=50)
    account_number: Optional[str] = Field(None, max_length=50)
    kakaopay_link: Optional[str] = Field(None, max_length=255)


class ContactCreate(ContactBase):
    """Request schema for creating a contact."""


class ContactUpdate(ContactBase):
    """Request schema for PUT /api/admin/contacts/{id} (full replacement)."""


class ContactResponse(ContactBase):
    id: int

    model_config = ConfigDict(from_attributes=True)


class AdminLoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
