from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class Location(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class TrackingNumberCreate(BaseModel):
    region: str | None = Field(default=None, min_length=2, max_length=3)
    owner: str | None = Field(default=None, max_length=191)
    location: Location | None = None

    @field_validator("region")
    @classmethod
    def validate_region(cls, v: str | None) -> str | None:
        if v is not None:
            if not v.isalpha():
                raise ValueError("region must contain letters only")
            return v.upper()
        return v


class TrackingStatusCreate(BaseModel):
    status: str = Field(min_length=1, max_length=255)
    code: str = Field(min_length=1, max_length=50)
    details: str | None = Field(default=None, max_length=2000)
    location: Location | None = None


class DecodeQRRequest(BaseModel):
    code: str = Field(min_length=1, max_length=191)


class TrackingStatusResponse(BaseModel):
    id: str
    uuid: UUID
    status: str
    code: str
    details: str | None = None
    location: Location | None = None
    created_at: datetime


class TrackingNumberResponse(BaseModel):
    id: str
    uuid: UUID
    tracking_number: str
    region: str
    type: Literal["order", "entity"] | None = None
    owner: str | None = None
    qr_code: str | None = None
    barcode: str | None = None
    location: Location | None = None
    last_status: str
    last_status_code: str
    last_status_updated_at: datetime
    created_at: datetime
    updated_at: datetime


class TrackingNumberListResponse(BaseModel):
    items: list[TrackingNumberResponse]
    total: int
    page: int
    per_page: int


class DeletedResponse(BaseModel):
    id: str
    object: str
    time: datetime | None = None
    deleted: bool


class OwnerResponse(BaseModel):
    id: str
    uuid: UUID
    type: Literal["order", "entity"]
    status: str
    name: str | None = None
