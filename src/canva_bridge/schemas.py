from typing import Any

from pydantic import BaseModel, ConfigDict


class ImageSize(BaseModel):
    width: int
    height: int
    url: str


class ImageResponse(BaseModel):
    fullsize: ImageSize
    thumbnail: ImageSize
    label: str | None = None


class CreditsResponse(BaseModel):
    credits: int


class LedgerEntryResponse(BaseModel):
    type: str
    amount: int
    balance_after: int
    job_id: str | None = None
    created_at: str


class LedgerResponse(BaseModel):
    credits: int
    entries: list[LedgerEntryResponse]


class QueueResponse(BaseModel):
    jobId: str


class JobStatusResponse(BaseModel):
    status: str
    images: list[ImageResponse] | None = None
    credits: int | None = None


class MessageResponse(BaseModel):
    message: str


class GenerateRequest(BaseModel):
    """Body of POST /generate. Unknown fields are forwarded to the MCP payload."""

    model_config = ConfigDict(extra="allow")

    prompt: str | None = None
    name: str | None = None
    width: float | None = None
    height: float | None = None
    width_inches: float | None = None
    height_inches: float | None = None


class GenerateResponse(BaseModel):
    success: bool
    message: str
    url: str
    design_url: str
    design_id: str | None = None
    raw_response: Any = None
