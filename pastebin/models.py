"""
Pydantic models for stored pastes and API responses.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from pastebin.expiry import NEVER, ExpiresAt


class PasteMetadata(BaseModel):
    """Everything stored alongside a paste's payload."""

    model_config = ConfigDict(frozen=True)

    content_type: str = Field(..., description="MIME type served back to clients")
    file_name: Optional[str] = Field(None, description="Suggested file name")
    created_at: datetime = Field(..., description="Creation instant (UTC)")
    expires_at: Optional[datetime] = Field(None, description="Expiry instant, null if the paste never expires")

    @classmethod
    def build(
        cls,
        content_type: str,
        file_name: Optional[str],
        created_at: datetime,
        expires_at: ExpiresAt,
    ) -> "PasteMetadata":
        return cls(
            content_type=content_type,
            file_name=file_name,
            created_at=created_at,
            expires_at=None if expires_at is NEVER else expires_at,
        )

    @property
    def expiry(self) -> ExpiresAt:
        """Expiry as seen by the expiry policy: a datetime or NEVER."""
        return NEVER if self.expires_at is None else self.expires_at


class Paste(BaseModel):
    """A stored paste: identifier, metadata and payload."""

    model_config = ConfigDict(frozen=True)

    id: str
    metadata: PasteMetadata
    payload: bytes


class HealthCheck(BaseModel):
    """Schema for health check response."""
    ok: bool = Field(..., description="Is the application healthy?")
