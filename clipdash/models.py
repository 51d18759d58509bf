"""
Pydantic models for request/response validation and for the stored share record.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ShareItemIn(BaseModel):
    """An item as submitted by a client (no id, no timestamp)."""
    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["text", "file"]
    content: str = ""  # raw text, or a data: URL for files
    file_name: Optional[str] = Field(None, alias="fileName")
    file_type: Optional[str] = Field(None, alias="fileType")
    file_size: Optional[int] = Field(None, alias="fileSize", ge=0)  # decoded bytes

    @property
    def size(self) -> int:
        """Size counted against the share ceiling, in UTF-16 code units for text."""
        if self.kind == "file" and self.file_size:
            return self.file_size
        return len(self.content.encode("utf-16-le")) // 2


class ShareItem(ShareItemIn):
    """A stored item, stamped by the service."""
    id: str
    created_at: str = Field(alias="createdAt")


class Share(BaseModel):
    """The record persisted under `clipboard:<CODE>`."""
    model_config = ConfigDict(populate_by_name=True)

    code: str
    items: List[ShareItem]
    created_at: str = Field(alias="createdAt")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


class CreateShareRequest(BaseModel):
    """Request model for creating a new share."""
    items: List[ShareItemIn] = Field(default_factory=list)


class CreateShareResponse(BaseModel):
    """Response model after creating a share."""
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    code: str
    expires_in: str = Field(alias="expiresIn")


class ShareResponse(BaseModel):
    """Response model for a retrieved share."""
    success: bool = True
    share: Share


class DeleteShareResponse(BaseModel):
    """Response model after deleting a share."""
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    error: str
