"""Pydantic models for tagdiff API responses."""

from typing import List, Optional

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str = Field(..., examples=["healthy"])
    version: str = Field(..., examples=["1.0.0"])
    git_available: bool = Field(..., examples=[True])
    git_version: Optional[str] = Field(None, examples=["2.34.1"])
    tags_loaded: Optional[int] = Field(None, examples=[42])


class VersionResponse(BaseModel):
    """Response model for version endpoint."""

    version: str = Field(..., examples=["1.0.0"])
    api_version: str = Field(..., examples=["v1"])
    git_version: Optional[str] = Field(None, examples=["2.34.1"])
    supported_features: List[str] = Field(
        default_factory=lambda: [
            "tag_ordering",
            "composed_changes",
            "rename_tracking",
            "file_contents",
        ]
    )


class VersionsResponse(BaseModel):
    """File content at both tags of a comparison."""

    content1: str = Field(..., description="Content at tag1, empty if absent")
    content2: str = Field(..., description="Content at tag2, empty if absent")
