"""Storage-related data models."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, Field, field_validator


class StorageUploadResult(BaseModel):
    """Result of a storage upload."""

    path: str
    bucket: str
    storage_uri: str


class StoredObjectInfo(BaseModel):
    """Object attributes re-read from storage."""

    path: str
    bucket: str
    content_type: str | None = None
    size: int | None = None
    custom_metadata: dict[str, str] = Field(default_factory=dict)


class FinalizeEvent(BaseModel):
    """Storage notification that an object write has completed.

    Accepts the Cloud Storage object payload field names (``contentType``)
    as well as snake_case. ``size`` arrives as a decimal string from Cloud
    Storage and is normalized to an int.
    """

    model_config = {"populate_by_name": True, "extra": "ignore"}

    bucket: str
    name: str
    content_type: str | None = Field(
        default=None, validation_alias=AliasChoices("content_type", "contentType")
    )
    size: int | None = None
    metadata: dict[str, str] | None = None

    @field_validator("size", mode="before")
    @classmethod
    def _parse_size(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        if isinstance(value, str):
            return int(value.strip())
        return value

    @field_validator("metadata", mode="before")
    @classmethod
    def _stringify_metadata(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {str(k): "" if v is None else str(v) for k, v in value.items()}
        return value
