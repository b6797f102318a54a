"""Upload request, metadata and result models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from snapsend.models.enums import BucketFolder, FailureStage

GPS_ISSUE_TYPE = "GPS Problem"

# Keys written to every stored object's custom metadata, in this order.
METADATA_KEYS = ("full_name", "phone", "machine", "issue_type", "issue", "refCode")

_REQUIRED_FIELDS: dict[BucketFolder, tuple[str, ...]] = {
    BucketFolder.SNAP_SEND: ("full_name", "phone", "issue_type", "issue"),
    BucketFolder.GPS_PROBLEMS: ("full_name", "phone", "issue"),
}


class IssueMeta(BaseModel):
    """Free-text form fields attached to every file of a submission."""

    model_config = {"extra": "ignore"}

    full_name: str | None = None
    phone: str | None = None
    machine: str | None = None
    system: str | None = None  # GPS form label for the same concept as machine
    issue_type: str | None = None
    issue: str | None = None

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_to_str(cls, value: object) -> object:
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @property
    def machine_or_system(self) -> str:
        """Machine label, falling back to the GPS system label."""
        return self.machine or self.system or ""

    @classmethod
    def for_folder(cls, folder: BucketFolder, **fields: str | None) -> IssueMeta:
        """Build metadata with the workflow's defaults applied."""
        return cls(**fields).with_folder_defaults(folder)

    def with_folder_defaults(self, folder: BucketFolder) -> IssueMeta:
        """Return a copy with blank fields filled from the workflow's defaults."""
        if folder is BucketFolder.GPS_PROBLEMS and not self.issue_type:
            return self.model_copy(update={"issue_type": GPS_ISSUE_TYPE})
        return self

    def missing_required_fields(self, folder: BucketFolder) -> list[str]:
        """Return required field names left blank for the given workflow."""
        missing = []
        for name in _REQUIRED_FIELDS[folder]:
            value = getattr(self, name)
            if not value or not value.strip():
                missing.append(name)
        return missing

    def to_custom_metadata(self, ref_code: str) -> dict[str, str]:
        """Flatten into the storage metadata map (empty string, never omitted)."""
        return {
            "full_name": self.full_name or "",
            "phone": self.phone or "",
            "machine": self.machine_or_system,
            "issue_type": self.issue_type or "",
            "issue": self.issue or "",
            "refCode": ref_code,
        }


class UploadRequest(BaseModel):
    """One user submission: a batch of local files sharing a ref code."""

    bucket_folder: BucketFolder
    ref_code: str = Field(min_length=1)
    image_uris: list[object] = Field(default_factory=list)
    meta: IssueMeta = Field(default_factory=IssueMeta)

    @field_validator("ref_code")
    @classmethod
    def _strip_ref_code(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("ref_code must not be blank")
        return stripped

    @field_validator("image_uris", mode="before")
    @classmethod
    def _default_uris(cls, value: object) -> object:
        return [] if value is None else value


class UploadResult(BaseModel):
    """A successfully uploaded file."""

    ok: Literal[True] = True
    path: str
    bucket: str
    download_url: str
    index: int
    content_type: str


class UploadFailure(BaseModel):
    """A file that could not be uploaded, with the reason."""

    index: int
    uri: str
    stage: FailureStage
    error_type: str
    message: str


class BatchUploadResult(BaseModel):
    """Outcome of a batch upload: successes in submission order plus failures."""

    ref_code: str
    bucket_folder: BucketFolder
    results: list[UploadResult] = Field(default_factory=list)
    failures: list[UploadFailure] = Field(default_factory=list)
    dropped_uris: list[str] = Field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.results) + len(self.failures)

    @property
    def ok(self) -> bool:
        """True when every attempted file was uploaded."""
        return not self.failures

    @property
    def all_failed(self) -> bool:
        """True when files were attempted and none succeeded."""
        return self.attempted > 0 and not self.results

    @property
    def download_urls(self) -> list[str]:
        return [result.download_url for result in self.results]
