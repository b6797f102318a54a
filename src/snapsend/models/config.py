"""Configuration models for storage, upload, trigger and notifiers."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from snapsend.models.enums import BucketFolder


class FirebaseStorageConfig(BaseModel):
    """Firebase (Google Cloud Storage) bucket configuration."""

    bucket: str
    project_id: str | None = None
    credentials_env: str = "GOOGLE_APPLICATION_CREDENTIALS"
    download_url_base: str = "https://firebasestorage.googleapis.com/v0"


class LocalStorageConfig(BaseModel):
    """Local storage configuration."""

    root: str = "./storage"
    bucket_name: str = "local"
    signing_key_env: str = "SNAPSEND_SIGNING_KEY"


class StorageConfig(BaseModel):
    """Storage backend configuration.

    Note: Backend names are validated against the registry at runtime via
    validate_plugin_names(). This allows third-party storage plugins via entry points.
    """

    model_config = {"extra": "allow"}  # Allow third-party backend configs

    backend: str = "firebase"
    firebase: FirebaseStorageConfig | None = None
    local: LocalStorageConfig | None = None

    @field_validator("backend", mode="before")
    @classmethod
    def _normalize_backend(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.lower()
        return value

    @model_validator(mode="after")
    def _validate_builtin_backends(self) -> StorageConfig:
        """Validate that built-in backends have their required config."""
        match self.backend:
            case "firebase":
                if self.firebase is None:
                    raise ValueError(
                        "storage.firebase is required when backend=firebase. "
                        "Add 'storage.firebase' section to your config."
                    )
            case "local":
                if self.local is None:
                    raise ValueError(
                        "storage.local is required when backend=local. "
                        "Add 'storage.local' section to your config."
                    )
            case _:
                # Third-party backend - validated when the plugin is loaded
                pass
        return self

    def backend_config(self) -> dict[str, Any] | BaseModel:
        """Return the backend-specific section for the selected backend."""
        specific = getattr(self, self.backend, None)
        if specific is None:
            raise ValueError(
                f"Missing '{self.backend}' config in storage section. "
                f"Add 'storage.{self.backend}' to your config."
            )
        return specific


class FetcherConfig(BaseModel):
    """Settings for reading local resources into memory."""

    request_timeout_s: float = Field(default=30.0, gt=0)
    max_bytes: int = Field(default=25 * 1024 * 1024, ge=1)
    default_content_type: str = "image/jpeg"


class RetryConfig(BaseModel):
    """Retry configuration for transient storage write failures."""

    max_attempts: int = Field(default=1, ge=1)
    backoff_s: float = Field(default=1.0, ge=0.0)


class UploadConfig(BaseModel):
    """Batch upload limits."""

    max_images: int = Field(default=10, ge=1)
    max_concurrent_uploads: int = Field(default=10, ge=1)
    retry: RetryConfig = Field(default_factory=RetryConfig)


class EmailTemplateConfig(BaseModel):
    """Templates rendered by the trigger for each uploaded file."""

    subject_template: str = "{folder_label} – {machine} from {full_name}"
    text_template: str = (
        "{report_title}\n"
        "\n"
        "Customer Details:\n"
        "Name: {full_name}\n"
        "Phone: {phone}\n"
        "Machine: {machine}\n"
        "{issue_type_text}"
        "Issue Description:\n"
        "{issue}\n"
        "\n"
        "File Information:\n"
        "File Path: {file_path}\n"
        "Mime Type: {content_type}\n"
        "File Size: {size_kb}\n"
        "Reference: {ref_code}\n"
        "\n"
        "View Image: {signed_url}\n"
        "(Link expires in {link_ttl_hours} hours)\n"
        "\n"
        "---\n"
        "Ready to Run CQ\n"
        "Keeping your machinery running\n"
    )
    html_template: str = (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        '<h2 style="color: #333; border-bottom: 2px solid #007bff; padding-bottom: 10px;">'
        "{report_title}</h2>"
        '<div style="background-color: #f8f9fa; padding: 20px; border-radius: 8px;'
        ' margin: 20px 0;">'
        '<h3 style="color: #007bff; margin-top: 0;">Customer Details</h3>'
        "<p><strong>Name:</strong> {full_name}</p>"
        "<p><strong>Phone:</strong> {phone}</p>"
        "<p><strong>Machine:</strong> {machine}</p>"
        "{issue_type_html}"
        "</div>"
        '<div style="background-color: #fff3cd; padding: 20px; border-radius: 8px;'
        ' margin: 20px 0; border-left: 4px solid #ffc107;">'
        '<h3 style="color: #856404; margin-top: 0;">Issue Description</h3>'
        '<p style="white-space: pre-wrap;">{issue}</p>'
        "</div>"
        '<div style="background-color: #d1ecf1; padding: 20px; border-radius: 8px;'
        ' margin: 20px 0; border-left: 4px solid #17a2b8;">'
        '<h3 style="color: #0c5460; margin-top: 0;">File Information</h3>'
        "<p><strong>File Path:</strong> {file_path}</p>"
        "<p><strong>Mime Type:</strong> {content_type}</p>"
        "<p><strong>File Size:</strong> {size_kb}</p>"
        "<p><strong>Reference:</strong> {ref_code}</p>"
        "</div>"
        '<div style="text-align: center; margin: 30px 0;">'
        '<a href="{signed_url}" style="display: inline-block; background-color: #007bff;'
        " color: white; padding: 12px 24px; text-decoration: none; border-radius: 5px;"
        ' font-weight: bold;">📷 View Uploaded Image</a>'
        '<p style="font-size: 12px; color: #666; margin-top: 10px;">'
        "Link expires in {link_ttl_hours} hours</p>"
        "</div>"
        '<div style="border-top: 1px solid #dee2e6; padding-top: 20px; margin-top: 30px;'
        ' text-align: center; color: #666;">'
        "<p><strong>Ready to Run CQ</strong></p>"
        "<p>Keeping your machinery running</p>"
        "</div>"
        "</div>"
    )

    @model_validator(mode="after")
    def _validate_templates(self) -> EmailTemplateConfig:
        if not self.text_template and not self.html_template:
            raise ValueError("trigger.email requires at least one of text_template/html_template")
        return self


class TriggerConfig(BaseModel):
    """Storage finalize trigger configuration."""

    watched_prefixes: list[str] = Field(
        default_factory=lambda: [folder.prefix for folder in BucketFolder],
        min_length=1,
    )
    signed_url_ttl_hours: int = Field(default=24, ge=1, le=168)
    email: EmailTemplateConfig = Field(default_factory=EmailTemplateConfig)


class NotifierConfig(BaseModel):
    """Notifier configuration entry."""

    backend: str
    enabled: bool = True
    config: dict[str, Any] = Field(default_factory=dict)

    @field_validator("backend", mode="before")
    @classmethod
    def _normalize_backend(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.lower()
        return value


class Config(BaseModel):
    """Main configuration."""

    version: int = 1
    storage: StorageConfig
    fetcher: FetcherConfig = Field(default_factory=FetcherConfig)
    upload: UploadConfig = Field(default_factory=UploadConfig)
    trigger: TriggerConfig = Field(default_factory=TriggerConfig)
    notifiers: list[NotifierConfig] = Field(default_factory=list)

    @property
    def enabled_notifiers(self) -> list[NotifierConfig]:
        return [notifier for notifier in self.notifiers if notifier.enabled]
