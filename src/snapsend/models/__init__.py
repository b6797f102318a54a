"""SnapSend data models."""

from snapsend.models.config import (
    Config,
    EmailTemplateConfig,
    FetcherConfig,
    FirebaseStorageConfig,
    LocalStorageConfig,
    NotifierConfig,
    RetryConfig,
    StorageConfig,
    TriggerConfig,
    UploadConfig,
)
from snapsend.models.enums import BucketFolder, FailureStage, TriggerStage, TriggerStatus
from snapsend.models.notification import (
    NOT_AVAILABLE,
    EmailMessage,
    IssueNotification,
    TriggerOutcome,
)
from snapsend.models.storage import FinalizeEvent, StoredObjectInfo, StorageUploadResult
from snapsend.models.upload import (
    METADATA_KEYS,
    BatchUploadResult,
    IssueMeta,
    UploadFailure,
    UploadRequest,
    UploadResult,
)

__all__ = [
    "METADATA_KEYS",
    "NOT_AVAILABLE",
    "BatchUploadResult",
    "BucketFolder",
    "Config",
    "EmailMessage",
    "EmailTemplateConfig",
    "FailureStage",
    "FetcherConfig",
    "FinalizeEvent",
    "FirebaseStorageConfig",
    "IssueMeta",
    "IssueNotification",
    "LocalStorageConfig",
    "NotifierConfig",
    "RetryConfig",
    "StorageConfig",
    "StorageUploadResult",
    "StoredObjectInfo",
    "TriggerConfig",
    "TriggerOutcome",
    "TriggerStage",
    "TriggerStatus",
    "UploadConfig",
    "UploadFailure",
    "UploadRequest",
    "UploadResult",
]
