"""SnapSend field-service upload and notification pipeline."""

__version__ = "0.1.0"

# Export commonly used types
from snapsend.errors import FetchError, NotifyError, PipelineError, UploadError
from snapsend.models.enums import BucketFolder
from snapsend.models.upload import BatchUploadResult, IssueMeta, UploadResult

__all__ = [
    "BatchUploadResult",
    "BucketFolder",
    "FetchError",
    "IssueMeta",
    "NotifyError",
    "PipelineError",
    "UploadError",
    "UploadResult",
    "__version__",
]
