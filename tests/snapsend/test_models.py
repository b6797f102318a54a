"""Tests for upload, storage and enum models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from snapsend.models import (
    METADATA_KEYS,
    BatchUploadResult,
    BucketFolder,
    FailureStage,
    FinalizeEvent,
    IssueMeta,
    UploadFailure,
    UploadRequest,
    UploadResult,
)


class TestBucketFolder:
    """Tests for BucketFolder helpers."""

    def test_labels(self) -> None:
        """Each folder exposes its prefix and display labels."""
        assert BucketFolder.SNAP_SEND.prefix == "snap-send/"
        assert BucketFolder.SNAP_SEND.display_name == "Snap & Send"
        assert BucketFolder.GPS_PROBLEMS.display_name == "GPS Problem"
        assert BucketFolder.GPS_PROBLEMS.report_title == "New GPS Problem Report"

    def test_only_snap_send_has_issue_type(self) -> None:
        """GPS reports render no issue category."""
        assert BucketFolder.SNAP_SEND.has_issue_type is True
        assert BucketFolder.GPS_PROBLEMS.has_issue_type is False

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("snap-send/R/x.jpg", BucketFolder.SNAP_SEND),
            ("gps-problems/R/x.jpg", BucketFolder.GPS_PROBLEMS),
            ("snap-sendx/R/x.jpg", None),
            ("other/x.jpg", None),
        ],
    )
    def test_from_object_name(self, name: str, expected: BucketFolder | None) -> None:
        """Resolves the folder from an object name prefix."""
        assert BucketFolder.from_object_name(name) is expected


class TestIssueMeta:
    """Tests for IssueMeta."""

    def test_custom_metadata_has_all_keys_with_empty_strings(self) -> None:
        """Absent fields are written as empty strings, never omitted."""
        # Given: Metadata with only a name
        meta = IssueMeta(full_name="Jed Orr")

        # When: Flattening
        custom = meta.to_custom_metadata("REF-1")

        # Then: Exactly the six keys are present
        assert tuple(custom) == METADATA_KEYS
        assert custom == {
            "full_name": "Jed Orr",
            "phone": "",
            "machine": "",
            "issue_type": "",
            "issue": "",
            "refCode": "REF-1",
        }

    def test_system_coalesces_onto_machine(self) -> None:
        """The GPS system label is stored as the machine."""
        meta = IssueMeta(system="Trimble GFX-750")
        assert meta.to_custom_metadata("R")["machine"] == "Trimble GFX-750"

    def test_machine_wins_over_system(self) -> None:
        """An explicit machine takes precedence over system."""
        meta = IssueMeta(machine="8R", system="Trimble")
        assert meta.machine_or_system == "8R"

    def test_gps_folder_defaults_issue_type(self) -> None:
        """GPS submissions get the fixed issue type."""
        meta = IssueMeta.for_folder(BucketFolder.GPS_PROBLEMS, full_name="A")
        assert meta.issue_type == "GPS Problem"

    def test_with_folder_defaults_keeps_explicit_issue_type(self) -> None:
        """Defaults fill blanks only and leave the original untouched."""
        bare = IssueMeta(system="Trimble")
        explicit = IssueMeta(system="Trimble", issue_type="Antenna")

        assert bare.with_folder_defaults(BucketFolder.GPS_PROBLEMS).issue_type == "GPS Problem"
        assert bare.issue_type is None
        assert explicit.with_folder_defaults(BucketFolder.GPS_PROBLEMS).issue_type == "Antenna"

    def test_snap_send_folder_keeps_blank_issue_type(self) -> None:
        """Snap & Send submissions have no default issue type."""
        meta = IssueMeta.for_folder(BucketFolder.SNAP_SEND, full_name="A")
        assert meta.issue_type is None

    def test_non_string_values_are_coerced(self) -> None:
        """Numeric form values are stored as strings."""
        meta = IssueMeta(phone=400000000)
        assert meta.phone == "400000000"

    def test_missing_required_fields_snap_send(self) -> None:
        """Snap & Send requires name, phone, issue type and description."""
        meta = IssueMeta(full_name="A", phone="  ")
        assert meta.missing_required_fields(BucketFolder.SNAP_SEND) == [
            "phone",
            "issue_type",
            "issue",
        ]

    def test_missing_required_fields_gps(self) -> None:
        """GPS requires name, phone and description."""
        meta = IssueMeta.for_folder(
            BucketFolder.GPS_PROBLEMS, full_name="A", phone="1", issue="No signal"
        )
        assert meta.missing_required_fields(BucketFolder.GPS_PROBLEMS) == []


class TestUploadRequest:
    """Tests for UploadRequest validation."""

    def test_rejects_blank_ref_code(self) -> None:
        """A whitespace-only ref code is invalid."""
        with pytest.raises(ValidationError):
            UploadRequest(bucket_folder="snap-send", ref_code="   ")

    def test_rejects_unknown_folder(self) -> None:
        """Only known folders are accepted."""
        with pytest.raises(ValidationError):
            UploadRequest(bucket_folder="uploads", ref_code="R")

    def test_none_uris_become_empty_list(self) -> None:
        """A missing URI list is an empty submission."""
        request = UploadRequest(bucket_folder="gps-problems", ref_code=" R ", image_uris=None)
        assert request.image_uris == []
        assert request.ref_code == "R"


class TestFinalizeEvent:
    """Tests for parsing storage finalize payloads."""

    def test_parses_cloud_storage_payload(self) -> None:
        """Accepts camelCase fields and a string size."""
        # Given: A Cloud Storage object payload
        payload = {
            "bucket": "b",
            "name": "snap-send/R/x.jpg",
            "contentType": "image/jpeg",
            "size": "2048",
            "metadata": {"full_name": "Jed", "count": 3},
            "generation": "1",
        }

        # When: Parsing
        event = FinalizeEvent.model_validate(payload)

        # Then: Fields are normalized
        assert event.content_type == "image/jpeg"
        assert event.size == 2048
        assert event.metadata == {"full_name": "Jed", "count": "3"}

    def test_size_is_optional(self) -> None:
        """Missing or empty size becomes None."""
        event = FinalizeEvent.model_validate({"bucket": "b", "name": "n", "size": ""})
        assert event.size is None


class TestBatchUploadResult:
    """Tests for batch outcome helpers."""

    def _result(self, index: int) -> UploadResult:
        return UploadResult(
            path=f"p{index}",
            bucket="b",
            download_url=f"u{index}",
            index=index,
            content_type="image/jpeg",
        )

    def _failure(self, index: int) -> UploadFailure:
        return UploadFailure(
            index=index,
            uri="file:///x",
            stage=FailureStage.FETCH,
            error_type="FileNotFoundError",
            message="missing",
        )

    def test_empty_batch(self) -> None:
        """An empty batch is ok and not all-failed."""
        batch = BatchUploadResult(ref_code="R", bucket_folder=BucketFolder.SNAP_SEND)
        assert batch.ok is True
        assert batch.all_failed is False
        assert batch.attempted == 0

    def test_partial_batch(self) -> None:
        """Partial success is neither ok nor all-failed."""
        batch = BatchUploadResult(
            ref_code="R",
            bucket_folder=BucketFolder.SNAP_SEND,
            results=[self._result(0)],
            failures=[self._failure(1)],
        )
        assert batch.ok is False
        assert batch.all_failed is False
        assert batch.download_urls == ["u0"]

    def test_starved_batch(self) -> None:
        """All attempts failing is reported as all-failed."""
        batch = BatchUploadResult(
            ref_code="R",
            bucket_folder=BucketFolder.SNAP_SEND,
            failures=[self._failure(0), self._failure(1)],
        )
        assert batch.all_failed is True
