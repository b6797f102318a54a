"""CLI entrypoint for SnapSend."""

from __future__ import annotations

import asyncio
import json
import sys
from collections.abc import Sequence
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

import fire  # type: ignore[import-untyped]

from snapsend.app import Application
from snapsend.config import ConfigError, load_config
from snapsend.logging_setup import configure_logging
from snapsend.models.enums import BucketFolder, TriggerStatus
from snapsend.models.notification import TriggerOutcome
from snapsend.models.storage import FinalizeEvent
from snapsend.models.upload import BatchUploadResult, IssueMeta
from snapsend.plugins.storage.local import LocalStorage
from snapsend.ref_codes import generate_ref_code
from snapsend.signed_urls import SignedLinkError


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for CLI."""
    configure_logging(log_level=level)


def _as_uri_list(uris: str | Sequence[str] | None) -> list[str]:
    match uris:
        case None:
            return []
        case str():
            return [uris]
        case _:
            return [str(uri) for uri in uris]


class SnapSend:
    """SnapSend CLI - field-service photo upload and dispatcher notification."""

    def upload(
        self,
        config: str,
        folder: str,
        uris: str | Sequence[str],
        full_name: str | None = None,
        phone: str | None = None,
        machine: str | None = None,
        system: str | None = None,
        issue_type: str | None = None,
        issue: str | None = None,
        ref_code: str | None = None,
        strict: bool = True,
        log_level: str = "INFO",
    ) -> None:
        """Upload a submission's files with its form metadata.

        Args:
            config: Path to YAML config file
            folder: Workflow folder (snap-send or gps-problems)
            uris: One URI or a list of URIs (file://, data:, http(s)://)
            full_name: Customer name
            phone: Customer phone number
            machine: Machine make/model
            system: GPS system (GPS workflow label for machine)
            issue_type: Issue category (defaults to "GPS Problem" for gps-problems)
            issue: Free-text issue description
            ref_code: Submission reference (generated when omitted)
            strict: Refuse to upload when required form fields are blank
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        """
        setup_logging(log_level)

        try:
            bucket_folder = BucketFolder(folder)
        except ValueError:
            valid = ", ".join(f.value for f in BucketFolder)
            print(f"✗ Unknown folder: {folder} (valid: {valid})", file=sys.stderr)
            sys.exit(2)

        meta = IssueMeta.for_folder(
            bucket_folder,
            full_name=full_name,
            phone=phone,
            machine=machine,
            system=system,
            issue_type=issue_type,
            issue=issue,
        )
        missing = meta.missing_required_fields(bucket_folder)
        if strict and missing:
            print(f"✗ Missing required fields: {', '.join(missing)}", file=sys.stderr)
            sys.exit(2)

        submission_ref = ref_code or generate_ref_code()

        async def _run() -> BatchUploadResult:
            async with Application(load_config(Path(config))) as app:
                return await app.uploader.upload_multiple_issue_files(
                    bucket_folder=bucket_folder,
                    ref_code=submission_ref,
                    image_uris=_as_uri_list(uris),
                    meta=meta,
                )

        try:
            batch = asyncio.run(_run())
        except ConfigError as e:
            print(f"✗ Config invalid: {e}", file=sys.stderr)
            sys.exit(1)

        print(json.dumps(batch.model_dump(mode="json"), indent=2))
        if batch.all_failed:
            sys.exit(1)

    def notify(
        self,
        config: str,
        object_name: str,
        bucket: str = "",
        content_type: str | None = None,
        size: int | None = None,
        log_level: str = "INFO",
    ) -> None:
        """Run the upload notification for an already-stored object.

        Args:
            config: Path to YAML config file
            object_name: Object path, e.g. snap-send/<ref>/<file>.jpg
            bucket: Bucket name reported in the event
            content_type: Content type reported in the event
            size: Object size in bytes reported in the event
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        """
        setup_logging(log_level)
        event = FinalizeEvent(
            bucket=bucket, name=object_name, content_type=content_type, size=size
        )

        async def _run() -> TriggerOutcome:
            async with Application(load_config(Path(config))) as app:
                return await app.trigger.handle(event)

        try:
            outcome = asyncio.run(_run())
        except ConfigError as e:
            print(f"✗ Config invalid: {e}", file=sys.stderr)
            sys.exit(1)

        print(json.dumps(outcome.model_dump(mode="json"), indent=2))
        if outcome.status == TriggerStatus.FAILED:
            sys.exit(1)

    def open_link(self, config: str, url: str, output: str, log_level: str = "INFO") -> None:
        """Follow a signed link minted by the local storage backend.

        Args:
            config: Path to YAML config file (local storage backend)
            url: Signed file:// link taken from a notification email
            output: Where to write the object bytes
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        """
        setup_logging(log_level)

        async def _run() -> bytes:
            async with Application(load_config(Path(config))) as app:
                storage = app.storage
                if not isinstance(storage, LocalStorage):
                    raise ValueError("open_link requires the local storage backend")
                return await storage.read_signed_url(url)

        try:
            data = asyncio.run(_run())
        except ConfigError as e:
            print(f"✗ Config invalid: {e}", file=sys.stderr)
            sys.exit(1)
        except SignedLinkError as e:
            print(f"✗ Link rejected ({e.code}): {e}", file=sys.stderr)
            sys.exit(1)

        Path(output).write_bytes(data)
        print(f"✓ Wrote {len(data)} bytes to {output}")

    def validate(self, config: str) -> None:
        """Validate config file without running.

        Args:
            config: Path to YAML config file
        """
        config_path = Path(config)

        try:
            cfg = load_config(config_path)
        except ConfigError as e:
            print(f"✗ Config invalid: {e}", file=sys.stderr)
            sys.exit(1)

        print(f"✓ Config valid: {config_path}")
        notifier_backends = [
            f"{notifier.backend} (enabled={notifier.enabled})" for notifier in cfg.notifiers
        ]
        print(f"  Storage backend: {cfg.storage.backend}")
        print(f"  Notifiers: {notifier_backends}")
        print(f"  Watched prefixes: {cfg.trigger.watched_prefixes}")
        print(f"  Max images per submission: {cfg.upload.max_images}")

    def ref_code(self) -> None:
        """Print a fresh submission reference code."""
        print(generate_ref_code())


def main() -> None:
    """Main CLI entrypoint."""
    # Strip --help/-h when it's the only arg so Fire shows its commands list
    if len(sys.argv) == 2 and sys.argv[1] in ("--help", "-h"):
        sys.argv.pop()
    fire.Fire(SnapSend)


if __name__ == "__main__":
    main()
