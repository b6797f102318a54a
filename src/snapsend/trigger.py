"""Storage finalize trigger that emails each uploaded issue file."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from snapsend.errors import NotifyError
from snapsend.interfaces import Notifier, StorageBackend
from snapsend.logging_setup import set_ref_code
from snapsend.models.config import TriggerConfig
from snapsend.models.enums import TriggerStage, TriggerStatus
from snapsend.models.notification import TriggerOutcome
from snapsend.models.storage import FinalizeEvent
from snapsend.notifications import build_notification, render_email

logger = logging.getLogger(__name__)


class UploadNotificationTrigger:
    """Turns finalized objects under the watched prefixes into dispatcher emails.

    Each invocation is independent: there is no batching across files of the
    same submission, no retry, and the stored object is never touched.
    ``handle`` does not raise; failures are logged and reported in the outcome.
    """

    def __init__(
        self,
        storage: StorageBackend,
        notifier: Notifier,
        config: TriggerConfig | None = None,
    ) -> None:
        self._storage = storage
        self._notifier = notifier
        self._config = config or TriggerConfig()

    def is_watched(self, object_name: str | None) -> bool:
        """Return True if the object lives under one of the watched prefixes."""
        if not object_name:
            return False
        return any(object_name.startswith(prefix) for prefix in self._config.watched_prefixes)

    async def handle(self, event: FinalizeEvent | dict[str, Any]) -> TriggerOutcome:
        stage = TriggerStage.RECEIVED
        object_name = ""
        try:
            if not isinstance(event, FinalizeEvent):
                if not event.get("name"):
                    logger.info("Event carries no object name, skipping")
                    return TriggerOutcome(
                        status=TriggerStatus.SKIPPED, stage=stage, object_name=""
                    )
                event = FinalizeEvent.model_validate(event)
            object_name = event.name

            if not self.is_watched(object_name):
                logger.info("Object not in a watched folder, skipping: %s", object_name)
                return TriggerOutcome(
                    status=TriggerStatus.SKIPPED, stage=stage, object_name=object_name
                )
            stage = TriggerStage.FILTERED
            logger.info("Processing upload: %s", object_name)

            info = await self._storage.get_metadata(object_name)
            stage = TriggerStage.METADATA_FETCHED
            set_ref_code(info.custom_metadata.get("refCode"))
            logger.debug("Stored metadata: %s", info.custom_metadata)

            ttl_hours = self._config.signed_url_ttl_hours
            signed_url = await self._storage.get_signed_url(
                object_name, timedelta(hours=ttl_hours)
            )
            stage = TriggerStage.SIGNED_URL_MINTED

            notification = build_notification(
                event, info, signed_url=signed_url, link_ttl_hours=ttl_hours
            )
            message = render_email(notification, self._config.email)
            stage = TriggerStage.MESSAGE_COMPOSED

            try:
                await self._notifier.send(message)
            except Exception as exc:
                raise NotifyError(
                    notification.ref_code, type(self._notifier).__name__, cause=exc
                ) from exc
            stage = TriggerStage.DISPATCHED
        except Exception as exc:
            logger.error(
                "Error processing upload %s at stage %s: %s",
                object_name or "<unknown>",
                stage,
                exc,
                exc_info=True,
            )
            return TriggerOutcome(
                status=TriggerStatus.FAILED,
                stage=stage,
                object_name=object_name,
                error=f"{type(exc).__name__}: {exc}",
            )

        logger.info("Notification sent for %s", object_name)
        return TriggerOutcome(status=TriggerStatus.SENT, stage=stage, object_name=object_name)
