"""Cloud Functions entry point for storage finalize events.

Deploy with ``--entry-point process_snap_send_upload`` and a
``google.cloud.storage.object.v1.finalized`` trigger. The config file path
comes from ``SNAPSEND_CONFIG``.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import os
from pathlib import Path
from typing import Any

import functions_framework

from snapsend.app import Application
from snapsend.config import load_config
from snapsend.logging_setup import configure_logging
from snapsend.models.config import Config
from snapsend.models.enums import TriggerStage, TriggerStatus
from snapsend.models.notification import TriggerOutcome

logger = logging.getLogger(__name__)

CONFIG_ENV = "SNAPSEND_CONFIG"
LOG_LEVEL_ENV = "SNAPSEND_LOG_LEVEL"
DEFAULT_CONFIG_PATH = "snapsend.yaml"


@functools.cache
def _load_runtime_config() -> Config:
    # Loaded once per warm instance
    configure_logging(log_level=os.getenv(LOG_LEVEL_ENV, "INFO"))
    path = Path(os.getenv(CONFIG_ENV, DEFAULT_CONFIG_PATH))
    logger.info("Loading config from %s", path)
    return load_config(path)


async def handle_finalize(config: Config, data: dict[str, Any]) -> TriggerOutcome:
    """Run the upload notification trigger for one finalize payload."""
    async with Application(config) as app:
        return await app.trigger.handle(data)


@functions_framework.cloud_event
def process_snap_send_upload(cloud_event: Any) -> None:
    """Email the dispatcher about a newly finalized upload.

    Never raises: a failed notification must not make the platform retry
    the event.
    """
    data = cloud_event.data or {}
    try:
        outcome = asyncio.run(handle_finalize(_load_runtime_config(), data))
    except Exception as exc:
        logger.error("Error processing upload event: %s", exc, exc_info=True)
        outcome = TriggerOutcome(
            status=TriggerStatus.FAILED,
            stage=TriggerStage.RECEIVED,
            object_name=str(data.get("name") or ""),
            error=f"{type(exc).__name__}: {exc}",
        )
    logger.info(
        "Upload event processed: object=%s status=%s stage=%s",
        outcome.object_name,
        outcome.status,
        outcome.stage,
    )
