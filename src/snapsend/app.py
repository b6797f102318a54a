"""Application that wires storage, uploader, notifier and trigger together."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING

from snapsend.config import load_config, validate_config
from snapsend.fetcher import UriResourceFetcher
from snapsend.notifiers.multiplex import MultiplexNotifier, NotifierEntry
from snapsend.plugins import discover_all_plugins
from snapsend.plugins.notifiers import load_notifier_plugin
from snapsend.plugins.storage import load_storage_plugin
from snapsend.trigger import UploadNotificationTrigger
from snapsend.uploader import IssueUploader

if TYPE_CHECKING:
    from snapsend.interfaces import Notifier, ResourceFetcher, StorageBackend
    from snapsend.models.config import Config

logger = logging.getLogger(__name__)


class Application:
    """Owns the pipeline components built from one config.

    ``start`` creates them through the plugin registry; ``shutdown`` releases
    them. Notifiers are only required when the trigger is used.
    """

    def __init__(self, config: Config) -> None:
        self._config = config

        # Components (created in start)
        self._storage: StorageBackend | None = None
        self._fetcher: ResourceFetcher | None = None
        self._uploader: IssueUploader | None = None
        self._notifier: Notifier | None = None
        self._notifier_entries: list[NotifierEntry] = []
        self._trigger: UploadNotificationTrigger | None = None
        self._started = False

    @classmethod
    def from_path(cls, config_path: Path) -> Application:
        """Load a YAML config file and build an (unstarted) application."""
        return cls(load_config(config_path))

    async def start(self) -> None:
        """Create all components. Safe to call more than once."""
        if self._started:
            return
        logger.info("Starting SnapSend application...")

        discover_all_plugins()
        validate_config(self._config)

        try:
            self._storage = load_storage_plugin(self._config.storage)
            self._fetcher = UriResourceFetcher(self._config.fetcher)
            self._uploader = IssueUploader(self._storage, self._fetcher, self._config.upload)

            self._notifier, self._notifier_entries = await self._create_notifier(self._config)
        except Exception:
            logger.error("Application start failed; releasing created components", exc_info=True)
            await self._release_components()
            raise

        if self._notifier is not None:
            self._trigger = UploadNotificationTrigger(
                self._storage, self._notifier, self._config.trigger
            )
        else:
            logger.warning("No enabled notifiers configured; upload trigger disabled")

        self._started = True
        logger.info("All components created")

    async def _create_notifier(
        self, config: Config
    ) -> tuple[Notifier | None, list[NotifierEntry]]:
        """Create notifier(s) based on config using plugin registry."""
        entries: list[NotifierEntry] = []
        try:
            for index, notifier_cfg in enumerate(config.notifiers):
                if not notifier_cfg.enabled:
                    continue
                notifier = load_notifier_plugin(notifier_cfg.backend, notifier_cfg.config)
                name = f"{notifier_cfg.backend}[{index}]"
                entries.append(NotifierEntry(name=name, notifier=notifier))
        except Exception:
            for entry in entries:
                await entry.notifier.shutdown()
            raise

        if not entries:
            return None, entries
        if len(entries) == 1:
            return entries[0].notifier, entries
        return MultiplexNotifier(entries), entries

    async def ping(self) -> dict[str, bool]:
        """Report reachability of storage and each notifier."""
        checks: dict[str, bool] = {"storage": await self.storage.ping()}
        if not self._notifier_entries:
            return checks

        tasks = [asyncio.create_task(entry.notifier.ping()) for entry in self._notifier_entries]
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for entry, result in zip(self._notifier_entries, results, strict=True):
            match result:
                case bool() as ok:
                    checks[entry.name] = ok
                    if not ok:
                        logger.error("Notifier unreachable: %s", entry.name)
                case BaseException() as err:
                    checks[entry.name] = False
                    logger.error(
                        "Notifier ping failed: %s error=%s",
                        entry.name,
                        err,
                        exc_info=err,
                    )
        return checks

    async def shutdown(self) -> None:
        """Graceful shutdown of all components."""
        if not self._started:
            return
        logger.info("Shutting down application...")
        await self._release_components()
        self._started = False
        logger.info("Application shutdown complete")

    async def _release_components(self) -> None:
        """Shut down whatever start() created, notifier first."""
        if self._notifier:
            await self._notifier.shutdown()

        if self._fetcher:
            await self._fetcher.shutdown()

        if self._storage:
            await self._storage.shutdown()

        self._storage = None
        self._fetcher = None
        self._uploader = None
        self._notifier = None
        self._notifier_entries = []
        self._trigger = None

    async def __aenter__(self) -> Application:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.shutdown()

    @property
    def config(self) -> Config:
        return self._config

    @property
    def storage(self) -> StorageBackend:
        if self._storage is None:
            raise RuntimeError("Storage not initialized")
        return self._storage

    @property
    def uploader(self) -> IssueUploader:
        if self._uploader is None:
            raise RuntimeError("Uploader not initialized")
        return self._uploader

    @property
    def trigger(self) -> UploadNotificationTrigger:
        if self._trigger is None:
            raise RuntimeError("Trigger not initialized (no enabled notifiers?)")
        return self._trigger
