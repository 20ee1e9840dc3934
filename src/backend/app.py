from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI

from .catalog.store import JsonFileCatalog
from .exporter.dispatch import QueueFileDispatcher
from .exporter.engine import FileExporter
from .exporter.space import DiskSpaceChecker
from .exporter.worker import BatchExportWorker
from .fs.storage import select_storage_strategy
from .notify.api import create_notifications_router
from .notify.notifier import ExportNotifier, NotificationCenter
from .scheduler.api import create_exports_router
from .scheduler.config import SchedulerConfig
from .scheduler.scheduler import BatchScheduler
from .settings.api import create_settings_router
from .settings.store import SettingsStore


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[2]


def create_app(*, repo_root: Optional[Path] = None) -> FastAPI:
    repo_root = Path(repo_root) if repo_root is not None else _repo_root()
    data_dir = repo_root / "data"
    config_path = data_dir / "config.json"
    runs_dir = data_dir / "runs"

    store = SettingsStore(path=config_path)
    settings = store.load()

    export_root = Path(settings.export_root).expanduser()
    if not export_root.is_absolute():
        export_root = repo_root / export_root

    # Storage strategy is probed once; settings changes apply on next start.
    storage = select_storage_strategy(
        mode=settings.storage_mode,
        export_root=export_root,
        public_folder=settings.public_folder,
        index_path=data_dir / "media_index.sqlite3",
    )

    center = NotificationCenter()
    notifier = ExportNotifier(sink=center, folder=storage.folder)
    worker = BatchExportWorker(
        catalog=JsonFileCatalog(path=data_dir / "catalog.json"),
        space_checker=DiskSpaceChecker(storage.folder, min_free_bytes=settings.min_free_bytes),
        exporter=FileExporter(
            storage,
            buffer_size=settings.buffer_size,
            max_rename_attempts=settings.max_rename_attempts,
        ),
        downloads=QueueFileDispatcher(path=data_dir / "download_queue.jsonl"),
        notifier=notifier,
    )

    scheduler_config = SchedulerConfig(max_concurrent=settings.max_concurrent)
    scheduler = BatchScheduler(config=scheduler_config, runs_dir=runs_dir, runner=worker.run)

    app = FastAPI(title="export-to-downloads")
    app.include_router(
        create_settings_router(
            store=store,
            scheduler_config=scheduler_config,
            scheduler=scheduler,
            storage=storage,
            repo_root=repo_root,
        )
    )
    app.include_router(create_exports_router(scheduler=scheduler))
    app.include_router(create_notifications_router(center=center, notifier=notifier))

    app.state.settings_store = store
    app.state.scheduler_config = scheduler_config
    app.state.scheduler = scheduler
    app.state.storage = storage
    app.state.notifications = center
    app.state.notifier = notifier
    app.state.repo_root = repo_root

    logging.getLogger(__name__).info("Exporting into %s", storage.folder)
    return app


app = create_app()
