from __future__ import annotations

import tempfile
from pathlib import Path

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from ..exporter.engine import DEFAULT_BUFFER_SIZE
from ..fs.naming import DEFAULT_MAX_RENAME_ATTEMPTS
from ..fs.storage import DEFAULT_PUBLIC_FOLDER, PublicStorage, StorageMode
from ..scheduler.config import SchedulerConfig
from ..scheduler.scheduler import BatchScheduler
from .models import ExportSettings
from .store import SettingsStore


class ExportRootIn(BaseModel):
    export_root: str = Field(min_length=1)


class MaxConcurrentIn(BaseModel):
    max_concurrent: int = Field(ge=1, le=100)


class StorageIn(BaseModel):
    storage_mode: StorageMode = StorageMode.AUTO
    public_folder: str = Field(min_length=1, max_length=255, default=DEFAULT_PUBLIC_FOLDER)
    buffer_size: int = Field(ge=512, le=16 * 1024 * 1024, default=DEFAULT_BUFFER_SIZE)
    max_rename_attempts: int = Field(ge=1, le=100_000, default=DEFAULT_MAX_RENAME_ATTEMPTS)
    min_free_bytes: int = Field(ge=0, default=0)


class SettingsOut(BaseModel):
    export_root: str
    public_folder: str
    storage_mode: StorageMode
    active_storage_mode: StorageMode  # Chosen at startup; changes apply after restart
    buffer_size: int
    max_rename_attempts: int
    max_concurrent: int
    min_free_bytes: int


def _public_settings(settings: ExportSettings, *, storage: PublicStorage) -> SettingsOut:
    return SettingsOut(
        export_root=settings.export_root,
        public_folder=settings.public_folder,
        storage_mode=settings.storage_mode,
        active_storage_mode=storage.mode,
        buffer_size=settings.buffer_size,
        max_rename_attempts=settings.max_rename_attempts,
        max_concurrent=settings.max_concurrent,
        min_free_bytes=settings.min_free_bytes,
    )


def _resolve_export_root(export_root: str, *, repo_root: Path) -> Path:
    raw = export_root.strip()
    if not raw:
        raise ValueError("Export root must not be empty")

    p = Path(raw).expanduser()
    if not p.is_absolute():
        p = (repo_root / p).resolve()
    return p


def _ensure_dir_writable(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ValueError(f"Cannot create directory: {exc}") from exc

    if not path.is_dir():
        raise ValueError("Export root is not a directory")

    try:
        with tempfile.NamedTemporaryFile(prefix=".export_write_test_", dir=str(path), delete=True):
            pass
    except PermissionError as exc:
        raise ValueError("Export root is not writable") from exc
    except OSError as exc:
        raise ValueError(f"Cannot write to export root: {exc}") from exc


def _check_folder_name(name: str) -> str:
    cleaned = name.strip()
    if cleaned in ("", ".", "..") or "/" in cleaned or "\\" in cleaned:
        raise ValueError(f"Invalid public folder name: {name!r}")
    return cleaned


def create_settings_router(
    *,
    store: SettingsStore,
    scheduler_config: SchedulerConfig,
    scheduler: BatchScheduler,
    storage: PublicStorage,
    repo_root: Path,
) -> APIRouter:
    router = APIRouter(prefix="/api/settings", tags=["settings"])

    @router.get("", response_model=SettingsOut)
    def get_settings() -> SettingsOut:
        return _public_settings(store.load(), storage=storage)

    @router.post("/export-root", response_model=SettingsOut)
    def set_export_root(body: ExportRootIn) -> SettingsOut:
        try:
            root = _resolve_export_root(body.export_root, repo_root=repo_root)
            _ensure_dir_writable(root)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        updated = store.set_value(key="export_root", value=str(root))
        return _public_settings(updated, storage=storage)

    @router.post("/max-concurrent", response_model=SettingsOut)
    async def set_max_concurrent(body: MaxConcurrentIn) -> SettingsOut:
        try:
            scheduler_config.set_max_concurrent(body.max_concurrent)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        updated = store.set_value(key="max_concurrent", value=body.max_concurrent)
        await scheduler.reschedule()
        return _public_settings(updated, storage=storage)

    @router.post("/storage", response_model=SettingsOut)
    def set_storage(body: StorageIn) -> SettingsOut:
        try:
            public_folder = _check_folder_name(body.public_folder)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        def mutate(settings: ExportSettings) -> ExportSettings:
            settings.storage_mode = body.storage_mode
            settings.public_folder = public_folder
            settings.buffer_size = body.buffer_size
            settings.max_rename_attempts = body.max_rename_attempts
            settings.min_free_bytes = body.min_free_bytes
            return settings

        updated = store.update(mutator=mutate)
        return _public_settings(updated, storage=storage)

    return router
