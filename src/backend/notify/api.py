from __future__ import annotations

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ..os.open_folder import OpenFolderError
from .notifier import ExportNotifier, NotificationCenter


class RecoveryActionOut(BaseModel):
    label: str
    folder: str


class NotificationOut(BaseModel):
    notification_id: int
    title: str
    body: str
    sub_text: str
    variant: str
    action: RecoveryActionOut
    created_at: str


class LocateFolderOut(BaseModel):
    success: bool
    opened_path: str
    dismissed_id: int


def create_notifications_router(*, center: NotificationCenter, notifier: ExportNotifier) -> APIRouter:
    router = APIRouter(prefix="/api/notifications", tags=["notifications"])

    @router.get("", response_model=list[NotificationOut])
    def list_notifications() -> list[NotificationOut]:
        return [NotificationOut(**n.to_public_dict()) for n in center.active()]

    @router.post("/{notification_id}/locate-folder", response_model=LocateFolderOut)
    def locate_folder(notification_id: int) -> LocateFolderOut:
        try:
            notification = notifier.activate(notification_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=f"Notification not found: {notification_id}") from exc
        except OpenFolderError as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc

        return LocateFolderOut(
            success=True,
            opened_path=str(notification.action.folder),
            dismissed_id=notification_id,
        )

    return router
