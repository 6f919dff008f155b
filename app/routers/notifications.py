# app/routers/notifications.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from app.core.auth import require_admin, require_auth
from app.database import get_session
from app.models.user import User
from app.repositories.notification_repo import NotificationRepository
from app.schemas.notification import (
    EmailDrainResult,
    NotificationCreate,
    NotificationRead,
    NotificationType,
    UnreadCount,
)
from app.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])

repo = NotificationRepository()
service = NotificationService(repo)


# -------- Current user's inbox --------


@router.get("", response_model=list[NotificationRead])
def list_my_notifications(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
    limit: int = 10,
):
    """Newest first."""
    return service.list_notifications(session, current_user.id, limit)


@router.get("/type/{type_}", response_model=list[NotificationRead])
def list_by_type(
    type_: NotificationType,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
    limit: int = 10,
):
    return service.list_by_type(session, current_user.id, type_, limit)


@router.get("/recent", response_model=list[NotificationRead])
def list_recent(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
    days: int = 7,
):
    """Notifications from the last `days` days."""
    return service.list_recent(session, current_user.id, days)


@router.get("/unread-count", response_model=UnreadCount)
def unread_count(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    return service.unread_count(session, current_user.id)


@router.patch("/read-all", response_model=UnreadCount)
def mark_all_read(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Mark every unread notification of the caller as read.
    Other users' notifications are never touched.
    """
    return service.mark_all_read(session, current_user.id)


@router.patch("/{notification_id}/read", response_model=NotificationRead)
def mark_read(
    notification_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    return service.mark_read(session, current_user.id, notification_id)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    service.delete(session, current_user.id, notification_id)
    return None


# -------- Admin endpoints --------


@router.post(
    "",
    response_model=NotificationRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_notification(
    payload: NotificationCreate,
    session: Session = Depends(get_session),
):
    """
    Create a notification for any user (admin only).
    """
    return service.create_notification(session, payload)


@router.post(
    "/deliver-emails",
    response_model=EmailDrainResult,
    dependencies=[Depends(require_admin)],
)
def deliver_emails(
    session: Session = Depends(get_session),
    limit: int = 50,
):
    """
    Send pending notification emails now (admin only).

    Returns zero counts when SMTP is not configured.
    """
    return service.deliver_pending_emails(session, limit)
