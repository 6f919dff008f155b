# app/services/notification_service.py
import logging
import uuid
from datetime import timedelta

from fastapi import HTTPException, status
from sqlmodel import Session

from app.core import email_client
from app.core.timeutils import utcnow
from app.database import engine
from app.models.notification import Notification
from app.repositories.notification_repo import NotificationRepository
from app.schemas.notification import (
    EmailDrainResult,
    NotificationCreate,
    NotificationRead,
    UnreadCount,
)

logger = logging.getLogger(__name__)

EMAIL_BATCH_SIZE = 50
EMAIL_MAX_ATTEMPTS = 5
# A claim older than this belongs to a drain that died mid-send.
EMAIL_CLAIM_TIMEOUT = timedelta(minutes=10)


class NotificationService:
    """
    Per-user inbox plus the email outbox built on top of it.

    Owner scoping: every read/mark/delete takes the caller's id and a row
    belonging to someone else is reported as not found.
    """

    def __init__(self, notification_repo: NotificationRepository):
        self.notification_repo = notification_repo

    # ---- owner-scoped operations ----

    def list_notifications(
        self,
        session: Session,
        user_id: uuid.UUID,
        limit: int = 10,
    ) -> list[NotificationRead]:
        return self.notification_repo.list_for_user(session, user_id, limit=limit)

    def list_by_type(
        self,
        session: Session,
        user_id: uuid.UUID,
        type_: str,
        limit: int = 10,
    ) -> list[NotificationRead]:
        return self.notification_repo.list_for_user(
            session, user_id, limit=limit, type_=type_
        )

    def list_recent(
        self,
        session: Session,
        user_id: uuid.UUID,
        days: int = 7,
    ) -> list[NotificationRead]:
        since = utcnow() - timedelta(days=days)
        return self.notification_repo.list_for_user(
            session, user_id, limit=None, since=since
        )

    def unread_count(self, session: Session, user_id: uuid.UUID) -> UnreadCount:
        return UnreadCount(count=self.notification_repo.count_unread(session, user_id))

    def mark_read(
        self,
        session: Session,
        user_id: uuid.UUID,
        notification_id: uuid.UUID,
    ) -> NotificationRead:
        notification = self._get_owned_or_404(session, user_id, notification_id)
        if notification.is_read:
            return notification
        notification.is_read = True
        return self.notification_repo.save(session, notification)

    def mark_all_read(self, session: Session, user_id: uuid.UUID) -> UnreadCount:
        """Mark the caller's unread rows; returns the new unread count (0)."""
        updated = self.notification_repo.mark_all_read(session, user_id)
        logger.info(f"Marked {updated} notifications as read for user {user_id}")
        return self.unread_count(session, user_id)

    def delete(
        self,
        session: Session,
        user_id: uuid.UUID,
        notification_id: uuid.UUID,
    ) -> None:
        notification = self._get_owned_or_404(session, user_id, notification_id)
        self.notification_repo.delete(session, notification)

    # ---- writes on behalf of another user ----

    def stage_notification(
        self,
        session: Session,
        user_id: uuid.UUID,
        title: str,
        message: str,
        type_: str,
        related_id: uuid.UUID | None = None,
    ) -> Notification:
        """
        Add a notification to the caller's open transaction.

        Used by the order and reservation engines so the notification
        commits together with the status change.
        """
        notification = Notification(
            user_id=user_id,
            title=title,
            message=message,
            type=type_,
            related_id=related_id,
        )
        return self.notification_repo.add(session, notification)

    def create_notification(
        self,
        session: Session,
        payload: NotificationCreate,
    ) -> NotificationRead:
        notification = self.stage_notification(
            session,
            user_id=payload.user_id,
            title=payload.title,
            message=payload.message,
            type_=payload.type,
            related_id=payload.related_id,
        )
        session.commit()
        session.refresh(notification)
        return notification

    # ---- email outbox ----

    def deliver_pending_emails(
        self,
        session: Session,
        limit: int = EMAIL_BATCH_SIZE,
    ) -> EmailDrainResult:
        """
        Mail notifications that have not been emailed yet.

        Each row is claimed before sending, so concurrent drains never mail
        it twice. A success stamps emailed_at; a failure bumps
        email_attempts and releases the claim, and rows that reach
        EMAIL_MAX_ATTEMPTS are left alone.
        """
        if not email_client.is_configured():
            logger.info("SMTP not configured; skipping notification emails")
            return EmailDrainResult(sent=0, failed=0)

        now = utcnow()
        stale_before = now - EMAIL_CLAIM_TIMEOUT
        pending = [
            (n.id, n.title, n.message, user.email)
            for n, user in self.notification_repo.list_pending_email(
                session, stale_before, EMAIL_MAX_ATTEMPTS, limit=limit
            )
        ]

        sent = failed = 0
        for notification_id, title, message, to_email in pending:
            if not self.notification_repo.claim_for_email(
                session, notification_id, now, stale_before
            ):
                continue
            try:
                email_client.send_email(
                    to_email=to_email,
                    subject=title,
                    text_body=message,
                )
            except Exception as e:
                failed += 1
                self.notification_repo.record_email_failure(session, notification_id)
                logger.warning(
                    f"Failed to email notification {notification_id} to {to_email}: {e}"
                )
                continue

            self.notification_repo.mark_emailed(session, notification_id, utcnow())
            sent += 1

        if sent or failed:
            logger.info(f"Notification emails: sent={sent} failed={failed}")
        return EmailDrainResult(sent=sent, failed=failed)

    def drain_outbox(self) -> None:
        """
        Background-task entry point: runs after the response is sent,
        so it opens its own session.
        """
        if not email_client.is_configured():
            return
        with Session(engine) as session:
            self.deliver_pending_emails(session)

    # ---- helpers ----

    def _get_owned_or_404(
        self,
        session: Session,
        user_id: uuid.UUID,
        notification_id: uuid.UUID,
    ) -> Notification:
        notification = self.notification_repo.get_owned(
            session, user_id, notification_id
        )
        if not notification:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Notificación no encontrada",
            )
        return notification
