# app/repositories/notification_repo.py
import uuid
from datetime import datetime

from sqlalchemy import func, or_, update
from sqlmodel import Session, col, select

from app.models.notification import Notification
from app.models.user import User


class NotificationRepository:
    """
    Data access layer for notifications.

    Every read/update/delete here filters on user_id; only `add`
    writes rows for an arbitrary user.
    """

    def list_for_user(
        self,
        session: Session,
        user_id: uuid.UUID,
        limit: int | None = 10,
        type_: str | None = None,
        since: datetime | None = None,
    ) -> list[Notification]:
        stmt = select(Notification).where(Notification.user_id == user_id)
        if type_:
            stmt = stmt.where(Notification.type == type_)
        if since:
            stmt = stmt.where(Notification.created_at >= since)
        stmt = stmt.order_by(col(Notification.created_at).desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        return session.exec(stmt).all()

    def get_owned(
        self,
        session: Session,
        user_id: uuid.UUID,
        notification_id: uuid.UUID,
    ) -> Notification | None:
        stmt = select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user_id,
        )
        return session.exec(stmt).first()

    def count_unread(self, session: Session, user_id: uuid.UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(Notification)
            .where(Notification.user_id == user_id, Notification.is_read == False)
        )
        return int(session.exec(stmt).one() or 0)

    def mark_all_read(self, session: Session, user_id: uuid.UUID) -> int:
        result = session.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read == False)
            .values(is_read=True)
            .execution_options(synchronize_session="fetch")
        )
        session.commit()
        return result.rowcount

    def add(self, session: Session, notification: Notification) -> Notification:
        """Stage a new row; the caller commits with its own changes."""
        session.add(notification)
        session.flush()
        return notification

    def save(self, session: Session, notification: Notification) -> Notification:
        session.add(notification)
        session.commit()
        session.refresh(notification)
        return notification

    def delete(self, session: Session, notification: Notification) -> None:
        session.delete(notification)
        session.commit()

    # ---- Email outbox ----

    @staticmethod
    def _claimable(stale_before: datetime):
        return or_(
            Notification.email_claimed_at == None,
            Notification.email_claimed_at < stale_before,
        )

    def list_pending_email(
        self,
        session: Session,
        stale_before: datetime,
        max_attempts: int,
        limit: int = 50,
    ) -> list[tuple[Notification, User]]:
        """
        Unsent rows nobody is currently mailing, fewest attempts first so
        rows that keep failing do not starve newer ones.
        """
        stmt = (
            select(Notification, User)
            .join(User, User.id == Notification.user_id)
            .where(
                Notification.emailed_at == None,
                Notification.email_attempts < max_attempts,
                self._claimable(stale_before),
            )
            .order_by(Notification.email_attempts, Notification.created_at)
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    def claim_for_email(
        self,
        session: Session,
        notification_id: uuid.UUID,
        claimed_at: datetime,
        stale_before: datetime,
    ) -> bool:
        """Conditional UPDATE; False when another drain got the row first."""
        result = session.execute(
            update(Notification)
            .where(
                Notification.id == notification_id,
                Notification.emailed_at == None,
                self._claimable(stale_before),
            )
            .values(email_claimed_at=claimed_at)
            .execution_options(synchronize_session="fetch")
        )
        session.commit()
        return result.rowcount == 1

    def mark_emailed(
        self,
        session: Session,
        notification_id: uuid.UUID,
        emailed_at: datetime,
    ) -> None:
        session.execute(
            update(Notification)
            .where(Notification.id == notification_id)
            .values(emailed_at=emailed_at, email_claimed_at=None)
            .execution_options(synchronize_session="fetch")
        )
        session.commit()

    def record_email_failure(self, session: Session, notification_id: uuid.UUID) -> None:
        session.execute(
            update(Notification)
            .where(Notification.id == notification_id)
            .values(
                email_attempts=Notification.email_attempts + 1,
                email_claimed_at=None,
            )
            .execution_options(synchronize_session="fetch")
        )
        session.commit()
