"""
10xBadger
Notification Service.

Creates and queries in-app notifications for promotion lifecycle events.
The ``notify_*`` helpers are called after the business transaction has
committed and are best-effort: a failed notification is logged and never
changes the outcome of the request.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError

from badger.models import db
from badger.models.notification import ADMIN_BROADCAST, Notification

logger = logging.getLogger(__name__)


class NotificationService:
    """Stateless service class for notification operations."""

    # ── Create ────────────────────────────────────────────────────────────

    @staticmethod
    def create(*, recipient_id, event_type, title, message="", promotion_id=None):
        """
        Create a single notification record.

        Returns:
            The created Notification instance (already committed).
        """
        notif = Notification(
            recipient_id=recipient_id,
            event_type=event_type,
            title=title,
            message=message,
            promotion_id=promotion_id,
        )
        db.session.add(notif)
        db.session.commit()
        return notif

    @staticmethod
    def safe_create(**kwargs):
        """``create`` that logs and swallows persistence failures."""
        try:
            return NotificationService.create(**kwargs)
        except SQLAlchemyError:
            db.session.rollback()
            logger.warning(
                "Notification %s could not be delivered", kwargs.get("event_type"),
                exc_info=True,
                extra={"event_type": kwargs.get("event_type"), "promotion_id": kwargs.get("promotion_id")},
            )
            return None

    # ── Query ─────────────────────────────────────────────────────────────

    @staticmethod
    def query_for_user(ctx, unread_only=False):
        """Notifications addressed to the user, plus admin broadcasts for admins."""
        recipients = [ctx.user_id]
        if ctx.is_admin:
            recipients.append(ADMIN_BROADCAST)
        q = Notification.query.filter(Notification.recipient_id.in_(recipients))
        if unread_only:
            q = q.filter(Notification.is_read.is_(False))
        return q.order_by(Notification.created_at.desc())

    @staticmethod
    def mark_read(notification_id, ctx):
        """Mark one notification as read. Returns None when not visible to *ctx*."""
        notif = db.session.get(Notification, notification_id)
        if notif is None:
            return None
        if notif.recipient_id != ctx.user_id and not (ctx.is_admin and notif.recipient_id == ADMIN_BROADCAST):
            return None
        notif.mark_read()
        db.session.commit()
        return notif

    # ── Promotion lifecycle helpers ───────────────────────────────────────

    @staticmethod
    def notify_promotion_submitted(promotion):
        return NotificationService.safe_create(
            recipient_id=ADMIN_BROADCAST,
            event_type="promotion.submitted",
            title=f"Promotion submitted for review: {promotion.path} {promotion.from_level} → {promotion.to_level}",
            message=f"Promotion {promotion.id} is awaiting review.",
            promotion_id=promotion.id,
        )

    @staticmethod
    def notify_promotion_approved(promotion):
        return NotificationService.safe_create(
            recipient_id=promotion.created_by,
            event_type="promotion.approved",
            title=f"Your promotion to {promotion.to_level} was approved",
            message=f"Promotion {promotion.id} was approved and its badges were consumed.",
            promotion_id=promotion.id,
        )

    @staticmethod
    def notify_promotion_rejected(promotion):
        return NotificationService.safe_create(
            recipient_id=promotion.created_by,
            event_type="promotion.rejected",
            title=f"Your promotion to {promotion.to_level} was rejected",
            message=promotion.reject_reason or "",
            promotion_id=promotion.id,
        )
