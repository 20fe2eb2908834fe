"""
Notification Service
Stores in-app notifications and fans them out over SSE and email
"""

import logging
from datetime import datetime

from extensions import db
from travelhub.models.notification import Notification, NotificationType
from travelhub.models.user import User
from travelhub.services.email_service import EmailService
from travelhub.services.realtime import publish_to_user

logger = logging.getLogger(__name__)


class NotificationService:

    @staticmethod
    def create_and_dispatch(user_id, notification_type, title, message, action_url=None,
                            data=None, priority='normal', send_email=True, commit=True):
        """Create a notification, push it to the user's streams and optionally email it.

        Push and email are best effort: failures are logged and the stored
        notification is still returned.
        """
        notification = Notification(
            user_id=user_id,
            notification_type=NotificationType(notification_type),
            title=title,
            message=message,
            action_url=action_url,
            data=data,
            priority=priority,
        )
        db.session.add(notification)
        if commit:
            db.session.commit()
        else:
            db.session.flush()

        try:
            publish_to_user(user_id, 'notification', notification.to_dict())
        except Exception as e:
            logger.error(f'Failed to publish notification {notification.id}: {e}')

        if send_email:
            user = User.query.get(user_id)
            if user and user.email_notifications and user.email:
                try:
                    EmailService.send_notification_email(user, title, message, action_url)
                except Exception as e:
                    logger.error(f'Failed to email notification {notification.id}: {e}')

        return notification

    @staticmethod
    def list_for_user(user_id, unread_only=False, limit=50):
        query = Notification.query.filter_by(user_id=user_id)
        if unread_only:
            query = query.filter_by(is_read=False)
        return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()

    @staticmethod
    def unread_count(user_id):
        return Notification.query.filter_by(user_id=user_id, is_read=False).count()

    @staticmethod
    def mark_read(user_id, ids=None, mark_all=False):
        """Mark the given notifications (or all of them) read; returns how many changed"""
        query = Notification.query.filter_by(user_id=user_id, is_read=False)
        if not mark_all:
            if not ids:
                return 0
            query = query.filter(Notification.id.in_(ids))

        now = datetime.utcnow()
        updated = 0
        for notification in query.all():
            notification.is_read = True
            notification.read_at = now
            updated += 1
        db.session.commit()
        return updated

    @staticmethod
    def broadcast(user_ids, notification_type, title, message, action_url=None):
        """Notify many users at once without email"""
        sent = 0
        for user_id in user_ids:
            NotificationService.create_and_dispatch(
                user_id, notification_type, title, message,
                action_url=action_url, send_email=False, commit=False,
            )
            sent += 1
        db.session.commit()
        return sent
