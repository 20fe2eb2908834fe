from extensions import db
from datetime import datetime
from enum import Enum


class NotificationType(str, Enum):
    BOOKING_CREATED = 'booking_created'
    BOOKING_RECEIVED = 'booking_received'
    BOOKING_CONFIRMED = 'booking_confirmed'
    BOOKING_CANCELLED = 'booking_cancelled'
    BOOKING_REJECTED = 'booking_rejected'
    BOOKING_COMPLETED = 'booking_completed'
    PAYMENT_RECEIVED = 'payment_received'
    PAYMENT_FAILED = 'payment_failed'
    NEW_MESSAGE = 'new_message'
    REVIEW_RECEIVED = 'review_received'
    LISTING_APPROVED = 'listing_approved'
    LISTING_REJECTED = 'listing_rejected'
    LISTING_CHANGES_REQUESTED = 'listing_changes_requested'
    SYSTEM = 'system'


class Notification(db.Model):
    """In-app alert addressed to one user"""
    __tablename__ = 'notifications'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    notification_type = db.Column(db.Enum(NotificationType), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)
    action_url = db.Column(db.String(255))
    data = db.Column(db.JSON)
    priority = db.Column(db.String(10), default='normal', nullable=False)  # low, normal, high, urgent
    is_read = db.Column(db.Boolean, default=False, nullable=False)
    read_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    user = db.relationship('User', backref=db.backref('notifications', lazy='dynamic'))

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'type': self.notification_type.value,
            'title': self.title,
            'message': self.message,
            'action_url': self.action_url,
            'data': self.data,
            'priority': self.priority,
            'is_read': self.is_read,
            'read_at': self.read_at.isoformat() if self.read_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
