from extensions import db
from datetime import datetime
from enum import Enum


class ConversationType(str, Enum):
    CUSTOMER_PROVIDER = 'customer_provider'
    CUSTOMER_ADMIN = 'customer_admin'
    PROVIDER_ADMIN = 'provider_admin'
    SUPPORT_TICKET = 'support_ticket'


class MessageType(str, Enum):
    TEXT = 'text'
    SYSTEM = 'system'


class ConversationParticipant(db.Model):
    """Membership of a user in a conversation, with that user's unread counter"""
    __tablename__ = 'conversation_participants'

    conversation_id = db.Column(db.Integer, db.ForeignKey('conversations.id'), primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), primary_key=True)
    role = db.Column(db.String(20))
    unread_count = db.Column(db.Integer, default=0, nullable=False)
    last_read_at = db.Column(db.DateTime)
    is_hidden = db.Column(db.Boolean, default=False, nullable=False)
    joined_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship('User')


class Conversation(db.Model):
    __tablename__ = 'conversations'

    id = db.Column(db.Integer, primary_key=True)
    conversation_type = db.Column(db.Enum(ConversationType), default=ConversationType.CUSTOMER_PROVIDER,
                                  nullable=False)
    title = db.Column(db.String(200))
    related_booking_id = db.Column(db.Integer)
    related_service_id = db.Column(db.Integer)
    related_service_type = db.Column(db.String(20))
    last_message_id = db.Column(db.Integer)
    last_message_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    message_count = db.Column(db.Integer, default=0, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    participants = db.relationship('ConversationParticipant', backref='conversation',
                                   cascade='all, delete-orphan')
    messages = db.relationship('Message', backref='conversation', lazy='dynamic',
                               cascade='all, delete-orphan')

    @property
    def participant_ids(self):
        return [p.user_id for p in self.participants]

    def participant(self, user_id):
        for p in self.participants:
            if p.user_id == user_id:
                return p
        return None

    def has_participant(self, user_id):
        return self.participant(user_id) is not None

    @property
    def last_message(self):
        if not self.last_message_id:
            return None
        return Message.query.get(self.last_message_id)

    def to_dict(self, current_user_id=None, online_ids=None):
        online_ids = online_ids or set()
        me = self.participant(current_user_id) if current_user_id else None
        last_message = self.last_message

        return {
            'id': self.id,
            'type': self.conversation_type.value,
            'title': self.title,
            'participants': [
                {
                    'id': p.user_id,
                    'name': p.user.full_name if p.user else None,
                    'role': p.role,
                    'avatar': p.user.avatar if p.user else None,
                    'is_online': p.user_id in online_ids,
                }
                for p in self.participants
            ],
            'related_booking_id': self.related_booking_id,
            'related_service_id': self.related_service_id,
            'related_service_type': self.related_service_type,
            'last_message': last_message.to_dict() if last_message else None,
            'last_message_at': self.last_message_at.isoformat() if self.last_message_at else None,
            'message_count': self.message_count,
            'unread_count': me.unread_count if me else 0,
            'is_active': self.is_active,
        }


class Message(db.Model):
    __tablename__ = 'messages'

    id = db.Column(db.Integer, primary_key=True)
    conversation_id = db.Column(db.Integer, db.ForeignKey('conversations.id'), nullable=False, index=True)
    sender_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    sender_role = db.Column(db.String(20))
    content = db.Column(db.Text, nullable=False)
    message_type = db.Column(db.Enum(MessageType), default=MessageType.TEXT, nullable=False)
    reply_to_id = db.Column(db.Integer, db.ForeignKey('messages.id'), nullable=True)
    read_by = db.Column(db.JSON, default=list)
    is_edited = db.Column(db.Boolean, default=False, nullable=False)
    edited_at = db.Column(db.DateTime)
    is_deleted = db.Column(db.Boolean, default=False, nullable=False)
    deleted_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    sender = db.relationship('User')
    reply_to = db.relationship('Message', remote_side=[id])

    def is_read_by(self, user_id):
        return user_id in (self.read_by or [])

    def to_dict(self):
        return {
            'id': self.id,
            'conversation_id': self.conversation_id,
            'sender_id': self.sender_id,
            'sender_name': self.sender.full_name if self.sender else None,
            'sender_role': self.sender_role,
            'content': '' if self.is_deleted else self.content,
            'type': self.message_type.value,
            'reply_to_id': self.reply_to_id,
            'read_by': self.read_by or [],
            'is_edited': self.is_edited,
            'edited_at': self.edited_at.isoformat() if self.edited_at else None,
            'is_deleted': self.is_deleted,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
