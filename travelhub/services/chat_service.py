"""
Chat Service
Conversations between customers, providers and admins.

Sending a message stores it and updates the conversation first; pushing the
realtime event and creating the recipients' notifications happen afterwards
and only log on failure.
"""

import logging
from datetime import datetime

from flask import current_app

from extensions import db
from travelhub.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from travelhub.models.message import Conversation, ConversationParticipant, ConversationType, Message
from travelhub.models.notification import NotificationType
from travelhub.models.user import User, UserRole
from travelhub.services.notification_service import NotificationService
from travelhub.services.presence import presence_store, typing_store
from travelhub.services.realtime import publish_to_user

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 200


def infer_conversation_type(first, second):
    roles = {first.role, second.role}
    if roles == {UserRole.CUSTOMER, UserRole.PROVIDER}:
        return ConversationType.CUSTOMER_PROVIDER
    if roles == {UserRole.CUSTOMER, UserRole.ADMIN}:
        return ConversationType.CUSTOMER_ADMIN
    if roles == {UserRole.PROVIDER, UserRole.ADMIN}:
        return ConversationType.PROVIDER_ADMIN
    return ConversationType.SUPPORT_TICKET


def _publish(user_id, event, data):
    try:
        publish_to_user(user_id, event, data)
    except Exception as e:
        logger.error(f'Failed to publish {event} to user {user_id}: {e}')


class ChatService:

    @staticmethod
    def online_user_ids():
        return set(presence_store.online_users())

    @staticmethod
    def _validate_content(content):
        content = (content or '').strip()
        if not content:
            raise ValidationError('Message content is required')
        max_length = current_app.config.get('MAX_MESSAGE_LENGTH', 5000)
        if len(content) > max_length:
            raise ValidationError(f'Message is too long (max {max_length} characters)')
        return content

    @staticmethod
    def _load(conversation_id, user_id, allow_hidden=False):
        conversation = Conversation.query.get(conversation_id)
        if not conversation:
            raise NotFoundError('Conversation not found')
        participant = conversation.participant(user_id)
        if participant is None:
            raise PermissionDeniedError('You are not a participant in this conversation')
        if participant.is_hidden and not allow_hidden:
            raise NotFoundError('Conversation not found')
        return conversation, participant

    @staticmethod
    def get_or_create_conversation(user_id, other_user_id, conversation_type=None, related_booking_id=None,
                                   related_service_id=None, related_service_type=None, title=None):
        """Return (conversation, created)"""
        if not user_id or not other_user_id:
            raise ValidationError('Both participants are required')
        try:
            user_id, other_user_id = int(user_id), int(other_user_id)
        except (TypeError, ValueError):
            raise ValidationError('user_id must be a number')
        if user_id == other_user_id:
            raise ValidationError('Cannot start a conversation with yourself')

        user = User.query.get(user_id)
        other = User.query.get(other_user_id)
        if not user or not other:
            raise NotFoundError('User not found')

        if conversation_type:
            try:
                conversation_type = ConversationType(conversation_type)
            except ValueError:
                raise ValidationError(f'Invalid conversation type: {conversation_type}')
        else:
            conversation_type = infer_conversation_type(user, other)

        candidates = Conversation.query.join(ConversationParticipant).filter(
            ConversationParticipant.user_id == user.id,
            Conversation.conversation_type == conversation_type,
            Conversation.is_active.is_(True),
        ).all()
        for conversation in candidates:
            if conversation.has_participant(other.id):
                mine = conversation.participant(user.id)
                if mine.is_hidden:
                    mine.is_hidden = False
                    db.session.commit()
                return conversation, False

        conversation = Conversation(
            conversation_type=conversation_type,
            title=title,
            related_booking_id=related_booking_id,
            related_service_id=related_service_id,
            related_service_type=related_service_type,
            last_message_at=datetime.utcnow(),
        )
        conversation.participants = [
            ConversationParticipant(user_id=user.id, role=user.role.value),
            ConversationParticipant(user_id=other.id, role=other.role.value),
        ]
        db.session.add(conversation)
        db.session.commit()
        logger.info(f'Conversation {conversation.id} created between users {user.id} and {other.id}')
        return conversation, True

    @staticmethod
    def list_conversations(user_id, conversation_type=None, limit=20, offset=0):
        query = Conversation.query.join(ConversationParticipant).filter(
            ConversationParticipant.user_id == user_id,
            ConversationParticipant.is_hidden.is_(False),
        )
        if conversation_type:
            try:
                conversation_type = ConversationType(conversation_type)
            except ValueError:
                raise ValidationError(f'Invalid conversation type: {conversation_type}')
            query = query.filter(Conversation.conversation_type == conversation_type)
        total = query.count()
        conversations = query.order_by(Conversation.last_message_at.desc(), Conversation.id.desc()) \
            .offset(offset).limit(limit).all()
        return conversations, total

    @staticmethod
    def get_conversation(conversation_id, user_id):
        conversation, _ = ChatService._load(conversation_id, user_id)
        return conversation

    @staticmethod
    def send_message(conversation_id, sender_id, content, reply_to_id=None):
        content = ChatService._validate_content(content)
        conversation, _ = ChatService._load(conversation_id, sender_id, allow_hidden=True)
        sender = User.query.get(sender_id)

        if reply_to_id:
            reply_to = Message.query.get(reply_to_id)
            if not reply_to or reply_to.conversation_id != conversation.id:
                raise ValidationError('Reply target is not in this conversation')

        message = Message(
            conversation_id=conversation.id,
            sender_id=sender_id,
            sender_role=sender.role.value if sender else None,
            content=content,
            reply_to_id=reply_to_id,
            read_by=[sender_id],
        )
        db.session.add(message)
        db.session.flush()

        conversation.last_message_id = message.id
        conversation.last_message_at = message.created_at or datetime.utcnow()
        conversation.message_count = (conversation.message_count or 0) + 1
        for participant in conversation.participants:
            participant.is_hidden = False
            if participant.user_id != sender_id:
                participant.unread_count = (participant.unread_count or 0) + 1
        db.session.commit()

        typing_store.set_typing(sender_id, conversation.id, False)

        payload = {'conversation_id': conversation.id, 'message': message.to_dict()}
        recipients = [uid for uid in conversation.participant_ids if uid != sender_id]
        for uid in [sender_id] + recipients:
            _publish(uid, 'message', payload)

        sender_name = sender.full_name if sender else 'Someone'
        preview = content if len(content) <= 100 else content[:97] + '...'
        for uid in recipients:
            try:
                NotificationService.create_and_dispatch(
                    uid,
                    NotificationType.NEW_MESSAGE,
                    f'New message from {sender_name}',
                    preview,
                    action_url=f'/messages/{conversation.id}',
                    data={'conversation_id': conversation.id, 'message_id': message.id, 'sender_id': sender_id},
                )
            except Exception as e:
                db.session.rollback()
                logger.error(f'Failed to notify user {uid} of message {message.id}: {e}')

        return message

    @staticmethod
    def _mark_messages(messages, user_id):
        marked = 0
        for message in messages:
            if message.sender_id == user_id or message.is_read_by(user_id):
                continue
            message.read_by = list(message.read_by or []) + [user_id]
            marked += 1
        return marked

    @staticmethod
    def get_messages(conversation_id, user_id, limit=50, before=None):
        """Page of messages, oldest first; the page is marked read for the caller"""
        conversation, participant = ChatService._load(conversation_id, user_id)
        limit = max(1, min(int(limit), MAX_PAGE_SIZE))

        query = Message.query.filter_by(conversation_id=conversation.id)
        if before:
            query = query.filter(Message.id < before)
        messages = query.order_by(Message.created_at.desc(), Message.id.desc()).limit(limit).all()
        messages.reverse()

        marked = ChatService._mark_messages(messages, user_id)
        if marked:
            participant.unread_count = max(0, (participant.unread_count or 0) - marked)
            participant.last_read_at = datetime.utcnow()
            db.session.commit()

        return messages

    @staticmethod
    def mark_as_read(conversation_id, user_id):
        conversation, participant = ChatService._load(conversation_id, user_id, allow_hidden=True)

        messages = Message.query.filter(
            Message.conversation_id == conversation.id,
            Message.sender_id != user_id,
        ).all()
        marked = ChatService._mark_messages(messages, user_id)
        participant.unread_count = 0
        participant.last_read_at = datetime.utcnow()
        db.session.commit()

        for uid in conversation.participant_ids:
            if uid != user_id:
                _publish(uid, 'read', {'conversation_id': conversation.id, 'user_id': user_id, 'count': marked})
        return marked

    @staticmethod
    def _own_message(message_id, user_id):
        message = Message.query.get(message_id)
        if not message:
            raise NotFoundError('Message not found')
        if message.sender_id != user_id:
            raise PermissionDeniedError('You can only change your own messages')
        if message.is_deleted:
            raise ValidationError('Message has been deleted')
        return message

    @staticmethod
    def edit_message(message_id, user_id, content):
        message = ChatService._own_message(message_id, user_id)
        message.content = ChatService._validate_content(content)
        message.is_edited = True
        message.edited_at = datetime.utcnow()
        db.session.commit()

        for uid in message.conversation.participant_ids:
            _publish(uid, 'message_updated', {'conversation_id': message.conversation_id,
                                              'message': message.to_dict()})
        return message

    @staticmethod
    def delete_message(message_id, user_id):
        message = ChatService._own_message(message_id, user_id)
        message.is_deleted = True
        message.deleted_at = datetime.utcnow()
        db.session.commit()

        for uid in message.conversation.participant_ids:
            _publish(uid, 'message_deleted', {'conversation_id': message.conversation_id,
                                              'message_id': message.id})
        return message

    @staticmethod
    def hide_conversation(conversation_id, user_id):
        _, participant = ChatService._load(conversation_id, user_id, allow_hidden=True)
        participant.is_hidden = True
        db.session.commit()

    @staticmethod
    def get_unread_count(user_id):
        rows = ConversationParticipant.query.filter(
            ConversationParticipant.user_id == user_id,
            ConversationParticipant.unread_count > 0,
        ).all()
        by_conversation = {str(row.conversation_id): row.unread_count for row in rows}
        return {'total': sum(by_conversation.values()), 'by_conversation': by_conversation}

    @staticmethod
    def set_typing(conversation_id, user_id, is_typing):
        conversation, _ = ChatService._load(conversation_id, user_id, allow_hidden=True)
        typing_store.set_typing(user_id, conversation.id, is_typing)

        for uid in conversation.participant_ids:
            if uid != user_id:
                _publish(uid, 'typing', {'conversation_id': conversation.id, 'user_id': user_id,
                                         'is_typing': bool(is_typing)})

    @staticmethod
    def get_typing(conversation_id, user_id):
        conversation, _ = ChatService._load(conversation_id, user_id, allow_hidden=True)
        return [uid for uid in typing_store.get_typing(conversation.id) if uid != user_id]
