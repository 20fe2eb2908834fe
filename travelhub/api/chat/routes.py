"""
Chat Routes
Conversations, messages, read receipts, typing and online status
"""

from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from extensions import limiter
from travelhub.models.user import User
from travelhub.services.chat_service import ChatService, MAX_PAGE_SIZE
from travelhub.services.presence import online_status
from travelhub.utils.decorators import current_user_id

chat_bp = Blueprint('chat', __name__)


def _flag(value):
    if isinstance(value, str):
        return value.strip().lower() not in ('false', '0', 'no', 'off', '')
    return bool(value)


@chat_bp.route('/conversations', methods=['GET'])
@jwt_required()
def list_conversations():
    user_id = current_user_id()
    limit = max(1, min(request.args.get('limit', 20, type=int), 100))
    offset = max(0, request.args.get('offset', 0, type=int))

    conversations, total = ChatService.list_conversations(
        user_id, request.args.get('type'), limit=limit, offset=offset
    )
    online_ids = ChatService.online_user_ids()

    return jsonify({
        'conversations': [c.to_dict(user_id, online_ids) for c in conversations],
        'total': total,
        'limit': limit,
        'offset': offset
    }), 200


@chat_bp.route('/conversations', methods=['POST'])
@jwt_required()
def create_conversation():
    """Start (or reopen) a conversation with another user"""
    user_id = current_user_id()
    data = request.get_json() or {}

    other_user_id = data.get('user_id')
    if not other_user_id:
        return jsonify({'error': 'user_id is required'}), 400

    conversation, created = ChatService.get_or_create_conversation(
        user_id,
        other_user_id,
        conversation_type=data.get('type'),
        related_booking_id=data.get('related_booking_id'),
        related_service_id=data.get('related_service_id'),
        related_service_type=data.get('related_service_type'),
        title=data.get('title'),
    )

    if created and data.get('message'):
        ChatService.send_message(conversation.id, user_id, data['message'])

    return jsonify({
        'conversation': conversation.to_dict(user_id, ChatService.online_user_ids()),
        'created': created
    }), 201 if created else 200


@chat_bp.route('/conversations/<int:conversation_id>', methods=['GET'])
@jwt_required()
def get_conversation(conversation_id):
    user_id = current_user_id()
    conversation = ChatService.get_conversation(conversation_id, user_id)
    return jsonify({
        'conversation': conversation.to_dict(user_id, ChatService.online_user_ids())
    }), 200


@chat_bp.route('/conversations/<int:conversation_id>', methods=['DELETE'])
@jwt_required()
def hide_conversation(conversation_id):
    """Hide a conversation for the caller; a new message brings it back"""
    ChatService.hide_conversation(conversation_id, current_user_id())
    return jsonify({'message': 'Conversation hidden'}), 200


@chat_bp.route('/conversations/<int:conversation_id>/messages', methods=['GET'])
@jwt_required()
def get_messages(conversation_id):
    limit = max(1, min(request.args.get('limit', 50, type=int), MAX_PAGE_SIZE))
    messages = ChatService.get_messages(
        conversation_id,
        current_user_id(),
        limit=limit,
        before=request.args.get('before', type=int),
    )
    return jsonify({
        'messages': [m.to_dict() for m in messages],
        'has_more': len(messages) >= limit
    }), 200


@chat_bp.route('/conversations/<int:conversation_id>/messages', methods=['POST'])
@jwt_required()
@limiter.limit("60 per minute")
def send_message(conversation_id):
    data = request.get_json() or {}
    message = ChatService.send_message(
        conversation_id, current_user_id(), data.get('content'), data.get('reply_to_id')
    )
    return jsonify({'message': message.to_dict()}), 201


@chat_bp.route('/conversations/<int:conversation_id>/read', methods=['POST'])
@jwt_required()
def mark_as_read(conversation_id):
    marked = ChatService.mark_as_read(conversation_id, current_user_id())
    return jsonify({'marked': marked}), 200


@chat_bp.route('/messages/<int:message_id>', methods=['PUT'])
@jwt_required()
def edit_message(message_id):
    data = request.get_json() or {}
    message = ChatService.edit_message(message_id, current_user_id(), data.get('content'))
    return jsonify({'message': message.to_dict()}), 200


@chat_bp.route('/messages/<int:message_id>', methods=['DELETE'])
@jwt_required()
def delete_message(message_id):
    message = ChatService.delete_message(message_id, current_user_id())
    return jsonify({'message': message.to_dict()}), 200


@chat_bp.route('/unread-count', methods=['GET'])
@jwt_required()
def unread_count():
    return jsonify(ChatService.get_unread_count(current_user_id())), 200


@chat_bp.route('/typing', methods=['POST'])
@jwt_required()
@limiter.limit("300 per minute")
def set_typing():
    data = request.get_json() or {}
    conversation_id = data.get('conversation_id')
    if not conversation_id:
        return jsonify({'error': 'conversation_id is required'}), 400

    ChatService.set_typing(conversation_id, current_user_id(), _flag(data.get('is_typing', True)))
    return jsonify({'success': True}), 200


@chat_bp.route('/typing', methods=['GET'])
@jwt_required()
@limiter.limit("300 per minute")
def get_typing():
    conversation_id = request.args.get('conversation_id', type=int)
    if not conversation_id:
        return jsonify({'error': 'conversation_id is required'}), 400

    return jsonify({
        'conversation_id': conversation_id,
        'typing_user_ids': ChatService.get_typing(conversation_id, current_user_id())
    }), 200


@chat_bp.route('/online-status/<int:user_id>', methods=['GET'])
@jwt_required()
@limiter.limit("100 per minute")
def get_online_status(user_id):
    user = User.query.get(user_id)
    if not user:
        return jsonify({'error': 'User not found'}), 404

    status = online_status(user)
    status['user_id'] = user.id
    return jsonify(status), 200
