"""
Notification Routes
In-app notifications; live delivery happens over /api/realtime/stream
"""

from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from travelhub.services.notification_service import NotificationService
from travelhub.utils.decorators import current_user_id

notifications_bp = Blueprint('notifications', __name__)


@notifications_bp.route('', methods=['GET'])
@jwt_required()
def get_notifications():
    user_id = current_user_id()
    unread_only = request.args.get('unread_only') in ('1', 'true', 'on')
    limit = max(1, min(request.args.get('limit', 50, type=int), 200))

    notifications = NotificationService.list_for_user(user_id, unread_only=unread_only, limit=limit)

    return jsonify({
        'notifications': [n.to_dict() for n in notifications],
        'unread_count': NotificationService.unread_count(user_id)
    }), 200


@notifications_bp.route('/unread-count', methods=['GET'])
@jwt_required()
def get_unread_count():
    return jsonify({'unread_count': NotificationService.unread_count(current_user_id())}), 200


@notifications_bp.route('/read', methods=['POST'])
@jwt_required()
def mark_read():
    """Mark notifications read: {"ids": [...]} or {"all": true}"""
    data = request.get_json() or {}
    ids = data.get('ids')

    if ids is not None and (not isinstance(ids, list) or not all(isinstance(i, int) for i in ids)):
        return jsonify({'error': 'ids must be a list of integers'}), 400

    updated = NotificationService.mark_read(current_user_id(), ids=ids, mark_all=bool(data.get('all')))

    return jsonify({'updated': updated}), 200
