"""
Users Blueprint
"""

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required, get_jwt_identity
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from travelhub.models.user import User
from travelhub.services.presence import online_status

users_bp = Blueprint('users', __name__)


@users_bp.route('/<int:user_id>', methods=['GET'])
def get_user(user_id):
    """Get user profile"""
    user = User.query.get(user_id)

    if not user or not user.is_active:
        return jsonify({'error': 'User not found'}), 404

    data = user.to_dict()
    data.update(online_status(user))
    return jsonify({
        'user': data
    }), 200


@users_bp.route('/me', methods=['PUT'])
@jwt_required()
def update_profile():
    """Update current user profile"""
    try:
        user = User.query.get(int(get_jwt_identity()))

        if not user:
            return jsonify({'error': 'User not found'}), 404

        data = request.get_json() or {}

        allowed_fields = ['first_name', 'last_name', 'phone', 'bio', 'avatar']
        for field in allowed_fields:
            if field in data:
                setattr(user, field, data[field] if data[field] else None)

        if 'email_notifications' in data:
            user.email_notifications = bool(data['email_notifications'])

        if not user.first_name or not user.last_name:
            db.session.rollback()
            return jsonify({'error': 'First and last name cannot be empty'}), 400

        db.session.commit()

        return jsonify({
            'message': 'Profile updated successfully',
            'user': user.to_dict(include_email=True)
        }), 200

    except SQLAlchemyError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500
