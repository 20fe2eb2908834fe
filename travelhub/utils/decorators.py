"""
Route decorators for role-based access
Use after @jwt_required().
"""

from functools import wraps

from flask import jsonify, g
from flask_jwt_extended import get_jwt_identity

from travelhub.models.user import User, UserRole


def current_user_id():
    """The authenticated user's id as an int"""
    identity = get_jwt_identity()
    return int(identity) if identity is not None else None


def role_required(*roles, provider_type=None):
    """Allow only active users whose role is one of `roles`.

    Admins pass every role check. When `provider_type` is given, providers
    must also offer that kind of service.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = User.query.get(current_user_id())

            if not user:
                return jsonify({'error': 'User not found'}), 404

            if not user.is_active:
                return jsonify({'error': 'Account is deactivated'}), 403

            if not user.is_admin:
                if roles and user.role not in roles:
                    return jsonify({'error': 'Insufficient permissions'}), 403
                if provider_type and user.provider_type != provider_type:
                    return jsonify({'error': f'Only {provider_type.value} accounts can do this'}), 403

            g.current_user = user
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def admin_required():
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = User.query.get(current_user_id())

            if not user or not user.is_active:
                return jsonify({'error': 'Unauthorized'}), 401

            if user.role != UserRole.ADMIN:
                return jsonify({'error': 'Access denied. Admin privileges required.'}), 403

            g.current_user = user
            return f(*args, **kwargs)
        return decorated_function
    return decorator
