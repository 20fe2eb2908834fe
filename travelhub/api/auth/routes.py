"""
Authentication Routes
Tokens are returned in the body and also set as cookies.
"""

from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import (
    create_access_token,
    create_refresh_token,
    jwt_required,
    get_jwt_identity,
    set_access_cookies,
    set_refresh_cookies,
    unset_jwt_cookies,
)
from sqlalchemy.exc import SQLAlchemyError

from extensions import db, limiter
from travelhub.models.user import User, UserRole, ProviderType
from travelhub.services.email_service import EmailService
from travelhub.services.presence import presence_store

auth_bp = Blueprint('auth', __name__)

SELF_SERVICE_ROLES = (UserRole.CUSTOMER, UserRole.PROVIDER)


def _token_response(user, message, status=200):
    access_token = create_access_token(identity=str(user.id))
    refresh_token = create_refresh_token(identity=str(user.id))

    response = jsonify({
        'message': message,
        'user': user.to_dict(include_email=True),
        'access_token': access_token,
        'refresh_token': refresh_token
    })
    set_access_cookies(response, access_token)
    set_refresh_cookies(response, refresh_token)
    return response, status


@auth_bp.route('/register', methods=['POST'])
@limiter.limit("5 per hour")
def register():
    """Register a new customer or provider"""
    try:
        data = request.get_json() or {}

        required_fields = ['email', 'username', 'password', 'first_name', 'last_name']
        for field in required_fields:
            if not data.get(field):
                return jsonify({'error': f'{field} is required'}), 400

        if len(data['password']) < 8:
            return jsonify({'error': 'Password must be at least 8 characters'}), 400

        try:
            role = UserRole(data.get('role', UserRole.CUSTOMER.value))
        except ValueError:
            return jsonify({'error': f"Invalid role: {data.get('role')}"}), 400
        if role not in SELF_SERVICE_ROLES:
            return jsonify({'error': 'Cannot register with this role'}), 403

        provider_type = None
        if role == UserRole.PROVIDER:
            try:
                provider_type = ProviderType(data.get('provider_type'))
            except ValueError:
                return jsonify({'error': 'provider_type is required for providers'}), 400

        if User.query.filter_by(email=data['email']).first():
            return jsonify({'error': 'Email already registered'}), 409

        if User.query.filter_by(username=data['username']).first():
            return jsonify({'error': 'Username already taken'}), 409

        user = User(
            email=data['email'],
            username=data['username'],
            password=data['password'],
            first_name=data['first_name'],
            last_name=data['last_name'],
            phone=data.get('phone'),
            bio=data.get('bio'),
            role=role,
            provider_type=provider_type,
        )

        db.session.add(user)
        db.session.commit()

        try:
            EmailService.send_registration_email(user)
        except Exception as e:
            current_app.logger.error(f'Failed to send welcome email: {str(e)}')

        return _token_response(user, 'User registered successfully', 201)

    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f'Registration error: {str(e)}')
        return jsonify({'error': str(e)}), 500


@auth_bp.route('/login', methods=['POST'])
@limiter.limit("50 per hour")
def login():
    """Login user"""
    data = request.get_json() or {}

    if not data.get('email') or not data.get('password'):
        return jsonify({'error': 'Email and password are required'}), 400

    user = User.query.filter_by(email=data['email']).first()

    if not user or not user.check_password(data['password']):
        return jsonify({'error': 'Invalid email or password'}), 401

    if not user.is_active:
        return jsonify({'error': 'Account is deactivated'}), 403

    user.update_last_login()
    presence_store.touch(user.id)

    return _token_response(user, 'Login successful')


@auth_bp.route('/refresh', methods=['POST'])
@jwt_required(refresh=True)
def refresh():
    """Refresh access token"""
    current_user_id = get_jwt_identity()
    access_token = create_access_token(identity=current_user_id)

    response = jsonify({'access_token': access_token})
    set_access_cookies(response, access_token)
    return response, 200


@auth_bp.route('/me', methods=['GET'])
@jwt_required()
def get_current_user():
    """Get current authenticated user"""
    user = User.query.get(int(get_jwt_identity()))

    if not user:
        return jsonify({'error': 'User not found'}), 404

    return jsonify({
        'user': user.to_dict(include_email=True)
    }), 200


@auth_bp.route('/change-password', methods=['POST'])
@jwt_required()
def change_password():
    """Change user password"""
    try:
        user = User.query.get(int(get_jwt_identity()))

        if not user:
            return jsonify({'error': 'User not found'}), 404

        data = request.get_json() or {}

        if 'current_password' not in data or 'new_password' not in data:
            return jsonify({'error': 'Current password and new password are required'}), 400

        if not user.check_password(data['current_password']):
            return jsonify({'error': 'Current password is incorrect'}), 401

        if len(data['new_password']) < 8:
            return jsonify({'error': 'Password must be at least 8 characters'}), 400

        user.set_password(data['new_password'])
        db.session.commit()

        return jsonify({
            'message': 'Password changed successfully'
        }), 200

    except SQLAlchemyError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


@auth_bp.route('/logout', methods=['POST'])
@jwt_required()
def logout():
    """Clear auth cookies and mark the user offline"""
    presence_store.remove(int(get_jwt_identity()))

    response = jsonify({'message': 'Logout successful'})
    unset_jwt_cookies(response)
    return response, 200
