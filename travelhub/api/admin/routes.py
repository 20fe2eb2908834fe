"""
Admin Routes
"""

from datetime import datetime

from flask import Blueprint, jsonify, request, g, current_app
from flask_jwt_extended import jwt_required
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from travelhub.models.approval import ApprovalStatus
from travelhub.models.booking import BOOKING_MODELS, BookingStatus, PaymentStatus
from travelhub.models.notification import NotificationType
from travelhub.models.property import Property
from travelhub.models.tour import Tour
from travelhub.models.user import User, UserRole, ProviderType
from travelhub.models.vehicle import Vehicle
from travelhub.services.notification_service import NotificationService
from travelhub.utils.decorators import admin_required

admin_bp = Blueprint('admin', __name__)


def _enum_arg(name, enum):
    """Query arg parsed into `enum`; returns (value, error_response)"""
    raw = request.args.get(name)
    if not raw:
        return None, None
    try:
        return enum(raw), None
    except ValueError:
        return None, (jsonify({'error': f'Invalid {name}: {raw}'}), 400)


@admin_bp.route('/dashboard', methods=['GET'])
@jwt_required()
@admin_required()
def admin_dashboard():
    """Platform statistics"""
    users_by_role = {
        role.value: User.query.filter_by(role=role).count() for role in UserRole
    }

    bookings = {}
    revenue = 0.0
    for kind, model in BOOKING_MODELS.items():
        bookings[kind] = {
            status.value: model.query.filter_by(status=status).count() for status in BookingStatus
        }
        bookings[kind]['total'] = model.query.count()

        paid = db.session.query(db.func.sum(model.total_price)).filter(
            model.payment_status == PaymentStatus.SUCCEEDED
        ).scalar()
        revenue += float(paid or 0)

    recent_users = User.query.order_by(User.created_at.desc()).limit(10).all()

    return jsonify({
        'statistics': {
            'total_users': User.query.count(),
            'active_users': User.query.filter_by(is_active=True).count(),
            'users_by_role': users_by_role,
            'total_properties': Property.query.count(),
            'total_vehicles': Vehicle.query.count(),
            'total_tours': Tour.query.count(),
            'pending_approvals': sum(
                model.query.filter_by(approval_status=ApprovalStatus.PENDING).count()
                for model in (Property, Vehicle, Tour)
            ),
            'bookings': bookings,
            'revenue': round(revenue, 2),
            'currency': current_app.config.get('DEFAULT_CURRENCY', 'PKR'),
        },
        'recent_users': [user.to_dict(include_email=True) for user in recent_users]
    }), 200


@admin_bp.route('/users', methods=['GET'])
@jwt_required()
@admin_required()
def get_all_users():
    """All users, optionally filtered by role"""
    page = request.args.get('page', 1, type=int)
    per_page = min(request.args.get('per_page', 20, type=int), 100)

    role, error = _enum_arg('role', UserRole)
    if error:
        return error

    query = User.query
    if role:
        query = query.filter_by(role=role)

    search = request.args.get('search')
    if search:
        pattern = f'%{search}%'
        query = query.filter(or_(User.email.ilike(pattern), User.username.ilike(pattern)))

    users = query.order_by(User.created_at.desc()).paginate(page=page, per_page=per_page, error_out=False)

    return jsonify({
        'users': [user.to_dict(include_email=True) for user in users.items],
        'total': users.total,
        'pages': users.pages,
        'current_page': page
    }), 200


@admin_bp.route('/users/<int:user_id>/role', methods=['PUT'])
@jwt_required()
@admin_required()
def change_user_role(user_id):
    """Change a user's role (and provider type for providers)"""
    data = request.get_json() or {}

    try:
        role = UserRole(data.get('role'))
    except ValueError:
        return jsonify({'error': 'role must be one of customer, provider, admin'}), 400

    if user_id == g.current_user.id and role != UserRole.ADMIN:
        return jsonify({'error': 'Cannot remove your own admin privileges'}), 403

    user = User.query.get(user_id)
    if not user:
        return jsonify({'error': 'User not found'}), 404

    provider_type = None
    if role == UserRole.PROVIDER:
        try:
            provider_type = ProviderType(data.get('provider_type') or
                                         (user.provider_type.value if user.provider_type else None))
        except ValueError:
            return jsonify({'error': 'provider_type is required for providers'}), 400

    try:
        user.role = role
        user.provider_type = provider_type
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f'Role change error: {str(e)}')
        return jsonify({'error': str(e)}), 500

    current_app.logger.info(f'Admin {g.current_user.id} set role of user {user.id} to {role.value}')

    return jsonify({
        'message': f'{user.full_name} is now {role.value}',
        'user': user.to_dict(include_email=True)
    }), 200


def _set_active(user_id, active):
    if user_id == g.current_user.id and not active:
        return jsonify({'error': 'Cannot deactivate your own account'}), 403

    user = User.query.get(user_id)
    if not user:
        return jsonify({'error': 'User not found'}), 404

    try:
        user.is_active = active
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f'User status change error: {str(e)}')
        return jsonify({'error': str(e)}), 500

    return jsonify({
        'message': f'User {"activated" if active else "deactivated"}',
        'user': user.to_dict(include_email=True)
    }), 200


@admin_bp.route('/users/<int:user_id>/activate', methods=['POST'])
@jwt_required()
@admin_required()
def activate_user(user_id):
    return _set_active(user_id, True)


@admin_bp.route('/users/<int:user_id>/deactivate', methods=['POST'])
@jwt_required()
@admin_required()
def deactivate_user(user_id):
    return _set_active(user_id, False)


@admin_bp.route('/bookings', methods=['GET'])
@jwt_required()
@admin_required()
def get_all_bookings():
    """Bookings of every kind, newest first"""
    kind = request.args.get('kind')
    if kind and kind not in BOOKING_MODELS:
        return jsonify({'error': f'Unknown booking type: {kind}'}), 400

    status, error = _enum_arg('status', BookingStatus)
    if error:
        return error

    limit = max(1, min(request.args.get('limit', 100, type=int), 500))

    models = [BOOKING_MODELS[kind]] if kind else list(BOOKING_MODELS.values())
    bookings = []
    for model in models:
        query = model.query
        if status:
            query = query.filter_by(status=status)
        bookings.extend(query.order_by(model.created_at.desc()).limit(limit).all())

    bookings.sort(key=lambda b: b.created_at, reverse=True)
    bookings = bookings[:limit]

    return jsonify({
        'bookings': [booking.to_dict(include_customer=True) for booking in bookings],
        'total': len(bookings)
    }), 200


@admin_bp.route('/broadcast', methods=['POST'])
@jwt_required()
@admin_required()
def broadcast():
    """Send a system notification to every active user, or to one role"""
    data = request.get_json() or {}

    title = (data.get('title') or '').strip()
    message = (data.get('message') or '').strip()
    if not title or not message:
        return jsonify({'error': 'title and message are required'}), 400

    query = User.query.filter_by(is_active=True)
    if data.get('role'):
        try:
            query = query.filter_by(role=UserRole(data['role']))
        except ValueError:
            return jsonify({'error': f"Invalid role: {data['role']}"}), 400

    user_ids = [user.id for user in query.all()]
    sent = NotificationService.broadcast(
        user_ids, NotificationType.SYSTEM, title, message, action_url=data.get('action_url')
    )

    return jsonify({'message': 'Broadcast sent', 'sent': sent}), 200


LISTING_MODELS = {'property': Property, 'vehicle': Vehicle, 'tour': Tour}

APPROVAL_ACTIONS = {
    'approve': (ApprovalStatus.APPROVED, NotificationType.LISTING_APPROVED, 'approved'),
    'reject': (ApprovalStatus.REJECTED, NotificationType.LISTING_REJECTED, 'rejected'),
    'request_changes': (ApprovalStatus.REQUIRES_CHANGES, NotificationType.LISTING_CHANGES_REQUESTED,
                        'sent back for changes'),
}


def _listing_owner_id(listing):
    return listing.guide_id if isinstance(listing, Tour) else listing.owner_id


def _listing_name(listing):
    return listing.name if isinstance(listing, Property) else listing.title


def _listing_dict(kind, listing):
    data = listing.to_dict()
    data['kind'] = kind
    return data


@admin_bp.route('/approvals', methods=['GET'])
@jwt_required()
@admin_required()
def get_approval_queue():
    """Listings awaiting (or past) moderation, pending first by default"""
    kind = request.args.get('kind')
    if kind and kind not in LISTING_MODELS:
        return jsonify({'error': f'Unknown listing type: {kind}'}), 400

    try:
        status = ApprovalStatus(request.args.get('status', ApprovalStatus.PENDING.value))
    except ValueError:
        return jsonify({'error': f"Invalid status: {request.args.get('status')}"}), 400

    kinds = [kind] if kind else list(LISTING_MODELS)
    listings = []
    for name in kinds:
        model = LISTING_MODELS[name]
        rows = model.query.filter_by(approval_status=status).order_by(model.created_at.asc()).all()
        listings.extend(_listing_dict(name, row) for row in rows)

    counts = {
        value.value: sum(model.query.filter_by(approval_status=value).count() for model in LISTING_MODELS.values())
        for value in ApprovalStatus
    }

    return jsonify({
        'listings': listings,
        'total': len(listings),
        'counts': counts
    }), 200


@admin_bp.route('/approvals/<kind>/<int:listing_id>', methods=['POST'])
@jwt_required()
@admin_required()
def review_listing(kind, listing_id):
    """Approve, reject or send back a property, vehicle or tour"""
    model = LISTING_MODELS.get(kind)
    if model is None:
        return jsonify({'error': f'Unknown listing type: {kind}'}), 400

    listing = model.query.get(listing_id)
    if not listing:
        return jsonify({'error': f'{kind.capitalize()} not found'}), 404

    data = request.get_json() or {}
    action = data.get('action')
    if action not in APPROVAL_ACTIONS:
        return jsonify({'error': 'action must be one of approve, reject, request_changes'}), 400

    reason = (data.get('reason') or '').strip()
    if action != 'approve' and not reason:
        return jsonify({'error': 'reason is required'}), 400

    status, notification_type, verb = APPROVAL_ACTIONS[action]

    try:
        listing.approval_status = status
        listing.rejection_reason = reason or None
        listing.reviewed_by = g.current_user.id
        listing.reviewed_at = datetime.utcnow()
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f'Listing approval error: {str(e)}')
        return jsonify({'error': str(e)}), 500

    current_app.logger.info(f'Admin {g.current_user.id} {verb} {kind} {listing.id}')

    message = f'Your {kind} "{_listing_name(listing)}" was {verb}.'
    if reason:
        message = f'{message} Reason: {reason}'
    try:
        NotificationService.create_and_dispatch(
            _listing_owner_id(listing),
            notification_type,
            f'Listing {verb.capitalize()}',
            message,
            action_url=f'/dashboard/{kind}s/{listing.id}',
            data={'kind': kind, 'listing_id': listing.id, 'approval_status': status.value},
        )
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f'Approval notification failed: {str(e)}')

    return jsonify({
        'message': f'{kind.capitalize()} {verb}',
        'listing': _listing_dict(kind, listing)
    }), 200
