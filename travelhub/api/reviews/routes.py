"""
Reviews Blueprint
"""

from flask import Blueprint, jsonify, request, g, current_app
from flask_jwt_extended import jwt_required
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from travelhub.models.booking import PropertyBooking, BookingStatus
from travelhub.models.notification import NotificationType
from travelhub.models.review import Review
from travelhub.models.user import UserRole
from travelhub.services.notification_service import NotificationService
from travelhub.utils.decorators import role_required

reviews_bp = Blueprint('reviews', __name__)

CATEGORY_RATINGS = ['cleanliness_rating', 'location_rating', 'value_rating']


def _valid_rating(value, required=True):
    if value is None:
        return not required
    try:
        return 1 <= int(value) <= 5
    except (TypeError, ValueError):
        return False


@reviews_bp.route('', methods=['POST'])
@jwt_required()
@role_required(UserRole.CUSTOMER, UserRole.PROVIDER)
def create_review():
    """Review a completed property stay"""
    data = request.get_json() or {}

    for field in ['booking_id', 'rating', 'comment']:
        if data.get(field) in (None, ''):
            return jsonify({'error': f'{field} is required'}), 400

    if not _valid_rating(data['rating']):
        return jsonify({'error': 'rating must be between 1 and 5'}), 400

    for field in CATEGORY_RATINGS:
        if not _valid_rating(data.get(field), required=False):
            return jsonify({'error': f'{field} must be between 1 and 5'}), 400

    booking = PropertyBooking.query.get(data['booking_id'])
    if not booking:
        return jsonify({'error': 'Booking not found'}), 404

    if booking.customer_id != g.current_user.id:
        return jsonify({'error': 'Unauthorized'}), 403

    if booking.status != BookingStatus.COMPLETED:
        return jsonify({'error': 'Can only review completed bookings'}), 400

    if Review.query.filter_by(booking_id=booking.id).first():
        return jsonify({'error': 'Review already exists for this booking'}), 409

    try:
        review = Review(
            property_id=booking.property_id,
            user_id=g.current_user.id,
            booking_id=booking.id,
            rating=int(data['rating']),
            title=data.get('title'),
            comment=data['comment'],
            **{field: int(data[field]) for field in CATEGORY_RATINGS if data.get(field) is not None}
        )

        db.session.add(review)
        db.session.commit()

        booking.listing.update_rating()

    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f'Review creation error: {str(e)}')
        return jsonify({'error': str(e)}), 500

    try:
        NotificationService.create_and_dispatch(
            booking.provider_id,
            NotificationType.REVIEW_RECEIVED,
            'New Review',
            f'{g.current_user.full_name} rated {booking.listing.name} {review.rating}/5.',
            action_url=f'/properties/{booking.property_id}#reviews',
            data={'review_id': review.id, 'property_id': booking.property_id},
            send_email=False,
        )
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f'Review notification failed: {str(e)}')

    return jsonify({
        'message': 'Review created successfully',
        'review': review.to_dict(include_user=True)
    }), 201


@reviews_bp.route('/property/<int:property_id>', methods=['GET'])
def get_property_reviews(property_id):
    """Visible reviews of a property, newest first"""
    page = request.args.get('page', 1, type=int)
    per_page = min(request.args.get('per_page', 10, type=int), 50)

    paginated = Review.query.filter_by(
        property_id=property_id,
        is_visible=True
    ).order_by(Review.created_at.desc()).paginate(page=page, per_page=per_page, error_out=False)

    return jsonify({
        'reviews': [review.to_dict(include_user=True) for review in paginated.items],
        'total': paginated.total,
        'pages': paginated.pages,
        'current_page': page
    }), 200


@reviews_bp.route('/<int:review_id>/response', methods=['POST'])
@jwt_required()
@role_required(UserRole.PROVIDER)
def add_owner_response(review_id):
    """Property owner replies to a review"""
    review = Review.query.get(review_id)
    if not review:
        return jsonify({'error': 'Review not found'}), 404

    if review.property.owner_id != g.current_user.id and not g.current_user.is_admin:
        return jsonify({'error': 'Unauthorized'}), 403

    data = request.get_json() or {}
    response = (data.get('response') or '').strip()
    if not response:
        return jsonify({'error': 'response is required'}), 400

    review.add_owner_response(response)

    return jsonify({
        'message': 'Response added successfully',
        'review': review.to_dict(include_user=True)
    }), 200
