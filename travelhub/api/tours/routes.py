"""
Tour Routes
"""

from flask import Blueprint, request, jsonify, g, current_app
from flask_jwt_extended import jwt_required
from sqlalchemy.exc import SQLAlchemyError

from extensions import db, limiter
from travelhub.models.approval import ApprovalStatus
from travelhub.models.tour import Tour
from travelhub.models.user import UserRole, ProviderType
from travelhub.services.booking_service import BookingService
from travelhub.utils.dates import parse_date
from travelhub.utils.decorators import role_required

tours_bp = Blueprint('tours', __name__)

TOUR_FIELDS = ['title', 'description', 'category', 'city', 'meeting_point', 'duration_hours', 'difficulty',
               'languages', 'inclusions', 'exclusions', 'images', 'time_slots', 'price_per_person',
               'max_group_size']


@tours_bp.route('', methods=['GET'])
@limiter.limit("100 per minute")
def get_tours():
    """Search available tours"""
    page = request.args.get('page', 1, type=int)
    per_page = min(request.args.get('per_page', 20, type=int), 100)

    city = request.args.get('city')
    category = request.args.get('category')
    max_price = request.args.get('max_price', type=float)

    query = Tour.query.filter_by(available=True, approval_status=ApprovalStatus.APPROVED)

    if city:
        query = query.filter(Tour.city.ilike(f'%{city}%'))

    if category:
        query = query.filter(Tour.category == category)

    if max_price is not None:
        query = query.filter(Tour.price_per_person <= max_price)

    paginated = query.order_by(Tour.created_at.desc()).paginate(page=page, per_page=per_page, error_out=False)

    return jsonify({
        'tours': [tour.to_dict() for tour in paginated.items],
        'total': paginated.total,
        'pages': paginated.pages,
        'current_page': page,
        'per_page': per_page
    }), 200


@tours_bp.route('/<int:tour_id>', methods=['GET'])
def get_tour(tour_id):
    """Tour detail; with ?date= also the spots left per time slot"""
    tour = Tour.query.get(tour_id)
    if not tour:
        return jsonify({'error': 'Tour not found'}), 404

    response = {'tour': tour.to_dict(include_guide=True)}

    if request.args.get('date'):
        day = parse_date(request.args.get('date'))
        slots = tour.time_slots or [None]
        response['availability'] = [
            {
                'time_slot': slot,
                'spots_left': max(0, tour.max_group_size - BookingService.tour_seats_taken(tour.id, day, slot)),
            }
            for slot in slots
        ]

    return jsonify(response), 200


@tours_bp.route('', methods=['POST'])
@jwt_required()
@role_required(UserRole.PROVIDER, provider_type=ProviderType.TOUR_GUIDE)
def create_tour():
    """Create a tour listing"""
    try:
        data = request.get_json() or {}

        for field in ['title', 'description', 'price_per_person']:
            if data.get(field) in (None, ''):
                return jsonify({'error': f'{field} is required'}), 400

        try:
            if float(data['price_per_person']) <= 0:
                return jsonify({'error': 'price_per_person must be positive'}), 400
            if int(data.get('max_group_size', 10)) < 1:
                return jsonify({'error': 'max_group_size must be at least 1'}), 400
        except (TypeError, ValueError):
            return jsonify({'error': 'price_per_person and max_group_size must be numbers'}), 400

        tour = Tour(
            guide_id=g.current_user.id,
            currency=current_app.config.get('DEFAULT_CURRENCY', 'PKR'),
            **{field: data[field] for field in TOUR_FIELDS if field in data}
        )

        db.session.add(tour)
        db.session.commit()

        return jsonify({
            'message': 'Tour created successfully',
            'tour': tour.to_dict()
        }), 201

    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f'Tour creation error: {str(e)}')
        return jsonify({'error': str(e)}), 500
