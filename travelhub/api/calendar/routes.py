"""
Calendar Routes
Per-date overrides and pricing rules managed by property owners
"""

import json
from datetime import timedelta

from flask import Blueprint, jsonify, request, g, current_app
from flask_jwt_extended import jwt_required
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from travelhub.exceptions import ValidationError
from travelhub.models.availability import (
    RoomAvailability,
    SeasonalPricing,
    SpecialEventPricing,
    DiscountRule,
    PriceAdjustmentType,
    DiscountType,
)
from travelhub.models.property import Property, RoomType
from travelhub.models.user import UserRole, ProviderType
from travelhub.services.availability_service import AvailabilityService
from travelhub.services.pricing_service import PricingService
from travelhub.utils.dates import parse_date, today
from travelhub.utils.decorators import role_required

calendar_bp = Blueprint('calendar', __name__)

MAX_CALENDAR_DAYS = 366
CALENDAR_ACTIONS = ('set_price', 'block', 'unblock', 'set_min_stay', 'set_max_stay', 'set_units')

owner_required = role_required(UserRole.PROVIDER, provider_type=ProviderType.PROPERTY_OWNER)


def _can_manage(property_obj):
    return g.current_user.is_admin or property_obj.owner_id == g.current_user.id


def _request_data():
    """JSON body or form fields; `dates` may be a list or a JSON-encoded list"""
    data = request.get_json(silent=True)
    if data is None:
        data = request.form.to_dict()
    dates = data.get('dates') or []
    if isinstance(dates, str):
        try:
            dates = json.loads(dates)
        except ValueError:
            dates = [d.strip() for d in dates.split(',') if d.strip()]
    data['dates'] = dates
    return data


def _int_value(data, field, minimum):
    try:
        value = int(data.get(field))
    except (TypeError, ValueError):
        return None
    return value if value >= minimum else None


def _optional_int(data, field, minimum):
    """Optional whole-number rule field; raises ValidationError when present but invalid"""
    raw = data.get(field)
    if raw is None or raw == '':
        return None
    value = _int_value(data, field, minimum)
    if value is None or isinstance(raw, bool):
        raise ValidationError(f'{field} must be a whole number of at least {minimum}')
    return value


def _upsert_override(room, day):
    override = RoomAvailability.query.filter_by(room_type_id=room.id, date=day).first()
    if override is None:
        override = RoomAvailability(room_type_id=room.id, date=day, is_available=True,
                                    created_by=g.current_user.id)
        db.session.add(override)
    return override


def apply_calendar_action(room, day, action, data):
    """Apply one action to one date; returns the per-date result entry"""
    result = {'date': day.isoformat(), 'action': action}

    if action == 'set_price':
        try:
            price = float(data.get('price'))
        except (TypeError, ValueError):
            price = -1
        if price < 0:
            return {'date': day.isoformat(), 'error': 'Invalid price'}
        _upsert_override(room, day).custom_price = price
        result['price'] = price

    elif action == 'block':
        override = _upsert_override(room, day)
        override.is_available = False
        override.available_units = 0
        override.reason = data.get('reason') or 'Blocked by owner'
        override.notes = data.get('notes')
        result['reason'] = override.reason

    elif action == 'unblock':
        override = _upsert_override(room, day)
        override.is_available = True
        override.available_units = None
        override.reason = None
        override.notes = None

    elif action in ('set_min_stay', 'set_max_stay'):
        field = 'min_stay' if action == 'set_min_stay' else 'max_stay'
        value = _int_value(data, field, 1)
        if value is None:
            return {'date': day.isoformat(), 'error': f'Invalid {field}'}
        setattr(_upsert_override(room, day), field, value)
        result[field] = value

    elif action == 'set_units':
        units = _int_value(data, 'units', 0)
        if units is None or units > room.total_units:
            return {'date': day.isoformat(), 'error': f'Units must be between 0 and {room.total_units}'}
        _upsert_override(room, day).available_units = units
        result['units'] = units

    else:
        return {'date': day.isoformat(), 'error': f'Unknown action: {action}'}

    return result


@calendar_bp.route('/<int:room_type_id>', methods=['GET'])
@jwt_required()
@owner_required
def get_calendar(room_type_id):
    """Per-day availability and resolved price for a room type"""
    room = RoomType.query.get(room_type_id)
    if not room:
        return jsonify({'error': 'Room type not found'}), 404
    if not _can_manage(room.property):
        return jsonify({'error': 'Unauthorized'}), 403

    start = parse_date(request.args.get('start'), 'start') if request.args.get('start') else today()
    end = parse_date(request.args.get('end'), 'end') if request.args.get('end') else start + timedelta(days=30)
    if end <= start:
        return jsonify({'error': 'end must be after start'}), 400
    if (end - start).days > MAX_CALENDAR_DAYS:
        return jsonify({'error': f'Range cannot exceed {MAX_CALENDAR_DAYS} days'}), 400

    summary = AvailabilityService.get_availability_summary(room.id, start, end)
    for entry in summary['dates']:
        price = PricingService.calculate_room_price(room.id, parse_date(entry['date']), room=room)
        entry['price'] = price['final_price']
        entry['applied_rules'] = price['applied_rules']

    summary['room_type'] = room.to_dict()
    return jsonify(summary), 200


@calendar_bp.route('/<int:room_type_id>/update', methods=['POST'])
@jwt_required()
@owner_required
def update_calendar(room_type_id):
    """Apply an action to many dates; bad dates or values are reported per date"""
    try:
        room = RoomType.query.get(room_type_id)
        if not room or not _can_manage(room.property):
            return jsonify({'error': 'Unauthorized or room not found'}), 403

        data = _request_data()
        dates = data['dates']
        action = data.get('action')

        if not dates or not action:
            return jsonify({'error': 'Missing required fields: dates, action'}), 400
        if action not in CALENDAR_ACTIONS:
            return jsonify({'error': f'Unknown action: {action}'}), 400

        results = []
        for raw in dates:
            try:
                day = parse_date(raw)
            except ValidationError:
                results.append({'date': raw, 'error': 'Invalid date'})
                continue
            results.append(apply_calendar_action(room, day, action, data))

        db.session.commit()
        current_app.logger.info(f'Calendar {action} on room type {room.id} for {len(dates)} date(s)')

        return jsonify({'success': True, 'results': results}), 200

    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f'Calendar update error: {str(e)}')
        return jsonify({'error': str(e)}), 500


def _rule_target(property_id, data):
    """Resolve property and optional room type for a new pricing rule"""
    property_obj = Property.query.get(property_id)
    if not property_obj:
        return None, None, (jsonify({'error': 'Property not found'}), 404)
    if not _can_manage(property_obj):
        return None, None, (jsonify({'error': 'Unauthorized'}), 403)

    room_type_id = data.get('room_type_id')
    if room_type_id:
        room = RoomType.query.get(room_type_id)
        if not room or room.property_id != property_obj.id:
            return None, None, (jsonify({'error': 'Room type not found for this property'}), 404)
        room_type_id = room.id
    return property_obj, room_type_id, None


def _rule_dates(data, start_field='start_date', end_field='end_date'):
    start = parse_date(data.get(start_field), start_field)
    end = parse_date(data.get(end_field), end_field)
    if end < start:
        raise ValidationError(f'{end_field} must not be before {start_field}')
    return start, end


@calendar_bp.route('/property/<int:property_id>/seasonal', methods=['GET'])
@jwt_required()
@owner_required
def list_seasonal_rules(property_id):
    property_obj, _, error = _rule_target(property_id, {})
    if error:
        return error
    rules = SeasonalPricing.query.filter_by(property_id=property_obj.id) \
        .order_by(SeasonalPricing.priority.desc(), SeasonalPricing.start_date).all()
    return jsonify({'rules': [rule.to_dict() for rule in rules]}), 200


@calendar_bp.route('/property/<int:property_id>/seasonal', methods=['POST'])
@jwt_required()
@owner_required
def create_seasonal_rule(property_id):
    data = request.get_json() or {}
    property_obj, room_type_id, error = _rule_target(property_id, data)
    if error:
        return error

    if not data.get('name'):
        return jsonify({'error': 'name is required'}), 400
    start, end = _rule_dates(data)

    try:
        adjustment = PriceAdjustmentType(data.get('price_adjustment'))
        value = float(data.get('adjustment_value'))
    except (TypeError, ValueError):
        return jsonify({'error': 'Valid price_adjustment and adjustment_value are required'}), 400

    days_of_week = data.get('days_of_week') or []
    if any(not isinstance(d, int) or d < 0 or d > 6 for d in days_of_week):
        return jsonify({'error': 'days_of_week must contain numbers 0 (Sunday) to 6 (Saturday)'}), 400

    rule = SeasonalPricing(
        property_id=property_obj.id,
        room_type_id=room_type_id,
        name=data['name'],
        start_date=start,
        end_date=end,
        days_of_week=days_of_week,
        price_adjustment=adjustment,
        adjustment_value=value,
        priority=_optional_int(data, 'priority', 0) or 0,
        min_stay=_optional_int(data, 'min_stay', 1),
        max_stay=_optional_int(data, 'max_stay', 1),
        is_active=bool(data.get('is_active', True)),
    )
    db.session.add(rule)
    db.session.commit()

    return jsonify({'message': 'Seasonal pricing created', 'rule': rule.to_dict()}), 201


@calendar_bp.route('/property/<int:property_id>/events', methods=['GET'])
@jwt_required()
@owner_required
def list_event_rules(property_id):
    property_obj, _, error = _rule_target(property_id, {})
    if error:
        return error
    rules = SpecialEventPricing.query.filter_by(property_id=property_obj.id) \
        .order_by(SpecialEventPricing.start_date).all()
    return jsonify({'rules': [rule.to_dict() for rule in rules]}), 200


@calendar_bp.route('/property/<int:property_id>/events', methods=['POST'])
@jwt_required()
@owner_required
def create_event_rule(property_id):
    data = request.get_json() or {}
    property_obj, room_type_id, error = _rule_target(property_id, data)
    if error:
        return error

    if not data.get('event_name'):
        return jsonify({'error': 'event_name is required'}), 400
    start, end = _rule_dates(data)

    try:
        multiplier = float(data.get('price_multiplier'))
    except (TypeError, ValueError):
        return jsonify({'error': 'price_multiplier is required'}), 400
    if multiplier <= 0:
        return jsonify({'error': 'price_multiplier must be positive'}), 400

    rule = SpecialEventPricing(
        property_id=property_obj.id,
        room_type_id=room_type_id,
        event_name=data['event_name'],
        start_date=start,
        end_date=end,
        price_multiplier=multiplier,
        min_stay=_optional_int(data, 'min_stay', 1),
        is_active=bool(data.get('is_active', True)),
    )
    db.session.add(rule)
    db.session.commit()

    return jsonify({'message': 'Event pricing created', 'rule': rule.to_dict()}), 201


@calendar_bp.route('/property/<int:property_id>/discounts', methods=['GET'])
@jwt_required()
@owner_required
def list_discount_rules(property_id):
    property_obj, _, error = _rule_target(property_id, {})
    if error:
        return error
    rules = DiscountRule.query.filter_by(property_id=property_obj.id).all()
    return jsonify({'rules': [rule.to_dict() for rule in rules]}), 200


@calendar_bp.route('/property/<int:property_id>/discounts', methods=['POST'])
@jwt_required()
@owner_required
def create_discount_rule(property_id):
    data = request.get_json() or {}
    property_obj, room_type_id, error = _rule_target(property_id, data)
    if error:
        return error

    try:
        discount_type = DiscountType(data.get('discount_type'))
        percent = float(data.get('discount_percent'))
    except (TypeError, ValueError):
        return jsonify({'error': 'Valid discount_type and discount_percent are required'}), 400
    if percent <= 0 or percent > 100:
        return jsonify({'error': 'discount_percent must be between 0 and 100'}), 400

    rule = DiscountRule(
        property_id=property_obj.id,
        room_type_id=room_type_id,
        discount_type=discount_type,
        discount_percent=percent,
        min_nights=_optional_int(data, 'min_nights', 1),
        days_in_advance=_optional_int(data, 'days_in_advance', 0),
        days_before_check_in=_optional_int(data, 'days_before_check_in', 0),
        valid_from=parse_date(data['valid_from'], 'valid_from') if data.get('valid_from') else None,
        valid_until=parse_date(data['valid_until'], 'valid_until') if data.get('valid_until') else None,
        is_active=bool(data.get('is_active', True)),
    )
    db.session.add(rule)
    db.session.commit()

    return jsonify({'message': 'Discount rule created', 'rule': rule.to_dict()}), 201
