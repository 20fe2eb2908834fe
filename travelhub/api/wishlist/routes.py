"""
Wishlist Routes
Saved properties, vehicles and tours
"""

from flask import Blueprint, jsonify, request, current_app
from flask_jwt_extended import jwt_required
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from travelhub.models.property import Property
from travelhub.models.tour import Tour
from travelhub.models.vehicle import Vehicle
from travelhub.models.wishlist import WishlistItem, WISHLIST_KINDS
from travelhub.utils.decorators import current_user_id

wishlist_bp = Blueprint('wishlist', __name__)

SERVICE_MODELS = {'property': Property, 'vehicle': Vehicle, 'tour': Tour}


def _saved_ids(user_id):
    """Saved ids per kind, most recently saved first"""
    ids = {kind: [] for kind in WISHLIST_KINDS}
    items = WishlistItem.query.filter_by(user_id=user_id) \
        .order_by(WishlistItem.created_at.desc(), WishlistItem.id.desc()).all()
    for item in items:
        ids[item.service_type].append(item.service_id)
    return ids


@wishlist_bp.route('/toggle/<kind>/<int:service_id>', methods=['POST'])
@jwt_required()
def toggle_wishlist(kind, service_id):
    """Save or unsave a listing; an explicit `action` of add/remove skips the toggle"""
    model = SERVICE_MODELS.get(kind)
    if model is None:
        return jsonify({'error': f'Unknown listing type: {kind}'}), 400

    data = request.get_json(silent=True) or {}
    action = data.get('action')
    if action not in (None, 'add', 'remove'):
        return jsonify({'error': 'action must be add or remove'}), 400

    user_id = current_user_id()
    item = WishlistItem.query.filter_by(user_id=user_id, service_type=kind, service_id=service_id).first()
    if action is None:
        action = 'remove' if item else 'add'

    try:
        if action == 'add' and item is None:
            if not model.query.get(service_id):
                return jsonify({'error': f'{kind.capitalize()} not found'}), 404
            db.session.add(WishlistItem(user_id=user_id, service_type=kind, service_id=service_id))
        elif action == 'remove' and item is not None:
            db.session.delete(item)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f'Wishlist update error: {str(e)}')
        return jsonify({'error': str(e)}), 500

    return jsonify({
        'added': action == 'add',
        'wishlist': _saved_ids(user_id)
    }), 200


@wishlist_bp.route('', methods=['GET'])
@jwt_required()
def get_wishlist():
    ids = _saved_ids(current_user_id())

    listings = {}
    for kind, model in SERVICE_MODELS.items():
        found = {row.id: row for row in model.query.filter(model.id.in_(ids[kind])).all()} if ids[kind] else {}
        # listings deleted after being saved are skipped
        listings[kind] = [found[i].to_dict() for i in ids[kind] if i in found]

    return jsonify({
        'wishlist_ids': ids,
        'properties': listings['property'],
        'vehicles': listings['vehicle'],
        'tours': listings['tour']
    }), 200
