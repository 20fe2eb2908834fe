"""
Realtime Routes
One Server-Sent Events stream per client, carrying notifications and chat events
"""

from flask import Blueprint, Response, current_app, stream_with_context
from flask_jwt_extended import jwt_required

from travelhub.services.realtime import hub
from travelhub.utils.decorators import current_user_id

realtime_bp = Blueprint('realtime', __name__)


@realtime_bp.route('/stream', methods=['GET'])
@jwt_required()
def stream():
    user_id = current_user_id()
    current_app.logger.info(f'SSE stream opened for user {user_id}')

    keepalive = current_app.config.get('SSE_KEEPALIVE_SECONDS', 25)

    return Response(
        stream_with_context(hub.stream(user_id, keepalive=keepalive)),
        mimetype='text/event-stream',
        headers={
            'Cache-Control': 'no-cache, no-transform',
            'X-Accel-Buffering': 'no',
        }
    )
