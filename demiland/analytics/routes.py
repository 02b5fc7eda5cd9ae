# demiland/analytics/routes.py

import logging
from flask import request, g
from demiland.errors import ApiError
from demiland.utils import (
    authenticate_token, optional_token, require_admin, get_json_payload, parse_int, client_ip, user_agent,
    success_response, api_error_response, server_error_response,
)
from . import analytics_bp
from . import events

logger = logging.getLogger(__name__)


@analytics_bp.route('/events', methods=['POST'])
@optional_token
def track_event():
    try:
        data = get_json_payload()
        user = g.current_user
        event = events.track_event(
            data.get('eventType') or data.get('event_type'),
            data.get('eventData', data.get('event_data')),
            user_id=user['userId'] if user else None,
            ip_address=client_ip(),
            user_agent=user_agent(),
        )
        return success_response(event.to_dict(), 'Event recorded', 201)
    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        return server_error_response('Failed to record event', e)


@analytics_bp.route('/events', methods=['GET'])
@authenticate_token
@require_admin
def list_events():
    try:
        rows = events.list_events(
            event_type=request.args.get('eventType'),
            user_id=request.args.get('userId'),
            limit=parse_int(request.args.get('limit')),
        )
        return success_response([row.to_dict() for row in rows])
    except Exception as e:
        return server_error_response('Failed to fetch analytics', e)
