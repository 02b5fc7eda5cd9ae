import logging
from database import db
from demiland.errors import ValidationError
from demiland.models import AnalyticsEvent

logger = logging.getLogger(__name__)


def track_event(event_type, event_data=None, user_id=None, ip_address=None, user_agent=None):
    if not event_type:
        raise ValidationError('Event type is required')
    if event_data is None:
        event_data = {}
    if not isinstance(event_data, dict):
        raise ValidationError('Event data must be an object')
    event = AnalyticsEvent(
        event_type=event_type,
        event_data=event_data,
        user_id=user_id,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.session.add(event)
    db.session.commit()
    logger.info(f"Tracked event {event_type} (user {user_id or 'anonymous'})")
    return event


def list_events(event_type=None, user_id=None, limit=None):
    query = AnalyticsEvent.query
    if event_type:
        query = query.filter_by(event_type=event_type)
    if user_id:
        query = query.filter_by(user_id=user_id)
    query = query.order_by(AnalyticsEvent.created_at.desc())
    if limit and limit > 0:
        query = query.limit(limit)
    return query.all()
