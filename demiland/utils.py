# demiland/utils.py

import logging
import traceback
from functools import wraps
from flask import request, jsonify, g, current_app, has_request_context
from flask_jwt_extended import JWTManager, verify_jwt_in_request, get_jwt
from werkzeug.datastructures import MultiDict
from werkzeug.security import generate_password_hash, check_password_hash
from database import db
from demiland.errors import ValidationError, AuthorizationError
from demiland.models import ADMIN_ROLES, User

logger = logging.getLogger(__name__)

jwt = JWTManager()


def hash_password(password):
    """Hashes a password using Werkzeug's secure method."""
    method = current_app.config.get('PASSWORD_HASH_METHOD', 'scrypt')
    return generate_password_hash(password, method=method)


def check_hashed_password(hashed_password, password):
    """Checks a plain password against a hashed password."""
    if not hashed_password or password is None:
        return False
    return check_password_hash(hashed_password, password)


# --- Response envelope ---

def success_response(data=None, message=None, status=200, **extra):
    body = {'success': True}
    if message:
        body['message'] = message
    if data is not None:
        body['data'] = data
    body.update(extra)
    return jsonify(body), status


def error_response(message, status=400, error=None, **extra):
    body = {'success': False, 'message': message}
    if error:
        body['error'] = error
    body.update(extra)
    return jsonify(body), status


def api_error_response(e):
    extra = {}
    if getattr(e, 'errors', None):
        extra['errors'] = e.errors
    return error_response(e.message, e.status_code, **extra)


def server_error_response(message, e):
    logger.error(f"{message}: {str(e)}")
    logger.error(f"Error type: {type(e).__name__}")
    extra = {}
    if current_app.config.get('DEBUG'):
        extra['stack'] = traceback.format_exc()
    return error_response(message, 500, error=str(e), **extra)


# --- Request payload helpers ---

def get_json_payload():
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def json_formdata(payload):
    """
    Flattens the scalar members of a JSON body into form data so WTForms can
    coerce and validate them. Lists, objects and nulls are left out.
    """
    formdata = MultiDict()
    for key, value in payload.items():
        if value is None or isinstance(value, (list, dict)):
            continue
        if isinstance(value, bool):
            value = 'true' if value else 'false'
        formdata.add(key, str(value))
    return formdata


def validate_form(form_class, payload, message):
    form = form_class(json_formdata(payload))
    if not form.validate():
        raise ValidationError(message, errors=form.errors)
    return form


def parse_bool(value, default=None):
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in ['true', '1', 'yes', 'on']


def parse_int(value, default=None):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def parse_float(value, default=None):
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def client_ip():
    if not has_request_context():
        return None
    forwarded = request.headers.get('X-Forwarded-For')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.remote_addr


def user_agent():
    if not has_request_context():
        return None
    return request.headers.get('User-Agent')


# --- Authorization ---

def authenticate_token(f):
    """
    Decorator to ensure the request carries a valid bearer token.
    The decoded principal is attached as g.current_user.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        verify_jwt_in_request()
        claims = get_jwt()
        g.current_user = {
            'userId': claims.get('userId', claims['sub']),
            'email': claims.get('email'),
            'role': claims.get('role'),
        }
        g.token_jti = claims['jti']
        return f(*args, **kwargs)
    return decorated_function


def optional_token(f):
    """Like authenticate_token, but anonymous requests pass with g.current_user = None."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        verify_jwt_in_request(optional=True)
        claims = get_jwt()
        g.current_user = None
        if claims:
            g.current_user = {
                'userId': claims.get('userId', claims['sub']),
                'email': claims.get('email'),
                'role': claims.get('role'),
            }
        return f(*args, **kwargs)
    return decorated_function


def require_role(roles):
    """
    Decorator to ensure the authenticated principal has one of the given roles.
    Must be applied below authenticate_token. The role is re-read from the
    database, so a role change applies to tokens already issued.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            principal = getattr(g, 'current_user', None)
            if not principal:
                return error_response('Access token required', 401)
            user = db.session.get(User, principal['userId'])
            role = user.role if user else None
            principal['role'] = role
            if role not in roles:
                logger.warning(f"Role check failed for {principal.get('email')}: {role} not in {list(roles)}")
                return api_error_response(AuthorizationError('Insufficient permissions'))
            return f(*args, **kwargs)
        return decorated_function
    return decorator


require_admin = require_role(ADMIN_ROLES)


# --- JWT failure rendering ---

@jwt.unauthorized_loader
def _missing_token(reason):
    return error_response('Access token required', 401, error=reason)


@jwt.invalid_token_loader
def _invalid_token(reason):
    return error_response('Invalid or expired token', 401, error=reason)


@jwt.expired_token_loader
def _expired_token(jwt_header, jwt_payload):
    return error_response('Invalid or expired token', 401, error='Token has expired')


@jwt.revoked_token_loader
def _revoked_token(jwt_header, jwt_payload):
    return error_response('Invalid or expired token', 401, error='Session is no longer active')


@jwt.token_in_blocklist_loader
def _session_revoked(jwt_header, jwt_payload):
    from demiland.auth.accounts import session_is_live  # Import here to avoid circular dependency
    return not session_is_live(jwt_payload['jti'])
