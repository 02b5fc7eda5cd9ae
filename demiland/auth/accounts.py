# demiland/auth/accounts.py

import logging
from datetime import datetime
from flask import current_app
from flask_jwt_extended import create_access_token, get_jti
from sqlalchemy.exc import IntegrityError
from database import db, unit_of_work
from demiland.errors import ValidationError, AuthenticationError, NotFoundError, ConflictError
from demiland.models import User, UserSession, UserFavorite, Product, ROLES
from demiland.utils import hash_password, check_hashed_password, parse_bool, client_ip, user_agent

logger = logging.getLogger(__name__)

# Unknown email, inactive account and wrong password share one message.
INVALID_CREDENTIALS = 'Invalid email or password'
DUPLICATE_EMAIL = 'User already exists with this email'

# Verified against on unknown emails so both failure paths pay for one hash check
_DUMMY_HASHES = {}

PROFILE_FIELDS = {
    'firstName': 'first_name',
    'lastName': 'last_name',
    'phone': 'phone',
    'address': 'address',
}

ADMIN_EDITABLE_FIELDS = ('first_name', 'last_name', 'email', 'phone', 'role', 'is_active')


def get_user(user_id, active_only=True):
    query = User.query.filter_by(id=user_id)
    if active_only:
        query = query.filter_by(is_active=True)
    return query.first()


def get_user_by_email(email, active_only=True):
    query = User.query.filter_by(email=email)
    if active_only:
        query = query.filter_by(is_active=True)
    return query.first()


def _require_user(user_id, active_only=True):
    user = get_user(user_id, active_only=active_only)
    if not user:
        raise NotFoundError('User not found')
    return user


def _validate_role(role):
    if role not in ROLES:
        raise ValidationError('Invalid role specified')


def _insert_user(email, password, first_name, last_name, role='user', is_active=True, phone=None):
    """Existence check and insert share one transaction; the unique email index catches races."""
    try:
        with unit_of_work() as s:
            if s.query(User).filter_by(email=email).first():
                raise ConflictError(DUPLICATE_EMAIL)
            user = User(
                email=email,
                password_hash=hash_password(password),
                first_name=first_name,
                last_name=last_name,
                phone=phone or None,
                role=role,
                email_verified=True,
                is_active=is_active,
            )
            s.add(user)
    except IntegrityError:
        raise ConflictError(DUPLICATE_EMAIL)
    return user


# --- Sessions and tokens ---

def issue_token(user):
    """Signs a bearer token for the user and records the session it belongs to."""
    token = create_access_token(
        identity=user.id,
        additional_claims={'userId': user.id, 'email': user.email, 'role': user.role},
    )
    expires_at = datetime.utcnow() + current_app.config['JWT_ACCESS_TOKEN_EXPIRES']
    with unit_of_work() as s:
        s.add(UserSession(
            user_id=user.id,
            session_token=get_jti(token),
            expires_at=expires_at,
            ip_address=client_ip(),
            user_agent=user_agent(),
        ))
    return token


def session_is_live(jti):
    """A session counts only while unexpired and owned by an active user."""
    row = (
        db.session.query(UserSession.id)
        .join(User, UserSession.user_id == User.id)
        .filter(UserSession.session_token == jti, UserSession.expires_at > datetime.utcnow())
        .filter(User.is_active.is_(True))
        .first()
    )
    return row is not None


def logout(jti):
    deleted = UserSession.query.filter_by(session_token=jti).delete()
    db.session.commit()
    logger.info(f"Session {jti} closed ({deleted} row(s) removed)")
    return deleted


def clean_expired_sessions():
    deleted = UserSession.query.filter(UserSession.expires_at <= datetime.utcnow()).delete()
    db.session.commit()
    logger.info(f"Removed {deleted} expired session(s)")
    return deleted


# --- Self-service credential operations ---

def register_user(email, password, first_name, last_name):
    if not all([email, password, first_name, last_name]):
        raise ValidationError('All fields are required')
    user = _insert_user(email, password, first_name, last_name, role='user', is_active=True)
    token = issue_token(user)
    logger.info(f"Registration successful for {email} (id {user.id})")
    return user, token


def _dummy_hash():
    method = current_app.config.get('PASSWORD_HASH_METHOD', 'scrypt')
    if method not in _DUMMY_HASHES:
        _DUMMY_HASHES[method] = hash_password('not-a-real-password')
    return _DUMMY_HASHES[method]


def authenticate_user(email, password):
    user = get_user_by_email(email)
    hashed = user.password_hash if user else _dummy_hash()
    if not check_hashed_password(hashed, password) or not user:
        logger.warning(f"Login failed for {email}")
        raise AuthenticationError(INVALID_CREDENTIALS)
    user.last_login = datetime.utcnow()
    db.session.commit()
    logger.info(f"Authentication successful for {email}, role {user.role}")
    return user


def login(email, password):
    if not email or not password:
        raise ValidationError('Email and password are required')
    user = authenticate_user(email, password)
    return user, issue_token(user)


def change_password(user_id, current_password, new_password):
    if not current_password or not new_password:
        raise ValidationError('Current password and new password are required')
    user = _require_user(user_id)
    if not check_hashed_password(user.password_hash, current_password):
        logger.warning(f"Password change rejected for user {user_id}: current password mismatch")
        raise ValidationError('Current password is incorrect')
    user.password_hash = hash_password(new_password)
    db.session.commit()
    logger.info(f"Password changed for user {user_id}")
    return True


def update_profile(user_id, payload):
    updates = {column: payload[key] for key, column in PROFILE_FIELDS.items() if key in payload}
    if not updates:
        raise ValidationError('No fields to update')
    user = _require_user(user_id)
    for column, value in updates.items():
        setattr(user, column, value)
    db.session.commit()
    logger.info(f"Profile updated for user {user_id}: {sorted(updates)}")
    return user


# --- Administration ---

def list_users():
    return User.query.order_by(User.created_at.desc()).all()


def create_user(email, password, first_name, last_name, role='user', is_active=True, phone=None):
    _validate_role(role)
    user = _insert_user(email, password, first_name, last_name, role=role, is_active=is_active, phone=phone)
    logger.info(f"Admin created user {email} with role {role} (id {user.id})")
    return user


def update_user(user_id, payload):
    updates = {key: payload[key] for key in ADMIN_EDITABLE_FIELDS if key in payload}
    password = payload.get('password')
    if isinstance(password, str) and password.strip():
        updates['password_hash'] = hash_password(password)
    if not updates:
        raise ValidationError('No valid fields to update')

    if 'role' in updates:
        _validate_role(updates['role'])
    if 'is_active' in updates:
        updates['is_active'] = parse_bool(updates['is_active'], default=True)

    user = _require_user(user_id, active_only=False)
    if 'email' in updates and updates['email'] != user.email:
        if not updates['email']:
            raise ValidationError('Email cannot be empty')
        if User.query.filter(User.email == updates['email'], User.id != user_id).first():
            raise ConflictError(DUPLICATE_EMAIL)

    for column, value in updates.items():
        setattr(user, column, value)
    if 'password_hash' in updates:
        # A reset password signs the user out everywhere
        UserSession.query.filter_by(user_id=user_id).delete()
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(DUPLICATE_EMAIL)
    logger.info(f"Admin updated user {user_id}: {sorted(k for k in updates if k != 'password_hash')}")
    return user


def set_role(user_id, role):
    _validate_role(role)
    user = _require_user(user_id, active_only=False)
    user.role = role
    db.session.commit()
    logger.info(f"Role of user {user_id} set to {role}")
    return user


def delete_user(user_id):
    """
    Hard-deletes a user. Favorites and sessions go first to satisfy the
    foreign keys; the whole sequence is one transaction.
    """
    if not get_user(user_id, active_only=False):
        raise NotFoundError('User not found')
    with unit_of_work() as s:
        favorites = s.query(UserFavorite).filter_by(user_id=user_id).delete()
        sessions = s.query(UserSession).filter_by(user_id=user_id).delete()
        s.query(Product).filter_by(created_by=user_id).update({'created_by': None})
        s.query(User).filter_by(id=user_id).delete()
    logger.info(f"User {user_id} hard deleted ({favorites} favorite(s), {sessions} session(s))")
    return True
