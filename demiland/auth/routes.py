# demiland/auth/routes.py

import logging
from flask import g
from demiland.errors import ApiError
from demiland.models import ADMIN_ROLES
from demiland.utils import (
    authenticate_token, require_role, get_json_payload, validate_form, parse_bool,
    success_response, error_response, api_error_response, server_error_response,
)
from . import auth_bp
from . import accounts
from .forms import RegisterForm, LoginForm, ChangePasswordForm, AdminUserForm

logger = logging.getLogger(__name__)


@auth_bp.route('/register', methods=['POST'])
def register():
    try:
        data = get_json_payload()
        form = validate_form(RegisterForm, data, 'All fields are required')
        user, token = accounts.register_user(
            form.email.data, form.password.data, form.firstName.data, form.lastName.data
        )
        return success_response({'user': user.to_dict(), 'token': token}, 'User registered successfully', 201)
    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        return server_error_response('Registration failed', e)


@auth_bp.route('/login', methods=['POST'])
def login():
    try:
        data = get_json_payload()
        form = validate_form(LoginForm, data, 'Email and password are required')
        user, token = accounts.login(form.email.data, form.password.data)
        return success_response({'user': user.to_dict(), 'token': token}, 'Login successful')
    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        return server_error_response('Login failed', e)


@auth_bp.route('/logout', methods=['POST'])
@authenticate_token
def logout():
    try:
        accounts.logout(g.token_jti)
        return success_response(message='Logged out successfully')
    except Exception as e:
        return server_error_response('Logout failed', e)


@auth_bp.route('/profile', methods=['GET'])
@authenticate_token
def get_profile():
    try:
        user = accounts.get_user(g.current_user['userId'])
        if not user:
            return error_response('User not found', 404)
        return success_response(user.to_dict())
    except Exception as e:
        return server_error_response('Failed to fetch profile', e)


@auth_bp.route('/profile', methods=['PUT'])
@authenticate_token
def update_profile():
    try:
        user = accounts.update_profile(g.current_user['userId'], get_json_payload())
        return success_response(user.to_dict(), 'Profile updated successfully')
    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        return server_error_response('Failed to update profile', e)


@auth_bp.route('/change-password', methods=['PUT'])
@authenticate_token
def change_password():
    try:
        data = get_json_payload()
        form = validate_form(ChangePasswordForm, data, 'Current password and new password are required')
        accounts.change_password(g.current_user['userId'], form.currentPassword.data, form.newPassword.data)
        return success_response(message='Password changed successfully')
    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        return server_error_response('Failed to change password', e)


@auth_bp.route('/verify', methods=['GET'])
@authenticate_token
def verify():
    return success_response(dict(g.current_user))


# Admin routes

@auth_bp.route('/admin/users', methods=['POST'])
@authenticate_token
@require_role(ADMIN_ROLES)
def admin_create_user():
    try:
        data = get_json_payload()
        form = validate_form(AdminUserForm, data, 'Email, password, first name, and last name are required')
        logger.info(f"Admin {g.current_user['email']} creating user {form.email.data} with role {form.role.data}")
        user = accounts.create_user(
            form.email.data,
            form.password.data,
            form.first_name.data,
            form.last_name.data,
            role=form.role.data or 'user',
            is_active=parse_bool(data.get('is_active'), default=True),
            phone=form.phone.data,
        )
        return success_response(user.to_dict(), 'User created successfully', 201)
    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        return server_error_response('User creation failed', e)


@auth_bp.route('/users', methods=['GET'])
@authenticate_token
@require_role(ADMIN_ROLES)
def list_users():
    try:
        users = accounts.list_users()
        return success_response([user.to_admin_dict() for user in users])
    except Exception as e:
        return server_error_response('Failed to fetch users', e)


@auth_bp.route('/users/<user_id>', methods=['PUT'])
@authenticate_token
@require_role(ADMIN_ROLES)
def admin_update_user(user_id):
    try:
        logger.info(f"Admin {g.current_user['email']} updating user {user_id}")
        user = accounts.update_user(user_id, get_json_payload())
        return success_response(user.to_dict(), 'User updated successfully')
    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        return server_error_response('User update failed', e)


@auth_bp.route('/users/<user_id>', methods=['DELETE'])
@authenticate_token
@require_role(ADMIN_ROLES)
def admin_delete_user(user_id):
    if user_id == g.current_user['userId']:
        return error_response('Cannot delete your own account', 400)
    try:
        logger.info(f"Admin {g.current_user['email']} deleting user {user_id}")
        accounts.delete_user(user_id)
        return success_response(message='User deleted successfully')
    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        return server_error_response('User deletion failed', e)
