# demiland/users/routes.py

import logging
from flask import g
from demiland.auth import accounts
from demiland.errors import ApiError
from demiland.products import catalog
from demiland.utils import (
    authenticate_token, require_admin, get_json_payload,
    success_response, api_error_response, server_error_response,
)
from . import users_bp
from . import favorites

logger = logging.getLogger(__name__)


@users_bp.route('/categories', methods=['GET'])
def list_categories():
    try:
        return success_response([c.to_dict() for c in catalog.list_categories()])
    except Exception as e:
        return server_error_response('Failed to fetch categories', e)


# User favorites management

@users_bp.route('/favorites', methods=['GET'])
@authenticate_token
def list_favorites():
    try:
        return success_response(favorites.list_favorites(g.current_user['userId']))
    except Exception as e:
        return server_error_response('Failed to fetch favorites', e)


@users_bp.route('/favorites/<product_id>', methods=['POST'])
@authenticate_token
def add_favorite(product_id):
    try:
        created = favorites.add_favorite(g.current_user['userId'], product_id)
        message = 'Product added to favorites' if created else 'Product already in favorites'
        return success_response(message=message, status=201 if created else 200)
    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        return server_error_response('Failed to add favorite', e)


@users_bp.route('/favorites/<product_id>', methods=['DELETE'])
@authenticate_token
def remove_favorite(product_id):
    try:
        favorites.remove_favorite(g.current_user['userId'], product_id)
        return success_response(message='Product removed from favorites')
    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        return server_error_response('Failed to remove favorite', e)


# Admin endpoints

@users_bp.route('', methods=['GET'])
@authenticate_token
@require_admin
def list_users():
    try:
        return success_response([user.to_admin_dict() for user in accounts.list_users()])
    except Exception as e:
        return server_error_response('Failed to fetch users', e)


@users_bp.route('/<user_id>/role', methods=['PUT'])
@authenticate_token
@require_admin
def update_user_role(user_id):
    try:
        role = get_json_payload().get('role')
        logger.info(f"Admin {g.current_user['email']} setting role of {user_id} to {role}")
        user = accounts.set_role(user_id, role)
        return success_response(user.to_dict(), 'User role updated successfully')
    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        return server_error_response('Failed to update user role', e)
