# demiland/products/routes.py

import logging
from flask import request, g
from demiland.errors import ApiError, ValidationError
from demiland.utils import (
    authenticate_token, require_admin, get_json_payload, json_formdata,
    parse_bool, parse_int, parse_float,
    success_response, api_error_response, server_error_response,
)
from . import products_bp
from . import catalog
from .forms import ProductForm, ProductUpdateForm

logger = logging.getLogger(__name__)


def _filters_from_args(args, with_paging=True):
    filters = {}
    category = args.get('category')
    if category and category != 'all':
        filters['category'] = category
    if args.get('featured') is not None:
        filters['featured'] = parse_bool(args.get('featured'))
    if args.get('inStock') is not None:
        filters['in_stock'] = parse_bool(args.get('inStock'))
    if args.get('minPrice'):
        filters['min_price'] = parse_float(args.get('minPrice'))
    if args.get('maxPrice'):
        filters['max_price'] = parse_float(args.get('maxPrice'))
    if with_paging:
        filters['limit'] = parse_int(args.get('limit'))
        filters['offset'] = parse_int(args.get('offset'))
    return filters


def _validated_payload(form_class):
    data = catalog.normalize_payload(get_json_payload())
    form = form_class(json_formdata(data))
    if not form.validate():
        if 'name' in form.errors or 'category' in form.errors:
            raise ValidationError('Name and category are required', errors=form.errors)
        raise ValidationError('Invalid product data', errors=form.errors)
    return data


@products_bp.route('', methods=['GET'])
def list_products():
    try:
        filters = _filters_from_args(request.args)
        search = request.args.get('search')
        if search:
            products = catalog.search_products(search, **filters)
        else:
            products = catalog.list_products(**filters)
        data = [p.to_dict() for p in products]
        return success_response(data, count=len(data))
    except Exception as e:
        return server_error_response('Failed to fetch products', e)


@products_bp.route('/featured', methods=['GET'])
def featured_products():
    try:
        products = catalog.featured_products(limit=parse_int(request.args.get('limit')))
        return success_response([p.to_dict() for p in products])
    except Exception as e:
        return server_error_response('Failed to fetch featured products', e)


@products_bp.route('/category/<category>', methods=['GET'])
def products_by_category(category):
    try:
        products = catalog.products_by_category(
            category,
            limit=parse_int(request.args.get('limit')),
            offset=parse_int(request.args.get('offset')),
        )
        return success_response([p.to_dict() for p in products])
    except Exception as e:
        return server_error_response('Failed to fetch products by category', e)


@products_bp.route('/search/<query>', methods=['GET'])
def search_products(query):
    try:
        products = catalog.search_products(query, **_filters_from_args(request.args))
        return success_response([p.to_dict() for p in products])
    except Exception as e:
        return server_error_response('Failed to search products', e)


@products_bp.route('/<product_id>', methods=['GET'])
def get_product(product_id):
    try:
        return success_response(catalog.get_product(product_id).to_dict())
    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        return server_error_response('Failed to fetch product', e)


@products_bp.route('', methods=['POST'])
@authenticate_token
@require_admin
def create_product():
    try:
        data = _validated_payload(ProductForm)
        product = catalog.create_product(data, created_by=g.current_user['userId'])
        return success_response(product.to_dict(), 'Product created successfully', 201)
    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        return server_error_response('Failed to create product', e)


@products_bp.route('/<product_id>', methods=['PUT'])
@authenticate_token
@require_admin
def update_product(product_id):
    try:
        data = _validated_payload(ProductUpdateForm)
        product = catalog.update_product(product_id, data)
        return success_response(product.to_dict(), 'Product updated successfully')
    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        return server_error_response('Failed to update product', e)


@products_bp.route('/<product_id>', methods=['DELETE'])
@authenticate_token
@require_admin
def delete_product(product_id):
    try:
        logger.info(f"Admin {g.current_user['email']} deleting product {product_id}")
        catalog.delete_product(product_id)
        return success_response(message='Product deleted successfully')
    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        return server_error_response('Failed to delete product', e)
