# demiland/products/catalog.py

import logging
from decimal import Decimal, InvalidOperation
from sqlalchemy import func, or_
from database import db, unit_of_work
from demiland.errors import ValidationError, NotFoundError
from demiland.imagekit import get_imagekit_client
from demiland.models import Category, Product, UserFavorite
from demiland.utils import parse_bool

logger = logging.getLogger(__name__)

PRODUCT_FIELDS = (
    'name', 'description', 'category', 'price', 'image', 'images', 'features',
    'ingredients', 'specifications', 'stock_quantity', 'in_stock', 'featured', 'is_active',
)

# Frontend spellings of storage columns
FIELD_ALIASES = {
    'inStock': 'in_stock',
    'stockQuantity': 'stock_quantity',
    'isActive': 'is_active',
    'image_url': 'image',
}

DEFAULTS = {
    'images': [],
    'features': [],
    'specifications': {},
    'stock_quantity': 0,
    'in_stock': True,
    'featured': False,
    'is_active': True,
}


def normalize_payload(payload):
    """
    Maps camelCase aliases onto storage columns and drops unknown keys.
    When both spellings are sent, the storage spelling wins.
    """
    data = {}
    for key, value in payload.items():
        column = FIELD_ALIASES.get(key, key)
        if column not in PRODUCT_FIELDS:
            continue
        if key != column and column in payload:
            continue
        data[column] = value
    return data


def _coerce(data, partial=False):
    result = {}
    for column, value in data.items():
        if value is None and column in DEFAULTS:
            if partial:
                continue
            value = DEFAULTS[column]

        if column in ('name', 'category'):
            value = str(value).strip() if value is not None else ''
            if not value:
                raise ValidationError('Name and category are required')
        elif column == 'price' and value is not None:
            try:
                value = Decimal(str(value))
            except (InvalidOperation, ValueError):
                raise ValidationError('Price must be a number')
            if value < 0:
                raise ValidationError('Price cannot be negative')
        elif column == 'stock_quantity':
            try:
                value = int(value)
            except (TypeError, ValueError):
                raise ValidationError('Stock quantity must be an integer')
            if value < 0:
                raise ValidationError('Stock quantity cannot be negative')
        elif column in ('in_stock', 'featured', 'is_active'):
            value = parse_bool(value, default=DEFAULTS[column])
        elif column in ('images', 'features'):
            if not isinstance(value, list):
                raise ValidationError(f'{column} must be a list')
        elif column == 'specifications':
            if not isinstance(value, dict):
                raise ValidationError('specifications must be an object')
        result[column] = value
    return result


def list_products(category=None, featured=None, in_stock=None, search=None,
                  min_price=None, max_price=None, limit=None, offset=None):
    """Active products matching every given filter, newest first."""
    query = Product.query.filter_by(is_active=True)

    # Categories match case-insensitively on the whole name everywhere.
    if category and category != 'all':
        query = query.filter(func.lower(Product.category) == category.lower())
    if featured is not None:
        query = query.filter_by(featured=featured)
    if in_stock is not None:
        query = query.filter_by(in_stock=in_stock)
    if search:
        pattern = f'%{search}%'
        query = query.filter(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))
    if min_price is not None:
        query = query.filter(Product.price >= min_price)
    if max_price is not None:
        query = query.filter(Product.price <= max_price)

    query = query.order_by(Product.created_at.desc())
    if offset and offset > 0:
        query = query.offset(offset)
    if limit and limit > 0:
        query = query.limit(limit)
    return query.all()


def featured_products(limit=None):
    return list_products(featured=True, limit=limit)


def products_by_category(category, limit=None, offset=None):
    return list_products(category=category, limit=limit, offset=offset)


def search_products(text, **filters):
    return list_products(search=text, **filters)


def list_categories():
    return Category.query.filter_by(is_active=True).order_by(Category.name.asc()).all()


def get_product(product_id):
    product = Product.query.filter_by(id=product_id, is_active=True).first()
    if not product:
        raise NotFoundError('Product not found')
    return product


def create_product(payload, created_by=None):
    data = normalize_payload(payload)
    if not data.get('name') or not data.get('category'):
        raise ValidationError('Name and category are required')
    values = dict(DEFAULTS)
    values.update(_coerce(data))
    product = Product(created_by=created_by, **values)
    db.session.add(product)
    db.session.commit()
    logger.info(f"Product created: {product.name} ({product.id}) in {product.category}")
    return product


def update_product(product_id, payload):
    """Writes only the fields present in the payload; an empty payload is rejected."""
    updates = _coerce(normalize_payload(payload), partial=True)
    if not updates:
        raise ValidationError('No fields to update')
    product = db.session.get(Product, product_id)
    if not product:
        raise NotFoundError('Product not found')
    for column, value in updates.items():
        setattr(product, column, value)
    db.session.commit()
    logger.info(f"Product updated: {product_id} {sorted(updates)}")
    return product


def delete_product(product_id):
    """
    Hard-deletes the product and its favorite rows, then removes the hosted
    image. Image cleanup failures are logged and never fail the delete.
    """
    product = db.session.get(Product, product_id)
    if not product:
        raise NotFoundError('Product not found')
    image_url = product.image

    with unit_of_work() as s:
        s.query(UserFavorite).filter_by(product_id=product_id).delete()
        s.query(Product).filter_by(id=product_id).delete()
    logger.info(f"Product {product_id} deleted from database")

    if not image_url:
        logger.info("No image to delete from ImageKit")
        return True
    try:
        if get_imagekit_client().delete_image_by_url(image_url):
            logger.info(f"Image deleted from ImageKit: {image_url}")
    except Exception as e:
        logger.warning(f"ImageKit deletion error (non-blocking): {str(e)}")
    return True
