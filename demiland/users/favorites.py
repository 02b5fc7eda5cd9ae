# demiland/users/favorites.py

import logging
from sqlalchemy.exc import IntegrityError
from database import db
from demiland.errors import NotFoundError
from demiland.models import Product, UserFavorite

logger = logging.getLogger(__name__)


def list_favorites(user_id):
    """Favorites whose product is still active, newest favorite first."""
    rows = (
        db.session.query(UserFavorite, Product)
        .join(Product, UserFavorite.product_id == Product.id)
        .filter(UserFavorite.user_id == user_id)
        .filter(Product.is_active.is_(True))
        .order_by(UserFavorite.created_at.desc())
        .all()
    )
    return [{'product_id': favorite.product_id, 'products': product.to_dict()} for favorite, product in rows]


def add_favorite(user_id, product_id):
    """Returns True when a new favorite was stored, False when it already existed."""
    if not Product.query.filter_by(id=product_id, is_active=True).first():
        raise NotFoundError('Product not found')
    if UserFavorite.query.filter_by(user_id=user_id, product_id=product_id).first():
        return False
    db.session.add(UserFavorite(user_id=user_id, product_id=product_id))
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent add of the same favorite
        db.session.rollback()
        return False
    logger.info(f"User {user_id} favorited product {product_id}")
    return True


def remove_favorite(user_id, product_id):
    deleted = UserFavorite.query.filter_by(user_id=user_id, product_id=product_id).delete()
    db.session.commit()
    if not deleted:
        raise NotFoundError('Favorite not found')
    logger.info(f"User {user_id} removed favorite {product_id}")
    return True
