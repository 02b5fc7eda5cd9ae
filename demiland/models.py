import uuid
from database import db
from sqlalchemy.orm import relationship
from datetime import datetime

ROLES = ('user', 'admin', 'super-admin')
ADMIN_ROLES = ('admin', 'super-admin')


def _new_id():
    return str(uuid.uuid4())


def _isoformat(value):
    return value.isoformat() if value else None


class User(db.Model):
    __tablename__ = 'users'
    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    email = db.Column(db.String(255), index=True, unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    first_name = db.Column(db.String(100))
    last_name = db.Column(db.String(100))
    phone = db.Column(db.String(30))
    address = db.Column(db.Text)
    profile_picture = db.Column(db.String(500))
    role = db.Column(db.String(20), default='user', nullable=False)
    # Email verification is not a gate; every account is created verified.
    email_verified = db.Column(db.Boolean, default=True, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    last_login = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    sessions = relationship('UserSession', backref='user', lazy=True)
    favorites = relationship('UserFavorite', backref='user', lazy=True)

    @property
    def full_name(self):
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'first_name': self.first_name or '',
            'last_name': self.last_name or '',
            'phone': self.phone or '',
            'address': self.address,
            'profile_picture': self.profile_picture,
            'role': self.role or 'user',
            'email_verified': bool(self.email_verified),
            'is_active': bool(self.is_active),
            'last_login': _isoformat(self.last_login),
            'created_at': _isoformat(self.created_at),
            'updated_at': _isoformat(self.updated_at),
        }

    def to_admin_dict(self):
        """Adds the display fields the admin dashboard reads."""
        data = self.to_dict()
        data['name'] = self.full_name or 'Unknown User'
        data['joinDate'] = self.created_at.date().isoformat() if self.created_at else None
        data['status'] = 'active' if self.is_active else 'inactive'
        return data

    def __repr__(self):
        return f'<User {self.email}>'


class UserSession(db.Model):
    __tablename__ = 'user_sessions'
    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False, index=True)
    session_token = db.Column(db.String(255), unique=True, nullable=False)  # token jti
    expires_at = db.Column(db.DateTime, nullable=False)
    ip_address = db.Column(db.String(45))
    user_agent = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f'<UserSession {self.user_id} until {self.expires_at}>'


class Category(db.Model):
    __tablename__ = 'categories'
    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    name = db.Column(db.String(100), unique=True, nullable=False)
    description = db.Column(db.Text)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'is_active': bool(self.is_active),
            'created_at': _isoformat(self.created_at),
        }

    def __repr__(self):
        return f'<Category {self.name}>'


class Product(db.Model):
    __tablename__ = 'products'
    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    category = db.Column(db.String(100), nullable=False, index=True)
    price = db.Column(db.Numeric(10, 2), nullable=True)
    image = db.Column(db.String(500))
    images = db.Column(db.JSON, default=list)
    features = db.Column(db.JSON, default=list)
    ingredients = db.Column(db.Text)
    specifications = db.Column(db.JSON, default=dict)
    stock_quantity = db.Column(db.Integer, default=0, nullable=False)
    in_stock = db.Column(db.Boolean, default=True, nullable=False)
    featured = db.Column(db.Boolean, default=False, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_by = db.Column(db.String(36), db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    favorites = relationship('UserFavorite', backref='product', lazy=True)

    def to_dict(self):
        data = {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'category': self.category,
            'price': float(self.price) if self.price is not None else None,
            'image': self.image,
            'images': list(self.images or []),
            'features': list(self.features or []),
            'ingredients': self.ingredients,
            'specifications': dict(self.specifications or {}),
            'stock_quantity': self.stock_quantity or 0,
            'in_stock': bool(self.in_stock),
            'featured': bool(self.featured),
            'is_active': bool(self.is_active),
            'created_by': self.created_by,
            'created_at': _isoformat(self.created_at),
            'updated_at': _isoformat(self.updated_at),
        }
        # camelCase aliases consumed by the storefront
        data['inStock'] = data['in_stock']
        data['stockQuantity'] = data['stock_quantity']
        data['isActive'] = data['is_active']
        data['createdAt'] = data['created_at']
        data['updatedAt'] = data['updated_at']
        data['image_url'] = data['image']
        return data

    def __repr__(self):
        return f'<Product {self.name}>'


class UserFavorite(db.Model):
    __tablename__ = 'user_favorites'
    __table_args__ = (db.UniqueConstraint('user_id', 'product_id', name='uq_user_favorite'),)
    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False, index=True)
    product_id = db.Column(db.String(36), db.ForeignKey('products.id'), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f'<UserFavorite {self.user_id} -> {self.product_id}>'


class AnalyticsEvent(db.Model):
    __tablename__ = 'analytics_events'
    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    event_type = db.Column(db.String(100), nullable=False, index=True)
    event_data = db.Column(db.JSON, default=dict)
    # Not a foreign key: events outlive the accounts that produced them.
    user_id = db.Column(db.String(36), nullable=True, index=True)
    ip_address = db.Column(db.String(45))
    user_agent = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'event_type': self.event_type,
            'event_data': dict(self.event_data or {}),
            'user_id': self.user_id,
            'ip_address': self.ip_address,
            'user_agent': self.user_agent,
            'created_at': _isoformat(self.created_at),
        }

    def __repr__(self):
        return f'<AnalyticsEvent {self.event_type}>'
