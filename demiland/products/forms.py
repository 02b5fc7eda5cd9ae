from wtforms import Form, StringField, DecimalField, IntegerField
from wtforms.validators import DataRequired, Optional, NumberRange


class ProductForm(Form):
    name = StringField('Name', validators=[DataRequired()])
    category = StringField('Category', validators=[DataRequired()])
    price = DecimalField('Price', validators=[Optional(), NumberRange(min=0)])
    stock_quantity = IntegerField('Stock Quantity', validators=[Optional(), NumberRange(min=0)])


class ProductUpdateForm(ProductForm):
    name = StringField('Name', validators=[Optional()])
    category = StringField('Category', validators=[Optional()])
