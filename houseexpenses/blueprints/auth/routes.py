import logging

from flask import Blueprint
from flask_login import login_user, logout_user, login_required, current_user
from werkzeug.exceptions import Unauthorized
from ...api import ok
from ...errors import DuplicateResource
from ...extensions import db
from ...models import User, Category, SubCategory
from ...validation import Payload, json_body

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")

# name, icon, color, expense type, subcategories as (name, is_mandatory)
DEFAULT_CATEGORIES = [
    ("Housing", "home", "#3498DB", "monthly", [("Rent", True), ("Electricity", True), ("Water", True)]),
    ("Groceries", "cart", "#2ECC71", "monthly", [("Supermarket", False)]),
    ("Transport", "car", "#E67E22", "monthly", [("Fuel", False), ("Public transport", False)]),
    ("Leisure", "film", "#9B59B6", "monthly", []),
    ("Insurance", "shield", "#34495E", "annual", [("Home insurance", True), ("Car insurance", True)]),
]


def seed_default_categories(user_id):
    for order, (name, icon, color, expense_type, subs) in enumerate(DEFAULT_CATEGORIES):
        category = Category(user_id=user_id, name=name, icon=icon, color=color,
                            expense_type=expense_type, display_order=order)
        db.session.add(category)
        db.session.flush()  # get category.id without full commit
        for sub_order, (sub_name, mandatory) in enumerate(subs):
            db.session.add(SubCategory(category_id=category.id, name=sub_name,
                                       is_mandatory=mandatory, display_order=sub_order))


@auth_bp.route("/register", methods=["POST"])
def register():
    payload = Payload(json_body())
    name = payload.string("name", max_length=120)
    email = payload.string("email", max_length=255)
    password = payload.string("password")
    payload.check()
    email = email.lower()
    if User.query.filter_by(email=email).first():
        raise DuplicateResource("User", "email", email)
    user = User(name=name, email=email)
    user.set_password(password)
    db.session.add(user)
    db.session.flush()
    seed_default_categories(user.id)
    db.session.commit()
    logger.info("Registered user %s", user.id)
    return ok(user.to_dict(), 201)


@auth_bp.route("/login", methods=["POST"])
def login():
    payload = Payload(json_body())
    email = payload.string("email")
    password = payload.string("password")
    payload.check()
    user = User.query.filter_by(email=email.lower()).first()
    if user and user.check_password(password):
        login_user(user)
        logger.info("User %s logged in", user.id)
        return ok(user.to_dict())
    logger.warning("Failed login for %s", email)
    raise Unauthorized("Invalid credentials")


@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return ok()


@auth_bp.route("/me")
@login_required
def me():
    return ok(current_user.to_dict())
