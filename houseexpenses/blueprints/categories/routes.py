import logging
import re

from flask import Blueprint, request
from flask_login import login_required, current_user
from ...api import ok
from ...errors import DuplicateResource
from ...extensions import db
from ...models import Category, SubCategory
from ...models.category import EXPENSE_TYPES
from ...services.lookups import get_user_category, get_user_subcategory
from ...validation import Payload, json_body

logger = logging.getLogger(__name__)

categories_bp = Blueprint("categories", __name__, url_prefix="/categories")

HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


def _same_type_categories(user_id, expense_type):
    return (
        Category.query.filter_by(user_id=user_id, expense_type=expense_type, is_active=True)
        .order_by(Category.display_order, Category.id)
        .all()
    )


def _name_taken(user_id, name, exclude_id=None):
    query = Category.query.filter(
        Category.user_id == user_id,
        Category.is_active.is_(True),
        db.func.lower(Category.name) == name.lower(),
    )
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    return query.first() is not None


def _subcategory_fields(payload):
    return {
        "name": payload.string("name", max_length=100),
        "icon": payload.string("icon", required=False, max_length=50),
        "display_order": payload.integer("display_order", required=False, minimum=0),
        "budget_limit": payload.money("budget_limit", required=False, positive=False),
        "is_mandatory": payload.boolean("is_mandatory"),
        "fixed_amount": payload.money("fixed_amount", required=False, positive=False),
    }


@categories_bp.route("", methods=["GET"])
@login_required
def list_categories():
    args = Payload(request.args)
    expense_type = args.choice("expense_type", EXPENSE_TYPES, required=False)
    args.check()
    query = Category.query.filter_by(user_id=current_user.id, is_active=True)
    if expense_type:
        query = query.filter_by(expense_type=expense_type)
    categories = query.order_by(Category.expense_type, Category.display_order, Category.id).all()
    return ok([c.to_dict() for c in categories])


@categories_bp.route("", methods=["POST"])
@login_required
def create_category():
    payload = Payload(json_body())
    name = payload.string("name", max_length=100)
    icon = payload.string("icon", max_length=50)
    color = payload.string("color", pattern=HEX_COLOR)
    expense_type = payload.choice("expense_type", EXPENSE_TYPES)
    display_order = payload.integer("display_order", required=False, minimum=0)
    payload.check()

    if _name_taken(current_user.id, name):
        raise DuplicateResource("Category", "name", name)
    if display_order is None:
        # append to the end of its expense-type group
        display_order = len(_same_type_categories(current_user.id, expense_type))

    category = Category(user_id=current_user.id, name=name, icon=icon, color=color,
                        expense_type=expense_type, display_order=display_order)
    db.session.add(category)
    db.session.commit()
    logger.info("Created category %s for user %s at position %s", category.id, current_user.id, display_order)
    return ok(category.to_dict(), 201)


@categories_bp.route("/<int:category_id>", methods=["GET"])
@login_required
def get_category(category_id):
    return ok(get_user_category(current_user.id, category_id).to_dict())


@categories_bp.route("/<int:category_id>", methods=["PUT"])
@login_required
def update_category(category_id):
    category = get_user_category(current_user.id, category_id)
    payload = Payload(json_body())
    name = payload.string("name", max_length=100)
    icon = payload.string("icon", max_length=50)
    color = payload.string("color", pattern=HEX_COLOR)
    expense_type = payload.choice("expense_type", EXPENSE_TYPES)
    display_order = payload.integer("display_order", required=False, minimum=0)
    payload.check()

    if _name_taken(current_user.id, name, exclude_id=category.id):
        raise DuplicateResource("Category", "name", name)
    category.name = name
    category.icon = icon
    category.color = color
    category.expense_type = expense_type
    if display_order is not None:
        category.display_order = display_order
    db.session.commit()
    logger.info("Updated category %s for user %s", category_id, current_user.id)
    return ok(category.to_dict())


@categories_bp.route("/<int:category_id>", methods=["DELETE"])
@login_required
def delete_category(category_id):
    category = get_user_category(current_user.id, category_id)
    # soft delete: expenses and budgets keep pointing at the row
    category.is_active = False
    db.session.commit()
    logger.info("Soft deleted category %s for user %s", category_id, current_user.id)
    return ok()


@categories_bp.route("/<int:category_id>/reorder", methods=["POST"])
@login_required
def reorder_category(category_id):
    category = get_user_category(current_user.id, category_id)
    payload = Payload(json_body())
    new_order = payload.integer("display_order", minimum=0)
    payload.check()

    old_order = category.display_order
    for sibling in _same_type_categories(current_user.id, category.expense_type):
        current = sibling.display_order
        if sibling.id == category.id:
            sibling.display_order = new_order
        elif old_order < new_order and old_order < current <= new_order:
            sibling.display_order = current - 1
        elif old_order > new_order and new_order <= current < old_order:
            sibling.display_order = current + 1
    db.session.commit()
    logger.info("Reordered category %s to position %s for user %s", category_id, new_order, current_user.id)
    return ok(category.to_dict())


@categories_bp.route("/<int:category_id>/subcategories", methods=["POST"])
@login_required
def create_subcategory(category_id):
    category = get_user_category(current_user.id, category_id)
    payload = Payload(json_body())
    fields = _subcategory_fields(payload)
    payload.check()

    exists = SubCategory.query.filter(
        SubCategory.category_id == category.id,
        SubCategory.is_active.is_(True),
        db.func.lower(SubCategory.name) == fields["name"].lower(),
    ).first()
    if exists:
        raise DuplicateResource("SubCategory", "name", fields["name"])
    if fields["display_order"] is None:
        fields["display_order"] = 0
    subcategory = SubCategory(category_id=category.id, **fields)
    db.session.add(subcategory)
    db.session.commit()
    logger.info("Created subcategory %s for category %s", subcategory.id, category.id)
    return ok(subcategory.to_dict(), 201)


@categories_bp.route("/subcategories/<int:subcategory_id>", methods=["PUT"])
@login_required
def update_subcategory(subcategory_id):
    subcategory = get_user_subcategory(current_user.id, subcategory_id)
    payload = Payload(json_body())
    fields = _subcategory_fields(payload)
    payload.check()

    if fields["display_order"] is None:
        fields.pop("display_order")
    for key, value in fields.items():
        setattr(subcategory, key, value)
    db.session.commit()
    logger.info("Updated subcategory %s", subcategory_id)
    return ok(subcategory.to_dict())


@categories_bp.route("/subcategories/<int:subcategory_id>", methods=["DELETE"])
@login_required
def delete_subcategory(subcategory_id):
    subcategory = get_user_subcategory(current_user.id, subcategory_id)
    subcategory.is_active = False
    db.session.commit()
    logger.info("Soft deleted subcategory %s", subcategory_id)
    return ok()
