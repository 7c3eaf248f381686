import logging

from flask import Blueprint, request
from flask_login import login_required, current_user
from ...api import ok, paginated
from ...errors import ValidationError
from ...extensions import db
from ...models import Expense, Category
from ...models.category import EXPENSE_TYPES
from ... import clock
from ...services.alerts import on_expense_recorded
from ...services.lookups import get_user_category, get_user_expense, get_user_subcategory
from ...validation import Payload, json_body

logger = logging.getLogger(__name__)

expenses_bp = Blueprint("expenses", __name__, url_prefix="/expenses")

MAX_BULK = 100


def _parse_expense(data, expense=None):
    """Validate an expense body. On update, an absent date or type keeps the stored one."""
    payload = Payload(data)
    fields = {
        "category_id": payload.integer("category_id"),
        "subcategory_id": payload.integer("subcategory_id", required=False),
        "amount": payload.money("amount"),
        "description": payload.string("description", required=False),
        "expense_date": payload.date("date", required=False),
        "expense_type": payload.choice(
            "expense_type", EXPENSE_TYPES, required=False,
            default=expense.expense_type if expense is not None else "monthly",
        ),
    }
    payload.check()
    if fields["expense_date"] is None:
        fields["expense_date"] = expense.expense_date if expense is not None else clock.today()
    get_user_category(current_user.id, fields["category_id"])
    if fields["subcategory_id"] is not None:
        get_user_subcategory(current_user.id, fields["subcategory_id"], fields["category_id"])
    return fields


def record_expense(user_id, fields):
    """Insert an expense and run the alert policy for it. The caller commits."""
    expense = Expense(user_id=user_id, **fields)
    db.session.add(expense)
    db.session.flush()
    alerts = on_expense_recorded(user_id, expense.category_id, expense.subcategory_id, expense.expense_date)
    logger.info("Created expense %s for user %s", expense.id, user_id)
    return expense, alerts


def _created(expense, alerts):
    data = expense.to_dict()
    data["alerts"] = [alert.to_dict() for alert in alerts]
    return data


@expenses_bp.route("", methods=["GET"])
@login_required
def list_expenses():
    args = Payload(request.args)
    start_date = args.date("start_date", required=False)
    end_date = args.date("end_date", required=False)
    category_id = args.integer("category_id", required=False)
    subcategory_id = args.integer("subcategory_id", required=False)
    args.check()

    query = Expense.query.join(Category, Expense.category_id == Category.id).filter(
        Expense.user_id == current_user.id,
        Category.is_active.is_(True),
    )
    if start_date:
        query = query.filter(Expense.expense_date >= start_date)
    if end_date:
        query = query.filter(Expense.expense_date <= end_date)
    if category_id:
        query = query.filter(Expense.category_id == category_id)
    if subcategory_id:
        query = query.filter(Expense.subcategory_id == subcategory_id)
    query = query.order_by(Expense.expense_date.desc(), Expense.id.desc())
    return paginated(query, Expense.to_dict)


@expenses_bp.route("/<int:expense_id>", methods=["GET"])
@login_required
def get_expense(expense_id):
    return ok(get_user_expense(current_user.id, expense_id).to_dict())


@expenses_bp.route("", methods=["POST"])
@login_required
def create_expense():
    fields = _parse_expense(json_body())
    try:
        expense, alerts = record_expense(current_user.id, fields)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return ok(_created(expense, alerts), 201)


@expenses_bp.route("/bulk", methods=["POST"])
@login_required
def create_bulk_expenses():
    data = request.get_json(silent=True)
    if not isinstance(data, list) or not data:
        raise ValidationError({"body": "A non-empty JSON array is required"})
    if len(data) > MAX_BULK:
        raise ValidationError({"body": f"At most {MAX_BULK} expenses per request"})

    parsed, errors = [], {}
    for index, item in enumerate(data):
        try:
            parsed.append(_parse_expense(item if isinstance(item, dict) else {}))
        except ValidationError as ex:
            errors[str(index)] = ex.details
    if errors:
        raise ValidationError(errors)

    created = []
    try:
        for fields in parsed:
            created.append(record_expense(current_user.id, fields))
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return ok([_created(expense, alerts) for expense, alerts in created], 201)


@expenses_bp.route("/<int:expense_id>", methods=["PUT"])
@login_required
def update_expense(expense_id):
    expense = get_user_expense(current_user.id, expense_id)
    fields = _parse_expense(json_body(), expense)
    for key, value in fields.items():
        setattr(expense, key, value)
    db.session.commit()
    logger.info("Updated expense %s for user %s", expense.id, current_user.id)
    return ok(expense.to_dict())


@expenses_bp.route("/<int:expense_id>", methods=["DELETE"])
@login_required
def delete_expense(expense_id):
    expense = get_user_expense(current_user.id, expense_id)
    db.session.delete(expense)
    db.session.commit()
    logger.info("Deleted expense %s for user %s", expense_id, current_user.id)
    return ok()
