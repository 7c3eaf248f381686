import logging

from flask import Blueprint, current_app, request
from flask_login import login_required, current_user
from ...api import ok
from ...extensions import db
from ...models import Budget
from ...models.budget import PERIODS
from ... import clock
from ...services.budget_status import evaluate_all, evaluate_budget_status, status_to_dict
from ...services.lookups import get_user_budget, get_user_category, get_user_subcategory
from ...validation import Payload, json_body

logger = logging.getLogger(__name__)

budgets_bp = Blueprint("budgets", __name__, url_prefix="/budgets")


def _reference_date():
    args = Payload(request.args)
    reference_date = args.date("date", required=False)
    args.check()
    return reference_date or clock.today()


@budgets_bp.route("", methods=["GET"])
@login_required
def list_budgets():
    budgets = Budget.query.filter_by(user_id=current_user.id).order_by(Budget.id).all()
    return ok([b.to_dict() for b in budgets])


@budgets_bp.route("/<int:budget_id>", methods=["GET"])
@login_required
def get_budget(budget_id):
    return ok(get_user_budget(current_user.id, budget_id).to_dict())


@budgets_bp.route("", methods=["POST"])
@login_required
def create_budget():
    payload = Payload(json_body())
    category_id = payload.integer("category_id")
    subcategory_id = payload.integer("subcategory_id", required=False)
    limit_amount = payload.money("limit_amount")
    warning_threshold = payload.integer(
        "warning_threshold", required=False, minimum=1, maximum=100,
        default=current_app.config["DEFAULT_WARNING_THRESHOLD"],
    )
    period = payload.choice("period", PERIODS)
    payload.check()

    get_user_category(current_user.id, category_id)
    if subcategory_id is not None:
        get_user_subcategory(current_user.id, subcategory_id, category_id)

    budget = Budget(user_id=current_user.id, category_id=category_id, subcategory_id=subcategory_id,
                    limit_amount=limit_amount, warning_threshold=warning_threshold, period=period)
    db.session.add(budget)
    db.session.commit()
    logger.info("Created budget %s for user %s", budget.id, current_user.id)
    return ok(budget.to_dict(), 201)


@budgets_bp.route("/<int:budget_id>", methods=["PUT"])
@login_required
def update_budget(budget_id):
    budget = get_user_budget(current_user.id, budget_id)
    payload = Payload(json_body())
    limit_amount = payload.money("limit_amount")
    warning_threshold = payload.integer("warning_threshold", required=False, minimum=1, maximum=100)
    payload.check()

    budget.limit_amount = limit_amount
    if warning_threshold is not None:
        budget.warning_threshold = warning_threshold
    db.session.commit()
    logger.info("Updated budget %s for user %s", budget_id, current_user.id)
    return ok(budget.to_dict())


@budgets_bp.route("/<int:budget_id>", methods=["DELETE"])
@login_required
def delete_budget(budget_id):
    budget = get_user_budget(current_user.id, budget_id)
    db.session.delete(budget)
    db.session.commit()
    logger.info("Deleted budget %s for user %s", budget_id, current_user.id)
    return ok()


@budgets_bp.route("/<int:budget_id>/status", methods=["GET"])
@login_required
def budget_status(budget_id):
    budget, status = evaluate_budget_status(current_user.id, budget_id, _reference_date())
    return ok(status_to_dict(budget, status))


@budgets_bp.route("/status", methods=["GET"])
@login_required
def all_budget_statuses():
    results = evaluate_all(current_user.id, _reference_date())
    return ok([status_to_dict(budget, status) for budget, status in results])
