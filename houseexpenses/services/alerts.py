"""Alert emission on expense writes.

Called after an expense has been flushed, in the same session transaction,
so the alerts commit or roll back together with the expense. Alerts are never
deduplicated: every write that leaves a budget at or above its threshold
re-announces the status with a new row.
"""
import logging
from decimal import ROUND_HALF_UP, Decimal

from ..extensions import db
from ..models import Alert, Budget
from .budget_status import STATUS_EXCEEDED, STATUS_WARNING, evaluate
from .spending import SpendingStore

logger = logging.getLogger(__name__)


def budget_matches_expense(budget, subcategory_id) -> bool:
    """A whole-category budget, or an expense without subcategory, matches every budget of the category."""
    return (
        subcategory_id is None
        or budget.subcategory_id is None
        or budget.subcategory_id == subcategory_id
    )


def build_alert_message(alert_type, scope_label, percentage) -> str:
    shown = Decimal(percentage).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    if alert_type == STATUS_EXCEEDED:
        return f"Budget exceeded for {scope_label}! Currently at {shown}%"
    return f"Warning: {scope_label} is at {shown}% of budget"


def alert_for_budget(budget, reference_date, spending):
    """Return an unsaved Alert when the budget is in warning or exceeded, else None."""
    status = evaluate(budget, reference_date, spending)
    if status.status not in (STATUS_WARNING, STATUS_EXCEEDED):
        return None
    return Alert(
        user_id=budget.user_id,
        budget_id=budget.id,
        alert_type=status.status,
        message=build_alert_message(status.status, budget.scope_label, status.utilization_percentage),
        percentage=status.utilization_percentage,
    )


def on_expense_recorded(user_id, category_id, subcategory_id, expense_date, spending=None):
    """Re-evaluate the budgets an expense touches and add alerts to the session.

    The caller owns the transaction: nothing here commits.
    """
    spending = spending or SpendingStore()
    budgets = Budget.query.filter_by(user_id=user_id, category_id=category_id).order_by(Budget.id).all()
    alerts = []
    for budget in budgets:
        if not budget_matches_expense(budget, subcategory_id):
            continue
        alert = alert_for_budget(budget, expense_date, spending)
        if alert is None:
            continue
        db.session.add(alert)
        alerts.append(alert)
        logger.info("Created %s alert for user %s - %s", alert.alert_type, user_id, alert.message)
    if alerts:
        db.session.flush()
    return alerts
