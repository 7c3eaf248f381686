"""Budget status evaluation.

A budget's status is derived on demand from its period window and the
spending recorded in it; nothing is stored. Classification is
boundary-inclusive: utilization equal to the warning threshold is a
``warning`` and utilization equal to 100 is ``exceeded``.
"""
import logging
from collections import namedtuple
from decimal import ROUND_HALF_UP, Decimal

from ..models import Budget
from .lookups import get_user_budget
from .periods import days_remaining, window_for
from .spending import CENT, SpendingStore

logger = logging.getLogger(__name__)

HUNDRED = Decimal(100)

STATUS_OK = "ok"
STATUS_WARNING = "warning"
STATUS_EXCEEDED = "exceeded"

BudgetStatus = namedtuple(
    "BudgetStatus",
    "current_spending remaining_amount utilization_percentage status days_remaining start end",
)


def utilization(spent, limit) -> Decimal:
    """Spending as a percentage of ``limit``, 2 decimals, half-up; 0 for a non-positive limit."""
    limit = Decimal(limit)
    if limit <= 0:
        return Decimal("0.00")
    return (Decimal(spent) * HUNDRED / limit).quantize(CENT, rounding=ROUND_HALF_UP)


def classify(percentage, warning_threshold) -> str:
    if percentage >= HUNDRED:
        return STATUS_EXCEEDED
    if percentage >= Decimal(warning_threshold):
        return STATUS_WARNING
    return STATUS_OK


def current_spending(budget, start, end, spending) -> Decimal:
    if budget.subcategory_id is not None:
        return spending.sum_for_subcategory(budget.user_id, budget.subcategory_id, start, end)
    return spending.sum_for_category(budget.user_id, budget.category_id, start, end)


def evaluate(budget, reference_date, spending) -> BudgetStatus:
    """Evaluate ``budget`` for the period window that contains ``reference_date``."""
    start, end = window_for(budget.period, reference_date)
    spent = current_spending(budget, start, end, spending)
    limit = Decimal(budget.limit_amount)
    percentage = utilization(spent, limit)
    return BudgetStatus(
        current_spending=spent,
        remaining_amount=limit - spent,
        utilization_percentage=percentage,
        status=classify(percentage, budget.warning_threshold),
        days_remaining=days_remaining(budget.period, reference_date),
        start=start,
        end=end,
    )


def evaluate_budget_status(user_id, budget_id, reference_date, spending=None):
    budget = get_user_budget(user_id, budget_id)
    return budget, evaluate(budget, reference_date, spending or SpendingStore())


def evaluate_all(user_id, reference_date, spending=None):
    spending = spending or SpendingStore()
    budgets = Budget.query.filter_by(user_id=user_id).order_by(Budget.id).all()
    logger.debug("Evaluating %d budgets for user %s on %s", len(budgets), user_id, reference_date)
    return [(budget, evaluate(budget, reference_date, spending)) for budget in budgets]


def status_to_dict(budget, status):
    return {
        "budget": budget.to_dict(),
        "current_spending": float(status.current_spending),
        "remaining_amount": float(status.remaining_amount),
        "utilization_percentage": float(status.utilization_percentage),
        "status": status.status,
        "days_remaining": status.days_remaining,
        "period_start": status.start.isoformat(),
        "period_end": status.end.isoformat(),
    }
