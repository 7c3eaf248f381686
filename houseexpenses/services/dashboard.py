"""Dashboard summaries and chart series.

Each chart is built from a single per-day grouped query over its window and
bucketed in Python.
"""
import logging
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

from ..models import Alert, Budget, Category, Expense
from .. import clock
from .budget_status import utilization
from .obligations import compute_pending_obligations
from .periods import window_for
from .spending import CENT, SpendingStore

logger = logging.getLogger(__name__)

UNKNOWN_CATEGORY = {"name": "Unknown", "icon": "help-circle", "color": "#95A5A6"}


def month_reference(year=None, month=None):
    if year is not None and month is not None:
        return date(year, month, 15)
    return clock.today()


def year_reference(year=None):
    if year is not None:
        return date(year, 6, 15)
    return clock.today()


def day_reference(year=None, month=None, day=None):
    if year is not None and month is not None and day is not None:
        return date(year, month, day)
    return clock.today()


def _average(total, count):
    if not count:
        return Decimal("0.00")
    return (total / Decimal(count)).quantize(CENT, rounding=ROUND_HALF_UP)


def _chart(points):
    total = sum((value for _, value in points), Decimal("0.00"))
    return {
        "data_points": [{"label": label, "value": float(value)} for label, value in points],
        "total": float(total),
        "average": float(_average(total, len(points))),
    }


def _range_total(per_day, start, end):
    return sum((amount for day, amount in per_day.items() if start <= day <= end), Decimal("0.00"))


def weekly_chart(user_id, reference_date, spending=None):
    spending = spending or SpendingStore()
    start, end = window_for("weekly", reference_date)
    per_day = spending.totals_by_day(user_id, start, end)
    points = []
    for offset in range(7):
        day = start + timedelta(days=offset)
        points.append((day.strftime("%a"), per_day.get(day, Decimal("0.00"))))
    return _chart(points)


def monthly_chart(user_id, reference_date, spending=None):
    spending = spending or SpendingStore()
    start, end = window_for("monthly", reference_date)
    per_day = spending.totals_by_day(user_id, start, end)
    points = []
    week_start, week_number = start, 1
    while week_start <= end:
        week_end = min(week_start + timedelta(days=6), end)
        points.append((f"Week {week_number}", _range_total(per_day, week_start, week_end)))
        week_start = week_end + timedelta(days=1)
        week_number += 1
    return _chart(points)


def annual_chart(user_id, reference_date, spending=None):
    spending = spending or SpendingStore()
    today = clock.today()
    start, end = window_for("annual", reference_date)
    per_day = spending.totals_by_day(user_id, start, end)
    points = []
    for month in range(1, 13):
        month_start, month_end = window_for("monthly", date(start.year, month, 1))
        # the current year only runs up to the current month
        if start.year == today.year and month_start > today:
            break
        points.append((month_start.strftime("%b"), _range_total(per_day, month_start, month_end)))
    return _chart(points)


def category_spending(user_id, start, end, limit=None, spending=None):
    spending = spending or SpendingStore()
    totals = spending.totals_by_category(user_id, start, end)
    categories = {
        c.id: c for c in Category.query.filter_by(user_id=user_id, is_active=True).all()
    }
    budget_limits = {}
    for budget in Budget.query.filter_by(user_id=user_id, period="monthly", subcategory_id=None).order_by(Budget.id):
        budget_limits.setdefault(budget.category_id, budget.limit_amount)

    grand_total = sum(totals.values(), Decimal("0.00"))
    rows = []
    for category_id, amount in totals.items():
        category = categories.get(category_id)
        info = category.summary() if category else dict(UNKNOWN_CATEGORY, id=category_id)
        rows.append({
            "category_id": category_id,
            "category_name": info["name"],
            "icon": info["icon"],
            "color": info["color"],
            "amount": amount,
            "budget_limit": Decimal(budget_limits.get(category_id, 0)),
            "percentage": utilization(amount, grand_total),
        })
    rows.sort(key=lambda row: row["amount"], reverse=True)
    if limit is not None:
        rows = rows[:limit]
    for row in rows:
        for key in ("amount", "budget_limit", "percentage"):
            row[key] = float(row[key])
    return rows


def category_breakdown(user_id, period, reference_date, spending=None):
    start, end = window_for(period, reference_date)
    return category_spending(user_id, start, end, spending=spending)


def summary(user_id, reference_date, spending=None):
    spending = spending or SpendingStore()
    start, end = window_for("monthly", reference_date)
    total_spending = spending.total(user_id, start, end)
    budget_limit = sum(
        (Decimal(b.limit_amount) for b in Budget.query.filter_by(user_id=user_id, period="monthly")),
        Decimal("0.00"),
    )
    recent = (
        Expense.query.join(Category, Expense.category_id == Category.id)
        .filter(
            Expense.user_id == user_id,
            Category.is_active.is_(True),
            Expense.expense_date >= start,
            Expense.expense_date <= end,
        )
        .order_by(Expense.expense_date.desc(), Expense.id.desc())
        .limit(5)
        .all()
    )
    unread = (
        Alert.query.filter_by(user_id=user_id, is_read=False)
        .order_by(Alert.created_at.desc(), Alert.id.desc())
        .all()
    )
    pending = compute_pending_obligations(user_id, reference_date, spending)
    logger.debug("Built dashboard summary for user %s, month starting %s", user_id, start)
    return {
        "total_spending": total_spending,
        "budget_limit": budget_limit,
        "utilization_percentage": utilization(total_spending, budget_limit),
        "top_categories": category_spending(user_id, start, end, limit=5, spending=spending),
        "recent_expenses": recent,
        "alerts": unread,
        "unread_alert_count": len(unread),
        "pending_expenses": pending,
    }
