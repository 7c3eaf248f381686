"""Pending mandatory payments for the current period.

A subcategory is an obligation when it carries a positive fixed amount or is
flagged mandatory. Categories tagged ``annual`` are checked against the
calendar year, everything else against the calendar month. Paid totals come
from one grouped query per distinct window, never one query per subcategory.
"""
import logging
from collections import namedtuple
from decimal import Decimal

from sqlalchemy.orm import selectinload

from ..models import Category
from .periods import window_for
from .spending import SpendingStore, SubCategoryTotals, to_money

logger = logging.getLogger(__name__)

Obligation = namedtuple(
    "Obligation",
    "subcategory_id subcategory_name category_id category_name category_color "
    "category_expense_type expected_amount is_fixed is_paid paid_amount last_paid_date payment_count",
)

NOTHING_PAID = SubCategoryTotals(Decimal("0.00"), 0, None)


def _expected_amount(subcategory, is_fixed):
    if is_fixed:
        return to_money(subcategory.fixed_amount)
    if subcategory.budget_limit is not None:
        return to_money(subcategory.budget_limit)
    return Decimal("0.00")


def project_obligations(categories, reference_date, lookup):
    """Return the unpaid obligations of ``categories`` at ``reference_date``.

    ``lookup(start, end)`` returns a mapping of subcategory id to
    ``SubCategoryTotals`` for that window; it is called at most once per window.
    """
    totals_by_window = {}
    pending = []
    for category in categories:
        period = "annual" if category.expense_type == "annual" else "monthly"
        window = window_for(period, reference_date)
        for subcategory in category.active_subcategories:
            fixed = subcategory.fixed_amount is not None and to_money(subcategory.fixed_amount) > 0
            if not (fixed or subcategory.is_mandatory):
                continue
            expected = _expected_amount(subcategory, fixed)

            if window not in totals_by_window:
                totals_by_window[window] = lookup(*window)
            paid = totals_by_window[window].get(subcategory.id, NOTHING_PAID)

            is_paid = paid.paid_amount >= expected if fixed else paid.paid_amount > 0
            if is_paid:
                continue
            pending.append(Obligation(
                subcategory_id=subcategory.id,
                subcategory_name=subcategory.name,
                category_id=category.id,
                category_name=category.name,
                category_color=category.color,
                category_expense_type=category.expense_type,
                expected_amount=expected,
                is_fixed=fixed,
                is_paid=False,
                paid_amount=paid.paid_amount,
                last_paid_date=paid.last_paid_date,
                payment_count=paid.payment_count,
            ))
    return pending


def compute_pending_obligations(user_id, reference_date, spending=None):
    spending = spending or SpendingStore()
    categories = (
        Category.query.options(selectinload(Category.subcategories))
        .filter_by(user_id=user_id, is_active=True)
        .order_by(Category.display_order, Category.id)
        .all()
    )
    pending = project_obligations(
        categories,
        reference_date,
        lambda start, end: spending.totals_by_subcategory(user_id, start, end),
    )
    logger.debug("User %s has %d pending obligations on %s", user_id, len(pending), reference_date)
    return pending


def obligation_to_dict(obligation):
    data = obligation._asdict()
    data["expected_amount"] = float(obligation.expected_amount)
    data["paid_amount"] = float(obligation.paid_amount)
    data["last_paid_date"] = obligation.last_paid_date.isoformat() if obligation.last_paid_date else None
    return data
