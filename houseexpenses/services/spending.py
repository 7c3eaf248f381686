"""Aggregate spending queries.

``SpendingStore`` is the lookup the budget, alert and obligation services
take as an argument. Every query joins ``categories`` and drops expenses whose
category has been soft-deleted, and every query is scoped by ``user_id``.
Tests may pass any object that offers the same methods.
"""
from collections import namedtuple
from decimal import Decimal

from sqlalchemy import func

from ..extensions import db
from ..models import Category, Expense

CENT = Decimal("0.01")

SubCategoryTotals = namedtuple("SubCategoryTotals", "paid_amount payment_count last_paid_date")


def to_money(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENT)


class SpendingStore:
    def _sum(self, user_id, start, end, *criteria):
        return (
            db.session.query(func.coalesce(func.sum(Expense.amount), 0))
            .join(Category, Expense.category_id == Category.id)
            .filter(
                Expense.user_id == user_id,
                Category.is_active.is_(True),
                Expense.expense_date >= start,
                Expense.expense_date <= end,
                *criteria,
            )
        )

    def total(self, user_id, start, end) -> Decimal:
        return to_money(self._sum(user_id, start, end).scalar())

    def sum_for_category(self, user_id, category_id, start, end) -> Decimal:
        return to_money(self._sum(user_id, start, end, Expense.category_id == category_id).scalar())

    def sum_for_subcategory(self, user_id, subcategory_id, start, end) -> Decimal:
        return to_money(self._sum(user_id, start, end, Expense.subcategory_id == subcategory_id).scalar())

    def totals_by_subcategory(self, user_id, start, end) -> dict:
        """Paid amount, payment count and last payment date per subcategory, in one query."""
        rows = (
            db.session.query(
                Expense.subcategory_id,
                func.sum(Expense.amount),
                func.count(Expense.id),
                func.max(Expense.expense_date),
            )
            .join(Category, Expense.category_id == Category.id)
            .filter(
                Expense.user_id == user_id,
                Expense.subcategory_id.isnot(None),
                Category.is_active.is_(True),
                Expense.expense_date >= start,
                Expense.expense_date <= end,
            )
            .group_by(Expense.subcategory_id)
            .all()
        )
        return {
            sub_id: SubCategoryTotals(to_money(total), int(count), last_date)
            for sub_id, total, count, last_date in rows
        }

    def totals_by_category(self, user_id, start, end) -> dict:
        rows = (
            db.session.query(Expense.category_id, func.sum(Expense.amount))
            .join(Category, Expense.category_id == Category.id)
            .filter(
                Expense.user_id == user_id,
                Category.is_active.is_(True),
                Expense.expense_date >= start,
                Expense.expense_date <= end,
            )
            .group_by(Expense.category_id)
            .all()
        )
        return {category_id: to_money(total) for category_id, total in rows}

    def totals_by_day(self, user_id, start, end) -> dict:
        rows = (
            db.session.query(Expense.expense_date, func.sum(Expense.amount))
            .join(Category, Expense.category_id == Category.id)
            .filter(
                Expense.user_id == user_id,
                Category.is_active.is_(True),
                Expense.expense_date >= start,
                Expense.expense_date <= end,
            )
            .group_by(Expense.expense_date)
            .all()
        )
        return {day: to_money(total) for day, total in rows}
