"""User-scoped entity lookups. Foreign-owned rows are reported as missing."""
from ..errors import ResourceNotFound
from ..models import Budget, Category, Expense, SubCategory


def get_user_category(user_id, category_id, active_only=True):
    query = Category.query.filter_by(id=category_id, user_id=user_id)
    if active_only:
        query = query.filter_by(is_active=True)
    category = query.first()
    if category is None:
        raise ResourceNotFound("Category", "id", category_id)
    return category


def get_user_subcategory(user_id, subcategory_id, category_id=None):
    query = (
        SubCategory.query.join(Category, SubCategory.category_id == Category.id)
        .filter(SubCategory.id == subcategory_id, SubCategory.is_active.is_(True), Category.user_id == user_id)
    )
    if category_id is not None:
        query = query.filter(SubCategory.category_id == category_id)
    subcategory = query.first()
    if subcategory is None:
        raise ResourceNotFound("SubCategory", "id", subcategory_id)
    return subcategory


def get_user_expense(user_id, expense_id):
    expense = Expense.query.filter_by(id=expense_id, user_id=user_id).first()
    if expense is None:
        raise ResourceNotFound("Expense", "id", expense_id)
    return expense


def get_user_budget(user_id, budget_id):
    budget = Budget.query.filter_by(id=budget_id, user_id=user_id).first()
    if budget is None:
        raise ResourceNotFound("Budget", "id", budget_id)
    return budget
