from .user import User
from .category import Category, SubCategory
from .expense import Expense
from .budget import Budget
from .alert import Alert

__all__ = ["User", "Category", "SubCategory", "Expense", "Budget", "Alert"]
