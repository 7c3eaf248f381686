from datetime import datetime
from decimal import Decimal
from ..extensions import db

EXPENSE_TYPES = ("monthly", "annual")


def money(value):
    """Render a Numeric column value for JSON."""
    return float(value) if value is not None else None


class Category(db.Model):
    __tablename__ = "categories"
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    icon = db.Column(db.String(50), nullable=False, default="tag")
    color = db.Column(db.String(7), nullable=False, default="#95A5A6")
    expense_type = db.Column(db.String(10), nullable=False, default="monthly")  # monthly/annual
    display_order = db.Column(db.Integer, default=0, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    subcategories = db.relationship(
        "SubCategory", backref="category", lazy=True, order_by="SubCategory.display_order"
    )
    expenses = db.relationship("Expense", backref="category", lazy=True)

    @property
    def active_subcategories(self):
        return [sc for sc in self.subcategories if sc.is_active]

    def to_dict(self, with_subcategories=True):
        data = {
            "id": self.id,
            "name": self.name,
            "icon": self.icon,
            "color": self.color,
            "expense_type": self.expense_type,
            "display_order": self.display_order,
        }
        if with_subcategories:
            data["subcategories"] = [sc.to_dict() for sc in self.active_subcategories]
        return data

    def summary(self):
        return {"id": self.id, "name": self.name, "icon": self.icon, "color": self.color}


class SubCategory(db.Model):
    __tablename__ = "subcategories"
    id = db.Column(db.Integer, primary_key=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    icon = db.Column(db.String(50))
    display_order = db.Column(db.Integer, default=0, nullable=False)
    budget_limit = db.Column(db.Numeric(10, 2))  # soft expected amount
    is_mandatory = db.Column(db.Boolean, default=False, nullable=False)
    fixed_amount = db.Column(db.Numeric(10, 2))  # hard recurring amount
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_fixed(self):
        return self.fixed_amount is not None and Decimal(self.fixed_amount) > 0

    @property
    def requires_payment(self):
        # a positive fixed amount makes the subcategory mandatory on its own
        return self.is_fixed or bool(self.is_mandatory)

    def to_dict(self):
        return {
            "id": self.id,
            "category_id": self.category_id,
            "name": self.name,
            "icon": self.icon,
            "display_order": self.display_order,
            "budget_limit": money(self.budget_limit),
            "is_mandatory": self.requires_payment,
            "fixed_amount": money(self.fixed_amount),
        }

    def summary(self):
        return {"id": self.id, "name": self.name, "icon": self.icon}
