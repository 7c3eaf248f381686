from datetime import date, datetime
from ..extensions import db
from .category import money


class Expense(db.Model):
    __tablename__ = "expenses"
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=False)
    subcategory_id = db.Column(db.Integer, db.ForeignKey("subcategories.id"))
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    description = db.Column(db.Text)
    expense_date = db.Column(db.Date, default=date.today, nullable=False, index=True)
    expense_type = db.Column(db.String(10), default="monthly", nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    subcategory = db.relationship("SubCategory", lazy="joined")

    def to_dict(self):
        return {
            "id": self.id,
            "category": self.category.summary(),
            "subcategory": self.subcategory.summary() if self.subcategory else None,
            "amount": money(self.amount),
            "description": self.description,
            "date": self.expense_date.isoformat(),
            "expense_type": self.expense_type or "monthly",
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
