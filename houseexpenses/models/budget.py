from datetime import datetime
from ..extensions import db
from .category import money

PERIODS = ("weekly", "monthly", "annual")


class Budget(db.Model):
    __tablename__ = "budgets"
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=False)
    subcategory_id = db.Column(db.Integer, db.ForeignKey("subcategories.id"))
    limit_amount = db.Column(db.Numeric(10, 2), nullable=False)
    warning_threshold = db.Column(db.Integer, default=80, nullable=False)  # percent
    period = db.Column(db.String(10), nullable=False)  # weekly/monthly/annual
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # no unique constraint on (user, category, subcategory, period)
    category = db.relationship("Category", lazy="joined")
    subcategory = db.relationship("SubCategory", lazy="joined")
    alerts = db.relationship("Alert", backref="budget", lazy=True, cascade="all, delete-orphan")

    @property
    def scope_label(self):
        if self.subcategory is not None:
            return f"{self.category.name} - {self.subcategory.name}"
        return self.category.name

    def to_dict(self):
        return {
            "id": self.id,
            "category": self.category.summary(),
            "subcategory": self.subcategory.summary() if self.subcategory else None,
            "limit_amount": money(self.limit_amount),
            "warning_threshold": self.warning_threshold,
            "period": self.period,
        }
