from datetime import datetime
from ..extensions import db
from .category import money

ALERT_TYPES = ("warning", "exceeded")


class Alert(db.Model):
    __tablename__ = "alerts"
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    budget_id = db.Column(db.Integer, db.ForeignKey("budgets.id"), nullable=False)
    alert_type = db.Column(db.String(20), nullable=False)
    message = db.Column(db.Text, nullable=False)
    percentage = db.Column(db.Numeric(7, 2), nullable=False)
    is_read = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def to_dict(self):
        budget = self.budget
        return {
            "id": self.id,
            "alert_type": self.alert_type,
            "message": self.message,
            "percentage": money(self.percentage),
            "is_read": self.is_read,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "budget_id": self.budget_id,
            "category": budget.category.summary() if budget else None,
            "subcategory": budget.subcategory.summary() if budget and budget.subcategory else None,
        }
