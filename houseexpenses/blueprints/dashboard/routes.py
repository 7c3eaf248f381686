from decimal import Decimal

from flask import Blueprint, request
from flask_login import login_required, current_user
from ...api import ok
from ...errors import ValidationError
from ...models.budget import PERIODS
from ... import clock
from ...services import dashboard
from ...services.obligations import compute_pending_obligations, obligation_to_dict
from ...validation import Payload


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/dashboard")


def _args(*names):
    args = Payload(request.args)
    limits = {"year": (1900, 9999), "month": (1, 12), "day": (1, 31)}
    values = [args.integer(name, required=False, minimum=limits[name][0], maximum=limits[name][1])
              for name in names]
    args.check()
    return values


@dashboard_bp.route("/summary")
@login_required
def summary():
    year, month = _args("year", "month")
    data = dashboard.summary(current_user.id, dashboard.month_reference(year, month))
    for key, value in data.items():
        if isinstance(value, Decimal):
            data[key] = float(value)
    data["recent_expenses"] = [e.to_dict() for e in data["recent_expenses"]]
    data["alerts"] = [a.to_dict() for a in data["alerts"]]
    data["pending_expenses"] = [obligation_to_dict(o) for o in data["pending_expenses"]]
    return ok(data)


@dashboard_bp.route("/weekly")
@login_required
def weekly():
    year, month, day = _args("year", "month", "day")
    try:
        reference_date = dashboard.day_reference(year, month, day)
    except ValueError:
        raise ValidationError({"day": "Not a valid date"})
    return ok(dashboard.weekly_chart(current_user.id, reference_date))


@dashboard_bp.route("/monthly")
@login_required
def monthly():
    year, month = _args("year", "month")
    return ok(dashboard.monthly_chart(current_user.id, dashboard.month_reference(year, month)))


@dashboard_bp.route("/annual")
@login_required
def annual():
    (year,) = _args("year")
    return ok(dashboard.annual_chart(current_user.id, dashboard.year_reference(year)))


@dashboard_bp.route("/category-breakdown")
@login_required
def category_breakdown():
    args = Payload(request.args)
    period = args.choice("period", PERIODS, required=False, default="monthly")
    args.check()
    return ok(dashboard.category_breakdown(current_user.id, period, clock.today()))


@dashboard_bp.route("/pending")
@login_required
def pending():
    obligations = compute_pending_obligations(current_user.id, clock.today())
    return ok([obligation_to_dict(o) for o in obligations])
