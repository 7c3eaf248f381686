import csv
from io import StringIO
from flask import Blueprint, request, make_response
from flask_login import login_required, current_user
from ...models import Expense, Category
from ...validation import Payload

reports_bp = Blueprint("reports", __name__, url_prefix="/reports")


@reports_bp.route("/export.csv")
@login_required
def export_csv():
    args = Payload(request.args)
    start_date = args.date("start_date", required=False)
    end_date = args.date("end_date", required=False)
    args.check()

    query = Expense.query.join(Category, Expense.category_id == Category.id).filter(
        Expense.user_id == current_user.id,
        Category.is_active.is_(True),
    )
    if start_date:
        query = query.filter(Expense.expense_date >= start_date)
    if end_date:
        query = query.filter(Expense.expense_date <= end_date)

    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(["Date", "Category", "Subcategory", "Amount", "Description"])
    for exp in query.order_by(Expense.expense_date.desc(), Expense.id.desc()).all():
        writer.writerow([
            exp.expense_date.isoformat(),
            exp.category.name,
            exp.subcategory.name if exp.subcategory else "",
            f"{exp.amount:.2f}",
            exp.description or "",
        ])
    response = make_response(output.getvalue())
    response.headers["Content-Disposition"] = "attachment; filename=expenses.csv"
    response.headers["Content-Type"] = "text/csv"
    return response
